from __future__ import annotations

import pytest

from unused_css.errors import SelectorError


class FakeDocument:
    """In-memory DocumentAdapter: selectors map straight to element lists."""

    def __init__(
        self,
        elements: dict | None = None,
        styles: dict | None = None,
        invalid: tuple[str, ...] = (),
        broken: tuple[str, ...] = (),
        url: str = "https://example.com/",
    ) -> None:
        self.url = url
        self.host = "example.com"
        self.elements = elements or {}
        self.styles = styles or {}
        self.invalid = set(invalid)
        self.broken = set(broken)
        self.queries: list[str] = []

    def body_classes(self) -> list[str]:
        return []

    def list_stylesheets(self):
        return []

    def list_rules(self, sheet):
        return list(sheet.cssRules)

    def is_valid_selector(self, selector: str) -> bool:
        return selector not in self.invalid

    def query_matching_elements(self, selector: str):
        self.queries.append(selector)
        if selector in self.broken:
            raise SelectorError("engine failure", selector=selector)
        return self.elements.get(selector, [])

    def computed_style_of(self, element, pseudo_element=None):
        return self.styles.get((element, pseudo_element), {"content": "none", "display": "inline"})


class FakeHost:
    """HostEnvironment whose timers and idle callbacks fire only when told to."""

    def __init__(self) -> None:
        self.timers: dict[int, tuple[float, object]] = {}
        self.listeners: list = []
        self.idle: list = []
        self._next = 0

    def set_timeout(self, delay, callback):
        self._next += 1
        self.timers[self._next] = (delay, callback)
        return self._next

    def clear_timeout(self, handle) -> None:
        self.timers.pop(handle, None)

    def add_scroll_listener(self, callback) -> None:
        self.listeners.append(callback)

    def remove_scroll_listener(self, callback) -> None:
        self.listeners.remove(callback)

    def request_idle_callback(self, callback) -> None:
        self.idle.append(callback)

    def pending_delays(self) -> list[float]:
        return sorted(delay for delay, _ in self.timers.values())

    def fire(self, delay: float) -> None:
        handle = next(h for h, (d, _) in self.timers.items() if d == delay)
        _, callback = self.timers.pop(handle)
        callback()

    def scroll(self) -> None:
        for listener in list(self.listeners):
            listener()

    def run_idle(self) -> None:
        callbacks, self.idle = self.idle, []
        for callback in callbacks:
            callback()


class FakeCollector:
    def __init__(self, error: Exception | None = None) -> None:
        self.has_collected = False
        self.calls = 0
        self._error = error

    def collect(self):
        self.calls += 1
        self.has_collected = True
        if self._error is not None:
            raise self._error
        return {}


class RecordingTransmitter:
    def __init__(self) -> None:
        self.sent: list = []

    def send(self, envelope):
        self.sent.append(envelope)
        return {"reduction": envelope.reduction}


@pytest.fixture
def make_document():
    return FakeDocument


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def make_collector():
    return FakeCollector


@pytest.fixture
def transmitter():
    return RecordingTransmitter()


@pytest.fixture
def fetch_from():
    """Build a fetcher that serves stylesheet text from a dict keyed by absolute URL."""

    def build(sheets: dict[str, str]):
        return sheets.get

    return build
