"""Decide when a page's usage collection runs: after scrolling settles or a fallback delay."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import StrEnum
from typing import Any, Protocol

logger = logging.getLogger(__name__)

FALLBACK_DELAY = 5.0  # seconds after start
SCROLL_QUIET_PERIOD = 1.0  # seconds without scrolling


class SchedulerState(StrEnum):
    IDLE = "idle"
    SCHEDULED = "scheduled"
    COLLECTING = "collecting"
    DONE = "done"


class Collectable(Protocol):
    has_collected: bool

    def collect(self) -> Any: ...


class HostEnvironment(Protocol):
    """Timers, scroll events and idle callbacks of the page host."""

    def set_timeout(self, delay: float, callback: Callable[[], None]) -> Any: ...

    def clear_timeout(self, handle: Any) -> None: ...

    def add_scroll_listener(self, callback: Callable[[], None]) -> None: ...

    def remove_scroll_listener(self, callback: Callable[[], None]) -> None: ...

    def request_idle_callback(self, callback: Callable[[], None]) -> None: ...


class CollectionScheduler:
    """Run a collector once, after scrolling goes quiet or a fallback delay.

    ``start()`` arms a fallback timer and listens for scroll events; each
    scroll restarts a short quiet-period timer. The first timer to fire
    cancels the other, stops listening and asks the host to run the collector
    when idle.
    """

    def __init__(
        self,
        collector: Collectable,
        host: HostEnvironment,
        *,
        fallback_delay: float = FALLBACK_DELAY,
        quiet_period: float = SCROLL_QUIET_PERIOD,
    ) -> None:
        self._collector = collector
        self._host = host
        self._fallback_delay = fallback_delay
        self._quiet_period = quiet_period
        self._fallback_timer: Any = None
        self._quiet_timer: Any = None
        self._triggered = False
        self._lock = threading.Lock()
        self.state = SchedulerState.IDLE

    def start(self) -> None:
        with self._lock:
            if self.state is not SchedulerState.IDLE:
                return
            self.state = SchedulerState.SCHEDULED
            self._host.add_scroll_listener(self.on_scroll)
            self._fallback_timer = self._host.set_timeout(self._fallback_delay, self._on_timer)

    def on_scroll(self) -> None:
        with self._lock:
            if self._triggered:
                return
            if self._quiet_timer is not None:
                self._host.clear_timeout(self._quiet_timer)
            self._quiet_timer = self._host.set_timeout(self._quiet_period, self._on_timer)

    def _on_timer(self) -> None:
        with self._lock:
            if self._triggered:
                return
            self._triggered = True
            for timer in (self._fallback_timer, self._quiet_timer):
                if timer is not None:
                    self._host.clear_timeout(timer)
            self._fallback_timer = self._quiet_timer = None
            self._host.remove_scroll_listener(self.on_scroll)
        self._host.request_idle_callback(self._run)

    def _run(self) -> None:
        with self._lock:
            if self.state is not SchedulerState.SCHEDULED:
                return
            if self._collector.has_collected:
                self.state = SchedulerState.DONE
                return
            self.state = SchedulerState.COLLECTING
        try:
            self._collector.collect()
        except Exception:
            logger.exception("CSS usage collection failed")
        finally:
            with self._lock:
                self.state = SchedulerState.DONE


class ThreadingHost:
    """:class:`HostEnvironment` backed by ``threading.Timer``.

    Scroll events are delivered by calling :meth:`dispatch_scroll`; idle
    callbacks run on a fresh timer thread with no delay.
    """

    def __init__(self) -> None:
        self._listeners: list[Callable[[], None]] = []
        self._lock = threading.Lock()

    def set_timeout(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer

    def clear_timeout(self, handle: threading.Timer) -> None:
        handle.cancel()

    def add_scroll_listener(self, callback: Callable[[], None]) -> None:
        with self._lock:
            self._listeners.append(callback)

    def remove_scroll_listener(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._listeners:
                self._listeners.remove(callback)

    def request_idle_callback(self, callback: Callable[[], None]) -> None:
        self.set_timeout(0, callback)

    def dispatch_scroll(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener()
