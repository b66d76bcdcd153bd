"""Error hierarchy for unused-css."""
from __future__ import annotations


class UnusedCSSError(Exception):
    """Base error for all unused_css errors."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class SelectorError(UnusedCSSError):
    """A selector could not be parsed or evaluated by the document engine."""

    def __init__(self, message: str, *, selector: str = "", **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.selector = selector


class StylesheetAccessError(UnusedCSSError):
    """The rules of a stylesheet could not be read (cross-origin or fetch failure)."""

    def __init__(self, message: str, *, href: str | None = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.href = href


class PayloadDecodeError(UnusedCSSError):
    """A transmitted usage payload was not valid base64, gzip or JSON."""


class TransmissionError(UnusedCSSError):
    """Sending a usage payload to the server failed."""

    def __init__(self, message: str, *, status_code: int | None = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.status_code = status_code
