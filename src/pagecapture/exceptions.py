"""Exceptions raised by pagecapture."""


class PageCaptureError(Exception):
    """Base exception for all capture preprocessing errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidDocumentError(PageCaptureError):
    """Raised when the document tree (or the payload it is built from) is unusable."""


class FlattenError(PageCaptureError):
    """Raised when a single shadow host cannot be flattened."""

    def __init__(self, message: str, tag_name: str | None = None):
        super().__init__(message)
        self.tag_name = tag_name

    def __str__(self) -> str:
        if self.tag_name:
            return f"<{self.tag_name}>: {self.message}"
        return self.message


class SelectorError(PageCaptureError):
    """Raised for selectors outside the supported subset or with bad syntax."""

    def __init__(self, message: str, selector: str | None = None):
        super().__init__(message)
        self.selector = selector

    def __str__(self) -> str:
        if self.selector is not None:
            return f"{self.message} in selector {self.selector!r}"
        return self.message


class AdapterNotFoundError(PageCaptureError):
    """Raised when strict adapter detection finds no matching site adapter."""
