from typing import Optional


class TypewriterError(Exception):
    """Base class for every error reported through the typewriter error channel."""

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(message)


class InvalidConfigurationError(TypewriterError, ValueError):
    """Error raised when an option fails validation; the sequence does not start."""


class ContentTooLongError(TypewriterError):
    """Error reported when a resolved fragment exceeds `max_html_length` and is truncated."""

    def __init__(self, length: int, max_length: int, context: Optional[str] = None):
        self.length = length
        self.max_length = max_length
        super().__init__(
            f"HTML content exceeds maximum length of {max_length} characters - length={length}.",
            context,
        )


class ParseFailureError(TypewriterError):
    """Error reported when a fragment could not be split into segments."""


class SanitizeFailureError(TypewriterError):
    """Error reported when a fragment could not be sanitized and was reduced to plain text."""


class TickFailureError(TypewriterError):
    """Error reported when a reveal or erase tick raised; the phase is forced to completion."""


class UnresolvableItemError(TypewriterError):
    """Error raised when an item yields no text that could be displayed."""

    def __init__(self, index: int, context: Optional[str] = None):
        self.index = index
        super().__init__(f"Invalid text item at index {index}", context)
