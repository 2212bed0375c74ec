"""Errors raised by the registry and resolver."""

from typing import Optional


class ShortLinkError(ValueError):
    """Base class for recoverable short link errors.

    ``index`` is the position of the failing request within a batch and
    ``field`` names the input field to report the error against.
    """

    code = "short_link_error"
    default_field: Optional[str] = None

    def __init__(
        self,
        message: str,
        index: Optional[int] = None,
        field: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.index = index
        self.field = field or self.default_field

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "code": self.code,
            "index": self.index,
            "field": self.field,
        }


class InvalidUrlError(ShortLinkError):
    """Original URL is empty, malformed, or not http(s)."""

    code = "invalid_url"
    default_field = "original_url"


class InvalidShortCodeError(ShortLinkError):
    """Custom short code fails the format check."""

    code = "invalid_short_code"
    default_field = "custom_short_code"


class ShortCodeTakenError(ShortLinkError):
    """Custom short code collides with an existing record."""

    code = "short_code_taken"
    default_field = "custom_short_code"


class CodeGenerationExhaustedError(ShortLinkError):
    """Random allocation collided on every attempt."""

    code = "code_generation_exhausted"


class StaleRecordError(ShortLinkError):
    """A compare-and-swap update lost against a newer version of the record."""

    code = "stale_record"


class InvalidValidityError(ShortLinkError):
    """Validity window is out of range."""

    code = "invalid_validity"
    default_field = "validity_minutes"
