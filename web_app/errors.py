"""Mapping of short link errors to HTTP status codes."""

from fastapi import status

from tinylinks.errors import (
    CodeGenerationExhaustedError,
    ShortCodeTakenError,
    ShortLinkError,
)


def status_for_error(error: ShortLinkError) -> int:
    if isinstance(error, ShortCodeTakenError):
        return status.HTTP_409_CONFLICT
    if isinstance(error, CodeGenerationExhaustedError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_400_BAD_REQUEST
