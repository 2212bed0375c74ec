"""Core short link logic: allocation, registry and resolution."""

from .errors import (
    ShortLinkError,
    InvalidUrlError,
    InvalidShortCodeError,
    ShortCodeTakenError,
    CodeGenerationExhaustedError,
    StaleRecordError,
)
from .models import ClickEvent, URLRecord, ShortenRequest, ResolveResult, ResolveStatus
from .shortcode import ShortCodeGenerator, ShortCodeAllocator, allocate
from .registry import URLRegistry
from .resolver import URLResolver

__all__ = [
    "ShortLinkError",
    "InvalidUrlError",
    "InvalidShortCodeError",
    "ShortCodeTakenError",
    "CodeGenerationExhaustedError",
    "StaleRecordError",
    "ClickEvent",
    "URLRecord",
    "ShortenRequest",
    "ResolveResult",
    "ResolveStatus",
    "ShortCodeGenerator",
    "ShortCodeAllocator",
    "allocate",
    "URLRegistry",
    "URLResolver",
]
