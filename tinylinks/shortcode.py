"""Short code generation and allocation."""

import random
import string
from typing import Container, Optional, Sequence

from .errors import CodeGenerationExhaustedError

DEFAULT_CODE_LENGTHS = (6, 7)
DEFAULT_MAX_ATTEMPTS = 10


class ShortCodeGenerator:
    """Generate random short codes."""

    # Base62 characters (alphanumeric, case-sensitive)
    BASE62_CHARS = string.ascii_letters + string.digits  # a-zA-Z0-9

    def __init__(self, default_length: int = 6, rng: Optional[random.Random] = None):
        """Initialize short code generator.

        Args:
            default_length: Default length for generated codes
            rng: Optional random source (seed it for reproducible codes)
        """
        self.default_length = default_length
        self.rng = rng or random.Random()

    def generate_random(self, length: Optional[int] = None) -> str:
        """Generate a random short code.

        Args:
            length: Length of the code (uses default if not specified)

        Returns:
            Random short code
        """
        length = length or self.default_length
        return "".join(self.rng.choices(self.BASE62_CHARS, k=length))

    @staticmethod
    def is_valid_format(code: str) -> bool:
        """Check if code only uses base62 characters."""
        return bool(code) and all(c in ShortCodeGenerator.BASE62_CHARS for c in code)


def allocate(
    existing_codes: Container[str],
    lengths: Sequence[int] = DEFAULT_CODE_LENGTHS,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    generator: Optional[ShortCodeGenerator] = None,
) -> str:
    """Pick a random code not in ``existing_codes``.

    The length is chosen once per call from ``lengths``.

    Args:
        existing_codes: Codes that must not be returned
        lengths: Candidate code lengths
        max_attempts: Collisions tolerated before giving up
        generator: Code generator (a fresh unseeded one by default)

    Returns:
        An unused short code

    Raises:
        CodeGenerationExhaustedError: If every attempt collided
    """
    generator = generator or ShortCodeGenerator()
    length = generator.rng.choice(list(lengths))

    for _ in range(max_attempts):
        code = generator.generate_random(length)
        if code not in existing_codes:
            return code

    raise CodeGenerationExhaustedError(
        f"Failed to generate unique short code after {max_attempts} attempts"
    )


class ShortCodeAllocator:
    """Allocation policy: code lengths and retry bound as explicit configuration."""

    def __init__(
        self,
        lengths: Sequence[int] = DEFAULT_CODE_LENGTHS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        generator: Optional[ShortCodeGenerator] = None,
    ):
        if not lengths:
            raise ValueError("At least one code length is required")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.lengths = tuple(lengths)
        self.max_attempts = max_attempts
        self.generator = generator or ShortCodeGenerator(default_length=self.lengths[0])

    def allocate(self, existing_codes: Container[str]) -> str:
        return allocate(
            existing_codes,
            lengths=self.lengths,
            max_attempts=self.max_attempts,
            generator=self.generator,
        )
