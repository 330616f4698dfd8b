"""
Short-code generation and validation for tinylink.

Generation:
- RandomCodeGenerator: random length in [CODE_MIN_LENGTH, CODE_MAX_LENGTH], each
  character drawn uniformly from the 62-symbol alphanumeric alphabet.
  Codes carry no uniqueness guarantee; the store's unique constraint plus the
  manager's bounded retry loop handle collisions.

Validation:
- validate_code: format [A-Za-z0-9]{6,8} and not a reserved path segment
  (compared case-insensitively). Pure, no side effects.
"""

import random
import re
import string
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

CODE_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
CODE_MIN_LENGTH = 6
CODE_MAX_LENGTH = 8
CODE_PATTERN = re.compile(r"[A-Za-z0-9]{6,8}")

# Path segments owned by the app's own routes
RESERVED_CODES: FrozenSet[str] = frozenset({
    "api",
    "links",
    "deleted",
    "admin",
    "dashboard",
    "_next",
    "static",
})


@dataclass
class RandomCodeGenerator:
    """
    Random alphanumeric codes of random length.

    `rng` defaults to SystemRandom; pass a seeded random.Random for reproducible tests.
    """
    min_length: int = CODE_MIN_LENGTH
    max_length: int = CODE_MAX_LENGTH
    rng: random.Random = field(default_factory=random.SystemRandom)

    def __post_init__(self):
        if not 0 < self.min_length <= self.max_length:
            raise ValueError("min_length must be positive and <= max_length")

    def generate(self, length: Optional[int] = None) -> str:
        L = length if length is not None else self.rng.randint(self.min_length, self.max_length)
        return "".join(self.rng.choice(CODE_ALPHABET) for _ in range(L))

    def __call__(self) -> str:
        return self.generate()


_default_generator = RandomCodeGenerator()


def generate_code() -> str:
    """Facade used by the rest of the app; draws from the shared SystemRandom generator."""
    return _default_generator.generate()


def validate_code(code: str) -> bool:
    """Return True if `code` is acceptable as a user-supplied short code."""
    if not isinstance(code, str) or not CODE_PATTERN.fullmatch(code):
        return False
    return code.lower() not in RESERVED_CODES
