"""Random short-code generation.

Candidates are drawn uniformly from the 62-character alphanumeric alphabet
using nanoid, which reads from the OS CSPRNG. With 7 characters the space is
62**7 (about 3.5e12) codes, so collisions are rare but not impossible;
uniqueness is enforced by the store and retried by the service.
"""

import string

from nanoid import generate

from shortlinks.config import get_settings

__all__ = ["ALPHABET", "generate_random_code"]

ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits


def generate_random_code(length: int | None = None) -> str:
    if length is None:
        length = get_settings().SHORT_CODE_LENGTH
    assert 6 <= length <= 8, f"length must be between 6 and 8, got {length!r}"
    return generate(ALPHABET, length)
