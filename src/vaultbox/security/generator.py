"""Random password generation for new vault entries.

Characters are drawn with :mod:`secrets`, one independent choice per
position. A draw that the input validator would refuse (``<...>`` spans,
``on...=`` fragments) is thrown away and redrawn, so anything returned here
can be stored as an entry secret unchanged.
"""

import secrets
from typing import Optional

from vaultbox.core.exceptions import InvalidInputError
from .validation import MAX_SECRET, InputValidator

UPPER = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
LOWER = "abcdefghijklmnopqrstuvwxyz"
DIGITS = "0123456789"
SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"
QUICK_CHARSET = UPPER + LOWER + DIGITS + "!@#$%^&*"

DEFAULT_LENGTH = 16
MIN_LENGTH = 4
MAX_LENGTH = 128

# a draw is rejected far less often than this for any allowed charset
MAX_DRAWS = 1000


def build_charset(upper=True, lower=True, digits=True, symbols=True) -> str:
    charset = ""
    if upper:
        charset += UPPER
    if lower:
        charset += LOWER
    if digits:
        charset += DIGITS
    if symbols:
        charset += SYMBOLS
    if not charset:
        raise InvalidInputError("Select at least one character class")
    return charset


def generate_from(charset: str, length: int, validator: Optional[InputValidator] = None) -> str:
    if not charset:
        raise InvalidInputError("Character set is empty")
    if isinstance(length, bool) or not isinstance(length, int) or not MIN_LENGTH <= length <= MAX_LENGTH:
        raise InvalidInputError(f"Length must be between {MIN_LENGTH} and {MAX_LENGTH}")
    validator = validator if validator is not None else InputValidator()

    for _ in range(MAX_DRAWS):
        password = "".join(secrets.choice(charset) for _ in range(length))
        if validator.validate(password, MAX_SECRET):
            return password
    raise InvalidInputError("Could not generate an acceptable password")


def generate_password(
    length: int = DEFAULT_LENGTH,
    upper: bool = True,
    lower: bool = True,
    digits: bool = True,
    symbols: bool = True,
    validator: Optional[InputValidator] = None,
) -> str:
    """Strong password of ``length`` characters from the selected classes.

    Raises :class:`InvalidInputError` when no class is selected or the length
    is outside ``MIN_LENGTH..MAX_LENGTH``.
    """
    return generate_from(build_charset(upper, lower, digits, symbols), length, validator)


def generate_quick_password(validator: Optional[InputValidator] = None) -> str:
    """16 characters of letters, digits and ``!@#$%^&*``."""
    return generate_from(QUICK_CHARSET, DEFAULT_LENGTH, validator)
