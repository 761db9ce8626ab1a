"""
Access code generator.

Codes are 6 characters of base-36 (0-9, A-Z), upper case. Generation is
uniform but makes no uniqueness promise: the registry's unique constraint
decides whether a code can be used, and callers regenerate on collision.
Codes shown to a user before the sheet is committed are not reserved.
"""
import re
import secrets
import string

ALPHABET = string.digits + string.ascii_uppercase
CODE_LENGTH = 6

_CODE_RE = re.compile(rf"^[0-9A-Z]{{{CODE_LENGTH}}}$")


def generate(rng=None) -> str:
    """Return a fresh random code. *rng* may be a random.Random for tests."""
    choice = rng.choice if rng is not None else secrets.choice
    return "".join(choice(ALPHABET) for _ in range(CODE_LENGTH))


def normalize(code) -> str:
    """Trim and upper-case a code typed by a user."""
    return (code or "").strip().upper()


def is_well_formed(code) -> bool:
    return bool(code) and bool(_CODE_RE.match(code))
