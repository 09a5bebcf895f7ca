"""
Prefixed identifier generation and validation.

Identifiers look like ``user_k7x9m2p4`` or ``mem_a5b8c3d1``: an entity prefix,
a single underscore, and a random lowercase alphanumeric suffix.
"""

import re
import secrets
from typing import Optional

ALPHABET = 'abcdefghijklmnopqrstuvwxyz0123456789'

USER_PREFIX = 'user'
MEMORY_PREFIX = 'mem'
SESSION_PREFIX = 'sess'

ID_LENGTHS = {USER_PREFIX: 8, MEMORY_PREFIX: 8, SESSION_PREFIX: 12}
DEFAULT_ID_LENGTH = 8
MIN_RANDOM_LENGTH = 6

_RANDOM_PART = re.compile(r'[a-z0-9]+')


def _random_string(length: int) -> str:
    return ''.join(secrets.choice(ALPHABET) for _ in range(length))


def generate_id(prefix: str, length: Optional[int] = None) -> str:
    """Generate a prefixed identifier.

    Args:
        prefix: Entity prefix (user, mem, sess, ...)
        length: Length of the random part, defaults to the prefix's length

    Returns:
        Identifier string such as ``user_k7x9m2p4``
    """
    if not prefix or '_' in prefix:
        raise ValueError(f'Invalid identifier prefix: {prefix!r}')
    if length is None:
        length = ID_LENGTHS.get(prefix, DEFAULT_ID_LENGTH)
    return f'{prefix}_{_random_string(length)}'


def generate_user_id() -> str:
    return generate_id(USER_PREFIX)


def generate_memory_id() -> str:
    return generate_id(MEMORY_PREFIX)


def generate_session_id() -> str:
    return generate_id(SESSION_PREFIX)


def is_valid_id(value, prefix: Optional[str] = None) -> bool:
    """Check identifier shape and, optionally, its prefix.

    Args:
        value: Candidate identifier
        prefix: Expected prefix, or None to accept any prefix

    Returns:
        True iff value has exactly two '_'-separated parts, a non-empty prefix,
        a random part matching [a-z0-9]{6,}, and the expected prefix if given
    """
    if not value or not isinstance(value, str):
        return False

    parts = value.split('_')
    if len(parts) != 2:
        return False

    id_prefix, random_part = parts
    if not id_prefix:
        return False
    if prefix and id_prefix != prefix:
        return False

    return bool(_RANDOM_PART.fullmatch(random_part)) and len(random_part) >= MIN_RANDOM_LENGTH


def get_id_prefix(value) -> Optional[str]:
    """Return the prefix of a valid identifier, or None."""
    if not is_valid_id(value):
        return None
    return value.split('_')[0]
