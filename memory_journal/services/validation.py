"""
Input validation for account and memory payloads.

Every check raises ValidationError before any storage access.
"""

import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from ..models.core import MEMORY_TYPES
from ..utils.config import config
from ..utils.timestamp_utils import parse_iso, utc_now
from .errors import ValidationError

EMAIL_PATTERN = re.compile(r'[^\s@]+@[^\s@]+\.[^\s@]+')

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 100
MAX_PASSWORD_BYTES = 72  # bcrypt ignores anything longer
MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 2000
MAX_TAG_LENGTH = 50

MEMORY_FIELDS = ('title', 'description', 'date', 'type', 'image', 'tags', 'is_private')
REQUIRED_MEMORY_FIELDS = ('title', 'description', 'date', 'type')


def normalize_email(email: Any) -> str:
    if not isinstance(email, str) or not email.strip():
        raise ValidationError('Email is required')
    email = email.strip().lower()
    if not EMAIL_PATTERN.fullmatch(email):
        raise ValidationError('Please enter a valid email address')
    return email


def validate_password(password: Any, min_length: Optional[int] = None) -> str:
    if min_length is None:
        min_length = config.auth.min_password_length
    if not isinstance(password, str) or not password:
        raise ValidationError('Password is required')
    if len(password) < min_length:
        raise ValidationError(f'Password must be at least {min_length} characters long')
    if len(password.encode('utf-8')) > MAX_PASSWORD_BYTES:
        raise ValidationError(f'Password must be at most {MAX_PASSWORD_BYTES} bytes long')
    return password


def validate_full_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError('Name is required')
    name = name.strip()
    if len(name) < MIN_NAME_LENGTH:
        raise ValidationError(f'Name must be at least {MIN_NAME_LENGTH} characters long')
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f'Name cannot be more than {MAX_NAME_LENGTH} characters')
    return name


def validate_birth_date(value: Any) -> Optional[str]:
    """Accept an ISO date (or datetime) that is not in the future; blank clears the field."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, (date, datetime)):
        value = value.isoformat()
    if not isinstance(value, str):
        raise ValidationError('Invalid birth date format')

    value = value.strip()
    try:
        born = parse_iso(value)
    except ValueError:
        raise ValidationError('Invalid birth date format')
    if born > utc_now():
        raise ValidationError('Birth date cannot be in the future')
    return value


def normalize_tags(tags: Any) -> List[str]:
    """Accept a list of strings or a comma-separated string; drop blanks, keep order."""
    if tags is None:
        return []
    if isinstance(tags, str):
        tags = tags.split(',')
    if not isinstance(tags, (list, tuple)):
        raise ValidationError('Tags must be a list of strings')

    normalized = []
    for tag in tags:
        if not isinstance(tag, str):
            raise ValidationError('Tags must be a list of strings')
        tag = tag.strip()
        if not tag:
            continue
        if len(tag) > MAX_TAG_LENGTH:
            raise ValidationError(f'Tag cannot be more than {MAX_TAG_LENGTH} characters')
        normalized.append(tag)
    return normalized


def _bounded_text(data: Dict[str, Any], name: str, max_length: int) -> str:
    value = data.get(name)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f'{name.capitalize()} is required')
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(f'{name.capitalize()} cannot be more than {max_length} characters')
    return value


def _event_date(value: Any) -> str:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if not isinstance(value, str) or not value.strip():
        raise ValidationError('Date is required')
    value = value.strip()
    try:
        parse_iso(value)
    except ValueError:
        raise ValidationError('Invalid date format')
    return value


def _privacy_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ('true', 'false'):
        return value.strip().lower() == 'true'
    raise ValidationError('is_private must be a boolean')


def validate_memory_fields(data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """Validate and normalize a memory payload.

    Args:
        data: Raw fields; keys outside MEMORY_FIELDS are ignored
        partial: Validate only the fields present (for patches)

    Returns:
        Normalized fields ready for storage
    """
    if not isinstance(data, dict):
        raise ValidationError('Memory data must be an object')

    if not partial:
        missing = [name for name in REQUIRED_MEMORY_FIELDS if not data.get(name)]
        if missing:
            raise ValidationError('Title, description, date, and type are required')

    cleaned: Dict[str, Any] = {}
    if 'title' in data:
        cleaned['title'] = _bounded_text(data, 'title', MAX_TITLE_LENGTH)
    if 'description' in data:
        cleaned['description'] = _bounded_text(data, 'description', MAX_DESCRIPTION_LENGTH)
    if 'date' in data:
        cleaned['date'] = _event_date(data['date'])
    if 'type' in data:
        if data['type'] not in MEMORY_TYPES:
            raise ValidationError('Type must be milestone, memory, or achievement')
        cleaned['type'] = data['type']
    if 'image' in data:
        image = data['image']
        if image is not None and not isinstance(image, str):
            raise ValidationError('Image must be an encoded string')
        cleaned['image'] = image or None
    if 'tags' in data:
        cleaned['tags'] = normalize_tags(data['tags'])
    if 'is_private' in data:
        cleaned['is_private'] = _privacy_flag(data['is_private'])

    if not partial:
        cleaned.setdefault('image', None)
        cleaned.setdefault('tags', [])
        cleaned.setdefault('is_private', False)

    return cleaned
