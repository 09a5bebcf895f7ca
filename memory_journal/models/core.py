"""
Core data models for the memory journal.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..utils.timestamp_utils import parse_iso, to_iso

MEMORY_TYPES = ('milestone', 'memory', 'achievement')

PROFILE_FIELDS = ('full_name', 'bio', 'location', 'birth_date', 'interests', 'profile_image', 'banner_image')


@dataclass
class User:
    """A registered account. ``password`` always holds a bcrypt hash."""
    id: str
    email: str  # Lowercase, unique across users
    password: str
    full_name: str
    created_at: datetime
    updated_at: datetime
    bio: Optional[str] = None
    location: Optional[str] = None
    birth_date: Optional[str] = None
    interests: Optional[str] = None
    profile_image: Optional[str] = None
    banner_image: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        document = {
            'id': self.id,
            'email': self.email,
            'password': self.password,
            'created_at': to_iso(self.created_at),
            'updated_at': to_iso(self.updated_at)
        }
        for name in PROFILE_FIELDS:
            document[name] = getattr(self, name)
        return document

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> 'User':
        return cls(id=doc.get('id', ''),
                   email=doc.get('email', ''),
                   password=doc.get('password', ''),
                   full_name=doc.get('full_name', ''),
                   created_at=parse_iso(doc.get('created_at')),
                   updated_at=parse_iso(doc.get('updated_at')),
                   bio=doc.get('bio'),
                   location=doc.get('location'),
                   birth_date=doc.get('birth_date'),
                   interests=doc.get('interests'),
                   profile_image=doc.get('profile_image'),
                   banner_image=doc.get('banner_image'))

    def to_profile(self) -> Dict[str, Any]:
        """Public projection of the account, without the password hash."""
        profile = {'id': self.id, 'email': self.email}
        for name in PROFILE_FIELDS:
            profile[name] = getattr(self, name)
        profile['created_at'] = to_iso(self.created_at)
        profile['updated_at'] = to_iso(self.updated_at)
        return profile


@dataclass
class Memory:
    """A journal entry owned by a single user.

    ``date`` is when the remembered event happened and is unrelated to
    ``created_at``. ``user_id`` is not required to reference a live user.
    """
    id: str
    user_id: str
    title: str
    description: str
    date: str
    type: str  # milestone | memory | achievement
    is_private: bool
    created_at: datetime
    updated_at: datetime
    image: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    def to_document(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'title': self.title,
            'description': self.description,
            'date': self.date,
            'type': self.type,
            'image': self.image,
            'tags': list(self.tags),
            'is_private': self.is_private,
            'created_at': to_iso(self.created_at),
            'updated_at': to_iso(self.updated_at)
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> 'Memory':
        return cls(id=doc.get('id', ''),
                   user_id=doc.get('user_id', ''),
                   title=doc.get('title', ''),
                   description=doc.get('description', ''),
                   date=doc.get('date', ''),
                   type=doc.get('type', 'memory'),
                   is_private=bool(doc.get('is_private', False)),
                   created_at=parse_iso(doc.get('created_at')),
                   updated_at=parse_iso(doc.get('updated_at')),
                   image=doc.get('image'),
                   tags=list(doc.get('tags') or []))


@dataclass
class SessionClaims:
    """Identity claims carried inside a session token. Never persisted."""
    session_id: str
    id: str  # User identifier
    email: str
    name: str
    exp: int  # Absolute expiry, epoch milliseconds
    created_at: Optional[str] = None  # User creation time at issuance

    def to_dict(self) -> Dict[str, Any]:
        return {
            'session_id': self.session_id,
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'exp': self.exp,
            'created_at': self.created_at
        }
