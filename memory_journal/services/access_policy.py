"""
Ownership and visibility rules for Memory records.

Reads are allowed for public memories and for the owner of a private one.
Updates and deletes are allowed for the owner only. A denied operation is
reported exactly like a missing record.
"""

from enum import Enum
from typing import Any, Dict, Optional

from ..models.core import Memory
from ..utils.id_generator import USER_PREFIX, is_valid_id


class Operation(Enum):
    READ = 'read'
    UPDATE = 'update'
    DELETE = 'delete'


def is_owner(memory: Memory, requester_id: Optional[str]) -> bool:
    return bool(requester_id) and memory.user_id == requester_id


def can_read(memory: Memory, requester_id: Optional[str] = None) -> bool:
    return not memory.is_private or is_owner(memory, requester_id)


def can_modify(memory: Memory, requester_id: Optional[str]) -> bool:
    return is_owner(memory, requester_id)


def is_permitted(operation: Operation, memory: Memory, requester_id: Optional[str] = None) -> bool:
    if operation is Operation.READ:
        return can_read(memory, requester_id)
    return can_modify(memory, requester_id)


def search_filters(requester_id: Optional[str] = None, include_private: bool = False) -> Dict[str, Any]:
    """Candidate filter for searches.

    A valid requester asking for private items searches only their own memories,
    public and private. Everyone else searches public memories of all owners.
    """
    if include_private and is_valid_id(requester_id, USER_PREFIX):
        return {'user_id': requester_id}
    return {'is_private': False}


def owner_listing_filters(owner_id: str, include_private: bool) -> Dict[str, Any]:
    filters: Dict[str, Any] = {'user_id': owner_id}
    if not include_private:
        filters['is_private'] = False
    return filters


def write_filters(memory_id: str, requester_id: str) -> Dict[str, Any]:
    """Storage scope for updates and deletes: the memory must belong to the requester."""
    return {'id': memory_id, 'user_id': requester_id}
