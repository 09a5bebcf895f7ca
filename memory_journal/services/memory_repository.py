"""
Memory repository: journal entries on the document store, gated by the access policy.
"""

from typing import Any, Dict, List, Optional

from ..models.core import Memory
from ..utils.id_generator import MEMORY_PREFIX, USER_PREFIX, generate_memory_id, is_valid_id
from ..utils.logging_config import get_logger
from ..utils.opensearch_client import DocumentConflictError
from ..utils.storage import get_storage
from ..utils.timestamp_utils import to_iso, utc_now
from . import access_policy
from .errors import ConflictError, ValidationError
from .validation import validate_memory_fields

logger = get_logger(__name__)

MEMORY_INDEX = 'memory'
MAX_PAGE_SIZE = 100
# Upper bound on owner listings and search results
MAX_RESULTS = 1000


def _require_id(value: Optional[str], prefix: str, label: str) -> None:
    if not is_valid_id(value, prefix):
        logger.error(f'Invalid {label} ID format: {value!r}')
        raise ValidationError(f'Invalid {label} ID format')


class MemoryRepository:
    """CRUD, listing and search for memories.

    Reads go through access_policy.can_read. Updates and deletes are scoped to
    (id, owner) so a memory owned by someone else looks exactly like a missing one.
    """

    def __init__(self, store=None):
        """
        Args:
            store: Document store, defaults to the shared store
        """
        self.store = store or get_storage()

    def _to_memories(self, hits: List[Dict[str, Any]]) -> List[Memory]:
        return [Memory.from_document(hit['document']) for hit in hits]

    def create(self, user_id: str, data: Dict[str, Any]) -> Memory:
        """Create a memory owned by user_id.

        Raises:
            ValidationError: If user_id or the payload is invalid
            ConflictError: If the generated memory id collides
        """
        _require_id(user_id, USER_PREFIX, 'user')
        fields = validate_memory_fields(data)

        now = utc_now()
        memory = Memory(id=generate_memory_id(),
                        user_id=user_id,
                        title=fields['title'],
                        description=fields['description'],
                        date=fields['date'],
                        type=fields['type'],
                        is_private=fields['is_private'],
                        created_at=now,
                        updated_at=now,
                        image=fields['image'],
                        tags=fields['tags'])

        try:
            self.store.create_document(memory.to_document(), doc_id=memory.id, index_type=MEMORY_INDEX)
        except DocumentConflictError:
            logger.warning(f'Generated memory ID collided: {memory.id}')
            raise ConflictError('Memory identifier collision, please retry')

        logger.info(f'Created memory {memory.id} for user {user_id}')
        return memory

    def get_by_id(self, memory_id: str, requester_id: Optional[str] = None) -> Optional[Memory]:
        """Fetch a memory if the requester may read it.

        Returns:
            The memory, or None if it does not exist or is private to someone else
        """
        _require_id(memory_id, MEMORY_PREFIX, 'memory')
        if requester_id is not None:
            _require_id(requester_id, USER_PREFIX, 'user')

        hit = self.store.find_one(MEMORY_INDEX, {'id': memory_id})
        if hit is None:
            return None

        memory = Memory.from_document(hit['document'])
        if not access_policy.can_read(memory, requester_id):
            logger.debug(f'Read of private memory {memory_id} denied')
            return None
        return memory

    def list_by_owner(self, user_id: str, include_private: bool = True) -> List[Memory]:
        """List one owner's memories, newest first.

        Callers pass include_private=True only when user_id is the authenticated requester.
        """
        _require_id(user_id, USER_PREFIX, 'user')
        filters = access_policy.owner_listing_filters(user_id, include_private)
        return self._to_memories(self.store.find_documents(MEMORY_INDEX, filters=filters, size=MAX_RESULTS))

    def list_public(self, limit: int = 20, offset: int = 0) -> List[Memory]:
        """Page through public memories of all users, newest first."""
        limit = max(0, min(int(limit), MAX_PAGE_SIZE))
        offset = max(0, int(offset))
        hits = self.store.find_documents(MEMORY_INDEX,
                                         filters=access_policy.search_filters(),
                                         size=limit,
                                         offset=offset)
        return self._to_memories(hits)

    def search(self, query: str, requester_id: Optional[str] = None, include_private: bool = False) -> List[Memory]:
        """Case-insensitive substring search over title, description and tags, newest first.

        Without a requester, or with include_private=False, only public memories
        are candidates. With both, only the requester's own memories are.
        """
        if not query or not query.strip():
            return []

        filters = access_policy.search_filters(requester_id, include_private)
        hits = self.store.find_documents(MEMORY_INDEX, filters=filters, text_query=query.strip(), size=MAX_RESULTS)
        logger.debug(f'Search returned {len(hits)} memories')
        return self._to_memories(hits)

    def update(self, memory_id: str, requester_id: str, patch: Dict[str, Any]) -> Optional[Memory]:
        """Patch a memory owned by requester_id.

        Returns:
            The updated memory, or None if no memory with this id belongs to the requester
        """
        _require_id(memory_id, MEMORY_PREFIX, 'memory')
        _require_id(requester_id, USER_PREFIX, 'user')

        fields = validate_memory_fields(patch, partial=True)

        hit = self.store.find_one(MEMORY_INDEX, access_policy.write_filters(memory_id, requester_id))
        if hit is None:
            return None

        fields['updated_at'] = to_iso(utc_now())
        if not self.store.update_document(hit['id'], fields, index_type=MEMORY_INDEX):
            return None

        document = dict(hit['document'])
        document.update(fields)
        logger.info(f'Updated memory {memory_id}')
        return Memory.from_document(document)

    def delete(self, memory_id: str, requester_id: str) -> bool:
        """Delete a memory owned by requester_id. False when nothing matched."""
        _require_id(memory_id, MEMORY_PREFIX, 'memory')
        _require_id(requester_id, USER_PREFIX, 'user')

        hit = self.store.find_one(MEMORY_INDEX, access_policy.write_filters(memory_id, requester_id))
        if hit is None:
            return False

        deleted = self.store.delete_document(hit['id'], index_type=MEMORY_INDEX)
        if deleted:
            logger.info(f'Deleted memory {memory_id}')
        return deleted
