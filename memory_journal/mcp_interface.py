"""
MCP interface exposing the journal's account and memory operations.

Every tool that acts for a user takes the bearer token issued by sign_up or
sign_in. Expected failures come back as ``{'ok': False, 'error': kind}``;
storage failures propagate.
"""
import asyncio
from functools import wraps
from typing import Any, Dict, List, Optional, Union

from fastmcp import FastMCP

from .services.auth_service import AuthService
from .services.errors import AuthenticationError, JournalError, NotFoundOrForbiddenError
from .services.memory_repository import MemoryRepository
from .services.migration import id_status
from .services.session_codec import SessionCodec
from .services.user_repository import UserRepository
from .utils.config import config
from .utils.health_check import get_system_info
from .utils.logging_config import get_logger
from .utils.opensearch_client import OpenSearchError
from .utils.storage import close_storage, init_storage

logger = get_logger(__name__)

# Initialize FastMCP application
mcp = FastMCP('Memory Journal')


def _auth() -> AuthService:
    return AuthService(UserRepository(init_storage()), SessionCodec())


def _memories() -> MemoryRepository:
    return MemoryRepository(init_storage())


def _error(error: JournalError) -> Dict[str, Any]:
    return {'ok': False, 'error': error.kind, 'message': str(error)}


def journal_tool(fn):
    """Register fn as a tool, mapping domain errors to negative results."""

    @wraps(fn)
    async def wrapper(*args, **kwargs):
        try:
            return await fn(*args, **kwargs)
        except JournalError as e:
            logger.info(f'{fn.__name__} rejected: {e.kind}')
            return _error(e)
        except OpenSearchError as e:
            logger.error(f'Storage error in {fn.__name__}: {e}')
            raise

    mcp.tool()(wrapper)
    return wrapper


async def _claims(token: Optional[str]):
    # Work runs on a worker thread: bcrypt and store I/O must not block the event loop
    return await asyncio.to_thread(_auth().require_claims, token)


async def _optional_requester(token: Optional[str]) -> Optional[str]:
    if not token:
        return None
    claims = await asyncio.to_thread(_auth().claims_for, token)
    return claims.id if claims else None


def _session_payload(user, token: str) -> Dict[str, Any]:
    return {'ok': True, 'token': token, 'user': {'id': user.id, 'email': user.email, 'name': user.full_name}}


@journal_tool
async def sign_up(name: str, email: str, password: str) -> Dict[str, Any]:
    """Create an account and return a session token."""
    user, token = await asyncio.to_thread(_auth().sign_up, name, email, password)
    return _session_payload(user, token)


@journal_tool
async def sign_in(email: str, password: str) -> Dict[str, Any]:
    """Exchange credentials for a session token."""
    result = await asyncio.to_thread(_auth().sign_in, email, password)
    if result is None:
        raise AuthenticationError('Invalid email or password')
    return _session_payload(*result)


@journal_tool
async def get_profile(token: str) -> Dict[str, Any]:
    """Return the caller's profile (never includes the password hash)."""
    claims = await _claims(token)
    profile = await asyncio.to_thread(_auth().get_profile, claims.id)
    return {'ok': True, 'profile': profile}


@journal_tool
async def update_profile(token: str, updates: Dict[str, Any]) -> Dict[str, Any]:
    """Update profile fields (full_name, bio, location, birth_date, interests, profile_image, banner_image) or email."""
    claims = await _claims(token)
    profile = await asyncio.to_thread(_auth().update_profile, claims.id, updates)
    return {'ok': True, 'profile': profile}


@journal_tool
async def change_password(token: str, current_password: str, new_password: str) -> Dict[str, Any]:
    """Change the caller's password after verifying the current one."""
    claims = await _claims(token)
    changed = await asyncio.to_thread(_auth().change_password, claims.id, current_password, new_password)
    return {'ok': changed}


@journal_tool
async def delete_account(token: str, confirm_delete: bool = False) -> Dict[str, Any]:
    """Delete the caller's account. The caller's memories are not deleted."""
    claims = await _claims(token)
    await asyncio.to_thread(_auth().delete_account, claims.id, confirm_delete)
    return {'ok': True}


@journal_tool
async def create_memory(token: str,
                        title: str,
                        description: str,
                        date: str,
                        memory_type: str = 'memory',
                        tags: Optional[Union[List[str], str]] = None,
                        is_private: bool = False,
                        image: Optional[str] = None) -> Dict[str, Any]:
    """Create a memory owned by the caller."""
    claims = await _claims(token)
    data = {
        'title': title,
        'description': description,
        'date': date,
        'type': memory_type,
        'tags': tags,
        'is_private': is_private,
        'image': image
    }
    memory = await asyncio.to_thread(_memories().create, claims.id, data)
    return {'ok': True, 'memory': memory.to_document()}


@journal_tool
async def get_memory(memory_id: str, token: Optional[str] = None) -> Dict[str, Any]:
    """Fetch a memory. Private memories are visible to their owner only."""
    requester_id = await _optional_requester(token)
    memory = await asyncio.to_thread(_memories().get_by_id, memory_id, requester_id)
    if memory is None:
        raise NotFoundOrForbiddenError('Memory not found')
    return {'ok': True, 'memory': memory.to_document()}


@journal_tool
async def list_my_memories(token: str) -> Dict[str, Any]:
    """List all of the caller's memories, newest first."""
    claims = await _claims(token)
    memories = await asyncio.to_thread(_memories().list_by_owner, claims.id, True)
    return {'ok': True, 'memories': [memory.to_document() for memory in memories]}


@journal_tool
async def list_user_memories(user_id: str, token: Optional[str] = None) -> Dict[str, Any]:
    """List a user's memories; private ones only when the caller is that user."""
    requester_id = await _optional_requester(token)
    memories = await asyncio.to_thread(_memories().list_by_owner, user_id, requester_id == user_id)
    return {'ok': True, 'memories': [memory.to_document() for memory in memories]}


@journal_tool
async def list_public_memories(limit: int = 20, offset: int = 0) -> Dict[str, Any]:
    """Page through public memories of all users, newest first."""
    memories = await asyncio.to_thread(_memories().list_public, limit, offset)
    return {'ok': True, 'memories': [memory.to_document() for memory in memories]}


@journal_tool
async def search_memories(query: str, token: Optional[str] = None, include_private: bool = True) -> Dict[str, Any]:
    """Search titles, descriptions and tags.

    With a valid token and include_private, searches the caller's own memories;
    otherwise searches public memories of all users.
    """
    requester_id = await _optional_requester(token)
    memories = await asyncio.to_thread(_memories().search, query, requester_id, include_private)
    return {'ok': True, 'memories': [memory.to_document() for memory in memories]}


@journal_tool
async def update_memory(token: str, memory_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
    """Update one of the caller's memories."""
    claims = await _claims(token)
    memory = await asyncio.to_thread(_memories().update, memory_id, claims.id, updates)
    if memory is None:
        raise NotFoundOrForbiddenError('Memory not found')
    return {'ok': True, 'memory': memory.to_document()}


@journal_tool
async def delete_memory(token: str, memory_id: str) -> Dict[str, Any]:
    """Delete one of the caller's memories."""
    claims = await _claims(token)
    deleted = await asyncio.to_thread(_memories().delete, memory_id, claims.id)
    if not deleted:
        raise NotFoundOrForbiddenError('Memory not found')
    return {'ok': True}


@journal_tool
async def get_id_status() -> Dict[str, Any]:
    """Report how many users and memories carry prefixed identifiers."""
    status = await asyncio.to_thread(id_status, init_storage())
    return {'ok': True, **status}


@journal_tool
async def health() -> Dict[str, Any]:
    """Report document store health and service configuration."""
    info = await asyncio.to_thread(get_system_info)
    status = info.pop('health_status')
    return {
        'ok': all(component.get('healthy', False) for component in status.values()),
        'components': status,
        'system': info
    }


if __name__ == '__main__':
    init_storage()
    try:
        mcp.run(transport=config.mcp.transport, host=config.mcp.host, port=config.mcp.port)
    finally:
        close_storage()
