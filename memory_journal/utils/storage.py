"""
Process-wide document store lifecycle.

The store client is created once per process by ``init_storage`` and shared by
every repository until ``close_storage`` runs at shutdown.
"""

import threading
from typing import Optional

from .config import OpenSearchConfig
from .logging_config import get_logger
from .opensearch_client import OpenSearchClient

logger = get_logger(__name__)

_lock = threading.Lock()
_store = None


class StorageNotInitializedError(RuntimeError):
    """Raised when the store is used before init_storage() or after close_storage()."""
    pass


def init_storage(config: Optional[OpenSearchConfig] = None, store=None, create_indices: bool = True):
    """
    Initialize the shared document store. Calling it again returns the existing store.

    Args:
        config: OpenSearchConfig, uses the global config if None
        store: Pre-built store (OpenSearchClient or a compatible fake)
        create_indices: Create missing indices on first initialization

    Returns:
        The shared store
    """
    global _store

    with _lock:
        if _store is not None:
            return _store

        if store is None:
            if config is None:
                from .config import config as default_config
                config = default_config.opensearch
            store = OpenSearchClient(config)

        if create_indices:
            store.create_indices()

        _store = store
        logger.info('Document store initialized')
        return _store


def get_storage():
    """Return the shared document store."""
    if _store is None:
        raise StorageNotInitializedError('Document store is not initialized; call init_storage() first')
    return _store


def close_storage() -> None:
    """Close and forget the shared document store. Safe to call more than once."""
    global _store

    with _lock:
        if _store is None:
            return
        store, _store = _store, None

    store.close()
    logger.info('Document store closed')
