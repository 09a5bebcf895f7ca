"""
Identifier status report and migration of legacy documents to prefixed ids.

Legacy documents were stored without an ``id`` field and are known only by the
store's own key. Migration gives each one a generated id and rewrites memory
owner references that still point at a legacy user key.
"""

from typing import Any, Dict, List

from ..utils.id_generator import USER_PREFIX, generate_memory_id, generate_user_id, is_valid_id
from ..utils.logging_config import get_logger
from ..utils.opensearch_client import DocumentConflictError
from ..utils.storage import get_storage, init_storage
from ..utils.timestamp_utils import to_iso, utc_now

logger = get_logger(__name__)

USER_INDEX = 'user'
EMAIL_INDEX = 'user_email'
MEMORY_INDEX = 'memory'
BATCH_SIZE = 500


def _index_status(store, index_type: str, label_field: str) -> Dict[str, Any]:
    total = store.count_documents(index_type)
    missing = store.count_documents(index_type, missing_field='id')
    with_ids = total - missing

    sample = None
    if with_ids:
        hits = store.find_documents(index_type, sort_field=None, size=BATCH_SIZE)
        sample = next((hit['document'] for hit in hits if hit['document'].get('id')), None)

    return {
        'total': total,
        'with_custom_ids': with_ids,
        'migration_complete': missing == 0,
        'sample_id': sample.get('id') if sample else None,
        f'sample_{label_field}': sample.get(label_field) if sample else None
    }


def id_status(store=None) -> Dict[str, Any]:
    """Report how many users and memories carry a prefixed id."""
    store = store or get_storage()

    users = _index_status(store, USER_INDEX, 'email')
    memories = _index_status(store, MEMORY_INDEX, 'title')

    return {
        'users': users,
        'memories': memories,
        'overall_status': {
            'migration_needed': not (users['migration_complete'] and memories['migration_complete']),
            'all_migrated': users['migration_complete'] and memories['migration_complete']
        }
    }


def migrate_users(store=None) -> Dict[str, Any]:
    """Assign a user id to every user document lacking one and reserve its email."""
    store = store or get_storage()
    errors: List[str] = []
    migrated = 0

    hits = store.find_documents(USER_INDEX, missing_field='id', sort_field=None, size=BATCH_SIZE)
    logger.info(f'Found {len(hits)} users to migrate')

    for hit in hits:
        email = hit['document'].get('email', '')
        try:
            user_id = generate_user_id()
            store.update_document(hit['id'], {'id': user_id, 'updated_at': to_iso(utc_now())}, index_type=USER_INDEX)

            if email:
                reservation = {'email': email, 'user_id': user_id, 'created_at': to_iso(utc_now())}
                try:
                    store.create_document(reservation, doc_id=email, index_type=EMAIL_INDEX)
                except DocumentConflictError:
                    logger.warning(f'Email of migrated user {user_id} is already reserved')

            migrated += 1
            logger.info(f'Migrated user {hit["id"]} to ID: {user_id}')
        except Exception as e:
            message = f'Failed to migrate user {hit["id"]}: {e}'
            errors.append(message)
            logger.error(message)

    return {'success': not errors, 'migrated_count': migrated, 'errors': errors}


def _resolve_owner(store, owner_ref: str) -> str:
    if not owner_ref or is_valid_id(owner_ref, USER_PREFIX):
        return owner_ref
    owner = store.get_document(owner_ref, index_type=USER_INDEX)
    if owner and owner['document'].get('id'):
        return owner['document']['id']
    return owner_ref


def migrate_memories(store=None) -> Dict[str, Any]:
    """Assign a memory id to every memory document lacking one.

    Owner references that are legacy user keys are replaced by the owner's
    prefixed id when that user has already been migrated.
    """
    store = store or get_storage()
    errors: List[str] = []
    migrated = 0

    hits = store.find_documents(MEMORY_INDEX, missing_field='id', sort_field=None, size=BATCH_SIZE)
    logger.info(f'Found {len(hits)} memories to migrate')

    for hit in hits:
        try:
            memory_id = generate_memory_id()
            user_id = _resolve_owner(store, hit['document'].get('user_id', ''))
            fields = {'id': memory_id, 'user_id': user_id, 'updated_at': to_iso(utc_now())}
            store.update_document(hit['id'], fields, index_type=MEMORY_INDEX)
            migrated += 1
            logger.info(f'Migrated memory {hit["id"]} to ID: {memory_id}')
        except Exception as e:
            message = f'Failed to migrate memory {hit["id"]}: {e}'
            errors.append(message)
            logger.error(message)

    return {'success': not errors, 'migrated_count': migrated, 'errors': errors}


def run_full_migration(store=None) -> Dict[str, Any]:
    """Migrate users first so memory owner references can be resolved."""
    store = store or get_storage()

    logger.info('Starting full migration to custom IDs...')
    user_result = migrate_users(store)
    memory_result = migrate_memories(store)

    logger.info(f'Users migrated: {user_result["migrated_count"]}, '
                f'memories migrated: {memory_result["migrated_count"]}')
    if user_result['errors'] or memory_result['errors']:
        logger.warning('Some errors occurred during migration. Check logs above.')
    else:
        logger.info('Migration completed successfully')

    return {'users': user_result, 'memories': memory_result}


if __name__ == '__main__':
    run_full_migration(init_storage())
