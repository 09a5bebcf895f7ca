"""
Health check utilities for the journal.
"""

from typing import Any, Dict

from .config import config
from .logging_config import get_logger
from .storage import StorageNotInitializedError, get_storage

logger = get_logger(__name__)


def check_health() -> bool:
    """Check the health of all system components.

    Returns:
        True if all components are healthy, False otherwise
    """
    try:
        health_status = get_health_status()

        all_healthy = all(status.get('healthy', False) for status in health_status.values())

        if all_healthy:
            logger.info('All system components are healthy')
        else:
            logger.warning('Some system components are unhealthy')

        return all_healthy

    except Exception as e:
        logger.error(f'Health check failed: {e}')
        return False


def get_health_status() -> Dict[str, Any]:
    """Get detailed health status of all components.

    Returns:
        Dictionary with health status of each component
    """
    health_status = {}

    try:
        store = get_storage()
        health_status['opensearch'] = {
            'healthy': store.health_check(),
            'service': 'OpenSearch',
            'endpoint': config.opensearch.endpoint
        }
    except StorageNotInitializedError as e:
        health_status['opensearch'] = {'healthy': False, 'service': 'OpenSearch', 'error': str(e)}

    return health_status


def get_system_info() -> Dict[str, Any]:
    """Get system information and configuration.

    Returns:
        Dictionary with system information
    """
    return {
        'service_name': 'Memory Journal',
        'version': '1.0.0',
        'configuration': {
            'environment': config.environment,
            'index_prefix': config.opensearch.index_prefix,
            'session_token_mode': config.auth.token_mode,
            'session_ttl_ms': config.auth.session_ttl_ms
        },
        'health_status': get_health_status()
    }
