"""
OpenSearch client wrapper used as the journal's document store.
"""

import time
from typing import Any, Dict, List, Optional

import boto3
from opensearchpy import OpenSearch, RequestsHttpConnection
from opensearchpy.exceptions import ConflictError, NotFoundError, OpenSearchException
from requests_aws4auth import AWS4Auth

from .config import OpenSearchConfig
from .logging_config import get_logger

logger = get_logger(__name__)

INDEX_TYPES = ('user', 'user_email', 'memory')

INDEX_MAPPINGS = {
    'user': {
        'properties': {
            'id': {'type': 'keyword'},
            'email': {'type': 'keyword'},
            'password': {'type': 'keyword', 'index': False},
            'full_name': {'type': 'text'},
            'bio': {'type': 'text'},
            'location': {'type': 'text'},
            'birth_date': {'type': 'keyword'},
            'interests': {'type': 'text'},
            'profile_image': {'type': 'keyword', 'index': False, 'doc_values': False},
            'banner_image': {'type': 'keyword', 'index': False, 'doc_values': False},
            'created_at': {'type': 'date'},
            'updated_at': {'type': 'date'}
        }
    },
    # One document per registered email, keyed by the lowercase address
    'user_email': {
        'properties': {
            'email': {'type': 'keyword'},
            'user_id': {'type': 'keyword'},
            'created_at': {'type': 'date'}
        }
    },
    'memory': {
        'properties': {
            'id': {'type': 'keyword'},
            'user_id': {'type': 'keyword'},
            'title': {'type': 'text', 'fields': {'raw': {'type': 'keyword', 'ignore_above': 256}}},
            'description': {'type': 'text', 'fields': {'raw': {'type': 'keyword', 'ignore_above': 2048}}},
            'date': {'type': 'keyword'},
            'type': {'type': 'keyword'},
            'image': {'type': 'keyword', 'index': False, 'doc_values': False},
            'tags': {'type': 'keyword'},
            'is_private': {'type': 'boolean'},
            'created_at': {'type': 'date'},
            'updated_at': {'type': 'date'}
        }
    }
}

# Fields matched by free-text search, per index type
SEARCHABLE_FIELDS = {'memory': ('title.raw', 'description.raw', 'tags')}


class OpenSearchError(Exception):
    """Custom exception for OpenSearch errors."""
    pass


class DocumentConflictError(OpenSearchError):
    """Raised when a create-only write hits an existing document id."""
    pass


def _escape_wildcard(text: str) -> str:
    return text.replace('\\', '\\\\').replace('*', '\\*').replace('?', '\\?')


class OpenSearchClient:
    """OpenSearch document store with optional AWS authentication and error handling."""

    def __init__(self, config: OpenSearchConfig, client: Optional[OpenSearch] = None):
        """
        Initialize OpenSearch client.

        Args:
            config: OpenSearchConfig instance with connection parameters
            client: Pre-built low-level client, mainly for tests
        """
        self.config = config

        if client is not None:
            self.client = client
            return

        if config.use_aws_auth:
            credentials = boto3.Session().get_credentials()
            auth = AWS4Auth(region=config.region, service='es', refreshable_credentials=credentials)
        elif config.username:
            auth = (config.username, config.password or '')
        else:
            auth = None

        endpoint = config.endpoint
        if '://' in endpoint:
            # Remove protocol if present
            endpoint = endpoint.split('://', 1)[1]

        self.client = OpenSearch(hosts=[{
            'host': endpoint,
            'port': config.port
        }],
                                 http_auth=auth,
                                 use_ssl=config.use_ssl,
                                 verify_certs=config.verify_certs,
                                 connection_class=RequestsHttpConnection)

        logger.info(f'Initialized OpenSearch client for endpoint: {config.endpoint}')

    def index_name(self, index_type: str) -> str:
        if index_type not in INDEX_TYPES:
            raise ValueError(f'Unknown index type: {index_type}')
        return f'{self.config.index_prefix}_{index_type}'

    def _refresh(self):
        return 'true' if self.config.refresh_on_write else 'false'

    def create_index_if_not_exists(self, index_type: str) -> str:
        """
        Create index if it doesn't exist.

        Args:
            index_type: Type of index (user, user_email or memory)

        Returns:
            'exists', 'created' or 'failed'
        """
        index_name = self.index_name(index_type)

        try:
            if self.client.indices.exists(index=index_name):
                logger.debug(f'Index {index_name} already exists')
                return 'exists'

            response = self.client.indices.create(index=index_name, body={'mappings': INDEX_MAPPINGS[index_type]})
            logger.info(f'Created index {index_name}')
            if response.get('acknowledged', False):
                if self.config.index_sync_delay > 0:
                    logger.info(f'Waiting {self.config.index_sync_delay}s for index {index_name} sync-up...')
                    time.sleep(self.config.index_sync_delay)
                return 'created'
            else:
                return 'failed'
        except OpenSearchException as e:
            logger.error(f'Error creating index {index_name}: {e}')
            raise OpenSearchError(f'Failed to create index: {e}')
        except Exception as e:
            logger.error(f'Unexpected error creating index {index_name}: {e}')
            raise OpenSearchError(f'Unexpected error creating index: {e}')

    def create_indices(self) -> Dict[str, str]:
        return {index_type: self.create_index_if_not_exists(index_type) for index_type in INDEX_TYPES}

    def create_document(self, document: Dict[str, Any], doc_id: str, index_type: str) -> bool:
        """
        Index a document under an explicit id, failing if the id is taken.

        Args:
            document: Document body
            doc_id: Document id
            index_type: Type of index

        Returns:
            True if the document was created

        Raises:
            DocumentConflictError: If a document with doc_id already exists
            OpenSearchError: On any other store failure
        """
        index_name = self.index_name(index_type)

        try:
            response = self.client.index(index=index_name,
                                         body=document,
                                         id=doc_id,
                                         op_type='create',
                                         refresh=self._refresh())

            success = response.get('result') == 'created'
            if success:
                logger.debug(f'Created document {doc_id} in {index_name}')
            else:
                logger.warning(f'Unexpected result creating document: {response}')

            return success

        except ConflictError as e:
            logger.info(f'Document {doc_id} already exists in {index_name}')
            raise DocumentConflictError(f'Document {doc_id} already exists: {e}')
        except OpenSearchException as e:
            logger.error(f'Error creating document {doc_id}: {e}')
            raise OpenSearchError(f'Failed to create document: {e}')
        except Exception as e:
            logger.error(f'Unexpected error creating document {doc_id}: {e}')
            raise OpenSearchError(f'Unexpected error creating document: {e}')

    def get_document(self, doc_id: str, index_type: str) -> Optional[Dict[str, Any]]:
        """
        Get a document by its store id.

        Returns:
            {'id': store id, 'document': source} if found, None otherwise
        """
        index_name = self.index_name(index_type)

        try:
            response = self.client.get(index=index_name, id=doc_id)
            if not response.get('found', False):
                return None
            return {'id': response['_id'], 'document': response['_source']}

        except NotFoundError:
            return None
        except OpenSearchException as e:
            logger.error(f'Error getting document {doc_id}: {e}')
            raise OpenSearchError(f'Failed to get document: {e}')
        except Exception as e:
            logger.error(f'Unexpected error getting document {doc_id}: {e}')
            raise OpenSearchError(f'Unexpected error getting document: {e}')

    def _build_query(self,
                     index_type: str,
                     filters: Optional[Dict[str, Any]] = None,
                     text_query: Optional[str] = None,
                     missing_field: Optional[str] = None) -> Dict[str, Any]:
        clauses: Dict[str, Any] = {}

        if filters:
            clauses['filter'] = [{'term': {name: value}} for name, value in filters.items()]

        if missing_field:
            clauses['must_not'] = [{'exists': {'field': missing_field}}]

        if text_query:
            pattern = f'*{_escape_wildcard(text_query)}*'
            clauses['should'] = [{
                'wildcard': {
                    name: {
                        'value': pattern,
                        'case_insensitive': True
                    }
                }
            } for name in SEARCHABLE_FIELDS.get(index_type, ())]
            clauses['minimum_should_match'] = 1

        if not clauses:
            return {'match_all': {}}
        return {'bool': clauses}

    def find_documents(self,
                       index_type: str,
                       filters: Optional[Dict[str, Any]] = None,
                       text_query: Optional[str] = None,
                       missing_field: Optional[str] = None,
                       sort_field: Optional[str] = 'created_at',
                       size: int = 100,
                       offset: int = 0) -> List[Dict[str, Any]]:
        """
        Find documents by exact-value filters and optional free text.

        Args:
            index_type: Type of index
            filters: Field -> value pairs that must all match exactly
            text_query: Case-insensitive substring matched against the index's searchable fields
            missing_field: Only return documents lacking this field
            sort_field: Field sorted newest first, None for store order
            size: Maximum number of results
            offset: Number of results to skip

        Returns:
            List of {'id': store id, 'document': source}
        """
        index_name = self.index_name(index_type)

        search_body = {
            'from': offset,
            'size': size,
            'query': self._build_query(index_type, filters, text_query, missing_field)
        }
        if sort_field:
            search_body['sort'] = [{sort_field: {'order': 'desc', 'unmapped_type': 'date'}}]

        try:
            response = self.client.search(index=index_name, body=search_body)

            results = [{'id': hit['_id'], 'document': hit['_source']} for hit in response['hits']['hits']]

            logger.debug(f'Search on {index_name} returned {len(results)} results')
            return results

        except OpenSearchException as e:
            logger.error(f'Error searching {index_name}: {e}')
            raise OpenSearchError(f'Search failed: {e}')
        except Exception as e:
            logger.error(f'Unexpected error searching {index_name}: {e}')
            raise OpenSearchError(f'Unexpected error in search: {e}')

    def find_one(self, index_type: str, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        results = self.find_documents(index_type, filters=filters, sort_field=None, size=1)
        return results[0] if results else None

    def count_documents(self,
                        index_type: str,
                        filters: Optional[Dict[str, Any]] = None,
                        missing_field: Optional[str] = None) -> int:
        """Count documents matching filters (and lacking missing_field, if given)."""
        index_name = self.index_name(index_type)

        try:
            response = self.client.count(index=index_name,
                                         body={'query': self._build_query(index_type, filters, None, missing_field)})
            return int(response.get('count', 0))

        except OpenSearchException as e:
            logger.error(f'Error counting documents in {index_name}: {e}')
            raise OpenSearchError(f'Count failed: {e}')
        except Exception as e:
            logger.error(f'Unexpected error counting documents in {index_name}: {e}')
            raise OpenSearchError(f'Unexpected error in count: {e}')

    def update_document(self, doc_id: str, fields: Dict[str, Any], index_type: str) -> bool:
        """
        Partially update a document.

        Args:
            doc_id: Store id of the document
            fields: Fields to set
            index_type: Type of index

        Returns:
            True if the document exists and was updated, False if it does not exist
        """
        index_name = self.index_name(index_type)

        try:
            response = self.client.update(index=index_name, id=doc_id, body={'doc': fields}, refresh=self._refresh())

            success = response.get('result') in ['updated', 'noop']
            if success:
                logger.debug(f'Updated document {doc_id} in {index_name}')
            else:
                logger.warning(f'Unexpected result updating document: {response}')

            return success

        except NotFoundError:
            logger.warning(f'Document {doc_id} not found for update')
            return False
        except OpenSearchException as e:
            logger.error(f'Error updating document {doc_id}: {e}')
            raise OpenSearchError(f'Failed to update document: {e}')
        except Exception as e:
            logger.error(f'Unexpected error updating document {doc_id}: {e}')
            raise OpenSearchError(f'Unexpected error updating document: {e}')

    def delete_document(self, doc_id: str, index_type: str) -> bool:
        """
        Delete a document from the index.

        Args:
            doc_id: Store id of the document
            index_type: Type of index

        Returns:
            True if deletion was successful, False otherwise
        """
        index_name = self.index_name(index_type)

        try:
            response = self.client.delete(index=index_name, id=doc_id, refresh=self._refresh())

            success = response.get('result') == 'deleted'
            if success:
                logger.debug(f'Deleted document {doc_id} from {index_name}')
            else:
                logger.warning(f'Document {doc_id} not found for deletion')

            return success

        except NotFoundError:
            logger.warning(f'Document {doc_id} not found for deletion')
            return False
        except OpenSearchException as e:
            logger.error(f'Error deleting document {doc_id}: {e}')
            raise OpenSearchError(f'Failed to delete document: {e}')
        except Exception as e:
            logger.error(f'Unexpected error deleting document {doc_id}: {e}')
            raise OpenSearchError(f'Unexpected error deleting document: {e}')

    def cleanup(self) -> bool:
        """
        Delete all journal indices.

        Returns:
            True if cleanup was successful
        """
        try:
            for index_type in INDEX_TYPES:
                index_name = self.index_name(index_type)
                if self.client.indices.exists(index=index_name):
                    self.client.indices.delete(index=index_name)
                    logger.info(f'Deleted index: {index_name}')
                else:
                    logger.info(f'Index {index_name} does not exist')

            return True

        except OpenSearchException as e:
            logger.error(f'Error during OpenSearch cleanup: {e}')
            raise OpenSearchError(f'Failed to cleanup OpenSearch: {e}')
        except Exception as e:
            logger.error(f'Unexpected error during OpenSearch cleanup: {e}')
            raise OpenSearchError(f'Unexpected error during OpenSearch cleanup: {e}')

    def health_check(self) -> bool:
        """
        Perform a health check on the OpenSearch service.

        Returns:
            True if service is reachable, False otherwise
        """
        try:
            return bool(self.client.ping())

        except Exception as e:
            logger.error(f'OpenSearch health check failed: {e}')
            return False

    def close(self) -> None:
        try:
            self.client.close()
        except Exception as e:
            logger.warning(f'Error closing OpenSearch client: {e}')
