"""
User repository: account persistence on the document store.
"""

from typing import Any, Dict, Optional

from ..models.core import PROFILE_FIELDS, User
from ..utils.id_generator import USER_PREFIX, generate_user_id, is_valid_id
from ..utils.logging_config import get_logger
from ..utils.opensearch_client import DocumentConflictError, OpenSearchError
from ..utils.storage import get_storage
from ..utils.timestamp_utils import to_iso, utc_now
from .credential_store import CredentialStore
from .errors import ConflictError, ValidationError
from .validation import normalize_email, validate_birth_date

logger = get_logger(__name__)

USER_INDEX = 'user'
EMAIL_INDEX = 'user_email'


def _require_user_id(user_id: str) -> None:
    if not is_valid_id(user_id, USER_PREFIX):
        logger.error(f'Invalid user ID format: {user_id!r}')
        raise ValidationError('Invalid user ID format')


class UserRepository:
    """Create, authenticate, read, update and delete users.

    Email uniqueness is enforced by the store: each address owns one document
    in the email index, written with create-only semantics.
    """

    def __init__(self, store=None, credentials: Optional[CredentialStore] = None):
        """
        Args:
            store: Document store, defaults to the shared store
            credentials: CredentialStore used for hashing and verification
        """
        self.store = store or get_storage()
        self.credentials = credentials or CredentialStore()

    def create(self, email: str, password: str, full_name: str) -> User:
        """Register a new user.

        Raises:
            ValidationError: If the email is malformed
            ConflictError: If the email is already registered or the generated id collides
        """
        email = normalize_email(email)

        if self.store.find_one(USER_INDEX, {'email': email}):
            logger.info('Registration rejected: email already registered')
            raise ConflictError('An account with this email already exists')

        user_id = generate_user_id()
        now = utc_now()
        user = User(id=user_id,
                    email=email,
                    password=self.credentials.hash(password),
                    full_name=full_name.strip(),
                    created_at=now,
                    updated_at=now)

        self._reserve_email(email, user_id)

        try:
            created = self.store.create_document(user.to_document(), doc_id=user_id, index_type=USER_INDEX)
        except DocumentConflictError:
            self._release_email(email)
            logger.warning(f'Generated user ID collided: {user_id}')
            raise ConflictError('User identifier collision, please retry')
        except OpenSearchError:
            self._release_email(email)
            raise

        if not created:
            self._release_email(email)
            raise OpenSearchError(f'User document {user_id} was not created')

        logger.info(f'Created user {user_id}')
        return user

    def _reserve_email(self, email: str, user_id: str) -> None:
        """Claim email for user_id in the email index.

        Raises:
            ConflictError: If another account holds the address
        """
        reservation = {'email': email, 'user_id': user_id, 'created_at': to_iso(utc_now())}
        try:
            reserved = self.store.create_document(reservation, doc_id=email, index_type=EMAIL_INDEX)
        except DocumentConflictError:
            logger.info('Email reservation rejected: address already reserved')
            raise ConflictError('An account with this email already exists')
        if not reserved:
            raise OpenSearchError('Email reservation was not created')

    def _release_email(self, email: str) -> None:
        self.store.delete_document(email, index_type=EMAIL_INDEX)
        logger.debug('Released email reservation')

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user only if the password matches."""
        if not isinstance(email, str) or not email.strip():
            return None

        user = self.get_by_email(email)
        if user is None:
            return None

        if not self.credentials.verify(password, user.password):
            logger.info(f'Failed sign-in for user {user.id}')
            return None

        return user

    def get_by_email(self, email: str) -> Optional[User]:
        hit = self.store.find_one(USER_INDEX, {'email': email.strip().lower()})
        return User.from_document(hit['document']) if hit else None

    def _find(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self.store.find_one(USER_INDEX, {'id': user_id})

    def get_by_id(self, user_id: str) -> Optional[User]:
        _require_user_id(user_id)
        hit = self._find(user_id)
        return User.from_document(hit['document']) if hit else None

    def update_by_id(self, user_id: str, updates: Dict[str, Any]) -> Optional[User]:
        """Apply profile updates and, optionally, an email change.

        Identifier, password and timestamp fields are never written here. A new
        email is reserved before the user document changes; the old address is
        released only after the update succeeds.

        Returns:
            The updated user, or None if no user has this id

        Raises:
            ValidationError: On a malformed id, email, name or birth date
            ConflictError: If the new email belongs to another account
        """
        _require_user_id(user_id)

        updates = dict(updates or {})
        new_email = normalize_email(updates.pop('email')) if 'email' in updates else None

        safe_updates = {name: value for name, value in updates.items() if name in PROFILE_FIELDS}
        dropped = sorted(set(updates) - set(safe_updates))
        if dropped:
            logger.warning(f'Ignoring non-profile fields in update for {user_id}: {dropped}')

        if 'full_name' in safe_updates:
            if not isinstance(safe_updates['full_name'], str) or not safe_updates['full_name'].strip():
                raise ValidationError('Name is required')
            safe_updates['full_name'] = safe_updates['full_name'].strip()
        if 'birth_date' in safe_updates:
            safe_updates['birth_date'] = validate_birth_date(safe_updates['birth_date'])

        hit = self._find(user_id)
        if hit is None:
            return None

        old_email = hit['document'].get('email')
        changing_email = new_email is not None and new_email != old_email
        if changing_email:
            if self.store.find_one(USER_INDEX, {'email': new_email}):
                raise ConflictError('An account with this email already exists')
            self._reserve_email(new_email, user_id)
            safe_updates['email'] = new_email

        safe_updates['updated_at'] = to_iso(utc_now())
        try:
            updated = self.store.update_document(hit['id'], safe_updates, index_type=USER_INDEX)
        except OpenSearchError:
            if changing_email:
                self._release_email(new_email)
            raise

        if not updated:
            if changing_email:
                self._release_email(new_email)
            return None

        if changing_email and old_email:
            self._release_email(old_email)
            logger.info(f'Email changed for user {user_id}')

        document = dict(hit['document'])
        document.update(safe_updates)
        return User.from_document(document)

    def update_password(self, user_id: str, new_password: str) -> bool:
        """Replace the stored hash with a hash of new_password."""
        _require_user_id(user_id)

        hit = self._find(user_id)
        if hit is None:
            return False

        fields = {'password': self.credentials.hash(new_password), 'updated_at': to_iso(utc_now())}
        updated = self.store.update_document(hit['id'], fields, index_type=USER_INDEX)
        if updated:
            logger.info(f'Password updated for user {user_id}')
        return updated

    def delete_by_id(self, user_id: str) -> bool:
        """Delete a user and release their email. Their memories are left in place."""
        _require_user_id(user_id)

        hit = self._find(user_id)
        if hit is None:
            return False

        deleted = self.store.delete_document(hit['id'], index_type=USER_INDEX)
        if deleted:
            email = hit['document'].get('email')
            if email:
                self.store.delete_document(email, index_type=EMAIL_INDEX)
            logger.info(f'Deleted user {user_id}')
        return deleted
