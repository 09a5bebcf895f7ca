"""
Account flows: sign-up, sign-in, session resolution, profile and credential changes.
"""

from typing import Any, Dict, Optional, Tuple

from ..models.core import SessionClaims, User
from ..utils.id_generator import USER_PREFIX, is_valid_id
from ..utils.logging_config import get_logger
from .errors import AuthenticationError, NotFoundOrForbiddenError, ValidationError
from .session_codec import SessionCodec
from .user_repository import UserRepository
from .validation import normalize_email, validate_full_name, validate_password

logger = get_logger(__name__)


class AuthService:
    """Combine the user repository and the session codec into account operations."""

    def __init__(self, users: Optional[UserRepository] = None, codec: Optional[SessionCodec] = None):
        self.users = users or UserRepository()
        self.codec = codec or SessionCodec()

    def sign_up(self, name: str, email: str, password: str) -> Tuple[User, str]:
        """Register and sign in.

        Returns:
            (user, token)

        Raises:
            ValidationError: On a bad name, email or password
            ConflictError: If the email is already registered
        """
        name = validate_full_name(name)
        email = normalize_email(email)
        validate_password(password)

        user = self.users.create(email, password, name)
        return user, self.codec.issue(user)

    def sign_in(self, email: str, password: str) -> Optional[Tuple[User, str]]:
        """Return (user, token) for correct credentials, None otherwise."""
        email = normalize_email(email)
        if not isinstance(password, str) or not password:
            raise ValidationError('Email and password are required')

        user = self.users.authenticate(email, password)
        if user is None:
            return None
        return user, self.codec.issue(user)

    def claims_for(self, token: Optional[str]) -> Optional[SessionClaims]:
        """Decode a bearer token; None unless it is well-formed, unexpired and names a user id."""
        claims = self.codec.decode(token) if token else None
        if claims is None or not is_valid_id(claims.id, USER_PREFIX):
            return None
        return claims

    def require_claims(self, token: Optional[str]) -> SessionClaims:
        claims = self.claims_for(token)
        if claims is None:
            raise AuthenticationError('Unauthorized')
        return claims

    def get_profile(self, user_id: str) -> Dict[str, Any]:
        user = self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundOrForbiddenError('User not found')
        return user.to_profile()

    def update_profile(self, user_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        if 'full_name' in (updates or {}):
            updates = dict(updates, full_name=validate_full_name(updates['full_name']))
        user = self.users.update_by_id(user_id, updates)
        if user is None:
            raise NotFoundOrForbiddenError('User not found')
        return user.to_profile()

    def change_password(self, user_id: str, current_password: str, new_password: str) -> bool:
        """Replace the password after checking the current one.

        Raises:
            ValidationError: If either password is missing or the new one is too weak
            NotFoundOrForbiddenError: If the user no longer exists
            AuthenticationError: If current_password is wrong
        """
        if not current_password or not new_password:
            raise ValidationError('Current password and new password are required')
        validate_password(new_password)

        user = self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundOrForbiddenError('User not found')

        if self.users.authenticate(user.email, current_password) is None:
            raise AuthenticationError('Current password is incorrect')

        return self.users.update_password(user_id, new_password)

    def delete_account(self, user_id: str, confirm: bool) -> bool:
        """Delete the account. Memories are kept and stay readable by their visibility."""
        if confirm is not True:
            raise ValidationError('Account deletion must be confirmed')

        if not self.users.delete_by_id(user_id):
            raise NotFoundOrForbiddenError('User not found')
        return True
