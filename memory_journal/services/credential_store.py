"""
Password hashing and verification with bcrypt.
"""

from typing import Optional

import bcrypt

from ..utils.config import config
from ..utils.logging_config import get_logger

logger = get_logger(__name__)


class CredentialStore:
    """Salted, adaptive-cost password hashing. Plaintext is never stored or logged."""

    def __init__(self, rounds: Optional[int] = None):
        """
        Args:
            rounds: bcrypt cost factor, defaults to config.auth.bcrypt_rounds
        """
        self.rounds = rounds or config.auth.bcrypt_rounds

    def hash(self, plaintext: str) -> str:
        """Hash a password with a fresh salt.

        Raises:
            ValueError: If the password is longer than bcrypt's 72-byte limit
        """
        digest = bcrypt.hashpw(plaintext.encode('utf-8'), bcrypt.gensalt(rounds=self.rounds))
        return digest.decode('utf-8')

    def verify(self, plaintext: str, digest: str) -> bool:
        """Check a password against a stored digest. Returns False instead of raising."""
        if not plaintext or not digest:
            return False
        try:
            return bcrypt.checkpw(plaintext.encode('utf-8'), digest.encode('utf-8'))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f'Rejected malformed password digest: {type(e).__name__}')
            return False
