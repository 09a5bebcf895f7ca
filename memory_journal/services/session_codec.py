"""
Stateless session tokens carrying identity claims.

Two encodings are supported, selected by ``SESSION_TOKEN_MODE``:

- ``unsigned``: standard base64 of the claims JSON. Anyone who can build a
  well-formed payload can mint a token that decodes as valid; there is no
  integrity protection in this mode.
- ``signed``: ``base64url(json) + "." + base64url(hmac_sha256(json))`` keyed by
  ``SESSION_TOKEN_SECRET``.

Decoding is a pure function of the token and the current time.
"""

import base64
import hashlib
import hmac
import json
from typing import Any, Dict, Optional

from ..models.core import SessionClaims, User
from ..utils.config import AuthConfig, config
from ..utils.id_generator import generate_session_id
from ..utils.logging_config import get_logger
from ..utils.timestamp_utils import current_millis, to_iso

logger = get_logger(__name__)

TOKEN_MODES = ('unsigned', 'signed')
# Issued tokens are a few hundred characters; anything far longer is rejected unparsed
MAX_TOKEN_LENGTH = 4096


def _b64url_encode(b: bytes) -> str:
    return base64.urlsafe_b64encode(b).decode('utf-8').rstrip('=')


def _b64url_decode(s: str) -> bytes:
    pad = '=' * ((4 - len(s) % 4) % 4)
    return base64.urlsafe_b64decode((s + pad).encode('utf-8'))


def _required_str(payload: Dict[str, Any], key: str) -> str:
    value = payload[key]
    if not isinstance(value, str):
        raise TypeError(f'claim {key} must be a string')
    return value


class SessionCodec:
    """Issue and decode time-bounded bearer tokens."""

    def __init__(self, auth_config: Optional[AuthConfig] = None):
        """
        Args:
            auth_config: AuthConfig, uses the global config if None

        Raises:
            ValueError: On an unknown mode, or signed mode without a secret
        """
        self.config = auth_config or config.auth
        self.mode = self.config.token_mode

        if self.mode not in TOKEN_MODES:
            raise ValueError(f'Unknown session token mode: {self.mode}')
        if self.mode == 'signed' and not self.config.token_secret:
            raise ValueError('SESSION_TOKEN_SECRET is required when SESSION_TOKEN_MODE=signed')

        self._secret = (self.config.token_secret or '').encode('utf-8')

    def issue(self, user: User, now_ms: Optional[int] = None) -> str:
        """Build claims for user and encode them into a token.

        Args:
            user: Authenticated user
            now_ms: Issuance time in epoch milliseconds, defaults to now

        Returns:
            Opaque token string
        """
        if now_ms is None:
            now_ms = current_millis()

        claims = SessionClaims(session_id=generate_session_id(),
                               id=user.id,
                               email=user.email,
                               name=user.full_name,
                               exp=now_ms + self.config.session_ttl_ms,
                               created_at=to_iso(user.created_at))

        data = json.dumps(claims.to_dict(), separators=(',', ':')).encode('utf-8')
        if self.mode == 'signed':
            sig = hmac.new(self._secret, data, hashlib.sha256).digest()
            token = f'{_b64url_encode(data)}.{_b64url_encode(sig)}'
        else:
            token = base64.b64encode(data).decode('utf-8')

        logger.debug(f'Issued session {claims.session_id} for user {user.id}')
        return token

    def decode(self, token: str, now_ms: Optional[int] = None) -> Optional[SessionClaims]:
        """Recover claims from a token.

        Args:
            token: Token produced by issue()
            now_ms: Current time in epoch milliseconds, defaults to now

        Returns:
            SessionClaims, or None if the token is malformed, tampered with or expired
        """
        if not token or not isinstance(token, str):
            return None
        if len(token) > MAX_TOKEN_LENGTH:
            logger.debug('Rejected oversized session token')
            return None

        try:
            payload = self._unpack(token.strip())
            claims = self._claims_from_payload(payload)
        except (ValueError, TypeError, KeyError, OverflowError, RecursionError) as e:
            logger.debug(f'Rejected session token: {type(e).__name__}')
            return None

        if now_ms is None:
            now_ms = current_millis()
        if claims.exp <= now_ms:
            logger.debug(f'Session {claims.session_id} expired')
            return None

        return claims

    def _unpack(self, token: str) -> Any:
        if self.mode == 'signed':
            data_b64, sig_b64 = token.split('.', 1)
            data = _b64url_decode(data_b64)
            sig = _b64url_decode(sig_b64)
            expected = hmac.new(self._secret, data, hashlib.sha256).digest()
            if not hmac.compare_digest(sig, expected):
                raise ValueError('bad signature')
        else:
            data = base64.b64decode(token.encode('utf-8'), validate=True)
        return json.loads(data.decode('utf-8'))

    @staticmethod
    def _claims_from_payload(payload: Any) -> SessionClaims:
        if not isinstance(payload, dict):
            raise TypeError('claims must be an object')

        exp = payload['exp']
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            raise TypeError('claim exp must be a number')

        created_at = payload.get('created_at')
        if created_at is not None and not isinstance(created_at, str):
            raise TypeError('claim created_at must be a string')

        return SessionClaims(session_id=_required_str(payload, 'session_id'),
                             id=_required_str(payload, 'id'),
                             email=_required_str(payload, 'email'),
                             name=_required_str(payload, 'name'),
                             exp=int(exp),
                             created_at=created_at)
