"""
Domain error taxonomy shared by repositories, services and the tool surface.

Storage faults are not listed here: they surface as ``OpenSearchError`` from
the document store client and propagate to the caller.
"""


class JournalError(Exception):
    """Base class for expected, caller-facing failures."""
    kind = 'error'


class ValidationError(JournalError):
    """Malformed identifier, email, password or memory payload."""
    kind = 'validation'


class NotFoundOrForbiddenError(JournalError):
    """No record matched, or the requester does not own it. The two are not distinguished."""
    kind = 'not_found'


class ConflictError(JournalError):
    """A record with the same email or identifier already exists."""
    kind = 'conflict'


class AuthenticationError(JournalError):
    """Wrong credentials or a bad/expired session token."""
    kind = 'unauthorized'
