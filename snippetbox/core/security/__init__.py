"""
Security layer for snippetbox.

- Server-side sessions with signed cookies
- CSRF tokens bound to the session
- Password hashing

Kept apart from the handlers: they only see the Session handle and the
password helpers.
"""

from .session_security import (
    Session,
    SessionManager,
    SessionStatus,
    new_token
)
from .csrf import (
    CSRF_FORM_FIELD,
    CSRF_SESSION_KEY,
    SAFE_METHODS,
    ensure_csrf_token,
    verify_csrf_token
)
from .passwords import (
    create_password_context,
    get_password_hash,
    verify_password
)

__all__ = [
    'Session',
    'SessionManager',
    'SessionStatus',
    'new_token',
    'CSRF_FORM_FIELD',
    'CSRF_SESSION_KEY',
    'SAFE_METHODS',
    'ensure_csrf_token',
    'verify_csrf_token',
    'create_password_context',
    'get_password_hash',
    'verify_password'
]
