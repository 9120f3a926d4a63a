"""
CSRF protection bound to the session.

One random token per session, stored under "csrf_token". Every rendered page
exposes it so forms can embed it; unsafe requests must send it back in the
csrf_token form field. Re-rendering a form after a failed submission keeps
the same token.
"""

import secrets

from snippetbox.core.security.session_security import Session

CSRF_SESSION_KEY = "csrf_token"
CSRF_FORM_FIELD = "csrf_token"
SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})


def ensure_csrf_token(session: Session) -> str:
    """Return the session's CSRF token, creating it on first use"""
    token = session.get_str(CSRF_SESSION_KEY)
    if not token:
        token = secrets.token_urlsafe(32)
        session.put(CSRF_SESSION_KEY, token)
    return token


def verify_csrf_token(session: Session, submitted: str) -> bool:
    expected = session.get_str(CSRF_SESSION_KEY)
    if not expected or not submitted:
        return False
    return secrets.compare_digest(expected.encode("utf-8"), submitted.encode("utf-8"))
