"""
Server-side sessions.

A Session is the per-request handle the handlers read and write. The
SessionManager loads it from the signed cookie before the handler runs and
commits it afterwards: nothing is written when the handle is unmodified, a
renewed token replaces the old record, and a destroyed session expires the
cookie.

The cookie only carries the random token, signed with itsdangerous. A bad
signature, an expired signature and an unknown token all look the same: the
request gets a fresh, empty session.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from itsdangerous import BadSignature, TimestampSigner
from starlette.responses import Response

from snippetbox.models.session_state import SessionBackend, SessionRecord

logger = logging.getLogger(__name__)

COOKIE_SALT = "snippetbox.session"


def new_token() -> str:
    return secrets.token_urlsafe(32)


class SessionStatus(str, Enum):
    UNMODIFIED = "unmodified"
    MODIFIED = "modified"
    DESTROYED = "destroyed"


class Session:
    """Key/value state of one client, valid for the duration of a request"""

    def __init__(
        self,
        token: Optional[str] = None,
        values: Optional[Dict[str, Any]] = None,
        expires_at: Optional[datetime] = None
    ):
        self.token = token
        self.expires_at = expires_at
        self.status = SessionStatus.UNMODIFIED
        self._values: Dict[str, Any] = dict(values or {})
        self._stale_tokens: List[str] = []

    @property
    def stale_tokens(self) -> List[str]:
        return list(self._stale_tokens)

    def _touch(self) -> None:
        self.status = SessionStatus.MODIFIED

    def put(self, key: str, value: Any) -> None:
        self._values[key] = value
        self._touch()

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def get_int(self, key: str) -> Optional[int]:
        value = self._values.get(key)
        if isinstance(value, bool) or not isinstance(value, int):
            return None
        return value

    def get_str(self, key: str) -> str:
        value = self._values.get(key)
        return value if isinstance(value, str) else ""

    def pop(self, key: str, default: Any = None) -> Any:
        """Read a value once; it is gone afterwards"""
        if key not in self._values:
            return default
        value = self._values.pop(key)
        self._touch()
        return value

    def pop_str(self, key: str) -> str:
        value = self.pop(key)
        return value if isinstance(value, str) else ""

    def exists(self, key: str) -> bool:
        return key in self._values

    def remove(self, key: str) -> None:
        if key in self._values:
            del self._values[key]
            self._touch()

    def keys(self) -> List[str]:
        return sorted(self._values)

    def values(self) -> Dict[str, Any]:
        return dict(self._values)

    def renew_token(self) -> None:
        """Issue a new token for the same data. Call at privilege changes."""
        if self.token:
            self._stale_tokens.append(self.token)
        self.token = new_token()
        self._touch()

    def destroy(self) -> None:
        """Drop all data; a later put() starts a brand new session"""
        if self.token:
            self._stale_tokens.append(self.token)
        self.token = None
        self.expires_at = None
        self._values.clear()
        self.status = SessionStatus.DESTROYED


class SessionManager:
    """Loads and commits sessions for the session middleware"""

    def __init__(
        self,
        store: SessionBackend,
        secret: str,
        lifetime: timedelta = timedelta(hours=12),
        cookie_name: str = "session",
        cookie_secure: bool = True
    ):
        self.store = store
        self.lifetime = lifetime
        self.cookie_name = cookie_name
        self.cookie_secure = cookie_secure
        self._signer = TimestampSigner(secret, salt=COOKIE_SALT)

    def sign(self, token: str) -> str:
        return self._signer.sign(token).decode("ascii")

    def unsign(self, cookie_value: str) -> Optional[str]:
        try:
            token = self._signer.unsign(cookie_value, max_age=int(self.lifetime.total_seconds()))
        except BadSignature:
            logger.debug("Rejected session cookie with a bad or expired signature")
            return None
        return token.decode("ascii")

    async def load(self, cookie_value: Optional[str]) -> Session:
        if not cookie_value:
            return Session()

        token = self.unsign(cookie_value)
        if token is None:
            return Session()

        record = await self.store.find(token)
        if record is None:
            return Session()

        return Session(token, record.values, record.expires_at)

    async def commit(self, session: Session, response: Response) -> None:
        for stale in session.stale_tokens:
            await self.store.delete(stale)

        if session.status is SessionStatus.DESTROYED:
            response.delete_cookie(
                self.cookie_name,
                path="/",
                secure=self.cookie_secure,
                httponly=True,
                samesite="lax"
            )
            return

        if session.status is not SessionStatus.MODIFIED:
            return

        if session.token is None:
            session.token = new_token()
        if session.expires_at is None:
            session.expires_at = datetime.now(timezone.utc) + self.lifetime

        record = SessionRecord(values=session.values(), expires_at=session.expires_at)
        await self.store.commit(session.token, record)

        response.set_cookie(
            self.cookie_name,
            self.sign(session.token),
            max_age=record.remaining_seconds(),
            path="/",
            secure=self.cookie_secure,
            httponly=True,
            samesite="lax"
        )
