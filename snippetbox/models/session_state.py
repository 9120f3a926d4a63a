# snippetbox/models/session_state.py
"""
Session persistence: the record a backend stores per token, the backend
contract used by the session manager, and the in-memory backend.

Backends connect lazily. initialize() is idempotent and turns connection
failures into ServiceError; shutdown() closes whatever initialize() opened.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from snippetbox.core.exceptions import ConfigurationError, ServiceError

logger = logging.getLogger(__name__)


class SessionRecord(BaseModel):
    """
    What a session backend persists for one token: the session values and the
    absolute deadline after which the session is gone.
    """
    values: Dict[str, Any] = Field(default_factory=dict)
    expires_at: datetime

    def is_expired(self) -> bool:
        return datetime.now(timezone.utc) >= self.expires_at

    def remaining_seconds(self) -> int:
        return max(0, int((self.expires_at - datetime.now(timezone.utc)).total_seconds()))


class SessionBackend(ABC):
    """Storage contract consumed by the session manager"""

    def __init__(self):
        self._ready = False

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def is_ready(self) -> bool:
        return self._ready

    async def initialize(self) -> None:
        if self._ready:
            return

        try:
            await self._connect()
        except (ConfigurationError, ServiceError):
            raise
        except Exception as e:
            logger.error(f"{self.name} could not connect", exc_info=True)
            raise ServiceError(
                f"Could not connect {self.name}",
                service_name=self.name,
                operation="initialize",
                details={"error_type": type(e).__name__}
            ) from e

        self._ready = True
        logger.info(f"{self.name} ready")

    async def shutdown(self) -> None:
        """Close the backend. A failing close is logged, never raised."""
        if not self._ready:
            return

        self._ready = False
        try:
            await self._close()
        except Exception:
            logger.error(f"Error while closing {self.name}", exc_info=True)

    async def _connect(self) -> None:
        pass

    async def _close(self) -> None:
        pass

    async def health_check(self) -> Dict[str, Any]:
        return {"healthy": True, "status": "ok"}

    @abstractmethod
    async def find(self, token: str) -> Optional[SessionRecord]:
        """Return the live record for token, or None"""

    @abstractmethod
    async def commit(self, token: str, record: SessionRecord) -> None:
        """Insert or replace the record for token"""

    @abstractmethod
    async def delete(self, token: str) -> None:
        """Remove token; unknown tokens are ignored"""


CLEANUP_INTERVAL = timedelta(minutes=5)


class MemoryStore(SessionBackend):
    """
    In-memory session backend for tests and single-process development.
    Records are kept serialized so unsaved changes on a handle never leak in.
    Expired records are swept on access, at most once per cleanup interval.
    """

    def __init__(self, cleanup_interval: timedelta = CLEANUP_INTERVAL):
        super().__init__()
        self.sessions: Dict[str, str] = {}
        self._deadlines: Dict[str, datetime] = {}
        self._cleanup_interval = cleanup_interval
        self._last_cleanup = datetime.now(timezone.utc)

    async def find(self, token: str) -> Optional[SessionRecord]:
        self._cleanup_expired()
        raw = self.sessions.get(token)
        if raw is None:
            return None
        record = SessionRecord.model_validate_json(raw)
        if record.is_expired():
            await self.delete(token)
            return None
        return record

    async def commit(self, token: str, record: SessionRecord) -> None:
        self._cleanup_expired()
        self.sessions[token] = record.model_dump_json()
        self._deadlines[token] = record.expires_at

    async def delete(self, token: str) -> None:
        self.sessions.pop(token, None)
        self._deadlines.pop(token, None)

    def _cleanup_expired(self) -> None:
        now = datetime.now(timezone.utc)
        if now - self._last_cleanup < self._cleanup_interval:
            return

        expired = [token for token, deadline in self._deadlines.items() if deadline <= now]
        for token in expired:
            self.sessions.pop(token, None)
            del self._deadlines[token]

        self._last_cleanup = now
        if expired:
            logger.info(f"🧹 Cleaned up {len(expired)} expired sessions")

    async def health_check(self) -> Dict[str, Any]:
        return {"healthy": True, "status": "memory", "details": {"active_sessions": len(self.sessions)}}
