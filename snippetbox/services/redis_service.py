# snippetbox/services/redis_service.py
"""
Redis session backend.

Each session is one key, session:<token>, holding the JSON session record
with a TTL equal to the time left until the session deadline. Redis errors
are raised as RedisServiceError; a request whose session cannot be loaded
or saved fails with a 500.
"""
import redis.asyncio as redis
from redis.exceptions import RedisError
from pydantic import ValidationError
from typing import Optional, Dict, Any
from dataclasses import dataclass
import logging

from snippetbox.core.exceptions import RedisServiceError, ConfigurationError, ServiceError, SessionError
from snippetbox.models.session_state import SessionBackend, SessionRecord

logger = logging.getLogger(__name__)


@dataclass
class RedisConfig:
    """Connection settings for the Redis session store"""
    url: Optional[str] = None
    key_prefix: str = "session:"
    socket_timeout: float = 5.0
    max_connections: int = 10
    retry_on_timeout: bool = True
    health_check_interval: int = 30


class RedisStore(SessionBackend):
    """Session backend on top of redis.asyncio"""

    def __init__(self, config: RedisConfig):
        super().__init__()
        self.config = config
        self._client: Optional[redis.Redis] = None

    async def _connect(self) -> None:
        if not self.config.url:
            raise ConfigurationError("Redis URL is not set", component=self.name)

        client = redis.from_url(
            self.config.url,
            decode_responses=True,
            socket_timeout=self.config.socket_timeout,
            max_connections=self.config.max_connections,
            retry_on_timeout=self.config.retry_on_timeout,
            health_check_interval=self.config.health_check_interval
        )
        await client.ping()
        self._client = client

    async def _close(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            raise ServiceError(f"{self.name} is not connected", service_name="Redis")
        return self._client

    def _key(self, token: str) -> str:
        return f"{self.config.key_prefix}{token}"

    async def find(self, token: str) -> Optional[SessionRecord]:
        await self.initialize()
        key = self._key(token)
        try:
            raw = await self.client.get(key)
        except RedisError as e:
            raise RedisServiceError("Redis get failed", key=key, operation="get") from e

        if raw is None:
            return None
        try:
            return SessionRecord.model_validate_json(raw)
        except ValidationError as e:
            raise SessionError("Corrupt session record", {"key": key[:16]}) from e

    async def commit(self, token: str, record: SessionRecord) -> None:
        await self.initialize()
        key = self._key(token)
        ttl = record.remaining_seconds()
        try:
            if ttl <= 0:
                await self.client.delete(key)
            else:
                await self.client.set(key, record.model_dump_json(), ex=ttl)
        except RedisError as e:
            raise RedisServiceError("Redis set failed", key=key, operation="set") from e

    async def delete(self, token: str) -> None:
        await self.initialize()
        key = self._key(token)
        try:
            await self.client.delete(key)
        except RedisError as e:
            raise RedisServiceError("Redis delete failed", key=key, operation="delete") from e

    async def health_check(self) -> Dict[str, Any]:
        if self._client is None:
            return {"healthy": False, "status": "not_connected"}

        try:
            await self._client.ping()
            info = await self._client.info()
        except RedisError as e:
            logger.warning(f"Redis health check failed: {type(e).__name__}")
            return {"healthy": False, "status": "error", "details": {"error": type(e).__name__}}

        return {
            "healthy": True,
            "status": "connected",
            "details": {
                "redis_version": info.get("redis_version", "unknown"),
                "connected_clients": info.get("connected_clients", 0),
                "used_memory_human": info.get("used_memory_human", "unknown")
            }
        }
