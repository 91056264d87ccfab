"""Server-side session storage keyed by an opaque cookie token.

A session holds a snapshot of the User taken at login. Only the SHA-256 of
the token is used as the storage key, so a dump of the store cannot be
replayed as cookies.
"""

import hashlib
import secrets
import time
from abc import ABC, abstractmethod
from typing import Optional

import redis.asyncio as redis
import structlog

from messenger.config import Settings
from messenger.models.user import User

logger = structlog.get_logger(__name__)


def hash_token(token: str) -> str:
    """Return the hex SHA-256 of a session token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def new_token() -> str:
    """Generate a fresh URL-safe session token."""
    return secrets.token_urlsafe(32)


class SessionStore(ABC):
    """Lifecycle and keyed lookup for login sessions."""

    def __init__(self, ttl: int):
        self.ttl = ttl

    @abstractmethod
    async def create(self, user: User) -> str:
        """Store a snapshot of ``user`` and return the new session token."""

    @abstractmethod
    async def get(self, token: str) -> Optional[User]:
        """Return the user snapshot for ``token``, or None if absent or expired."""

    @abstractmethod
    async def destroy(self, token: str) -> None:
        """Remove the session; unknown tokens are ignored."""

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        pass


class InMemorySessionStore(SessionStore):
    """Process-local sessions for a single server instance."""

    def __init__(self, ttl: int):
        super().__init__(ttl)
        self._sessions: dict[str, tuple[float, str]] = {}

    def purge_expired(self) -> int:
        """Drop every expired session and return how many were removed."""
        now = time.monotonic()
        expired = [key for key, (expires_at, _) in self._sessions.items() if expires_at <= now]
        for key in expired:
            del self._sessions[key]
        return len(expired)

    async def create(self, user: User) -> str:
        # get() only evicts the token it is given
        self.purge_expired()

        token = new_token()
        expires_at = time.monotonic() + self.ttl
        self._sessions[hash_token(token)] = (expires_at, user.model_dump_json())
        logger.debug("session_created", username=user.username, backend="memory")
        return token

    async def get(self, token: str) -> Optional[User]:
        key = hash_token(token)
        entry = self._sessions.get(key)
        if entry is None:
            return None

        expires_at, payload = entry
        if expires_at <= time.monotonic():
            self._sessions.pop(key, None)
            return None

        return User.model_validate_json(payload)

    async def destroy(self, token: str) -> None:
        self._sessions.pop(hash_token(token), None)

    async def close(self) -> None:
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)


class RedisSessionStore(SessionStore):
    """Sessions shared between server instances through Redis.

    Expiry is delegated to Redis key TTLs.
    """

    key_prefix = "session:"

    def __init__(self, client: redis.Redis, ttl: int):
        super().__init__(ttl)
        self.client = client

    @classmethod
    def from_url(cls, url: str, ttl: int) -> "RedisSessionStore":
        client = redis.from_url(url, encoding="utf-8", decode_responses=True)
        return cls(client, ttl)

    def _key(self, token: str) -> str:
        return f"{self.key_prefix}{hash_token(token)}"

    async def create(self, user: User) -> str:
        token = new_token()
        await self.client.setex(self._key(token), self.ttl, user.model_dump_json())
        logger.debug("session_created", username=user.username, backend="redis")
        return token

    async def get(self, token: str) -> Optional[User]:
        try:
            data = await self.client.get(self._key(token))
        except redis.RedisError as e:
            logger.warning("redis_get_session_failed", error=str(e))
            return None

        if data is None:
            return None
        return User.model_validate_json(data)

    async def destroy(self, token: str) -> None:
        try:
            await self.client.delete(self._key(token))
        except redis.RedisError as e:
            logger.warning("redis_delete_session_failed", error=str(e))

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except redis.RedisError as e:
            logger.warning("redis_ping_failed", error=str(e))
            return False

    async def close(self) -> None:
        await self.client.aclose()
        logger.info("redis_connection_closed")


def create_session_store(settings: Settings) -> SessionStore:
    """Build the session store selected by ``settings.session_backend``."""
    if settings.session_backend == "redis":
        logger.info("session_store_created", backend="redis", url=settings.redis_url.split("@")[-1])
        return RedisSessionStore.from_url(settings.redis_url, settings.session_ttl)

    logger.info("session_store_created", backend="memory")
    return InMemorySessionStore(settings.session_ttl)
