from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import cast

import redis  # type: ignore[import-untyped]

from insapp.services._shared.ports import RevocationStore

log = logging.getLogger(__name__)


@dataclass(slots=True)
class RedisRevocationStore(RevocationStore):
    """
    Redis-backed revocation store.

    Each live refresh identifier is one string key holding its registration
    timestamp. ``SET``, ``EXISTS`` and ``DEL`` are atomic, so no extra
    locking is needed across workers.

    :param r: A Redis client (already connected).
    :param ttl_seconds: Optional expiry applied when an identifier is stored.
        ``None`` keeps it until explicit deletion. Refresh tokens are extended
        on use without touching the store, so a TTL shorter than the expected
        session length ends active sessions.
    """

    r: redis.Redis
    ttl_seconds: int | None = None

    @staticmethod
    def _k(jti: str) -> str:
        return f"rt:live:{jti}"

    def store(self, jti: str) -> None:
        stored_at = datetime.now(UTC)
        ex = max(1, self.ttl_seconds) if self.ttl_seconds else None
        self.r.set(self._k(jti), str(int(stored_at.timestamp())), ex=ex)
        log.debug("refresh jti stored", extra={"store": "redis"})

    def is_valid(self, jti: str) -> bool:
        return cast(int, self.r.exists(self._k(jti))) == 1

    def delete(self, jti: str) -> None:
        removed = cast(int, self.r.delete(self._k(jti)))
        log.debug("refresh jti deleted (removed=%s)", removed, extra={"store": "redis"})

    def ping(self) -> bool:
        """Return ``True`` when Redis answers."""
        try:
            return bool(self.r.ping())
        except redis.RedisError:
            log.warning("revocation store ping failed", exc_info=True, extra={"store": "redis"})
            return False
