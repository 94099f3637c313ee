from __future__ import annotations

import threading
from datetime import UTC, datetime
from typing import Protocol


class RevocationStore(Protocol):
    """
    Liveness registry for refresh-token identifiers.

    The store is the single source of truth: a refresh token is usable only
    while its ``jti`` is registered here. Every operation MUST be atomic on
    its own; ``delete`` MUST be idempotent.
    """

    def store(self, jti: str) -> None:
        """Register ``jti`` as live."""
        ...

    def is_valid(self, jti: str) -> bool:
        """Return ``True`` iff ``jti`` is currently registered."""
        ...

    def delete(self, jti: str) -> None:
        """Remove ``jti``; a no-op when it is already absent."""
        ...


class InMemoryRevocationStore(RevocationStore):
    """
    Process-local revocation store.

    .. note::
       State is lost on restart and not shared between workers; use it for
       tests and single-process development only.
    """

    def __init__(self) -> None:
        self._live: dict[str, datetime] = {}
        self._lock = threading.Lock()

    def store(self, jti: str) -> None:
        stored_at = datetime.now(UTC)
        with self._lock:
            self._live[jti] = stored_at

    def is_valid(self, jti: str) -> bool:
        with self._lock:
            return jti in self._live

    def delete(self, jti: str) -> None:
        with self._lock:
            self._live.pop(jti, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._live)
