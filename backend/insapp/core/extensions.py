"""Process-wide collaborators built once per application and helpers to reach them."""

from __future__ import annotations

import logging

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from redis.exceptions import RedisError  # type: ignore[import-untyped]

from insapp.infra.redis.redis_revocation_store import RedisRevocationStore
from insapp.security.keys import KeyManager
from insapp.services._shared.errors import SigningKeyError
from insapp.services._shared.ports import InMemoryRevocationStore, RevocationStore
from insapp.services.tokens import SessionTokens, TokenLifetimes

log = logging.getLogger(__name__)

SESSION_TOKENS_KEY = "session_tokens"


def _load_keys(app: Flask) -> KeyManager:
    private_path = app.config.get("JWT_PRIVATE_KEY_PATH")
    public_path = app.config.get("JWT_PUBLIC_KEY_PATH")
    if not private_path or not public_path:
        raise SigningKeyError("JWT_PRIVATE_KEY_PATH and JWT_PUBLIC_KEY_PATH must both be set")
    return KeyManager.from_files(private_path, public_path)


def _build_store(app: Flask) -> RevocationStore:
    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        log.warning(
            "REDIS_URL not set; revocation state is process-local", extra={"store": "memory"}
        )
        return InMemoryRevocationStore()

    client = redis.Redis.from_url(redis_url)
    try:
        client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
    log.info("Revocation store ready", extra={"store": "redis"})
    return RedisRevocationStore(r=client, ttl_seconds=app.config.get("REVOCATION_TTL_SECONDS"))


def init_app(app: Flask, *, store: RevocationStore | None = None) -> None:
    """Load the signing keys and wire the session-token core.

    Parameters
    ----------
    app: flask.Flask
        Application whose config provides key paths, lifetimes and
        ``REDIS_URL``.
    store: RevocationStore, optional
        Pre-built store; skips the Redis/in-memory selection.

    Raises
    ------
    SigningKeyError
        When the key files are missing or invalid. Start-up must abort.
    """
    keys = _load_keys(app)
    app.extensions[SESSION_TOKENS_KEY] = SessionTokens(
        keys=keys,
        store=store if store is not None else _build_store(app),
        lifetimes=TokenLifetimes.from_config(app.config),
    )


def get_session_tokens() -> SessionTokens:
    """Return the :class:`SessionTokens` bound to the current application."""
    tokens = current_app.extensions.get(SESSION_TOKENS_KEY)
    if tokens is None:
        raise RuntimeError("Session tokens are not initialized. Call init_app() first.")
    return tokens
