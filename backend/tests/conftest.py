"""Pytest fixtures shared by the session-token test suite.

RSA generation is the slow part, so one key pair is built per session and
reused everywhere; PEM copies are written once for code paths that load keys
from disk.
"""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from flask import Flask
from freezegun import freeze_time

from insapp import create_app
from insapp.security.codec import TokenCodec
from insapp.security.keys import KeyManager
from insapp.services._shared.ports import InMemoryRevocationStore
from insapp.services.tokens import SessionTokens

FROZEN_START = "2024-01-01 12:00:00"


@pytest.fixture(scope="session")
def keys() -> KeyManager:
    """Process-wide RSA pair used to sign every test token."""
    return KeyManager.generate()


@pytest.fixture(scope="session")
def other_keys() -> KeyManager:
    """An unrelated RSA pair, for forged-signature cases."""
    return KeyManager.generate()


@pytest.fixture(scope="session")
def key_files(keys: KeyManager, tmp_path_factory: pytest.TempPathFactory) -> tuple[Path, Path]:
    """Write ``keys`` as PEM files and return ``(private_path, public_path)``."""
    directory = tmp_path_factory.mktemp("keys")
    private_pem, public_pem = keys.to_pem()
    private_path = directory / "private.pem"
    public_path = directory / "public.pem"
    private_path.write_bytes(private_pem)
    public_path.write_bytes(public_pem)
    return private_path, public_path


@pytest.fixture()
def frozen() -> Generator[Any, None, None]:
    """Freeze the clock at :data:`FROZEN_START`; ``frozen.tick(delta)`` moves it."""
    with freeze_time(FROZEN_START) as factory:
        yield factory


@pytest.fixture()
def codec(keys: KeyManager) -> TokenCodec:
    return TokenCodec(keys)


@pytest.fixture()
def store() -> InMemoryRevocationStore:
    return InMemoryRevocationStore()


@pytest.fixture()
def tokens(keys: KeyManager, store: InMemoryRevocationStore) -> SessionTokens:
    """Session-token core wired to in-memory doubles."""
    return SessionTokens(keys=keys, store=store)


class TestConfig:
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Key paths are filled in by the ``app`` fixture.
    - No Redis: the revocation store is injected directly.
    """

    TESTING = True
    DEBUG = False
    PROPAGATE_EXCEPTIONS = True
    LOG_LEVEL = "WARNING"
    API_BASE_PREFIX = "/api"
    REFRESH_TOKEN_HEADER = "X-Refresh-Token"
    CORS_ORIGINS = "*"


@pytest.fixture()
def app(key_files: tuple[Path, Path], store: InMemoryRevocationStore) -> Flask:
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application reading the session key files and sharing ``store``
        with the test.
    """
    private_path, public_path = key_files

    class _Config(TestConfig):
        JWT_PRIVATE_KEY_PATH = str(private_path)
        JWT_PUBLIC_KEY_PATH = str(public_path)

    application = create_app(_Config, revocation_store=store, instance_relative_config=False)
    application.logger.setLevel("WARNING")
    return application


@pytest.fixture()
def client(app: Flask) -> Any:
    """Return a Flask test client."""
    return app.test_client()


@pytest.fixture()
def app_tokens(app: Flask) -> SessionTokens:
    """The :class:`SessionTokens` instance the app serves requests with."""
    return app.extensions["session_tokens"]
