"""Application factory wiring the session-token core, API and CLI."""

from __future__ import annotations

from flask import Flask

from insapp.core.config import BaseConfig, get_config
from insapp.core.logger import configure_logging, init_app as init_logging
from insapp.services._shared.ports import RevocationStore


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    revocation_store: RevocationStore | None = None,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    :param config: Config object (or import path) overriding ``APP_ENV``.
    :param revocation_store: Optional pre-built store, mostly for tests.
    :raises SigningKeyError: When the configured key pair cannot be loaded.
    """
    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from insapp.core import extensions

    extensions.init_app(app, store=revocation_store)

    init_logging(app)

    from insapp.core import cors

    cors.init_app(app)

    from insapp.api import init_app as init_api

    init_api(app)

    from insapp.core import errors

    errors.init_app(app)

    from insapp import cli as app_cli

    app_cli.init_app(app)

    return app
