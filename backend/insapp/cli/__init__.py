"""Command-line interface registration for the Flask application."""

from __future__ import annotations

from flask import Flask

from .keys import keys_cli


def init_app(app: Flask) -> None:
    """Register application-specific CLI command groups.

    Parameters
    ----------
    app:
        Flask application instance whose CLI registry will receive the keys
        command group.

    Notes
    -----
    ``create_app`` needs an existing key pair, so the same group is also
    installed as the standalone ``insapp-keys`` script for first-time setup.
    """
    app.cli.add_command(keys_cli)
