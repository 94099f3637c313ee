"""CLI commands for creating the RSA key pair that signs session tokens."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import click

from insapp.security.keys import KeyManager

LOGGER = logging.getLogger(__name__)


def _write_private(path: Path, pem: bytes) -> None:
    """Write the private key readable by the owner only."""
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as fh:
        fh.write(pem)


def _ensure_writable(paths: list[Path], force: bool) -> None:
    """Refuse to clobber existing key files unless ``--force`` is given."""
    existing = [str(p) for p in paths if p.exists()]
    if existing and not force:
        raise click.UsageError(
            f"Refusing to overwrite {', '.join(existing)}; pass --force to replace."
        )


@click.group("keys")
def keys_cli() -> None:
    """Manage the token signing key pair."""


@keys_cli.command("generate")
@click.option(
    "--private",
    "private_path",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Destination of the PEM private key.",
)
@click.option(
    "--public",
    "public_path",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Destination of the PEM public key.",
)
@click.option("--bits", default=2048, show_default=True, type=click.IntRange(min=2048))
@click.option("--force", is_flag=True, help="Overwrite existing key files.")
def generate(private_path: Path, public_path: Path, bits: int, force: bool) -> None:
    """Generate a new RSA key pair for RS256 token signing."""
    _ensure_writable([private_path, public_path], force)

    private_pem, public_pem = KeyManager.generate(bits).to_pem()
    for parent in {private_path.parent, public_path.parent}:
        parent.mkdir(parents=True, exist_ok=True)
    _write_private(private_path, private_pem)
    public_path.write_bytes(public_pem)

    # Round-trip through the loader so a bad write fails here, not at start-up.
    KeyManager.from_files(private_path, public_path)
    LOGGER.info("Generated signing key pair", extra={"key_bits": bits})
    click.echo(f"Private key: {private_path}")
    click.echo(f"Public key:  {public_path}")
