"""RSA key material used to sign and verify session tokens."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from insapp.services._shared.errors import SigningKeyError

log = logging.getLogger(__name__)

SIGNING_ALGORITHM = "RS256"


def _read_pem(path: str | Path) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise SigningKeyError(f"Cannot read key file: {exc.strerror}", path=str(path)) from exc


@dataclass(frozen=True, slots=True)
class KeyManager:
    """
    Immutable holder of the process-wide RSA key pair.

    Build it once at start-up (:meth:`from_files`) and inject it wherever
    tokens are encoded or decoded. Instances are safe to share between
    threads since nothing mutates them after construction.

    :ivar signing_key: Private key used to sign tokens.
    :ivar verification_key: Public key used to verify signatures.
    :ivar algorithm: JWS algorithm, always ``RS256``.
    """

    signing_key: rsa.RSAPrivateKey
    verification_key: rsa.RSAPublicKey
    algorithm: str = SIGNING_ALGORITHM

    def __post_init__(self) -> None:
        if self.signing_key.public_key().public_numbers() != self.verification_key.public_numbers():
            raise SigningKeyError("Public key does not match the private signing key")

    @classmethod
    def from_files(cls, private_key_path: str | Path, public_key_path: str | Path) -> KeyManager:
        """
        Load a PEM-encoded RSA key pair from disk.

        :param private_key_path: Unencrypted PEM private key (PKCS#1 or PKCS#8).
        :param public_key_path: PEM public key (SubjectPublicKeyInfo or PKCS#1).
        :returns: Ready-to-use key manager.
        :raises SigningKeyError: If a file is missing, is not PEM, is not an RSA
            key, or the two keys do not form a pair.
        """
        private_pem = _read_pem(private_key_path)
        try:
            private_key = serialization.load_pem_private_key(private_pem, password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise SigningKeyError(
                "Invalid PEM private key", path=str(private_key_path)
            ) from exc
        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise SigningKeyError("Private key is not an RSA key", path=str(private_key_path))

        public_pem = _read_pem(public_key_path)
        try:
            public_key = serialization.load_pem_public_key(public_pem)
        except (ValueError, UnsupportedAlgorithm) as exc:
            raise SigningKeyError("Invalid PEM public key", path=str(public_key_path)) from exc
        if not isinstance(public_key, rsa.RSAPublicKey):
            raise SigningKeyError("Public key is not an RSA key", path=str(public_key_path))

        keys = cls(signing_key=private_key, verification_key=public_key)
        log.info("Signing keys loaded", extra={"key_bits": private_key.key_size})
        return keys

    @classmethod
    def generate(cls, bits: int = 2048) -> KeyManager:
        """Create a fresh in-memory key pair."""
        private_key = rsa.generate_private_key(public_exponent=65537, key_size=bits)
        return cls(signing_key=private_key, verification_key=private_key.public_key())

    def to_pem(self) -> tuple[bytes, bytes]:
        """Serialize the pair as ``(private_pem, public_pem)``, private key unencrypted."""
        private_pem = self.signing_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        public_pem = self.verification_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        return private_pem, public_pem
