"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP. They are the stable contract between the token core and its
callers.

The translation to HTTP responses (RFC 7807) is handled by
``insapp/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from enum import Enum


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer translates them to ``APIError`` through ``BaseService``.
    """


class SigningKeyError(ServiceError):
    """
    Raised when the RSA signing/verification keys cannot be loaded.

    Fatal at start-up: no token can be issued or checked without them.

    :param path: File that failed to load, when the failure is file-specific.
    :type path: str | None
    """

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        base = super().__str__()
        return f"{base} ({self.path})" if self.path else base


class TokenErrorKind(Enum):
    """Why a token string was rejected."""

    MALFORMED = "malformed"
    EXPIRED = "expired"


class TokenError(ServiceError):
    """
    Raised when a token string cannot be used as presented.

    :param kind: ``MALFORMED`` for unparsable or badly signed strings,
        ``EXPIRED`` for well-formed tokens past their ``exp``.
    :type kind: TokenErrorKind
    """

    def __init__(self, kind: TokenErrorKind, message: str | None = None) -> None:
        super().__init__(message or f"Token is {kind.value}")
        self.kind = kind

    @property
    def is_expired(self) -> bool:
        return self.kind is TokenErrorKind.EXPIRED


class Unauthorized(ServiceError):
    """
    Raised when a session cannot continue: the refresh token is unreadable,
    revoked, or past its own expiration. The client must sign in again.
    """

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)
