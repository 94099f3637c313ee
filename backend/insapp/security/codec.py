"""Encoding and decoding of signed session-token claims."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum, auto
from typing import Any

import jwt

from insapp.security.keys import KeyManager
from insapp.services._shared.base import Clock, utc_now
from insapp.services._shared.errors import TokenError, TokenErrorKind

# Claims every token must carry; ``jti`` is optional (refresh tokens only).
REQUIRED_CLAIMS = ("username", "role", "exp")


@dataclass(frozen=True, slots=True)
class Claims:
    """
    Signed payload carried by access and refresh tokens.

    :ivar username: Principal name, opaque to the token core.
    :ivar role: Authorization tag, opaque to the token core.
    :ivar expires_at: Absolute UTC expiration, truncated to whole seconds on the wire.
    :ivar token_id: Revocation key; set on refresh tokens only.
    """

    username: str
    role: str
    expires_at: datetime
    token_id: str | None = None

    @property
    def is_refresh(self) -> bool:
        return self.token_id is not None

    def with_expiry(self, expires_at: datetime) -> Claims:
        """Return a copy expiring at ``expires_at``, everything else unchanged."""
        return Claims(
            username=self.username,
            role=self.role,
            expires_at=expires_at,
            token_id=self.token_id,
        )

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "username": self.username,
            "role": self.role,
            "exp": int(self.expires_at.timestamp()),
        }
        if self.token_id is not None:
            payload["jti"] = self.token_id
        return payload

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Claims:
        """
        Build claims from a verified JWT payload.

        :raises TokenError: ``MALFORMED`` if a claim has the wrong type.
        """
        username = payload.get("username")
        role = payload.get("role")
        exp = payload.get("exp")
        jti = payload.get("jti")
        if not isinstance(username, str) or not isinstance(role, str):
            raise TokenError(TokenErrorKind.MALFORMED, "Token identity claims are invalid")
        if isinstance(exp, bool) or not isinstance(exp, int | float):
            raise TokenError(TokenErrorKind.MALFORMED, "Token expiration claim is invalid")
        if jti is not None and (not isinstance(jti, str) or not jti):
            raise TokenError(TokenErrorKind.MALFORMED, "Token identifier claim is invalid")
        return cls(
            username=username,
            role=role,
            expires_at=datetime.fromtimestamp(int(exp), tz=UTC),
            token_id=jti,
        )


class DecodeStatus(Enum):
    """Closed set of outcomes for :meth:`TokenCodec.decode`."""

    VALID = auto()
    EXPIRED = auto()
    MALFORMED = auto()


@dataclass(frozen=True, slots=True)
class DecodeResult:
    """
    Tagged decode outcome.

    ``claims`` is populated for ``VALID`` and ``EXPIRED`` (the signature was
    verified in both cases) and is ``None`` for ``MALFORMED``.
    """

    status: DecodeStatus
    claims: Claims | None = None

    @property
    def is_valid(self) -> bool:
        return self.status is DecodeStatus.VALID

    @property
    def is_expired(self) -> bool:
        return self.status is DecodeStatus.EXPIRED

    def unwrap(self) -> Claims:
        """
        Return the claims of a ``VALID`` result.

        :raises TokenError: With the matching kind for any other status.
        """
        if self.status is DecodeStatus.VALID and self.claims is not None:
            return self.claims
        if self.status is DecodeStatus.EXPIRED:
            raise TokenError(TokenErrorKind.EXPIRED)
        raise TokenError(TokenErrorKind.MALFORMED)


_MALFORMED = DecodeResult(DecodeStatus.MALFORMED)


class TokenCodec:
    """
    Sign claims into compact JWS strings and verify them back.

    :param keys: Key pair shared by the whole process.
    :param clock: Current UTC time used for the ``exp`` check; defaults to
        the wall clock.
    """

    def __init__(self, keys: KeyManager, *, clock: Clock | None = None) -> None:
        self.keys = keys
        self._clock = clock or utc_now

    def encode(self, claims: Claims) -> str:
        """Serialize and sign ``claims`` with RS256."""
        return jwt.encode(claims.to_payload(), self.keys.signing_key, algorithm=self.keys.algorithm)

    def decode(self, token: str) -> DecodeResult:
        """
        Verify ``token`` and classify it.

        The signature is always checked before the expiration, so an
        ``EXPIRED`` result is a genuine token that simply ran out of time.
        A token whose ``exp`` equals the current second is already expired.
        """
        try:
            claims = self.decode_ignoring_expiry(token)
        except TokenError:
            return _MALFORMED
        if claims.expires_at <= self._clock():
            return DecodeResult(DecodeStatus.EXPIRED, claims)
        return DecodeResult(DecodeStatus.VALID, claims)

    def decode_ignoring_expiry(self, token: str) -> Claims:
        """
        Verify signature and shape of ``token`` without checking ``exp``.

        :raises TokenError: ``MALFORMED`` if the token cannot be trusted.
        """
        try:
            payload = self._verify(token)
        except jwt.InvalidTokenError as exc:
            raise TokenError(TokenErrorKind.MALFORMED) from exc
        return Claims.from_payload(payload)

    def _verify(self, token: str) -> dict[str, Any]:
        if not isinstance(token, str) or not token:
            raise jwt.DecodeError("Empty token")
        return jwt.decode(
            token,
            self.keys.verification_key,
            algorithms=[self.keys.algorithm],
            options={"require": list(REQUIRED_CLAIMS), "verify_exp": False},
        )
