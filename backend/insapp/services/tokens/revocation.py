# insapp/services/tokens/revocation.py
from __future__ import annotations

from insapp.security.codec import TokenCodec
from insapp.services._shared.errors import TokenError, TokenErrorKind
from insapp.services._shared.ports import RevocationStore


class RevocationController:
    """Explicit logout / administrative revoke of a refresh session."""

    def __init__(self, *, codec: TokenCodec, store: RevocationStore) -> None:
        self.codec = codec
        self.store = store

    def revoke(self, refresh_token: str) -> str:
        """
        Remove the refresh token's identifier from the store.

        Expired tokens are accepted so stale sessions can still be cleaned
        up. Revoking an identifier that is already gone succeeds.

        :param refresh_token: Refresh JWT to revoke.
        :returns: The revoked identifier.
        :raises TokenError: ``MALFORMED`` if the token cannot be verified or
            is not a refresh token.
        """
        claims = self.codec.decode_ignoring_expiry(refresh_token)
        if claims.token_id is None:
            raise TokenError(TokenErrorKind.MALFORMED, "Not a refresh token")
        self.store.delete(claims.token_id)
        return claims.token_id
