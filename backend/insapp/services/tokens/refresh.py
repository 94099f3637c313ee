# insapp/services/tokens/refresh.py
from __future__ import annotations

import logging

from insapp.security.codec import Claims, DecodeStatus, TokenCodec
from insapp.services._shared.base import BaseService, Clock
from insapp.services._shared.errors import TokenError, TokenErrorKind, Unauthorized
from insapp.services._shared.ports import RevocationStore
from insapp.services.tokens.dto import TokenLifetimes, TokenPairOut

log = logging.getLogger(__name__)


class RefreshProtocol(BaseService):
    """
    Decide, on every protected call, whether a session continues.

    Outcomes
    --------
    - Access token valid: returned unchanged, refresh token re-signed with a
      new expiration. The store is not consulted.
    - Access token expired, refresh token live: new access token for the same
      principal, refresh token re-signed with a new expiration.
    - Access token malformed, or a refresh token presented in the access
      slot: :class:`TokenError` (``MALFORMED``).
    - Refresh token unreadable, revoked or expired: :class:`Unauthorized`.
      An expired-but-live identifier is deleted from the store first.

    The refresh ``token_id`` never changes here; only its ``exp`` does.
    """

    def __init__(
        self,
        *,
        codec: TokenCodec,
        store: RevocationStore,
        lifetimes: TokenLifetimes | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(clock=clock)
        self.codec = codec
        self.store = store
        self.lifetimes = lifetimes or TokenLifetimes()

    def check_and_refresh(self, access_token: str, refresh_token: str) -> TokenPairOut:
        """
        Run the session state machine for one request.

        :param access_token: Access JWT presented by the client.
        :param refresh_token: Refresh JWT presented by the client.
        :returns: Pair to hand back to the client.
        :raises TokenError: If the access token is malformed, or the refresh
            token is malformed while the access token is still valid.
        :raises Unauthorized: If the session cannot be renewed.
        """
        access = self.codec.decode(access_token)
        if access.claims is None:
            raise TokenError(TokenErrorKind.MALFORMED, "Access token is malformed")
        # Refresh tokens are only honoured through the store
        if access.claims.is_refresh:
            raise TokenError(TokenErrorKind.MALFORMED, "Refresh token used as access token")

        if access.status is DecodeStatus.VALID:
            return TokenPairOut(
                access_token=access_token,
                refresh_token=self.extend_refresh_token(refresh_token),
            )

        return self._renew(access.claims, refresh_token)

    def extend_refresh_token(self, refresh_token: str) -> str:
        """
        Re-sign ``refresh_token`` expiring one refresh lifetime from now.

        Only the signature is checked; liveness is left to the store and is
        not consulted here.

        :raises TokenError: ``MALFORMED`` if the token cannot be verified or
            carries no identifier.
        """
        claims = self.codec.decode_ignoring_expiry(refresh_token)
        if not claims.is_refresh:
            raise TokenError(TokenErrorKind.MALFORMED, "Refresh token has no identifier")
        return self._reissue_refresh(claims)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _renew(self, access_claims: Claims, refresh_token: str) -> TokenPairOut:
        refresh = self.codec.decode(refresh_token)
        claims = refresh.claims
        if refresh.status is DecodeStatus.MALFORMED or claims is None or claims.token_id is None:
            raise Unauthorized("Refresh token is invalid. Please sign in.")

        # Absent from the store means revoked, whatever the embedded exp says
        if not self.store.is_valid(claims.token_id):
            raise Unauthorized("Refresh token has been revoked. Please sign in.")

        if refresh.status is DecodeStatus.EXPIRED:
            self.store.delete(claims.token_id)
            log.info("Expired refresh identifier removed", extra={"renewed": False})
            raise Unauthorized("Refresh token has expired. Please sign in.")

        log.info("Access token renewed", extra={"renewed": True})
        new_access = self.codec.encode(
            Claims(
                username=access_claims.username,
                role=access_claims.role,
                expires_at=self.now_utc() + self.lifetimes.access,
            )
        )
        return TokenPairOut(
            access_token=new_access,
            refresh_token=self._reissue_refresh(claims),
            renewed=True,
        )

    def _reissue_refresh(self, claims: Claims) -> str:
        return self.codec.encode(claims.with_expiry(self.now_utc() + self.lifetimes.refresh))
