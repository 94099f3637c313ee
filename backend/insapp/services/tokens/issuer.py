# insapp/services/tokens/issuer.py
from __future__ import annotations

from uuid import uuid4

from insapp.security.codec import Claims, TokenCodec
from insapp.services._shared.base import BaseService, Clock
from insapp.services._shared.ports import RevocationStore
from insapp.services.tokens.dto import TokenLifetimes, TokenPairOut


class TokenIssuer(BaseService):
    """
    Mint the initial access/refresh pair at login.

    Credentials are checked by the caller; the issuer trusts the
    ``(username, role)`` it is given.
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

    @staticmethod
    def new_token_id() -> str:
        """Generate a new random refresh token identifier."""
        return uuid4().hex

    def issue_pair(self, username: str, role: str) -> TokenPairOut:
        """
        Issue a fresh token pair for a principal.

        The refresh identifier is registered in the store *before* the token
        exists, so there is no window where a client holds a refresh token
        the store does not know. Earlier sessions of the same user are left
        untouched.

        :param username: Authenticated principal.
        :param role: Role tag carried through both tokens.
        :returns: New pair, ``renewed`` is ``False``.
        """
        now = self.now_utc()
        token_id = self.new_token_id()
        self.store.store(token_id)

        access = self.codec.encode(
            Claims(username=username, role=role, expires_at=now + self.lifetimes.access)
        )
        refresh = self.codec.encode(
            Claims(
                username=username,
                role=role,
                expires_at=now + self.lifetimes.refresh,
                token_id=token_id,
            )
        )
        return TokenPairOut(access_token=access, refresh_token=refresh)
