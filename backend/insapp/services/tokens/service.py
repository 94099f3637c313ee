# insapp/services/tokens/service.py
from __future__ import annotations

from dataclasses import dataclass, field

from insapp.security.codec import Claims, TokenCodec
from insapp.security.keys import KeyManager
from insapp.services._shared.base import Clock
from insapp.services._shared.errors import TokenError, TokenErrorKind
from insapp.services._shared.ports import RevocationStore
from insapp.services.tokens.dto import TokenLifetimes, TokenPairOut
from insapp.services.tokens.issuer import TokenIssuer
from insapp.services.tokens.refresh import RefreshProtocol
from insapp.services.tokens.revocation import RevocationController


@dataclass(slots=True)
class SessionTokens:
    """
    Session-token core wired around one key pair and one revocation store.

    Built once by the application factory and shared by every request;
    each component is stateless apart from the injected store.

    :param keys: Process-wide key pair.
    :param store: Refresh-token liveness registry.
    :param lifetimes: Access/refresh lifetimes.
    :param clock: Optional clock override, shared by all components.
    """

    keys: KeyManager
    store: RevocationStore
    lifetimes: TokenLifetimes = field(default_factory=TokenLifetimes)
    clock: Clock | None = None

    codec: TokenCodec = field(init=False)
    issuer: TokenIssuer = field(init=False)
    refresher: RefreshProtocol = field(init=False)
    revoker: RevocationController = field(init=False)

    def __post_init__(self) -> None:
        self.codec = TokenCodec(self.keys, clock=self.clock)
        deps = {"codec": self.codec, "store": self.store}
        self.issuer = TokenIssuer(**deps, lifetimes=self.lifetimes, clock=self.clock)
        self.refresher = RefreshProtocol(**deps, lifetimes=self.lifetimes, clock=self.clock)
        self.revoker = RevocationController(**deps)

    def issue_pair(self, username: str, role: str) -> TokenPairOut:
        return self.issuer.issue_pair(username, role)

    def check_and_refresh(self, access_token: str, refresh_token: str) -> TokenPairOut:
        return self.refresher.check_and_refresh(access_token, refresh_token)

    def revoke(self, refresh_token: str) -> str:
        return self.revoker.revoke(refresh_token)

    def whoami(self, access_token: str) -> Claims:
        """
        Return the claims of a currently valid access token.

        :raises TokenError: ``EXPIRED`` or ``MALFORMED``; refresh tokens are
            ``MALFORMED`` here.
        """
        claims = self.codec.decode(access_token).unwrap()
        if claims.is_refresh:
            raise TokenError(TokenErrorKind.MALFORMED, "Refresh token used as access token")
        return claims
