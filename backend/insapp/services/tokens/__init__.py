"""Issuance, renewal and revocation of session tokens."""

from __future__ import annotations

from .dto import TokenLifetimes, TokenPairOut
from .issuer import TokenIssuer
from .refresh import RefreshProtocol
from .revocation import RevocationController
from .service import SessionTokens

__all__ = [
    "RefreshProtocol",
    "RevocationController",
    "SessionTokens",
    "TokenIssuer",
    "TokenLifetimes",
    "TokenPairOut",
]
