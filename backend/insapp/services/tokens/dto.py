# insapp/services/tokens/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Access and refresh tokens handed back to the client.

    :param access_token: Encoded access JWT.
    :type access_token: str
    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    :param renewed: ``True`` when ``access_token`` was freshly minted by the
        refresh protocol rather than returned unchanged.
    :type renewed: bool
    """

    access_token: str
    refresh_token: str
    renewed: bool = False


# ------------------------------ Config DTO --------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenLifetimes:
    """
    Token emission configuration.

    :param access: Access token lifetime.
    :type access: timedelta
    :param refresh: Refresh token lifetime, measured from the last renewal.
    :type refresh: timedelta
    """

    access: timedelta = timedelta(minutes=15)
    refresh: timedelta = timedelta(hours=72)

    @classmethod
    def from_config(cls, config) -> TokenLifetimes:
        """Read ``ACCESS_TOKEN_TTL_MINUTES`` / ``REFRESH_TOKEN_TTL_HOURS`` from a mapping."""
        return cls(
            access=timedelta(minutes=int(config.get("ACCESS_TOKEN_TTL_MINUTES") or 15)),
            refresh=timedelta(hours=int(config.get("REFRESH_TOKEN_TTL_HOURS") or 72)),
        )
