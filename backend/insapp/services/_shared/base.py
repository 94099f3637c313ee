# insapp/services/_shared/base.py
from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

from insapp.core import errors as api_errors
from insapp.services._shared.errors import (
    ServiceError,
    SigningKeyError,
    TokenError,
    TokenErrorKind,
    Unauthorized,
)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current UTC time truncated to whole seconds (JWT ``exp`` resolution)."""
    return datetime.now(UTC).replace(microsecond=0)


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide a single, overridable clock (``now_utc``).
    * Centralize translation of service errors into API errors.

    Notes
    -----
    Services stay framework-free; only ``translate_exceptions`` knows about
    the HTTP error types.
    """

    def __init__(self, *, clock: Clock | None = None) -> None:
        """
        Initialize the base service.

        :param clock: Callable returning the current UTC time; defaults to
            :func:`utc_now`.
        """
        self._clock = clock or utc_now

    def now_utc(self) -> datetime:
        return self._clock()

    # -------------------------- Error handling ------------------------------

    @staticmethod
    def translate_exceptions(exc: Exception) -> Exception:
        """
        Map service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :returns: Translated exception ready to be re-raised.
        """
        if isinstance(exc, TokenError):
            # -> 401, distinguishable by code
            if exc.kind is TokenErrorKind.EXPIRED:
                return api_errors.Unauthorized(str(exc), code="token_expired")
            return api_errors.Unauthorized(str(exc), code="token_malformed")

        if isinstance(exc, Unauthorized):
            # -> 401, session is dead
            return api_errors.Unauthorized(str(exc))

        if isinstance(exc, SigningKeyError):
            # Keys are loaded at start-up; reaching here is a server fault
            return api_errors.APIError(
                message="Token signing unavailable",
                status_code=500,
                code="internal_server_error",
            )

        if isinstance(exc, ServiceError):
            return api_errors.APIError(message=str(exc), status_code=400, code="bad_request")

        # Fallback: return untouched (will bubble up to Flask handler)
        return exc
