"""Shared API helpers: token headers, session enforcement and timing."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from flask import Response, current_app, g, jsonify, make_response, request

from insapp.core.errors import Unauthorized
from insapp.core.extensions import get_session_tokens
from insapp.services._shared.base import BaseService
from insapp.services._shared.errors import ServiceError, TokenError, TokenErrorKind
from insapp.services.tokens import TokenPairOut

F = TypeVar("F", bound=Callable[..., Any])

BEARER_PREFIX = "Bearer "


def refresh_header_name() -> str:
    return str(current_app.config.get("REFRESH_TOKEN_HEADER", "X-Refresh-Token"))


def read_session_headers() -> tuple[str, str]:
    """
    Extract ``(access_token, refresh_token)`` from the request headers.

    :raises Unauthorized: When either token is missing.
    """
    auth = request.headers.get("Authorization", "")
    if not auth.startswith(BEARER_PREFIX) or not auth[len(BEARER_PREFIX) :].strip():
        raise Unauthorized("Missing bearer access token", code="missing_token")
    refresh = request.headers.get(refresh_header_name(), "").strip()
    if not refresh:
        raise Unauthorized("Missing refresh token", code="missing_token")
    return auth[len(BEARER_PREFIX) :].strip(), refresh


def attach_session_headers(response: Response, pair: TokenPairOut) -> Response:
    """Echo the (possibly renewed) pair so clients can replace what they hold."""
    response.headers["Authorization"] = f"{BEARER_PREFIX}{pair.access_token}"
    response.headers[refresh_header_name()] = pair.refresh_token
    return response


@contextmanager
def service_errors() -> Iterator[None]:
    """Re-raise service-layer errors as their API counterparts."""
    try:
        yield
    except ServiceError as exc:
        raise BaseService.translate_exceptions(exc) from exc


def require_session(func: F) -> F:
    """
    Run the refresh protocol before the view and renew tokens on the way out.

    The view finds the caller's claims on ``g.session_claims`` and the
    resulting pair on ``g.session_pair``.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        access, refresh = read_session_headers()
        tokens = get_session_tokens()
        with service_errors():
            pair = tokens.check_and_refresh(access, refresh)
            claims = tokens.codec.decode_ignoring_expiry(pair.access_token)
            if claims.is_refresh:
                raise TokenError(TokenErrorKind.MALFORMED, "Refresh token used as access token")
        g.session_claims = claims
        g.session_pair = pair
        response = make_response(func(*args, **kwargs))
        return attach_session_headers(response, pair)

    return wrapper  # type: ignore[return-value]


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""
    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request.endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
