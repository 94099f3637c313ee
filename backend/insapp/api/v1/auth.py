"""Session endpoints: renew, revoke, and inspect the current session."""

from __future__ import annotations

from flask import Blueprint, g, request

from insapp.api.deps import (
    attach_session_headers,
    json_response,
    read_session_headers,
    require_session,
    service_errors,
    timing,
)
from insapp.core.extensions import get_session_tokens
from insapp.schemas import LogoutSchema, TokenPairSchema, WhoAmISchema

bp = Blueprint("auth", __name__)

logout_schema = LogoutSchema()
token_schema = TokenPairSchema()
whoami_schema = WhoAmISchema()


@bp.post("/refresh")
@timing
def refresh():
    """Keep or renew the caller's session and return the resulting pair."""

    access, refresh_token = read_session_headers()
    with service_errors():
        pair = get_session_tokens().check_and_refresh(access, refresh_token)
    response = json_response({"data": token_schema.dump(pair)})
    return attach_session_headers(response, pair)


@bp.post("/logout")
@timing
def logout():
    """Revoke the refresh token given in the body; repeated calls succeed."""

    data = logout_schema.load(request.get_json(silent=True) or {})
    with service_errors():
        get_session_tokens().revoke(data["refresh_token"])
    return "", 204


@bp.get("/whoami")
@timing
@require_session
def whoami():
    """Return the identity of the authenticated session."""

    return json_response({"data": whoami_schema.dump(g.session_claims)})
