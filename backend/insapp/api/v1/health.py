"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app

from insapp.api.deps import json_response, timing
from insapp.core.extensions import get_session_tokens

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def healthcheck():
    """Return application and revocation-store health information."""

    store = get_session_tokens().store
    ping = getattr(store, "ping", None)
    store_status = "ok" if ping is None or ping() else "fail"
    payload = {
        "status": "ok" if store_status == "ok" else "degraded",
        "revocation_store": store_status,
        "version": current_app.config.get("APP_VERSION", "dev"),
    }
    return json_response(payload, status=200 if store_status == "ok" else 503)
