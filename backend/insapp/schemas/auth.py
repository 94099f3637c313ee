"""Session-token Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class LogoutSchema(Schema):
    """Input payload for revoking a refresh token."""

    refresh_token = fields.String(required=True, validate=validate.Length(min=1, max=8192))


class TokenPairSchema(Schema):
    """Response payload carrying the client's current token pair."""

    access_token = fields.String(required=True)
    refresh_token = fields.String(required=True)
    renewed = fields.Boolean(dump_default=False)
    token_type = fields.Constant("bearer", dump_only=True)


class WhoAmISchema(Schema):
    """Response payload exposing the identity carried by the access token."""

    username = fields.String(required=True)
    role = fields.String(required=True)
    expires_at = fields.DateTime(required=True, format="iso")
