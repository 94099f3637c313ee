"""Marshmallow schemas for request validation and response serialization."""

from __future__ import annotations

from .auth import LogoutSchema, TokenPairSchema, WhoAmISchema

__all__ = ["LogoutSchema", "TokenPairSchema", "WhoAmISchema"]
