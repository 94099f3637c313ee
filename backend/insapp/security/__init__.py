"""RSA key handling and the signed token codec."""

from __future__ import annotations

from .codec import Claims, DecodeResult, DecodeStatus, TokenCodec
from .keys import KeyManager

__all__ = ["Claims", "DecodeResult", "DecodeStatus", "KeyManager", "TokenCodec"]
