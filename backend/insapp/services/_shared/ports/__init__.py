"""
insapp.services._shared.ports
=============================

*Ports* (hexagonal interfaces) the token core depends on.

Modules
-------
- :mod:`revocation_store`:
    Defines :class:`~.RevocationStore`, the liveness registry for
    refresh-token identifiers, plus :class:`~.InMemoryRevocationStore` for tests and
    single-process development.

Design Notes
------------
The service layer only sees the protocol. Concrete adapters (Redis, or any
other shared store) live under ``insapp.infra``.
"""

from __future__ import annotations

from .revocation_store import InMemoryRevocationStore, RevocationStore

__all__ = [
    "RevocationStore",
    "InMemoryRevocationStore",
]
