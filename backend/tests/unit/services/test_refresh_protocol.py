# tests/unit/services/test_refresh_protocol.py
"""
Unit tests for the session state machine.

Covers every branch of ``RefreshProtocol.check_and_refresh``:
- access valid -> access unchanged, refresh re-signed, store untouched
- access malformed, or a refresh token in the access slot -> TokenError(MALFORMED)
- access expired + refresh live -> new access, same jti
- access expired + refresh revoked / garbage -> Unauthorized
- access expired + refresh expired -> Unauthorized and jti deleted
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

import pytest

from insapp.security.codec import Claims, DecodeStatus, TokenCodec
from insapp.services._shared.errors import TokenError, TokenErrorKind, Unauthorized
from insapp.services.tokens import RefreshProtocol, RevocationController, SessionTokens, TokenIssuer


class SpyStore:
    """Wrap a store and record every call made to it."""

    def __init__(self, inner) -> None:
        self.inner = inner
        self.calls: list[tuple[str, str]] = []

    def store(self, jti):
        self.calls.append(("store", jti))
        return self.inner.store(jti)

    def is_valid(self, jti):
        self.calls.append(("is_valid", jti))
        return self.inner.is_valid(jti)

    def delete(self, jti):
        self.calls.append(("delete", jti))
        self.inner.delete(jti)


@pytest.fixture()
def spy(store) -> SpyStore:
    return SpyStore(store)


@pytest.fixture()
def issuer(codec, spy) -> TokenIssuer:
    return TokenIssuer(codec=codec, store=spy)


@pytest.fixture()
def protocol(codec, spy) -> RefreshProtocol:
    return RefreshProtocol(codec=codec, store=spy)


def _jti(codec: TokenCodec, refresh_token: str) -> str:
    return codec.decode_ignoring_expiry(refresh_token).token_id


# ------------------------------ access valid -------------------------------- #


def test_valid_access_is_returned_unchanged_and_refresh_extended(
    frozen, issuer, protocol, codec, spy
):
    pair = issuer.issue_pair("alice", "admin")
    before = codec.decode(pair.refresh_token).claims.expires_at
    spy.calls.clear()

    frozen.tick(timedelta(minutes=5))
    out = protocol.check_and_refresh(pair.access_token, pair.refresh_token)

    assert out.renewed is False
    assert out.access_token == pair.access_token
    after = codec.decode(out.refresh_token).claims
    assert after.expires_at > before
    assert after.expires_at == datetime.now(UTC) + timedelta(hours=72)
    assert after.token_id == _jti(codec, pair.refresh_token)
    assert (after.username, after.role) == ("alice", "admin")
    # Stateless extension: the store is neither read nor written
    assert spy.calls == []


def test_valid_access_with_forged_refresh_is_malformed(
    frozen, issuer, protocol, other_keys
):
    pair = issuer.issue_pair("alice", "admin")
    forged = TokenCodec(other_keys).encode(
        Claims("alice", "admin", datetime.now(UTC) + timedelta(hours=1), token_id="x")
    )

    with pytest.raises(TokenError) as excinfo:
        protocol.check_and_refresh(pair.access_token, forged)

    assert excinfo.value.kind is TokenErrorKind.MALFORMED


def test_valid_access_with_access_token_as_refresh_is_malformed(frozen, issuer, protocol):
    pair = issuer.issue_pair("alice", "admin")

    with pytest.raises(TokenError):
        protocol.check_and_refresh(pair.access_token, pair.access_token)


# ---------------------------- access malformed ------------------------------ #


def test_malformed_access_is_never_recovered(frozen, issuer, protocol, spy):
    pair = issuer.issue_pair("alice", "admin")
    spy.calls.clear()

    with pytest.raises(TokenError) as excinfo:
        protocol.check_and_refresh("garbage", pair.refresh_token)

    assert excinfo.value.kind is TokenErrorKind.MALFORMED
    assert spy.calls == []


def test_access_signed_by_other_key_is_malformed(frozen, issuer, protocol, other_keys):
    pair = issuer.issue_pair("alice", "admin")
    forged_access = TokenCodec(other_keys).encode(
        Claims("mallory", "admin", datetime.now(UTC) - timedelta(minutes=1))
    )

    with pytest.raises(TokenError):
        protocol.check_and_refresh(forged_access, pair.refresh_token)


# ----------------------------- access expired ------------------------------- #


def test_expired_access_is_renewed_with_live_refresh(frozen, issuer, protocol, codec, store):
    pair = issuer.issue_pair("alice", "admin")
    jti = _jti(codec, pair.refresh_token)
    old_access_exp = codec.decode_ignoring_expiry(pair.access_token).expires_at

    frozen.tick(timedelta(minutes=16))
    out = protocol.check_and_refresh(pair.access_token, pair.refresh_token)

    assert out.renewed is True
    assert out.access_token != pair.access_token
    access = codec.decode(out.access_token)
    assert access.status is DecodeStatus.VALID
    assert (access.claims.username, access.claims.role) == ("alice", "admin")
    assert access.claims.expires_at > old_access_exp
    assert access.claims.expires_at == datetime.now(UTC) + timedelta(minutes=15)

    refresh = codec.decode(out.refresh_token).claims
    assert refresh.token_id == jti
    assert refresh.expires_at == datetime.now(UTC) + timedelta(hours=72)
    assert store.is_valid(jti)


def test_revoked_refresh_is_unauthorized_without_mutation(
    frozen, issuer, protocol, codec, store, spy
):
    pair = issuer.issue_pair("alice", "admin")
    jti = _jti(codec, pair.refresh_token)
    store.delete(jti)
    spy.calls.clear()

    frozen.tick(timedelta(minutes=16))
    with pytest.raises(Unauthorized):
        protocol.check_and_refresh(pair.access_token, pair.refresh_token)

    assert spy.calls == [("is_valid", jti)]


def test_refresh_absent_from_store_is_revoked_even_if_expired(
    frozen, issuer, protocol, codec, store, spy
):
    pair = issuer.issue_pair("alice", "admin")
    store.delete(_jti(codec, pair.refresh_token))
    spy.calls.clear()

    frozen.tick(timedelta(hours=73))
    with pytest.raises(Unauthorized):
        protocol.check_and_refresh(pair.access_token, pair.refresh_token)

    assert [name for name, _ in spy.calls] == ["is_valid"]


def test_expired_refresh_is_unauthorized_and_cleaned_up(frozen, issuer, protocol, codec, store):
    pair = issuer.issue_pair("alice", "admin")
    jti = _jti(codec, pair.refresh_token)

    frozen.tick(timedelta(hours=72, seconds=1))
    with pytest.raises(Unauthorized):
        protocol.check_and_refresh(pair.access_token, pair.refresh_token)

    assert store.is_valid(jti) is False


@pytest.mark.parametrize("bad_refresh", ["", "garbage", "a.b.c"])
def test_unreadable_refresh_is_unauthorized(frozen, issuer, protocol, bad_refresh):
    pair = issuer.issue_pair("alice", "admin")

    frozen.tick(timedelta(minutes=16))
    with pytest.raises(Unauthorized):
        protocol.check_and_refresh(pair.access_token, bad_refresh)


def test_access_token_passed_as_refresh_is_unauthorized(frozen, issuer, protocol):
    pair = issuer.issue_pair("alice", "admin")
    other = issuer.issue_pair("bob", "member")

    frozen.tick(timedelta(minutes=16))
    with pytest.raises(Unauthorized):
        protocol.check_and_refresh(pair.access_token, other.access_token)


def test_identity_comes_from_the_access_token(frozen, issuer, protocol, codec):
    """The renewed access token keeps the access token's username/role."""
    alice = issuer.issue_pair("alice", "admin")

    frozen.tick(timedelta(minutes=16))
    out = protocol.check_and_refresh(alice.access_token, alice.refresh_token)

    claims = codec.decode(out.access_token).claims
    assert (claims.username, claims.role) == ("alice", "admin")


# -------------------------------- scenario ---------------------------------- #


def test_full_session_lifecycle(frozen, issuer, protocol, codec, store):
    pair = issuer.issue_pair("alice", "admin")
    jti = _jti(codec, pair.refresh_token)

    # Immediately: nothing to renew
    kept = protocol.check_and_refresh(pair.access_token, pair.refresh_token)
    assert kept.access_token == pair.access_token
    claims = codec.decode(kept.access_token).claims
    assert (claims.username, claims.role) == ("alice", "admin")

    # Past the access lifetime: silently renewed
    frozen.tick(timedelta(minutes=16))
    renewed = protocol.check_and_refresh(pair.access_token, pair.refresh_token)
    assert renewed.access_token != pair.access_token
    claims = codec.decode(renewed.access_token).claims
    assert (claims.username, claims.role) == ("alice", "admin")

    # Past the refresh lifetime without any activity: dead session
    frozen.tick(timedelta(hours=73))
    with pytest.raises(Unauthorized):
        protocol.check_and_refresh(renewed.access_token, renewed.refresh_token)
    assert store.is_valid(jti) is False


def test_active_session_outlives_initial_refresh_lifetime(frozen, issuer, protocol, codec):
    """Each renewal restarts the refresh window."""
    pair = issuer.issue_pair("alice", "admin")
    access, refresh = pair.access_token, pair.refresh_token

    for _ in range(5):
        frozen.tick(timedelta(hours=20))
        out = protocol.check_and_refresh(access, refresh)
        access, refresh = out.access_token, out.refresh_token

    assert codec.decode(refresh).status is DecodeStatus.VALID


# ------------------------- refresh token as access -------------------------- #


def test_refresh_token_in_access_slot_is_malformed(frozen, issuer, protocol, spy):
    pair = issuer.issue_pair("alice", "admin")
    spy.calls.clear()

    with pytest.raises(TokenError) as excinfo:
        protocol.check_and_refresh(pair.refresh_token, pair.refresh_token)

    assert excinfo.value.kind is TokenErrorKind.MALFORMED
    assert spy.calls == []


def test_revoked_refresh_token_cannot_stand_in_for_access(frozen, issuer, protocol, codec, spy):
    pair = issuer.issue_pair("alice", "admin")
    RevocationController(codec=codec, store=spy).revoke(pair.refresh_token)

    frozen.tick(timedelta(hours=1))
    with pytest.raises(TokenError) as excinfo:
        protocol.check_and_refresh(pair.refresh_token, pair.refresh_token)

    assert excinfo.value.kind is TokenErrorKind.MALFORMED


def test_expired_refresh_token_in_access_slot_is_malformed(frozen, issuer, protocol):
    pair = issuer.issue_pair("alice", "admin")

    frozen.tick(timedelta(hours=73))
    with pytest.raises(TokenError) as excinfo:
        protocol.check_and_refresh(pair.refresh_token, pair.refresh_token)

    assert excinfo.value.kind is TokenErrorKind.MALFORMED


# ------------------------------ injected clock ------------------------------ #


def test_injected_clock_drives_expiry_decisions(keys, store):
    start = datetime(2100, 1, 1, tzinfo=UTC)
    pair = SessionTokens(keys=keys, store=store, clock=lambda: start).issue_pair("alice", "admin")

    later = SessionTokens(keys=keys, store=store, clock=lambda: start + timedelta(hours=1))
    out = later.check_and_refresh(pair.access_token, pair.refresh_token)

    assert out.renewed is True
    access = later.codec.decode(out.access_token)
    assert access.status is DecodeStatus.VALID
    assert access.claims.expires_at == start + timedelta(hours=1, minutes=15)


def test_injected_clock_expires_refresh_token(keys, store):
    start = datetime(2100, 1, 1, tzinfo=UTC)
    pair = SessionTokens(keys=keys, store=store, clock=lambda: start).issue_pair("alice", "admin")
    jti = SessionTokens(keys=keys, store=store).codec.decode_ignoring_expiry(
        pair.refresh_token
    ).token_id

    much_later = SessionTokens(keys=keys, store=store, clock=lambda: start + timedelta(hours=73))
    with pytest.raises(Unauthorized):
        much_later.check_and_refresh(pair.access_token, pair.refresh_token)

    assert store.is_valid(jti) is False


# --------------------------------- logging ---------------------------------- #


def test_renewal_is_logged(frozen, issuer, protocol, caplog):
    pair = issuer.issue_pair("alice", "admin")

    frozen.tick(timedelta(minutes=16))
    with caplog.at_level(logging.INFO, logger="insapp.services.tokens.refresh"):
        protocol.check_and_refresh(pair.access_token, pair.refresh_token)

    renewals = [r for r in caplog.records if getattr(r, "renewed", None) is True]
    assert len(renewals) == 1
