"""Tests for key generation, JWK export and JWKS expiry filtering."""
import base64
import dataclasses
import re
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from jwks_server import keys as keys_module
from jwks_server.config import KEY_BITS
from jwks_server.keys import (
    KeyGenerationError,
    KeyPair,
    create_key_store,
    get_jwks,
    get_key_store,
    load_key_store,
    new_kid,
    public_key_to_jwk,
)


def _b64url_to_int(value: str) -> int:
    padded = value + "=" * (-len(value) % 4)
    return int.from_bytes(base64.urlsafe_b64decode(padded), "big")


def test_new_kid_is_urlsafe_and_random():
    kid = new_kid()
    assert re.match(r"^[A-Za-z0-9_-]+$", kid)
    assert len(kid) >= 22  # 16 bytes -> 22 chars base64url, no padding
    assert kid != new_kid()


def test_store_has_active_and_expired_slots(store):
    now = datetime.now(timezone.utc)
    assert store.active.expires_at > now > store.expired.expires_at
    assert store.active.kid != store.expired.kid
    assert store.pairs == (store.active, store.expired)


def test_expiry_is_24h_either_side_of_creation():
    now = datetime(2030, 1, 1, tzinfo=timezone.utc)
    s = create_key_store(now=now)
    assert s.active.expires_at == now + timedelta(hours=24)
    assert s.expired.expires_at == now - timedelta(hours=24)


def test_keys_are_2048_bit_rsa(store):
    for pair in store.pairs:
        assert pair.private_key.key_size == KEY_BITS
        assert pair.public_key.public_numbers().e == 65537


def test_key_pair_is_immutable(store):
    with pytest.raises(dataclasses.FrozenInstanceError):
        store.active.kid = "other"
    with pytest.raises(dataclasses.FrozenInstanceError):
        store.active = store.expired


def test_select_picks_slot_by_intent(store):
    assert store.select(False) is store.active
    assert store.select(True) is store.expired


def test_key_generation_failure_raises():
    with patch("jwks_server.keys.generate_private_key", side_effect=ValueError("no entropy")):
        with pytest.raises(KeyGenerationError) as exc_info:
            create_key_store()
    assert isinstance(exc_info.value.__cause__, ValueError)


def test_load_key_store_failure_leaves_no_store():
    with patch("jwks_server.keys.generate_private_key", side_effect=ValueError("no entropy")):
        with pytest.raises(KeyGenerationError):
            load_key_store()
    assert keys_module._key_store is None


def test_get_key_store_returns_same_instance(store):
    with patch("jwks_server.keys.create_key_store", return_value=store) as create:
        first = get_key_store()
        second = get_key_store()
    assert first is second is store
    assert create.call_count == 1


def test_public_key_to_jwk_fields(store):
    jwk = public_key_to_jwk(store.active)
    assert jwk["kty"] == "RSA"
    assert jwk["use"] == "sig"
    assert jwk["alg"] == "RS256"
    assert jwk["kid"] == store.active.kid
    assert set(jwk) == {"kty", "use", "alg", "kid", "n", "e"}
    numbers = store.active.public_key.public_numbers()
    assert _b64url_to_int(jwk["n"]) == numbers.n
    assert jwk["e"] == "AQAB"  # 65537, minimal big-endian bytes
    assert "=" not in jwk["n"]


def test_public_key_to_jwk_is_deterministic(store):
    assert public_key_to_jwk(store.active) == public_key_to_jwk(store.active)


def test_public_key_to_jwk_has_no_private_material(store):
    jwk = public_key_to_jwk(store.active)
    for private_field in ("d", "p", "q", "dp", "dq", "qi"):
        assert private_field not in jwk


def test_jwks_default_state_has_only_active_key(store):
    jwks = get_jwks(store)
    assert [k["kid"] for k in jwks["keys"]] == [store.active.kid]


def test_jwks_excludes_key_at_exact_expiry(store):
    assert get_jwks(store, now=store.active.expires_at) == {"keys": []}
    just_before = store.active.expires_at - timedelta(seconds=1)
    assert [k["kid"] for k in get_jwks(store, now=just_before)["keys"]] == [store.active.kid]


def test_jwks_keeps_active_before_expired_order(store):
    before_both = store.expired.expires_at - timedelta(seconds=1)
    kids = [k["kid"] for k in get_jwks(store, now=before_both)["keys"]]
    assert kids == [store.active.kid, store.expired.kid]


def test_jwks_empty_when_both_slots_expired():
    long_ago = datetime.now(timezone.utc) - timedelta(days=2)
    s = create_key_store(now=long_ago)
    assert get_jwks(s) == {"keys": []}


def test_key_pair_is_expired_boundary():
    t = datetime(2030, 1, 1, tzinfo=timezone.utc)
    pair = KeyPair(kid="k", expires_at=t, private_key=None)
    assert pair.is_expired(t) is True
    assert pair.is_expired(t - timedelta(microseconds=1)) is False
