"""
RSA signing keys for the JWKS server: one active key and one already-expired key.
Both are generated in memory at startup and never persisted.
JWKS exposes only keys whose expiry is still in the future.
"""
import base64
import logging
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, generate_private_key

from jwks_server.config import KEY_BITS, KEY_LIFETIME_SECONDS, SIGNING_ALGORITHM

logger = logging.getLogger(__name__)

_PUBLIC_EXPONENT = 65537
_KID_BYTES = 16


class KeyGenerationError(Exception):
    """RSA key generation failed; the server must not start without keys."""


@dataclass(frozen=True)
class KeyPair:
    kid: str
    expires_at: datetime
    private_key: RSAPrivateKey | None

    @property
    def public_key(self):
        return self.private_key.public_key()

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


@dataclass(frozen=True)
class KeyStore:
    active: KeyPair
    expired: KeyPair

    @property
    def pairs(self) -> tuple[KeyPair, ...]:
        """All key pairs in publication order (active first)."""
        return (self.active, self.expired)

    def select(self, expired: bool) -> KeyPair:
        """Key used to sign a token: the expired slot when expired tokens are requested."""
        return self.expired if expired else self.active


def _generate_key() -> RSAPrivateKey:
    try:
        return generate_private_key(_PUBLIC_EXPONENT, KEY_BITS, default_backend())
    except Exception as e:
        raise KeyGenerationError(f"RSA key generation failed: {e}") from e


def new_kid() -> str:
    """Random URL-safe key id (16 bytes, base64url without padding)."""
    return secrets.token_urlsafe(_KID_BYTES)


def create_key_store(now: datetime | None = None) -> KeyStore:
    """
    Generate the active and expired key pairs. Expiry is fixed relative to `now`
    (defaults to current UTC time): active = now + 24h, expired = now - 24h.
    """
    active_key = _generate_key()
    expired_key = _generate_key()
    if now is None:
        now = datetime.now(timezone.utc)
    lifetime = timedelta(seconds=KEY_LIFETIME_SECONDS)
    return KeyStore(
        active=KeyPair(kid=new_kid(), expires_at=now + lifetime, private_key=active_key),
        expired=KeyPair(kid=new_kid(), expires_at=now - lifetime, private_key=expired_key),
    )


def _int_to_b64url(value: int) -> str:
    """Big-endian, minimal-length unsigned bytes, base64url without padding."""
    raw = value.to_bytes((value.bit_length() + 7) // 8, "big")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def public_key_to_jwk(key_pair: KeyPair) -> dict:
    """Export the public half of a key pair as a JWK entry."""
    numbers = key_pair.public_key.public_numbers()
    return {
        "kty": "RSA",
        "use": "sig",
        "alg": SIGNING_ALGORITHM,
        "kid": key_pair.kid,
        "n": _int_to_b64url(numbers.n),
        "e": _int_to_b64url(numbers.e),
    }


def get_jwks(store: KeyStore, now: datetime | None = None) -> dict:
    """Return JWKS with every key whose expiry is strictly after `now`. May be empty."""
    if now is None:
        now = datetime.now(timezone.utc)
    keys = [public_key_to_jwk(pair) for pair in store.pairs if not pair.is_expired(now)]
    return {"keys": keys}


# Module-level state (set at app startup)
_key_store: KeyStore | None = None
_lock = threading.Lock()


def _build_key_store() -> KeyStore:
    global _key_store
    _key_store = create_key_store()
    logger.info(
        "Generated signing keys: active kid=%s (expires %s), expired kid=%s (expired %s)",
        _key_store.active.kid,
        _key_store.active.expires_at.isoformat(),
        _key_store.expired.kid,
        _key_store.expired.expires_at.isoformat(),
    )
    return _key_store


def load_key_store() -> KeyStore:
    """Generate the process-wide key store. Raises KeyGenerationError on failure."""
    with _lock:
        return _build_key_store()


def get_key_store() -> KeyStore:
    """Return the process-wide key store, generating it once if startup has not run yet."""
    store = _key_store
    if store is not None:
        return store
    with _lock:
        if _key_store is None:
            return _build_key_store()
        return _key_store


def reset_key_store() -> None:
    global _key_store
    _key_store = None
