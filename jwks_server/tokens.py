"""
RS256 JWT issuance for POST /auth, plus helpers for consumers that need to split,
decode or verify an issued token against the published JWKS.
"""
import base64
import binascii
import json
import logging
import re
from datetime import datetime, timezone

import jwt

from jwks_server.config import SIGNING_ALGORITHM, TOKEN_LIFETIME_SECONDS, TOKEN_SUBJECT
from jwks_server.keys import KeyPair

logger = logging.getLogger(__name__)

_B64URL_RE = re.compile(r"[A-Za-z0-9_-]+")


class SigningError(Exception):
    """Token could not be signed (missing private key or signing failure)."""


class MalformedTokenError(ValueError):
    """Token string is not three dot-separated base64url segments."""


class UnknownKeyError(Exception):
    """Token kid is not present in the JWKS used for verification."""

    def __init__(self, kid: str | None):
        super().__init__(f"No key with kid={kid!r} in JWKS")
        self.kid = kid


def issue_token(key_pair: KeyPair, expired_mode: bool, now: datetime | None = None) -> str:
    """
    Sign a compact JWT with the key pair's private key.
    exp is iat + 5 minutes, or iat - 5 minutes when expired_mode is set.
    """
    if key_pair.private_key is None:
        raise SigningError(f"Key {key_pair.kid} has no private key")
    if now is None:
        now = datetime.now(timezone.utc)
    iat = int(now.timestamp())
    exp = iat - TOKEN_LIFETIME_SECONDS if expired_mode else iat + TOKEN_LIFETIME_SECONDS

    payload = {
        "sub": TOKEN_SUBJECT,
        "iat": iat,
        "exp": exp,
    }
    try:
        token = jwt.encode(
            payload,
            key_pair.private_key,
            algorithm=SIGNING_ALGORITHM,
            headers={"kid": key_pair.kid, "typ": "JWT"},
        )
    except (jwt.PyJWTError, TypeError, ValueError) as e:
        raise SigningError(f"Signing with key {key_pair.kid} failed: {e}") from e
    if isinstance(token, bytes):
        token = token.decode("utf-8")
    return token


def parse_token_parts(token: str) -> tuple[str, str, str]:
    """Split a compact JWT into (header, claims, signature) segments."""
    parts = token.split(".")
    if len(parts) != 3:
        raise MalformedTokenError(f"Expected 3 segments, got {len(parts)}")
    if not all(parts):
        raise MalformedTokenError("Empty token segment")
    return parts[0], parts[1], parts[2]


def decode_segment(segment: str) -> dict:
    """Decode an unpadded base64url segment into a JSON object."""
    if not _B64URL_RE.fullmatch(segment):
        raise MalformedTokenError("Segment is not unpadded base64url")
    padded = segment + "=" * (-len(segment) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        data = json.loads(raw)
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise MalformedTokenError(f"Segment is not base64url JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedTokenError("Segment is not a JSON object")
    return data


def verify_token(token: str, jwks: dict, verify_exp: bool = True) -> dict:
    """
    Verify signature (and exp, unless disabled) against the key in `jwks` whose kid
    matches the token header. Returns decoded claims.
    Raises UnknownKeyError if the kid is not published; PyJWT errors propagate.
    """
    header_b64, _, _ = parse_token_parts(token)
    kid = decode_segment(header_b64).get("kid")
    if jwks.get("keys"):
        for jwk in jwt.PyJWKSet.from_dict(jwks).keys:
            if jwk.key_id == kid:
                return jwt.decode(
                    token,
                    jwk.key,
                    algorithms=[SIGNING_ALGORITHM],
                    options={"verify_exp": verify_exp},
                )
    logger.debug("kid %s not found in JWKS", kid)
    raise UnknownKeyError(kid)
