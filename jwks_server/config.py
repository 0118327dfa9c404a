"""
JWKS server configuration. Bind address and logging come from env;
key and token lifetimes are fixed so the active/expired split stays predictable.
"""
import os

# Listen address (port 8080 by default)
HOST = os.environ.get("JWKS_HOST", "127.0.0.1")
PORT = int(os.environ.get("JWKS_PORT", "8080"))

LOG_LEVEL = os.environ.get("JWKS_LOG_LEVEL", "INFO").upper()

# RSA modulus size for both signing keys
KEY_BITS = 2048

# Active key expires this far in the future, expired key this far in the past
KEY_LIFETIME_SECONDS = 24 * 60 * 60

# Issued tokens expire 5 minutes after (or before, in expired mode) issuance
TOKEN_LIFETIME_SECONDS = 5 * 60

SIGNING_ALGORITHM = "RS256"

# Placeholder identity for the sub claim
TOKEN_SUBJECT = os.environ.get("TOKEN_SUBJECT", "user")
