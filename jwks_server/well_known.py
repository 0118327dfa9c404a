"""
Well-known endpoint: JWKS with only the keys that have not expired yet.
"""
from fastapi import APIRouter

from jwks_server.keys import get_jwks, get_key_store

router = APIRouter()


@router.get("/.well-known/jwks.json")
def jwks_json():
    """JSON Web Key Set for token signature verification. Evaluated per request."""
    return get_jwks(get_key_store())
