"""
Auth endpoint (POST /auth). Issues an RS256 JWT signed with the active key,
or with the expired key and a past exp when the `expired` query parameter is present.
"""
import logging

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from jwks_server.keys import get_key_store
from jwks_server.tokens import SigningError, issue_token

logger = logging.getLogger(__name__)
router = APIRouter()


def wants_expired(request: Request) -> bool:
    """`?expired` counts with or without a value (presence check, not equality)."""
    return "expired" in request.query_params


@router.post("/auth")
def auth(request: Request):
    expired_mode = wants_expired(request)
    key_pair = get_key_store().select(expired_mode)
    try:
        token = issue_token(key_pair, expired_mode)
    except SigningError as e:
        logger.error("Token signing failed for kid=%s: %s", key_pair.kid, e)
        return PlainTextResponse("could not create token", status_code=500)
    logger.info("Issued token kid=%s expired=%s", key_pair.kid, expired_mode)
    return {"token": token}
