"""
JWKS server: RS256 token issuance for testing JWT consumers.
GET /.well-known/jwks.json, POST /auth (optionally ?expired).
Port 8080 by default.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exception_handlers import http_exception_handler
from starlette.exceptions import HTTPException as StarletteHTTPException

from jwks_server.auth_endpoint import router as auth_router
from jwks_server.config import HOST, LOG_LEVEL, PORT
from jwks_server.keys import load_key_store
from jwks_server.well_known import router as well_known_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Generate the active and expired signing keys before serving; failure aborts startup."""
    load_key_store()
    yield


app = FastAPI(title="JWKS Server", version="0.1.0", lifespan=lifespan)
app.include_router(auth_router, tags=["auth"])
app.include_router(well_known_router, tags=["well-known"])


@app.exception_handler(StarletteHTTPException)
async def empty_method_not_allowed(request: Request, exc: StarletteHTTPException):
    """405 responses carry no body; everything else uses FastAPI's default handler."""
    if exc.status_code == 405:
        return Response(status_code=405, headers=exc.headers)
    return await http_exception_handler(request, exc)


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "jwks_server"}


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger.info("Server running on http://%s:%d", HOST, PORT)
    uvicorn.run(app, host=HOST, port=PORT)
