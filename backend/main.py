# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
FastAPI application factory.

Responsibilities
----------------
* Instantiate the FastAPI app.
* Register CORS and request-logging middleware.
* Install the exception handlers that wrap every error in the response
  envelope.
* Mount the feature routers under the API prefix.
* Expose a /health endpoint for container liveness checks.

Request pipeline
----------------
body validation (pydantic schema) → ``get_current_user`` → handler with
ownership / role checks → envelope serialization.  Each stage is a plain
function or dependency and can be exercised on its own.
"""

import json
import time

from fastapi import FastAPI, Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from core.config import settings
from core.logger import logger
from core.response import error_response, register_exception_handlers
from core.security import get_client_ip
from database import init_db
from users.router import router as users_router
from admin.router import router as admin_router
from posts.router import router as posts_router
from comments.router import router as comments_router
from follows.router import router as follows_router
from messages.router import router as messages_router
from resources.router import router as resources_router

app = FastAPI(title="Campus Connect", version="1.0.0")

# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------
# Credentials are allowed so the browser sends the token cookies along.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


# ---------------------------------------------------------------------------
# Request-logging middleware
# ---------------------------------------------------------------------------
# Logs every inbound request: method, path, client IP, status, latency.
# Anything that escapes the handlers is logged here together with the request
# body (credential fields masked) and answered with a bare 500 envelope.

_MASKED_KEYS = ("password", "token")


def _masked_body(raw: bytes) -> str:
    """Request body for the error log, with credential-looking values hidden."""
    if not raw:
        return ""
    try:
        payload = json.loads(raw)
    except ValueError:
        return f"<{len(raw)} bytes>"
    if isinstance(payload, dict):
        payload = {
            key: "******" if any(word in key.lower() for word in _MASKED_KEYS) else value
            for key, value in payload.items()
        }
    return json.dumps(payload)


class _RequestLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, client IP, response status and latency (ms)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        body = await request.body()
        try:
            response: Response = await call_next(request)
        except Exception:
            logger.exception(
                "Unhandled error: %s %s | body=%s",
                request.method,
                request.url.path,
                _masked_body(body),
            )
            response = error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")
        elapsed_ms = (time.perf_counter() - start) * 1000

        logger.info(
            "%s %s | client=%s status=%d latency=%.1fms",
            request.method,
            request.url.path,
            get_client_ip(request),
            response.status_code,
            elapsed_ms,
        )
        return response


app.add_middleware(_RequestLogMiddleware)

register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
# admin first: /users/admin/... must not be shadowed by a /users/... route
app.include_router(admin_router, prefix=settings.api_prefix)
app.include_router(users_router, prefix=settings.api_prefix)
app.include_router(posts_router, prefix=settings.api_prefix)
app.include_router(comments_router, prefix=settings.api_prefix)
app.include_router(follows_router, prefix=settings.api_prefix)
app.include_router(messages_router, prefix=settings.api_prefix)
app.include_router(resources_router, prefix=settings.api_prefix)


@app.on_event("startup")
async def _on_startup():
    init_db()
    logger.info("Campus Connect API starting up")


@app.on_event("shutdown")
async def _on_shutdown():
    logger.info("Campus Connect API shutting down")


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------


@app.get("/health")
def health():
    return {"status": "ok"}
