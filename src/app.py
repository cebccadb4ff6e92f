"""Marketplace FastAPI application.

Web server that processes commands synchronously via HTTP. Every request
runs inside the marketplace domain context with its request id bound to
the structlog context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - "test"       → event_processing = "sync"  (handlers fire after commit)
#   - "production" → event_processing = "async" (handlers fire via Engine)
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from marketplace.api.errors import register_marketplace_handlers
from marketplace.channel import build_transports, reset_transports, set_transports
from marketplace.domain import marketplace
from marketplace.notification.settings import delivery_settings
from marketplace.utils.logging import bind_request_context, clear_request_context
from protean.integrations.fastapi import register_exception_handlers

marketplace.init()


@asynccontextmanager
async def lifespan(app: FastAPI):
    with marketplace.domain_context():
        set_transports(build_transports(delivery_settings().timeout_seconds))
    yield
    # Close realtime/email transports on shutdown
    reset_transports()


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Marketplace API",
    description="Project lifecycle, bidding and notification fan-out",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the marketplace domain context and bind request logging context."""
    bind_request_context(
        request_id=request.headers.get("X-Request-ID", uuid4().hex),
        path=request.url.path,
        method=request.method,
    )
    try:
        with marketplace.domain_context():
            response = await call_next(request)
        return response
    finally:
        clear_request_context()


register_exception_handlers(app)
register_marketplace_handlers(app)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from marketplace.api import (  # noqa: E402
    audit_router,
    bid_router,
    notification_router,
    project_router,
    user_router,
)

app.include_router(user_router)
app.include_router(project_router)
app.include_router(bid_router)
app.include_router(notification_router)
app.include_router(audit_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domain": {"name": marketplace.name},
        }
    )
