"""Storefront Order Service FastAPI application.

Serves the ordering API over HTTP and processes commands synchronously.
Each order request runs inside the ordering domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from ordering.domain import ordering
from ordering.utils.logging import add_context, clear_context, configure_logging

configure_logging()

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV selects the config overlay (memory providers under "test").
ordering.init()

_DOMAIN_PREFIXES = ("/orders", "/admin/orders")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront Order Service",
    description="Order placement, order history and operator status updates",
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
    """Push the ordering domain context and a request id for order routes."""
    if not request.url.path.startswith(_DOMAIN_PREFIXES):
        # Health check, docs, etc.
        return await call_next(request)

    add_context(request_id=request.headers.get("X-Request-ID") or uuid4().hex, path=request.url.path)
    try:
        with ordering.domain_context():
            response = await call_next(request)
    finally:
        clear_context()
    return response


register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from ordering.api import admin_router, order_router  # noqa: E402

app.include_router(order_router)
app.include_router(admin_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "ordering": {"name": ordering.name},
            },
        }
    )
