"""Dining FastAPI application.

Serves carts, order commits, table availability and reservation maintenance
over HTTP. Commands are processed synchronously inside the request.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

from uuid import uuid4

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay from dining/domain.toml:
#   - "test"        → in-memory stores
#   - default       → sqlite (dining.db)
#   - "production"  → postgresql (DATABASE_URL)
from dining.domain import dining  # noqa: E402
from dining.utils.logging import bind_request, unbind_request
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

dining.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Dining API",
    description="Cart checkout, order commit and table reservations",
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
    """Push the Protean domain context for each request and tag its log lines."""
    bind_request(
        request_id=request.headers.get("X-Request-Id") or uuid4().hex,
        actor_id=request.headers.get("X-Actor-Id"),
        path=request.url.path,
    )
    try:
        with dining.domain_context():
            response = await call_next(request)
    finally:
        unbind_request()
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from dining.api import (  # noqa: E402
    address_router,
    cart_router,
    order_router,
    register_exception_handlers,
    reservation_router,
    table_router,
    time_slot_router,
)

app.include_router(address_router)
app.include_router(cart_router)
app.include_router(order_router)
app.include_router(table_router)
app.include_router(time_slot_router)
app.include_router(reservation_router)
register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": dining.name})
