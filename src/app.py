"""PizzaStream FastAPI application.

Serves the ordering HTTP API and the WebSocket notification gateway. Commands
are processed synchronously inside each request's domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Initialized at module level so uvicorn workers share the domain.
# PROTEAN_ENV selects the config overlay from domain.toml.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from ordering.domain import ordering
from ordering.utils.logging import bind_request_context, clear_request_context

ordering.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="PizzaStream API",
    description="Pizza ordering: pricing, order lifecycle, courier dispatch and live notifications",
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
    """Push the ordering domain context for each request."""
    bind_request_context(method=request.method, path=request.url.path)
    try:
        with ordering.domain_context():
            return await call_next(request)
    finally:
        clear_request_context()


# ---------------------------------------------------------------------------
# Routers and error handlers
# ---------------------------------------------------------------------------
from ordering.api import admin_router, delivery_router, order_router, restaurant_router  # noqa: E402
from ordering.api.errors import register_error_handlers  # noqa: E402
from realtime.ws import router as realtime_router  # noqa: E402

app.include_router(order_router)
app.include_router(restaurant_router)
app.include_router(delivery_router)
app.include_router(admin_router)
app.include_router(realtime_router)

register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    from realtime import get_hub

    return JSONResponse(
        content={
            "status": "ok",
            "domain": ordering.name,
            "realtime": get_hub().stats(),
        }
    )
