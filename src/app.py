"""Tradepost FastAPI application.

Serves order tracking and dispute resolution over HTTP, processing
commands synchronously. Requests under the fulfillment prefixes are
wrapped in the fulfillment domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV selects the config overlay from fulfillment/domain.toml:
#   - "test"       → event_processing = "sync"  (projectors fire in UoW)
#   - "production" → event_processing = "async" (projectors fire via Engine)
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fulfillment.domain import fulfillment

fulfillment.init()

_DOMAIN_PREFIXES = ("/orders", "/tracking", "/disputes")


def _in_domain(path: str) -> bool:
    return path.startswith(_DOMAIN_PREFIXES)


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Tradepost API",
    description="Marketplace order tracking and dispute resolution",
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
    """Push the fulfillment domain context for domain routes."""
    if _in_domain(request.url.path):
        with fulfillment.domain_context():
            return await call_next(request)
    # Health check, docs
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from fulfillment.api.errors import register_error_handlers  # noqa: E402
from fulfillment.api.routes import dispute_router, order_router, tracking_router  # noqa: E402

register_error_handlers(app)
app.include_router(order_router)
app.include_router(tracking_router)
app.include_router(dispute_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": fulfillment.name})
