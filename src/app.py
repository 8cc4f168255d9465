"""Supply-chain traceability FastAPI application.

Web server that processes shipment commands synchronously via HTTP.
Each /api request is wrapped in the supplychain domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# LEDGER_ADAPTER selects the ledger substrate (memory | http).
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from protean.integrations.fastapi import register_exception_handlers
from supplychain.config import ledger_settings
from supplychain.domain import supplychain

supplychain.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Supply Chain Traceability API",
    description="Farm-to-shelf shipment custody and certification ledger",
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
    """Push the supplychain domain context for every API request."""
    if request.url.path.startswith("/api"):
        with supplychain.domain_context():
            response = await call_next(request)
        return response
    # Health check, docs, etc.
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from supplychain.api import recall_router, register_error_handlers, shipment_router  # noqa: E402
from supplychain.api.schemas import HealthResponse  # noqa: E402

app.include_router(shipment_router)
app.include_router(recall_router)
register_exception_handlers(app)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="ok", domain=supplychain.name, ledger=ledger_settings().adapter)
