"""SafeTransfer Eligibility API.

Enforces the Italian anti-money-laundering cap on cash money transfers
(D.Lgs. 231/2007): at most €999 per client in any rolling 8-day window,
summed across every money-transfer business that serves the client.
Businesses only ever see a verdict, never each other's transfers.

Run with:
    python3 -m uvicorn safetransfer.main:app --host 0.0.0.0 --port 8000
"""

from typing import Dict

from fastapi import FastAPI

from safetransfer.config import load_limits, settings
from safetransfer.eligibility.engine import EligibilityEngine
from safetransfer.observability.logging import setup_logging
from safetransfer.routes import clients, eligibility, limits, transfers
from safetransfer.storage.memory import MemoryStore

setup_logging(settings.log_level)

app = FastAPI(
    title="SafeTransfer Eligibility API",
    description=(
        "Rolling-window transfer eligibility for money-transfer businesses. "
        "Aggregates a client's completed transfers across businesses by "
        "document number and enforces the per-transfer and 8-day caps."
    ),
    version="1.0.0",
)


@app.on_event("startup")
async def startup() -> None:
    """Load regulatory limits and initialize the eligibility engine."""
    regulatory_limits = load_limits(settings.data_dir)

    store = MemoryStore()
    engine = EligibilityEngine(
        store=store,
        limits=regulatory_limits,
        lock_timeout=settings.lock_timeout_seconds,
    )

    # Attach to app state for dependency injection in routes
    app.state.engine = engine
    app.state.store = store
    app.state.settings = settings


app.include_router(eligibility.router)
app.include_router(transfers.router)
app.include_router(clients.router)
app.include_router(limits.router)


@app.get("/health")
async def health_check() -> Dict[str, str]:
    """Simple health check endpoint."""
    return {"status": "healthy", "service": settings.service_name}
