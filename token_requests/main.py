from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .api import health, state
from .config import settings
from .logging_config import setup_logging
from .middleware import RequestLoggingMiddleware
from .providers.jsonrpc import JsonRpcLedgerService
from .state.diagnostics import DiagnosticChannel
from .state.store import StateStore, get_state_store, set_state_store

setup_logging()


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Bootstrap the seed state from the configured ledger.

    Only the seed is built here. The host owns the event log connection and
    drives `get_state_store().run(source)` with it; until then `/state` serves
    the seed snapshot.
    """
    # skipped when the host already installed a store
    if get_state_store() is None and settings.has_rpc_url and settings.has_app_address:
        store = StateStore.build(
            JsonRpcLedgerService(),
            diagnostics=DiagnosticChannel(settings.diagnostics_history_size),
            network_type=settings.network_type,
        )
        set_state_store(store)
        await store.initialize()
    yield


# Create FastAPI app
app = FastAPI(
    title="Token Request State API",
    description="Read model of token requests derived from the ledger event log",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(state.router, tags=["State"])


@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "name": "Token Request State API",
        "version": "0.1.0",
        "description": "Read model of token requests derived from the ledger event log",
        "docs": "/docs",
        "health": "/healthz"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "token_requests.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower()
    )
