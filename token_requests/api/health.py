from fastapi import APIRouter
from typing import Dict, Any
from ..state.store import get_state_store

router = APIRouter()


@router.get("/healthz")
async def health_check() -> Dict[str, Any]:
    """Health check endpoint that verifies the call service and the store"""

    store = get_state_store()
    if store is None:
        return {"status": "unavailable", "reason": "State store is not running"}

    call_service = store.pipeline.call_service
    provider_status = await call_service.health_check()

    if store.bootstrap_failed:
        status = "failed"
    elif provider_status.get("status") == "healthy" and store.is_initialized:
        status = "healthy"
    else:
        status = "degraded"

    return {
        "status": status,
        "provider": {call_service.name: provider_status},
        "identity": store.identity,
        "is_syncing": store.state.is_syncing,
        "applied_events": store.applied_events,
        "requests": len(store.state.requests),
    }
