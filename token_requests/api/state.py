from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException

from ..state.store import StateStore, get_state_store

router = APIRouter()


def _require_store() -> StateStore:
    store = get_state_store()
    if store is None:
        raise HTTPException(status_code=503, detail="State store is not running")
    return store


@router.get("/state")
async def read_state() -> Dict[str, Any]:
    """Latest published application state"""
    store = _require_store()
    return store.state.snapshot()


@router.get("/state/requests/{request_id}")
async def read_request(request_id: str) -> Dict[str, Any]:
    store = _require_store()
    request = store.state.find_request(request_id)
    if request is None:
        raise HTTPException(status_code=404, detail=f"Request #{request_id} not found")
    return request.model_dump(mode="json", by_alias=True)


@router.get("/diagnostics")
async def read_diagnostics() -> List[Dict[str, Any]]:
    """Most recent diagnostics, oldest first"""
    store = _require_store()
    return [diagnostic.model_dump(mode="json") for diagnostic in store.diagnostics.recent]
