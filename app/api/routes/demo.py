"""
Demo Store API Endpoints

GET /api/v1/demo/state - Current in-memory snapshot
POST /api/v1/demo/actions - Dispatch any store action
POST /api/v1/demo/reset - Restore the seed snapshot

Only available when the API is served by the demo backend.
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, status
from pydantic import BaseModel

from app.api.auth import CurrentUser, get_current_user, require_roles
from app.domain.actions import ActionUnion
from app.domain.records import AppState, Role
from app.services.backends import DemoBackend, MarketplaceBackend, get_backend

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/demo", tags=["demo"])


class StateResponse(BaseModel):
    data: AppState


class DispatchResponse(BaseModel):
    """Result of one dispatched action"""
    changed: bool
    data: AppState


def get_demo_backend(backend: MarketplaceBackend = Depends(get_backend)) -> DemoBackend:
    """Dependency narrowing the active backend to the demo store"""
    if not isinstance(backend, DemoBackend):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": {
                    "code": "DEMO_DISABLED",
                    "message": "Demo store endpoints are unavailable",
                    "details": f"Active backend is '{backend.name}'"
                }
            }
        )
    return backend


@router.get("/state", response_model=StateResponse)
async def get_state(
    user: CurrentUser = Depends(get_current_user),
    backend: DemoBackend = Depends(get_demo_backend),
) -> Dict[str, Any]:
    return {"data": backend.store.state}


@router.post("/actions", response_model=DispatchResponse)
async def dispatch_action(
    action: ActionUnion = Body(..., discriminator="type", description="Any store action, tagged by its type"),
    user: CurrentUser = Depends(get_current_user),
    backend: DemoBackend = Depends(get_demo_backend),
) -> Dict[str, Any]:
    """
    Apply one action to the demo store.

    Rejected actions leave the store unchanged and answer with the matching
    error status (404, 409 or 422).
    """
    result = backend.store.dispatch(action)
    return {"changed": result.changed, "data": result.state}


@router.post("/reset", response_model=StateResponse)
async def reset_state(
    user: CurrentUser = Depends(require_roles(Role.ADMIN)),
    backend: DemoBackend = Depends(get_demo_backend),
) -> Dict[str, Any]:
    logger.info(f"Demo store reset by {user.user_id}")
    return {"data": backend.store.reset()}
