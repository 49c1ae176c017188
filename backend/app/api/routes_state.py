from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from backend.app.api.schemas import StateReplaceResponse
from backend.app.dependencies import get_hierarchy_service
from backend.app.services.hierarchy_service import HierarchyService

router = APIRouter()


@router.get("/")
def get_state(service: HierarchyService = Depends(get_hierarchy_service)):
    return service.snapshot()


@router.put("/", response_model=StateReplaceResponse)
def put_state(
    payload: Dict[str, Any] = Body(...),
    service: HierarchyService = Depends(get_hierarchy_service),
):
    return StateReplaceResponse(entities=service.replace(payload))
