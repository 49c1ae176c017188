from fastapi import APIRouter, Depends

from backend.app.api.schemas import BatchLockRequest, BatchLockResponse, LockStatsResponse
from backend.app.dependencies import get_hierarchy_service
from backend.app.services.hierarchy_service import HierarchyService

router = APIRouter()


@router.post("/batch", response_model=BatchLockResponse)
def batch_set_locks(
    body: BatchLockRequest,
    service: HierarchyService = Depends(get_hierarchy_service),
):
    return service.batch_set_locks(body.ids, body.kind, body.value)


@router.get("/stats", response_model=LockStatsResponse)
def lock_stats(service: HierarchyService = Depends(get_hierarchy_service)):
    return service.lock_statistics()
