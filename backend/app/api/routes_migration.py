from fastapi import APIRouter, Depends

from atlasgraph.hierarchy.migration import MigrationOptions

from backend.app.api.schemas import (
    MigrationRequest,
    MigrationAnalysisResponse,
    MigrationPreviewResponse,
    MigrationResultResponse,
    RollbackResponse,
)
from backend.app.dependencies import get_hierarchy_service
from backend.app.services.hierarchy_service import HierarchyService

router = APIRouter()


@router.get("/analyze", response_model=MigrationAnalysisResponse)
def analyze(service: HierarchyService = Depends(get_hierarchy_service)):
    return service.analyze()


@router.get("/preview", response_model=MigrationPreviewResponse)
def preview(service: HierarchyService = Depends(get_hierarchy_service)):
    return service.preview()


@router.post("/migrate", response_model=MigrationResultResponse)
def migrate(
    body: MigrationRequest | None = None,
    service: HierarchyService = Depends(get_hierarchy_service),
):
    body = body or MigrationRequest()
    options = MigrationOptions(
        clear_existing=body.clear_existing,
        restore_connections=body.restore_connections,
        validate_connections=body.validate_connections,
        dry_run=body.dry_run,
    )
    return service.migrate(options)


@router.post("/rollback", response_model=RollbackResponse)
def rollback(service: HierarchyService = Depends(get_hierarchy_service)):
    return service.rollback()
