from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from atlasgraph.api import AttachRequest, DetachRequest, MoveRequest
from atlasgraph.hierarchy.mutation import MutationResult

from backend.app.api.schemas import (
    AttachBody,
    DetachBody,
    MoveBody,
    ValidationDefect,
    FixRequest,
    FixResponse,
    HierarchyStatsResponse,
)
from backend.app.dependencies import get_hierarchy_service
from backend.app.services.hierarchy_service import HierarchyService

router = APIRouter()

ERROR_STATUS = {
    "not_found": 404,
    "locked": 423,
    "disallowed": 409,
    "cycle": 409,
    "internal": 500,
}


def _mutation_response(result: MutationResult) -> JSONResponse:
    status = 200 if result.ok else ERROR_STATUS.get(result.error, 400)
    return JSONResponse(status_code=status, content=jsonable_encoder(result.to_dict()))


@router.post("/attach")
def attach(
    body: AttachBody,
    service: HierarchyService = Depends(get_hierarchy_service),
):
    return _mutation_response(
        service.attach(
            AttachRequest(
                parent_type=body.parent_type,
                parent_id=body.parent_id,
                child_type=body.child_type,
                child_id=body.child_id,
            )
        )
    )


@router.post("/detach")
def detach(
    body: DetachBody,
    service: HierarchyService = Depends(get_hierarchy_service),
):
    return _mutation_response(
        service.detach(DetachRequest(child_type=body.child_type, child_id=body.child_id))
    )


@router.post("/move")
def move(
    body: MoveBody,
    service: HierarchyService = Depends(get_hierarchy_service),
):
    return _mutation_response(
        service.move(
            MoveRequest(
                to_parent_type=body.to_parent_type,
                to_parent_id=body.to_parent_id,
                child_type=body.child_type,
                child_id=body.child_id,
            )
        )
    )


@router.get("/validate", response_model=list[ValidationDefect])
def validate(service: HierarchyService = Depends(get_hierarchy_service)):
    return service.validate()


@router.post("/fix", response_model=FixResponse)
def fix(
    body: FixRequest | None = None,
    service: HierarchyService = Depends(get_hierarchy_service),
):
    errors = [e.model_dump() for e in body.errors] if body else None
    return service.fix(errors)


@router.get("/stats", response_model=HierarchyStatsResponse)
def stats(service: HierarchyService = Depends(get_hierarchy_service)):
    return service.statistics()
