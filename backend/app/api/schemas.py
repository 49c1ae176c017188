from typing import List, Dict, Any, Literal, Optional
from pydantic import BaseModel


EntityTypeName = Literal["domain", "project", "task", "idea", "note", "checklist"]


class StateReplaceResponse(BaseModel):
    entities: int


class AttachBody(BaseModel):
    parent_type: EntityTypeName
    parent_id: Any
    child_type: EntityTypeName
    child_id: Any


class DetachBody(BaseModel):
    child_type: EntityTypeName
    child_id: Any


class MoveBody(BaseModel):
    to_parent_type: EntityTypeName
    to_parent_id: Any
    child_type: EntityTypeName
    child_id: Any


class ValidationDefect(BaseModel):
    kind: str
    object_id: Any = None
    parent_id: Any = None
    child_id: Any = None
    field: Optional[str] = None
    message: str = ""
    timestamp: Optional[str] = None


class FixRequest(BaseModel):
    errors: List[ValidationDefect] = []


class FixResponse(BaseModel):
    fixed: int
    failed: int
    details: List[str]


class HierarchyStatsResponse(BaseModel):
    total: int
    with_parent: int
    without_parent: int
    total_connections: int
    max_depth: int
    mean_depth: float
    mean_children: float
    orphaned_objects: int
    by_type: Dict[str, Dict[str, int]]
    depth_distribution: Dict[int, int]


class BatchLockRequest(BaseModel):
    ids: List[Any]
    kind: Literal["move", "hierarchy"]
    value: bool = True


class BatchLockResponse(BaseModel):
    success: int
    failed: int
    details: List[str]


class LockStatsResponse(BaseModel):
    total: int
    move_locked: int
    hierarchy_locked: int
    both_locked: int
    unlocked: int
    by_type: Dict[str, Dict[str, int]]


class MigrationRequest(BaseModel):
    clear_existing: bool = False
    restore_connections: bool = True
    validate_connections: bool = True
    dry_run: bool = False


class MigrationAnalysisResponse(BaseModel):
    total_objects: int
    objects_with_hierarchy: int
    objects_without_hierarchy: int
    existing_connections: int
    potential_connections: int
    by_type: Dict[str, Dict[str, int]]
    issues: List[str]
    recommendations: List[str]


class PlannedActionModel(BaseModel):
    id: Any
    type: str
    action: str
    parent_id: Any = None


class MigrationPreviewResponse(BaseModel):
    will_be_created: List[PlannedActionModel]
    will_be_restored: List[PlannedActionModel]
    will_be_validated: List[PlannedActionModel]
    will_be_cleared: List[PlannedActionModel]
    warnings: List[str]
    estimated_time: int


class MigrationResultResponse(BaseModel):
    success: bool
    processed_objects: int
    restored_connections: int
    validated_connections: int
    errors: List[str]
    warnings: List[str]
    details: List[str]


class RollbackResponse(BaseModel):
    success: bool
    cleared_objects: int
    errors: List[str]
    details: List[str]
