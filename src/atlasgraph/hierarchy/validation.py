from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from atlasgraph.config.settings import HierarchyConfig, default_config
from atlasgraph.hierarchy.fields import reset_field
from atlasgraph.hierarchy.index import EntityIndex, is_hashable
from atlasgraph.hierarchy.locks import LockManager
from atlasgraph.hierarchy.mutation import ancestor_fields
from atlasgraph.hierarchy.state import HierarchyState, Record
from atlasgraph.hierarchy.traversal import CycleGuard
from atlasgraph.hierarchy.types import TypeRegistry
from atlasgraph.utils.time import is_iso_timestamp, iso_timestamp

logger = logging.getLogger("atlasgraph.validation")

DefectKind = Literal[
    "missing_object",
    "missing_parent",
    "invalid_parent_type",
    "cyclic_dependency",
    "orphaned_object",
    "lock_violation",
    "malformed_field",
    "limit_exceeded",
]

# Kinds that describe a broken parent link on the object itself
_LINK_DEFECTS = ("missing_parent", "invalid_parent_type", "cyclic_dependency")


@dataclass(frozen=True)
class ValidationError:
    """
    One structural defect found by a validation pass.

    `field_path` names the offending relational field for malformed-field
    defects (e.g. "locks.move").
    """

    kind: DefectKind
    object_id: Any
    message: str
    parent_id: Any = None
    child_id: Any = None
    field_path: Optional[str] = None
    timestamp: str = field(default_factory=iso_timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "object_id": self.object_id,
            "parent_id": self.parent_id,
            "child_id": self.child_id,
            "field": self.field_path,
            "message": self.message,
            "timestamp": self.timestamp,
        }


@dataclass
class FixReport:
    fixed: int = 0
    failed: int = 0
    details: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fixed": self.fixed,
            "failed": self.failed,
            "details": list(self.details),
        }


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class Validator:
    """
    Full-graph integrity scan.

    Collects every defect in a single pass instead of stopping at the
    first one. Never mutates the state.
    """

    def __init__(
        self,
        config: HierarchyConfig | None = None,
        *,
        locks: LockManager | None = None,
    ) -> None:
        self.config = config or default_config()
        self.registry = TypeRegistry(self.config.rules)
        self.locks = locks or LockManager()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def validate(self, state: HierarchyState) -> List[ValidationError]:
        errors: List[ValidationError] = []

        try:
            index = EntityIndex.build(state)
            guard = CycleGuard(index)

            for entity_type, record in state.entities():
                if not isinstance(record, dict) or record.get("id") is None:
                    errors.append(
                        ValidationError(
                            kind="missing_object",
                            object_id="unknown",
                            message=f"{entity_type} record has no id",
                        )
                    )
                    continue
                if not is_hashable(record["id"]):
                    continue
                errors.extend(self._validate_record(index, guard, entity_type, record))

            for entity_id in index.duplicates:
                errors.append(
                    ValidationError(
                        kind="malformed_field",
                        object_id=entity_id,
                        field_path="id",
                        message=f"id {entity_id} is used by more than one record",
                    )
                )

            for entity_id in index.unhashable:
                errors.append(
                    ValidationError(
                        kind="malformed_field",
                        object_id=entity_id,
                        field_path="id",
                        message=f"id {entity_id!r} is not a usable identifier",
                    )
                )

            errors.extend(self._validate_limits(index, guard))
        except Exception as exc:
            logger.exception("validation aborted")
            errors.append(
                ValidationError(
                    kind="missing_object",
                    object_id="system",
                    message=f"validation aborted: {exc}",
                )
            )

        logger.info("validation finished: %s defect(s)", len(errors))
        return errors

    # ------------------------------------------------------------------
    # Per-record checks
    # ------------------------------------------------------------------

    def _validate_record(
        self,
        index: EntityIndex,
        guard: CycleGuard,
        entity_type: str,
        record: Record,
    ) -> List[ValidationError]:
        errors: List[ValidationError] = []
        entity_id = record["id"]

        declared = record.get("type")
        if declared is not None and declared != entity_type:
            errors.append(
                ValidationError(
                    kind="malformed_field",
                    object_id=entity_id,
                    field_path="type",
                    message=f"type tag {declared!r} does not match collection {entity_type!r}",
                )
            )

        if record.get("updated_at") is not None and not is_iso_timestamp(record["updated_at"]):
            errors.append(
                ValidationError(
                    kind="malformed_field",
                    object_id=entity_id,
                    field_path="updated_at",
                    message="updated_at must be an ISO-8601 timestamp",
                )
            )

        # A duplicate id is reported once; its relational fields are not indexed
        if index.get(entity_id) is not record:
            return errors

        errors.extend(self._validate_parent(index, guard, entity_type, record))
        errors.extend(self._validate_children(index, record))
        errors.extend(self._validate_locks(record))
        errors.extend(self._validate_constraints(record))

        if self.locks.is_locked(record, "hierarchy") and any(
            e.kind in _LINK_DEFECTS for e in errors
        ):
            errors.append(
                ValidationError(
                    kind="lock_violation",
                    object_id=entity_id,
                    parent_id=index.parent_id(entity_id),
                    message=f"{entity_id} has a broken parent link but is locked against hierarchy changes",
                )
            )

        return errors

    def _validate_parent(
        self,
        index: EntityIndex,
        guard: CycleGuard,
        entity_type: str,
        record: Record,
    ) -> List[ValidationError]:
        entity_id = record["id"]
        parent_id = index.parent_id(entity_id)
        if parent_id is None:
            return []

        parent = index.get(parent_id)
        if parent is None:
            return [
                ValidationError(
                    kind="missing_parent",
                    object_id=entity_id,
                    parent_id=parent_id,
                    message=f"parent {parent_id} of {entity_id} does not exist",
                )
            ]

        errors: List[ValidationError] = []
        parent_type = index.type_of(parent_id)
        if not self.registry.is_link_allowed(parent_type, entity_type):
            errors.append(
                ValidationError(
                    kind="invalid_parent_type",
                    object_id=entity_id,
                    parent_id=parent_id,
                    message=f"link {parent_type} -> {entity_type} is not allowed",
                )
            )

        if guard.is_on_cycle(entity_id):
            path = [entity_id] + guard.get_ancestors(entity_id)
            errors.append(
                ValidationError(
                    kind="cyclic_dependency",
                    object_id=entity_id,
                    parent_id=parent_id,
                    message="cycle through " + " -> ".join(str(p) for p in path),
                )
            )

        return errors

    def _validate_children(
        self,
        index: EntityIndex,
        record: Record,
    ) -> List[ValidationError]:
        children = record.get("children")
        if children is None:
            return []

        entity_id = record["id"]
        if not isinstance(children, dict):
            return [
                ValidationError(
                    kind="malformed_field",
                    object_id=entity_id,
                    field_path="children",
                    message="children must be a mapping of child type to ids",
                )
            ]

        errors: List[ValidationError] = []
        for key, child_ids in children.items():
            if not isinstance(child_ids, list):
                errors.append(
                    ValidationError(
                        kind="malformed_field",
                        object_id=entity_id,
                        field_path=f"children.{key}",
                        message=f"children.{key} must be a list",
                    )
                )
                continue

            for child_id in child_ids:
                child = index.get(child_id)
                if child is None:
                    errors.append(
                        ValidationError(
                            kind="missing_object",
                            object_id=entity_id,
                            parent_id=entity_id,
                            child_id=child_id,
                            message=f"listed child {child_id} does not exist",
                        )
                    )
                elif index.parent_id(child_id) != entity_id:
                    errors.append(
                        ValidationError(
                            kind="orphaned_object",
                            object_id=entity_id,
                            parent_id=entity_id,
                            child_id=child_id,
                            message=f"listed child {child_id} does not point back to {entity_id}",
                        )
                    )

        return errors

    def _validate_locks(self, record: Record) -> List[ValidationError]:
        locks = record.get("locks")
        if locks is None:
            return []

        entity_id = record["id"]
        if not isinstance(locks, dict):
            return [
                ValidationError(
                    kind="malformed_field",
                    object_id=entity_id,
                    field_path="locks",
                    message="locks must be a mapping",
                )
            ]

        return [
            ValidationError(
                kind="malformed_field",
                object_id=entity_id,
                field_path=f"locks.{kind}",
                message=f"locks.{kind} must be a boolean",
            )
            for kind in ("move", "hierarchy")
            if not isinstance(locks.get(kind), bool)
        ]

    def _validate_constraints(self, record: Record) -> List[ValidationError]:
        constraints = record.get("constraints")
        if constraints is None:
            return []

        entity_id = record["id"]
        if not isinstance(constraints, dict):
            return [
                ValidationError(
                    kind="malformed_field",
                    object_id=entity_id,
                    field_path="constraints",
                    message="constraints must be a mapping",
                )
            ]

        errors: List[ValidationError] = []
        for key in ("max_radius", "orbit_radius"):
            value = constraints.get(key)
            if not _is_number(value) or value <= 0:
                errors.append(
                    ValidationError(
                        kind="malformed_field",
                        object_id=entity_id,
                        field_path=f"constraints.{key}",
                        message=f"constraints.{key} must be a positive number",
                    )
                )
        if not isinstance(constraints.get("auto_layout"), bool):
            errors.append(
                ValidationError(
                    kind="malformed_field",
                    object_id=entity_id,
                    field_path="constraints.auto_layout",
                    message="constraints.auto_layout must be a boolean",
                )
            )
        return errors

    # ------------------------------------------------------------------
    # Global limits
    # ------------------------------------------------------------------

    def _validate_limits(
        self,
        index: EntityIndex,
        guard: CycleGuard,
    ) -> List[ValidationError]:
        limits = self.config.limits
        errors: List[ValidationError] = []

        for parent_id, child_ids in index.children_by_parent_id.items():
            if len(child_ids) > limits.max_children_per_parent:
                errors.append(
                    ValidationError(
                        kind="limit_exceeded",
                        object_id=parent_id,
                        message=(
                            f"{len(child_ids)} children exceed the limit of "
                            f"{limits.max_children_per_parent}"
                        ),
                    )
                )

        for entity_id in index.by_id:
            depth = len(guard.get_ancestors(entity_id))
            if depth > limits.max_hierarchy_depth:
                errors.append(
                    ValidationError(
                        kind="limit_exceeded",
                        object_id=entity_id,
                        message=(
                            f"depth {depth} exceeds the limit of "
                            f"{limits.max_hierarchy_depth}"
                        ),
                    )
                )

        return errors

    # ------------------------------------------------------------------
    # Conservative repair
    # ------------------------------------------------------------------

    def fix_validation_errors(
        self,
        errors: List[ValidationError],
        state: HierarchyState,
    ) -> FixReport:
        """
        Apply the mechanical repairs for a list of defects.

        Clears broken links and re-initializes malformed fields. Never
        reparents, and never clears a link on a hierarchy-locked entity.
        """
        report = FixReport()

        for error in errors:
            try:
                if self._fix_one(error, state, report):
                    report.fixed += 1
                else:
                    report.failed += 1
            except Exception as exc:
                logger.exception("fix failed for %s", error.object_id)
                report.failed += 1
                report.details.append(f"{error.kind} on {error.object_id}: {exc}")

        logger.info("fix finished: fixed=%s failed=%s", report.fixed, report.failed)
        return report

    def _fix_one(
        self,
        error: ValidationError,
        state: HierarchyState,
        report: FixReport,
    ) -> bool:
        if error.kind in ("cyclic_dependency", "missing_parent"):
            record = state.find(error.object_id)
            if record is None:
                report.details.append(f"{error.object_id}: not found")
                return False
            if self.locks.is_locked(record, "hierarchy"):
                report.details.append(f"{error.object_id}: hierarchy locked, link kept")
                return False
            if error.kind == "cyclic_dependency" and not CycleGuard(
                EntityIndex.build(state)
            ).is_on_cycle(error.object_id):
                report.details.append(f"{error.object_id}: cycle already broken")
                return True
            self._clear_link(record, state)
            report.details.append(f"{error.object_id}: cleared parent link")
            return True

        if error.kind in ("orphaned_object", "missing_object") and error.child_id is not None:
            parent = state.find(error.parent_id)
            if parent is None or not isinstance(parent.get("children"), dict):
                report.details.append(f"{error.parent_id}: no children map to repair")
                return False
            for ids in parent["children"].values():
                if isinstance(ids, list) and error.child_id in ids:
                    ids[:] = [i for i in ids if i != error.child_id]
            report.details.append(
                f"{error.parent_id}: removed stale child entry {error.child_id}"
            )
            return True

        if error.kind == "malformed_field" and error.field_path and error.field_path != "id":
            located = self._locate(state, error.object_id)
            if located is None:
                report.details.append(f"{error.object_id}: not found")
                return False
            entity_type, record = located
            if not reset_field(record, entity_type, error.field_path, self.config):
                report.details.append(f"{error.object_id}: cannot reset {error.field_path}")
                return False
            report.details.append(f"{error.object_id}: re-initialized {error.field_path}")
            return True

        report.details.append(f"{error.kind} on {error.object_id}: needs manual repair")
        return False

    def _clear_link(self, record: Record, state: HierarchyState) -> None:
        located = self._locate(state, record["id"])
        entity_type = located[0] if located else ""

        old_parent = state.find(record.get("parent_id"))
        if old_parent is not None and isinstance(old_parent.get("children"), dict):
            for ids in old_parent["children"].values():
                if isinstance(ids, list) and record["id"] in ids:
                    ids[:] = [i for i in ids if i != record["id"]]

        record["parent_id"] = None
        for field_name in ancestor_fields(entity_type):
            if record.get(field_name) is not None:
                record[field_name] = None
        record["updated_at"] = iso_timestamp()

    def _locate(self, state: HierarchyState, entity_id: Any) -> Optional[tuple]:
        for entity_type, record in state.entities():
            if isinstance(record, dict) and record.get("id") == entity_id:
                return entity_type, record
        return None
