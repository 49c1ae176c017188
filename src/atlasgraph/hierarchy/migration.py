from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Tuple

from atlasgraph.config.settings import HierarchyConfig, default_config
from atlasgraph.hierarchy.fields import (
    default_children,
    has_relational_fields,
    init_hierarchy_fields,
)
from atlasgraph.hierarchy.index import EntityIndex
from atlasgraph.hierarchy.mutation import MutationEngine
from atlasgraph.hierarchy.state import HierarchyState, Record
from atlasgraph.hierarchy.types import ENTITY_TYPES, TypeRegistry, collection_key
from atlasgraph.hierarchy.validation import Validator

logger = logging.getLogger("atlasgraph.migration")


# ---------------------------------------------------------------------
# Result shapes
# ---------------------------------------------------------------------


@dataclass
class MigrationAnalysis:
    total_objects: int = 0
    objects_with_hierarchy: int = 0
    objects_without_hierarchy: int = 0
    existing_connections: int = 0
    potential_connections: int = 0
    by_type: Dict[str, Dict[str, int]] = field(default_factory=dict)
    issues: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PlannedAction:
    id: Any
    type: str
    action: str
    parent_id: Any = None


@dataclass
class MigrationPreview:
    will_be_created: List[PlannedAction] = field(default_factory=list)
    will_be_restored: List[PlannedAction] = field(default_factory=list)
    will_be_validated: List[PlannedAction] = field(default_factory=list)
    will_be_cleared: List[PlannedAction] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    estimated_time: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MigrationOptions:
    clear_existing: bool = False
    restore_connections: bool = True
    validate_connections: bool = True
    dry_run: bool = False


@dataclass
class MigrationResult:
    success: bool = False
    processed_objects: int = 0
    restored_connections: int = 0
    validated_connections: int = 0
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    details: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RollbackResult:
    success: bool = False
    cleared_objects: int = 0
    errors: List[str] = field(default_factory=list)
    details: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------
# Legacy pointer interpretation
# ---------------------------------------------------------------------


def legacy_parent_refs(entity_type: str, record: Record) -> List[Tuple[str, Any]]:
    """
    Candidate `(parent type, parent id)` pairs from legacy pointers.

    Ordered by preference: the project pointer, then the domain pointer.
    """
    refs: List[Tuple[str, Any]] = []
    if entity_type == "domain":
        return refs
    if entity_type != "project" and record.get("project_id"):
        refs.append(("project", record["project_id"]))
    if record.get("domain_id"):
        refs.append(("domain", record["domain_id"]))
    return refs


def _is_restorable(entity_type: str, record: Record) -> bool:
    return not record.get("parent_id") and bool(legacy_parent_refs(entity_type, record))


def _require_record(record: Any) -> None:
    if not isinstance(record, dict):
        raise TypeError(f"expected a mapping record, got {type(record).__name__}")


class Migrator:
    """
    analyze -> preview -> migrate -> rollback over a live state.

    Keeps no state between calls. Restoration goes through the mutation
    engine, so restored links obey the same rules as `attach`.
    """

    def __init__(
        self,
        config: HierarchyConfig | None = None,
        *,
        engine: MutationEngine | None = None,
        validator: Validator | None = None,
    ) -> None:
        self.config = config or default_config()
        self.registry = TypeRegistry(self.config.rules)
        self.engine = engine or MutationEngine(self.config)
        self.validator = validator or Validator(self.config)
        self.locks = self.engine.locks

    # ------------------------------------------------------------------
    # Analyze
    # ------------------------------------------------------------------

    def analyze(self, state: HierarchyState) -> MigrationAnalysis:
        analysis = MigrationAnalysis(
            by_type={
                collection_key(t): {"total": 0, "with_hierarchy": 0, "without_hierarchy": 0}
                for t in ENTITY_TYPES
            }
        )

        skipped = 0
        for entity_type, record in state.entities():
            try:
                _require_record(record)
                linked = bool(record.get("parent_id"))
                restorable = not linked and bool(legacy_parent_refs(entity_type, record))
                initialized = has_relational_fields(record)
            except Exception as exc:
                logger.exception("analysis failed for %r", record)
                analysis.issues.append(f"skipped {entity_type} record {record!r}: {exc}")
                skipped += 1
                continue

            bucket = analysis.by_type[collection_key(entity_type)]
            analysis.total_objects += 1
            bucket["total"] += 1

            if initialized:
                analysis.objects_with_hierarchy += 1
                bucket["with_hierarchy"] += 1
            else:
                analysis.objects_without_hierarchy += 1
                bucket["without_hierarchy"] += 1

            if linked:
                analysis.existing_connections += 1
            elif restorable:
                analysis.potential_connections += 1

        if skipped:
            analysis.recommendations.append("inspect the state for malformed records")

        if analysis.objects_without_hierarchy:
            analysis.issues.append(
                f"{analysis.objects_without_hierarchy} object(s) have no relational fields"
            )
            analysis.recommendations.append("initialize relational fields on every object")
        if analysis.potential_connections:
            analysis.issues.append(
                f"{analysis.potential_connections} link(s) can be restored from domain_id/project_id"
            )
            analysis.recommendations.append("restore links from legacy domain_id/project_id")
        if analysis.existing_connections:
            analysis.issues.append(
                f"{analysis.existing_connections} existing parent link(s) found"
            )
            analysis.recommendations.append("validate existing parent links")

        logger.info(
            "analysis: objects=%s existing=%s potential=%s",
            analysis.total_objects,
            analysis.existing_connections,
            analysis.potential_connections,
        )
        return analysis

    # ------------------------------------------------------------------
    # Preview
    # ------------------------------------------------------------------

    def preview(self, state: HierarchyState) -> MigrationPreview:
        preview = MigrationPreview()

        try:
            index = EntityIndex.build(state)

            for entity_type, record in state.entities():
                try:
                    self._plan_one(index, entity_type, record, preview)
                except Exception as exc:
                    logger.exception("preview failed for %r", record)
                    preview.warnings.append(f"skipped {entity_type} record {record!r}: {exc}")
        except Exception as exc:
            logger.exception("preview failed")
            return MigrationPreview(warnings=[f"preview failed: {exc}"])

        cost = self.config.migration
        preview.estimated_time = math.ceil(
            len(preview.will_be_created) * cost.seconds_per_init
            + len(preview.will_be_restored) * cost.seconds_per_restore
            + len(preview.will_be_validated) * cost.seconds_per_validate
        )
        return preview

    def _plan_one(
        self,
        index: EntityIndex,
        entity_type: str,
        record: Record,
        preview: MigrationPreview,
    ) -> None:
        _require_record(record)
        entity_id = record.get("id")
        parent_id = record.get("parent_id")

        if not has_relational_fields(record) and record.get("constraints") is None:
            preview.will_be_created.append(
                PlannedAction(entity_id, entity_type, "initialize relational fields")
            )

        if _is_restorable(entity_type, record):
            self._plan_restore(index, entity_type, record, preview)

        if parent_id or record.get("children"):
            preview.will_be_validated.append(
                PlannedAction(entity_id, entity_type, "validate existing links", parent_id)
            )

        if parent_id:
            preview.will_be_cleared.append(
                PlannedAction(
                    entity_id,
                    entity_type,
                    "clear parent link (clear_existing)",
                    parent_id,
                )
            )

    def _plan_restore(
        self,
        index: EntityIndex,
        entity_type: str,
        record: Record,
        preview: MigrationPreview,
    ) -> None:
        entity_id = record.get("id")
        for parent_type, parent_id in legacy_parent_refs(entity_type, record):
            if index.get(parent_id, parent_type) is None:
                preview.warnings.append(
                    f"{entity_id}: legacy {parent_type} {parent_id} does not exist"
                )
                continue
            if not self.registry.is_link_allowed(parent_type, entity_type):
                preview.warnings.append(
                    f"{entity_id}: link {parent_type} -> {entity_type} is not allowed"
                )
                continue
            if self.locks.is_locked(record, "hierarchy"):
                preview.warnings.append(f"{entity_id}: hierarchy locked, link kept")
            preview.will_be_restored.append(
                PlannedAction(
                    entity_id,
                    entity_type,
                    f"restore link to {parent_type}",
                    parent_id,
                )
            )
            return

    # ------------------------------------------------------------------
    # Migrate
    # ------------------------------------------------------------------

    def migrate(
        self,
        state: HierarchyState,
        options: MigrationOptions | None = None,
    ) -> MigrationResult:
        options = options or MigrationOptions()
        result = MigrationResult()

        try:
            if options.clear_existing and not options.dry_run:
                cleared = self._clear_existing(state, result)
                result.details.append(f"cleared {cleared} existing link(s)")

            records = list(state.entities())

            for entity_type, record in records:
                try:
                    _require_record(record)
                    if not options.dry_run:
                        init_hierarchy_fields(record, entity_type, self.config)
                    result.processed_objects += 1
                    result.details.append(f"initialized {entity_type} {record.get('id')}")
                except Exception as exc:
                    logger.exception("initialization failed for %s", record)
                    result.errors.append(f"failed to initialize {record!r}: {exc}")

            if options.restore_connections:
                for entity_type, record in records:
                    try:
                        self._restore_one(state, entity_type, record, options, result)
                    except Exception as exc:
                        logger.exception("restore failed for %s", record)
                        result.errors.append(f"failed to restore {record!r}: {exc}")

            if options.validate_connections and not options.dry_run:
                defects = self.validator.validate(state)
                if defects:
                    result.warnings.append(f"{len(defects)} validation defect(s) found")
                    result.errors.extend(d.message for d in defects)
                else:
                    result.validated_connections = sum(
                        1 for _, r in state.entities() if r.get("parent_id")
                    )
                    result.details.append("all links passed validation")
        except Exception as exc:
            logger.exception("migration aborted")
            result.errors.append(f"migration aborted: {exc}")

        result.success = not result.errors
        if result.success:
            logger.info(
                "migration finished: processed=%s restored=%s",
                result.processed_objects,
                result.restored_connections,
            )
        else:
            logger.warning("migration finished with %s error(s)", len(result.errors))
        return result

    def _restore_one(
        self,
        state: HierarchyState,
        entity_type: str,
        record: Record,
        options: MigrationOptions,
        result: MigrationResult,
    ) -> None:
        if not _is_restorable(entity_type, record):
            return

        entity_id = record.get("id")
        for parent_type, parent_id in legacy_parent_refs(entity_type, record):
            if options.dry_run:
                result.details.append(f"would restore {parent_id} -> {entity_id}")
                return

            outcome = self.engine.attach(
                state,
                parent_type=parent_type,
                parent_id=parent_id,
                child_type=entity_type,
                child_id=entity_id,
            )
            if outcome.ok:
                result.restored_connections += 1
                result.details.append(f"restored {parent_id} -> {entity_id}")
                return
            if outcome.error == "internal":
                result.errors.append(f"failed to restore {parent_id} -> {entity_id}")
                return
            result.warnings.append(
                f"could not restore {parent_id} -> {entity_id}: {outcome.error}"
            )
            if outcome.error != "not_found":
                return

    def _clear_existing(self, state: HierarchyState, result: MigrationResult) -> int:
        cleared = 0
        for entity_type, record in state.entities():
            try:
                _require_record(record)
                if record.get("parent_id"):
                    record["parent_id"] = None
                    cleared += 1
                if record.get("children") is not None:
                    record["children"] = default_children(entity_type, self.registry)
            except Exception as exc:
                logger.exception("clear failed for %r", record)
                result.errors.append(f"failed to clear {record!r}: {exc}")
        return cleared

    # ------------------------------------------------------------------
    # Rollback
    # ------------------------------------------------------------------

    def rollback(self, state: HierarchyState) -> RollbackResult:
        result = RollbackResult()

        try:
            for entity_type, record in state.entities():
                try:
                    if self._strip(entity_type, record):
                        result.cleared_objects += 1
                        result.details.append(f"cleared {entity_type} {record.get('id')}")
                except Exception as exc:
                    logger.exception("rollback failed for %s", record)
                    result.errors.append(f"failed to clear {record!r}: {exc}")
        except Exception as exc:
            logger.exception("rollback aborted")
            result.errors.append(f"rollback aborted: {exc}")

        result.success = not result.errors
        logger.info("rollback finished: cleared=%s", result.cleared_objects)
        return result

    def _strip(self, entity_type: str, record: Record) -> bool:
        cleared = False
        if record.get("parent_id"):
            record["parent_id"] = None
            cleared = True
        if record.get("children") is not None:
            record["children"] = default_children(entity_type, self.registry)
            cleared = True
        for key in ("locks", "constraints"):
            if key in record:
                del record[key]
                cleared = True
        return cleared

