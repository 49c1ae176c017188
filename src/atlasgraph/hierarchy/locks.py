from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from atlasgraph.hierarchy.fields import default_locks
from atlasgraph.hierarchy.state import HierarchyState, Record
from atlasgraph.hierarchy.types import ENTITY_TYPES, LOCK_KINDS, collection_key

logger = logging.getLogger("atlasgraph.locks")


@dataclass(frozen=True)
class LockStatistics:
    total: int
    move_locked: int
    hierarchy_locked: int
    both_locked: int
    unlocked: int
    by_type: Dict[str, Dict[str, int]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "move_locked": self.move_locked,
            "hierarchy_locked": self.hierarchy_locked,
            "both_locked": self.both_locked,
            "unlocked": self.unlocked,
            "by_type": {k: dict(v) for k, v in self.by_type.items()},
        }


@dataclass
class BatchLockReport:
    """
    Per-id outcome of a batch lock change.
    """

    success: int = 0
    failed: int = 0
    details: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "failed": self.failed,
            "details": list(self.details),
        }


@dataclass(frozen=True)
class PermissionCheck:
    allowed: bool
    reason: str
    locks: List[str]
    object_id: Any


class LockManager:
    """
    Predicates and mutators over the `locks` field of a record.

    Locks gate logical permission, not concurrent access. Unknown lock
    kinds are a no-op returning False; nothing here raises.
    """

    # ------------------------------------------------------------------
    # Single-entity API
    # ------------------------------------------------------------------

    def is_locked(self, entity: Optional[Record], kind: str) -> bool:
        if not isinstance(entity, dict):
            return False
        if kind not in LOCK_KINDS:
            logger.warning("unknown lock kind %r", kind)
            return False
        locks = entity.get("locks")
        if not isinstance(locks, dict):
            return False
        return locks.get(kind) is True

    def set_lock(self, entity: Optional[Record], kind: str, value: bool) -> bool:
        if not isinstance(entity, dict):
            return False
        if kind not in LOCK_KINDS:
            logger.warning("unknown lock kind %r", kind)
            return False

        locks = entity.get("locks")
        if not isinstance(locks, dict):
            locks = default_locks()
            entity["locks"] = locks

        locks[kind] = value is True
        logger.debug(
            "lock %s %s for %s",
            kind,
            "set" if value is True else "cleared",
            entity.get("id"),
        )
        return True

    def can_move(self, entity: Optional[Record]) -> bool:
        if not isinstance(entity, dict):
            return False
        return not self.is_locked(entity, "move")

    def can_change_hierarchy(self, entity: Optional[Record]) -> bool:
        if not isinstance(entity, dict):
            return False
        return not self.is_locked(entity, "hierarchy")

    # ------------------------------------------------------------------
    # Bulk helpers
    # ------------------------------------------------------------------

    def list_locked(
        self,
        state: HierarchyState,
        kind: str | None = None,
    ) -> List[Record]:
        kinds = (kind,) if kind else LOCK_KINDS
        return [
            record
            for _, record in state.entities()
            if any(self.is_locked(record, k) for k in kinds)
        ]

    def lock_statistics(self, state: HierarchyState) -> LockStatistics:
        by_type = {
            collection_key(t): {"total": 0, "move_locked": 0, "hierarchy_locked": 0}
            for t in ENTITY_TYPES
        }
        total = move = hierarchy = both = unlocked = 0

        for entity_type, record in state.entities():
            total += 1
            move_locked = self.is_locked(record, "move")
            hierarchy_locked = self.is_locked(record, "hierarchy")

            move += move_locked
            hierarchy += hierarchy_locked
            both += move_locked and hierarchy_locked
            unlocked += not (move_locked or hierarchy_locked)

            bucket = by_type[collection_key(entity_type)]
            bucket["total"] += 1
            bucket["move_locked"] += move_locked
            bucket["hierarchy_locked"] += hierarchy_locked

        return LockStatistics(
            total=total,
            move_locked=move,
            hierarchy_locked=hierarchy,
            both_locked=both,
            unlocked=unlocked,
            by_type=by_type,
        )

    def batch_set_locks(
        self,
        entity_ids: Iterable[Any],
        kind: str,
        value: bool,
        state: HierarchyState,
    ) -> BatchLockReport:
        report = BatchLockReport()
        verb = "locked" if value else "unlocked"

        for entity_id in entity_ids:
            try:
                record = state.find(entity_id)
                if record is None:
                    report.failed += 1
                    report.details.append(f"{entity_id}: not found")
                    continue

                if self.set_lock(record, kind, value):
                    report.success += 1
                    report.details.append(f"{entity_id}: {kind} {verb}")
                else:
                    report.failed += 1
                    report.details.append(f"{entity_id}: unknown lock kind {kind!r}")
            except Exception as exc:
                logger.exception("batch lock failed for %s", entity_id)
                report.failed += 1
                report.details.append(f"{entity_id}: {exc}")

        logger.info(
            "batch %s %s: success=%s failed=%s",
            kind,
            verb,
            report.success,
            report.failed,
        )
        return report

    # ------------------------------------------------------------------
    # Permission checks
    # ------------------------------------------------------------------

    def check_move_permissions(
        self,
        entity_id: Any,
        state: HierarchyState,
    ) -> PermissionCheck:
        record = state.find(entity_id)
        if record is None:
            return PermissionCheck(False, "object not found", [], entity_id)

        held: List[str] = []
        reason = ""
        if self.is_locked(record, "move"):
            held.append("move")
            reason = "object is locked against moving"
        if record.get("parent_id") and self.is_locked(record, "hierarchy"):
            held.append("hierarchy")
            reason = "object is locked against hierarchy changes"

        return PermissionCheck(not held, reason, held, entity_id)

    def check_hierarchy_permissions(
        self,
        entity_id: Any,
        state: HierarchyState,
    ) -> PermissionCheck:
        record = state.find(entity_id)
        if record is None:
            return PermissionCheck(False, "object not found", [], entity_id)

        if self.is_locked(record, "hierarchy"):
            return PermissionCheck(
                False,
                "object is locked against hierarchy changes",
                ["hierarchy"],
                entity_id,
            )
        return PermissionCheck(True, "", [], entity_id)
