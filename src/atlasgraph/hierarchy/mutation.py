from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Literal, Optional, Tuple

from atlasgraph.config.settings import HierarchyConfig, default_config
from atlasgraph.hierarchy.index import EntityIndex
from atlasgraph.hierarchy.locks import LockManager
from atlasgraph.hierarchy.state import HierarchyState, Record
from atlasgraph.hierarchy.traversal import CycleGuard
from atlasgraph.hierarchy.types import TypeRegistry, collection_key
from atlasgraph.utils.time import iso_timestamp

logger = logging.getLogger("atlasgraph.mutation")

ErrorKind = Literal["not_found", "disallowed", "cycle", "locked", "internal"]


@dataclass(frozen=True)
class MutationResult:
    """
    Outcome of attach / detach / move.

    Failures carry an error kind and leave the state untouched.
    """

    ok: bool
    error: Optional[ErrorKind] = None
    child: Optional[Record] = None
    from_parent_id: Any = None
    to_parent_id: Any = None

    @staticmethod
    def fail(error: ErrorKind) -> "MutationResult":
        return MutationResult(ok=False, error=error)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"ok": self.ok}
        if self.error is not None:
            payload["error"] = self.error
        if self.child is not None:
            payload["child"] = self.child
        if self.ok:
            payload["from"] = self.from_parent_id
            payload["to"] = self.to_parent_id
        return payload


# ---------------------------------------------------------------------
# Denormalized ancestor rules
# ---------------------------------------------------------------------

# How attach sets (project_id, domain_id) on the child:
#   "parent"  -> the parent's own id
#   "inherit" -> copy the same field from the parent
#   "clear"   -> None
#   None      -> leave untouched
_PARENT = "parent"
_INHERIT = "inherit"
_CLEAR = "clear"

DenormRule = Tuple[Optional[str], Optional[str]]

_LEAF_TYPES = ("task", "idea", "note", "checklist")

DENORMALIZATION_RULES: Dict[Tuple[str, str], DenormRule] = {
    ("domain", "project"): (None, _PARENT),
    **{("domain", t): (_CLEAR, _PARENT) for t in _LEAF_TYPES},
    **{("project", t): (_PARENT, _INHERIT) for t in _LEAF_TYPES},
    **{("task", t): (_INHERIT, _INHERIT) for t in ("idea", "note", "checklist")},
}

# Rules for edges a custom rule table allows but the table above lacks
_RULES_BY_PARENT: Dict[str, DenormRule] = {
    "domain": (_CLEAR, _PARENT),
    "project": (_PARENT, _INHERIT),
}

# Ancestor fields detach clears, by child type
DETACH_CLEARS: Dict[str, Tuple[str, ...]] = {
    "domain": (),
    "project": ("domain_id",),
}
_DETACH_DEFAULT: Tuple[str, ...] = ("project_id", "domain_id")


def ancestor_fields(child_type: str) -> Tuple[str, ...]:
    return DETACH_CLEARS.get(child_type, _DETACH_DEFAULT)


def denormalization_rule(parent_type: str, child_type: str) -> DenormRule:
    rule = DENORMALIZATION_RULES.get((parent_type, child_type))
    if rule is None:
        rule = _RULES_BY_PARENT.get(parent_type, (_INHERIT, _INHERIT))
    if child_type == "project":
        rule = (None, rule[1])
    return rule


def _resolve(action: Optional[str], field_name: str, parent: Record) -> Tuple[bool, Any]:
    if action is None:
        return False, None
    if action == _PARENT:
        return True, parent.get("id")
    if action == _INHERIT:
        return True, parent.get(field_name)
    return True, None


# ---------------------------------------------------------------------
# Field snapshots for transactional moves
# ---------------------------------------------------------------------


class _FieldSnapshot:
    """
    Copies of the relational fields of a few records, restorable at once.
    """

    FIELDS = ("parent_id", "project_id", "domain_id", "children", "updated_at")

    def __init__(self, records: Iterable[Optional[Record]]) -> None:
        self._saved: List[Tuple[Record, Dict[str, Any]]] = []
        seen = set()
        for record in records:
            if record is None or id(record) in seen:
                continue
            seen.add(id(record))
            self._saved.append(
                (
                    record,
                    {f: copy.deepcopy(record[f]) for f in self.FIELDS if f in record},
                )
            )

    def restore(self) -> None:
        for record, saved in self._saved:
            for f in self.FIELDS:
                if f in saved:
                    record[f] = saved[f]
                else:
                    record.pop(f, None)


class MutationEngine:
    """
    The only code path that changes relational fields.

    Every operation consults the type registry, the cycle guard and the
    lock manager before writing, and reports failures as result values.
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

    def attach(
        self,
        state: HierarchyState,
        *,
        parent_type: str,
        parent_id: Any,
        child_type: str,
        child_id: Any,
    ) -> MutationResult:
        try:
            index = EntityIndex.build(state)
            rejected = self._check_attach(
                index, parent_type, parent_id, child_type, child_id
            )
            if rejected is not None:
                self._log_rejection("attach", rejected, parent_id, child_id)
                return rejected

            child = index.get(child_id, child_type)
            parent = index.get(parent_id, parent_type)
            previous = index.parent_id(child_id)

            if previous != parent_id:
                self._unlink(index, child_type, child_id, previous)
            self._link(parent_type, parent, child_type, child)

            logger.debug("attached %s %s under %s %s", child_type, child_id, parent_type, parent_id)
            return MutationResult(
                ok=True,
                child=child,
                from_parent_id=previous,
                to_parent_id=parent_id,
            )
        except Exception:
            logger.exception("attach failed for %s %s", child_type, child_id)
            return MutationResult.fail("internal")

    def detach(
        self,
        state: HierarchyState,
        *,
        child_type: str,
        child_id: Any,
    ) -> MutationResult:
        try:
            index = EntityIndex.build(state)
            child = index.get(child_id, child_type)
            if child is None:
                rejected = MutationResult.fail("not_found")
            elif not self.locks.can_change_hierarchy(child):
                rejected = MutationResult.fail("locked")
            else:
                rejected = None

            if rejected is not None:
                self._log_rejection("detach", rejected, None, child_id)
                return rejected

            previous = index.parent_id(child_id)
            self._unlink(index, child_type, child_id, previous)
            self._clear_ancestors(child_type, child)
            child["updated_at"] = iso_timestamp()

            logger.debug("detached %s %s from %s", child_type, child_id, previous)
            return MutationResult(
                ok=True,
                child=child,
                from_parent_id=previous,
                to_parent_id=None,
            )
        except Exception:
            logger.exception("detach failed for %s %s", child_type, child_id)
            return MutationResult.fail("internal")

    def move(
        self,
        state: HierarchyState,
        *,
        to_parent_type: str,
        to_parent_id: Any,
        child_type: str,
        child_id: Any,
    ) -> MutationResult:
        """
        Re-parent a child as one transaction.

        All checks run against the destination before anything is written.
        Detach and attach then commit together: if the attach half cannot
        complete, the snapshot taken before the first write is restored and
        the child keeps its original parent.
        """
        try:
            index = EntityIndex.build(state)
            rejected = self._check_attach(
                index, to_parent_type, to_parent_id, child_type, child_id
            )
            current = index.parent_id(child_id)

            if rejected is not None and rejected.error in ("not_found", "locked"):
                self._log_rejection("move", rejected, to_parent_id, child_id)
                return rejected

            child = index.get(child_id, child_type)
            if current == to_parent_id:
                return MutationResult(
                    ok=True,
                    child=child,
                    from_parent_id=current,
                    to_parent_id=to_parent_id,
                )

            if rejected is not None:
                self._log_rejection("move", rejected, to_parent_id, child_id)
                return rejected

            parent = index.get(to_parent_id, to_parent_type)
            previous_parent = index.get(current) if current is not None else None
            snapshot = _FieldSnapshot([child, previous_parent, parent])

            try:
                self._unlink(index, child_type, child_id, current)
                self._clear_ancestors(child_type, child)

                staged = EntityIndex.build(state)
                late = self._check_attach(
                    staged, to_parent_type, to_parent_id, child_type, child_id
                )
                if late is not None:
                    snapshot.restore()
                    self._log_rejection("move", late, to_parent_id, child_id)
                    return late

                self._link(to_parent_type, staged.get(to_parent_id), child_type, child)
            except Exception:
                snapshot.restore()
                raise

            logger.debug(
                "moved %s %s from %s to %s",
                child_type,
                child_id,
                current,
                to_parent_id,
            )
            return MutationResult(
                ok=True,
                child=child,
                from_parent_id=current,
                to_parent_id=to_parent_id,
            )
        except Exception:
            logger.exception("move failed for %s %s", child_type, child_id)
            return MutationResult.fail("internal")

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def _check_attach(
        self,
        index: EntityIndex,
        parent_type: str,
        parent_id: Any,
        child_type: str,
        child_id: Any,
    ) -> Optional[MutationResult]:
        child = index.get(child_id, child_type)
        parent = index.get(parent_id, parent_type)

        if child is None or parent is None:
            return MutationResult.fail("not_found")
        if not self.locks.can_change_hierarchy(child):
            return MutationResult.fail("locked")
        if CycleGuard(index).would_create_cycle(parent_id, child_id):
            return MutationResult.fail("cycle")
        if not self.registry.is_link_allowed(parent_type, child_type):
            return MutationResult.fail("disallowed")
        return None

    def _log_rejection(
        self,
        operation: str,
        result: MutationResult,
        parent_id: Any,
        child_id: Any,
    ) -> None:
        logger.info(
            "%s rejected (%s): parent=%s child=%s",
            operation,
            result.error,
            parent_id,
            child_id,
        )

    # ------------------------------------------------------------------
    # Field writes
    # ------------------------------------------------------------------

    def _link(
        self,
        parent_type: str,
        parent: Record,
        child_type: str,
        child: Record,
    ) -> None:
        now = iso_timestamp()
        child["parent_id"] = parent["id"]

        project_action, domain_action = denormalization_rule(parent_type, child_type)
        write, value = _resolve(project_action, "project_id", parent)
        if write:
            child["project_id"] = value
        write, value = _resolve(domain_action, "domain_id", parent)
        if write:
            child["domain_id"] = value

        children = parent.get("children")
        if isinstance(children, dict):
            bucket = children.setdefault(collection_key(child_type), [])
            if isinstance(bucket, list) and child["id"] not in bucket:
                bucket.append(child["id"])

        child["updated_at"] = now
        parent["updated_at"] = now

    def _unlink(
        self,
        index: EntityIndex,
        child_type: str,
        child_id: Any,
        previous_parent_id: Any,
    ) -> None:
        if previous_parent_id is None:
            return
        previous = index.get(previous_parent_id)
        if previous is None:
            return

        children = previous.get("children")
        if not isinstance(children, dict):
            return

        removed = False
        for ids in children.values():
            if isinstance(ids, list) and child_id in ids:
                ids[:] = [i for i in ids if i != child_id]
                removed = True
        if removed:
            previous["updated_at"] = iso_timestamp()

    def _clear_ancestors(self, child_type: str, child: Record) -> None:
        child["parent_id"] = None
        for field_name in ancestor_fields(child_type):
            if field_name in child:
                child[field_name] = None
