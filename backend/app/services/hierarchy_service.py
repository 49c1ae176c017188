from __future__ import annotations

import copy
import logging
import threading
from typing import Any, Dict, List

from atlasgraph.api import (
    AttachRequest,
    DetachRequest,
    HierarchyEngine,
    MoveRequest,
)
from atlasgraph.config.settings import HierarchyConfig
from atlasgraph.hierarchy.migration import MigrationOptions
from atlasgraph.hierarchy.mutation import MutationResult
from atlasgraph.hierarchy.state import HierarchyState
from atlasgraph.hierarchy.validation import ValidationError

logger = logging.getLogger("atlasgraph.service")


class HierarchyService:
    """
    Owner of the in-memory hierarchy state for the HTTP service.

    This is the ONLY place where:
    - the shared state is read or replaced
    - engine operations are serialized

    Sync endpoints run in a threadpool, so every call holds `_lock` for
    its whole duration.
    """

    def __init__(
        self,
        *,
        state: HierarchyState | None = None,
        config: HierarchyConfig | None = None,
    ) -> None:
        self.state = state or HierarchyState()
        self.engine = HierarchyEngine(config)
        self._lock = threading.Lock()

    # ---------------- State ----------------

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self.state.to_dict())

    def replace(self, payload: Dict[str, Any]) -> int:
        fresh = HierarchyState.from_dict(copy.deepcopy(payload))
        with self._lock:
            self.state = fresh
            count = fresh.count()
        logger.info("state replaced with %s entities", count)
        return count

    # ---------------- Mutations ----------------

    def attach(self, request: AttachRequest) -> MutationResult:
        with self._lock:
            return self.engine.attach(request, self.state)

    def detach(self, request: DetachRequest) -> MutationResult:
        with self._lock:
            return self.engine.detach(request, self.state)

    def move(self, request: MoveRequest) -> MutationResult:
        with self._lock:
            return self.engine.move(request, self.state)

    # ---------------- Validation ----------------

    def validate(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [e.to_dict() for e in self.engine.validate(self.state)]

    def fix(self, errors: List[Dict[str, Any]] | None = None) -> Dict[str, Any]:
        """
        Repair the given defects, or every defect the validator finds now.
        """
        with self._lock:
            if errors:
                defects = [_defect_from_dict(e) for e in errors]
            else:
                defects = self.engine.validate(self.state)
            return self.engine.fix(defects, self.state).to_dict()

    def statistics(self) -> Dict[str, Any]:
        with self._lock:
            return self.engine.statistics(self.state).to_dict()

    # ---------------- Locks ----------------

    def batch_set_locks(
        self,
        entity_ids: List[Any],
        kind: str,
        value: bool,
    ) -> Dict[str, Any]:
        with self._lock:
            return self.engine.batch_set_locks(entity_ids, kind, value, self.state).to_dict()

    def lock_statistics(self) -> Dict[str, Any]:
        with self._lock:
            return self.engine.lock_statistics(self.state).to_dict()

    # ---------------- Migration ----------------

    def analyze(self) -> Dict[str, Any]:
        with self._lock:
            return self.engine.analyze(self.state).to_dict()

    def preview(self) -> Dict[str, Any]:
        with self._lock:
            return self.engine.preview(self.state).to_dict()

    def migrate(self, options: MigrationOptions) -> Dict[str, Any]:
        with self._lock:
            return self.engine.migrate(self.state, options).to_dict()

    def rollback(self) -> Dict[str, Any]:
        with self._lock:
            return self.engine.rollback(self.state).to_dict()


def _defect_from_dict(payload: Dict[str, Any]) -> ValidationError:
    return ValidationError(
        kind=payload["kind"],
        object_id=payload.get("object_id"),
        message=payload.get("message", ""),
        parent_id=payload.get("parent_id"),
        child_id=payload.get("child_id"),
        field_path=payload.get("field"),
    )
