"""
Stateless contract functions over a caller-supplied state.

Every function accepts either a `HierarchyState` or a raw state dict
(`{"domains": [...], "projects": [...], ...}`); raw dicts are mutated in
place. None of these functions raise on bad input: failures come back
as result values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Union

from atlasgraph.config.settings import HierarchyConfig, default_config
from atlasgraph.hierarchy.index import EntityIndex
from atlasgraph.hierarchy.locks import BatchLockReport, LockManager, LockStatistics
from atlasgraph.hierarchy.migration import (
    MigrationAnalysis,
    MigrationOptions,
    MigrationPreview,
    MigrationResult,
    Migrator,
    RollbackResult,
)
from atlasgraph.hierarchy.mutation import MutationEngine, MutationResult
from atlasgraph.hierarchy.query import HierarchyQuery
from atlasgraph.hierarchy.state import HierarchyState
from atlasgraph.hierarchy.stats import HierarchyStats, hierarchy_statistics
from atlasgraph.hierarchy.validation import FixReport, ValidationError, Validator

StateLike = Union[HierarchyState, Dict[str, Any]]


@dataclass(frozen=True)
class AttachRequest:
    parent_type: str
    parent_id: Any
    child_type: str
    child_id: Any


@dataclass(frozen=True)
class DetachRequest:
    child_type: str
    child_id: Any


@dataclass(frozen=True)
class MoveRequest:
    to_parent_type: str
    to_parent_id: Any
    child_type: str
    child_id: Any


def as_state(state: StateLike) -> HierarchyState:
    if isinstance(state, HierarchyState):
        return state
    return HierarchyState.from_dict(state)


class HierarchyEngine:
    """
    All hierarchy operations bound to one configuration.
    """

    def __init__(self, config: HierarchyConfig | None = None) -> None:
        self.config = config or default_config()
        self.locks = LockManager()
        self.mutations = MutationEngine(self.config, locks=self.locks)
        self.validator = Validator(self.config, locks=self.locks)
        self.migrator = Migrator(
            self.config,
            engine=self.mutations,
            validator=self.validator,
        )

    # -------------------- Mutation --------------------

    def attach(self, request: AttachRequest, state: StateLike) -> MutationResult:
        return self.mutations.attach(
            as_state(state),
            parent_type=request.parent_type,
            parent_id=request.parent_id,
            child_type=request.child_type,
            child_id=request.child_id,
        )

    def detach(self, request: DetachRequest, state: StateLike) -> MutationResult:
        return self.mutations.detach(
            as_state(state),
            child_type=request.child_type,
            child_id=request.child_id,
        )

    def move(self, request: MoveRequest, state: StateLike) -> MutationResult:
        return self.mutations.move(
            as_state(state),
            to_parent_type=request.to_parent_type,
            to_parent_id=request.to_parent_id,
            child_type=request.child_type,
            child_id=request.child_id,
        )

    # -------------------- Locks --------------------

    def set_lock(self, entity_id: Any, kind: str, value: bool, state: StateLike) -> bool:
        return self.locks.set_lock(as_state(state).find(entity_id), kind, value)

    def batch_set_locks(
        self,
        entity_ids: List[Any],
        kind: str,
        value: bool,
        state: StateLike,
    ) -> BatchLockReport:
        return self.locks.batch_set_locks(entity_ids, kind, value, as_state(state))

    def lock_statistics(self, state: StateLike) -> LockStatistics:
        return self.locks.lock_statistics(as_state(state))

    # -------------------- Validation --------------------

    def validate(self, state: StateLike) -> List[ValidationError]:
        return self.validator.validate(as_state(state))

    def fix(self, errors: List[ValidationError], state: StateLike) -> FixReport:
        return self.validator.fix_validation_errors(errors, as_state(state))

    # -------------------- Queries --------------------

    def query(self, state: StateLike) -> HierarchyQuery:
        return HierarchyQuery(EntityIndex.build(as_state(state)))

    def statistics(self, state: StateLike) -> HierarchyStats:
        return hierarchy_statistics(as_state(state))

    # -------------------- Migration --------------------

    def analyze(self, state: StateLike) -> MigrationAnalysis:
        return self.migrator.analyze(as_state(state))

    def preview(self, state: StateLike) -> MigrationPreview:
        return self.migrator.preview(as_state(state))

    def migrate(
        self,
        state: StateLike,
        options: MigrationOptions | None = None,
    ) -> MigrationResult:
        return self.migrator.migrate(as_state(state), options)

    def rollback(self, state: StateLike) -> RollbackResult:
        return self.migrator.rollback(as_state(state))


# ---------------------------------------------------------------------
# Module-level contract functions
# ---------------------------------------------------------------------


def attach(
    request: AttachRequest,
    state: StateLike,
    config: HierarchyConfig | None = None,
) -> MutationResult:
    return HierarchyEngine(config).attach(request, state)


def detach(
    request: DetachRequest,
    state: StateLike,
    config: HierarchyConfig | None = None,
) -> MutationResult:
    return HierarchyEngine(config).detach(request, state)


def move(
    request: MoveRequest,
    state: StateLike,
    config: HierarchyConfig | None = None,
) -> MutationResult:
    return HierarchyEngine(config).move(request, state)


def validate_hierarchy(
    state: StateLike,
    config: HierarchyConfig | None = None,
) -> List[ValidationError]:
    return HierarchyEngine(config).validate(state)


def fix_validation_errors(
    errors: List[ValidationError],
    state: StateLike,
    config: HierarchyConfig | None = None,
) -> FixReport:
    return HierarchyEngine(config).fix(errors, state)


def analyze_existing_data(
    state: StateLike,
    config: HierarchyConfig | None = None,
) -> MigrationAnalysis:
    return HierarchyEngine(config).analyze(state)


def preview_migration(
    state: StateLike,
    config: HierarchyConfig | None = None,
) -> MigrationPreview:
    return HierarchyEngine(config).preview(state)


def migrate_to_hierarchy_v2(
    state: StateLike,
    options: MigrationOptions | None = None,
    config: HierarchyConfig | None = None,
) -> MigrationResult:
    return HierarchyEngine(config).migrate(state, options)


def rollback_migration(
    state: StateLike,
    config: HierarchyConfig | None = None,
) -> RollbackResult:
    return HierarchyEngine(config).rollback(state)
