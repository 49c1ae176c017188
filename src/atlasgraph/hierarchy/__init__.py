"""
Hierarchy subsystem for atlasgraph.

Typed entities (domain, project, task, idea, note, checklist) linked by
parent -> child edges, with:
- type-constrained, acyclic linking
- lock-respecting mutation
- full-graph validation and conservative repair
- migration of legacy domain_id/project_id pointers
"""

from atlasgraph.hierarchy.types import ENTITY_TYPES, LOCK_KINDS, TypeRegistry
from atlasgraph.hierarchy.state import HierarchyState
from atlasgraph.hierarchy.fields import init_hierarchy_fields
from atlasgraph.hierarchy.index import EntityIndex
from atlasgraph.hierarchy.traversal import CycleGuard, guarded_walk
from atlasgraph.hierarchy.query import HierarchyQuery
from atlasgraph.hierarchy.locks import LockManager
from atlasgraph.hierarchy.mutation import MutationEngine, MutationResult
from atlasgraph.hierarchy.validation import Validator, ValidationError, FixReport
from atlasgraph.hierarchy.migration import Migrator, MigrationOptions
from atlasgraph.hierarchy.stats import HierarchyStats, hierarchy_statistics

__all__ = [
    "ENTITY_TYPES",
    "LOCK_KINDS",
    "TypeRegistry",
    "HierarchyState",
    "init_hierarchy_fields",
    "EntityIndex",
    "CycleGuard",
    "guarded_walk",
    "HierarchyQuery",
    "LockManager",
    "MutationEngine",
    "MutationResult",
    "Validator",
    "ValidationError",
    "FixReport",
    "Migrator",
    "MigrationOptions",
    "HierarchyStats",
    "hierarchy_statistics",
]
