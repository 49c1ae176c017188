"""
atlasgraph
==========

A hierarchy engine for a forest of typed entities (domains, projects,
tasks, ideas, notes, checklists).

Core idea:
- Callers own the records; the engine owns the links between them.

Public API:
- HierarchyEngine
- HierarchyState
- HierarchyConfig
- attach / detach / move
- validate_hierarchy / fix_validation_errors
- analyze_existing_data / preview_migration
- migrate_to_hierarchy_v2 / rollback_migration
"""

from atlasgraph.config.settings import HierarchyConfig, default_config
from atlasgraph.hierarchy.state import HierarchyState
from atlasgraph.hierarchy.migration import MigrationOptions
from atlasgraph.api import (
    HierarchyEngine,
    AttachRequest,
    DetachRequest,
    MoveRequest,
    attach,
    detach,
    move,
    validate_hierarchy,
    fix_validation_errors,
    analyze_existing_data,
    preview_migration,
    migrate_to_hierarchy_v2,
    rollback_migration,
)

__all__ = [
    "HierarchyConfig",
    "default_config",
    "HierarchyState",
    "MigrationOptions",
    "HierarchyEngine",
    "AttachRequest",
    "DetachRequest",
    "MoveRequest",
    "attach",
    "detach",
    "move",
    "validate_hierarchy",
    "fix_validation_errors",
    "analyze_existing_data",
    "preview_migration",
    "migrate_to_hierarchy_v2",
    "rollback_migration",
]

__version__ = "0.1.0"
