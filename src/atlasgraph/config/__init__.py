"""
Configuration layer for atlasgraph.

This module defines the configuration contracts that control which
parent/child edges are legal, which layout hints new entities receive,
the structural limits reported by validation, and the migration cost model.

Configuration in atlasgraph is:
- Explicit (passed, not global)
- Typed (frozen dataclasses)
- Replaceable (test doubles and per-deployment rule tables)
"""

from atlasgraph.config.settings import (
    DEFAULT_ALLOWED_EDGES,
    DEFAULT_LAYOUT_HINTS,
    HierarchyRules,
    LayoutHints,
    LimitsConfig,
    MigrationCostModel,
    HierarchyConfig,
    default_config,
)

__all__ = [
    "DEFAULT_ALLOWED_EDGES",
    "DEFAULT_LAYOUT_HINTS",
    "HierarchyRules",
    "LayoutHints",
    "LimitsConfig",
    "MigrationCostModel",
    "HierarchyConfig",
    "default_config",
]
