from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import FrozenSet, Iterable, Mapping

# ---------------------------------------------------------------------
# Allowed parent -> child edges
# ---------------------------------------------------------------------

DEFAULT_ALLOWED_EDGES: Mapping[str, FrozenSet[str]] = MappingProxyType(
    {
        "domain": frozenset({"project", "task", "idea", "note", "checklist"}),
        "project": frozenset({"task", "idea", "note", "checklist"}),
        "task": frozenset({"idea", "note", "checklist"}),
        "idea": frozenset(),
        "note": frozenset(),
        "checklist": frozenset(),
    }
)


@dataclass(frozen=True)
class HierarchyRules:
    """
    Which entity types may parent which.

    Keys are parent types, values the set of child types they may contain.
    A type missing from the table can parent nothing.
    """

    allowed_edges: Mapping[str, FrozenSet[str]] = field(
        default_factory=lambda: DEFAULT_ALLOWED_EDGES
    )

    @staticmethod
    def from_mapping(table: Mapping[str, Iterable[str]]) -> "HierarchyRules":
        return HierarchyRules(
            allowed_edges=MappingProxyType(
                {
                    str(parent): frozenset(str(c) for c in children)
                    for parent, children in table.items()
                }
            )
        )


# ---------------------------------------------------------------------
# Layout hints (stored, never interpreted)
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class LayoutHints:
    max_radius: float
    orbit_radius: float
    auto_layout: bool

    def as_constraints(self) -> dict:
        return {
            "max_radius": self.max_radius,
            "orbit_radius": self.orbit_radius,
            "auto_layout": self.auto_layout,
        }


DEFAULT_LAYOUT_HINTS: Mapping[str, LayoutHints] = MappingProxyType(
    {
        "domain": LayoutHints(max_radius=200, orbit_radius=150, auto_layout=True),
        "project": LayoutHints(max_radius=100, orbit_radius=80, auto_layout=True),
        "task": LayoutHints(max_radius=50, orbit_radius=30, auto_layout=False),
        "idea": LayoutHints(max_radius=40, orbit_radius=25, auto_layout=False),
        "note": LayoutHints(max_radius=35, orbit_radius=20, auto_layout=False),
        "checklist": LayoutHints(max_radius=40, orbit_radius=25, auto_layout=False),
    }
)

FALLBACK_LAYOUT_HINTS = LayoutHints(max_radius=50, orbit_radius=30, auto_layout=False)


# ---------------------------------------------------------------------
# Global structural limits
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class LimitsConfig:
    """
    Soft caps reported by the validator as limit-exceeded defects.
    """

    max_children_per_parent: int = 1000
    max_hierarchy_depth: int = 5


# ---------------------------------------------------------------------
# Migration time estimate
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class MigrationCostModel:
    """
    Coarse per-action cost (seconds) used by the migration preview.
    """

    seconds_per_init: float = 0.1
    seconds_per_restore: float = 0.2
    seconds_per_validate: float = 0.05


# ---------------------------------------------------------------------
# Root configuration object
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class HierarchyConfig:
    """
    Root configuration object for atlasgraph.

    This object is intended to be:
    - constructed explicitly
    - passed into every engine component
    - treated as immutable policy
    """

    rules: HierarchyRules = field(default_factory=HierarchyRules)
    layout: Mapping[str, LayoutHints] = field(default_factory=lambda: DEFAULT_LAYOUT_HINTS)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    migration: MigrationCostModel = field(default_factory=MigrationCostModel)

    def layout_for(self, entity_type: str) -> LayoutHints:
        return self.layout.get(entity_type, FALLBACK_LAYOUT_HINTS)


def default_config() -> HierarchyConfig:
    return HierarchyConfig()
