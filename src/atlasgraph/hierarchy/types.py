from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from atlasgraph.config.settings import HierarchyRules

ENTITY_TYPES: Tuple[str, ...] = (
    "domain",
    "project",
    "task",
    "idea",
    "note",
    "checklist",
)

LOCK_KINDS: Tuple[str, ...] = ("move", "hierarchy")

# entity type -> state collection / children-map key
COLLECTION_KEYS: Dict[str, str] = {t: f"{t}s" for t in ENTITY_TYPES}

_TYPES_BY_COLLECTION: Dict[str, str] = {v: k for k, v in COLLECTION_KEYS.items()}


def collection_key(entity_type: str) -> str:
    return COLLECTION_KEYS.get(entity_type, f"{entity_type}s")


def type_for_collection(key: str) -> Optional[str]:
    return _TYPES_BY_COLLECTION.get(key)


class TypeRegistry:
    """
    Pure lookup over the allowed-edges table.

    Holds no state beyond the rule table it was constructed with.
    """

    def __init__(self, rules: HierarchyRules | None = None) -> None:
        self.rules = rules or HierarchyRules()

    def is_link_allowed(self, parent_type: str, child_type: str) -> bool:
        return child_type in self.rules.allowed_edges.get(parent_type, frozenset())

    def allowed_children(self, parent_type: str) -> List[str]:
        allowed = self.rules.allowed_edges.get(parent_type, frozenset())
        return [t for t in ENTITY_TYPES if t in allowed] + sorted(
            t for t in allowed if t not in ENTITY_TYPES
        )

    def allowed_parents(self, child_type: str) -> List[str]:
        return [
            parent
            for parent, children in self.rules.allowed_edges.items()
            if child_type in children
        ]

    def can_be_parent(self, entity_type: str) -> bool:
        return bool(self.rules.allowed_edges.get(entity_type))

    def max_depth_for_type(self, entity_type: str) -> int:
        """
        Longest chain of allowed edges below a type.

        Leaf types have depth 0. Cyclic rule tables are cut at the
        first repeated type.
        """

        def _height(current: str, seen: frozenset) -> int:
            best = 0
            for child in self.rules.allowed_edges.get(current, frozenset()):
                if child in seen:
                    continue
                best = max(best, 1 + _height(child, seen | {child}))
            return best

        return _height(entity_type, frozenset({entity_type}))
