from __future__ import annotations

from typing import Any, Dict, List

from atlasgraph.hierarchy.index import EntityIndex
from atlasgraph.hierarchy.state import Record
from atlasgraph.hierarchy.traversal import CycleGuard, guarded_walk
from atlasgraph.hierarchy.types import ENTITY_TYPES, collection_key


class HierarchyQuery:
    """
    Read-only navigation over one index snapshot.

    All walks go through `guarded_walk`, so cyclic data yields finite
    (if partial) answers rather than hanging.
    """

    def __init__(self, index: EntityIndex) -> None:
        self.index = index
        self.guard = CycleGuard(index)

    def get_parent(self, entity_id: Any) -> Record | None:
        parent_id = self.index.parent_id(entity_id)
        if parent_id is None:
            return None
        return self.index.get(parent_id)

    def get_children(self, entity_id: Any) -> Dict[str, List[Any]]:
        grouped: Dict[str, List[Any]] = {collection_key(t): [] for t in ENTITY_TYPES}
        for child_id in self.index.children_of(entity_id):
            key = collection_key(self.index.type_of(child_id) or "unknown")
            grouped.setdefault(key, []).append(child_id)
        return grouped

    def get_all_descendants(self, entity_id: Any) -> List[Any]:
        return list(guarded_walk(entity_id, self.index.children_of))

    def get_root(self, entity_id: Any) -> Record | None:
        if entity_id not in self.index:
            return None
        ancestors = self.guard.get_ancestors(entity_id)
        root_id = ancestors[-1] if ancestors else entity_id
        return self.index.get(root_id)

    def get_depth(self, entity_id: Any) -> int:
        """
        Number of ancestors; 0 for roots and unknown ids.
        """
        if entity_id not in self.index:
            return 0
        return len(self.guard.get_ancestors(entity_id))

    def get_path(self, entity_id: Any) -> List[Any]:
        """
        Ids from the root down to the entity itself.
        """
        if entity_id not in self.index:
            return []
        ancestors = self.guard.get_ancestors(entity_id)
        return list(reversed(ancestors)) + [entity_id]
