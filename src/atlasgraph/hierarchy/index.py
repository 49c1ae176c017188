from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import networkx as nx

from atlasgraph.hierarchy.state import HierarchyState, Record


def is_hashable(value: Any) -> bool:
    try:
        hash(value)
    except TypeError:
        return False
    return True


def resolve_parent_id(record: Record, entity_type: str) -> Optional[Any]:
    """
    Effective parent of a record.

    `parent_id` wins; legacy records without it fall back to their
    denormalized `project_id` then `domain_id`.
    """
    parent_id = record.get("parent_id")
    if parent_id:
        return parent_id
    if entity_type not in ("domain", "project") and record.get("project_id"):
        return record["project_id"]
    if entity_type != "domain" and record.get("domain_id"):
        return record["domain_id"]
    return None


@dataclass
class EntityIndex:
    """
    Snapshot of the hierarchy at one point in time.

    Built fresh per call, never maintained incrementally. The graph holds
    one node per indexed entity and one parent -> child edge per resolved
    link whose parent exists.
    """

    by_id: Dict[Any, Record] = field(default_factory=dict)
    types: Dict[Any, str] = field(default_factory=dict)
    parent_of: Dict[Any, Any] = field(default_factory=dict)
    duplicates: List[Any] = field(default_factory=list)
    # Ids that cannot key the index (lists, dicts), in state order
    unhashable: List[Any] = field(default_factory=list)
    graph: nx.DiGraph = field(default_factory=nx.DiGraph)

    # -------------------- Construction --------------------

    @staticmethod
    def build(state: HierarchyState) -> "EntityIndex":
        index = EntityIndex()

        for entity_type, record in state.entities():
            if not isinstance(record, dict):
                continue
            entity_id = record.get("id")
            if entity_id is None:
                continue
            if not is_hashable(entity_id):
                index.unhashable.append(entity_id)
                continue
            if entity_id in index.by_id:
                index.duplicates.append(entity_id)
                continue
            index.by_id[entity_id] = record
            index.types[entity_id] = entity_type
            index.graph.add_node(entity_id)

        for entity_id, record in index.by_id.items():
            parent_id = resolve_parent_id(record, index.types[entity_id])
            if parent_id is None:
                continue
            index.parent_of[entity_id] = parent_id
            if is_hashable(parent_id) and parent_id in index.by_id:
                index.graph.add_edge(parent_id, entity_id)

        return index

    # -------------------- Lookup --------------------

    def get(self, entity_id: Any, entity_type: str | None = None) -> Record | None:
        if not is_hashable(entity_id):
            return None
        record = self.by_id.get(entity_id)
        if record is None:
            return None
        if entity_type is not None and self.types.get(entity_id) != entity_type:
            return None
        return record

    def type_of(self, entity_id: Any) -> Optional[str]:
        if not is_hashable(entity_id):
            return None
        return self.types.get(entity_id)

    def parent_id(self, entity_id: Any) -> Optional[Any]:
        if not is_hashable(entity_id):
            return None
        return self.parent_of.get(entity_id)

    def children_of(self, parent_id: Any) -> List[Any]:
        if parent_id not in self.graph:
            return []
        return list(self.graph.successors(parent_id))

    @property
    def children_by_parent_id(self) -> Dict[Any, List[Any]]:
        return {
            node: list(self.graph.successors(node))
            for node in self.graph.nodes
            if self.graph.out_degree(node) > 0
        }

    def roots(self) -> List[Any]:
        return [
            entity_id
            for entity_id in self.by_id
            if self.parent_of.get(entity_id) is None
        ]

    def __contains__(self, entity_id: Any) -> bool:
        return is_hashable(entity_id) and entity_id in self.by_id

    def __len__(self) -> int:
        return len(self.by_id)
