from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

from atlasgraph.hierarchy.index import EntityIndex
from atlasgraph.hierarchy.state import HierarchyState
from atlasgraph.hierarchy.traversal import CycleGuard
from atlasgraph.hierarchy.types import ENTITY_TYPES, collection_key
from atlasgraph.utils.numeric import histogram, safe_mean


@dataclass(frozen=True)
class HierarchyStats:
    """
    Shape of the hierarchy at one point in time.

    Depths are counted over the resolved (possibly legacy) parent links;
    `orphaned_objects` are roots that are not domains.
    """

    total: int
    with_parent: int
    without_parent: int
    total_connections: int
    max_depth: int
    mean_depth: float
    mean_children: float
    orphaned_objects: int
    by_type: Dict[str, Dict[str, int]]
    depth_distribution: Dict[int, int]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def hierarchy_statistics(state: HierarchyState) -> HierarchyStats:
    index = EntityIndex.build(state)
    guard = CycleGuard(index)

    by_type = {
        collection_key(t): {"total": 0, "with_parent": 0, "children": 0}
        for t in ENTITY_TYPES
    }
    depths = []
    with_parent = 0
    orphaned = 0

    for entity_id, entity_type in index.types.items():
        bucket = by_type[collection_key(entity_type)]
        bucket["total"] += 1
        bucket["children"] += len(index.children_of(entity_id))

        if index.parent_id(entity_id) is not None:
            with_parent += 1
            bucket["with_parent"] += 1
        elif entity_type != "domain":
            orphaned += 1

        depths.append(len(guard.get_ancestors(entity_id)))

    fan_out = [len(c) for c in index.children_by_parent_id.values()]

    return HierarchyStats(
        total=len(index),
        with_parent=with_parent,
        without_parent=len(index) - with_parent,
        total_connections=index.graph.number_of_edges(),
        max_depth=max(depths, default=0),
        mean_depth=safe_mean(depths),
        mean_children=safe_mean(fan_out),
        orphaned_objects=orphaned,
        by_type=by_type,
        depth_distribution=histogram(depths),
    )
