from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Tuple

from atlasgraph.hierarchy.types import ENTITY_TYPES, collection_key

Record = Dict[str, Any]


@dataclass
class HierarchyState:
    """
    Caller-owned container of parallel per-type entity collections.

    Records are plain dicts created and removed by the caller; the engine
    only touches their relational fields, in place.
    """

    domains: List[Record] = field(default_factory=list)
    projects: List[Record] = field(default_factory=list)
    tasks: List[Record] = field(default_factory=list)
    ideas: List[Record] = field(default_factory=list)
    notes: List[Record] = field(default_factory=list)
    checklists: List[Record] = field(default_factory=list)

    # Top-level keys this engine does not own, kept for round-tripping
    extra: Dict[str, Any] = field(default_factory=dict)

    # -------------------- Access --------------------

    def collection(self, entity_type: str) -> List[Record]:
        return getattr(self, collection_key(entity_type))

    def entities(self) -> Iterator[Tuple[str, Record]]:
        """
        Yield `(collection type, record)` for every record, domains first.
        """
        for entity_type in ENTITY_TYPES:
            for record in self.collection(entity_type):
                yield entity_type, record

    def find(self, entity_id: Any, entity_type: str | None = None) -> Record | None:
        if entity_id is None:
            return None
        types = (entity_type,) if entity_type else ENTITY_TYPES
        for t in types:
            if t not in ENTITY_TYPES:
                return None
            for record in self.collection(t):
                if isinstance(record, dict) and record.get("id") == entity_id:
                    return record
        return None

    def count(self) -> int:
        return sum(len(self.collection(t)) for t in ENTITY_TYPES)

    # -------------------- Conversion --------------------

    @staticmethod
    def from_dict(payload: Dict[str, Any]) -> "HierarchyState":
        """
        Wrap the collections of a raw state dict.

        The lists are shared, not copied, so mutations are visible to the
        owner of `payload`.
        """
        state = HierarchyState()
        for entity_type in ENTITY_TYPES:
            key = collection_key(entity_type)
            items = payload.get(key)
            if items is None:
                items = []
                payload[key] = items
            setattr(state, key, items)
        state.extra = {
            k: v
            for k, v in payload.items()
            if k not in {collection_key(t) for t in ENTITY_TYPES}
        }
        return state

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = dict(self.extra)
        for entity_type in ENTITY_TYPES:
            payload[collection_key(entity_type)] = self.collection(entity_type)
        return payload
