from __future__ import annotations

from typing import Any, Dict

from atlasgraph.config.settings import HierarchyConfig
from atlasgraph.hierarchy.types import TypeRegistry, collection_key
from atlasgraph.utils.time import iso_timestamp

# Relational fields the engine adds to raw records
RELATIONAL_FIELDS = ("parent_id", "children", "locks", "constraints")


def default_locks() -> Dict[str, bool]:
    return {"move": False, "hierarchy": False}


def default_children(entity_type: str, registry: TypeRegistry) -> Dict[str, list]:
    return {collection_key(t): [] for t in registry.allowed_children(entity_type)}


def has_relational_fields(record: Dict[str, Any]) -> bool:
    return any(k in record for k in ("parent_id", "children", "locks"))


def init_hierarchy_fields(
    record: Dict[str, Any],
    entity_type: str,
    config: HierarchyConfig,
) -> Dict[str, Any]:
    """
    One-time default step for a freshly created (or legacy) record.

    Only fills what is absent; existing values are left alone.
    """
    registry = TypeRegistry(config.rules)

    if "type" not in record:
        record["type"] = entity_type
    if "parent_id" not in record:
        record["parent_id"] = None
    if record.get("children") is None:
        record["children"] = default_children(entity_type, registry)
    if record.get("locks") is None:
        record["locks"] = default_locks()
    if record.get("constraints") is None:
        record["constraints"] = config.layout_for(entity_type).as_constraints()

    return record


def reset_field(
    record: Dict[str, Any],
    entity_type: str,
    field_path: str,
    config: HierarchyConfig,
) -> bool:
    """
    Re-initialize one (possibly dotted) relational field to its default.

    Returns False when the path is not a field this engine owns.
    """
    head, _, leaf = field_path.partition(".")

    if head == "locks":
        defaults: Dict[str, Any] = default_locks()
    elif head == "constraints":
        defaults = config.layout_for(entity_type).as_constraints()
    elif head == "children":
        registry = TypeRegistry(config.rules)
        if not leaf:
            record["children"] = default_children(entity_type, registry)
            return True
        children = record.get("children")
        if not isinstance(children, dict):
            record["children"] = default_children(entity_type, registry)
        else:
            children[leaf] = []
        return True
    elif head == "type":
        record["type"] = entity_type
        return True
    elif head == "updated_at":
        record["updated_at"] = iso_timestamp()
        return True
    else:
        return False

    current = record.get(head)
    if not leaf or not isinstance(current, dict):
        record[head] = defaults
        return True
    if leaf not in defaults:
        return False
    current[leaf] = defaults[leaf]
    return True
