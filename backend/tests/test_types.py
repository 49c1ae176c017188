import pytest

from atlasgraph.config.settings import (
    DEFAULT_ALLOWED_EDGES,
    DEFAULT_LAYOUT_HINTS,
    HierarchyConfig,
    HierarchyRules,
)
from atlasgraph.hierarchy.types import (
    ENTITY_TYPES,
    TypeRegistry,
    collection_key,
    type_for_collection,
)


def test_default_table_allows_containers_and_rejects_leaf_parents():
    registry = TypeRegistry()

    assert registry.is_link_allowed("domain", "project")
    assert registry.is_link_allowed("project", "task")
    assert registry.is_link_allowed("task", "checklist")
    assert not registry.is_link_allowed("note", "project")
    assert not registry.is_link_allowed("idea", "note")
    assert not registry.is_link_allowed("project", "domain")
    assert not registry.is_link_allowed("galaxy", "project")


@pytest.mark.parametrize("leaf", ["idea", "note", "checklist"])
def test_leaf_types_cannot_parent_anything(leaf):
    registry = TypeRegistry()

    assert not registry.can_be_parent(leaf)
    assert registry.allowed_children(leaf) == []
    assert registry.max_depth_for_type(leaf) == 0


def test_allowed_children_and_parents_follow_type_order():
    registry = TypeRegistry()

    assert registry.allowed_children("project") == ["task", "idea", "note", "checklist"]
    assert sorted(registry.allowed_parents("task")) == ["domain", "project"]
    assert registry.allowed_parents("domain") == []


def test_max_depth_for_type_is_longest_allowed_chain():
    registry = TypeRegistry()

    assert registry.max_depth_for_type("domain") == 3
    assert registry.max_depth_for_type("project") == 2
    assert registry.max_depth_for_type("task") == 1


def test_custom_rules_replace_the_table():
    registry = TypeRegistry(HierarchyRules.from_mapping({"note": ["idea"]}))

    assert registry.is_link_allowed("note", "idea")
    assert not registry.is_link_allowed("domain", "project")


def test_cyclic_rule_table_depth_terminates():
    registry = TypeRegistry(
        HierarchyRules.from_mapping({"note": ["idea"], "idea": ["note"]})
    )

    assert registry.max_depth_for_type("note") == 1


def test_collection_keys_round_trip():
    for entity_type in ENTITY_TYPES:
        assert type_for_collection(collection_key(entity_type)) == entity_type
    assert collection_key("checklist") == "checklists"
    assert type_for_collection("widgets") is None


def test_config_defaults_share_the_read_only_tables():
    config = HierarchyConfig()

    assert HierarchyRules().allowed_edges is DEFAULT_ALLOWED_EDGES
    assert config.layout is DEFAULT_LAYOUT_HINTS
    assert config.layout_for("domain").max_radius == 200
    with pytest.raises(TypeError):
        config.rules.allowed_edges["note"] = frozenset({"task"})
