from atlasgraph.hierarchy.index import EntityIndex, resolve_parent_id
from atlasgraph.hierarchy.query import HierarchyQuery
from atlasgraph.hierarchy.state import HierarchyState
from atlasgraph.hierarchy.stats import hierarchy_statistics
from atlasgraph.hierarchy.traversal import CycleGuard, guarded_walk


def test_resolve_parent_prefers_parent_id_then_legacy_pointers():
    assert resolve_parent_id({"parent_id": "p1", "domain_id": "d1"}, "task") == "p1"
    assert resolve_parent_id({"parent_id": None, "project_id": "p1", "domain_id": "d1"}, "task") == "p1"
    assert resolve_parent_id({"project_id": "p9", "domain_id": "d1"}, "project") == "d1"
    assert resolve_parent_id({"domain_id": "d1"}, "domain") is None


def test_index_build_links_parents_and_reports_duplicates(chain_state):
    chain_state.tasks.append({"id": "p1"})
    index = EntityIndex.build(chain_state)

    assert index.duplicates == ["p1"]
    assert index.type_of("p1") == "project"
    assert index.children_of("d1") == ["p1"]
    assert index.children_by_parent_id["p1"] == ["t1"]
    assert set(index.roots()) == {"d1", "d2", "n1"}
    assert index.get("p1", "task") is None
    assert "t1" in index and len(index) == 6


def test_dangling_parent_is_recorded_but_not_an_edge():
    state = HierarchyState(tasks=[{"id": "t1", "parent_id": "ghost"}])
    index = EntityIndex.build(state)

    assert index.parent_id("t1") == "ghost"
    assert index.graph.number_of_edges() == 0


def test_guarded_walk_terminates_on_cycles():
    edges = {"a": ["b"], "b": ["c"], "c": ["a"]}

    assert list(guarded_walk("a", lambda n: edges.get(n, []))) == ["b", "c"]


def test_ancestors_nearest_first_and_cycle_detection(chain_state):
    guard = CycleGuard(EntityIndex.build(chain_state))

    assert guard.get_ancestors("t1") == ["p1", "d1"]
    assert guard.would_create_cycle("t1", "d1")
    assert guard.would_create_cycle("p1", "p1")
    assert not guard.would_create_cycle("d2", "t1")


def test_corrupt_cycle_is_detected_without_hanging():
    state = HierarchyState(
        projects=[{"id": "p1", "parent_id": "t1"}],
        tasks=[{"id": "t1", "parent_id": "p1"}],
    )
    guard = CycleGuard(EntityIndex.build(state))

    assert guard.is_on_cycle("p1")
    assert guard.is_on_cycle("t1")
    assert guard.get_ancestors("t1") == ["p1"]


def test_query_navigation(chain_state):
    chain_state.ideas.append({"id": "i1", "parent_id": "t1"})
    query = HierarchyQuery(EntityIndex.build(chain_state))

    assert query.get_parent("t1")["id"] == "p1"
    assert query.get_parent("d1") is None
    assert query.get_children("p1")["tasks"] == ["t1"]
    assert query.get_all_descendants("d1") == ["p1", "t1", "i1"]
    assert query.get_root("i1")["id"] == "d1"
    assert query.get_depth("i1") == 3
    assert query.get_depth("missing") == 0
    assert query.get_path("i1") == ["d1", "p1", "t1", "i1"]
    assert query.get_path("missing") == []


def test_hierarchy_statistics(chain_state):
    stats = hierarchy_statistics(chain_state)

    assert stats.total == 6
    assert stats.with_parent == 3
    assert stats.without_parent == 3
    assert stats.total_connections == 3
    assert stats.max_depth == 2
    assert stats.orphaned_objects == 1
    assert stats.by_type["projects"]["total"] == 2
    assert stats.mean_children == 1.0
    assert stats.depth_distribution == {0: 3, 1: 2, 2: 1}
