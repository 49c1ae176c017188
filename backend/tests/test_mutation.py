import copy

import pytest

from atlasgraph.config.settings import HierarchyConfig, HierarchyRules
from atlasgraph.hierarchy.index import EntityIndex
from atlasgraph.hierarchy.mutation import MutationEngine
from atlasgraph.hierarchy.state import HierarchyState
from atlasgraph.hierarchy.traversal import CycleGuard


def _attach(engine, state, parent_type, parent_id, child_type, child_id):
    return engine.attach(
        state,
        parent_type=parent_type,
        parent_id=parent_id,
        child_type=child_type,
        child_id=child_id,
    )


def _move(engine, state, to_parent_type, to_parent_id, child_type, child_id):
    return engine.move(
        state,
        to_parent_type=to_parent_type,
        to_parent_id=to_parent_id,
        child_type=child_type,
        child_id=child_id,
    )


def test_attach_project_under_domain_sets_ancestors():
    state = HierarchyState(domains=[{"id": "d1"}], projects=[{"id": "p1"}])
    engine = MutationEngine()

    result = _attach(engine, state, "domain", "d1", "project", "p1")

    assert result.ok
    assert result.child["parent_id"] == "d1"
    assert result.child["domain_id"] == "d1"
    assert "project_id" not in result.child
    assert result.child["updated_at"]


def test_attach_task_under_project_inherits_domain(chain_state):
    chain_state.tasks.append({"id": "t2"})
    engine = MutationEngine()

    result = _attach(engine, chain_state, "project", "p2", "task", "t2")

    assert result.ok
    task = chain_state.find("t2")
    assert task["project_id"] == "p2"
    assert task["domain_id"] == "d2"


def test_attach_under_domain_clears_project_pointer(chain_state):
    engine = MutationEngine()

    result = _attach(engine, chain_state, "domain", "d2", "task", "t1")

    assert result.ok
    assert result.from_parent_id == "p1"
    task = chain_state.find("t1")
    assert task["parent_id"] == "d2"
    assert task["project_id"] is None
    assert task["domain_id"] == "d2"


def test_attach_note_under_task_inherits_both_pointers(chain_state):
    engine = MutationEngine()

    assert _attach(engine, chain_state, "task", "t1", "note", "n1").ok

    note = chain_state.find("n1")
    assert (note["parent_id"], note["project_id"], note["domain_id"]) == ("t1", "p1", "d1")


@pytest.mark.parametrize(
    "parent_type,parent_id,child_type,child_id",
    [
        ("domain", "ghost", "project", "p1"),
        ("domain", "d1", "project", "ghost"),
        ("project", "d1", "task", "t1"),
    ],
)
def test_attach_unknown_ids_fail_not_found(chain_state, parent_type, parent_id, child_type, child_id):
    result = _attach(MutationEngine(), chain_state, parent_type, parent_id, child_type, child_id)

    assert not result.ok
    assert result.error == "not_found"


def test_attach_disallowed_edge(chain_state):
    result = _attach(MutationEngine(), chain_state, "note", "n1", "project", "p1")

    assert result.error == "disallowed"
    assert chain_state.find("p1")["parent_id"] == "d1"


def test_attach_closing_a_loop_fails_with_cycle(chain_state):
    result = _attach(MutationEngine(), chain_state, "task", "t1", "domain", "d1")

    assert not result.ok
    assert result.error == "cycle"
    assert chain_state.find("d1").get("parent_id") is None


def test_cycle_rejected_even_when_rules_allow_the_edge():
    rules = HierarchyRules.from_mapping({"project": ["project"]})
    engine = MutationEngine(HierarchyConfig(rules=rules))
    state = HierarchyState(
        projects=[{"id": "a"}, {"id": "b", "parent_id": "a"}, {"id": "c", "parent_id": "b"}]
    )

    assert _attach(engine, state, "project", "c", "project", "a").error == "cycle"
    assert _attach(engine, state, "project", "a", "project", "a").error == "cycle"


def test_successful_sequences_never_create_cycles(chain_state):
    engine = MutationEngine()
    chain_state.ideas.append({"id": "i1"})

    _attach(engine, chain_state, "task", "t1", "idea", "i1")
    _move(engine, chain_state, "domain", "d2", "project", "p1")
    _move(engine, chain_state, "project", "p2", "task", "t1")
    _attach(engine, chain_state, "task", "t1", "project", "p2")

    guard = CycleGuard(EntityIndex.build(chain_state))
    for _, record in chain_state.entities():
        assert record["id"] not in guard.get_ancestors(record["id"])


def test_locked_child_rejects_every_mutation(chain_state):
    engine = MutationEngine()
    chain_state.find("t1")["locks"] = {"move": False, "hierarchy": True}

    assert _attach(engine, chain_state, "project", "p2", "task", "t1").error == "locked"
    assert engine.detach(chain_state, child_type="task", child_id="t1").error == "locked"
    assert _move(engine, chain_state, "project", "p2", "task", "t1").error == "locked"
    # lock wins over a disallowed edge
    assert _attach(engine, chain_state, "note", "n1", "task", "t1").error == "locked"
    assert chain_state.find("t1")["parent_id"] == "p1"


def test_children_map_is_kept_in_sync():
    state = HierarchyState(
        projects=[
            {"id": "p1", "children": {"tasks": ["t1"]}},
            {"id": "p2", "children": {"tasks": []}},
        ],
        tasks=[{"id": "t1", "parent_id": "p1"}],
    )
    engine = MutationEngine()

    assert _move(engine, state, "project", "p2", "task", "t1").ok
    assert state.find("p1")["children"]["tasks"] == []
    assert state.find("p2")["children"]["tasks"] == ["t1"]

    assert _attach(engine, state, "project", "p2", "task", "t1").ok
    assert state.find("p2")["children"]["tasks"] == ["t1"]


def test_reattach_to_current_parent_keeps_sibling_order():
    state = HierarchyState(
        projects=[{"id": "p1", "children": {"tasks": ["t1", "t2", "t3"]}}],
        tasks=[
            {"id": "t1", "parent_id": "p1"},
            {"id": "t2", "parent_id": "p1"},
            {"id": "t3", "parent_id": "p1"},
        ],
    )

    result = _attach(MutationEngine(), state, "project", "p1", "task", "t1")

    assert result.ok
    assert (result.from_parent_id, result.to_parent_id) == ("p1", "p1")
    assert state.find("p1")["children"]["tasks"] == ["t1", "t2", "t3"]


def test_detach_clears_parent_and_ancestor_fields(chain_state):
    result = MutationEngine().detach(chain_state, child_type="task", child_id="t1")

    assert result.ok
    assert result.from_parent_id == "p1"
    task = chain_state.find("t1")
    assert task["parent_id"] is None
    assert task["project_id"] is None
    assert task["domain_id"] is None
    assert EntityIndex.build(chain_state).parent_id("t1") is None


def test_detach_unknown_child(chain_state):
    result = MutationEngine().detach(chain_state, child_type="task", child_id="ghost")

    assert result.error == "not_found"
    assert result.to_dict() == {"ok": False, "error": "not_found"}


def test_move_round_trip(chain_state):
    engine = MutationEngine()

    there = _move(engine, chain_state, "project", "p2", "task", "t1")
    assert there.ok
    assert (there.from_parent_id, there.to_parent_id) == ("p1", "p2")
    assert chain_state.find("t1")["domain_id"] == "d2"

    back = _move(engine, chain_state, "project", "p1", "task", "t1")
    assert back.ok
    assert chain_state.find("t1")["parent_id"] == "p1"
    assert chain_state.find("t1")["domain_id"] == "d1"


def test_move_to_current_parent_is_noop(chain_state):
    before = dict(chain_state.find("t1"))

    result = _move(MutationEngine(), chain_state, "project", "p1", "task", "t1")

    assert result.ok
    assert chain_state.find("t1") == before


def test_move_rejections_leave_state_untouched(chain_state):
    engine = MutationEngine()

    assert _move(engine, chain_state, "note", "n1", "task", "t1").error == "disallowed"
    assert _move(engine, chain_state, "task", "t1", "project", "p1").error == "cycle"
    assert _move(engine, chain_state, "project", "ghost", "task", "t1").error == "not_found"
    assert chain_state.find("t1")["parent_id"] == "p1"
    assert chain_state.find("p1")["parent_id"] == "d1"


def test_move_restores_snapshot_when_attach_half_fails(chain_state, monkeypatch):
    engine = MutationEngine()
    chain_state.find("p1")["children"] = {"tasks": ["t1"]}
    chain_state.find("p2")["children"] = {"tasks": []}
    before = {r["id"]: copy.deepcopy(r) for _, r in chain_state.entities()}

    def boom(*args, **kwargs):
        raise RuntimeError("write failed")

    monkeypatch.setattr(engine, "_link", boom)
    result = _move(engine, chain_state, "project", "p2", "task", "t1")

    assert not result.ok
    assert result.error == "internal"
    task = chain_state.find("t1")
    assert task["parent_id"] == "p1"
    assert task["project_id"] == "p1"
    assert chain_state.find("p1")["children"] == {"tasks": ["t1"]}
    assert chain_state.find("p1") == before["p1"]
    assert chain_state.find("p2") == before["p2"]
    assert task == before["t1"]


def test_internal_errors_never_escape(monkeypatch):
    engine = MutationEngine()
    state = HierarchyState(domains=[{"id": "d1"}], projects=[{"id": "p1"}])

    def boom(_state):
        raise RuntimeError("index failure")

    monkeypatch.setattr(EntityIndex, "build", staticmethod(boom))

    assert _attach(engine, state, "domain", "d1", "project", "p1").error == "internal"
    assert engine.detach(state, child_type="project", child_id="p1").error == "internal"
