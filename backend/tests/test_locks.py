from atlasgraph.hierarchy.locks import LockManager


def test_set_lock_initializes_missing_locks_field():
    locks = LockManager()
    record = {"id": "p1"}

    assert locks.set_lock(record, "hierarchy", True)
    assert record["locks"] == {"move": False, "hierarchy": True}
    assert locks.is_locked(record, "hierarchy")
    assert not locks.can_change_hierarchy(record)
    assert locks.can_move(record)


def test_unknown_kind_and_missing_entity_are_noops():
    locks = LockManager()
    record = {"id": "p1"}

    assert not locks.set_lock(record, "resize", True)
    assert "locks" not in record
    assert not locks.is_locked(record, "resize")
    assert not locks.set_lock(None, "move", True)
    assert not locks.can_move(None)
    assert not locks.can_change_hierarchy(None)


def test_non_boolean_lock_values_do_not_lock():
    locks = LockManager()

    assert not locks.is_locked({"id": "x", "locks": {"move": "yes"}}, "move")
    assert not locks.is_locked({"id": "x", "locks": "broken"}, "move")


def test_batch_set_locks_tolerates_unknown_ids(chain_state):
    locks = LockManager()

    report = locks.batch_set_locks(["p1", "ghost", "t1"], "move", True, chain_state)

    assert report.success == 2
    assert report.failed == 1
    assert "ghost: not found" in report.details
    assert [r["id"] for r in locks.list_locked(chain_state, "move")] == ["p1", "t1"]


def test_lock_statistics(chain_state):
    locks = LockManager()
    locks.set_lock(chain_state.find("p1"), "move", True)
    locks.set_lock(chain_state.find("p1"), "hierarchy", True)
    locks.set_lock(chain_state.find("d1"), "hierarchy", True)

    stats = locks.lock_statistics(chain_state)

    assert stats.total == 6
    assert stats.move_locked == 1
    assert stats.hierarchy_locked == 2
    assert stats.both_locked == 1
    assert stats.unlocked == 4
    assert stats.by_type["projects"]["move_locked"] == 1
    assert stats.to_dict()["by_type"]["domains"]["hierarchy_locked"] == 1


def test_permission_checks(chain_state):
    locks = LockManager()
    locks.set_lock(chain_state.find("t1"), "hierarchy", True)

    move_check = locks.check_move_permissions("t1", chain_state)
    assert not move_check.allowed
    assert move_check.locks == ["hierarchy"]

    hierarchy_check = locks.check_hierarchy_permissions("p1", chain_state)
    assert hierarchy_check.allowed

    missing = locks.check_hierarchy_permissions("ghost", chain_state)
    assert not missing.allowed
    assert missing.reason == "object not found"
