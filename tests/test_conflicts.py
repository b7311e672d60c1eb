from seating_planner.conflicts import detect_constraint_conflicts
from seating_planner.models import (
    ADJACENCY_VIOLATION,
    CAPACITY_VIOLATION,
    CIRCULAR,
    IMPOSSIBLE,
)

from helpers import adjacency, constraints, counter_ids, guests, tables


def _kinds(conflicts):
    return [c.kind for c in conflicts]


def test_directed_must_cycle_is_circular():
    people = guests("A", "B", "C")
    cm = {"A": {"B": "must"}, "B": {"C": "must"}, "C": {"A": "must"}}
    conflicts = detect_constraint_conflicts(people, cm, tables(4))
    assert _kinds(conflicts) == [CIRCULAR]
    circular = conflicts[0]
    assert circular.severity == "high"
    assert set(circular.affected_guests) == {"A", "B", "C"}
    assert "A → B → C → A" in circular.description


def test_symmetric_must_triangle_reported_once():
    people = guests("A", "B", "C")
    cm = constraints(("A", "B", "must"), ("B", "C", "must"), ("C", "A", "must"))
    conflicts = detect_constraint_conflicts(people, cm, tables(4))
    assert _kinds(conflicts) == [CIRCULAR]
    assert sorted(conflicts[0].affected_guests) == ["A", "B", "C"]


def test_mutual_must_pair_is_not_a_cycle():
    people = guests("A", "B", "C")
    cm = constraints(("A", "B", "must"), ("B", "C", "must"))
    assert detect_constraint_conflicts(people, cm, tables(4)) == []


def test_must_and_cannot_on_one_pair_is_impossible():
    people = guests("A", "B")
    cm = {"A": {"B": "must"}, "B": {"A": "cannot"}}
    conflicts = detect_constraint_conflicts(people, cm, tables(4))
    assert _kinds(conflicts) == [IMPOSSIBLE]
    assert conflicts[0].severity == "critical"
    assert conflicts[0].is_critical
    assert sorted(conflicts[0].affected_guests) == ["A", "B"]


def test_impossible_pair_checked_once():
    people = guests("A", "B")
    cm = {"A": {"B": "cannot"}, "B": {"A": "must"}}
    conflicts = detect_constraint_conflicts(people, cm, tables(4))
    assert _kinds(conflicts) == [IMPOSSIBLE]


def test_must_group_larger_than_any_table():
    people = guests(("A", 2), ("B", 3), "C")
    cm = constraints(("A", "B", "must"))
    conflicts = detect_constraint_conflicts(people, cm, tables(4, 3))
    assert _kinds(conflicts) == [CAPACITY_VIOLATION]
    c = conflicts[0]
    assert c.severity == "critical"
    assert sorted(c.affected_guests) == ["A", "B"]
    assert "Group of 5" in c.description
    assert "capacity of 4" in c.description


def test_adjacency_only_checked_on_request():
    people = guests(("A", 2), ("B", 2), "C")
    adj = {"A": ["B", "C"], "B": ["A"], "C": ["A"]}
    assert detect_constraint_conflicts(people, {}, tables(4), False, adj) == []

    conflicts = detect_constraint_conflicts(people, {}, tables(4), True, adj)
    assert _kinds(conflicts) == [ADJACENCY_VIOLATION]
    assert conflicts[0].severity == "high"
    assert conflicts[0].affected_guests == ["A", "B", "C"]


def test_adjacency_violation_deduplicated_by_guest_set():
    people = guests(("A", 3), ("B", 2))
    conflicts = detect_constraint_conflicts(people, {}, tables(4), True, adjacency(("A", "B")))
    assert _kinds(conflicts) == [ADJACENCY_VIOLATION]


def test_adjacency_does_not_feed_capacity_check():
    people = guests(("A", 3), ("B", 2))
    conflicts = detect_constraint_conflicts(people, {}, tables(4), False, adjacency(("A", "B")))
    assert conflicts == []


def test_unknown_guests_are_ignored():
    people = guests("A", "B")
    cm = {"A": {"Z": "must"}, "Z": {"A": "must", "B": "cannot"}}
    assert detect_constraint_conflicts(people, cm, tables(2)) == []


def test_empty_inputs_have_no_conflicts():
    assert detect_constraint_conflicts([], {}, tables(2)) == []
    assert detect_constraint_conflicts(guests("A"), {}, []) == []


def test_detection_is_repeatable():
    people = guests(("A", 3), ("B", 3), "C", "D", "E")
    cm = constraints(("A", "B", "must"), ("C", "D", "must"), ("D", "E", "must"), ("E", "C", "must"))
    cm["C"]["E"] = "cannot"
    adj = adjacency(("A", "C"))

    def snapshot():
        found = detect_constraint_conflicts(people, cm, tables(4), True, adj)
        return [(c.kind, c.severity, c.description, tuple(c.affected_guests)) for c in found]

    first = snapshot()
    assert first
    assert snapshot() == first


def test_injected_id_factory():
    people = guests("A", "B")
    cm = {"A": {"B": "must"}, "B": {"A": "cannot"}}
    conflicts = detect_constraint_conflicts(people, cm, tables(4), id_factory=counter_ids("c"))
    assert [c.id for c in conflicts] == ["c-1"]


def test_default_ids_are_unique():
    people = guests(("A", 5), ("B", 5))
    conflicts = detect_constraint_conflicts(people, {}, tables(4))
    assert len(conflicts) == 2
    assert conflicts[0].id != conflicts[1].id
