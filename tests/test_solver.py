"""
Tests for seating plan generation.

Covers the validation and conflict gates, the search loop and the
invariants every returned plan has to satisfy.
"""
import asyncio
import random
import threading

import pytest

from seating_planner.config import GenerationConfig
from seating_planner.models import Guest, Table
from seating_planner import solver
from seating_planner.solver import (
    CANCELLED_MESSAGE,
    NO_PLAN_MESSAGE,
    SeatingPlanner,
    generate_seating_plans,
    generate_seating_plans_sync,
    priority_from_ids,
)

from helpers import adjacency, constraints, counter_ids, guests, tables


def _run(*args, seed=0, **kwargs):
    return generate_seating_plans_sync(*args, rng=random.Random(seed), **kwargs)


def _error_messages(result):
    return [e.message for e in result.errors if e.kind == "error"]


# ----------------------------- scenarios -----------------------------
def test_single_feasible_seating_is_returned_once():
    result = _run(guests("A", "B", "C"), tables(3))
    assert result.ok
    assert len(result.plans) == 1
    only = result.plans[0]
    assert sorted(only.tables[0].guest_ids) == ["A", "B", "C"]
    assert only.score == 30


def test_cannot_pair_never_shares_a_table():
    result = _run(guests("A", "B"), tables(1, 1), constraints(("A", "B", "cannot")))
    assert result.plans
    for p in result.plans:
        assert p.table_of("A") != p.table_of("B")


def test_returned_plans_satisfy_all_hard_constraints():
    people = [
        Guest(id=f"G{i}", name=f"Guest {i}", count=c)
        for i, c in enumerate([1, 2, 1, 1, 3, 1, 2, 1, 1, 1, 2, 1], start=1)
    ]
    room = [Table(id=f"T{i}", capacity=6, name=f"Table {i}") for i in range(1, 5)]
    cm = constraints(
        ("G1", "G2", "must"),
        ("G3", "G4", "cannot"),
        ("G5", "G1", "cannot"),
        ("G6", "G7", "must"),
        ("G8", "G9", "cannot"),
    )
    adj = adjacency(("G10", "G11"), ("G11", "G12"))

    result = _run(people, room, cm, adj, seed=11)
    assert result.ok
    assert len(result.plans) > 1

    for p in result.plans:
        for t in p.tables:
            assert t.occupancy <= t.capacity
        seated = [s.guest_id for t in p.tables for s in t.seats]
        for g in people:
            assert seated.count(g.id) == g.count
        for a, b in [("G3", "G4"), ("G5", "G1"), ("G8", "G9")]:
            assert p.table_of(a) != p.table_of(b)
        for a, b in [("G1", "G2"), ("G6", "G7"), ("G10", "G11"), ("G11", "G12")]:
            assert p.table_of(a) == p.table_of(b)


def test_plans_ranked_by_score():
    people = guests("A", "B", "C", "D", "E", "F")
    result = _run(people, tables(3, 3, 3), adjacency=adjacency(("A", "B")))
    scores = [p.score for p in result.plans]
    assert scores == sorted(scores, reverse=True)


def test_party_seats_are_expanded():
    result = _run([Guest(id="A", name="Ann", count=3)], tables(4))
    seats = result.plans[0].tables[0].seats
    assert [(s.guest_id, s.name, s.party_index) for s in seats] == [
        ("A", "Ann", 0),
        ("A", "Ann", 1),
        ("A", "Ann", 2),
    ]


def test_priority_guest_heads_their_table():
    result = _run(guests("A", "B", "C"), tables(3), is_priority=priority_from_ids(["C"]))
    assert result.plans[0].tables[0].guest_ids[0] == "C"


# ----------------------------- gates -----------------------------
def test_capacity_shortfall_is_a_validation_error():
    result = _run(guests(("A", 3), "B"), tables(2, 1))
    assert result.plans == []
    assert any("Not enough seats" in m for m in _error_messages(result))


def test_missing_tables_or_guests():
    assert _error_messages(_run(guests("A"), []))
    assert _error_messages(_run([], tables(2)))


def test_dangling_table_reference():
    result = _run(guests("A"), tables(2), restrictions={"A": ["t9"]})
    assert result.plans == []
    assert any("t9" in m for m in _error_messages(result))


def test_unknown_guest_in_restrictions_only_warns():
    result = _run(guests("A"), tables(2), restrictions={"Z": ["t1"]})
    assert result.plans
    assert [w.message for w in result.warnings] == ["Ignoring table assignment for unknown guest Z."]


def test_must_pair_with_disjoint_restrictions():
    result = _run(
        guests("A", "B"),
        tables(2, 2),
        constraints(("A", "B", "must")),
        restrictions={"A": ["t1"], "B": ["t2"]},
    )
    assert result.plans == []
    assert any("must sit together" in m for m in _error_messages(result))


def test_contradiction_blocks_generation():
    cm = {"A": {"B": "must"}, "B": {"A": "cannot"}}
    result = _run(guests("A", "B"), tables(2), cm)
    assert result.plans == []
    assert any("Contradictory" in m for m in _error_messages(result))


def test_oversized_must_group_blocks_generation():
    people = guests(("A", 2), ("B", 3))
    result = _run(people, tables(4, 4), constraints(("A", "B", "must")))
    assert result.plans == []
    assert any("exceeds largest table capacity of 4" in m for m in _error_messages(result))


def test_circular_conflict_is_only_a_warning():
    cm = constraints(("A", "B", "must"), ("B", "C", "must"), ("C", "A", "must"))
    result = _run(guests("A", "B", "C", "D"), tables(4, 2), cm)
    assert result.ok
    assert any("Circular dependency" in w.message for w in result.warnings)
    for p in result.plans:
        assert p.table_of("A") == p.table_of("B") == p.table_of("C")


def test_adjacency_group_without_common_table():
    kwargs = dict(adjacency=adjacency(("A", "B")), restrictions={"A": ["t1"], "B": ["t2"]})
    strict = _run(guests("A", "B"), tables(2, 2), **kwargs)
    assert strict.plans == []
    assert any("No table is permitted" in m for m in _error_messages(strict))

    lenient = _run(
        guests("A", "B"),
        tables(2, 2),
        config=GenerationConfig(restriction_mode="union"),
        **kwargs,
    )
    assert lenient.plans
    assert all(p.table_of("A") == p.table_of("B") == "t1" for p in lenient.plans)


def test_cannot_pair_joined_through_must_chain():
    cm = constraints(("A", "B", "must"), ("B", "C", "must"), ("A", "C", "cannot"))
    result = _run(guests("A", "B", "C"), tables(3, 3), cm)
    assert result.plans == []
    assert _error_messages(result) == [
        "A and C cannot sit together but are linked into one group by must or adjacency relations."
    ]


def test_cannot_pair_joined_by_adjacency():
    for mode in ("intersection", "union"):
        result = _run(
            guests("A", "B"),
            tables(2, 2),
            constraints(("A", "B", "cannot")),
            adjacency(("A", "B")),
            config=GenerationConfig(restriction_mode=mode),
        )
        assert result.plans == []
        assert any("cannot sit together" in m for m in _error_messages(result))


def test_duplicate_guest_ids_are_rejected():
    people = guests("A", "B") + [Guest(id="A", name="Other A")]
    result = _run(people, tables(4))
    assert result.plans == []
    assert _error_messages(result) == ["Duplicate guest id: A."]


def test_exhaustion_returns_one_error():
    cm = constraints(("A", "B", "cannot"), ("B", "C", "cannot"), ("A", "C", "cannot"))
    result = _run(guests("A", "B", "C"), tables(2, 2), cm, config=GenerationConfig(max_attempts=30))
    assert result.plans == []
    assert [(e.kind, e.message) for e in result.errors] == [("error", NO_PLAN_MESSAGE)]


# ----------------------------- search loop -----------------------------
def test_tier_quotas():
    free = GenerationConfig.for_tier(False)
    premium = GenerationConfig.for_tier(True)
    assert (free.target_plans, free.max_attempts) == (10, 200)
    assert (premium.target_plans, premium.max_attempts) == (30, 500)
    assert GenerationConfig.for_tier(True, max_attempts=None).max_attempts == 500


def test_stops_at_target_plan_count():
    people = guests(*"ABCDEFGH")
    result = _run(people, tables(2, 2, 2, 2), config=GenerationConfig(target_plans=3))
    assert len(result.plans) == 3


def test_injected_ids_are_used_for_plans():
    result = _run(guests("A", "B"), tables(1, 1), id_factory=counter_ids("plan"))
    assert result.plans
    assert all(p.id.startswith("plan-") for p in result.plans)
    assert len({p.id for p in result.plans}) == len(result.plans)


def test_same_seed_same_plans():
    people = guests(*"ABCDEF")
    room = tables(2, 2, 2)

    def layout(seed):
        result = _run(people, room, seed=seed, id_factory=counter_ids())
        return [p.guest_ids_by_table() for p in result.plans]

    assert layout(5) == layout(5)


def test_cancel_before_start():
    event = threading.Event()
    event.set()
    result = _run(guests("A"), tables(1), cancel=event)
    assert result.plans == []
    assert [e.message for e in result.errors] == [CANCELLED_MESSAGE]


class _CancelAfter:
    def __init__(self, checks):
        self.checks = checks

    def is_set(self):
        self.checks -= 1
        return self.checks < 0


def test_cancel_mid_search_keeps_found_plans():
    people = guests(*"ABCDEF")
    result = _run(people, tables(*[1] * 6), cancel=_CancelAfter(3))
    assert 1 <= len(result.plans) <= 3
    assert any("stopped early" in w.message for w in result.warnings)


def test_zero_time_budget_stops_immediately():
    config = GenerationConfig(time_budget=0)
    result = _run(guests("A"), tables(1), config=config)
    assert result.plans == []
    assert _error_messages(result) == [NO_PLAN_MESSAGE]


def test_search_yields_to_event_loop(monkeypatch):
    calls = []

    async def fake_sleep(delay):
        calls.append(delay)

    monkeypatch.setattr(solver.asyncio, "sleep", fake_sleep)
    cm = constraints(("A", "B", "cannot"), ("B", "C", "cannot"), ("A", "C", "cannot"))
    config = GenerationConfig(max_attempts=25, yield_every=10)
    _run(guests("A", "B", "C"), tables(2, 2), cm, config=config)
    assert calls == [0, 0]


def test_async_entry_point_runs_in_event_loop():
    async def main():
        return await generate_seating_plans(
            guests("A", "B", "C"), tables(3), premium=True, rng=random.Random(1)
        )

    result = asyncio.run(main())
    assert len(result.plans) == 1


def test_planner_build_and_solve():
    planner = SeatingPlanner(config=GenerationConfig(target_plans=2), rng=random.Random(3))
    planner.build(guests("A", "B", "C", "D"), tables(2, 2), constraints(("A", "B", "must")))
    result = planner.solve()
    assert 1 <= len(result.plans) <= 2
    for p in result.plans:
        assert p.table_of("A") == p.table_of("B")


def test_invalid_config_values():
    with pytest.raises(ValueError):
        GenerationConfig(restriction_mode="either")
    with pytest.raises(ValueError):
        GenerationConfig(max_attempts=0)
    with pytest.raises(ValueError):
        GenerationConfig(uniqueness_floor=0.9)
