"""Small builders shared by the test modules."""
from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from seating_planner.models import Guest, PlanTable, Seat, SeatingPlan, Table


def guests(*specs) -> List[Guest]:
    """``guests("A", ("B", 2))`` -> A with one seat, B with two. Name equals id."""
    out = []
    for entry in specs:
        gid, count = (entry, 1) if isinstance(entry, str) else entry
        out.append(Guest(id=gid, name=gid, count=count))
    return out


def tables(*capacities: int) -> List[Table]:
    return [Table(id=f"t{i}", capacity=c) for i, c in enumerate(capacities, start=1)]


def constraints(*triples: Tuple[str, str, str]) -> Dict[str, Dict[str, str]]:
    """Symmetric constraint map from ``(a, b, kind)`` triples."""
    out: Dict[str, Dict[str, str]] = {}
    for a, b, kind in triples:
        out.setdefault(a, {})[b] = kind
        out.setdefault(b, {})[a] = kind
    return out


def adjacency(*pairs: Tuple[str, str]) -> Dict[str, List[str]]:
    out: Dict[str, List[str]] = {}
    for a, b in pairs:
        out.setdefault(a, []).append(b)
        out.setdefault(b, []).append(a)
    return out


def plan(layout: Dict[str, Iterable[Tuple[str, int]]], capacity: int = 10, plan_id: str = "p") -> SeatingPlan:
    """Plan from ``{table_id: [(guest_id, count), ...]}``."""
    plan_tables = []
    for tid, members in layout.items():
        seats = [Seat(gid, gid, k) for gid, count in members for k in range(count)]
        plan_tables.append(PlanTable(id=tid, capacity=capacity, seats=seats))
    return SeatingPlan(id=plan_id, tables=plan_tables)


def counter_ids(prefix: str = "id"):
    n = 0

    def next_id() -> str:
        nonlocal n
        n += 1
        return f"{prefix}-{n}"

    return next_id
