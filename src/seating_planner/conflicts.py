"""
Structural conflict detection.

Looks at the raw constraint and adjacency maps plus table capacities and
reports problems that no placement could fix:

    circular             must chains that loop back on themselves (high)
    impossible           a pair marked must one way and cannot the other (critical)
    capacity_violation   a must group larger than the largest table (critical)
    adjacency_violation  a guest plus adjacency partners larger than the largest table (high)

Critical conflicts stop generation. The rest are reported as warnings.
"""
from __future__ import annotations

import logging
import uuid
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Set, Tuple

from .grouping import UnionFind
from .models import (
    ADJACENCY_VIOLATION,
    CANNOT,
    CAPACITY_VIOLATION,
    CIRCULAR,
    IMPOSSIBLE,
    MUST,
    ConstraintConflict,
    Guest,
    Table,
)
from .relations import AdjacencyMap, ConstraintMap, iter_constraints, pair_key

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]


def default_id_factory() -> str:
    return uuid.uuid4().hex


def detect_constraint_conflicts(
    guests: Sequence[Guest],
    constraints: ConstraintMap,
    tables: Sequence[Table],
    check_adjacency: bool = False,
    adjacency: Optional[AdjacencyMap] = None,
    id_factory: Optional[IdFactory] = None,
) -> List[ConstraintConflict]:
    """Return every structural conflict in detection order."""
    if not guests or not tables:
        return []
    new_id = id_factory or default_id_factory
    guest_by_id = {g.id: g for g in guests}
    max_capacity = max(t.capacity for t in tables)

    conflicts: List[ConstraintConflict] = []
    conflicts.extend(_circular(guests, constraints, guest_by_id, new_id))
    conflicts.extend(_impossible(constraints, guest_by_id, new_id))
    conflicts.extend(_capacity(guests, constraints, guest_by_id, max_capacity, new_id))
    if check_adjacency and adjacency:
        conflicts.extend(_adjacency(adjacency, guest_by_id, max_capacity, new_id))

    if conflicts:
        logger.debug(
            "Detected %d conflicts (%d critical)",
            len(conflicts),
            sum(1 for c in conflicts if c.is_critical),
        )
    return conflicts


def _name(guest_by_id: Dict[str, Guest], gid: str) -> str:
    g = guest_by_id.get(gid)
    return g.name if g else gid


# ----------------------------- circular -----------------------------
def _must_graph(guests: Sequence[Guest], constraints: ConstraintMap, known: Dict[str, Guest]) -> Dict[str, List[str]]:
    graph: Dict[str, List[str]] = {g.id: [] for g in guests}
    for a, b in iter_constraints(constraints, MUST):
        if a in known and b in known and b not in graph[a]:
            graph[a].append(b)
    return graph


def _find_cycles(graph: Dict[str, List[str]]) -> List[List[str]]:
    """Depth-first search with an explicit stack.

    ``on_path`` mirrors the recursion stack of the textbook algorithm. Going
    straight back to the node we came from is a mutual must pair, not a loop.
    """
    visited: Set[str] = set()
    cycles: List[List[str]] = []
    seen: Set[frozenset] = set()

    for start in graph:
        if start in visited:
            continue
        visited.add(start)
        path: List[str] = [start]
        on_path: Set[str] = {start}
        stack: List[Tuple[str, Optional[str], Iterator[str]]] = [(start, None, iter(graph[start]))]

        while stack:
            node, parent, neighbours = stack[-1]
            descended = False
            for nxt in neighbours:
                if nxt == parent:
                    continue
                if nxt in on_path:
                    cycle = path[path.index(nxt):]
                    key = frozenset(cycle)
                    if key not in seen:
                        seen.add(key)
                        cycles.append(cycle)
                elif nxt not in visited:
                    visited.add(nxt)
                    on_path.add(nxt)
                    path.append(nxt)
                    stack.append((nxt, node, iter(graph[nxt])))
                    descended = True
                    break
            if not descended:
                stack.pop()
                on_path.discard(node)
                path.pop()
    return cycles


def _circular(guests, constraints, guest_by_id, new_id) -> List[ConstraintConflict]:
    out = []
    for cycle in _find_cycles(_must_graph(guests, constraints, guest_by_id)):
        names = [_name(guest_by_id, gid) for gid in cycle + cycle[:1]]
        out.append(
            ConstraintConflict(
                id=new_id(),
                kind=CIRCULAR,
                severity="high",
                description=f"Circular dependency: {' → '.join(names)}",
                affected_guests=list(cycle),
            )
        )
    return out


# ----------------------------- contradictions -----------------------------
def _impossible(constraints, guest_by_id, new_id) -> List[ConstraintConflict]:
    out = []
    checked: Set[Tuple[str, str]] = set()
    for a, row in constraints.items():
        for b, forward in (row or {}).items():
            key = pair_key(a, b)
            if a == b or key in checked:
                continue
            checked.add(key)
            reverse = (constraints.get(b) or {}).get(a, "")
            if {forward, reverse} == {MUST, CANNOT}:
                out.append(
                    ConstraintConflict(
                        id=new_id(),
                        kind=IMPOSSIBLE,
                        severity="critical",
                        description=(
                            f"Contradictory constraints between {_name(guest_by_id, a)} "
                            f"and {_name(guest_by_id, b)}: they must and cannot sit together."
                        ),
                        affected_guests=[a, b],
                    )
                )
    return out


# ----------------------------- capacity -----------------------------
def _capacity(guests, constraints, guest_by_id, max_capacity, new_id) -> List[ConstraintConflict]:
    uf = UnionFind()
    for g in guests:
        uf.find(g.id)
    for a, b in iter_constraints(constraints, MUST):
        if a in guest_by_id and b in guest_by_id:
            uf.union(a, b)

    out = []
    for group in uf.groups():
        total = sum(guest_by_id[gid].count for gid in group)
        if total > max_capacity:
            names = ", ".join(_name(guest_by_id, gid) for gid in group)
            out.append(
                ConstraintConflict(
                    id=new_id(),
                    kind=CAPACITY_VIOLATION,
                    severity="critical",
                    description=(
                        f"Group of {total} ({names}) exceeds largest table capacity of {max_capacity}."
                    ),
                    affected_guests=list(group),
                )
            )
    return out


# ----------------------------- adjacency -----------------------------
def _adjacency(adjacency, guest_by_id, max_capacity, new_id) -> List[ConstraintConflict]:
    out = []
    reported: Set[Tuple[str, ...]] = set()
    for gid, partners in adjacency.items():
        if gid not in guest_by_id:
            continue
        partners = [p for p in dict.fromkeys(partners or []) if p in guest_by_id and p != gid]
        if not partners:
            continue
        seats = guest_by_id[gid].count + sum(guest_by_id[p].count for p in partners)
        if seats <= max_capacity:
            continue
        key = tuple(sorted([gid] + partners))
        if key in reported:
            continue
        reported.add(key)
        out.append(
            ConstraintConflict(
                id=new_id(),
                kind=ADJACENCY_VIOLATION,
                severity="high",
                description=(
                    f"Adjacency preferences for {_name(guest_by_id, gid)} ({seats} seats) "
                    f"exceed largest table capacity of {max_capacity}."
                ),
                affected_guests=[gid] + partners,
            )
        )
    return out
