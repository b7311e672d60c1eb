"""Normalized lookups over the raw constraint, adjacency and restriction maps."""
from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from .models import CANNOT, MUST, Guest

ConstraintMap = Mapping[str, Mapping[str, str]]
AdjacencyMap = Mapping[str, Sequence[str]]
RestrictionMap = Mapping[str, Sequence[str]]


def pair_key(a: str, b: str) -> Tuple[str, str]:
    return (a, b) if a <= b else (b, a)


def iter_constraints(constraints: ConstraintMap, kind: str) -> Iterable[Tuple[str, str]]:
    """Yield ``(a, b)`` for every directed entry of ``kind`` in the raw map."""
    for a, row in constraints.items():
        for b, value in (row or {}).items():
            if value == kind and a != b:
                yield a, b


class Relations:
    """Symmetric must/cannot/adjacency lookups keyed by guest id.

    Unknown guest ids and self references are dropped. A pair marked both
    ``must`` and ``cannot`` keeps both entries; the conflict detector reports
    it and generation stops before placement ever sees it.
    """

    def __init__(self) -> None:
        self.guests: Dict[str, Guest] = {}
        self.must: Dict[str, Set[str]] = {}
        self.cannot: Dict[str, Set[str]] = {}
        self.adjacent: Dict[str, List[str]] = {}
        self.restrictions: Dict[str, List[str]] = {}

    @classmethod
    def build(
        cls,
        guests: Sequence[Guest],
        constraints: Optional[ConstraintMap] = None,
        adjacency: Optional[AdjacencyMap] = None,
        restrictions: Optional[RestrictionMap] = None,
    ) -> "Relations":
        rel = cls()
        rel.guests = {g.id: g for g in guests}
        rel.must = {g.id: set() for g in guests}
        rel.cannot = {g.id: set() for g in guests}
        rel.adjacent = {g.id: [] for g in guests}

        constraints = constraints or {}
        for kind, index in ((MUST, rel.must), (CANNOT, rel.cannot)):
            for a, b in iter_constraints(constraints, kind):
                if a in rel.guests and b in rel.guests:
                    index[a].add(b)
                    index[b].add(a)

        # Keep the caller's order: it drives the walk inside each table.
        for a, partners in (adjacency or {}).items():
            if a not in rel.guests:
                continue
            for b in partners or []:
                if b == a or b not in rel.guests:
                    continue
                if b not in rel.adjacent[a]:
                    rel.adjacent[a].append(b)
                if a not in rel.adjacent[b]:
                    rel.adjacent[b].append(a)

        for gid, table_ids in (restrictions or {}).items():
            if gid in rel.guests and table_ids:
                rel.restrictions[gid] = list(dict.fromkeys(str(t) for t in table_ids))
        return rel

    def is_must(self, a: str, b: str) -> bool:
        return b in self.must.get(a, ())

    def is_cannot(self, a: str, b: str) -> bool:
        return b in self.cannot.get(a, ())

    def constraint_edges(self) -> Set[Tuple[str, str]]:
        """Distinct unordered must/cannot pairs."""
        edges: Set[Tuple[str, str]] = set()
        for index in (self.must, self.cannot):
            for a, others in index.items():
                for b in others:
                    edges.add(pair_key(a, b))
        return edges
