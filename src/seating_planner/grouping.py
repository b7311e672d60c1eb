"""Union-find grouping of guests into atomic placement units."""
from __future__ import annotations

from typing import Callable, Dict, Hashable, List, Optional, Sequence

from .models import AtomicGroup, Guest
from .relations import Relations

BASE_PRIORITY_WEIGHT = 1
HIGH_PRIORITY_WEIGHT = 10

PriorityPredicate = Callable[[Guest], bool]


class UnionFind:
    """Disjoint sets over hashable ids, stored as index arrays.

    Ids are mapped to slots on first sight, so ``find`` doubles as the
    initializer for singleton groups.
    """

    def __init__(self) -> None:
        self._index: Dict[Hashable, int] = {}
        self._items: List[Hashable] = []
        self._parent: List[int] = []
        self._rank: List[int] = []

    def __len__(self) -> int:
        return len(self._items)

    def _slot(self, x: Hashable) -> int:
        i = self._index.get(x)
        if i is None:
            i = len(self._items)
            self._index[x] = i
            self._items.append(x)
            self._parent.append(i)
            self._rank.append(0)
        return i

    def _root(self, i: int) -> int:
        parent = self._parent
        root = i
        while parent[root] != root:
            root = parent[root]
        while parent[i] != root:
            parent[i], i = root, parent[i]
        return root

    def find(self, x: Hashable) -> Hashable:
        return self._items[self._root(self._slot(x))]

    def union(self, a: Hashable, b: Hashable) -> Hashable:
        ra, rb = self._root(self._slot(a)), self._root(self._slot(b))
        if ra == rb:
            return self._items[ra]
        if self._rank[ra] < self._rank[rb]:
            ra, rb = rb, ra
        self._parent[rb] = ra
        if self._rank[ra] == self._rank[rb]:
            self._rank[ra] += 1
        return self._items[ra]

    def connected(self, a: Hashable, b: Hashable) -> bool:
        return self.find(a) == self.find(b)

    def groups(self) -> List[List[Hashable]]:
        """Members per set, sets and members in first-seen order."""
        out: Dict[int, List[Hashable]] = {}
        for i, item in enumerate(self._items):
            out.setdefault(self._root(i), []).append(item)
        return list(out.values())


def build_atomic_groups(
    guests: Sequence[Guest],
    relations: Relations,
    is_priority: Optional[PriorityPredicate] = None,
) -> List[AtomicGroup]:
    """Union guests by must constraints and adjacency preferences.

    Adjacent guests can only sit next to each other at a shared table, so
    adjacency is a hard co-location edge here even though seat order is soft.
    Groups come back ordered by priority, then occupancy, both descending.
    """
    uf = UnionFind()
    for g in guests:
        uf.find(g.id)
    for a, others in relations.must.items():
        for b in others:
            uf.union(a, b)
    for a, others in relations.adjacent.items():
        for b in others:
            uf.union(a, b)

    edges = relations.constraint_edges()
    groups: List[AtomicGroup] = []
    for member_ids in uf.groups():
        members = [relations.guests[m] for m in member_ids]
        ids = set(member_ids)
        priority = BASE_PRIORITY_WEIGHT
        if is_priority is not None and any(is_priority(m) for m in members):
            priority = HIGH_PRIORITY_WEIGHT
        degree = sum(1 for a, b in edges if a in ids or b in ids)
        groups.append(
            AtomicGroup(
                members=members,
                occupancy=sum(m.count for m in members),
                priority=priority,
                constraint_degree=degree,
            )
        )

    groups.sort(key=lambda g: (-g.priority, -g.occupancy))
    return groups
