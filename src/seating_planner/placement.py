"""Greedy placement of ordered groups onto tables."""
from __future__ import annotations

import logging
import random
from typing import Callable, Dict, List, Optional, Sequence

from .config import GenerationConfig
from .models import AtomicGroup, Guest, Table
from .relations import Relations

logger = logging.getLogger(__name__)

TableSeats = Dict[str, List[str]]


class _TableState:
    """Seats taken so far at one table during a single attempt."""

    __slots__ = ("table", "guest_ids", "occupancy")

    def __init__(self, table: Table) -> None:
        self.table = table
        self.guest_ids: List[str] = []
        self.occupancy = 0

    def accepts(self, group: AtomicGroup, relations: Relations) -> bool:
        """Hard checks only: capacity and cannot."""
        if self.occupancy + group.occupancy > self.table.capacity:
            return False
        for member in group.ids:
            blocked = relations.cannot.get(member, ())
            if any(seated in blocked for seated in self.guest_ids):
                return False
        return True

    def seat(self, group: AtomicGroup) -> None:
        self.guest_ids.extend(group.ids)
        self.occupancy += group.occupancy


def allowed_tables(group: AtomicGroup, relations: Relations, mode: str) -> Optional[List[str]]:
    """Table ids the group's restrictions point at, or None when unrestricted.

    ``intersection`` keeps only tables every restricted member allows.
    ``union`` collects tables any restricted member allows, in the order found.
    """
    restricted = [relations.restrictions[m] for m in group.ids if m in relations.restrictions]
    if not restricted:
        return None
    if mode == "union":
        return list(dict.fromkeys(t for ids in restricted for t in ids))
    common = set(restricted[0]).intersection(*restricted[1:])
    return [t for t in restricted[0] if t in common]


def place_groups(
    groups: Sequence[AtomicGroup],
    tables: Sequence[Table],
    relations: Relations,
    rng: random.Random,
    config: Optional[GenerationConfig] = None,
    is_priority: Optional[Callable[[Guest], bool]] = None,
) -> Optional[TableSeats]:
    """Seat every group or return None. Partial plans are never returned."""
    config = config or GenerationConfig()
    states = {t.id: _TableState(t) for t in tables}

    for group in groups:
        tried: List[str] = []
        allowed = allowed_tables(group, relations, config.restriction_mode)
        placed = False
        if allowed is not None:
            for tid in allowed:
                state = states.get(tid)
                if state is None:
                    continue
                tried.append(tid)
                if state.accepts(group, relations):
                    state.seat(group)
                    placed = True
                    break
            if not placed and config.restriction_mode == "intersection":
                logger.debug("No permitted table can take group %s", group.ids)
                return None

        if not placed:
            remaining = [tid for tid in states if tid not in tried]
            rng.shuffle(remaining)
            for tid in remaining:
                if states[tid].accepts(group, relations):
                    states[tid].seat(group)
                    placed = True
                    break

        if not placed:
            logger.debug("No table can take group %s (%d seats)", group.ids, group.occupancy)
            return None

    seats: TableSeats = {}
    for tid, state in states.items():
        if len(state.guest_ids) > 1:
            seats[tid] = order_table(state.guest_ids, relations, is_priority)
        else:
            seats[tid] = list(state.guest_ids)
    return seats


def order_table(
    guest_ids: Sequence[str],
    relations: Relations,
    is_priority: Optional[Callable[[Guest], bool]] = None,
) -> List[str]:
    """Walk adjacency chains so preferred neighbours end up side by side.

    Starts from a priority guest when there is one, else the first occupant.
    When the current guest has no unseated partner left the next remaining
    occupant is taken, so the result is always a permutation of the input.
    """
    remaining = list(guest_ids)
    start = remaining[0]
    if is_priority is not None:
        for gid in remaining:
            if is_priority(relations.guests[gid]):
                start = gid
                break
    ordered = [start]
    remaining.remove(start)

    current = start
    while remaining:
        nxt = next((p for p in relations.adjacent.get(current, ()) if p in remaining), None)
        if nxt is None:
            nxt = remaining[0]
        ordered.append(nxt)
        remaining.remove(nxt)
        current = nxt
    return ordered
