"""
Seating plan generation.

A run moves through fixed stages and stops at the first gate that fails:

    validate -> check conflicts -> build groups -> search -> rank

Search repeats ordering + greedy placement with a different strategy each
attempt, keeps plans that differ enough from the ones already accepted and
stops once the target count or the attempt budget is reached. Every problem
comes back as data in the result; nothing is raised to the caller.
"""
from __future__ import annotations

import asyncio
import logging
import random
import time
from itertools import combinations
from typing import Callable, List, Optional, Protocol, Sequence

from .config import GenerationConfig
from .conflicts import IdFactory, default_id_factory, detect_constraint_conflicts
from .grouping import PriorityPredicate, build_atomic_groups
from .models import (
    AtomicGroup,
    ConstraintConflict,
    GenerationResult,
    Guest,
    PlanTable,
    Seat,
    SeatingPlan,
    Table,
    ValidationMessage,
)
from .placement import TableSeats, allowed_tables, place_groups
from .relations import AdjacencyMap, ConstraintMap, Relations, RestrictionMap, pair_key
from .scoring import is_unique, score_plan
from .strategies import order_groups, strategy_for_attempt

logger = logging.getLogger(__name__)

NO_PLAN_MESSAGE = "Could not find a valid seating arrangement. Please try relaxing some constraints."
CANCELLED_MESSAGE = "Seating generation was cancelled before a plan was found."


class CancelToken(Protocol):
    def is_set(self) -> bool: ...


def _error(message: str) -> ValidationMessage:
    return ValidationMessage(kind="error", message=message)


def _warning(message: str) -> ValidationMessage:
    return ValidationMessage(kind="warning", message=message)


# ----------------------------- validation -----------------------------
def validate_inputs(
    guests: Sequence[Guest],
    tables: Sequence[Table],
    relations: Relations,
    restrictions: Optional[RestrictionMap] = None,
) -> List[ValidationMessage]:
    """Checks that make a search pointless. Warnings do not block generation."""
    messages: List[ValidationMessage] = []
    if not tables:
        messages.append(_error("No tables available. Add at least one table."))
    if not guests:
        messages.append(_error("No guests to seat. Add at least one guest."))
    if not tables or not guests:
        return messages

    seen, duplicates = set(), []
    for g in guests:
        if g.id in seen and g.id not in duplicates:
            duplicates.append(g.id)
        seen.add(g.id)
    for gid in duplicates:
        messages.append(_error(f"Duplicate guest id: {gid}."))

    total_capacity = sum(t.capacity for t in tables)
    total_guests = sum(g.count for g in guests)
    if total_guests > total_capacity:
        messages.append(
            _error(f"Not enough seats: {total_guests} guests but only {total_capacity} seats across all tables.")
        )

    table_ids = {t.id for t in tables}
    for gid, table_list in (restrictions or {}).items():
        if gid not in relations.guests:
            messages.append(_warning(f"Ignoring table assignment for unknown guest {gid}."))
            continue
        missing = [str(t) for t in table_list or [] if str(t) not in table_ids]
        if missing:
            name = relations.guests[gid].name
            messages.append(_error(f"{name} is assigned to unknown table(s): {', '.join(missing)}."))

    checked = set()
    for a, others in relations.must.items():
        for b in others:
            key = pair_key(a, b)
            if key in checked:
                continue
            checked.add(key)
            ra, rb = relations.restrictions.get(a), relations.restrictions.get(b)
            if ra and rb and not set(ra) & set(rb):
                messages.append(
                    _error(
                        f"{relations.guests[a].name} and {relations.guests[b].name} must sit together "
                        f"but are assigned to different tables."
                    )
                )
    return messages


def validate_groups(groups: Sequence[AtomicGroup], relations: Relations, config: GenerationConfig) -> List[ValidationMessage]:
    """Checks on built groups.

    A group always sits at one table, so a cannot pair inside it can never
    be honoured. With hard restrictions every restricted group also needs
    one table all members accept.
    """
    messages = []
    for group in groups:
        for a, b in combinations(group.ids, 2):
            if relations.is_cannot(a, b):
                messages.append(
                    _error(
                        f"{relations.guests[a].name} and {relations.guests[b].name} cannot sit together "
                        f"but are linked into one group by must or adjacency relations."
                    )
                )
        if config.restriction_mode != "intersection":
            continue
        allowed = allowed_tables(group, relations, config.restriction_mode)
        if allowed is not None and not allowed:
            names = ", ".join(m.name for m in group.members)
            messages.append(_error(f"No table is permitted for every guest in the group: {names}."))
    return messages


# ----------------------------- plan assembly -----------------------------
def build_plan(plan_id: str, tables: Sequence[Table], seats: TableSeats, relations: Relations) -> SeatingPlan:
    """Expand each party into one seat per person, tables in input order."""
    plan_tables = []
    for table in tables:
        table_seats: List[Seat] = []
        for gid in seats.get(table.id, []):
            guest = relations.guests[gid]
            for k in range(guest.count):
                table_seats.append(Seat(guest_id=guest.id, name=guest.name, party_index=k))
        plan_tables.append(PlanTable(id=table.id, capacity=table.capacity, name=table.name, seats=table_seats))
    return SeatingPlan(id=plan_id, tables=plan_tables)


# ----------------------------- planner -----------------------------
class SeatingPlanner:
    """Randomized multi-strategy seating search.

    ``rng`` and ``id_factory`` are injectable so runs can be reproduced.
    ``is_priority`` marks guests whose groups are placed first and who head
    their table's seat order.
    """

    def __init__(
        self,
        config: Optional[GenerationConfig] = None,
        rng: Optional[random.Random] = None,
        is_priority: Optional[PriorityPredicate] = None,
        id_factory: Optional[IdFactory] = None,
    ) -> None:
        self.config = config or GenerationConfig()
        self.rng = rng or random.Random()
        self.is_priority = is_priority
        self.id_factory = id_factory or default_id_factory
        # Inputs
        self.guests: List[Guest] = []
        self.tables: List[Table] = []
        self.constraints: ConstraintMap = {}
        self.adjacency: AdjacencyMap = {}
        self.restrictions: RestrictionMap = {}
        self.relations = Relations()

    def build(
        self,
        guests: Sequence[Guest],
        tables: Sequence[Table],
        constraints: Optional[ConstraintMap] = None,
        adjacency: Optional[AdjacencyMap] = None,
        restrictions: Optional[RestrictionMap] = None,
    ) -> None:
        """Store model data and index relations."""
        self.guests = list(guests)
        self.tables = list(tables)
        self.constraints = constraints or {}
        self.adjacency = adjacency or {}
        self.restrictions = restrictions or {}
        self.relations = Relations.build(self.guests, self.constraints, self.adjacency, self.restrictions)

    def detect_conflicts(self) -> List[ConstraintConflict]:
        return detect_constraint_conflicts(
            self.guests,
            self.constraints,
            self.tables,
            check_adjacency=True,
            adjacency=self.adjacency,
            id_factory=self.id_factory,
        )

    def _stop_reason(self, cancel: Optional[CancelToken], deadline: Optional[float]) -> Optional[str]:
        if cancel is not None and cancel.is_set():
            return "cancelled"
        if deadline is not None and time.monotonic() >= deadline:
            return "time budget exhausted"
        return None

    async def generate(self, cancel: Optional[CancelToken] = None) -> GenerationResult:
        """Run every stage and return ranked plans or the reason there are none."""
        config = self.config
        logger.info(
            "Generating seating plans for %d guests at %d tables (target %d plans, %d attempts)",
            len(self.guests), len(self.tables), config.target_plans, config.max_attempts,
        )

        # Validating
        messages = validate_inputs(self.guests, self.tables, self.relations, self.restrictions)
        if any(m.kind == "error" for m in messages):
            logger.warning("Validation failed: %s", "; ".join(m.message for m in messages if m.kind == "error"))
            return GenerationResult(plans=[], errors=messages)

        # ConflictChecking
        conflicts = self.detect_conflicts()
        critical = [c for c in conflicts if c.is_critical]
        if critical:
            logger.warning("Aborting on %d critical conflicts", len(critical))
            errors = [_error(c.description) for c in critical]
            return GenerationResult(plans=[], errors=messages + errors)
        messages.extend(_warning(c.description) for c in conflicts)

        # Building
        groups = build_atomic_groups(self.guests, self.relations, self.is_priority)
        group_errors = validate_groups(groups, self.relations, config)
        if group_errors:
            logger.warning("Group restrictions cannot be met: %s", "; ".join(m.message for m in group_errors))
            return GenerationResult(plans=[], errors=messages + group_errors)
        logger.debug("Built %d atomic groups", len(groups))

        # Searching
        plans: List[SeatingPlan] = []
        deadline = time.monotonic() + config.time_budget if config.time_budget is not None else None
        stopped: Optional[str] = None
        attempts = failures = duplicates = 0
        for attempt in range(config.max_attempts):
            if len(plans) >= config.target_plans:
                break
            if attempt and attempt % config.yield_every == 0:
                await asyncio.sleep(0)
            stopped = self._stop_reason(cancel, deadline)
            if stopped:
                break
            attempts += 1

            strategy = strategy_for_attempt(attempt)
            ordered = order_groups(groups, strategy, self.rng)
            seats = place_groups(ordered, self.tables, self.relations, self.rng, config, self.is_priority)
            if seats is None:
                failures += 1
                continue

            candidate = build_plan(self.id_factory(), self.tables, seats, self.relations)
            if not is_unique(candidate, plans, config):
                duplicates += 1
                logger.debug("Attempt %d (%s) duplicated an accepted plan", attempt, strategy)
                continue
            candidate.score = score_plan(candidate, self.relations)
            plans.append(candidate)

        logger.info(
            "Search finished after %d attempts: %d plans, %d placement failures, %d duplicates",
            attempts, len(plans), failures, duplicates,
        )
        if stopped:
            logger.info("Search stopped early: %s", stopped)

        # Ranking
        plans.sort(key=lambda p: p.score, reverse=True)

        if not plans:
            return GenerationResult(plans=[], errors=[_error(CANCELLED_MESSAGE if stopped == "cancelled" else NO_PLAN_MESSAGE)])
        if stopped:
            messages.append(_warning(f"Search stopped early ({stopped}); showing {len(plans)} plan(s)."))
        return GenerationResult(plans=plans, errors=messages)

    def solve(self, cancel: Optional[CancelToken] = None) -> GenerationResult:
        """Blocking wrapper around :meth:`generate`."""
        return asyncio.run(self.generate(cancel))


# ----------------------------- functional API -----------------------------
async def generate_seating_plans(
    guests: Sequence[Guest],
    tables: Sequence[Table],
    constraints: Optional[ConstraintMap] = None,
    adjacency: Optional[AdjacencyMap] = None,
    restrictions: Optional[RestrictionMap] = None,
    premium: bool = False,
    *,
    config: Optional[GenerationConfig] = None,
    rng: Optional[random.Random] = None,
    is_priority: Optional[Callable[[Guest], bool]] = None,
    id_factory: Optional[IdFactory] = None,
    cancel: Optional[CancelToken] = None,
) -> GenerationResult:
    """Generate ranked, mutually distinct seating plans.

    ``premium`` picks the tier quotas unless an explicit ``config`` is given.
    """
    planner = SeatingPlanner(
        config=config or GenerationConfig.for_tier(premium),
        rng=rng,
        is_priority=is_priority,
        id_factory=id_factory,
    )
    planner.build(guests, tables, constraints, adjacency, restrictions)
    return await planner.generate(cancel)


def generate_seating_plans_sync(*args, **kwargs) -> GenerationResult:
    """Same as :func:`generate_seating_plans` for callers without an event loop."""
    return asyncio.run(generate_seating_plans(*args, **kwargs))


def priority_from_ids(guest_ids: Sequence[str]) -> Callable[[Guest], bool]:
    """Priority predicate for an explicit set of guest ids."""
    wanted = {str(g) for g in guest_ids}
    return lambda guest: guest.id in wanted
