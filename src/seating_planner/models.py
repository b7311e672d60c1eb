"""Data models for the seating planner."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

MUST = "must"
CANNOT = "cannot"

CIRCULAR = "circular"
IMPOSSIBLE = "impossible"
CAPACITY_VIOLATION = "capacity_violation"
ADJACENCY_VIOLATION = "adjacency_violation"


def parse_bool(value: object) -> bool:
    """Parse common truthy strings into bool."""
    return str(value).strip().lower() in ("true", "1", "yes", "y")


@dataclass(frozen=True)
class Guest:
    """A guest party that takes ``count`` seats as one unit."""

    id: str
    name: str
    count: int = 1

    def __post_init__(self) -> None:
        if self.count < 1:
            raise ValueError(f"Guest {self.name!r} must take at least one seat, got {self.count}")


@dataclass(frozen=True)
class Table:
    """Dinner table definition."""

    id: str
    capacity: int
    name: str = ""

    def __post_init__(self) -> None:
        if self.capacity < 1:
            raise ValueError(f"Table {self.id!r} needs a positive capacity, got {self.capacity}")

    @property
    def label(self) -> str:
        return self.name or f"Table {self.id}"


@dataclass
class AtomicGroup:
    """Guests that have to be placed at one table together."""

    members: List[Guest]
    occupancy: int
    priority: int
    constraint_degree: int = 0

    @property
    def ids(self) -> List[str]:
        return [g.id for g in self.members]


@dataclass(frozen=True)
class Seat:
    """One seat of a plan. Parties spread over ``count`` consecutive seats."""

    guest_id: str
    name: str
    party_index: int = 0


@dataclass
class PlanTable:
    id: str
    capacity: int
    name: str = ""
    seats: List[Seat] = field(default_factory=list)

    @property
    def occupancy(self) -> int:
        return len(self.seats)

    @property
    def guest_ids(self) -> List[str]:
        """Seated guest ids in seat order, one entry per party."""
        out: List[str] = []
        for seat in self.seats:
            if not out or out[-1] != seat.guest_id:
                out.append(seat.guest_id)
        return out


@dataclass
class SeatingPlan:
    """A complete assignment of every guest to a table."""

    id: str
    tables: List[PlanTable]
    score: int = 0

    def guest_ids_by_table(self) -> Dict[str, List[str]]:
        return {t.id: t.guest_ids for t in self.tables}

    def table_of(self, guest_id: str) -> Optional[str]:
        for t in self.tables:
            if guest_id in t.guest_ids:
                return t.id
        return None


@dataclass
class ConstraintConflict:
    """A structural problem found in the constraints before any placement."""

    id: str
    kind: str
    severity: str
    description: str
    affected_guests: List[str] = field(default_factory=list)

    @property
    def is_critical(self) -> bool:
        return self.severity == "critical"


@dataclass(frozen=True)
class ValidationMessage:
    kind: str  # "error" or "warning"
    message: str


@dataclass
class GenerationResult:
    """Ranked plans plus any messages gathered while producing them."""

    plans: List[SeatingPlan] = field(default_factory=list)
    errors: List[ValidationMessage] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.plans) and not any(e.kind == "error" for e in self.errors)

    @property
    def warnings(self) -> List[ValidationMessage]:
        return [e for e in self.errors if e.kind == "warning"]
