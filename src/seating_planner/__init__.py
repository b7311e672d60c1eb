"""Seating planner package."""
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
from .config import GenerationConfig
from .conflicts import detect_constraint_conflicts
from .csv_loader import SeatingInput, load_all, load_guests, load_relationships, load_tables
from .solver import (
    SeatingPlanner,
    generate_seating_plans,
    generate_seating_plans_sync,
    priority_from_ids,
)

__all__ = [
    "AtomicGroup",
    "ConstraintConflict",
    "GenerationResult",
    "Guest",
    "PlanTable",
    "Seat",
    "SeatingPlan",
    "Table",
    "ValidationMessage",
    "GenerationConfig",
    "detect_constraint_conflicts",
    "SeatingInput",
    "load_all",
    "load_guests",
    "load_relationships",
    "load_tables",
    "SeatingPlanner",
    "generate_seating_plans",
    "generate_seating_plans_sync",
    "priority_from_ids",
]
