"""Command line interface for the seating planner."""
from __future__ import annotations

import argparse
import csv
import random
import sys
from pathlib import Path
from typing import List, Sequence

from .config import RESTRICTION_MODES, GenerationConfig
from .csv_loader import load_all
from .logging_config import configure_logging
from .models import SeatingPlan
from .solver import generate_seating_plans_sync, priority_from_ids


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate ranked seating plans")
    parser.add_argument("--guests", required=True, help="Path to guests.csv")
    parser.add_argument("--relationships", required=True, help="Path to relationships.csv")
    parser.add_argument("--tables", required=True, help="Path to tables.csv")
    parser.add_argument("--premium", action="store_true",
                        help="Use the premium quotas (more plans, more attempts).")
    parser.add_argument("--target-plans", type=int,
                        help="Stop once this many distinct plans are found.")
    parser.add_argument("--max-attempts", type=int,
                        help="Upper bound on placement attempts.")
    parser.add_argument("--time-budget", type=float,
                        help="Stop searching after this many seconds.")
    parser.add_argument("--restriction-mode", choices=RESTRICTION_MODES, default="intersection",
                        help="How table assignments combine inside a must/adjacent group.")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible runs.")
    parser.add_argument("--show", type=int, default=3,
                        help="Number of top plans to print.")
    parser.add_argument("--out-plans", type=Path,
                        help="Write every plan as CSV: plan,rank,score,table,seat,guest_id,guest,party_index.")
    parser.add_argument("--verbose", action="store_true", help="Debug logging.")
    return parser


def write_plans_csv(path: Path, plans: Sequence[SeatingPlan]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="") as f:
        w = csv.writer(f)
        w.writerow(["plan", "rank", "score", "table", "seat", "guest_id", "guest", "party_index"])
        for rank, plan in enumerate(plans, start=1):
            for table in plan.tables:
                for seat_no, seat in enumerate(table.seats, start=1):
                    w.writerow([plan.id, rank, plan.score, table.id, seat_no,
                                seat.guest_id, seat.name, seat.party_index])


def format_plan(rank: int, plan: SeatingPlan) -> List[str]:
    lines = [f"[PLAN {rank}] score={plan.score}"]
    for table in plan.tables:
        label = table.name or f"Table {table.id}"
        names = ", ".join(
            seat.name if seat.party_index == 0 else f"{seat.name} +{seat.party_index}"
            for seat in table.seats
        )
        lines.append(f"  {label} ({table.occupancy}/{table.capacity}): {names}")
    return lines


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point used by ``python -m seating_planner.cli``."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging("DEBUG" if args.verbose else None)

    try:
        data = load_all(args.guests, args.relationships, args.tables)
        config = GenerationConfig.for_tier(
            args.premium,
            target_plans=args.target_plans,
            max_attempts=args.max_attempts,
            time_budget=args.time_budget,
            restriction_mode=args.restriction_mode,
        )
    except (ValueError, KeyError) as e:
        print(f"Input validation error: {e}", file=sys.stderr)
        return 2

    result = generate_seating_plans_sync(
        data.guests,
        data.tables,
        data.constraints,
        data.adjacency,
        data.restrictions,
        config=config,
        rng=random.Random(args.seed),
        is_priority=priority_from_ids(data.priority_ids) if data.priority_ids else None,
    )

    for msg in result.errors:
        print(f"[{msg.kind.upper()}] {msg.message}")
    if not result.plans:
        return 1

    for rank, plan in enumerate(result.plans[: max(args.show, 0)], start=1):
        print("\n".join(format_plan(rank, plan)))

    if args.out_plans:
        write_plans_csv(args.out_plans, result.plans)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
