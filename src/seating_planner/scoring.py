"""
Plan scoring and plan-diversity filtering.

Score components:
    seated individual: +10
    co-seated must pair: +100
    co-seated cannot pair: -200 (placement never produces one)
    adjacency partner at the same table: +50 per guest and partner
The total is clamped at zero.
"""
from __future__ import annotations

from itertools import combinations
from typing import Sequence

from .config import GenerationConfig
from .models import SeatingPlan
from .relations import Relations

SEAT_POINTS = 10
MUST_POINTS = 100
CANNOT_PENALTY = 200
ADJACENT_POINTS = 50


def score_plan(plan: SeatingPlan, relations: Relations) -> int:
    score = 0
    for table in plan.tables:
        score += SEAT_POINTS * table.occupancy
        ids = table.guest_ids
        for a, b in combinations(ids, 2):
            if relations.is_must(a, b):
                score += MUST_POINTS
            if relations.is_cannot(a, b):
                score -= CANNOT_PENALTY
        seated = set(ids)
        for gid in ids:
            score += ADJACENT_POINTS * sum(1 for p in relations.adjacent.get(gid, ()) if p in seated)
    return max(score, 0)


def plan_overlap(candidate: SeatingPlan, existing: SeatingPlan) -> float:
    """Share of the candidate's guests sitting at the same table id in ``existing``."""
    total = sum(len(t.guest_ids) for t in candidate.tables)
    if total == 0:
        return 0.0
    other = {tid: set(ids) for tid, ids in existing.guest_ids_by_table().items()}
    shared = 0
    for table in candidate.tables:
        if table.id in other:
            shared += len(set(table.guest_ids) & other[table.id])
    return shared / total


def is_unique(candidate: SeatingPlan, accepted: Sequence[SeatingPlan], config: GenerationConfig) -> bool:
    threshold = config.uniqueness_threshold(len(accepted))
    return all(plan_overlap(candidate, plan) <= threshold for plan in accepted)
