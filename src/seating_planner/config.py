"""Tunable knobs for a generation run."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

FREE_TARGET_PLANS = 10
FREE_MAX_ATTEMPTS = 200
PREMIUM_TARGET_PLANS = 30
PREMIUM_MAX_ATTEMPTS = 500

RESTRICTION_MODES = ("intersection", "union")


@dataclass
class GenerationConfig:
    """Search budget, uniqueness schedule and placement options.

    ``restriction_mode`` decides how table restrictions combine inside a group:

    * ``"intersection"``: the group may only sit at tables every restricted
      member allows. Restrictions are hard.
    * ``"union"``: tables allowed by any member are tried first, then every
      other table. This keeps the behaviour of the first release.
    """

    target_plans: int = FREE_TARGET_PLANS
    max_attempts: int = FREE_MAX_ATTEMPTS
    uniqueness_start: float = 0.8
    uniqueness_step: float = 0.05
    uniqueness_floor: float = 0.5
    yield_every: int = 10
    time_budget: Optional[float] = None  # seconds
    restriction_mode: str = "intersection"

    def __post_init__(self) -> None:
        if self.target_plans < 1:
            raise ValueError("target_plans must be at least 1")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.yield_every < 1:
            raise ValueError("yield_every must be at least 1")
        if not 0.0 <= self.uniqueness_floor <= self.uniqueness_start <= 1.0:
            raise ValueError("uniqueness thresholds must satisfy 0 <= floor <= start <= 1")
        if self.restriction_mode not in RESTRICTION_MODES:
            raise ValueError(
                f"Unknown restriction mode {self.restriction_mode!r}, expected one of {', '.join(RESTRICTION_MODES)}"
            )

    @classmethod
    def for_tier(cls, premium: bool = False, **overrides) -> "GenerationConfig":
        """Quotas for the free or premium tier, with optional overrides."""
        base = {
            "target_plans": PREMIUM_TARGET_PLANS if premium else FREE_TARGET_PLANS,
            "max_attempts": PREMIUM_MAX_ATTEMPTS if premium else FREE_MAX_ATTEMPTS,
        }
        base.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**base)

    def uniqueness_threshold(self, accepted: int) -> float:
        """Overlap above which a candidate counts as a duplicate."""
        return max(self.uniqueness_start - self.uniqueness_step * accepted, self.uniqueness_floor)
