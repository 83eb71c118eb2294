"""
Recharge behaviour: turns a recharge desire percentage into a decision.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np


class RechargeDecision(Enum):
    """How a desire percentage becomes a yes/no decision."""
    THRESHOLD = "threshold"          # desire >= threshold
    PROBABILISTIC = "probabilistic"  # desire used as a probability


@dataclass
class RechargePolicy:
    """Decision rule applied when a drive ends at a place with a charger."""
    rule: RechargeDecision = RechargeDecision.THRESHOLD
    threshold: float = 50.0
    rng: Optional[np.random.Generator] = None

    def __post_init__(self):
        if isinstance(self.rule, str):
            try:
                self.rule = RechargeDecision(self.rule)
            except ValueError:
                raise ValueError(
                    f"Invalid recharge decision rule {self.rule!r}: "
                    f"expected one of {[r.value for r in RechargeDecision]}."
                ) from None
        if not 0 <= self.threshold <= 100:
            raise ValueError(f"Invalid recharge desire threshold {self.threshold}: must be within [0, 100].")
        if self.rule is RechargeDecision.PROBABILISTIC and self.rng is None:
            self.rng = np.random.default_rng()

    def wants_recharge(self, desire: float) -> bool:
        if self.rule is RechargeDecision.THRESHOLD:
            return desire >= self.threshold
        return self.rng.random() * 100.0 < desire
