"""
Speed models for the Drive state.

A speed model is any callable ``(origin_id, destination_id, time_of_day_h)``
returning an average speed in km/h.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

SpeedModel = Callable[[str, str, float], float]


@dataclass(frozen=True)
class ConstantSpeed:
    """Same average speed for every route and time of day."""
    speed_kmh: float = 40.0

    def __post_init__(self):
        if self.speed_kmh <= 0:
            raise ValueError(f"Invalid speed {self.speed_kmh}: must be > 0 km/h.")

    def __call__(self, origin_id: str, destination_id: str, time_of_day_h: float) -> float:
        # TODO: route and time dependent speeds once congestion profiles are available
        return self.speed_kmh
