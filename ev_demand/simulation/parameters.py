"""Simulation parameters."""

from __future__ import annotations

from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, Optional

from ev_demand.agent.behavior import RechargeDecision

INITIAL_CHARGE_METHODS = ("fixed", "random")


@dataclass
class SimulationParameters:
    """Complete option set for a simulation run."""
    # Data
    data_path: str = ""
    distance_factor: float = 1.0        # Applied to every distance read

    # Clock
    start_date: Optional[str] = None    # ISO date, None = now
    time_step_s: float = 6 * 60

    # Randomness
    random_seed: Optional[int] = None

    # Driving
    default_speed_kmh: float = 40.0

    # Agent history
    max_agent_logs: Optional[int] = 50
    max_agent_states: Optional[int] = 5

    # Initial charge
    initial_charge: float = 100.0
    initial_charge_method: str = "fixed"    # fixed | random
    min_initial_charge: float = 50.0

    # Defaults (None = first code in the data)
    default_car: Optional[str] = None
    default_recharge_behavior: Optional[str] = None

    # Recharge decision
    recharge_decision: str = RechargeDecision.THRESHOLD.value
    recharge_desire_threshold: float = 50.0

    # Reporting
    progress_interval: int = 10

    def __post_init__(self):
        if self.time_step_s <= 0:
            raise ValueError(f"Invalid time step {self.time_step_s}: must be > 0 s.")
        if self.default_speed_kmh <= 0:
            raise ValueError(f"Invalid default speed {self.default_speed_kmh}: must be > 0 km/h.")
        if self.distance_factor <= 0:
            raise ValueError(f"Invalid distance factor {self.distance_factor}: must be > 0.")
        for name in ("max_agent_logs", "max_agent_states"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"Invalid {name} {value}: must be >= 0.")
        if self.initial_charge_method not in INITIAL_CHARGE_METHODS:
            raise ValueError(
                f"Invalid initial charge assignment method {self.initial_charge_method!r}: "
                f"expected one of {INITIAL_CHARGE_METHODS}."
            )
        if not 0 <= self.initial_charge <= 100:
            raise ValueError(f"Invalid initial charge percentage {self.initial_charge}: must be within [0, 100].")
        if not 0 <= self.min_initial_charge < 100:
            raise ValueError(
                f"Invalid minimum initial charge percentage {self.min_initial_charge}: must be within [0, 100)."
            )
        valid_rules = [r.value for r in RechargeDecision]
        if self.recharge_decision not in valid_rules:
            raise ValueError(
                f"Invalid recharge decision rule {self.recharge_decision!r}: expected one of {valid_rules}."
            )
        if not 0 <= self.recharge_desire_threshold <= 100:
            raise ValueError(
                f"Invalid recharge desire threshold {self.recharge_desire_threshold}: must be within [0, 100]."
            )
        if self.progress_interval < 1:
            raise ValueError(f"Invalid progress interval {self.progress_interval}: must be >= 1.")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (for serialization)."""
        return asdict(self)

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "SimulationParameters":
        """Build from a dictionary, rejecting unknown option names."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Invalid option name(s) {', '.join(unknown)}.")
        return cls(**values)
