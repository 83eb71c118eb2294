"""
Car Module
Electric vehicle energy state with immutable technical fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Optional


@dataclass
class Car:
    """
    Electric car with a charge percentage and fixed technical data.

    Technical fields are copied from a shared template when an agent is created
    (see ``clone``). Only ``charge`` and the trip counters change afterwards,
    and only the state currently running for the owning agent changes them.
    """
    brand: str
    model: str
    capacity_kwh: float                 # Charge capacity
    full_range_km: float                # Range at full charge
    full_recharge_time_h: float         # Recharge time from zero to full
    idle_discharge_rate: float = 0.0    # %/h lost while idle
    charge: float = 100.0               # Charge percentage (0-100)

    # Cumulative counters used for demand accounting
    recharged_kwh: float = field(default=0.0, compare=False)
    odometer_km: float = field(default=0.0, compare=False)

    def __post_init__(self):
        if self.capacity_kwh < 0:
            raise ValueError(f"Invalid capacity {self.capacity_kwh}: must be >= 0.")
        if self.full_range_km <= 0:
            raise ValueError(f"Invalid full range {self.full_range_km}: must be > 0.")
        if self.full_recharge_time_h <= 0:
            raise ValueError(
                f"Invalid full recharge time {self.full_recharge_time_h}: must be > 0."
            )
        if self.idle_discharge_rate < 0:
            raise ValueError(
                f"Invalid idle discharge rate {self.idle_discharge_rate}: must be >= 0."
            )
        self.set_charge(self.charge)

    # ========================================================================
    # CHARGE
    # ========================================================================

    def set_charge(self, charge: float) -> None:
        """Set charge percentage. Raises ValueError outside [0, 100]."""
        if charge < 0 or charge > 100:
            raise ValueError(f"Invalid charge percentage {charge}: must be within [0, 100].")
        self.charge = float(charge)

    def set_charge_by_delta(self, delta: float) -> None:
        """Shift charge percentage by ``delta``."""
        charge = self.charge + delta
        if charge < 0 or charge > 100:
            raise ValueError(
                f"Invalid charge delta percentage {delta}: "
                f"{self.charge} + {delta} leaves [0, 100]."
            )
        self.charge = charge

    @property
    def energy_kwh(self) -> float:
        """Stored energy at the current charge."""
        return self.capacity_kwh * self.charge / 100.0

    @property
    def range_km(self) -> float:
        """Distance the remaining charge allows."""
        return self.charge / 100.0 * self.full_range_km

    @property
    def recharge_power_kw(self) -> float:
        """Average power drawn while recharging from empty to full."""
        return self.capacity_kwh / self.full_recharge_time_h

    # ========================================================================
    # TEMPLATES
    # ========================================================================

    def clone(self, charge: Optional[float] = None) -> "Car":
        """Independent copy with zeroed counters, optionally at another charge."""
        return replace(
            self,
            charge=self.charge if charge is None else charge,
            recharged_kwh=0.0,
            odometer_km=0.0,
        )

    def get_status(self) -> Dict:
        return {
            'brand': self.brand,
            'model': self.model,
            'charge': self.charge,
            'energy_kwh': self.energy_kwh,
            'range_km': self.range_km,
            'recharged_kwh': self.recharged_kwh,
            'odometer_km': self.odometer_km,
        }

    def __repr__(self) -> str:
        return f"Car({self.brand} {self.model}, charge={self.charge:.1f}%)"
