"""Idle state: the car is parked and slowly self-discharges."""

from __future__ import annotations

from ev_demand.states.base import State, StateKind


class Idle(State):
    kind = StateKind.IDLE

    def _on_run(self, duration: float) -> float:
        car = self.agent.car
        if car.charge != 0:
            charge = car.charge - car.idle_discharge_rate * duration / 3600.0
            car.set_charge(max(0.0, charge))
        # Idling never finishes early
        return duration
