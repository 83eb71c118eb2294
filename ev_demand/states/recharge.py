"""Recharge state: the car is plugged in at home or work."""

from __future__ import annotations

from ev_demand.states.base import State, StateKind


class Recharge(State):
    """
    Linear charging at ``100 / full_recharge_time_h`` percent per hour.

    Keeps running at 100% charge; the agent's schedule ends the session.
    """
    kind = StateKind.RECHARGE

    def _on_run(self, duration: float) -> float:
        car = self.agent.car
        if car.charge != 100:
            before = car.charge
            charge = before + duration / 3600.0 / car.full_recharge_time_h * 100.0
            car.set_charge(min(100.0, charge))
            car.recharged_kwh += (car.charge - before) / 100.0 * car.capacity_kwh
        return duration
