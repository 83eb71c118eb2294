"""
Drive state: the agent travels between its two commute locations.

While en route the agent location is encoded as ``origin|destination=NNN``
where NNN is the rounded percentage of the route still ahead.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any, Dict, Optional

from ev_demand.states.base import Relocate, State, StateKind, StateStatus

if TYPE_CHECKING:
    from ev_demand.agent.agent import Agent

logger = logging.getLogger(__name__)


def encode_route_position(origin: str, destination: str, distance: float,
                          distance_to: float) -> str:
    """Location string for a position ``distance_to`` km before ``destination``."""
    if distance_to <= 0:
        return destination
    if distance_to >= distance:
        return origin
    pct = int(math.floor(distance_to / distance * 100 + 0.5))
    return f"{origin}|{destination}={pct:03d}"


class Drive(State):
    """
    Travel from ``origin`` to ``destination`` (agent location labels).

    Args:
        agent: Owning agent
        relocate: Location setter granted by the agent
        origin: Start label ("home" or "work")
        destination: End label
        distance: Route length in km; looked up from the agent's reference
            data when omitted
        distance_to: Distance still ahead when the drive starts; defaults
            to the whole route (used to turn around mid-route)
    """
    kind = StateKind.DRIVE

    def __init__(self, agent: Agent, relocate: Relocate, origin: str, destination: str,
                 distance: Optional[float] = None, distance_to: Optional[float] = None):
        super().__init__(agent, relocate)
        self.origin = origin
        self.destination = destination
        if distance is None:
            distance = agent.route_distance(origin, destination)
        if distance < 0:
            raise ValueError(f"Invalid distance {distance} km from {origin} to {destination}: must be >= 0.")
        self.distance = float(distance)
        if distance_to is None:
            distance_to = self.distance
        if distance_to < 0 or distance_to > self.distance:
            raise ValueError(
                f"Invalid distance to destination {distance_to} km: must be within [0, {self.distance}]."
            )
        self._initial_distance_to = float(distance_to)
        self.distance_to = self._initial_distance_to
        self.speed = agent.travel_speed(origin, destination)
        if self.speed <= 0:
            raise ValueError(f"Invalid speed {self.speed} km/h from {origin} to {destination}: must be > 0.")
        self._stranded_reported = False

    @property
    def distance_from(self) -> float:
        """Distance covered from the origin."""
        return self.distance - self.distance_to

    @property
    def location(self) -> str:
        return encode_route_position(self.origin, self.destination, self.distance, self.distance_to)

    @property
    def stranded(self) -> bool:
        """Out of charge before reaching the destination."""
        return (self.status is StateStatus.RUNNING
                and self.distance_to > 0
                and self.agent.car.charge == 0)

    def reversed(self, relocate: Relocate) -> "Drive":
        """A new drive back towards the origin from the current position."""
        return Drive(self.agent, relocate, self.destination, self.origin,
                     distance=self.distance, distance_to=self.distance_from)

    # ========================================================================
    # HOOKS
    # ========================================================================

    def _on_start(self) -> None:
        self.distance_to = self._initial_distance_to
        self._set_location(self.location)

    def _on_run(self, duration: float) -> float:
        car = self.agent.car

        if self.distance_to <= 0:
            self.stop()
            return 0.0

        # Stranded: time passes without progress
        if car.charge == 0:
            self._report_stranded()
            return duration

        speed = self.speed / 3600.0  # km/s
        distance = speed * duration

        distance_max = car.range_km
        if distance >= distance_max:
            distance = distance_max
        if distance >= self.distance_to:
            distance = self.distance_to

        if distance >= distance_max:
            car.set_charge(0.0)
        else:
            car.set_charge(max(0.0, car.charge - distance / car.full_range_km * 100.0))
        car.odometer_km += distance

        if distance >= self.distance_to:
            self.distance_to = 0.0
        else:
            self.distance_to -= distance
        self._set_location(self.location)

        if self.distance_to == 0:
            self.stop()
        elif car.charge == 0:
            self._report_stranded()

        return distance / speed

    def _report_stranded(self) -> None:
        if self._stranded_reported:
            return
        self._stranded_reported = True
        logger.warning("Agent %s stranded at %s with %.1f km to %s",
                       self.agent.id, self.location, self.distance_to, self.destination)

    # ========================================================================
    # REPORTING
    # ========================================================================

    def get_log(self) -> Dict[str, Any]:
        log = super().get_log()
        log.update({
            'from': self.origin,
            'to': self.destination,
            'speed': self.speed,
            'distance': self.distance,
            'distance_to': self.distance_to,
        })
        return log

    def __repr__(self) -> str:
        return (f"Drive({self.origin}->{self.destination}, {self.status.name}, "
                f"{self.distance_to:.1f}/{self.distance:.1f}km left)")
