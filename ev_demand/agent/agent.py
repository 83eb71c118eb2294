"""
Agent Module
Commuting EV driver alternating between home and work.

The agent owns its car and exactly one current state. It decides the next
state when the current one finishes, and after every run it checks that
where it is (or is heading) still matches the time of day.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Deque, Dict, List, Optional, Protocol

from ev_demand.agent.behavior import RechargePolicy
from ev_demand.states import Drive, Idle, Recharge, State, StateKind, StateStatus
from ev_demand.utils.timeutils import time_of_day, to_seconds
from ev_demand.vehicle import Car, ConstantSpeed, SpeedModel

logger = logging.getLogger(__name__)

HOME = "home"
WORK = "work"


class AgentData(Protocol):
    """Read-only reference data an agent consults."""

    def has_location(self, location_id: str) -> bool: ...

    def has_recharge_behavior(self, code: str) -> bool: ...

    def distance(self, from_id: str, to_id: str) -> float: ...

    def recharge_desire(self, code: str, charge: float) -> float: ...


class Agent:
    """
    Commuter with a home, a workplace and a daily schedule.

    Args:
        agent_id: Identifier used in logs
        data: Reference data (distances, recharge behaviour curves)
        home: Home location id
        work: Work location id
        car: Car owned by the agent (already cloned from its template)
        recharge_behavior: Recharge behaviour curve code
        time_to_work: Hour of day the agent leaves home
        time_to_home: Hour of day the agent leaves work
        timestamp: Clock value the agent is placed at
        speed_model: Average speed per route, defaults to 40 km/h everywhere
        recharge_policy: Rule turning recharge desire into a decision
        max_logs: Snapshots kept in ``logs`` (0 or None keeps all)
        max_states: Finished states kept in ``history`` (0 or None keeps all)
    """

    def __init__(
        self,
        agent_id: Any,
        data: AgentData,
        home: str,
        work: str,
        car: Car,
        recharge_behavior: str,
        time_to_work: float,
        time_to_home: float,
        timestamp: float,
        speed_model: Optional[SpeedModel] = None,
        recharge_policy: Optional[RechargePolicy] = None,
        max_logs: Optional[int] = 50,
        max_states: Optional[int] = 5,
    ):
        self.id = agent_id
        self.data = data
        self.home = home
        self.work = work
        self.car = car
        self.recharge_behavior = recharge_behavior
        self._location: Optional[str] = None
        self._state: Optional[State] = None

        for label, location_id in ((HOME, home), (WORK, work)):
            if not data.has_location(location_id):
                raise ValueError(f"Invalid {label} location {location_id!r}: not in the distance table.")
        if not data.has_recharge_behavior(recharge_behavior):
            raise ValueError(f"Invalid recharge behavior code {recharge_behavior!r}.")
        if not 0 <= time_to_work < time_to_home < 24:
            raise ValueError(
                f"Invalid commute schedule {time_to_work:.2f}h -> {time_to_home:.2f}h: "
                f"expected 0 <= time to work < time to home < 24."
            )

        self.time_to_work = float(time_to_work)
        self.time_to_home = float(time_to_home)
        self.speed_model = speed_model or ConstantSpeed()
        self.recharge_policy = recharge_policy or RechargePolicy()

        self._timestamp = float(timestamp)
        self._logs: Deque[Dict[str, Any]] = deque(maxlen=max_logs or None)
        self._history: Deque[State] = deque(maxlen=max_states or None)

        self._set_initial_state()

    # ========================================================================
    # ACCESSORS
    # ========================================================================

    @property
    def timestamp(self) -> float:
        return self._timestamp

    @property
    def location(self) -> Optional[str]:
        """Either "home", "work" or an en-route marker ``from|to=NNN``."""
        return self._location

    @property
    def state(self) -> State:
        return self._state

    @property
    def logs(self) -> List[Dict[str, Any]]:
        return list(self._logs)

    @property
    def history(self) -> List[State]:
        return list(self._history)

    @property
    def is_stranded(self) -> bool:
        return isinstance(self._state, Drive) and self._state.stranded

    def location_id(self, label: str) -> str:
        """Location id for a "home" / "work" label."""
        if label == HOME:
            return self.home
        if label == WORK:
            return self.work
        raise ValueError(f"Invalid location label {label!r}: expected {HOME!r} or {WORK!r}.")

    def _set_location(self, location: str) -> None:
        # Handed to states at construction; nothing else moves the agent
        self._location = location

    # ========================================================================
    # ROUTES
    # ========================================================================

    def route_distance(self, origin: str, destination: str) -> float:
        return self.data.distance(self.location_id(origin), self.location_id(destination))

    def travel_speed(self, origin: str, destination: str) -> float:
        return self.speed_model(self.location_id(origin), self.location_id(destination),
                                time_of_day(self._timestamp))

    def travel_duration(self, origin: str, destination: str) -> float:
        """Travel time in hours."""
        return self.route_distance(origin, destination) / self.travel_speed(origin, destination)

    def _new_drive(self, origin: str, destination: str) -> Drive:
        return Drive(self, self._set_location, origin, destination)

    # ========================================================================
    # TRANSITION POLICY
    # ========================================================================

    def recharge_desire(self) -> float:
        return self.data.recharge_desire(self.recharge_behavior, self.car.charge)

    def wants_recharge(self) -> bool:
        return self.recharge_policy.wants_recharge(self.recharge_desire())

    def can_recharge(self) -> bool:
        return self._location in (HOME, WORK)

    def get_next_state(self) -> State:
        """State following the current one."""
        last = self._state
        if last.kind is StateKind.DRIVE:
            if self.can_recharge() and self.wants_recharge():
                return Recharge(self, self._set_location)
            return Idle(self, self._set_location)
        if last.kind is StateKind.IDLE or last.kind is StateKind.RECHARGE:
            if self._location == HOME:
                return self._new_drive(HOME, WORK)
            return self._new_drive(WORK, HOME)
        raise RuntimeError(f"Invalid last state {last!r} for agent {self.id}.")

    # ========================================================================
    # SIMULATION STEP
    # ========================================================================

    def run(self, duration: float, unit: str = 's') -> None:
        """Advance the agent by ``duration``, switching states as they finish."""
        if duration < 0:
            raise ValueError(f"Invalid duration {duration}: must be >= 0.")
        if duration == 0:
            return
        remaining = to_seconds(duration, unit)

        while remaining > 0:
            elapsed = self._state.run(remaining)
            self._timestamp += elapsed
            remaining -= elapsed
            if self._state.status is StateStatus.STOPPED:
                self._change_state(self.get_next_state())
            elif elapsed <= 0:
                raise RuntimeError(
                    f"{self._state!r} of agent {self.id} made no progress with {remaining}s left."
                )

        self._check_state()

    def _check_state(self) -> None:
        """Reroute the agent if the time of day crossed a departure time mid-state."""
        hour = time_of_day(self._timestamp)
        if hour < self.time_to_work or hour > self.time_to_home:
            heading = HOME
        else:
            heading = WORK

        if self._location == heading:
            return
        state = self._state
        if isinstance(state, Drive) and state.destination == heading:
            return

        if isinstance(state, Drive):
            new_state = state.reversed(self._set_location)
        elif self._location in (HOME, WORK):
            new_state = self._new_drive(self._location, heading)
        else:
            raise RuntimeError(
                f"Agent {self.id} at {self._location!r} in {state!r} cannot be sent {heading}."
            )

        logger.debug("Agent %s rerouted %s at %.2fh from %s", self.id, heading, hour, self._location)
        if state.status is StateStatus.RUNNING:
            state.stop()
        self._change_state(new_state)

    def _change_state(self, state: State) -> None:
        self._log()
        self._history.append(self._state)
        logger.debug("Agent %s: %s -> %s", self.id, self._state.name, state.name)
        self._state = state
        self._state.start()

    def _set_initial_state(self) -> None:
        """Place the agent where its schedule puts it at the current timestamp."""
        hour = time_of_day(self._timestamp)

        if hour < self.time_to_work:
            self._location = HOME
            self._state = Idle(self, self._set_location)
        else:
            duration = self.travel_duration(HOME, WORK)
            if hour < self.time_to_work + duration:
                self._state = self._new_drive(HOME, WORK)
                self._state.run(hour - self.time_to_work, 'h')
            elif hour < self.time_to_home:
                self._location = WORK
                self._state = Idle(self, self._set_location)
                self._state.run(hour - self.time_to_work - duration, 'h')
            else:
                duration = self.travel_duration(WORK, HOME)
                if hour < self.time_to_home + duration:
                    self._state = self._new_drive(WORK, HOME)
                    self._state.run(hour - self.time_to_home, 'h')
                else:
                    self._location = HOME
                    self._state = Idle(self, self._set_location)
                    self._state.run(hour - self.time_to_home - duration, 'h')

        self._log()

    # ========================================================================
    # REPORTING
    # ========================================================================

    def get_log(self) -> Dict[str, Any]:
        """Snapshot of the agent and its current state."""
        log: Dict[str, Any] = {
            'state': self._state.name,
            'location': self._location,
            'charge': self.car.charge,
        }
        log.update(self._state.get_log())
        return log

    def _log(self) -> None:
        entry = {'timestamp': self._timestamp}
        entry.update(self.get_log())
        self._logs.append(entry)

    def __repr__(self) -> str:
        state_name = self._state.name if self._state is not None else "unplaced"
        return (f"Agent({self.id}, {self.home}->{self.work}, {self._location}, "
                f"{state_name}, charge={self.car.charge:.1f}%)")
