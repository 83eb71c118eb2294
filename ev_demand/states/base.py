"""
State Module
Duration-bounded run protocol shared by the Idle, Drive and Recharge states.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Dict, Optional

from ev_demand.utils.timeutils import convert_duration, to_seconds

if TYPE_CHECKING:
    from ev_demand.agent.agent import Agent

# Location setter handed to a state by its agent
Relocate = Callable[[str], None]


class StateKind(Enum):
    """Closed set of agent activities."""
    IDLE = auto()
    DRIVE = auto()
    RECHARGE = auto()


class StateStatus(Enum):
    """Lifecycle of a state. Only ever moves forward."""
    PENDING = auto()
    RUNNING = auto()
    STOPPED = auto()


class State:
    """
    Base class of the agent states.

    Lifecycle is PENDING -> RUNNING -> STOPPED. A state optionally carries a
    duration budget; ``run`` never lets elapsed time exceed it and stops the
    state once it is used up. Variants implement ``_on_run`` and may return
    less time than requested, in which case the returned value is what
    actually elapsed.
    """

    kind: ClassVar[StateKind]

    def __init__(self, agent: Agent, relocate: Optional[Relocate] = None):
        self.agent = agent
        self._relocate = relocate
        self.status = StateStatus.PENDING
        self._duration: Optional[float] = None
        self.elapsed: float = 0.0

    # ========================================================================
    # DURATION
    # ========================================================================

    def get_duration(self, unit: str = 's') -> Optional[float]:
        """Duration budget in ``unit``, or None if the state is open-ended."""
        if self._duration is None:
            return None
        return convert_duration(self._duration, 's', unit)

    def set_duration(self, duration: float, unit: str = 's') -> None:
        if duration < 0:
            raise ValueError(f"Invalid duration {duration}: must be >= 0.")
        duration = to_seconds(duration, unit)
        if duration < self.elapsed:
            raise ValueError(
                f"Invalid duration {duration}s: shorter than the elapsed time {self.elapsed}s."
            )
        self._duration = duration

    @property
    def remaining(self) -> Optional[float]:
        if self._duration is None:
            return None
        return self._duration - self.elapsed

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    def start(self) -> None:
        if self.status is not StateStatus.PENDING:
            raise RuntimeError(f"Cannot start {self}: state is {self.status.name}, expected PENDING.")
        self.status = StateStatus.RUNNING
        self.elapsed = 0.0
        self._on_start()

    def stop(self) -> None:
        if self.status is not StateStatus.RUNNING:
            raise RuntimeError(f"Cannot stop {self}: state is {self.status.name}, expected RUNNING.")
        self._on_stop()
        self.status = StateStatus.STOPPED

    def run(self, duration: float, unit: str = 's') -> float:
        """
        Run the state for up to ``duration``.

        Returns:
            Elapsed time in seconds. Can be lower than requested when the
            budget runs out or the variant finishes early.
        """
        if self.status is StateStatus.STOPPED:
            raise RuntimeError(f"Cannot run {self}: state is STOPPED.")
        if self.status is StateStatus.PENDING:
            self.start()
        if duration < 0:
            raise ValueError(f"Invalid duration {duration}: must be >= 0.")
        if duration == 0:
            return 0.0

        duration = to_seconds(duration, unit)
        remaining = self.remaining
        if remaining is not None and duration >= remaining:
            elapsed = min(self._on_run(remaining), remaining)
            if self.status is not StateStatus.STOPPED:
                self.stop()
        else:
            elapsed = min(self._on_run(duration), duration)

        self.elapsed += elapsed
        return elapsed

    # ========================================================================
    # HOOKS
    # ========================================================================

    def _on_start(self) -> None:
        pass

    def _on_stop(self) -> None:
        pass

    def _on_run(self, duration: float) -> float:
        raise NotImplementedError

    def _set_location(self, location: str) -> None:
        if self._relocate is None:
            raise RuntimeError(f"{self} was not granted permission to move its agent.")
        self._relocate(location)

    # ========================================================================
    # REPORTING
    # ========================================================================

    @property
    def name(self) -> str:
        return self.kind.name.capitalize()

    def get_log(self) -> Dict[str, Any]:
        log: Dict[str, Any] = {'status': self.status.name, 'elapsed': self.elapsed}
        if self._duration is not None:
            log['duration'] = self._duration
        return log

    def __repr__(self) -> str:
        return f"{self.name}({self.status.name}, elapsed={self.elapsed:.0f}s)"
