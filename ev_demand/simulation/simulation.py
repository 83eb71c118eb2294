"""
Simulation Orchestrator Module
Fixed-step clock driving every commuter agent and recording charging demand.
"""

from __future__ import annotations

import json
import logging
import os
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

import numpy as np
import pandas as pd

from ev_demand.agent import HOME, WORK, Agent, RechargePolicy
from ev_demand.analytics import DemandTracker
from ev_demand.data import ReferenceData
from ev_demand.simulation.parameters import SimulationParameters
from ev_demand.utils.timeutils import format_timestamp, parse_start_date, to_seconds
from ev_demand.vehicle import ConstantSpeed

logger = logging.getLogger(__name__)

# Attempts at drawing a commute schedule from overlapping start time windows
MAX_SCHEDULE_DRAWS = 100


@dataclass
class SimulationResult:
    """Complete result package from a simulation run."""
    simulation_id: str
    start_time: datetime
    end_time: datetime
    steps: int
    wall_clock_time_seconds: float

    # Data
    demand_dataframe: pd.DataFrame
    summary_statistics: Dict[str, Any]

    # Configuration
    parameters: SimulationParameters

    def save(self, output_dir: str = "./simulation_results") -> str:
        """Save demand table and summary to ``output_dir``."""
        os.makedirs(output_dir, exist_ok=True)
        base_path = os.path.join(output_dir, self.simulation_id)

        self.demand_dataframe.to_csv(f"{base_path}_demand.csv", index=False)

        with open(f"{base_path}_summary.json", 'w') as f:
            summary = {
                'simulation_id': self.simulation_id,
                'start_time': self.start_time.isoformat(),
                'end_time': self.end_time.isoformat(),
                'steps': self.steps,
                'wall_clock_time_seconds': self.wall_clock_time_seconds,
                'summary_statistics': self.summary_statistics,
                'parameters': self.parameters.to_dict(),
            }
            json.dump(summary, f, indent=2, default=str)

        return base_path


class Simulation:
    """
    Commuter population advanced by a shared fixed-step clock.

    Every agent sees the same timestamp at the start of a step; the clock
    only moves on once all agents have run. Schedules and initial charges
    are drawn while the agents are created, and per-agent decision streams
    are spawned from the same seed, so runs with the same seed and data are
    identical.
    """

    def __init__(self, parameters: Optional[SimulationParameters] = None,
                 data: Optional[ReferenceData] = None):
        self.params = parameters or SimulationParameters()
        self.id = str(uuid.uuid4())[:8]

        self.data = data or ReferenceData.from_directory(self.params.data_path,
                                                         self.params.distance_factor)
        self.timestamp: float = parse_start_date(self.params.start_date)

        if self.params.random_seed is not None:
            logger.info("Seeding the random number generator with %s.", self.params.random_seed)
        self._seed_sequence = np.random.SeedSequence(self.params.random_seed)
        self.rng = np.random.default_rng(self._seed_sequence)

        self.speed_model = ConstantSpeed(self.params.default_speed_kmh)
        self.default_car = self.params.default_car or self.data.default_car
        self.data.car_template(self.default_car)
        self.default_recharge_behavior = (self.params.default_recharge_behavior
                                          or self.data.default_recharge_behavior)
        if not self.data.has_recharge_behavior(self.default_recharge_behavior):
            raise ValueError(f"Invalid recharge behavior code {self.default_recharge_behavior!r}.")

        self.agents: Dict[int, Agent] = {}
        self.demand = DemandTracker()
        self.current_step = 0
        self.is_running = False
        self.result: Optional[SimulationResult] = None

        if self.data.agent_counts is not None:
            self._create_agents()
        self.demand.start(self.agents.values())

    # ========================================================================
    # AGENTS
    # ========================================================================

    def _initial_charge(self) -> float:
        if self.params.initial_charge_method == "fixed":
            return self.params.initial_charge
        return float(self.rng.uniform(self.params.min_initial_charge, 100.0))

    def _draw_schedule(self) -> Tuple[float, float]:
        """Departure hours to work and back home, redrawn until home comes after work."""
        for _ in range(MAX_SCHEDULE_DRAWS):
            time_to_work = self.data.travel_start_time(HOME, WORK, self.rng)
            time_to_home = self.data.travel_start_time(WORK, HOME, self.rng)
            if time_to_work < time_to_home:
                return time_to_work, time_to_home
        raise ValueError(
            f"Invalid start times: no departure home later than the departure to work "
            f"after {MAX_SCHEDULE_DRAWS} draws (last {time_to_work:.2f}h -> {time_to_home:.2f}h)."
        )

    def create_agent(self, home: str, work: str, car: Optional[str] = None,
                     recharge_behavior: Optional[str] = None) -> Agent:
        """Create, place and register one agent commuting from ``home`` to ``work``."""
        agent_id = len(self.agents) + 1
        vehicle = self.data.new_car(car or self.default_car, self._initial_charge())
        time_to_work, time_to_home = self._draw_schedule()

        decision_rng = None
        if self.params.recharge_decision == "probabilistic":
            decision_rng = np.random.default_rng(self._seed_sequence.spawn(1)[0])
        policy = RechargePolicy(self.params.recharge_decision,
                                self.params.recharge_desire_threshold,
                                decision_rng)

        agent = Agent(
            agent_id=agent_id,
            data=self.data,
            home=home,
            work=work,
            car=vehicle,
            recharge_behavior=recharge_behavior or self.default_recharge_behavior,
            time_to_work=time_to_work,
            time_to_home=time_to_home,
            timestamp=self.timestamp,
            speed_model=self.speed_model,
            recharge_policy=policy,
            max_logs=self.params.max_agent_logs,
            max_states=self.params.max_agent_states,
        )
        self.agents[agent_id] = agent
        return agent

    def _create_agents(self) -> None:
        logger.info("Creating agents...")
        for home, work, n in self.data.agent_pairs():
            for _ in range(n):
                self.create_agent(home, work)
        logger.info("%d agents are loaded.", len(self.agents))

    def get_agent(self, agent_id: int) -> Agent:
        if agent_id not in self.agents:
            raise ValueError(f"Invalid agent id {agent_id}.")
        return self.agents[agent_id]

    def get_agent_logs(self) -> pd.DataFrame:
        """Current log snapshot of every agent, one row each."""
        rows = []
        for agent_id, agent in self.agents.items():
            row = {'agent': agent_id}
            row.update(agent.get_log())
            rows.append(row)
        return pd.DataFrame(rows)

    # ========================================================================
    # MAIN SIMULATION LOOP
    # ========================================================================

    def run(self, steps: Optional[int] = None, duration: Optional[float] = None,
            unit: str = 's') -> SimulationResult:
        """
        Advance the clock step by step.

        Args:
            steps: Maximum number of steps
            duration: Maximum simulated time in ``unit``
            unit: Unit of ``duration`` (s, m or h)

        Returns:
            SimulationResult with the demand table of all steps run so far
        """
        if steps is None and duration is None:
            raise ValueError("Invalid run bounds: give steps, duration or both.")
        if steps is not None and (not isinstance(steps, int) or steps < 0):
            raise ValueError(f"Invalid steps {steps!r}: must be an integer >= 0.")
        if duration is not None:
            if duration <= 0:
                raise ValueError(f"Invalid duration {duration}: must be > 0.")
            duration = to_seconds(duration, unit)
            logger.info("Running for %d s.", duration)
        if steps is not None:
            logger.info("Running for %d steps.", steps)

        start = self.timestamp
        wall_start = time.time()
        self.is_running = True
        logger.info("Run started at %s.", format_timestamp(start))

        try:
            step = 0
            while steps is None or step < steps:
                if duration is not None and self.timestamp - start >= duration:
                    break
                self._execute_step()
                step += 1
        finally:
            self.is_running = False

        logger.info("Run finished at %s.", format_timestamp(self.timestamp))

        self.result = SimulationResult(
            simulation_id=self.id,
            start_time=datetime.fromtimestamp(start, tz=timezone.utc),
            end_time=datetime.fromtimestamp(self.timestamp, tz=timezone.utc),
            steps=self.current_step,
            wall_clock_time_seconds=time.time() - wall_start,
            demand_dataframe=self.demand.get_dataframe(),
            summary_statistics=self.demand.get_summary_stats(),
            parameters=self.params,
        )
        return self.result

    def _execute_step(self) -> None:
        step_s = self.params.time_step_s
        self.current_step += 1

        for agent in self.agents.values():
            agent.run(step_s)
        self.timestamp += step_s

        record = self.demand.record(self.current_step, self.timestamp,
                                    self.agents.values(), step_s / 3600.0)

        log = logger.info if self.current_step % self.params.progress_interval == 0 else logger.debug
        log("Step %d, %s | recharging %d | driving %d | stranded %d | %.1f kW",
            self.current_step, format_timestamp(self.timestamp),
            record.recharging, record.driving, record.stranded, record.power_kw)

    def get_demand_dataframe(self) -> pd.DataFrame:
        return self.demand.get_dataframe()

    def __repr__(self) -> str:
        status = "running" if self.is_running else "idle"
        return f"Simulation({self.id}, {status}, agents={len(self.agents)}, steps={self.current_step})"
