"""
Demand Tracker Module
Per-step aggregate charging demand and agent activity.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from ev_demand.states import StateKind


@dataclass
class DemandRecord:
    """Aggregate state of the population at the end of one step."""
    step: int
    timestamp: float
    time: datetime

    # Activity counts
    agents: int
    idle: int
    driving: int
    recharging: int
    stranded: int

    # Energy
    energy_kwh: float      # Energy recharged during the step
    power_kw: float        # Mean charging power over the step
    mean_charge: float     # Mean charge percentage


class DemandTracker:
    """Collects one DemandRecord per simulation step."""

    def __init__(self):
        self.records: List[DemandRecord] = []
        self._recharged_total: float = 0.0
        self.df: Optional[pd.DataFrame] = None

    def start(self, agents: Iterable[Any]) -> None:
        """Take the energy already recharged by ``agents`` as the baseline."""
        self._recharged_total = sum(a.car.recharged_kwh for a in agents)

    def record(self, step: int, timestamp: float, agents: Iterable[Any],
               step_hours: float) -> DemandRecord:
        """Record demand for the step that ended at ``timestamp``."""
        counts = {kind: 0 for kind in StateKind}
        stranded = 0
        charges = []
        recharged_total = 0.0
        n = 0
        for agent in agents:
            n += 1
            counts[agent.state.kind] += 1
            if agent.is_stranded:
                stranded += 1
            charges.append(agent.car.charge)
            recharged_total += agent.car.recharged_kwh

        energy = recharged_total - self._recharged_total
        self._recharged_total = recharged_total

        rec = DemandRecord(
            step=step,
            timestamp=timestamp,
            time=datetime.fromtimestamp(timestamp, tz=timezone.utc),
            agents=n,
            idle=counts[StateKind.IDLE],
            driving=counts[StateKind.DRIVE],
            recharging=counts[StateKind.RECHARGE],
            stranded=stranded,
            energy_kwh=energy,
            power_kw=energy / step_hours if step_hours > 0 else 0.0,
            mean_charge=float(np.mean(charges)) if charges else 0.0,
        )
        self.records.append(rec)
        self.df = None
        return rec

    def get_dataframe(self) -> pd.DataFrame:
        """Get pandas DataFrame of all records."""
        if self.df is None:
            if not self.records:
                return pd.DataFrame()
            self.df = pd.DataFrame([asdict(r) for r in self.records])
        return self.df

    def get_hourly_profile(self) -> pd.DataFrame:
        """Mean charging power and activity by hour of day."""
        df = self.get_dataframe()
        if df.empty:
            return df
        hours = df['time'].dt.hour.rename('hour')
        cols = ['power_kw', 'recharging', 'driving', 'idle', 'stranded']
        return df[cols].groupby(hours).mean()

    def get_summary_stats(self) -> Dict[str, Any]:
        """Compute summary statistics from all records."""
        df = self.get_dataframe()
        if df.empty:
            return {}

        peak_idx = df['power_kw'].idxmax()
        return {
            'total_steps': len(df),
            'agents': int(df['agents'].iloc[-1]),
            'total_energy_kwh': float(df['energy_kwh'].sum()),
            'mean_power_kw': float(df['power_kw'].mean()),
            'peak_power_kw': float(df.at[peak_idx, 'power_kw']),
            'peak_time': df.at[peak_idx, 'time'].isoformat(),
            'max_recharging': int(df['recharging'].max()),
            'max_stranded': int(df['stranded'].max()),
            'final_mean_charge': float(df['mean_charge'].iloc[-1]),
        }

    def reset(self) -> None:
        self.records.clear()
        self._recharged_total = 0.0
        self.df = None
