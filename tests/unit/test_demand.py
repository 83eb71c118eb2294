"""
Unit tests for the DemandTracker.

Covers:
- record(): state counts, stranded count, energy and power from recharged counters
- start(): baseline excludes energy recharged before the first step
- get_dataframe() / get_hourly_profile() / get_summary_stats()
- reset()
"""

from types import SimpleNamespace

import pytest
from conftest import at_hour
from ev_demand.analytics import DemandTracker
from ev_demand.states import StateKind


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_agent(kind=StateKind.IDLE, charge=50.0, recharged=0.0, stranded=False):
    return SimpleNamespace(
        state=SimpleNamespace(kind=kind),
        is_stranded=stranded,
        car=SimpleNamespace(charge=charge, recharged_kwh=recharged),
    )


# ---------------------------------------------------------------------------
# record()
# ---------------------------------------------------------------------------

class TestRecord:
    def test_counts_states(self):
        agents = [
            make_agent(StateKind.IDLE),
            make_agent(StateKind.DRIVE),
            make_agent(StateKind.DRIVE, stranded=True),
            make_agent(StateKind.RECHARGE),
        ]
        rec = DemandTracker().record(1, at_hour(8), agents, 0.1)
        assert (rec.agents, rec.idle, rec.driving, rec.recharging, rec.stranded) == (4, 1, 2, 1, 1)

    def test_energy_and_power_from_counters(self):
        agent = make_agent(StateKind.RECHARGE)
        tracker = DemandTracker()
        tracker.start([agent])
        agent.car.recharged_kwh = 5.0
        rec = tracker.record(1, at_hour(1), [agent], 0.5)
        assert rec.energy_kwh == pytest.approx(5.0)
        assert rec.power_kw == pytest.approx(10.0)

    def test_energy_is_per_step(self):
        agent = make_agent(StateKind.RECHARGE)
        tracker = DemandTracker()
        tracker.start([agent])
        agent.car.recharged_kwh = 2.0
        tracker.record(1, at_hour(1), [agent], 1.0)
        agent.car.recharged_kwh = 5.0
        rec = tracker.record(2, at_hour(2), [agent], 1.0)
        assert rec.energy_kwh == pytest.approx(3.0)

    def test_baseline_excludes_earlier_energy(self):
        agent = make_agent(StateKind.RECHARGE, recharged=7.0)
        tracker = DemandTracker()
        tracker.start([agent])
        rec = tracker.record(1, at_hour(1), [agent], 1.0)
        assert rec.energy_kwh == 0.0

    def test_mean_charge_and_time(self):
        agents = [make_agent(charge=40.0), make_agent(charge=60.0)]
        rec = DemandTracker().record(1, at_hour(8.5), agents, 0.1)
        assert rec.mean_charge == pytest.approx(50.0)
        assert (rec.time.hour, rec.time.minute) == (8, 30)

    def test_no_agents(self):
        rec = DemandTracker().record(1, at_hour(1), [], 0.1)
        assert rec.agents == 0
        assert rec.mean_charge == 0.0


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

class TestReporting:
    def make_tracker(self):
        agent = make_agent(StateKind.RECHARGE)
        tracker = DemandTracker()
        tracker.start([agent])
        for step, kwh in enumerate([1.0, 4.0, 2.0], start=1):
            agent.car.recharged_kwh += kwh
            tracker.record(step, at_hour(step), [agent], 1.0)
        return tracker

    def test_dataframe(self):
        df = self.make_tracker().get_dataframe()
        assert len(df) == 3
        assert list(df["power_kw"]) == pytest.approx([1.0, 4.0, 2.0])

    def test_empty_dataframe(self):
        assert DemandTracker().get_dataframe().empty

    def test_summary_stats(self):
        stats = self.make_tracker().get_summary_stats()
        assert stats['total_steps'] == 3
        assert stats['total_energy_kwh'] == pytest.approx(7.0)
        assert stats['peak_power_kw'] == pytest.approx(4.0)
        assert stats['peak_time'].startswith("2024-01-01T02:00:00")
        assert stats['mean_power_kw'] == pytest.approx(7.0 / 3)
        assert stats['max_recharging'] == 1

    def test_empty_summary(self):
        assert DemandTracker().get_summary_stats() == {}

    def test_hourly_profile(self):
        profile = self.make_tracker().get_hourly_profile()
        assert list(profile.index) == [1, 2, 3]
        assert profile.loc[2, "power_kw"] == pytest.approx(4.0)

    def test_reset(self):
        tracker = self.make_tracker()
        tracker.reset()
        assert tracker.records == []
        assert tracker.get_dataframe().empty
