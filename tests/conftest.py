"""
Shared pytest fixtures for the EV Demand test suite.

Reference data is built in memory: two locations "A" and "B" 20 km apart,
one commute window per direction (08:00-09:00 out, 17:00-18:00 back) and a
recharge behaviour that wants to recharge below 50% charge.
"""

import pandas as pd
import pytest

from ev_demand.data import ReferenceData
from ev_demand.vehicle import Car

# 2024-01-01 00:00:00 UTC
DAY = 1704067200.0


def at_hour(hour, day=DAY):
    """Epoch timestamp ``hour`` hours after midnight of ``day``."""
    return day + hour * 3600.0


def distances_frame():
    return pd.DataFrame(
        [[0.0, 20.0], [None, 0.0]],
        index=["A", "B"],
        columns=["A", "B"],
    )


def behaviors_frame():
    return pd.DataFrame({
        "code": ["std", "std", "std"],
        "charge": [20, 50, 80],
        "percentage": [100, 50, 0],
    })


def cars_frame():
    return pd.DataFrame({
        "code": ["c1", "c2"],
        "brand": ["Test", "Test"],
        "model": ["T1", "T2"],
        "capacity": [50, 40],
        "range": [200, 300],
        "recharge": [10, 8],
        "idle_discharge": [0, 1],
    })


def start_times_frame():
    return pd.DataFrame({
        "from": ["home", "work"],
        "to": ["work", "home"],
        "start": [8, 17],
        "end": [9, 18],
        "percentage": [100, 100],
    })


def agents_frame():
    return pd.DataFrame(
        [[0, 2], [1, None]],
        index=["A", "B"],
        columns=["A", "B"],
    )


@pytest.fixture
def reference_data():
    """Reference data without an agent matrix."""
    return ReferenceData.from_frames(
        distances_frame(), behaviors_frame(), cars_frame(), start_times_frame()
    )


@pytest.fixture
def populated_data():
    """Reference data with three agents: two A->B, one B->A."""
    return ReferenceData.from_frames(
        distances_frame(), behaviors_frame(), cars_frame(), start_times_frame(),
        agents=agents_frame(),
    )


@pytest.fixture
def data_dir(tmp_path):
    """The in-memory reference tables written as CSV files."""
    distances_frame().to_csv(tmp_path / "distances.csv", index_label="id")
    agents_frame().to_csv(tmp_path / "agents.csv", index_label="id")
    behaviors_frame().to_csv(tmp_path / "recharge_behaviors.csv", index=False)
    cars_frame().to_csv(tmp_path / "cars.csv", index=False)
    start_times_frame().to_csv(tmp_path / "start_times.csv", index=False)
    return tmp_path


@pytest.fixture
def default_car():
    """50 kWh, 200 km range, 10 h full recharge, no idle discharge."""
    return Car(brand="Test", model="T1", capacity_kwh=50.0, full_range_km=200.0,
               full_recharge_time_h=10.0)
