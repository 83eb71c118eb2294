"""
Reference data providers.

Distances, recharge behaviour curves, car models, travel start time
distributions and the agent population are loaded from CSV files in a data
directory and served read-only to the agents and the simulation.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ev_demand.vehicle.car import Car

logger = logging.getLogger(__name__)

DISTANCES_FILE = "distances.csv"
RECHARGE_BEHAVIORS_FILE = "recharge_behaviors.csv"
CARS_FILE = "cars.csv"
START_TIMES_FILE = "start_times.csv"
AGENTS_FILE = "agents.csv"


# ============================================================================
# VALIDATION
# ============================================================================

@dataclass(frozen=True)
class Column:
    """Expected column of a data table."""
    name: str
    kind: str = "str"                 # "str" or "float"
    nullable: bool = False
    min_value: Optional[float] = None
    max_value: Optional[float] = None


def _line(df: pd.DataFrame, index) -> int:
    # Header is line 1
    return df.index.get_loc(index) + 2


def validate_table(df: pd.DataFrame, columns: Sequence[Column], source: str) -> pd.DataFrame:
    """
    Check and convert the given columns of a raw table.

    Raises:
        ValueError: naming ``source:line:column`` and the offending value.
    """
    missing = [c.name for c in columns if c.name not in df.columns]
    if missing:
        raise ValueError(f"{source}: missing column(s) {', '.join(missing)}.")

    out = pd.DataFrame(index=df.index)
    for col in columns:
        raw = df[col.name]
        text = raw.astype(str).str.strip()
        empty = raw.isna() | (text == "")

        if not col.nullable and empty.any():
            idx = empty[empty].index[0]
            raise ValueError(f"{source}:{_line(df, idx)}:{col.name}: no value.")

        if col.kind == "float":
            values = pd.to_numeric(text.where(~empty), errors="coerce")
            bad = values.isna() & ~empty
            if bad.any():
                idx = bad[bad].index[0]
                raise ValueError(f"{source}:{_line(df, idx)}:{col.name}: invalid number {raw[idx]!r}.")
            if col.min_value is not None and (values < col.min_value).any():
                idx = values[values < col.min_value].index[0]
                raise ValueError(
                    f"{source}:{_line(df, idx)}:{col.name}: value {values[idx]} is below {col.min_value}."
                )
            if col.max_value is not None and (values > col.max_value).any():
                idx = values[values > col.max_value].index[0]
                raise ValueError(
                    f"{source}:{_line(df, idx)}:{col.name}: value {values[idx]} is above {col.max_value}."
                )
            out[col.name] = values.astype(float)
        else:
            out[col.name] = text.where(~empty, None)
    return out


def validate_matrix(df: pd.DataFrame, source: str, integer: bool = False) -> pd.DataFrame:
    """
    Numeric, non-negative matrix keyed by string row / column ids. Blank cells become NaN.

    Raises:
        ValueError: naming ``source:line:column`` and the offending value.
    """
    df = df.copy()
    df.index = df.index.map(lambda v: str(v).strip())
    df.columns = [str(c).strip() for c in df.columns]
    for col in df.columns:
        raw = df[col].reset_index(drop=True)
        text = raw.astype(str).str.strip()
        empty = raw.isna() | (text == "")
        values = pd.to_numeric(text.where(~empty), errors="coerce")
        bad = values.isna() & ~empty
        if bad.any():
            pos = bad.idxmax()
            raise ValueError(f"{source}:{pos + 2}:{col}: invalid number {raw[pos]!r}.")
        negative = values < 0
        if negative.any():
            pos = negative.idxmax()
            raise ValueError(f"{source}:{pos + 2}:{col}: value {values[pos]} is below 0.")
        fractional = values.notna() & (values % 1 != 0)
        if integer and fractional.any():
            pos = fractional.idxmax()
            raise ValueError(f"{source}:{pos + 2}:{col}: value {values[pos]} is not an integer.")
        df[col] = values.astype(float).to_numpy()
    return df


def _read_table(path: str) -> pd.DataFrame:
    return pd.read_csv(path, dtype=str, keep_default_na=False, skipinitialspace=True)


def _read_matrix(path: str) -> pd.DataFrame:
    return pd.read_csv(path, index_col=0, dtype=str, keep_default_na=False, skipinitialspace=True)


# ============================================================================
# TABLE PARSERS
# ============================================================================

@dataclass(frozen=True)
class StartTimeBin:
    """Departure window with its cumulative share of trips."""
    start: float
    end: float
    percentage: float


def parse_recharge_behaviors(df: pd.DataFrame, source: str = RECHARGE_BEHAVIORS_FILE
                             ) -> Dict[str, Tuple[np.ndarray, np.ndarray]]:
    """Charge -> desire breakpoints per behaviour code, anchored at 0% and 100%."""
    table = validate_table(df, [
        Column("code"),
        Column("charge", "float", min_value=0, max_value=100),
        Column("percentage", "float", min_value=0, max_value=100),
    ], source)

    series: Dict[str, Dict[float, float]] = {}
    for row in table.itertuples(index=False):
        series.setdefault(row.code, {})[row.charge] = row.percentage
    if not series:
        raise ValueError(f"{source}: no recharge behaviors.")

    curves = {}
    for code, points in series.items():
        points.setdefault(0.0, 0.0)
        points.setdefault(100.0, 0.0)
        charges = np.array(sorted(points), dtype=float)
        desires = np.array([points[c] for c in charges], dtype=float)
        curves[code] = (charges, desires)
    return curves


def parse_cars(df: pd.DataFrame, source: str = CARS_FILE) -> Dict[str, Car]:
    table = validate_table(df, [
        Column("code"),
        Column("brand"),
        Column("model"),
        Column("capacity", "float", min_value=0),
        Column("range", "float", min_value=0),
        Column("recharge", "float", min_value=0),
        Column("idle_discharge", "float", min_value=0),
    ], source)

    cars: Dict[str, Car] = {}
    for idx, row in table.iterrows():
        line = _line(table, idx)
        if row["code"] in cars:
            raise ValueError(f"{source}:{line}:code: duplicate key {row['code']!r}.")
        try:
            cars[row["code"]] = Car(
                brand=row["brand"],
                model=row["model"],
                capacity_kwh=row["capacity"],
                full_range_km=row["range"],
                full_recharge_time_h=row["recharge"],
                idle_discharge_rate=row["idle_discharge"],
            )
        except ValueError as exc:
            raise ValueError(f"{source}:{line}: {exc}") from exc
    if not cars:
        raise ValueError(f"{source}: no car models.")
    return cars


def parse_start_times(df: pd.DataFrame, source: str = START_TIMES_FILE
                      ) -> Dict[Tuple[str, str], List[StartTimeBin]]:
    table = validate_table(df, [
        Column("from"),
        Column("to"),
        Column("start", "float", min_value=0, max_value=24),
        Column("end", "float", min_value=0, max_value=24),
        Column("percentage", "float", min_value=0, max_value=100),
    ], source)

    bins: Dict[Tuple[str, str], List[StartTimeBin]] = {}
    rows = zip(table["from"], table["to"], table["start"], table["end"], table["percentage"])
    for from_label, to_label, start, end, percentage in rows:
        bins.setdefault((from_label, to_label), []).append(StartTimeBin(start, end, percentage))
    return bins


# ============================================================================
# REFERENCE DATA
# ============================================================================

class ReferenceData:
    """
    Read-only lookups used by the simulation core.

    Nothing here is mutated after construction, so one instance can be
    shared by every agent.
    """

    def __init__(
        self,
        distances: pd.DataFrame,
        recharge_behaviors: Dict[str, Tuple[np.ndarray, np.ndarray]],
        cars: Dict[str, Car],
        start_times: Dict[Tuple[str, str], List[StartTimeBin]],
        agent_counts: Optional[pd.DataFrame] = None,
    ):
        self.distances = distances
        self.recharge_behaviors = recharge_behaviors
        self.cars = cars
        self.start_times = start_times
        self.agent_counts = agent_counts
        self._locations = set(distances.index) | set(distances.columns)

    @classmethod
    def from_frames(
        cls,
        distances: pd.DataFrame,
        recharge_behaviors: pd.DataFrame,
        cars: pd.DataFrame,
        start_times: pd.DataFrame,
        agents: Optional[pd.DataFrame] = None,
        distance_factor: float = 1.0,
    ) -> "ReferenceData":
        """Build from raw tables (matrices indexed by location id)."""
        matrix = validate_matrix(distances, DISTANCES_FILE) * distance_factor
        counts = validate_matrix(agents, AGENTS_FILE, integer=True) if agents is not None else None
        return cls(
            distances=matrix,
            recharge_behaviors=parse_recharge_behaviors(recharge_behaviors),
            cars=parse_cars(cars),
            start_times=parse_start_times(start_times),
            agent_counts=counts,
        )

    @classmethod
    def from_directory(cls, data_path: str, distance_factor: float = 1.0) -> "ReferenceData":
        """Load every reference table from ``data_path``."""
        def path(name: str) -> str:
            return os.path.join(data_path, name)

        logger.info("Loading distances...")
        matrix = validate_matrix(_read_matrix(path(DISTANCES_FILE)), DISTANCES_FILE) * distance_factor
        logger.info("%d x %d distances are loaded.", matrix.shape[0], matrix.shape[1])

        logger.info("Loading recharge behaviors...")
        behaviors = parse_recharge_behaviors(_read_table(path(RECHARGE_BEHAVIORS_FILE)))
        logger.info("%d recharge behaviors are loaded.", len(behaviors))

        logger.info("Loading car models...")
        cars = parse_cars(_read_table(path(CARS_FILE)))
        logger.info("%d car models are loaded.", len(cars))

        logger.info("Loading start times...")
        start_times = parse_start_times(_read_table(path(START_TIMES_FILE)))
        logger.info("Start times are loaded for %d routes.", len(start_times))

        counts = None
        if os.path.exists(path(AGENTS_FILE)):
            counts = validate_matrix(_read_matrix(path(AGENTS_FILE)), AGENTS_FILE, integer=True)
            logger.info("Agent matrix is loaded: %d agents.", int(counts.fillna(0).values.sum()))

        return cls(matrix, behaviors, cars, start_times, counts)

    # ========================================================================
    # LOOKUPS
    # ========================================================================

    def has_location(self, location_id: str) -> bool:
        return location_id in self._locations

    def _matrix_value(self, row: str, col: str) -> Optional[float]:
        if row not in self.distances.index or col not in self.distances.columns:
            return None
        value = self.distances.at[row, col]
        if pd.isna(value):
            return None
        return float(value)

    def distance(self, from_id: str, to_id: str) -> float:
        """Distance in km, trying the reverse pair when the forward one is absent."""
        value = self._matrix_value(from_id, to_id)
        if value is None:
            value = self._matrix_value(to_id, from_id)
        if value is None:
            raise ValueError(f"Invalid location pair {from_id!r} - {to_id!r}: no distance in either direction.")
        return value

    def has_recharge_behavior(self, code: str) -> bool:
        return code in self.recharge_behaviors

    def recharge_desire(self, code: str, charge: float) -> float:
        """Recharge desire percentage for ``charge``, interpolated on the behaviour curve."""
        if code not in self.recharge_behaviors:
            raise ValueError(f"Invalid recharge behavior code {code!r}.")
        if charge < 0 or charge > 100:
            raise ValueError(f"Invalid charge percentage {charge}: must be within [0, 100].")
        charges, desires = self.recharge_behaviors[code]
        return float(np.interp(charge, charges, desires))

    def car_template(self, code: str) -> Car:
        if code not in self.cars:
            raise ValueError(f"Invalid car model code {code!r}.")
        return self.cars[code]

    def new_car(self, code: str, charge: Optional[float] = None) -> Car:
        """Fresh car cloned from the ``code`` template."""
        return self.car_template(code).clone(charge)

    def travel_start_time(self, from_label: str, to_label: str, rng: np.random.Generator) -> float:
        """Sample a departure hour from the route's cumulative start time distribution."""
        if not any(key[0] == from_label for key in self.start_times):
            raise ValueError(f"Invalid from location {from_label!r}: no start time distribution.")
        if (from_label, to_label) not in self.start_times:
            raise ValueError(f"Invalid to location {to_label!r} for start times from {from_label!r}.")
        u = rng.random() * 100.0
        for b in self.start_times[(from_label, to_label)]:
            if b.percentage < u:
                continue
            return b.start + (b.end - b.start) * rng.random()
        raise ValueError(
            f"Invalid start time distribution {from_label} - {to_label}: "
            f"cumulative percentages end below {u:.2f}."
        )

    @property
    def default_car(self) -> str:
        return next(iter(self.cars))

    @property
    def default_recharge_behavior(self) -> str:
        return next(iter(self.recharge_behaviors))

    def agent_pairs(self) -> List[Tuple[str, str, int]]:
        """(home, work, count) for every populated cell of the agent matrix."""
        if self.agent_counts is None:
            raise ValueError(f"No agent matrix: {AGENTS_FILE} was not provided.")
        pairs = []
        for home in self.agent_counts.index:
            for work in self.agent_counts.columns:
                n = self.agent_counts.at[home, work]
                if pd.notna(n) and n > 0:
                    pairs.append((home, work, int(n)))
        return pairs

    def __repr__(self) -> str:
        return (f"ReferenceData({len(self._locations)} locations, "
                f"{len(self.recharge_behaviors)} behaviors, {len(self.cars)} cars)")
