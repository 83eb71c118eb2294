"""
Demand plots.

Charging power over time with the population's activity underneath, and the
mean daily profile by hour.
"""

import os

import pandas as pd
import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt


STATE_COLORS = {
    "idle": "#9E9E9E",
    "driving": "#2196F3",
    "recharging": "#4CAF50",
    "stranded": "#F44336",
}


def plot_demand(df: pd.DataFrame, path: str) -> str:
    """Power line over stacked state counts, saved to ``path``."""
    if df.empty:
        raise ValueError("Cannot plot an empty demand table.")
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    fig, (ax_power, ax_states) = plt.subplots(2, 1, figsize=(14, 8), sharex=True)

    ax_power.plot(df["time"], df["power_kw"], color="#4CAF50", linewidth=1.5)
    ax_power.fill_between(df["time"], df["power_kw"], alpha=0.3, color="#4CAF50")
    ax_power.set_ylabel("Charging power (kW)")
    ax_power.set_title("EV Charging Demand")
    ax_power.grid(alpha=0.3)

    # Stranded agents are also counted as driving
    driving = df["driving"] - df["stranded"]
    ax_states.stackplot(
        df["time"],
        df["idle"], driving, df["recharging"], df["stranded"],
        labels=["Idle", "Driving", "Recharging", "Stranded"],
        colors=[STATE_COLORS["idle"], STATE_COLORS["driving"],
                STATE_COLORS["recharging"], STATE_COLORS["stranded"]],
        alpha=0.8,
    )
    ax_states.set_ylabel("Agents")
    ax_states.set_xlabel("Time (UTC)")
    ax_states.legend(loc="upper right")
    ax_states.grid(alpha=0.3)

    fig.autofmt_xdate()
    plt.tight_layout()
    plt.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return path


def plot_hourly_profile(profile: pd.DataFrame, path: str) -> str:
    """Bar chart of mean charging power per hour of day."""
    if profile.empty:
        raise ValueError("Cannot plot an empty hourly profile.")
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    fig, ax = plt.subplots(figsize=(10, 5))
    ax.bar(profile.index, profile["power_kw"], color="#4CAF50", alpha=0.8)
    ax.set_xlabel("Hour of day (UTC)")
    ax.set_ylabel("Mean charging power (kW)")
    ax.set_title("Daily Charging Profile")
    ax.set_xticks(range(0, 24, 2))
    ax.grid(axis="y", alpha=0.3)

    plt.tight_layout()
    plt.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return path
