"""visualization – demand charts."""

from .plots import plot_demand, plot_hourly_profile

__all__ = ["plot_demand", "plot_hourly_profile"]
