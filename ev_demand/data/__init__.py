"""
Reference data for the commuter simulation.

Distances, recharge behaviour curves, car models, start time distributions
and agent counts, loaded from CSV files.
"""

from ev_demand.data.providers import ReferenceData, StartTimeBin, Column, validate_table, validate_matrix

__all__ = ['ReferenceData', 'StartTimeBin', 'Column', 'validate_table', 'validate_matrix']
