"""
EV Demand
=========
Agent-based simulation of electric vehicle charging demand from daily
home-work commutes.

Package layout
--------------
ev_demand/
    simulation/     – orchestrator, parameters
    agent/          – commuter agent, recharge decision policy
    states/         – Idle, Drive and Recharge states
    vehicle/        – car model, speed models
    data/           – CSV reference data (distances, cars, behaviours, start times)
    analytics/      – per-step demand tracker
    visualization/  – demand charts
    utils/          – time and duration helpers
"""

from ev_demand.simulation import Simulation, SimulationParameters, SimulationResult

__all__ = ["Simulation", "SimulationParameters", "SimulationResult"]
