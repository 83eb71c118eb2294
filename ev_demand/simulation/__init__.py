"""simulation – parameters and the fixed-step orchestrator."""

from .parameters import SimulationParameters
from .simulation import Simulation, SimulationResult

__all__ = ["SimulationParameters", "Simulation", "SimulationResult"]
