"""vehicle – car energy state and speed models."""

from .car import Car
from .speed import ConstantSpeed, SpeedModel

__all__ = ["Car", "ConstantSpeed", "SpeedModel"]
