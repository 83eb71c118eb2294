"""agent – commuter agent, transition policy and recharge behaviour."""

from .agent import Agent, HOME, WORK
from .behavior import RechargeDecision, RechargePolicy

__all__ = ["Agent", "HOME", "WORK", "RechargeDecision", "RechargePolicy"]
