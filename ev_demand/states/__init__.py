"""states – run protocol and the Idle / Drive / Recharge activities."""

from .base import State, StateKind, StateStatus
from .idle import Idle
from .drive import Drive, encode_route_position
from .recharge import Recharge

__all__ = [
    "State", "StateKind", "StateStatus",
    "Idle", "Drive", "Recharge", "encode_route_position",
]
