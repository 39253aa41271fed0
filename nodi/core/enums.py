from enum import StrEnum

from .constants import DIRS


class Player(StrEnum):
    BLACK = "Black"
    WHITE = "White"

    @property
    def opponent(self) -> "Player":
        return Player.WHITE if self is Player.BLACK else Player.BLACK


class Dir(StrEnum):
    """Arrow directions, declared in clockwise order."""
    N = "N"
    NE = "NE"
    E = "E"
    SE = "SE"
    S = "S"
    SW = "SW"
    W = "W"
    NW = "NW"

    @property
    def delta(self):
        return DIRS[self.value]

    def rotated(self, clockwise: bool = True) -> "Dir":
        order = list(Dir)
        idx = order.index(self)
        step = 1 if clockwise else -1
        return order[(idx + step) % len(order)]

    @classmethod
    def from_delta(cls, dr: int, dc: int) -> "Dir":
        # Normalize to unit steps so any collinear offset maps to its direction
        key = ((dr > 0) - (dr < 0), (dc > 0) - (dc < 0))
        for d in cls:
            if d.delta == key:
                return d
        raise ValueError(f"No direction for delta {(dr, dc)}")


class RotateDirection(StrEnum):
    CW = "cw"
    CCW = "ccw"


class ScatterReason(StrEnum):
    OFFBOARD = "offboard"
    ALLY_BLOCK = "ally-block"
    CAPTURE_SUM_EXCEEDS = "capture-sum-exceeds"
    NOT_A_KING = "not-a-king"
    INSUFFICIENT_VALUE = "insufficient-value"
    INVALID_BASE = "invalid-base"
