# boost_host/core/state.py

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional


class ControlState(str, Enum):
    DRIVE  = "Drive"
    BACK   = "Back"
    TURN   = "Turn"
    STOP   = "Stop"
    MANUAL = "Manual"
    SEEK   = "Seek"


class ControlMode(IntEnum):
    """How the UI issues drive commands; the core never reads this."""
    CLICK  = 0   # each press sends one timed pulse
    ARCADE = 1   # hold to move, release to stop


@dataclass
class ControlData:
    """What the host last asked the hub to do."""
    input: str = ""
    speed: int = 0
    turn_angle: int = 0
    state: Optional[ControlState] = None
