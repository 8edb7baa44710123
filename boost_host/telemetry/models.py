# telemetry/models.py
from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields
from typing import Optional, Dict, Any

from boost_host.core.messages import PORT_NAMES


@dataclass
class PortInfo:
    action: str = ""   # "attached" | "detached" | ""
    angle: int = 0


@dataclass
class TiltInfo:
    roll: int = 0
    pitch: int = 0


def _default_ports() -> Dict[str, PortInfo]:
    return {name: PortInfo() for name in PORT_NAMES}


@dataclass
class DeviceState:
    """
    Shared, mutable view of the hub.

    One instance lives for the whole process. It is written only by the
    telemetry dispatcher and by connection lifecycle transitions, and it is
    reset in place so collaborators can keep a reference to it.
    """
    connected: bool = False
    distance: int = 0
    color: str = ""
    error: str = ""
    rssi: int = 0
    tilt: TiltInfo = field(default_factory=TiltInfo)
    ports: Dict[str, PortInfo] = field(default_factory=_default_ports)

    def reset(self, error: str = "") -> None:
        """
        Return every field to its default, optionally keeping an error message.

        The tilt record, the port table and its PortInfo entries are cleared
        in place, so references taken from them stay live.
        """
        fresh = DeviceState()
        for f in fields(self):
            if f.name not in ("tilt", "ports"):
                setattr(self, f.name, getattr(fresh, f.name))

        self.tilt.roll = 0
        self.tilt.pitch = 0
        for name in list(self.ports):
            if name not in PORT_NAMES:
                del self.ports[name]
        for name in PORT_NAMES:
            info = self.ports.setdefault(name, PortInfo())
            info.action = ""
            info.angle = 0

        self.error = error

    def snapshot(self) -> "DeviceState":
        return copy.deepcopy(self)


# ---- decoded hub messages ----

@dataclass
class ColorDistanceTelemetry:
    color: str
    distance_cm: int


@dataclass
class TiltTelemetry:
    roll: int
    pitch: int


@dataclass
class MotorAngleTelemetry:
    port: str
    angle: int


@dataclass
class AttachedIoTelemetry:
    port: str
    action: str   # "attached" | "detached"


@dataclass
class HubTelemetryPacket:
    msg_type: Optional[int]
    port_id: Optional[int]
    raw: Dict[str, Any]

    color_distance: Optional[ColorDistanceTelemetry] = None
    tilt: Optional[TiltTelemetry] = None
    motor_angle: Optional[MotorAngleTelemetry] = None
    attached_io: Optional[AttachedIoTelemetry] = None

    @property
    def empty(self) -> bool:
        return (
            self.color_distance is None
            and self.tilt is None
            and self.motor_angle is None
            and self.attached_io is None
        )


__all__ = [
    "PortInfo",
    "TiltInfo",
    "DeviceState",
    "ColorDistanceTelemetry",
    "TiltTelemetry",
    "MotorAngleTelemetry",
    "AttachedIoTelemetry",
    "HubTelemetryPacket",
]
