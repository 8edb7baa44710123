# telemetry/binary_parser.py
from __future__ import annotations

import struct
from typing import Dict, Any

from boost_host.core import protocol
from boost_host.core.messages import PortId, port_name_for, sensor_color_name
from .models import (
    HubTelemetryPacket,
    ColorDistanceTelemetry,
    TiltTelemetry,
    MotorAngleTelemetry,
    AttachedIoTelemetry,
)

# Port value frames: [len][hub][0x45][port][value...]
_VALUE_OFFSET = 4

# Minimum frame length per reporting port
_MIN_LEN_COLOR_DISTANCE = 6   # color(u8), distance(u8)
_MIN_LEN_TILT           = 6   # roll(i8), pitch(i8)
_MIN_LEN_MOTOR_ANGLE    = 8   # angle(i32)
_MIN_LEN_ATTACHED_IO    = 5   # port, event

_MOTOR_PORTS = {int(PortId.A): "A", int(PortId.B): "B"}


def _make_empty(msg_type, port_id, raw_len: int, meta: Dict[str, Any]) -> HubTelemetryPacket:
    return HubTelemetryPacket(
        msg_type=msg_type,
        port_id=port_id,
        raw=meta | {"len": raw_len},
    )


def parse_hub_message(frame: bytes) -> HubTelemetryPacket:
    """
    Parse one notification frame from the hub.

    Format:
      u8  length
      u8  hub id
      u8  message type
      u8  port id
      u8[] payload

    Unknown message types, unknown ports and short frames yield an empty
    packet (raw["error"] says why). Never raises.
    """
    header = protocol.parse_header(frame)
    if header is None:
        return _make_empty(None, None, len(frame), {"error": "short_header"})

    _, msg_type = header
    if len(frame) <= 3:
        return _make_empty(msg_type, None, len(frame), {"error": "no_port"})

    port_id = frame[3]
    pkt = _make_empty(msg_type, port_id, len(frame), {"msg_type": msg_type, "port_id": port_id})

    if msg_type == protocol.MSG_PORT_VALUE:
        _parse_port_value(frame, port_id, pkt)
    elif msg_type == protocol.MSG_HUB_ATTACHED_IO:
        _parse_attached_io(frame, port_id, pkt)
    # Other message types -> ignore (forward-compatible)

    return pkt


def _parse_port_value(frame: bytes, port_id: int, pkt: HubTelemetryPacket) -> None:
    n = len(frame)

    # Color/distance sensor on port C:
    # color_index(u8), distance_cm(u8)
    if port_id == PortId.C:
        if n >= _MIN_LEN_COLOR_DISTANCE:
            color_index, distance = struct.unpack_from("<BB", frame, _VALUE_OFFSET)
            pkt.color_distance = ColorDistanceTelemetry(
                color=sensor_color_name(color_index),
                distance_cm=int(distance),
            )
        else:
            pkt.raw["error"] = "short_value"
        return

    # Internal tilt sensor:
    # roll(i8), pitch(i8)
    if port_id == PortId.TILT:
        if n >= _MIN_LEN_TILT:
            roll, pitch = struct.unpack_from("<bb", frame, _VALUE_OFFSET)
            pkt.tilt = TiltTelemetry(roll=int(roll), pitch=int(pitch))
        else:
            pkt.raw["error"] = "short_value"
        return

    # Drive motor encoders:
    # angle(i32)
    if port_id in _MOTOR_PORTS:
        if n >= _MIN_LEN_MOTOR_ANGLE:
            (angle,) = struct.unpack_from("<i", frame, _VALUE_OFFSET)
            pkt.motor_angle = MotorAngleTelemetry(port=_MOTOR_PORTS[port_id], angle=int(angle))
        else:
            pkt.raw["error"] = "short_value"
        return

    pkt.raw["error"] = "unknown_port"


def _parse_attached_io(frame: bytes, port_id: int, pkt: HubTelemetryPacket) -> None:
    # event: 0 = detached, 1 = attached, 2 = attached virtual
    if len(frame) < _MIN_LEN_ATTACHED_IO:
        pkt.raw["error"] = "short_event"
        return

    port = port_name_for(port_id)
    if port is None:
        pkt.raw["error"] = "unknown_port"
        return

    event = frame[4]
    pkt.attached_io = AttachedIoTelemetry(
        port=port,
        action="detached" if event == 0 else "attached",
    )
