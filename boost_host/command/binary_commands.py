# command/binary_commands.py
"""
Binary command encoders for the hub's port-output messages.

Every encoder is a pure function returning a complete frame
([length][hub_id][msg_type][payload...]) ready for the transport.
Out-of-range inputs are clamped, never rejected.

Example:
    from boost_host.command.binary_commands import encode_motor_timed_dual

    frame = encode_motor_timed_dual(duration_ms=1000, power_left=100, power_right=100)
    await transport.write(channel, frame)
"""

from __future__ import annotations

import math
import struct
from typing import Tuple, Union

from boost_host.core import protocol
from boost_host.core.messages import MotorSubCommand, PortId, port_id_for

# Output command tail: startup/completion flags + speed profile
# (max power 100, end state brake, use acc/dec profiles)
_MAX_POWER = 0x64
_END_BRAKE = 0x7F
_USE_PROFILE = 0x03

_STARTUP_COMPLETION = 0x11  # execute immediately + command feedback

_LED_MODE = 0x00
_MAX_LED_INDEX = 10
_MAX_DURATION_MS = 0xFFFF
_MAX_ANGLE = 0xFFFFFFFF

# Sensor ports the host subscribes to, with the mode to report in.
SENSOR_MODES = {
    PortId.C: 0x08,      # color + distance combined mode
    PortId.TILT: 0x00,   # roll / pitch angle
}

Port = Union[str, int]


def round_half_up(value: float) -> int:
    return int(math.floor(float(value) + 0.5))


def _bounded(value: float, lo: float, hi: float) -> float:
    # NaN reads as 0; infinities land on the bounds
    value = float(value)
    if math.isnan(value):
        value = 0.0
    return max(float(lo), min(float(hi), value))


def clamp_power(power: float) -> int:
    """Round and clamp a motor power to [-100, 100]."""
    return max(-100, min(100, round_half_up(_bounded(power, -100, 100))))


def clamp_duration_ms(duration_ms: float) -> int:
    return max(0, min(_MAX_DURATION_MS, round_half_up(_bounded(duration_ms, 0, _MAX_DURATION_MS))))


def seconds_to_ms(seconds: float) -> int:
    return clamp_duration_ms(_bounded(seconds, 0, _MAX_DURATION_MS) * 1000)


def _angle_power(angle_deg: float, power: float) -> int:
    # Direction comes from the angle sign; the power argument only sets magnitude.
    magnitude = abs(clamp_power(power))
    return magnitude if _bounded(angle_deg, -_MAX_ANGLE, _MAX_ANGLE) >= 0 else -magnitude


def _angle_magnitude(angle_deg: float) -> int:
    return min(_MAX_ANGLE, abs(round_half_up(_bounded(angle_deg, -_MAX_ANGLE, _MAX_ANGLE))))


def _output(port_id: int, payload: bytes) -> bytes:
    body = struct.pack("<BB", port_id & 0xFF, _STARTUP_COMPLETION) + payload
    return protocol.encode(protocol.MSG_PORT_OUTPUT, body)


def encode_led(color_index: int) -> bytes:
    """
    Encode the hub LED color command (8 bytes).

    Args:
        color_index: LedColor index 0..10 (clamped)
    """
    index = int(_bounded(color_index, 0, _MAX_LED_INDEX))
    payload = struct.pack(
        "<BBB",
        MotorSubCommand.WRITE_DIRECT_MODE_DATA,
        _LED_MODE,
        index,
    )
    return _output(PortId.LED, payload)


def encode_motor_timed(port: Port, duration_ms: int, power: float) -> bytes:
    """
    Encode START_SPEED_FOR_TIME for a single port (12 bytes).

    Args:
        port: port name or id
        duration_ms: run time, 0..65535 (clamped)
        power: -100..100 (rounded, clamped)
    """
    payload = struct.pack(
        "<BHbBBB",
        MotorSubCommand.START_SPEED_FOR_TIME,
        clamp_duration_ms(duration_ms),
        clamp_power(power),
        _MAX_POWER, _END_BRAKE, _USE_PROFILE,
    )
    return _output(port_id_for(port), payload)


def encode_motor_timed_dual(duration_ms: int, power_left: float, power_right: float) -> bytes:
    """START_SPEED_FOR_TIME_SYNC on the virtual AB port (13 bytes)."""
    payload = struct.pack(
        "<BHbbBBB",
        MotorSubCommand.START_SPEED_FOR_TIME_SYNC,
        clamp_duration_ms(duration_ms),
        clamp_power(power_left),
        clamp_power(power_right),
        _MAX_POWER, _END_BRAKE, _USE_PROFILE,
    )
    return _output(PortId.AB, payload)


def encode_motor_angle(port: Port, angle_deg: float, power: float) -> bytes:
    """
    Encode START_SPEED_FOR_DEGREES for a single port (14 bytes).

    The angle is sent as an unsigned 32-bit magnitude. Its sign picks the
    direction: angle >= 0 runs at +|power|, angle < 0 at -|power|, whatever
    the sign of the power argument.
    """
    payload = struct.pack(
        "<BIbBBB",
        MotorSubCommand.START_SPEED_FOR_DEGREES,
        _angle_magnitude(angle_deg),
        _angle_power(angle_deg, power),
        _MAX_POWER, _END_BRAKE, _USE_PROFILE,
    )
    return _output(port_id_for(port), payload)


def encode_motor_angle_dual(angle_deg: float, power_left: float, power_right: float) -> bytes:
    """START_SPEED_FOR_DEGREES_SYNC on AB (15 bytes); same sign rule for both motors."""
    payload = struct.pack(
        "<BIbbBBB",
        MotorSubCommand.START_SPEED_FOR_DEGREES_SYNC,
        _angle_magnitude(angle_deg),
        _angle_power(angle_deg, power_left),
        _angle_power(angle_deg, power_right),
        _MAX_POWER, _END_BRAKE, _USE_PROFILE,
    )
    return _output(PortId.AB, payload)


def encode_port_input_format_setup(port: Port, mode: int, delta: int = 1, notify: bool = True) -> bytes:
    """
    Port input format setup (10 bytes): report `mode` values whenever they
    change by at least `delta`, optionally as unsolicited notifications.
    """
    body = struct.pack("<BBIB", port_id_for(port), mode & 0xFF, int(delta), 1 if notify else 0)
    return protocol.encode(protocol.MSG_PORT_INPUT_FORMAT_SETUP, body)


def encode_sensor_activation(port: Port) -> bytes:
    """Enable value notifications for the color/distance sensor or the tilt sensor."""
    port_id = port_id_for(port)
    try:
        mode = SENSOR_MODES[PortId(port_id)]
    except (KeyError, ValueError):
        raise ValueError(f"No sensor activation defined for port 0x{port_id:02x}") from None
    return encode_port_input_format_setup(port_id, mode)


SENSOR_ACTIVATION_FRAMES: Tuple[bytes, ...] = (
    encode_sensor_activation(PortId.C),
    encode_sensor_activation(PortId.TILT),
)


__all__ = [
    "round_half_up",
    "clamp_power",
    "clamp_duration_ms",
    "seconds_to_ms",
    "encode_led",
    "encode_motor_timed",
    "encode_motor_timed_dual",
    "encode_motor_angle",
    "encode_motor_angle_dual",
    "encode_port_input_format_setup",
    "encode_sensor_activation",
    "SENSOR_ACTIVATION_FRAMES",
    "SENSOR_MODES",
]
