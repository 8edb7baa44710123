# telemetry/host_module.py
from __future__ import annotations

import logging
from typing import Optional

from boost_host.core.event_bus import EventBus
from .binary_parser import parse_hub_message
from .models import DeviceState, HubTelemetryPacket

logger = logging.getLogger(__name__)

FRAME_TOPIC       = "telemetry.frame"
PACKET_TOPIC      = "telemetry.packet"
DEVICE_INFO_TOPIC = "device_info"


class TelemetryDispatcher:
    """
    Single consumer of hub notifications for the active connection.

    Each frame is decoded, applied to the shared DeviceState and, when
    something changed, the mutated state is published on "device_info".
    Malformed or unknown frames are dropped without surfacing an error.
    """

    def __init__(self, bus: EventBus, state: DeviceState) -> None:
        self._bus = bus
        self._state = state
        self._latest: Optional[HubTelemetryPacket] = None
        self.frames_received = 0
        self.frames_dropped = 0

    @property
    def latest(self) -> Optional[HubTelemetryPacket]:
        return self._latest

    @property
    def state(self) -> DeviceState:
        return self._state

    def on_frame(self, data: bytes) -> None:
        self.frames_received += 1
        self._bus.publish(FRAME_TOPIC, bytes(data))

        try:
            pkt = parse_hub_message(bytes(data))
        except Exception as e:
            self.frames_dropped += 1
            logger.debug("dropping undecodable frame %s: %r", bytes(data).hex(), e)
            return

        if pkt.empty:
            self.frames_dropped += 1
            return

        self._latest = pkt
        self._bus.publish(PACKET_TOPIC, pkt)

        if self.apply(pkt):
            self.notify()

    def apply(self, pkt: HubTelemetryPacket) -> bool:
        """Write the packet's sections into DeviceState. Returns True if anything was set."""
        state = self._state
        changed = False

        if pkt.color_distance is not None:
            state.distance = pkt.color_distance.distance_cm
            state.color = pkt.color_distance.color
            changed = True

        if pkt.tilt is not None:
            state.tilt.roll = pkt.tilt.roll
            state.tilt.pitch = pkt.tilt.pitch
            changed = True

        if pkt.motor_angle is not None:
            port = state.ports.get(pkt.motor_angle.port)
            if port is not None:
                port.angle = pkt.motor_angle.angle
                changed = True

        if pkt.attached_io is not None:
            port = state.ports.get(pkt.attached_io.port)
            if port is not None:
                port.action = pkt.attached_io.action
                changed = True

        return changed

    def notify(self) -> None:
        """Publish the current DeviceState to device-info subscribers."""
        self._bus.publish(DEVICE_INFO_TOPIC, self._state)
