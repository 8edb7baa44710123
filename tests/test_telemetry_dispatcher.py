import struct

from boost_host.telemetry.host_module import (
    DEVICE_INFO_TOPIC,
    FRAME_TOPIC,
    PACKET_TOPIC,
    TelemetryDispatcher,
)
from boost_host.telemetry.models import DeviceState

COLOR_BLUE_20CM = bytes([0x06, 0x00, 0x45, 0x02, 0x03, 0x14])
TILT = bytes([0x06, 0x00, 0x45, 0x3A]) + struct.pack("<bb", -10, 5)
MOTOR_B = bytes([0x08, 0x00, 0x45, 0x01]) + struct.pack("<i", 450)
ATTACH_A = bytes([0x0F, 0x00, 0x04, 0x00, 0x01, 0x27, 0x00])


def test_frames_update_device_state_and_notify(bus):
    state = DeviceState()
    telemetry = TelemetryDispatcher(bus, state)

    for frame in (COLOR_BLUE_20CM, TILT, MOTOR_B, ATTACH_A):
        telemetry.on_frame(frame)

    assert state.distance == 20
    assert state.color == "blue"
    assert (state.tilt.roll, state.tilt.pitch) == (-10, 5)
    assert state.ports["B"].angle == 450
    assert state.ports["A"].action == "attached"

    assert len(bus.of(FRAME_TOPIC)) == 4
    assert len(bus.of(PACKET_TOPIC)) == 4
    # subscribers receive the live shared state
    assert all(s is state for s in bus.of(DEVICE_INFO_TOPIC))
    assert len(bus.of(DEVICE_INFO_TOPIC)) == 4
    assert telemetry.latest.attached_io.port == "A"


def test_unknown_and_short_frames_leave_state_unchanged(bus):
    state = DeviceState()
    state.distance = 42
    state.color = "red"
    before = state.snapshot()
    telemetry = TelemetryDispatcher(bus, state)

    telemetry.on_frame(bytes([0x06, 0x00, 0x45, 0x7E, 0x01, 0x02]))   # unknown port
    telemetry.on_frame(bytes([0x05, 0x00, 0x45, 0x02, 0x03]))         # short color frame
    telemetry.on_frame(bytes([0x07, 0x00, 0x45, 0x00, 0x01, 0x02, 0x03]))
    telemetry.on_frame(b"\x01")

    assert state == before
    assert bus.of(DEVICE_INFO_TOPIC) == []
    assert telemetry.frames_received == 4
    assert telemetry.frames_dropped == 4


def test_unsubscribe_inside_callback_is_safe(bus):
    state = DeviceState()
    telemetry = TelemetryDispatcher(bus, state)
    got = []

    def once(s):
        got.append(("once", s.distance))
        sub.unsubscribe()

    sub = bus.subscribe(DEVICE_INFO_TOPIC, once)
    bus.subscribe(DEVICE_INFO_TOPIC, lambda s: got.append(("always", s.distance)))

    telemetry.on_frame(COLOR_BLUE_20CM)
    telemetry.on_frame(bytes([0x06, 0x00, 0x45, 0x02, 0x03, 0x07]))

    assert got == [("once", 20), ("always", 20), ("always", 7)]


def test_notify_publishes_current_state(bus):
    state = DeviceState()
    telemetry = TelemetryDispatcher(bus, state)
    telemetry.notify()
    assert bus.last(DEVICE_INFO_TOPIC).data is state


def test_device_state_reset_keeps_identity_and_error():
    state = DeviceState(connected=True, distance=12, rssi=-50)
    state.ports["A"].angle = 90
    state.tilt.roll = 7
    ports, port_a, tilt = state.ports, state.ports["A"], state.tilt

    state.reset(error="gone")

    assert state.connected is False
    assert state.distance == 0
    assert state.rssi == 0
    assert state.error == "gone"
    assert state.ports["A"].angle == 0
    assert ports is state.ports
    assert port_a is state.ports["A"] and port_a.angle == 0
    assert tilt is state.tilt and tilt.roll == 0
    assert state == DeviceState(error="gone")


def test_held_port_reference_sees_updates_after_reset(bus):
    state = DeviceState()
    telemetry = TelemetryDispatcher(bus, state)
    port_a, tilt = state.ports["A"], state.tilt

    telemetry.on_frame(TILT)
    state.reset()
    telemetry.on_frame(bytes([0x08, 0x00, 0x45, 0x00]) + struct.pack("<i", 10))
    telemetry.on_frame(TILT)

    assert port_a.angle == 10
    assert (tilt.roll, tilt.pitch) == (-10, 5)
