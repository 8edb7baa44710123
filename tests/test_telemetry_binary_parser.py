import struct

import pytest

from boost_host.telemetry.binary_parser import parse_hub_message


def port_value(port: int, body: bytes) -> bytes:
    return bytes([4 + len(body), 0x00, 0x45, port]) + body


def test_color_distance_parses():
    pkt = parse_hub_message(port_value(0x02, bytes([0x03, 0x14])))

    assert pkt.msg_type == 0x45
    assert pkt.port_id == 0x02
    assert pkt.color_distance is not None
    assert pkt.color_distance.color == "blue"
    assert pkt.color_distance.distance_cm == 20


def test_color_index_out_of_range_is_unknown():
    pkt = parse_hub_message(port_value(0x02, bytes([0xFF, 0x0A])))
    assert pkt.color_distance.color == "unknown"
    assert pkt.color_distance.distance_cm == 10


def test_tilt_is_signed():
    pkt = parse_hub_message(port_value(0x3A, struct.pack("<bb", -10, 5)))
    assert pkt.tilt is not None
    assert (pkt.tilt.roll, pkt.tilt.pitch) == (-10, 5)


@pytest.mark.parametrize("port, name", [(0x00, "A"), (0x01, "B")])
def test_motor_angle_is_signed_i32(port, name):
    pkt = parse_hub_message(port_value(port, struct.pack("<i", -3600)))
    assert pkt.motor_angle is not None
    assert pkt.motor_angle.port == name
    assert pkt.motor_angle.angle == -3600


def test_attached_io_attach_and_detach():
    attached = parse_hub_message(bytes([0x0F, 0x00, 0x04, 0x01, 0x01, 0x26, 0x00]))
    detached = parse_hub_message(bytes([0x05, 0x00, 0x04, 0x02, 0x00]))
    virtual = parse_hub_message(bytes([0x09, 0x00, 0x04, 0x39, 0x02, 0x27, 0x00, 0x00, 0x01]))

    assert (attached.attached_io.port, attached.attached_io.action) == ("B", "attached")
    assert (detached.attached_io.port, detached.attached_io.action) == ("C", "detached")
    assert (virtual.attached_io.port, virtual.attached_io.action) == ("AB", "attached")


@pytest.mark.parametrize(
    "frame, error",
    [
        (b"", "short_header"),
        (b"\x03\x00", "short_header"),
        (b"\x03\x00\x45", "no_port"),
        (bytes([0x05, 0x00, 0x45, 0x02, 0x03]), "short_value"),          # color without distance
        (bytes([0x05, 0x00, 0x45, 0x3A, 0x01]), "short_value"),          # tilt without pitch
        (bytes([0x07, 0x00, 0x45, 0x00, 0x01, 0x02, 0x03]), "short_value"),  # 3-byte angle
        (bytes([0x06, 0x00, 0x45, 0x3B, 0x01, 0x02]), "unknown_port"),   # current sensor
        (bytes([0x04, 0x00, 0x04, 0x01]), "short_event"),
        (bytes([0x05, 0x00, 0x04, 0x77, 0x01]), "unknown_port"),
    ],
)
def test_malformed_frames_yield_empty_packet(frame, error):
    pkt = parse_hub_message(frame)
    assert pkt.empty
    assert pkt.raw["error"] == error


def test_unknown_message_types_are_ignored():
    # hub properties reply
    pkt = parse_hub_message(bytes([0x06, 0x00, 0x01, 0x02, 0x06, 0x00]))
    assert pkt.empty
    assert "error" not in pkt.raw
    assert pkt.raw["len"] == 6
