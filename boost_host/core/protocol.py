from typing import Optional, Tuple

from .messages import MsgType

# LEGO Wireless Protocol service / characteristic (single channel for all traffic)
LEGO_HUB_SERVICE_UUID        = "00001623-1212-efde-1623-785feabcd123"
LEGO_HUB_CHARACTERISTIC_UUID = "00001624-1212-efde-1623-785feabcd123"

HUB_ID = 0x00

MSG_HUB_ATTACHED_IO         = int(MsgType.HUB_ATTACHED_IO)
MSG_PORT_INPUT_FORMAT_SETUP = int(MsgType.PORT_INPUT_FORMAT_SETUP)
MSG_PORT_VALUE              = int(MsgType.PORT_VALUE)
MSG_PORT_OUTPUT             = int(MsgType.PORT_OUTPUT)

HEADER_LEN = 3  # length + hub id + msg type

# Single-byte length field; longer messages would need the 2-byte form.
_MAX_LEN = 0x7F


def encode(msg_type: int, payload: bytes = b"") -> bytes:
    """
    Encode a frame as:
        [length][hub_id][msg_type][payload...]

    where:
        length = 3 + len(payload)   # the whole frame, header included
    """
    length = HEADER_LEN + len(payload)
    if length > _MAX_LEN:
        raise ValueError(f"Invalid frame length: {length}")

    frame = bytearray()
    frame.append(length)
    frame.append(HUB_ID)
    frame.append(msg_type & 0xFF)
    frame.extend(payload)
    return bytes(frame)


def parse_header(frame: bytes) -> Optional[Tuple[int, int]]:
    """
    Return (length, msg_type) for a frame received from the hub,
    or None if the frame is too short to carry a header.
    """
    if len(frame) < HEADER_LEN:
        return None
    return frame[0], frame[2]
