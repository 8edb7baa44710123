from enum import IntEnum
from typing import Optional, Union


class MsgType(IntEnum):
    HUB_PROPERTIES          = 0x01
    HUB_ACTIONS             = 0x02
    HUB_ALERTS              = 0x03
    HUB_ATTACHED_IO         = 0x04
    GENERIC_ERROR           = 0x05
    PORT_INPUT_FORMAT_SETUP = 0x41
    PORT_INPUT_FORMAT       = 0x42
    PORT_VALUE              = 0x45
    PORT_VALUE_COMBINED     = 0x46
    PORT_OUTPUT             = 0x81   # host -> hub
    PORT_OUTPUT_FEEDBACK    = 0x82


class PortId(IntEnum):
    A       = 0x00
    B       = 0x01
    C       = 0x02
    D       = 0x03
    AB      = 0x39   # virtual port: motors A+B driven in sync
    LED     = 0x32
    TILT    = 0x3A
    CURRENT = 0x3B
    VOLTAGE = 0x3C


class MotorSubCommand(IntEnum):
    START_POWER                  = 0x01
    START_POWER_SYNC             = 0x02
    SET_ACC_TIME                 = 0x05
    SET_DEC_TIME                 = 0x06
    START_SPEED                  = 0x07
    START_SPEED_SYNC             = 0x08
    START_SPEED_FOR_TIME         = 0x09
    START_SPEED_FOR_TIME_SYNC    = 0x0A
    START_SPEED_FOR_DEGREES      = 0x0B
    START_SPEED_FOR_DEGREES_SYNC = 0x0C
    GOTO_ABSOLUTE_POSITION       = 0x0D
    GOTO_ABSOLUTE_POSITION_SYNC  = 0x0E
    WRITE_DIRECT_MODE_DATA       = 0x51
    PRESET_ENCODER               = 0x14


class LedColor(IntEnum):
    OFF        = 0
    PINK       = 1
    PURPLE     = 2
    BLUE       = 3
    LIGHT_BLUE = 4
    CYAN       = 5
    GREEN      = 6
    YELLOW     = 7
    ORANGE     = 8
    RED        = 9
    WHITE      = 10


# Names the color/distance sensor reports, indexed by the color byte.
SENSOR_COLOR_NAMES = (
    "black", "pink", "purple", "blue", "lightblue",
    "cyan", "green", "yellow", "orange", "red", "white",
)

# Names accepted for the hub LED, same indices as LedColor.
LED_COLOR_NAMES = {
    "off": 0, "pink": 1, "purple": 2, "blue": 3, "lightblue": 4,
    "cyan": 5, "green": 6, "yellow": 7, "orange": 8, "red": 9, "white": 10,
}

PORT_NAMES = ("A", "B", "AB", "C", "D", "LED")

_PORT_NAME_BY_ID = {
    PortId.A: "A",
    PortId.B: "B",
    PortId.AB: "AB",
    PortId.C: "C",
    PortId.D: "D",
    PortId.LED: "LED",
}


def port_id_for(port: Union[str, int]) -> int:
    """
    Resolve a port name ("A", "ab", ...) or raw id to a hub port id.
    Unknown names fall back to port A.
    """
    if isinstance(port, int):
        return int(port)
    try:
        return int(PortId[port.strip().upper()])
    except KeyError:
        return int(PortId.A)


def port_name_for(port_id: int) -> Optional[str]:
    """Map a hub port id to one of PORT_NAMES, or None if it isn't one."""
    try:
        return _PORT_NAME_BY_ID.get(PortId(port_id))
    except ValueError:
        return None


def sensor_color_name(index: int) -> str:
    if 0 <= index < len(SENSOR_COLOR_NAMES):
        return SENSOR_COLOR_NAMES[index]
    return "unknown"


def led_color_index(color: Union[str, int]) -> int:
    """LED color from a name, LedColor or raw index. Unknown names map to 0 (off)."""
    if isinstance(color, int):
        return int(color)
    key = color.strip().lower().replace("_", "").replace(" ", "")
    return LED_COLOR_NAMES.get(key, 0)
