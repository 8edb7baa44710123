# command/dispatcher.py
"""
High-level motor / LED commands.

Every motion command is a fixed-duration pulse: the hub stops on its own
when the duration runs out, or as soon as it receives the next motor
command. There is no cancel primitive, so rapid sequences compose as
"last write wins", never as deltas. Hold-to-move is built by the caller
re-issuing pulses and calling stop() on release.

All commands are safe to call speculatively: when the hub is not
connected they log a warning and return without raising.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Protocol, Tuple, Union

from boost_host.core.messages import led_color_index
from boost_host.core.settings import BoostConfiguration
from boost_host.core.state import ControlData, ControlState
from . import binary_commands as bc

logger = logging.getLogger(__name__)

DRIVE_POWER = 100
TURN_POWER = 70
DRIVE_PULSE_S = 1.0
TURN_PULSE_S = 0.5
CONTINUOUS_PULSE_S = 10.0


class HasWrite(Protocol):
    """What the dispatcher needs from the connection manager."""

    @property
    def is_connected(self) -> bool: ...
    async def write(self, frame: bytes) -> bool: ...


class CommandDispatcher:
    def __init__(
        self,
        connection: HasWrite,
        configuration: BoostConfiguration,
        control: Optional[ControlData] = None,
    ) -> None:
        self._connection = connection
        self._configuration = configuration
        self._control = control or ControlData()

    @property
    def configuration(self) -> BoostConfiguration:
        return self._configuration

    @property
    def control(self) -> ControlData:
        return self._control

    # ---------- configuration ----------

    def update_configuration(
        self,
        partial: Union[Mapping[str, Any], BoostConfiguration, None] = None,
        **changes: Any,
    ) -> BoostConfiguration:
        """Merge into the stored configuration; applies from the next command on."""
        return self._configuration.merge(partial, **changes)

    # ---------- raw commands ----------

    async def _send(self, frame: bytes) -> bool:
        if not self._connection.is_connected:
            logger.warning("Not connected to LEGO Boost; command ignored")
            return False
        return await self._connection.write(frame)

    def _sides(self, power_left: float, power_right: float) -> Tuple[float, float]:
        # AB frames carry motor A's power first.
        if self._configuration.motors_swapped():
            return power_right, power_left
        return power_left, power_right

    async def led(self, color: Union[str, int]) -> bool:
        return await self._send(bc.encode_led(led_color_index(color)))

    async def motor_timed(self, port: Union[str, int], duration_s: float, power: float = 100) -> bool:
        return await self._send(bc.encode_motor_timed(port, bc.seconds_to_ms(duration_s), power))

    async def motor_timed_dual(self, duration_s: float, power_left: float = 100, power_right: float = 100) -> bool:
        power_a, power_b = self._sides(power_left, power_right)
        return await self._send(bc.encode_motor_timed_dual(bc.seconds_to_ms(duration_s), power_a, power_b))

    async def motor_angle(self, port: Union[str, int], angle_deg: float, power: float = 100) -> bool:
        return await self._send(bc.encode_motor_angle(port, angle_deg, power))

    async def motor_angle_dual(self, angle_deg: float, power_left: float = 100, power_right: float = 100) -> bool:
        power_a, power_b = self._sides(power_left, power_right)
        return await self._send(bc.encode_motor_angle_dual(angle_deg, power_a, power_b))

    # ---------- drive helpers ----------

    async def stop(self) -> bool:
        if not await self.motor_timed_dual(0, 0, 0):
            return False
        self._control.state = ControlState.STOP
        self._control.speed = 0
        self._control.turn_angle = 0
        return True

    async def drive(self, direction: int = 1) -> bool:
        """One pulse forward (direction >= 0) or back, scaled by drive_finetune."""
        power = DRIVE_POWER if direction >= 0 else -DRIVE_POWER
        duration = DRIVE_PULSE_S * self._configuration.drive_finetune
        if not await self.motor_timed_dual(duration, power, power):
            return False
        self._control.state = ControlState.DRIVE if direction >= 0 else ControlState.BACK
        self._control.speed = power
        return True

    async def drive_continuous(self, direction: int = 1) -> bool:
        """A long pulse meant to be superseded by the next command or stop()."""
        power = DRIVE_POWER if direction >= 0 else -DRIVE_POWER
        if not await self.motor_timed_dual(CONTINUOUS_PULSE_S, power, power):
            return False
        self._control.state = ControlState.DRIVE if direction >= 0 else ControlState.BACK
        return True

    async def turn(self, direction: int) -> bool:
        """Spin in place: direction >= 0 turns right, negative turns left."""
        duration = TURN_PULSE_S * self._configuration.turn_finetune
        if direction >= 0:
            sent = await self.motor_timed_dual(duration, TURN_POWER, -TURN_POWER)
        else:
            sent = await self.motor_timed_dual(duration, -TURN_POWER, TURN_POWER)
        if not sent:
            return False
        self._control.state = ControlState.TURN
        self._control.turn_angle = direction
        return True
