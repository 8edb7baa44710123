from __future__ import annotations

import asyncio
import logging
import random
from typing import Optional

from boost_host.command.dispatcher import CommandDispatcher
from boost_host.core.state import ControlData, ControlState
from boost_host.telemetry.models import DeviceState

logger = logging.getLogger(__name__)


class AutopilotHostModule:
    """
    Obstacle-avoidance loop: drive forward, back off when something is
    closer than `obstacle_distance_cm`, turn a random way, carry on.

    The policy holds no memory of its own; every tick is a function of the
    current distance reading and the current ControlState. A single bad
    distance reading can therefore cause one needless reversal.
    """

    def __init__(
        self,
        commands: CommandDispatcher,
        device_state: DeviceState,
        control: ControlData,
        tick_s: float = 0.5,
        obstacle_distance_cm: int = 30,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._commands = commands
        self._device_state = device_state
        self._control = control
        self.tick_s = float(tick_s)
        self.obstacle_distance_cm = int(obstacle_distance_cm)
        self._rng = rng or random.Random()

        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start ticking. No-op if already running."""
        if self._running:
            return
        self._running = True
        self._control.state = ControlState.SEEK
        self._task = asyncio.create_task(self._loop())
        logger.info("Autopilot started (tick %.2fs)", self.tick_s)

    async def stop(self) -> None:
        """Cancel the loop, stop the motors and hand control back (Manual)."""
        self._running = False
        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self._commands.stop()
        self._control.state = ControlState.MANUAL
        logger.info("Autopilot stopped")

    async def _loop(self) -> None:
        while self._running:
            await asyncio.sleep(self.tick_s)
            if not self._running:
                break
            if not self._device_state.connected:
                # Hub went away; nothing to stop on the wire.
                self._running = False
                self._task = None
                self._control.state = ControlState.MANUAL
                logger.info("Autopilot halted: hub disconnected")
                break
            try:
                await self.step()
            except Exception as e:
                logger.error("autopilot tick failed: %r", e)

    async def step(self) -> None:
        """Evaluate the policy once against a single read of distance and state."""
        distance = self._device_state.distance
        state = self._control.state

        if 0 < distance < self.obstacle_distance_cm:
            if state != ControlState.BACK:
                self._control.state = ControlState.BACK
                await self._commands.drive(-1)
        elif state == ControlState.BACK:
            self._control.state = ControlState.TURN
            await self._commands.turn(self._rng.choice((1, -1)))
        elif state == ControlState.TURN:
            self._control.state = ControlState.SEEK
            await self._commands.drive(1)
        elif state != ControlState.DRIVE:
            self._control.state = ControlState.DRIVE
            await self._commands.drive(1)
