# boost_host/core/client.py

from __future__ import annotations

import logging
import random
from typing import Any, Callable, Mapping, Optional, Union

from boost_host.command.dispatcher import CommandDispatcher
from boost_host.modules.autopilot import AutopilotHostModule
from boost_host.telemetry.host_module import DEVICE_INFO_TOPIC, TelemetryDispatcher
from boost_host.telemetry.models import DeviceState
from boost_host.transports.base_transport import BaseHubTransport
from .connection import CONNECTION_TOPIC, ConnectionManager, ConnectionState
from .event_bus import EventBus, Subscription
from .settings import BoostConfiguration, HubSettings
from .state import ControlData

logger = logging.getLogger(__name__)

ConfigUpdate = Union[Mapping[str, Any], BoostConfiguration, None]


class HubClient:
    """
    Host-side client for one LEGO Boost hub.

      - Owns the shared DeviceState / ControlData / BoostConfiguration.
      - Wires telemetry, connection, commands and the autopilot together.
      - Exposes the command surface and the two subscription registries
        (connection changes, device-info changes) that UIs build on.

    Construct exactly one per hub link and pass it to whoever needs it.
    """

    def __init__(
        self,
        transport: BaseHubTransport,
        settings: Optional[HubSettings] = None,
        bus: Optional[EventBus] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.settings = settings or HubSettings()
        self.bus = bus or EventBus()
        self.transport = transport

        self._device_state = DeviceState()
        self._control = ControlData()
        self._configuration = self.settings.boost

        self.telemetry = TelemetryDispatcher(self.bus, self._device_state)
        self.connection = ConnectionManager(
            transport,
            self.bus,
            self._device_state,
            self.telemetry,
            self._configuration,
            settings=self.settings.transport,
        )
        self.commands = CommandDispatcher(self.connection, self._configuration, self._control)
        self.autopilot = AutopilotHostModule(
            self.commands,
            self._device_state,
            self._control,
            tick_s=self.settings.autopilot.tick_s,
            obstacle_distance_cm=self.settings.autopilot.obstacle_distance_cm,
            rng=rng,
        )

    # ---------- state ----------

    @property
    def device_state(self) -> DeviceState:
        return self._device_state

    @property
    def control_data(self) -> ControlData:
        return self._control

    @property
    def configuration(self) -> BoostConfiguration:
        return self._configuration

    @property
    def connection_state(self) -> ConnectionState:
        return self.connection.state

    @property
    def is_connected(self) -> bool:
        return self._device_state.connected

    @property
    def is_ai_running(self) -> bool:
        return self.autopilot.running

    # ---------- subscriptions ----------

    def on_connection_change(self, callback: Callable[[bool], None]) -> Subscription:
        return self.bus.subscribe(CONNECTION_TOPIC, callback)

    def on_device_info_change(self, callback: Callable[[DeviceState], None]) -> Subscription:
        return self.bus.subscribe(DEVICE_INFO_TOPIC, callback)

    # ---------- lifecycle ----------

    async def connect(self, config: ConfigUpdate = None) -> bool:
        return await self.connection.connect(config)

    async def disconnect(self) -> None:
        if self.autopilot.running:
            await self.autopilot.stop()
        await self.connection.disconnect()

    # ---------- commands ----------

    async def led(self, color: Union[str, int]) -> bool:
        return await self.commands.led(color)

    async def motor_timed(self, port: Union[str, int], duration_s: float, power: float = 100) -> bool:
        return await self.commands.motor_timed(port, duration_s, power)

    async def motor_timed_dual(self, duration_s: float, power_left: float = 100, power_right: float = 100) -> bool:
        return await self.commands.motor_timed_dual(duration_s, power_left, power_right)

    async def motor_angle(self, port: Union[str, int], angle_deg: float, power: float = 100) -> bool:
        return await self.commands.motor_angle(port, angle_deg, power)

    async def motor_angle_dual(self, angle_deg: float, power_left: float = 100, power_right: float = 100) -> bool:
        return await self.commands.motor_angle_dual(angle_deg, power_left, power_right)

    async def stop(self) -> bool:
        return await self.commands.stop()

    async def drive(self, direction: int = 1) -> bool:
        return await self.commands.drive(direction)

    async def drive_continuous(self, direction: int = 1) -> bool:
        return await self.commands.drive_continuous(direction)

    async def turn(self, direction: int) -> bool:
        return await self.commands.turn(direction)

    def update_configuration(self, partial: ConfigUpdate = None, **changes: Any) -> BoostConfiguration:
        return self.commands.update_configuration(partial, **changes)

    # ---------- autopilot ----------

    async def start_ai(self) -> None:
        if not self.is_connected:
            logger.warning("Not connected to LEGO Boost; autopilot not started")
            return
        await self.autopilot.start()

    async def stop_ai(self) -> None:
        await self.autopilot.stop()
