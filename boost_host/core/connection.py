# boost_host/core/connection.py

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Mapping, Optional, Tuple, Union

from boost_host.command.binary_commands import SENSOR_ACTIVATION_FRAMES
from boost_host.telemetry.host_module import TelemetryDispatcher
from boost_host.telemetry.models import DeviceState
from boost_host.transports.base_transport import (
    BaseHubTransport,
    DiscoveredHub,
    HubChannel,
    HubTransportError,
    Unsubscribe,
)
from .event_bus import EventBus
from .settings import BoostConfiguration, TransportSettings

logger = logging.getLogger(__name__)

CONNECTION_TOPIC       = "connection"
CONNECTION_STATE_TOPIC = "connection.state"

HUB_NOT_FOUND_MESSAGE     = "No LEGO Boost hub found. Make sure it is turned on."
CHANNEL_NOT_FOUND_MESSAGE = "LEGO Boost characteristic not found"


class ConnectionState(str, Enum):
    IDLE                 = "idle"
    SCANNING             = "scanning"
    CONNECTING           = "connecting"
    DISCOVERING_SERVICES = "discovering_services"
    ACTIVATING_SENSORS   = "activating_sensors"
    CONNECTED            = "connected"
    DISCONNECTED         = "disconnected"
    FAILED               = "failed"


# Setup stages a failure turns into FAILED (later ones end DISCONNECTED).
_FAILABLE = (
    ConnectionState.SCANNING,
    ConnectionState.CONNECTING,
    ConnectionState.DISCOVERING_SERVICES,
)


class HubNotFoundError(RuntimeError):
    pass


class ConnectionManager:
    """
    Owns the link to the hub:

      scan -> connect -> discover channel -> subscribe -> activate sensors

    connect() never raises for hub/transport problems; it resolves to a
    bool and leaves a human-readable message in DeviceState.error.
    Publishes:
      "connection"        bool, once per actual connected/disconnected change
      "connection.state"  ConnectionState on every transition
    """

    def __init__(
        self,
        transport: BaseHubTransport,
        bus: EventBus,
        device_state: DeviceState,
        telemetry: TelemetryDispatcher,
        configuration: BoostConfiguration,
        settings: Optional[TransportSettings] = None,
    ) -> None:
        self._transport = transport
        self._bus = bus
        self._device_state = device_state
        self._telemetry = telemetry
        self._configuration = configuration
        self.settings = settings or TransportSettings()

        self._state = ConnectionState.IDLE
        self._link: Any = None
        self._channel: Optional[HubChannel] = None
        self._unsubscribe: Optional[Unsubscribe] = None

        self._connect_task: Optional[asyncio.Task] = None
        self._abort_requested = False
        self._write_lock = asyncio.Lock()

    # ---------- properties ----------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def device_state(self) -> DeviceState:
        return self._device_state

    @property
    def is_connected(self) -> bool:
        return self._device_state.connected

    @property
    def channel(self) -> Optional[HubChannel]:
        return self._channel

    # ---------- connect ----------

    async def connect(
        self,
        config: Union[Mapping[str, Any], BoostConfiguration, None] = None,
    ) -> bool:
        """
        Find the hub and bring the link up.

        Returns True once sensors are activated, False on timeout, an invalid
        configuration or any transport failure (see DeviceState.error for
        the reason). Cancelling the caller leaves the manager DISCONNECTED.
        """
        if config is not None:
            try:
                self._configuration.merge(config)
            except ValueError as e:
                logger.error("Invalid configuration: %s", e)
                self._device_state.error = str(e)
                self._telemetry.notify()
                return False

        if self._device_state.connected:
            logger.info("Already connected")
            return True

        if self._connect_task is not None and not self._connect_task.done():
            logger.warning("Connect already in progress")
            return False

        self._abort_requested = False
        task = asyncio.create_task(self._run_connect())
        self._connect_task = task
        try:
            return await task
        except asyncio.CancelledError:
            # disconnect() aborted the attempt; our own caller was not cancelled
            if self._abort_requested and task.cancelled():
                return False
            if not self._device_state.connected:
                self._device_state.reset()
                self._set_state(ConnectionState.DISCONNECTED)
            raise
        finally:
            self._connect_task = None

    async def _run_connect(self) -> bool:
        try:
            hub = await self._scan_for_hub()
        except (asyncio.TimeoutError, HubNotFoundError):
            return self._not_found()
        except Exception as e:
            return await self._fail(e)

        try:
            await self._open(hub)
        except asyncio.CancelledError:
            await self._teardown(*self._take_handles())
            raise
        except Exception as e:
            return await self._fail(e)

        self._device_state.connected = True
        self._device_state.error = ""
        self._device_state.rssi = hub.rssi
        self._set_state(ConnectionState.CONNECTED)
        logger.info("Hub ready: %s (%s)", hub.name or "unnamed", hub.address)

        self._bus.publish(CONNECTION_TOPIC, True)
        self._telemetry.notify()
        return True

    async def _scan_for_hub(self) -> DiscoveredHub:
        self._set_state(ConnectionState.SCANNING)
        logger.info("Scanning for LEGO Boost...")
        try:
            return await asyncio.wait_for(self._first_hub(), timeout=self.settings.scan_timeout_s)
        finally:
            await self._stop_scan()

    async def _first_hub(self) -> DiscoveredHub:
        hubs = self._transport.scan(self.settings.service_uuid)
        try:
            async for hub in hubs:
                if self._matches(hub):
                    logger.info("Found device: %s", hub.name or hub.address)
                    return hub
        finally:
            aclose = getattr(hubs, "aclose", None)
            if aclose is not None:
                await aclose()
        raise HubNotFoundError(HUB_NOT_FOUND_MESSAGE)

    def _matches(self, hub: DiscoveredHub) -> bool:
        name_filter = self.settings.name_filter
        if not name_filter:
            return True
        return name_filter.lower() in (hub.name or "").lower()

    async def _stop_scan(self) -> None:
        try:
            await self._transport.stop_scan()
        except Exception as e:
            logger.debug("stop scan failed: %r", e)

    async def _open(self, hub: DiscoveredHub) -> None:
        self._set_state(ConnectionState.CONNECTING)
        self._link = await self._transport.connect(hub)
        self._transport.on_disconnected(self._link, self._on_transport_disconnected)

        self._set_state(ConnectionState.DISCOVERING_SERVICES)
        channels = await self._transport.discover_channels(self._link, self.settings.service_uuid)
        wanted = self.settings.characteristic_uuid.lower()
        channel = next((c for c in channels if c.uuid.lower() == wanted), None)
        if channel is None:
            raise HubTransportError(CHANNEL_NOT_FOUND_MESSAGE)
        self._channel = channel

        self._unsubscribe = await self._transport.subscribe(channel, self._telemetry.on_frame)

        self._set_state(ConnectionState.ACTIVATING_SENSORS)
        for frame in SENSOR_ACTIVATION_FRAMES:
            await self._transport.write(channel, frame)

    def _not_found(self) -> bool:
        logger.warning(HUB_NOT_FOUND_MESSAGE)
        self._device_state.reset(error=HUB_NOT_FOUND_MESSAGE)
        self._set_state(ConnectionState.DISCONNECTED)
        self._telemetry.notify()
        return False

    async def _fail(self, exc: BaseException) -> bool:
        message = str(exc) or exc.__class__.__name__
        logger.error("Connection error: %s", message)
        end_state = ConnectionState.FAILED if self._state in _FAILABLE else ConnectionState.DISCONNECTED

        await self._teardown(*self._take_handles())
        self._device_state.reset(error=message)
        self._set_state(end_state)
        self._telemetry.notify()
        return False

    # ---------- disconnect ----------

    async def disconnect(self) -> None:
        """
        Drop the link. Transport errors are logged, never raised; the end
        state is the same either way.
        """
        task = self._connect_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            self._abort_requested = True
            task.cancel()
            await asyncio.wait({task})

        was_connected = self._device_state.connected
        link, unsubscribe = self._take_handles()

        self._device_state.reset()
        self._set_state(ConnectionState.DISCONNECTED)

        await self._teardown(link, unsubscribe)

        if was_connected:
            logger.info("Disconnected from hub")
            self._bus.publish(CONNECTION_TOPIC, False)
            self._telemetry.notify()

    def _on_transport_disconnected(self, reason: Optional[str] = None) -> None:
        # Repeated or late link-drop events are ignored once we're down.
        if not self._device_state.connected:
            return

        logger.warning("Device disconnected%s", f": {reason}" if reason else "")
        self._take_handles()
        self._device_state.reset(error=reason or "")
        self._set_state(ConnectionState.DISCONNECTED)

        self._bus.publish(CONNECTION_TOPIC, False)
        self._telemetry.notify()

    def _take_handles(self) -> Tuple[Any, Optional[Unsubscribe]]:
        link, unsubscribe = self._link, self._unsubscribe
        self._link = None
        self._channel = None
        self._unsubscribe = None
        return link, unsubscribe

    async def _teardown(self, link: Any, unsubscribe: Optional[Unsubscribe]) -> None:
        if unsubscribe is not None:
            try:
                await unsubscribe()
            except Exception as e:
                logger.debug("unsubscribe failed: %r", e)
        if link is not None:
            try:
                await self._transport.disconnect(link)
            except Exception as e:
                logger.warning("Disconnect error: %r", e)

    # ---------- writes ----------

    async def write(self, frame: bytes) -> bool:
        """
        Send one frame to the hub. Frames go out in call order.
        Returns False (and logs) when not connected or the write fails.
        """
        if not self._device_state.connected or self._channel is None:
            logger.warning("Not connected to LEGO Boost")
            return False

        async with self._write_lock:
            channel = self._channel
            if channel is None:
                logger.warning("Connection lost before write")
                return False
            try:
                await self._transport.write(channel, frame)
            except Exception as e:
                logger.error("Write error: %r", e)
                return False
        return True

    def _set_state(self, state: ConnectionState) -> None:
        if state == self._state:
            return
        logger.debug("connection %s -> %s", self._state.value, state.value)
        self._state = state
        self._bus.publish(CONNECTION_STATE_TOPIC, state)
