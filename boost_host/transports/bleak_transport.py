from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Dict, List, Optional

from bleak import BleakClient, BleakScanner
from bleak.backends.device import BLEDevice
from bleak.backends.scanner import AdvertisementData

from boost_host.transports.base_transport import (
    BaseHubTransport,
    DataHandler,
    DisconnectHandler,
    DiscoveredHub,
    HubChannel,
    Unsubscribe,
)

logger = logging.getLogger(__name__)


class BleakHubTransport(BaseHubTransport):
    """
    BLE transport built on bleak (BleakScanner + BleakClient).

    The link handle handed to the connection manager is the BleakClient
    itself; channels wrap BleakGATTCharacteristic objects.
    """

    def __init__(self, write_with_response: bool = True, connect_timeout_s: float = 10.0) -> None:
        self.write_with_response = write_with_response
        self.connect_timeout_s = connect_timeout_s

        self._scanner: Optional[BleakScanner] = None
        self._disconnect_handlers: Dict[int, DisconnectHandler] = {}
        self._closing: set[int] = set()

    # ---- discovery ----

    async def scan(self, service_uuid: str) -> AsyncIterator[DiscoveredHub]:
        queue: asyncio.Queue[DiscoveredHub] = asyncio.Queue()
        seen: set[str] = set()

        def _on_detect(device: BLEDevice, adv: AdvertisementData) -> None:
            if device.address in seen:
                return
            seen.add(device.address)
            queue.put_nowait(
                DiscoveredHub(
                    address=device.address,
                    name=device.name or adv.local_name,
                    rssi=int(adv.rssi),
                    handle=device,
                )
            )

        await self.stop_scan()
        self._scanner = BleakScanner(detection_callback=_on_detect, service_uuids=[service_uuid])
        await self._scanner.start()
        logger.info("Scanning for hubs advertising %s", service_uuid)

        try:
            while True:
                yield await queue.get()
        finally:
            await self.stop_scan()

    async def stop_scan(self) -> None:
        scanner, self._scanner = self._scanner, None
        if scanner is None:
            return
        try:
            await scanner.stop()
        except Exception as e:
            logger.debug("stop scan failed: %r", e)

    # ---- link ----

    async def connect(self, hub: DiscoveredHub) -> BleakClient:
        target = hub.handle if hub.handle is not None else hub.address
        client = BleakClient(
            target,
            disconnected_callback=self._handle_disconnect,
            timeout=self.connect_timeout_s,
        )
        await client.connect()
        logger.info("Connected to %s (%s)", hub.name or "hub", hub.address)
        return client

    async def discover_channels(self, link: BleakClient, service_uuid: str) -> List[HubChannel]:
        service = link.services.get_service(service_uuid)
        if service is None:
            return []
        return [HubChannel(uuid=c.uuid, handle=c, link=link) for c in service.characteristics]

    async def write(self, channel: HubChannel, data: bytes) -> None:
        client: BleakClient = channel.link
        await client.write_gatt_char(channel.handle, bytes(data), response=self.write_with_response)

    async def subscribe(self, channel: HubChannel, on_data: DataHandler) -> Unsubscribe:
        client: BleakClient = channel.link

        def _on_notify(_sender, data: bytearray) -> None:
            on_data(bytes(data))

        await client.start_notify(channel.handle, _on_notify)

        async def _unsubscribe() -> None:
            if client.is_connected:
                await client.stop_notify(channel.handle)

        return _unsubscribe

    def on_disconnected(self, link: BleakClient, callback: DisconnectHandler) -> None:
        self._disconnect_handlers[id(link)] = callback

    async def disconnect(self, link: BleakClient) -> None:
        key = id(link)
        self._closing.add(key)
        try:
            await link.disconnect()
        finally:
            self._closing.discard(key)
            self._disconnect_handlers.pop(key, None)

    def _handle_disconnect(self, client: BleakClient) -> None:
        key = id(client)
        if key in self._closing:
            return
        handler = self._disconnect_handlers.pop(key, None)
        if handler is not None:
            handler(None)
