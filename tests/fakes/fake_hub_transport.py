# tests/fakes/fake_hub_transport.py

import asyncio
from typing import List, Optional

from boost_host.core.protocol import LEGO_HUB_CHARACTERISTIC_UUID
from boost_host.transports.base_transport import (
    BaseHubTransport,
    DiscoveredHub,
    HubChannel,
    HubTransportError,
)


class FakeHubTransport(BaseHubTransport):
    """
    Scriptable stand-in for the BLE adapter.

    - `hubs` are yielded by scan(); with no hubs the scan never finds anything
    - writes are collected in `writes`
    - inject() delivers a notification frame, drop_link() a link loss
    - fail_connect / fail_write / fail_disconnect raise HubTransportError
    - connect_gate (asyncio.Event) holds connect() until set
    """

    def __init__(
        self,
        hubs: Optional[List[DiscoveredHub]] = None,
        channel_uuids: Optional[List[str]] = None,
        fail_connect: Optional[str] = None,
        fail_write: Optional[str] = None,
        fail_disconnect: Optional[str] = None,
        connect_gate: Optional[asyncio.Event] = None,
    ) -> None:
        self.hubs = list(hubs or [])
        self.channel_uuids = (
            list(channel_uuids) if channel_uuids is not None else [LEGO_HUB_CHARACTERISTIC_UUID.upper()]
        )
        self.fail_connect = fail_connect
        self.fail_write = fail_write
        self.fail_disconnect = fail_disconnect
        self.connect_gate = connect_gate

        self.writes: List[bytes] = []
        self.scan_calls = 0
        self.stop_scan_calls = 0
        self.connect_calls = 0
        self.disconnect_calls = 0
        self.unsubscribe_calls = 0

        self._on_data = None
        self._on_disconnected = None
        self._links = 0

    async def scan(self, service_uuid: str):
        self.scan_calls += 1
        for hub in self.hubs:
            yield hub
        # Nothing (more) in range: keep scanning until cancelled.
        await asyncio.Event().wait()

    async def stop_scan(self) -> None:
        self.stop_scan_calls += 1

    async def connect(self, hub: DiscoveredHub):
        self.connect_calls += 1
        if self.connect_gate is not None:
            await self.connect_gate.wait()
        if self.fail_connect:
            raise HubTransportError(self.fail_connect)
        self._links += 1
        return f"link-{self._links}"

    async def discover_channels(self, link, service_uuid: str) -> List[HubChannel]:
        return [HubChannel(uuid=u, handle=u, link=link) for u in self.channel_uuids]

    async def write(self, channel: HubChannel, data: bytes) -> None:
        if self.fail_write:
            raise HubTransportError(self.fail_write)
        self.writes.append(bytes(data))

    async def subscribe(self, channel: HubChannel, on_data):
        self._on_data = on_data

        async def _unsubscribe() -> None:
            self.unsubscribe_calls += 1
            self._on_data = None

        return _unsubscribe

    def on_disconnected(self, link, callback) -> None:
        self._on_disconnected = callback

    async def disconnect(self, link) -> None:
        self.disconnect_calls += 1
        self._on_disconnected = None
        if self.fail_disconnect:
            raise HubTransportError(self.fail_disconnect)

    # ---- test controls ----

    @property
    def subscribed(self) -> bool:
        return self._on_data is not None

    def inject(self, frame: bytes) -> None:
        if self._on_data is not None:
            self._on_data(bytes(frame))

    def drop_link(self, reason: Optional[str] = None) -> None:
        """Simulate the hub going away; delivers the callback every time it is called."""
        if self._on_disconnected is not None:
            self._on_disconnected(reason)
