from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional

DataHandler = Callable[[bytes], None]
DisconnectHandler = Callable[[Optional[str]], None]
Unsubscribe = Callable[[], Awaitable[None]]


class HubTransportError(RuntimeError):
    """Raised by transport adapters for link-level failures."""


@dataclass
class DiscoveredHub:
    address: str
    name: Optional[str] = None
    rssi: int = 0
    handle: Any = None   # adapter-specific device object


@dataclass
class HubChannel:
    uuid: str
    handle: Any = None   # adapter-specific characteristic object
    link: Any = None     # connected link the channel belongs to


class BaseHubTransport(ABC):
    """
    Base class for wireless-link adapters used by the connection manager.

    Subclasses implement the platform side:
      - scan() / stop_scan()
      - connect() / disconnect()
      - discover_channels()
      - write() / subscribe()
      - on_disconnected()

    Every method may raise; the connection manager turns failures into a
    False connect result plus an error message.
    """

    @abstractmethod
    def scan(self, service_uuid: str) -> AsyncIterator[DiscoveredHub]:
        """Yield hubs advertising `service_uuid` until the caller stops iterating."""
        ...

    @abstractmethod
    async def stop_scan(self) -> None:
        ...

    @abstractmethod
    async def connect(self, hub: DiscoveredHub) -> Any:
        """Open the link and return an adapter-specific link handle."""
        ...

    @abstractmethod
    async def discover_channels(self, link: Any, service_uuid: str) -> List[HubChannel]:
        ...

    @abstractmethod
    async def write(self, channel: HubChannel, data: bytes) -> None:
        ...

    @abstractmethod
    async def subscribe(self, channel: HubChannel, on_data: DataHandler) -> Unsubscribe:
        """Start notifications; the returned coroutine function stops them."""
        ...

    @abstractmethod
    def on_disconnected(self, link: Any, callback: DisconnectHandler) -> None:
        """Register `callback(reason)` for a link drop not caused by disconnect()."""
        ...

    @abstractmethod
    async def disconnect(self, link: Any) -> None:
        ...
