import asyncio
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from boost_host.core.event_bus import EventBus


@dataclass
class PublishedEvent:
    topic: str
    data: Any


class CapturingBus(EventBus):
    """
    Real EventBus that also records every publish(topic, data).
    Useful for asserting what got published, and in which order.
    """
    def __init__(self) -> None:
        super().__init__()
        self.events: List[PublishedEvent] = []

    def publish(self, topic: str, data: Any) -> None:
        self.events.append(PublishedEvent(topic, data))
        super().publish(topic, data)

    def topics(self) -> List[str]:
        return [e.topic for e in self.events]

    def of(self, topic: str) -> List[Any]:
        return [e.data for e in self.events if e.topic == topic]

    def last(self, topic: str) -> Optional[PublishedEvent]:
        for e in reversed(self.events):
            if e.topic == topic:
                return e
        return None


class FakeLink:
    """
    Minimal connection that matches HasWrite in the command dispatcher.
    Collects frames; `connected` toggles whether writes are accepted.
    """
    def __init__(self, connected: bool = True, fail: bool = False) -> None:
        self.connected = connected
        self.fail = fail
        self.frames: List[bytes] = []

    @property
    def is_connected(self) -> bool:
        return self.connected

    async def write(self, frame: bytes) -> bool:
        if self.fail:
            return False
        self.frames.append(bytes(frame))
        return True


class FixedChoice:
    """Stand-in for random.Random whose choice() always picks `value`."""
    def __init__(self, value: Any) -> None:
        self.value = value

    def choice(self, seq):
        assert self.value in seq
        return self.value


async def wait_until(predicate: Callable[[], bool], timeout_s: float = 1.0, interval_s: float = 0.005) -> bool:
    loop = asyncio.get_running_loop()
    start = loop.time()
    while (loop.time() - start) < timeout_s:
        if predicate():
            return True
        await asyncio.sleep(interval_s)
    return predicate()
