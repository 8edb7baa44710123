# boost_host/core/event_bus.py

import logging
from collections import defaultdict
from typing import Callable, Dict, List, Any

logger = logging.getLogger(__name__)


class Subscription:
    """
    Handle returned by EventBus.subscribe().

    Calling unsubscribe() (or the handle itself) removes the handler. It is
    safe to do so at any time, including from inside the handler while the
    bus is dispatching; repeated calls are no-ops.
    """

    def __init__(self, bus: "EventBus", topic: str, handler: Callable[[Any], None]) -> None:
        self._bus = bus
        self.topic = topic
        self.handler = handler
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._bus._remove(self)

    def __call__(self) -> None:
        self.unsubscribe()


class EventBus:
    """
    Simple synchronous event bus.
    Works fine when called from async code; just make sure handlers are fast.
    """

    def __init__(self) -> None:
        self._subs: Dict[str, List[Subscription]] = defaultdict(list)

    def subscribe(self, topic: str, handler: Callable[[Any], None]) -> Subscription:
        """Register a handler for a topic."""
        sub = Subscription(self, topic, handler)
        self._subs[topic].append(sub)
        return sub

    def unsubscribe(self, topic: str, handler: Callable[[Any], None]) -> None:
        """Remove every subscription of `handler` on `topic`."""
        for sub in list(self._subs.get(topic, [])):
            if sub.handler == handler:
                sub.unsubscribe()

    def publish(self, topic: str, data: Any) -> None:
        """Call all handlers for a topic, in subscription order."""
        # Iterate a snapshot; anything unsubscribed mid-dispatch is skipped.
        for sub in list(self._subs.get(topic, [])):
            if not sub.active:
                continue
            try:
                sub.handler(data)
            except Exception as e:  # don't kill the loop if one handler dies
                logger.error("handler error on '%s': %r", topic, e)

    def subscriber_count(self, topic: str) -> int:
        return len(self._subs.get(topic, []))

    def _remove(self, sub: Subscription) -> None:
        subs = self._subs.get(sub.topic)
        if subs is None:
            return
        try:
            subs.remove(sub)
        except ValueError:
            pass
        if not subs:
            del self._subs[sub.topic]
