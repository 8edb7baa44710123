# boost_host/telemetry/file_logger.py
from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional, Union

from boost_host.core.connection import CONNECTION_TOPIC
from boost_host.core.event_bus import EventBus, Subscription
from boost_host.logger.logger import JsonlLogger
from .host_module import FRAME_TOPIC, DEVICE_INFO_TOPIC
from .models import DeviceState


class TelemetryRecorder:
    """
    Appends a session's hub traffic to a JSONL file:

      {"event": "frame", "frame": {"bytes_len": .., "hex": ..}}
      {"event": "device_info", "state": {...}}
      {"event": "connection", "connected": true}
    """

    def __init__(self, bus: EventBus, path: Union[str, Path]) -> None:
        self._bus = bus
        self.path = Path(path)
        self._log: Optional[JsonlLogger] = None
        self._subs: List[Subscription] = []
        self.rows_written = 0

    @property
    def recording(self) -> bool:
        return self._log is not None

    def start(self) -> None:
        if self._log is not None:
            return
        self._log = JsonlLogger(str(self.path))
        self._subs = [
            self._bus.subscribe(FRAME_TOPIC, self._on_frame),
            self._bus.subscribe(DEVICE_INFO_TOPIC, self._on_device_info),
            self._bus.subscribe(CONNECTION_TOPIC, self._on_connection),
        ]

    def stop(self) -> None:
        for sub in self._subs:
            sub.unsubscribe()
        self._subs = []
        if self._log is not None:
            self._log.close()
            self._log = None

    # ------------------------------------------------------------------ #
    # Handlers
    # ------------------------------------------------------------------ #

    def _write(self, event: str, **data: Any) -> None:
        if self._log is None:
            return
        self._log.write(event, **data)
        self.rows_written += 1

    def _on_frame(self, frame: bytes) -> None:
        self._write("frame", frame=frame)

    def _on_device_info(self, state: DeviceState) -> None:
        self._write("device_info", state=state)

    def _on_connection(self, connected: bool) -> None:
        self._write("connection", connected=bool(connected))
