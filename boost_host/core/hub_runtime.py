# boost_host/core/hub_runtime.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from boost_host.logger.logger import setup_logging
from boost_host.telemetry.file_logger import TelemetryRecorder
from boost_host.transports.base_transport import BaseHubTransport
from boost_host.transports.bleak_transport import BleakHubTransport
from .client import HubClient
from .event_bus import EventBus
from .settings import HubSettings


@dataclass
class HubRuntime:
    """
    Everything an application needs for one hub:
      - settings loaded from the profile
      - one EventBus shared by everything
      - the transport and the HubClient built on it
      - an optional JSONL telemetry recorder
    """
    settings: HubSettings
    bus: EventBus
    transport: BaseHubTransport
    client: HubClient
    recorder: Optional[TelemetryRecorder] = None

    async def close(self) -> None:
        await self.client.disconnect()
        if self.recorder is not None:
            self.recorder.stop()


async def build_runtime(
    profile: str = "default",
    settings: Optional[HubSettings] = None,
    transport: Optional[BaseHubTransport] = None,
) -> HubRuntime:
    """
    Build the runtime for a given profile.

    This:
      - Loads HubSettings for the profile (unless given).
      - Configures the "boost_host" logger.
      - Constructs the BLE transport (unless given).
      - Builds the HubClient and, when enabled, starts recording.

    It does not connect; call runtime.client.connect().
    """
    settings = settings or HubSettings.load(profile)

    log_cfg = settings.logging
    setup_logging(
        level=log_cfg.level,
        log_dir=log_cfg.log_dir,
        console=log_cfg.console,
        dedup_cooldown_s=log_cfg.dedup_cooldown_s,
    )

    bus = EventBus()
    if transport is None:
        transport = BleakHubTransport(
            write_with_response=settings.transport.write_with_response,
        )
    client = HubClient(transport, settings=settings, bus=bus)

    recorder = None
    if settings.recording.enabled:
        recorder = TelemetryRecorder(bus, settings.recording.path)
        recorder.start()

    return HubRuntime(
        settings=settings,
        bus=bus,
        transport=transport,
        client=client,
        recorder=recorder,
    )
