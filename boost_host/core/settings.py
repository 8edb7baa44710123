# boost_host/core/settings.py

import logging
import os
from dataclasses import dataclass, field, fields, asdict, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from .protocol import LEGO_HUB_SERVICE_UUID, LEGO_HUB_CHARACTERISTIC_UUID

logger = logging.getLogger(__name__)

FINETUNE_MIN = 0.5
FINETUNE_MAX = 2.0
MOTOR_NAMES = ("A", "B")


def _env_bool(key: str, default: bool) -> bool:
    """Read a boolean from environment variable."""
    val = os.environ.get(key, "").lower()
    if val in ("1", "true", "yes", "on"):
        return True
    if val in ("0", "false", "no", "off"):
        return False
    return default


def _env_float(key: str, default: float) -> float:
    val = os.environ.get(key, "").strip()
    if not val:
        return default
    try:
        return float(val)
    except ValueError:
        logger.warning("Ignoring %s=%r (not a number)", key, val)
        return default


def _clamp_finetune(value: Any) -> float:
    return max(FINETUNE_MIN, min(FINETUNE_MAX, float(value)))


@dataclass
class BoostConfiguration:
    """
    User fine-tuning for the drive base.

    left_motor / right_motor say which physical motor is on which side.
    The finetune values scale the duration of drive and turn pulses.
    """
    left_motor: str = "A"
    right_motor: str = "B"
    drive_finetune: float = 1.0
    turn_finetune: float = 1.0

    def __post_init__(self) -> None:
        self._validate()

    def merge(self, partial: Union[Mapping[str, Any], "BoostConfiguration", None] = None, **changes: Any) -> "BoostConfiguration":
        """
        Merge a partial update into this record (in place) and return self.

        Accepts a mapping, another BoostConfiguration, keyword arguments,
        or any mix. Unknown keys and invalid motor assignments raise
        ValueError. Giving only one of left_motor / right_motor assigns the
        remaining motor to the other side.
        """
        if isinstance(partial, BoostConfiguration):
            updates = asdict(partial)
        else:
            updates = dict(partial or {})
        updates.update(changes)

        known = {f.name for f in fields(self)}
        unknown = sorted(set(updates) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")

        # Naming one side implies the other motor for the opposite side.
        for side, other in (("left_motor", "right_motor"), ("right_motor", "left_motor")):
            if side in updates and other not in updates:
                motor = str(updates[side]).upper()
                if motor in MOTOR_NAMES:
                    updates[other] = next(m for m in MOTOR_NAMES if m != motor)

        # Validate on a copy so a bad update leaves this record untouched.
        merged = replace(self, **updates)
        for f in fields(self):
            setattr(self, f.name, getattr(merged, f.name))
        return self

    def motors_swapped(self) -> bool:
        """True when the left side of the robot is driven by physical motor B."""
        return self.left_motor == "B"

    def _validate(self) -> None:
        self.left_motor = str(self.left_motor).upper()
        self.right_motor = str(self.right_motor).upper()
        for side, motor in (("left_motor", self.left_motor), ("right_motor", self.right_motor)):
            if motor not in MOTOR_NAMES:
                raise ValueError(f"{side} must be one of {MOTOR_NAMES}, got {motor!r}")
        if self.left_motor == self.right_motor:
            raise ValueError("left_motor and right_motor must be different motors")
        self.drive_finetune = _clamp_finetune(self.drive_finetune)
        self.turn_finetune = _clamp_finetune(self.turn_finetune)


@dataclass
class TransportSettings:
    service_uuid: str = LEGO_HUB_SERVICE_UUID
    characteristic_uuid: str = LEGO_HUB_CHARACTERISTIC_UUID
    name_filter: Optional[str] = None      # substring of the advertised name, if set
    scan_timeout_s: float = 15.0
    write_with_response: bool = True


@dataclass
class AutopilotSettings:
    tick_s: float = 0.5
    obstacle_distance_cm: int = 30


@dataclass
class LoggingSettings:
    level: str = "INFO"
    log_dir: str = "logs"
    console: bool = True
    dedup_cooldown_s: float = 2.0


@dataclass
class RecordingSettings:
    enabled: bool = False
    path: str = "logs/telemetry.jsonl"


@dataclass
class HubSettings:
    transport: TransportSettings = field(default_factory=TransportSettings)
    autopilot: AutopilotSettings = field(default_factory=AutopilotSettings)
    boost: BoostConfiguration = field(default_factory=BoostConfiguration)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    recording: RecordingSettings = field(default_factory=RecordingSettings)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "HubSettings":
        data = data or {}
        return cls(
            transport=TransportSettings(**(data.get("transport") or {})),
            autopilot=AutopilotSettings(**(data.get("autopilot") or {})),
            boost=BoostConfiguration(**(data.get("boost") or {})),
            logging=LoggingSettings(**(data.get("logging") or {})),
            recording=RecordingSettings(**(data.get("recording") or {})),
        )

    @classmethod
    def load(cls, profile: str = "default", path: Optional[Path] = None) -> "HubSettings":
        """
        Load a YAML profile (boost_host/config/hub_profile_<profile>.yaml unless
        an explicit path is given), then apply environment overrides:

          BOOST_SCAN_TIMEOUT_S, BOOST_LOG_LEVEL, BOOST_RECORD
        """
        if path is None:
            base = Path(__file__).resolve().parent.parent
            path = base / "config" / f"hub_profile_{profile}.yaml"

        data = yaml.safe_load(Path(path).read_text())
        settings = cls.from_dict(data)

        settings.transport.scan_timeout_s = _env_float(
            "BOOST_SCAN_TIMEOUT_S", settings.transport.scan_timeout_s
        )
        settings.logging.level = os.environ.get("BOOST_LOG_LEVEL", settings.logging.level).upper()
        settings.recording.enabled = _env_bool("BOOST_RECORD", settings.recording.enabled)
        return settings
