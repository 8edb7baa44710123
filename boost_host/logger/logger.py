# boost_host/logger/logger.py
from __future__ import annotations

import json
import logging
import os
import threading
import time
from dataclasses import asdict, is_dataclass
from enum import Enum
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Union

ROOT_LOGGER = "boost_host"


class DedupFilter(logging.Filter):
    """
    Suppress repeated messages per (logger_name, level) within a cooldown window.

    Speculative commands against a disconnected hub all log the same warning;
    this keeps one line per burst instead of one per button press.
    """
    def __init__(self, cooldown_s: float = 0.0) -> None:
        super().__init__()
        self.cooldown_s = float(cooldown_s)
        self._lock = threading.Lock()
        self._last: dict[tuple[str, int], tuple[str, float]] = {}  # (name, level) -> (msg, ts)

    def filter(self, record: logging.LogRecord) -> bool:
        msg = record.getMessage()
        now = time.time()
        key = (record.name, record.levelno)

        with self._lock:
            last = self._last.get(key)
            if last is not None:
                last_msg, last_ts = last
                if msg == last_msg:
                    if self.cooldown_s <= 0.0:
                        return False
                    if (now - last_ts) < self.cooldown_s:
                        return False

            self._last[key] = (msg, now)
            return True


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_dir: str | None = "logs",
    log_file: str = "boost_host.log",
    console: bool = False,
    max_bytes: int = 5_000_000,
    backup_count: int = 5,
    dedup_cooldown_s: float = 0.0,
    timestamp_format: str = "%Y-%m-%d %H:%M:%S",
) -> logging.Logger:
    """
    Attach handlers to the package logger ("boost_host").

    Library modules only call logging.getLogger(__name__); nothing is emitted
    anywhere until an application calls this. Calling it again is a no-op
    while handlers are already attached (common in pytest).
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    _logger = logging.getLogger(ROOT_LOGGER)
    _logger.setLevel(level)
    _logger.propagate = False

    if _logger.handlers:
        return _logger

    fmt = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt=timestamp_format,
    )

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        full_log_path = os.path.join(log_dir, log_file)
        fh = RotatingFileHandler(
            full_log_path,
            maxBytes=int(max_bytes),
            backupCount=int(backup_count),
        )
        fh.setLevel(level)
        fh.setFormatter(fmt)
        fh.addFilter(DedupFilter(cooldown_s=dedup_cooldown_s))
        _logger.addHandler(fh)

    if console:
        ch = logging.StreamHandler()
        ch.setLevel(level)
        ch.setFormatter(fmt)
        ch.addFilter(DedupFilter(cooldown_s=dedup_cooldown_s))
        _logger.addHandler(ch)

    _logger.debug("Logging initialized (dir=%s, console=%s)", log_dir, console)
    return _logger


class JsonlLogger:
    """
    Simple JSONL "flight recorder" for hub sessions.
    Each call appends one JSON object per line (buffered=1 for near-real-time).
    """
    def __init__(self, path: str, mkdirs: bool = True) -> None:
        self.path = str(path)
        if mkdirs:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._f = open(self.path, "a", buffering=1, encoding="utf-8")

    @property
    def closed(self) -> bool:
        return self._f.closed

    def write(self, event: str, **data: Any) -> None:
        row = {
            "ts_ns": time.time_ns(),
            "event": event,
            **self._normalize(data),
        }
        line = json.dumps(row, ensure_ascii=False, default=str)
        with self._lock:
            if self._f.closed:
                return
            self._f.write(line + "\n")

    def close(self) -> None:
        with self._lock:
            if not self._f.closed:
                self._f.close()

    def __enter__(self) -> "JsonlLogger":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _normalize(self, obj: Any) -> Any:
        """
        Make common objects JSON-friendly:
        - dataclasses -> dict
        - enums -> value
        - Path -> str
        - bytes -> length + hex
        - exceptions -> repr
        """
        if isinstance(obj, dict):
            return {k: self._normalize(v) for k, v in obj.items()}

        if isinstance(obj, (list, tuple)):
            return [self._normalize(v) for v in obj]

        if is_dataclass(obj) and not isinstance(obj, type):
            return self._normalize(asdict(obj))

        if isinstance(obj, Enum):
            return obj.value

        if isinstance(obj, Path):
            return str(obj)

        if isinstance(obj, (bytes, bytearray)):
            # Hub frames are short; keep a prefix for anything unexpectedly large
            if len(obj) <= 64:
                return {"bytes_len": len(obj), "hex": bytes(obj).hex()}
            return {"bytes_len": len(obj), "hex_prefix": bytes(obj[:64]).hex()}

        if isinstance(obj, BaseException):
            return repr(obj)

        return obj
