import json
from pathlib import Path

from boost_host.core.connection import CONNECTION_TOPIC
from boost_host.telemetry.file_logger import TelemetryRecorder
from boost_host.telemetry.host_module import TelemetryDispatcher
from boost_host.telemetry.models import DeviceState


def _rows(path: Path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_recorder_writes_frames_state_and_connection(tmp_path: Path, bus):
    path = tmp_path / "rec" / "telemetry.jsonl"
    recorder = TelemetryRecorder(bus, path)
    recorder.start()
    assert recorder.recording

    telemetry = TelemetryDispatcher(bus, DeviceState())
    bus.publish(CONNECTION_TOPIC, True)
    telemetry.on_frame(bytes([0x06, 0x00, 0x45, 0x02, 0x06, 0x21]))
    recorder.stop()

    rows = _rows(path)
    assert [r["event"] for r in rows] == ["connection", "frame", "device_info"]
    assert rows[0]["connected"] is True
    assert rows[1]["frame"]["hex"] == "060045020621"
    assert rows[2]["state"]["distance"] == 33
    assert rows[2]["state"]["color"] == "green"
    assert recorder.rows_written == 3


def test_recorder_stops_listening(tmp_path: Path, bus):
    path = tmp_path / "telemetry.jsonl"
    recorder = TelemetryRecorder(bus, path)
    recorder.start()
    recorder.stop()
    recorder.stop()

    bus.publish(CONNECTION_TOPIC, False)

    assert not recorder.recording
    assert path.read_text(encoding="utf-8") == ""
    assert bus.subscriber_count(CONNECTION_TOPIC) == 0
