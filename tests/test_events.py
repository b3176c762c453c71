from __future__ import annotations

import json
from pathlib import Path

from thumbforge_engine.runs.events import EventWriter


def test_event_writer(tmp_path: Path) -> None:
    path = tmp_path / "events.jsonl"
    writer = EventWriter(path, "session-123")
    writer.emit("run_started", run_id="run-1", aspect_ratio="16:9")
    lines = path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 1
    payload = json.loads(lines[0])
    assert payload["type"] == "run_started"
    assert payload["session_id"] == "session-123"
    assert payload["run_id"] == "run-1"
    assert "ts" in payload
    assert payload["aspect_ratio"] == "16:9"


def test_event_writer_creates_parent_dirs_and_appends(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "events.jsonl"
    writer = EventWriter(path, "session-123")
    assert not path.exists()
    writer.emit("run_reset", run_id=None)
    writer.emit("run_started", run_id="run-2")
    types = [json.loads(line)["type"] for line in path.read_text(encoding="utf-8").splitlines()]
    assert types == ["run_reset", "run_started"]
