import json
import logging
from pathlib import Path

import pytest

from alchemist.errors import DataError, ExportError
from alchemist.export.writers import atomic_write_text, write_json


def test_atomic_write_replaces_existing_file(tmp_path: Path):
    # --- Arrange ---
    target = tmp_path / "report.json"
    target.write_text("old", encoding="utf-8")

    # --- Act ---
    atomic_write_text(target, "new")

    # --- Assert ---
    assert target.read_text(encoding="utf-8") == "new"
    assert [p.name for p in tmp_path.iterdir()] == ["report.json"]


def test_write_json_creates_parent_and_logs(tmp_path: Path, caplog: pytest.LogCaptureFixture):
    caplog.set_level(logging.INFO)
    target = tmp_path / "a" / "b" / "out.json"

    write_json({"valid": True, "items": [1, 2]}, target)

    text = target.read_text(encoding="utf-8")
    assert text.endswith("\n")
    assert json.loads(text) == {"valid": True, "items": [1, 2]}
    assert "Saved" in caplog.text


def test_write_json_unserializable_payload(tmp_path: Path):
    with pytest.raises(DataError) as e:
        write_json({"x": object()}, tmp_path / "x.json")
    assert "not JSON-serializable" in str(e.value)


def test_write_failure_uses_requested_error_class(tmp_path: Path):
    """
    @brief
    Write failures surface as the caller's error class.
    """
    # --- Arrange ---
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")

    # --- Act / Assert ---
    with pytest.raises(ExportError) as e:
        write_json({}, blocker / "out.json", error_cls=ExportError)
    assert e.value.source == "writers.atomic_write_text"
