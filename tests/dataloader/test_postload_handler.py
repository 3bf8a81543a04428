# tests/dataloader/test_postload_handler.py
import json
import logging
from pathlib import Path

import pytest

from alchemist.dataloader.postload_handler import LoadResultHandler
from alchemist.dataloader.types import LoadResult
from alchemist.schemas.models import Client


def _fake_clients():
    return [
        Client(client_id="C1", client_name="Acme", priority_level=3),
        Client(client_id="C2", client_name="Globex", priority_level=None),
    ]


def test_handle_success_returns_records(tmp_path: Path, caplog: pytest.LogCaptureFixture):
    """
    @brief
    Validates normal success branch of LoadResultHandler.

    @details
    Ensures that when LoadResult indicates success=True, the handler returns
    the same list of records, does not create any JSON error file, and logs
    that the records are ready for validation.
    """
    # --- Arrange ---
    caplog.set_level(logging.INFO)
    result = LoadResult(kind="clients", success=True, records=_fake_clients(), total_rows=2, kept_rows=2)
    handler = LoadResultHandler(output_dir=tmp_path)

    # --- Act ---
    records = handler.handle(result)

    # --- Assert ---
    assert records is result.records
    assert not handler.report_path("clients").exists()
    assert "ready for validation" in caplog.text


def test_handle_issues_writes_json_and_returns_records(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
):
    """
    @brief
    Issue branch writes load_errors_<kind>.json and still returns records.
    """
    # --- Arrange ---
    caplog.set_level(logging.WARNING)
    issues = [{"kind": "conversion", "line_no": 3, "record_id": "C2", "message": "PriorityLevel: x"}]
    result = LoadResult(
        kind="clients",
        success=False,
        records=_fake_clients(),
        issues=issues,
        total_rows=2,
        kept_rows=2,
    )
    handler = LoadResultHandler(output_dir=tmp_path)

    # --- Act ---
    records = handler.handle(result)

    # --- Assert ---
    assert len(records) == 2
    out = tmp_path / "load_errors_clients.json"
    assert out.exists()
    assert json.loads(out.read_text(encoding="utf-8")) == issues
    assert "1 issue(s)" in caplog.text


def test_handle_write_failure_is_logged(tmp_path: Path, caplog: pytest.LogCaptureFixture):
    # --- Arrange ---
    caplog.set_level(logging.ERROR)
    blocker = tmp_path / "blocked"
    blocker.write_text("file, not a directory", encoding="utf-8")
    result = LoadResult(
        kind="tasks",
        success=False,
        records=[],
        issues=[{"kind": "schema_error", "line_no": 2, "record_id": None, "message": "bad"}],
        total_rows=1,
        kept_rows=0,
    )

    # --- Act ---
    records = LoadResultHandler(output_dir=blocker).handle(result)

    # --- Assert ---
    assert records == []
    assert "failed to write issue report" in caplog.text
