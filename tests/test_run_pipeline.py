import json
from pathlib import Path

import pytest
import yaml

from scripts.run import main, run_pipeline

ROOT = Path(__file__).resolve().parents[1]
SAMPLE_DIR = ROOT / "data" / "sample"


def _sample_paths() -> tuple[Path, Path, Path]:
    return SAMPLE_DIR / "clients.csv", SAMPLE_DIR / "workers.csv", SAMPLE_DIR / "tasks.csv"


def _write_dirty_sheets(tmp_path: Path) -> tuple[Path, Path, Path]:
    clients = tmp_path / "clients.csv"
    clients.write_text("ClientID,ClientName,PriorityLevel,RequestedTaskIDs\nC1,Acme,9,T9\n", encoding="utf-8")
    workers = tmp_path / "workers.csv"
    workers.write_text("WorkerID,WorkerName,Skills,AvailableSlots\nW1,Bob,sql,1-3\n", encoding="utf-8")
    tasks = tmp_path / "tasks.csv"
    tasks.write_text("TaskID,TaskName,Duration,RequiredSkills\nT1,Load,2,sql\n", encoding="utf-8")
    return clients, workers, tasks


def _write_config(tmp_path: Path, data: dict) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


def test_run_pipeline_on_sample_data(tmp_path: Path):
    """
    @brief
    Full pipeline on the bundled sample dataset.

    @details
    The sample sheets are clean, so the report is valid with a perfect
    score and both export artifacts are written.
    """
    # --- Arrange ---
    out = tmp_path / "out"
    cfg_path = ROOT / "config" / "config.yaml"

    # --- Act ---
    result = run_pipeline(cfg_path, *_sample_paths(), output_dir=out)
    arts = result["artifacts"]

    # --- Assert ---
    assert result["valid"] is True
    assert result["quality_score"] == 100
    assert result["counts"] == {"errors": 0, "warnings": 0, "total": 0}
    assert arts["load_errors"] == {}

    report = json.loads(Path(arts["validation_report"]).read_text(encoding="utf-8"))
    assert report["valid"] is True
    assert report["findings"] == []

    assert Path(arts["workbook"]).exists()
    rules = json.loads(Path(arts["rules_config"]).read_text(encoding="utf-8"))
    assert [r["id"] for r in rules["rules"]] == ["R1"]
    assert rules["priorityWeights"]["skillMatching"] == 70
    assert rules["metadata"]["totalClients"] == 3


def test_run_pipeline_with_errors_skips_export(tmp_path: Path):
    # --- Arrange ---
    out = tmp_path / "out"

    # --- Act ---
    result = run_pipeline(None, *_write_dirty_sheets(tmp_path), output_dir=out)

    # --- Assert ---
    assert result["valid"] is False
    # priority 9 out of range, T9 unknown
    assert result["counts"]["errors"] == 2
    assert result["quality_score"] == 90
    assert result["artifacts"]["workbook"] is None
    assert result["artifacts"]["rules_config"] is None
    assert Path(result["artifacts"]["validation_report"]).exists()


def test_run_pipeline_allow_errors_exports_anyway(tmp_path: Path):
    cfg = _write_config(tmp_path, {"export": {"allow_errors": True, "include_rules": False}})

    result = run_pipeline(cfg, *_write_dirty_sheets(tmp_path), output_dir=tmp_path / "out")

    assert result["valid"] is False
    assert Path(result["artifacts"]["workbook"]).exists()
    assert result["artifacts"]["rules_config"] is None


def test_run_pipeline_fail_on_warnings(tmp_path: Path):
    # --- Arrange ---
    cfg = _write_config(tmp_path, {"validation": {"fail_on_warnings": True, "write_report": False}})
    clients = tmp_path / "clients.csv"
    clients.write_text("ClientID,ClientName,PriorityLevel\nC1,Acme,2\n", encoding="utf-8")
    workers = tmp_path / "workers.csv"
    workers.write_text("WorkerID,WorkerName,Skills,AvailableSlots\nW1,Bob,python,1\n", encoding="utf-8")
    tasks = tmp_path / "tasks.csv"
    tasks.write_text("TaskID,TaskName,Duration,RequiredSkills\nT1,Load,1,sql\n", encoding="utf-8")

    # --- Act ---
    result = run_pipeline(cfg, clients, workers, tasks, output_dir=tmp_path / "out")

    # --- Assert ---
    assert result["counts"] == {"errors": 0, "warnings": 1, "total": 1}
    assert result["valid"] is False
    assert result["artifacts"]["validation_report"] is None
    # warnings never block export
    assert Path(result["artifacts"]["workbook"]).exists()


def test_run_pipeline_records_load_errors(tmp_path: Path):
    clients, workers, tasks = _write_dirty_sheets(tmp_path)
    clients.write_text("ClientID,ClientName,PriorityLevel\nC1,Acme,high\n", encoding="utf-8")
    out = tmp_path / "out"

    result = run_pipeline(None, clients, workers, tasks, output_dir=out)

    assert result["artifacts"]["load_errors"] == {"clients": out / "load_errors_clients.json"}


@pytest.mark.parametrize(
    "dirty, expected",
    [(False, 0), (True, 1)],
)
def test_main_exit_codes(tmp_path: Path, dirty: bool, expected: int):
    # --- Arrange ---
    paths = _write_dirty_sheets(tmp_path) if dirty else _sample_paths()
    argv = [
        "--clients",
        str(paths[0]),
        "--workers",
        str(paths[1]),
        "--tasks",
        str(paths[2]),
        "--output",
        str(tmp_path / "out"),
    ]

    # --- Act / Assert ---
    assert main(argv) == expected


def test_main_controlled_failure_returns_1(tmp_path: Path):
    argv = [
        "--config",
        str(tmp_path / "missing.yaml"),
        "--clients",
        "a.csv",
        "--workers",
        "b.csv",
        "--tasks",
        "c.csv",
    ]
    assert main(argv) == 1


def test_main_unexpected_crash_returns_2(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    def boom(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr("scripts.run.run_pipeline", boom)
    argv = ["--clients", "a", "--workers", "b", "--tasks", "c"]

    assert main(argv) == 2
