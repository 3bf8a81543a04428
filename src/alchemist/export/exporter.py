from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Sequence
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

import pandas as pd
from pydantic import BaseModel

from alchemist.dataloader.normalizer import CANONICAL_COLUMNS
from alchemist.errors import ExportError
from alchemist.export.writers import write_json
from alchemist.schemas.models import (
    Client,
    PriorityWeights,
    Rule,
    Task,
    ValidationError,
    Worker,
)
from alchemist.validator.scoring import count_by_severity, has_blocking_errors

logger = logging.getLogger(__name__)

REPORT_COLUMNS = ("id", "type", "entity", "entityId", "field", "message", "suggestion")


def default_workbook_name(today: date | None = None) -> str:
    return f"data-alchemist-export-{(today or date.today()).isoformat()}.xlsx"


def default_rules_name(today: date | None = None) -> str:
    return f"rules-config-{(today or date.today()).isoformat()}.json"


def _as_cell(value: Any) -> Any:
    """
    @brief
    Flattens a record value into a spreadsheet cell.

    @details
    Lists become comma-separated text (the format accepted again on upload),
    mappings become JSON text, None becomes an empty cell.
    """
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False)
    return value


def _sheet(records: Sequence[BaseModel], columns: Sequence[str]) -> pd.DataFrame:
    rows = [
        {col: _as_cell(val) for col, val in r.model_dump(by_alias=True).items()} for r in records
    ]
    return pd.DataFrame(rows, columns=list(columns))


def export_workbook(
    clients: Sequence[Client],
    workers: Sequence[Worker],
    tasks: Sequence[Task],
    findings: Sequence[ValidationError],
    out_path: Path,
    *,
    include_report: bool = True,
    allow_errors: bool = False,
) -> Path:
    """
    @brief
    Writes the cleaned dataset to an Excel workbook.

    @details
    Sheets: Clients, Workers, Tasks (always written, possibly empty) and
    "Validation Report" when `include_report` is set and findings exist.
    Export is refused while error-severity findings exist unless
    `allow_errors` is set; warnings never block. The workbook is written to a
    temporary file and moved into place.

    @params
        out_path : Path
            Target .xlsx path.

    @returns
        Path to the written workbook.

    @raises
        ExportError
            If blocking findings exist (and allow_errors is False) or the
            workbook cannot be written.
    """
    # (1) Enforce export policy
    if has_blocking_errors(findings) and not allow_errors:
        errors = count_by_severity(findings)["errors"]
        raise ExportError(
            f"Export blocked: {errors} validation error(s) found",
            source="exporter.export_workbook",
            suggested_action="Fix all error-severity findings before exporting.",
        )

    # (2) Build sheet frames
    sheets: dict[str, pd.DataFrame] = {
        "Clients": _sheet(clients, CANONICAL_COLUMNS["clients"]),
        "Workers": _sheet(workers, CANONICAL_COLUMNS["workers"]),
        "Tasks": _sheet(tasks, CANONICAL_COLUMNS["tasks"]),
    }
    if include_report and findings:
        sheets["Validation Report"] = _sheet(findings, REPORT_COLUMNS)

    # (3) Write through a temporary file in the target directory
    out_path = Path(out_path)
    tmp_name: str | None = None
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=out_path.stem + ".", suffix=".xlsx", dir=str(out_path.parent))
        os.close(fd)
        with pd.ExcelWriter(tmp_name, engine="openpyxl") as writer:
            for name, frame in sheets.items():
                frame.to_excel(writer, sheet_name=name, index=False)
        os.replace(tmp_name, out_path)
    except (OSError, ValueError) as e:
        if tmp_name and os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise ExportError(
            f"Failed to write workbook {out_path}: {e}",
            source="exporter.export_workbook",
            suggested_action="Check output directory permissions and disk space.",
        ) from e

    logger.info("Workbook exported: %s (%s)", out_path, ", ".join(sheets))
    return out_path


def build_rules_config(
    rules: Sequence[Rule],
    weights: PriorityWeights,
    *,
    totals: dict[str, int] | None = None,
) -> dict[str, Any]:
    """
    @brief
    Assembles the rules-config payload.

    @details
    Only active rules are exported. Priority weights use the dashboard's
    camelCase keys. `totals` carries optional dataset counts for the
    metadata block.
    """
    return {
        "rules": [r.model_dump() for r in rules if r.active],
        "priorityWeights": weights.model_dump(by_alias=True),
        "exportDate": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        "metadata": dict(totals or {}),
    }


def export_rules_config(
    rules: Sequence[Rule],
    weights: PriorityWeights,
    out_path: Path,
    *,
    totals: dict[str, int] | None = None,
) -> Path:
    """Writes the rules-config JSON atomically; failures raise ExportError."""
    payload = build_rules_config(rules, weights, totals=totals)
    return write_json(payload, Path(out_path), error_cls=ExportError)


__all__ = [
    "export_workbook",
    "export_rules_config",
    "build_rules_config",
    "default_workbook_name",
    "default_rules_name",
]
