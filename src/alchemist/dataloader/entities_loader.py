from __future__ import annotations

import csv
import logging
import zipfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pandas as pd
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from alchemist.dataloader.normalizer import (
    CANONICAL_COLUMNS,
    ID_COLUMN,
    normalize_header,
    normalize_row,
)
from alchemist.dataloader.types import LoadResult
from alchemist.errors import DataError
from alchemist.schemas.models import Client, Task, Worker

logger = logging.getLogger(__name__)

MODELS: dict[str, type[BaseModel]] = {"clients": Client, "workers": Worker, "tasks": Task}

CSV_SUFFIXES = {".csv"}
EXCEL_SUFFIXES = {".xlsx", ".xls"}


class EntitiesLoader:
    """
    CSV / XLSX sheet → LoadResult[Client | Worker | Task].

    Rules:
      - Formats: UTF-8 CSV (delimiter ',') or the first worksheet of an Excel file
      - Headers are resolved through the alias table (ClientID, client_id, "Client ID", ...)
      - The id column of the entity kind is required; other columns are optional
      - Blank rows are skipped
      - Row-level handling:
          * value that cannot be converted → issue, record kept with the value left empty
          * row rejected by the record schema → issue, row skipped
      - Business rules (duplicates, ranges, references) are left to the validator

    Fatal errors (DataError raised immediately):
      - file missing / unreadable / unsupported extension
      - no header row
      - id column missing
    """

    def load(self, path: Path, kind: str) -> LoadResult:
        if kind not in MODELS:
            raise DataError(
                message=f"Unknown entity kind: {kind}",
                source="EntitiesLoader.load",
                suggested_action=f"Use one of: {', '.join(MODELS)}",
            )
        rows = self._read_rows(path, kind)
        result = self._rows_to_result(rows, kind)
        self._report_summary(path, result)
        return result

    # ------------------------------
    # Internal helpers
    # ------------------------------
    def _read_rows(self, path: Path, kind: str) -> list[dict[str, Any]]:
        if not isinstance(path, Path):
            raise DataError(
                message=f"Invalid path type: expected pathlib.Path, got {type(path).__name__}",
                source="EntitiesLoader._read_rows",
                suggested_action=f"Pass a pathlib.Path pointing to the {kind} sheet",
            )
        if not path.exists():
            raise DataError(
                message=f"Input file not found: {path}",
                source="EntitiesLoader._read_rows",
                suggested_action="Verify file path and ensure the file is present.",
            )

        suffix = path.suffix.lower()
        if suffix in CSV_SUFFIXES:
            return self._read_csv(path, kind)
        if suffix in EXCEL_SUFFIXES:
            return self._read_excel(path, kind)
        raise DataError(
            message=f"Unsupported file extension: {path.suffix}",
            source="EntitiesLoader._read_rows",
            suggested_action="Upload a .csv or .xlsx file.",
        )

    def _read_csv(self, path: Path, kind: str) -> list[dict[str, Any]]:
        try:
            with path.open("r", encoding="utf-8-sig", newline="") as f:
                reader = csv.DictReader(f, delimiter=",")
                if reader.fieldnames is None:
                    raise DataError(
                        message="CSV has no header row.",
                        source="EntitiesLoader._read_csv",
                        suggested_action="Ensure the first line contains column names.",
                    )
                self._validate_header(reader.fieldnames, kind)
                return [dict(r) for r in reader]
        except OSError as e:
            raise DataError(
                message=f"Unable to read CSV: {e}",
                source="EntitiesLoader._read_csv",
                suggested_action="Check file permissions and that the file is not locked.",
            ) from e

    def _read_excel(self, path: Path, kind: str) -> list[dict[str, Any]]:
        try:
            df = pd.read_excel(path, sheet_name=0, dtype=str, keep_default_na=False)
        except (OSError, ValueError, zipfile.BadZipFile) as e:
            raise DataError(
                message=f"Unable to read Excel file: {e}",
                source="EntitiesLoader._read_excel",
                suggested_action="Check that the file is a valid .xlsx workbook.",
            ) from e

        header = [str(c) for c in df.columns]
        if not header:
            raise DataError(
                message="Worksheet has no header row.",
                source="EntitiesLoader._read_excel",
                suggested_action="Ensure the first row contains column names.",
            )
        self._validate_header(header, kind)
        return [dict(zip(header, values)) for values in df.itertuples(index=False, name=None)]

    def _validate_header(self, header: Iterable[str], kind: str) -> None:
        resolved = {normalize_header(name, kind) for name in header}
        id_column = ID_COLUMN[kind]
        if id_column not in resolved:
            raise DataError(
                message=f"Invalid header: missing required column {id_column}",
                source="EntitiesLoader._validate_header",
                suggested_action=f"Add an id column; known columns: {','.join(CANONICAL_COLUMNS[kind])}",
            )

    def _is_blank_row(self, row: dict[str, Any]) -> bool:
        return all(v is None or (isinstance(v, str) and not v.strip()) for v in row.values())

    def _rows_to_result(self, rows: list[dict[str, Any]], kind: str) -> LoadResult:
        model = MODELS[kind]
        id_column = ID_COLUMN[kind]
        issues: list[dict[str, Any]] = []
        records: list[Any] = []
        total = 0

        for idx, row in enumerate(rows, start=2):  # header = line 1
            if self._is_blank_row(row):
                continue
            total += 1

            record, problems = normalize_row(row, kind)
            record_id = record.get(id_column) or None

            for problem in problems:
                issues.append(
                    {
                        "kind": "conversion",
                        "line_no": idx,
                        "record_id": record_id,
                        "message": problem,
                    }
                )

            try:
                records.append(model.model_validate(record))
            except SchemaError as e:
                issues.append(
                    {
                        "kind": "schema_error",
                        "line_no": idx,
                        "record_id": record_id,
                        "message": f"{model.__name__} construction failed: {e}",
                    }
                )

        return LoadResult(
            kind=kind,
            success=not issues,
            records=records,
            issues=issues,
            total_rows=total,
            kept_rows=len(records),
        )

    def _report_summary(self, path: Path, result: LoadResult) -> None:
        if result.success:
            logger.info(
                "EntitiesLoader OK: %s kept=%d/%d from %s",
                result.kind,
                result.kept_rows,
                result.total_rows,
                path,
            )
        else:
            counts: dict[str, int] = {}
            for it in result.issues:
                counts[it["kind"]] = counts.get(it["kind"], 0) + 1
            summary = ", ".join(f"{k}={v}" for k, v in counts.items())
            logger.error(
                "EntitiesLoader: %d issue(s) across %d %s row(s) in %s [%s]",
                len(result.issues),
                result.total_rows,
                result.kind,
                path,
                summary or "no-summary",
            )
