from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class LoadResult:
    """
    Structured result of loading one uploaded sheet.

    Fields:
        kind: "clients", "workers" or "tasks".
        success: True if no row-level issues were found, False otherwise.
        records: Canonical records; rows with conversion issues are kept
                 (their unreadable values left empty) so the validator can
                 still report on them.
        issues: List of issue dicts with per-row context (used for reporting).
                Each item contains at least: kind, line_no, message, record_id (may be None).
        total_rows: Number of non-blank data rows observed (excludes header).
        kept_rows: Number of records produced (len(records)).
    """

    kind: str
    success: bool
    records: list[Any] = field(default_factory=list)
    issues: list[dict[str, Any]] = field(default_factory=list)
    total_rows: int = 0
    kept_rows: int = 0
