from __future__ import annotations

from collections.abc import Iterable

from alchemist.schemas.models import ValidationError

DEFAULT_PENALTY = 5


def count_by_severity(findings: Iterable[ValidationError]) -> dict[str, int]:
    """Counts findings per severity: {"errors": n, "warnings": m, "total": n + m}."""
    errors = warnings = 0
    for f in findings:
        if f.severity == "error":
            errors += 1
        else:
            warnings += 1
    return {"errors": errors, "warnings": warnings, "total": errors + warnings}


def quality_score(findings: Iterable[ValidationError], penalty: int = DEFAULT_PENALTY) -> int:
    """
    @brief
    Data quality score shown next to the findings.

    @details
    100 minus `penalty` points per finding (errors and warnings alike),
    floored at 0.
    """
    total = count_by_severity(findings)["total"]
    return max(0, 100 - penalty * total)


def has_blocking_errors(findings: Iterable[ValidationError]) -> bool:
    """True if any finding has severity "error"; such datasets must not be exported."""
    return any(f.severity == "error" for f in findings)


__all__ = ["DEFAULT_PENALTY", "count_by_severity", "quality_score", "has_blocking_errors"]
