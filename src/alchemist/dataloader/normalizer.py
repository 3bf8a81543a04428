"""
@brief
Row normalization: uploaded sheet rows → canonical record mappings.

@details
Uploaded sheets name their columns inconsistently (`ClientID`, `client_id`,
`Client ID`) and store list values as delimited text. This module resolves
headers against a per-kind alias table and converts each cell according to
its canonical column type, so the validator only ever sees canonical shapes.

Conversion rules:
    - number lists (slots, phases): JSON arrays (single quotes tolerated),
      `a-b` ranges or comma-separated values
    - string lists (skills, task ids): comma-separated values, blanks dropped
    - integers: int, integral float or numeric text; anything else → None
    - JSON attributes: parsed when valid, otherwise kept as text
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping
from typing import Any

KINDS = ("clients", "workers", "tasks")

CANONICAL_COLUMNS: dict[str, tuple[str, ...]] = {
    "clients": (
        "ClientID",
        "ClientName",
        "PriorityLevel",
        "RequestedTaskIDs",
        "GroupTag",
        "AttributesJSON",
    ),
    "workers": (
        "WorkerID",
        "WorkerName",
        "Skills",
        "AvailableSlots",
        "MaxLoadPerPhase",
        "WorkerGroup",
        "QualificationLevel",
    ),
    "tasks": (
        "TaskID",
        "TaskName",
        "Category",
        "Duration",
        "RequiredSkills",
        "PreferredPhases",
        "MaxConcurrent",
    ),
}

ID_COLUMN = {"clients": "ClientID", "workers": "WorkerID", "tasks": "TaskID"}

# Extra spellings beyond case/separator variants of the canonical name
_EXTRA_ALIASES: dict[str, dict[str, str]] = {
    "clients": {
        "id": "ClientID",
        "name": "ClientName",
        "priority": "PriorityLevel",
        "requestedtasks": "RequestedTaskIDs",
        "requestedtaskid": "RequestedTaskIDs",
        "tasks": "RequestedTaskIDs",
        "group": "GroupTag",
        "attributes": "AttributesJSON",
    },
    "workers": {
        "id": "WorkerID",
        "name": "WorkerName",
        "skill": "Skills",
        "slots": "AvailableSlots",
        "maxload": "MaxLoadPerPhase",
        "group": "WorkerGroup",
        "qualification": "QualificationLevel",
    },
    "tasks": {
        "id": "TaskID",
        "name": "TaskName",
        "skills": "RequiredSkills",
        "phases": "PreferredPhases",
        "maxconcurrency": "MaxConcurrent",
    },
}

NUMBER_LIST_COLUMNS = frozenset({"AvailableSlots", "PreferredPhases"})
STRING_LIST_COLUMNS = frozenset({"Skills", "RequiredSkills", "RequestedTaskIDs"})
INTEGER_COLUMNS = frozenset(
    {"PriorityLevel", "MaxLoadPerPhase", "QualificationLevel", "Duration", "MaxConcurrent"}
)
JSON_COLUMNS = frozenset({"AttributesJSON"})
OPTIONAL_TEXT_COLUMNS = frozenset({"GroupTag", "WorkerGroup", "Category"})

# Columns whose list may only hold integers (non-numeric tokens are dropped)
STRICT_NUMBER_LIST_COLUMNS = frozenset({"PreferredPhases"})

_RANGE_RE = re.compile(r"^\s*(-?\d+)\s*-\s*(-?\d+)\s*$")
_KEY_RE = re.compile(r"[^a-z0-9]")


def _key(name: str) -> str:
    return _KEY_RE.sub("", name.lower())


def _alias_table(kind: str) -> dict[str, str]:
    table = {_key(c): c for c in CANONICAL_COLUMNS[kind]}
    table.update(_EXTRA_ALIASES[kind])
    return table


_ALIASES: dict[str, dict[str, str]] = {kind: _alias_table(kind) for kind in KINDS}


def normalize_header(name: Any, kind: str) -> str | None:
    """
    @brief
    Resolve an uploaded column name to its canonical column.

    @returns
        Canonical column name, or None if the column is not recognised.
    """
    if not isinstance(name, str):
        return None
    return _ALIASES[kind].get(_key(name.strip()))


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def _parse_number(token: Any) -> int | float | None:
    """Reads int or float from a token; integral floats become int."""
    if isinstance(token, bool):
        return None
    if isinstance(token, int):
        return token
    if isinstance(token, float):
        if math.isnan(token):
            return None
        return int(token) if token.is_integer() else token
    if isinstance(token, str):
        text = token.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        if math.isnan(number):
            return None
        return int(number) if number.is_integer() else number
    return None


def to_number_list(value: Any) -> list[int | float | str] | str:
    """
    @brief
    Convert a cell into a list of numbers.

    @details
    Tokens that are not numbers are kept as text so that the validator can
    report them. A bracketed cell that is not valid JSON is returned unchanged.
    """
    if _is_blank(value):
        return []
    if isinstance(value, (list, tuple)):
        items = list(value)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        items = [value]
    else:
        text = str(value).strip()
        if text.startswith("["):
            try:
                parsed = json.loads(text.replace("'", '"'))
            except json.JSONDecodeError:
                return text
            if not isinstance(parsed, list):
                return text
            items = parsed
        elif m := _RANGE_RE.match(text):
            lo, hi = int(m.group(1)), int(m.group(2))
            return list(range(lo, hi + 1)) if lo <= hi else list(range(lo, hi - 1, -1))
        else:
            items = [t for t in text.split(",") if t.strip()]

    out: list[int | float | str] = []
    for item in items:
        number = _parse_number(item)
        out.append(number if number is not None else str(item).strip())
    return out


def to_string_list(value: Any) -> list[str]:
    """Split a delimited cell into trimmed, non-empty strings."""
    if _is_blank(value):
        return []
    if isinstance(value, (list, tuple)):
        items = [str(v) for v in value]
    else:
        text = str(value).strip()
        items = None
        if text.startswith("["):
            try:
                parsed = json.loads(text.replace("'", '"'))
            except json.JSONDecodeError:
                parsed = None
            if isinstance(parsed, list):
                items = [str(v) for v in parsed]
        if items is None:
            items = text.split(",")
    return [s.strip() for s in items if s.strip()]


def to_text(value: Any) -> str:
    if _is_blank(value):
        return ""
    number = _parse_number(value) if isinstance(value, float) else None
    return str(number if number is not None else value).strip()


def normalize_row(row: Mapping[str, Any], kind: str) -> tuple[dict[str, Any], list[str]]:
    """
    @brief
    Normalize one uploaded row into a canonical record mapping.

    @details
    Unrecognised columns are dropped. When two uploaded columns resolve to
    the same canonical column, the first non-blank one wins.

    @params
        row : Mapping[str, Any]
            Raw row keyed by uploaded column names.
        kind : str
            One of "clients", "workers", "tasks".

    @returns
        (record, problems): record keyed by canonical column names, and
        human-readable descriptions of values that could not be converted.
    """
    if kind not in CANONICAL_COLUMNS:
        raise ValueError(f"Unknown entity kind: {kind!r}")

    # (1) Resolve headers, first non-blank value wins
    raw: dict[str, Any] = {}
    for name, value in row.items():
        column = normalize_header(name, kind)
        if column is None:
            continue
        if column not in raw or (_is_blank(raw[column]) and not _is_blank(value)):
            raw[column] = value

    # (2) Convert each cell by canonical column type
    record: dict[str, Any] = {}
    problems: list[str] = []
    for column, value in raw.items():
        if column in NUMBER_LIST_COLUMNS:
            numbers = to_number_list(value)
            if column in STRICT_NUMBER_LIST_COLUMNS:
                kept = [n for n in numbers if isinstance(n, int)] if isinstance(numbers, list) else []
                if isinstance(numbers, str) or len(kept) != len(numbers):
                    problems.append(f"{column}: non-integer values dropped from {value!r}")
                numbers = kept
            record[column] = numbers
        elif column in STRING_LIST_COLUMNS:
            record[column] = to_string_list(value)
        elif column in INTEGER_COLUMNS:
            if _is_blank(value):
                continue
            number = _parse_number(value)
            if isinstance(number, int):
                record[column] = number
            else:
                problems.append(f"{column}: expected an integer, got {value!r}")
        elif column in JSON_COLUMNS:
            if _is_blank(value):
                continue
            if isinstance(value, (dict, list)):
                record[column] = value
                continue
            text = str(value).strip()
            try:
                parsed = json.loads(text)
            except json.JSONDecodeError:
                parsed = None
            record[column] = parsed if isinstance(parsed, (dict, list)) else text
        elif column in OPTIONAL_TEXT_COLUMNS:
            text = to_text(value)
            record[column] = text or None
        else:
            record[column] = to_text(value)

    return record, problems


__all__ = [
    "KINDS",
    "CANONICAL_COLUMNS",
    "ID_COLUMN",
    "normalize_header",
    "normalize_row",
    "to_number_list",
    "to_string_list",
]
