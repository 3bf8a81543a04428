from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from alchemist.errors import DataError
from alchemist.export.writers import write_json
from alchemist.schemas.models import (
    Client,
    EntityKind,
    Severity,
    Task,
    ValidationError,
    Worker,
)
from alchemist.validator.scoring import (
    DEFAULT_PENALTY,
    count_by_severity,
    has_blocking_errors,
    quality_score,
)

logger = logging.getLogger(__name__)

UNKNOWN_ID = "unknown"

# (attribute, column) pairs that must carry a value
REQUIRED_CLIENT_FIELDS = (
    ("client_id", "ClientID"),
    ("client_name", "ClientName"),
    ("priority_level", "PriorityLevel"),
)
REQUIRED_WORKER_FIELDS = (
    ("worker_id", "WorkerID"),
    ("worker_name", "WorkerName"),
    ("skills", "Skills"),
    ("available_slots", "AvailableSlots"),
)
REQUIRED_TASK_FIELDS = (
    ("task_id", "TaskID"),
    ("task_name", "TaskName"),
    ("duration", "Duration"),
    ("required_skills", "RequiredSkills"),
)

PRIORITY_MIN, PRIORITY_MAX = 1, 5
DURATION_MIN = 1

_M = TypeVar("_M", bound=BaseModel)


# ----------------------------
# AUXILIARY FUNCTIONS
# ----------------------------
def _is_missing(value: Any) -> bool:
    """
    @brief
    Decide whether a required field is effectively empty.

    @details
    None, blank strings and empty collections count as missing.
    Numbers (including zero) are present; their range is judged separately.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not (isinstance(value, float) and math.isnan(value))


def _entity_id(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return UNKNOWN_ID


def _id_set(values: Sequence[Any]) -> set[str]:
    """Set of non-empty string identifiers."""
    return {v for v in values if isinstance(v, str) and v}


def _skill_union(workers: Sequence[Worker]) -> set[str]:
    """Union of skills declared by all workers with a proper skills list."""
    skills: set[str] = set()
    for w in workers:
        if isinstance(w.skills, (list, tuple)):
            skills.update(s for s in w.skills if isinstance(s, str))
    return skills


# ----------------------------
# VALIDATOR CLASS (instance core)
# ----------------------------
class Validator:
    """
    @brief
    Rule-based consistency checker over clients, workers and tasks.

    @details
    Runs eight independent passes and accumulates findings:
      1. RequiredFields  - required values present (error)
      2. DuplicateIds    - repeated identifiers, later occurrences (error)
      3. MalformedLists  - worker slots shape and elements (error)
      4. Ranges          - priority 1..5, duration >= 1 (error)
      5. AttributesJSON  - client attribute text parses as JSON (error)
      6. References      - requested tasks exist (error)
      7. SkillCoverage   - required skills exist in the workforce (warning)
      8. WorkerOverload  - slot count below max load (warning)

    Business-rule violations never raise; they are returned as findings.
    Passes read only the input collections, so their order affects only
    the order of the findings.
    """

    def __init__(
        self,
        clients: Sequence[Client],
        workers: Sequence[Worker],
        tasks: Sequence[Task],
    ) -> None:
        self.clients = list(clients)
        self.workers = list(workers)
        self.tasks = list(tasks)

        self.findings: list[ValidationError] = []
        self.checks: dict[str, bool] = {}
        self._issued_ids: set[str] = set()

    # ---------- Public lifecycle API ----------
    def run_all_checks(self) -> list[ValidationError]:
        """
        @brief
        Execute the full validation sequence.

        @returns
            The accumulated findings, in pass emission order.
        """
        passes = (
            ("RequiredFields", self._check_required_fields),
            ("DuplicateIds", self._check_duplicate_ids),
            ("MalformedLists", self._check_malformed_lists),
            ("Ranges", self._check_ranges),
            ("AttributesJSON", self._check_attributes_json),
            ("References", self._check_references),
            ("SkillCoverage", self._check_skill_coverage),
            ("WorkerOverload", self._check_worker_overload),
        )

        for name, check in passes:
            before = len(self.findings)
            check()
            found = len(self.findings) - before
            self.checks[name] = found == 0
            logger.debug("Validator pass %s: %d finding(s)", name, found)

        counts = count_by_severity(self.findings)
        logger.info(
            "Validation finished: %d error(s), %d warning(s) over %d client(s), %d worker(s), %d task(s)",
            counts["errors"],
            counts["warnings"],
            len(self.clients),
            len(self.workers),
            len(self.tasks),
        )
        return self.findings

    def build_report(self, penalty: int = DEFAULT_PENALTY) -> dict[str, Any]:
        """
        @brief
        Assemble validation results into a serializable dictionary.

        @details
        `valid` is False as soon as one error-severity finding exists;
        warnings never invalidate the dataset. Findings are dumped by alias
        (`type`, `entityId`) to match the dashboard shape.
        """
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "valid": not has_blocking_errors(self.findings),
            "counts": count_by_severity(self.findings),
            "quality_score": quality_score(self.findings, penalty=penalty),
            "checks": dict(self.checks),
            "findings": [f.model_dump(by_alias=True) for f in self.findings],
        }

    def save_report(
        self,
        report: dict[str, Any],
        out_dir: Path | None = None,
        filename: str = "validation_report.json",
    ) -> Path:
        """
        Writes the report atomically to disk.

        Args:
            report: Validation report dictionary.
            out_dir: Target directory (defaults to 'data/output').
            filename: Target filename (default 'validation_report.json').

        Returns:
            Path to the written JSON file.
        """
        target_dir = out_dir or Path("data/output")
        path = write_json(report, Path(target_dir) / filename)
        logger.info("Validation report saved: %s", path)
        return path

    # ---------- Checks ----------
    def _check_required_fields(self) -> None:
        """
        @brief
        Require identifying and core fields on every record (pass 1).

        @details
        One finding per missing field, so a record missing two fields
        yields two findings.
        """
        groups: tuple[tuple[EntityKind, list[Any], str, tuple[tuple[str, str], ...]], ...] = (
            ("client", self.clients, "client_id", REQUIRED_CLIENT_FIELDS),
            ("worker", self.workers, "worker_id", REQUIRED_WORKER_FIELDS),
            ("task", self.tasks, "task_id", REQUIRED_TASK_FIELDS),
        )
        for entity, records, id_attr, fields in groups:
            for record in records:
                rid = _entity_id(getattr(record, id_attr))
                for attr, column in fields:
                    if _is_missing(getattr(record, attr)):
                        self._add(
                            kind="missing",
                            severity="error",
                            entity=entity,
                            entity_id=rid,
                            field=column,
                            message=f"Missing required field: {column}",
                            suggestion=f"Add a value for {column}",
                            detail=column,
                        )

    def _check_duplicate_ids(self) -> None:
        """
        @brief
        Flag repeated identifiers within each collection (pass 2).

        @details
        The first occurrence of an id is kept; every later occurrence is
        reported. Empty ids are left to the required-field pass.
        """
        groups: tuple[tuple[EntityKind, list[Any], str, str, str], ...] = (
            ("client", self.clients, "client_id", "ClientID", "Client"),
            ("worker", self.workers, "worker_id", "WorkerID", "Worker"),
            ("task", self.tasks, "task_id", "TaskID", "Task"),
        )
        for entity, records, id_attr, column, label in groups:
            seen: set[str] = set()
            for record in records:
                rid = getattr(record, id_attr)
                if _is_missing(rid):
                    continue
                if rid in seen:
                    self._add(
                        kind=f"duplicate-{entity}",
                        severity="error",
                        entity=entity,
                        entity_id=rid,
                        field=column,
                        message=f"Duplicate {label} ID: {rid}",
                        suggestion=f"Ensure all {label} IDs are unique",
                    )
                seen.add(rid)

    def _check_malformed_lists(self) -> None:
        """
        @brief
        Validate the shape of worker slot lists (pass 3).

        @details
        A value that is not a list yields one shape finding; otherwise every
        non-numeric element yields its own finding.
        """
        for w in self.workers:
            rid = _entity_id(w.worker_id)
            slots = w.available_slots
            if not isinstance(slots, (list, tuple)):
                self._add(
                    kind="malformed-slots",
                    severity="error",
                    entity="worker",
                    entity_id=rid,
                    field="AvailableSlots",
                    message="AvailableSlots must be an array of numbers",
                    suggestion="Format as [1,2,3] or use comma-separated values",
                )
                continue

            for slot in slots:
                if not _is_number(slot):
                    self._add(
                        kind="invalid-slot",
                        severity="error",
                        entity="worker",
                        entity_id=rid,
                        field="AvailableSlots",
                        message=f"Invalid slot value: {slot} (must be numeric)",
                        suggestion="Use only numeric values for available slots",
                        detail=str(slot),
                    )

    def _check_ranges(self) -> None:
        """Priority must lie in 1..5 and duration must be at least 1 (pass 4)."""
        for c in self.clients:
            level = c.priority_level
            if _is_number(level) and not (PRIORITY_MIN <= level <= PRIORITY_MAX):
                self._add(
                    kind="invalid-priority",
                    severity="error",
                    entity="client",
                    entity_id=_entity_id(c.client_id),
                    field="PriorityLevel",
                    message=f"Priority level {level} is out of range ({PRIORITY_MIN}-{PRIORITY_MAX})",
                    suggestion=f"Set priority level between {PRIORITY_MIN} and {PRIORITY_MAX}",
                )

        for t in self.tasks:
            duration = t.duration
            if _is_number(duration) and duration < DURATION_MIN:
                self._add(
                    kind="invalid-duration",
                    severity="error",
                    entity="task",
                    entity_id=_entity_id(t.task_id),
                    field="Duration",
                    message=f"Duration {duration} must be at least {DURATION_MIN}",
                    suggestion=f"Set duration to {DURATION_MIN} or higher",
                )

    def _check_attributes_json(self) -> None:
        """
        @brief
        Client attribute text must parse as JSON (pass 5).

        @details
        Already-structured attributes (mapping or list) are accepted as is.
        """
        for c in self.clients:
            raw = c.attributes_json
            if not isinstance(raw, str) or not raw.strip():
                continue
            try:
                json.loads(raw)
            except json.JSONDecodeError:
                self._add(
                    kind="invalid-json",
                    severity="error",
                    entity="client",
                    entity_id=_entity_id(c.client_id),
                    field="AttributesJSON",
                    message="Invalid JSON format in AttributesJSON",
                    suggestion="Fix JSON syntax or provide valid JSON object",
                )

    def _check_references(self) -> None:
        """
        @brief
        Every requested task id must name an existing task (pass 6).

        @details
        One finding per dangling reference, attributed to the requesting client.
        """
        task_ids = _id_set([t.task_id for t in self.tasks])

        for c in self.clients:
            requested = c.requested_task_ids
            if not isinstance(requested, (list, tuple)):
                continue
            for task_id in requested:
                if task_id not in task_ids:
                    self._add(
                        kind="unknown-task",
                        severity="error",
                        entity="client",
                        entity_id=_entity_id(c.client_id),
                        field="RequestedTaskIDs",
                        message=f"Referenced task {task_id} does not exist",
                        suggestion="Remove invalid task reference or add the missing task",
                        detail=str(task_id),
                    )

    def _check_skill_coverage(self) -> None:
        """
        @brief
        Each required skill must be held by at least one worker (pass 7).

        @details
        Aggregate check: skills are matched against the union of all worker
        skills, not against a single worker. Gaps are warnings.
        """
        available = _skill_union(self.workers)

        for t in self.tasks:
            required = t.required_skills
            if not isinstance(required, (list, tuple)):
                continue
            for skill in required:
                if skill not in available:
                    self._add(
                        kind="missing-skill",
                        severity="warning",
                        entity="task",
                        entity_id=_entity_id(t.task_id),
                        field="RequiredSkills",
                        message=f"No worker has required skill: {skill}",
                        suggestion="Add a worker with this skill or remove the skill requirement",
                        detail=str(skill),
                    )

    def _check_worker_overload(self) -> None:
        """Warn when a worker's slot count is below its max load per phase (pass 8)."""
        for w in self.workers:
            slots = w.available_slots
            max_load = w.max_load_per_phase
            if not isinstance(slots, (list, tuple)):
                continue
            if not _is_number(max_load) or not max_load:
                continue

            total_slots = len(slots)
            if total_slots < max_load:
                self._add(
                    kind="overload",
                    severity="warning",
                    entity="worker",
                    entity_id=_entity_id(w.worker_id),
                    field="MaxLoadPerPhase",
                    message=f"Max load ({max_load}) exceeds available slots ({total_slots})",
                    suggestion="Reduce max load per phase or increase available slots",
                )

    # ---------- Utilities ----------
    def _unique_id(self, base: str) -> str:
        """
        Returns `base` if no finding of this run carries it yet, otherwise the
        first free `base-2`, `base-3`, ... Suffixed ids are checked against
        every id issued so far, including natural ids that end in `-<n>`.
        """
        candidate, n = base, 1
        while candidate in self._issued_ids:
            n += 1
            candidate = f"{base}-{n}"
        self._issued_ids.add(candidate)
        return candidate

    def _add(
        self,
        kind: str,
        severity: Severity,
        entity: EntityKind,
        entity_id: str,
        field: str | None,
        message: str,
        suggestion: str | None = None,
        detail: str | None = None,
    ) -> None:
        """
        @brief
        Append one finding to the accumulator.

        @params
            kind : str
                Check kind, first segment of the finding id.
            detail : str | None
                Optional last id segment (field name, slot value, task id, skill).
        """
        base = f"{kind}-{entity_id}" + (f"-{detail}" if detail else "")
        self.findings.append(
            ValidationError(
                id=self._unique_id(base),
                severity=severity,
                entity=entity,
                entity_id=entity_id,
                field=field,
                message=message,
                suggestion=suggestion,
            )
        )


# ----------------------------
# THIN FACADES
# ----------------------------
def _coerce_records(items: Any, model: type[_M], name: str) -> list[_M]:
    """
    @brief
    Accept a sequence of model instances or mappings and return model instances.

    @raises
        DataError
            If `items` is not a sequence, or an element is neither a model
            instance nor a mapping accepted by the model.
    """
    if items is None or isinstance(items, (str, bytes, Mapping)) or not isinstance(items, Sequence):
        raise DataError(
            f"{name} must be a sequence of records, got {type(items).__name__}",
            source="validator.validate_data",
            suggested_action=f"Pass a list of {model.__name__} records (an empty list is fine).",
        )

    out: list[_M] = []
    for idx, item in enumerate(items):
        if isinstance(item, model):
            out.append(item)
        elif isinstance(item, Mapping):
            try:
                out.append(model.model_validate(item))
            except SchemaError as e:
                raise DataError(
                    f"{name}[{idx}] does not match the {model.__name__} shape: {e}",
                    source="validator.validate_data",
                    suggested_action="Normalize rows with alchemist.dataloader before validating.",
                ) from e
        else:
            raise DataError(
                f"{name}[{idx}] has unsupported type {type(item).__name__}",
                source="validator.validate_data",
                suggested_action=f"Pass {model.__name__} instances or mappings.",
            )
    return out


def validate_data(clients: Any, workers: Any, tasks: Any) -> list[ValidationError]:
    """
    @brief
    Validate the three collections and return the findings.

    @details
    Pure function: no I/O, a fresh list on every call. Accepts model
    instances or mappings (field names or sheet column names).

    @raises
        DataError
            Only for malformed arguments (not a sequence, unreadable records).
    """
    validator = Validator(
        _coerce_records(clients, Client, "clients"),
        _coerce_records(workers, Worker, "workers"),
        _coerce_records(tasks, Task, "tasks"),
    )
    return validator.run_all_checks()


def validate_dataset(
    clients: Any,
    workers: Any,
    tasks: Any,
    *,
    write_report: bool = False,
    out_dir: Path | None = None,
    filename: str = "validation_report.json",
    penalty: int = DEFAULT_PENALTY,
) -> dict[str, Any]:
    """
    @brief
    Run the validator and build the structured report.

    @details
    Optionally persists the report as JSON; always returns it.
    """
    # (1) Initialize validator with normalized records
    validator = Validator(
        _coerce_records(clients, Client, "clients"),
        _coerce_records(workers, Worker, "workers"),
        _coerce_records(tasks, Task, "tasks"),
    )

    # (2) Execute all passes and build report
    validator.run_all_checks()
    report = validator.build_report(penalty=penalty)

    # (3) Optionally persist the report to disk
    if write_report:
        validator.save_report(report, out_dir=out_dir, filename=filename)

    return report
