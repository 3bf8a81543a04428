"""
@brief
Pydantic data models for the Data Alchemist project.

@details
Defines the canonical record types exchanged between ingestion, validation
and export:
    - Client, Worker, Task: one row of the corresponding upload sheet
    - ValidationError: one diagnostic finding produced by the validator
    - Rule, PriorityWeights: allocation settings carried into the export
    - Config: runtime configuration (from config.yaml)

Every field accepts both its snake_case name and the column name used in the
upload sheets (e.g. `client_id` or `ClientID`). Entity fields are typed
loosely where ingestion may hand over a value the validator has to judge
(non-numeric slots, attribute text that is not JSON).
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

Severity = Literal["error", "warning"]
EntityKind = Literal["client", "worker", "task"]
RuleType = Literal["coRun", "slotRestriction", "loadLimit", "phaseWindow", "precedence"]


class _StrictBaseModel(BaseModel):
    """
    @brief
    Base model enforcing strict defaults for configuration and data contracts.

    @details
    Forbids unknown fields and allows population by either field name or alias.
    """

    model_config = {
        "extra": "forbid",  # Reject unknown fields
        "populate_by_name": True,  # Allow population by field name
        "use_enum_values": True,
    }


class Client(_StrictBaseModel):
    """
    @brief
    Represents one row of the clients sheet.

    @params
        client_id : str
            Identifier, expected unique across clients.
        priority_level : int | None
            Expected within 1..5.
        requested_task_ids : list[str]
            Each entry should name an existing task.
        attributes_json : mapping, list, text or None
            Free-form attributes; text must parse as JSON.
    """

    client_id: str = Field("", alias="ClientID", description="Unique identifier")
    client_name: str = Field("", alias="ClientName", description="Display name")
    priority_level: int | None = Field(None, alias="PriorityLevel", description="Priority 1..5")
    requested_task_ids: list[str] = Field(
        default_factory=list, alias="RequestedTaskIDs", description="Requested task ids"
    )
    group_tag: str | None = Field(None, alias="GroupTag", description="Client group")
    attributes_json: dict[str, Any] | list[Any] | str | None = Field(
        None, alias="AttributesJSON", description="Free-form attributes"
    )


class Worker(_StrictBaseModel):
    """
    @brief
    Represents one row of the workers sheet.

    @details
    `available_slots` is normally a list of phase numbers. Ingestion keeps
    tokens it could not read as numbers (and whole cells it could not split)
    so that the validator can report them.
    """

    worker_id: str = Field("", alias="WorkerID", description="Unique identifier")
    worker_name: str = Field("", alias="WorkerName", description="Display name")
    skills: list[str] = Field(default_factory=list, alias="Skills", description="Skill labels")
    available_slots: list[int | float | str] | str | None = Field(
        default_factory=list, alias="AvailableSlots", description="Available phase numbers"
    )
    max_load_per_phase: int | None = Field(
        None, alias="MaxLoadPerPhase", description="Max concurrent load per phase"
    )
    worker_group: str | None = Field(None, alias="WorkerGroup", description="Worker group")
    qualification_level: int = Field(1, alias="QualificationLevel", description="Qualification")


class Task(_StrictBaseModel):
    """
    @brief
    Represents one row of the tasks sheet.
    """

    task_id: str = Field("", alias="TaskID", description="Unique identifier")
    task_name: str = Field("", alias="TaskName", description="Display name")
    category: str | None = Field(None, alias="Category", description="Task category")
    duration: int | None = Field(None, alias="Duration", description="Duration in phases (>= 1)")
    required_skills: list[str] = Field(
        default_factory=list, alias="RequiredSkills", description="Required skill labels"
    )
    preferred_phases: list[int] = Field(
        default_factory=list, alias="PreferredPhases", description="Preferred phase numbers"
    )
    max_concurrent: int | None = Field(
        None, alias="MaxConcurrent", description="Max concurrent assignments"
    )


class ValidationError(_StrictBaseModel):
    """
    @brief
    One diagnostic finding produced by the validator.

    @details
    Dumping with `by_alias=True` yields the shape rendered by the dashboard
    (`type`, `entityId`). Findings of severity "error" block export,
    warnings are advisory.
    """

    id: str = Field(..., description="Identifier, unique within one validation run")
    severity: Severity = Field(..., alias="type", description="error | warning")
    entity: EntityKind = Field(..., description="Kind of the offending record")
    entity_id: str = Field(..., alias="entityId", description="Id of the offending record")
    field: str | None = Field(None, description="Offending field (column name)")
    message: str = Field(..., description="Human-readable description")
    suggestion: str | None = Field(None, description="Suggested remediation")


class Rule(_StrictBaseModel):
    """
    @brief
    A user-defined allocation rule, exported with the rules config.
    """

    id: str = Field(..., description="Rule identifier")
    type: RuleType = Field(..., description="Rule kind")
    name: str = Field(..., description="Display name")
    description: str = Field("", description="Free-text description")
    parameters: dict[str, Any] = Field(default_factory=dict, description="Rule parameters")
    active: bool = Field(True, description="Whether the rule is enabled")


class PriorityWeights(_StrictBaseModel):
    """
    @brief
    Relative weights of allocation criteria (0..100 each).
    """

    priority_level: int = Field(50, ge=0, le=100, alias="priorityLevel")
    request_fulfillment: int = Field(50, ge=0, le=100, alias="requestFulfillment")
    fairness: int = Field(50, ge=0, le=100, alias="fairness")
    workload_balance: int = Field(50, ge=0, le=100, alias="workloadBalance")
    skill_matching: int = Field(50, ge=0, le=100, alias="skillMatching")


# ------------------------------------------------------------
# Runtime configuration
# ------------------------------------------------------------
class ValidationConfig(_StrictBaseModel):
    """
    @brief
    Controls behavior of the validation step.

    @details
    `score_penalty` is the number of quality-score points subtracted per finding.
    """

    write_report: bool = True
    score_penalty: int = Field(5, ge=0, le=100)
    fail_on_warnings: bool = False


class ExportConfig(_StrictBaseModel):
    """
    @brief
    Controls the export step of the pipeline.
    """

    enabled: bool = True
    allow_errors: bool = Field(False, description="Export even when error findings exist")
    include_report: bool = Field(True, description="Add a 'Validation Report' sheet")
    include_rules: bool = Field(True, description="Write the rules-config JSON")


class Config(_StrictBaseModel):
    """
    @brief
    Represents the full runtime configuration loaded from config.yaml.
    """

    output_dir: str | None = "data/output"
    validation: ValidationConfig = Field(default_factory=ValidationConfig.model_construct)
    export: ExportConfig = Field(default_factory=ExportConfig.model_construct)
    priority_weights: PriorityWeights = Field(default_factory=PriorityWeights.model_construct)
    rules: list[Rule] = Field(default_factory=list)


__all__ = [
    "Client",
    "Worker",
    "Task",
    "ValidationError",
    "Rule",
    "PriorityWeights",
    "Config",
    "ValidationConfig",
    "ExportConfig",
    "Severity",
    "EntityKind",
]
