from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from alchemist.schemas.models import EntityKind, ValidationError
from alchemist.validator.validator import validate_data

logger = logging.getLogger(__name__)

# Callable wrapping the external AI service: (records, schema) -> {"isValid": bool, "errors": [str]}
AIValidate = Callable[[list[Any], dict[str, Any]], Mapping[str, Any]]

_COLLECTION_OF: dict[str, str] = {"client": "clients", "worker": "workers", "task": "tasks"}

# Required columns described to the AI service, per entity kind
AI_REQUIRED_COLUMNS: dict[str, list[str]] = {
    "client": ["ClientID", "ClientName"],
    "worker": ["WorkerID", "WorkerName", "Skills"],
    "task": ["TaskID", "TaskName", "Duration"],
}


def ai_schema_for(entity: EntityKind) -> dict[str, Any]:
    """Best-effort schema sent along with the records to the AI validator."""
    return {
        "type": "array",
        "items": {"type": "object", "required": list(AI_REQUIRED_COLUMNS[entity])},
    }


def findings_from_ai_verdict(verdict: Mapping[str, Any], entity: EntityKind) -> list[ValidationError]:
    """
    @brief
    Map an AI validation verdict to findings.

    @details
    Each reported error string becomes one error-severity finding. The AI
    service does not attribute errors to records or fields, so entity ids
    and fields are placeholders (`unknown-<n>`, `unknown`).
    """
    messages = verdict.get("errors") or []
    return [
        ValidationError(
            id=f"ai-error-{idx}",
            severity="error",
            entity=entity,
            entity_id=f"unknown-{idx}",
            field="unknown",
            message=str(message),
            suggestion="Fix the data according to the error message",
        )
        for idx, message in enumerate(messages)
    ]


def _is_verdict(value: Any) -> bool:
    return isinstance(value, Mapping) and isinstance(value.get("isValid"), bool)


def validate_with_fallback(
    records: list[Any],
    entity: EntityKind,
    ai_validate: AIValidate | None = None,
) -> list[ValidationError]:
    """
    @brief
    Validate one uploaded collection, consulting the AI validator first.

    @details
    The collection is placed into an otherwise empty dataset. When the AI
    validator reports the data as invalid, its mapped findings are returned.
    In every other case (no AI validator, any exception, a malformed verdict,
    or a valid verdict) the core validator runs and its findings are returned.

    @params
        records : list[Any]
            Records of one entity kind (models or mappings).
        entity : EntityKind
            Kind of the records.
        ai_validate : AIValidate | None
            Injected callable wrapping the external AI service.
    """
    if ai_validate is not None:
        try:
            verdict = ai_validate(records, ai_schema_for(entity))
        except Exception as e:
            logger.warning("AI validation failed, falling back to rule-based validation: %s", e)
        else:
            if not _is_verdict(verdict):
                logger.warning("AI validation returned a malformed verdict; falling back")
            elif not verdict["isValid"]:
                findings = findings_from_ai_verdict(verdict, entity)
                logger.info("AI validation reported %d error(s) for %s", len(findings), entity)
                return findings

    dataset: dict[str, list[Any]] = {"clients": [], "workers": [], "tasks": []}
    dataset[_COLLECTION_OF[entity]] = records
    return validate_data(dataset["clients"], dataset["workers"], dataset["tasks"])


__all__ = ["ai_schema_for", "findings_from_ai_verdict", "validate_with_fallback", "AIValidate"]
