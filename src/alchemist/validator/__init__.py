from alchemist.validator.ai_bridge import findings_from_ai_verdict, validate_with_fallback
from alchemist.validator.scoring import count_by_severity, has_blocking_errors, quality_score
from alchemist.validator.validator import Validator, validate_data, validate_dataset

__all__ = [
    "Validator",
    "validate_data",
    "validate_dataset",
    "quality_score",
    "has_blocking_errors",
    "count_by_severity",
    "findings_from_ai_verdict",
    "validate_with_fallback",
]
