from alchemist.schemas.models import (
    Client,
    Config,
    PriorityWeights,
    Rule,
    Task,
    ValidationError,
    Worker,
)

__all__ = ["Client", "Worker", "Task", "ValidationError", "Rule", "PriorityWeights", "Config"]
