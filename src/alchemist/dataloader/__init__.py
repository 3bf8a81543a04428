from alchemist.dataloader.config_loader import ConfigLoader
from alchemist.dataloader.entities_loader import EntitiesLoader
from alchemist.dataloader.normalizer import normalize_header, normalize_row
from alchemist.dataloader.postload_handler import LoadResultHandler
from alchemist.dataloader.types import LoadResult

__all__ = [
    "ConfigLoader",
    "EntitiesLoader",
    "LoadResult",
    "LoadResultHandler",
    "normalize_header",
    "normalize_row",
]
