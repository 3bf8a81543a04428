from alchemist.export.writers import atomic_write_text, write_json

__all__ = ["atomic_write_text", "write_json"]
