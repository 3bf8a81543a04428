from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from alchemist.errors import AlchemistError, DataError

logger = logging.getLogger(__name__)


def atomic_write_text(
    path: Path,
    text: str,
    encoding: str = "utf-8",
    error_cls: type[AlchemistError] = DataError,
) -> Path:
    """
    @brief
    Performs atomic text file writing using a temporary file swap.

    @details
    Writes text to a temporary file within the same directory, then replaces
    the destination in a single filesystem operation. Guarantees consistency
    even if the process crashes mid-write.

    @params
        path : Path
            Target file path to overwrite.
        text : str
            File content to write.
        encoding : str
            Encoding to use when writing the file (default: UTF-8).
        error_cls : type[AlchemistError]
            Exception class raised on failure (DataError by default).

    @returns
        The target path.

    @raises
        error_cls
            On write or rename failure.
    """
    path = Path(path)
    tmp_dir = path.parent
    tmp_path: str | None = None
    try:
        tmp_dir.mkdir(parents=True, exist_ok=True)

        # (1) Create temporary file near the target for atomicity
        fd, tmp_path = tempfile.mkstemp(prefix=path.name + ".", dir=str(tmp_dir))
        with open(fd, "w", encoding=encoding, newline="") as f:
            f.write(text)
        os.replace(tmp_path, path)
    except OSError as e:
        # (2) Clean up temp file on error
        if tmp_path and os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise error_cls(
            f"atomic write failed for {path}: {e}",
            source="writers.atomic_write_text",
            suggested_action="Check output directory permissions and disk space.",
        ) from e
    return path


def write_json(
    payload: Any,
    path: Path,
    error_cls: type[AlchemistError] = DataError,
) -> Path:
    """
    @brief
    Serializes a payload to indented UTF-8 JSON and writes it atomically.

    @raises
        error_cls
            If the payload is not JSON-serializable or the write fails.
    """
    try:
        text = json.dumps(payload, ensure_ascii=False, indent=2)
    except (TypeError, ValueError) as e:
        raise error_cls(
            f"payload not JSON-serializable: {e}",
            source="writers.write_json",
            suggested_action="Ensure values are primitives, lists or dicts.",
        ) from e

    target = atomic_write_text(Path(path), text + "\n", error_cls=error_cls)
    logger.info("Saved %s", target)
    return target
