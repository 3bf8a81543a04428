from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from alchemist.dataloader.types import LoadResult
from alchemist.errors import DataError
from alchemist.export.writers import write_json

logger = logging.getLogger(__name__)


class LoadResultHandler:
    """
    @brief
    Handles a LoadResult after sheet parsing and writes diagnostic reports if needed.

    @details
    Conversion issues do not stop the pipeline: the records are always passed
    on to validation, where business-rule findings are produced. When the load
    reported issues, they are written to `load_errors_<kind>.json` inside
    output_dir so the user can see which cells were not understood.
    """

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir

    def handle(self, result: LoadResult) -> list[Any]:
        """
        @brief
        Returns the loaded records, writing an issue report when the load had issues.

        @details
        A failure to write the report is logged and does not raise.
        """
        # (1) Success path: pass records downstream
        if result.success:
            logger.info("PostLoad: %d %s record(s) ready for validation.", result.kept_rows, result.kind)
            return result.records

        # (2) Issue path: write structured report next to the other artifacts
        out_path = self.report_path(result.kind)
        try:
            write_json(result.issues, out_path)
            logger.warning(
                "PostLoad: %s loaded with %d issue(s), %d record(s) kept. See %s",
                result.kind,
                len(result.issues),
                result.kept_rows,
                out_path,
            )
        except DataError as e:
            logger.error("PostLoad: failed to write issue report: %s", e)

        return result.records

    def report_path(self, kind: str) -> Path:
        return self.output_dir / f"load_errors_{kind}.json"
