# scripts/run.py
from __future__ import annotations

import argparse
import logging
import sys
import time
import traceback
from pathlib import Path
from typing import Any

from alchemist.dataloader.config_loader import ConfigLoader
from alchemist.dataloader.entities_loader import EntitiesLoader
from alchemist.dataloader.postload_handler import LoadResultHandler
from alchemist.errors import AlchemistError, ExportError
from alchemist.export.exporter import (
    default_rules_name,
    default_workbook_name,
    export_rules_config,
    export_workbook,
)
from alchemist.validator.validator import Validator


def _setup_logging() -> None:
    """
    @brief
    Initializes global logging configuration.

    @details
    Sets the default logging level to INFO and defines a simple console format.
    """
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="alchemist-run",
        description="Run the Data Alchemist pipeline: load → validate → report → export",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config YAML (default: built-in defaults)",
    )
    parser.add_argument("--clients", type=str, required=True, help="Clients sheet (.csv/.xlsx)")
    parser.add_argument("--workers", type=str, required=True, help="Workers sheet (.csv/.xlsx)")
    parser.add_argument("--tasks", type=str, required=True, help="Tasks sheet (.csv/.xlsx)")
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output directory for artifacts (default: output_dir from config)",
    )
    return parser.parse_args(argv)


def run_pipeline(
    config_path: Path | None,
    clients_path: Path,
    workers_path: Path,
    tasks_path: Path,
    output_dir: Path | None = None,
) -> dict[str, Any]:
    """
    @brief
    Executes the full Data Alchemist pipeline.

    @details
    Performs sequential steps:
    (1) Load configuration and the three sheets.
    (2) Validate the dataset and write the validation report.
    (3) Export workbook and rules config when no error findings block it.
    Raises AlchemistError on controlled failures (config, unreadable input,
    failed export writes). Validation findings never raise.

    @returns
        Dictionary with validity flag, quality score, finding counts
        and artifact paths.
    """
    # (1) Start timer and load configuration
    t0 = time.perf_counter()
    cfg = ConfigLoader().load_or_default(config_path)
    if config_path is not None:
        logging.info("Loaded config: %s", config_path)

    output_dir = output_dir or Path(cfg.output_dir or "data/output")
    output_dir.mkdir(parents=True, exist_ok=True)

    # (2) Load sheets; conversion issues are reported but do not stop the pipeline
    loader = EntitiesLoader()
    handler = LoadResultHandler(output_dir=output_dir)
    loaded: dict[str, list[Any]] = {}
    load_error_paths: dict[str, Path] = {}
    for kind, path in (("clients", clients_path), ("workers", workers_path), ("tasks", tasks_path)):
        logging.info("Loading %s: %s", kind, path)
        result = loader.load(path, kind)
        loaded[kind] = handler.handle(result)
        if not result.success and handler.report_path(kind).exists():
            load_error_paths[kind] = handler.report_path(kind)

    # (3) Validate and persist report
    logging.info("Validating dataset…")
    validator = Validator(loaded["clients"], loaded["workers"], loaded["tasks"])
    findings = validator.run_all_checks()
    report = validator.build_report(penalty=cfg.validation.score_penalty)

    report_path: Path | None = None
    if cfg.validation.write_report:
        report_path = validator.save_report(report, out_dir=output_dir)

    counts = report["counts"]
    valid = bool(report["valid"])
    if cfg.validation.fail_on_warnings and counts["warnings"] > 0:
        valid = False

    logging.info(
        "Quality score %d%%: %d error(s), %d warning(s)",
        report["quality_score"],
        counts["errors"],
        counts["warnings"],
    )

    # (4) Export step
    workbook_path: Path | None = None
    rules_path: Path | None = None
    if not cfg.export.enabled:
        logging.info("Export disabled in config.")
    elif counts["errors"] > 0 and not cfg.export.allow_errors:
        logging.warning("Export skipped: %d validation error(s) must be fixed first.", counts["errors"])
    else:
        workbook_path = export_workbook(
            loaded["clients"],
            loaded["workers"],
            loaded["tasks"],
            findings,
            output_dir / default_workbook_name(),
            include_report=cfg.export.include_report,
            allow_errors=cfg.export.allow_errors,
        )
        if cfg.export.include_rules:
            rules_path = export_rules_config(
                cfg.rules,
                cfg.priority_weights,
                output_dir / default_rules_name(),
                totals={
                    "totalClients": len(loaded["clients"]),
                    "totalWorkers": len(loaded["workers"]),
                    "totalTasks": len(loaded["tasks"]),
                    "validationErrors": counts["total"],
                },
            )

    # (5) Final summary
    logging.info("Pipeline finished in %.2f s", time.perf_counter() - t0)

    return {
        "valid": valid,
        "quality_score": report["quality_score"],
        "counts": counts,
        "artifacts": {
            "validation_report": report_path,
            "workbook": workbook_path,
            "rules_config": rules_path,
            "load_errors": load_error_paths,
        },
    }


def main(argv: list[str] | None = None) -> int:
    """
    @brief
    CLI entry point for the Data Alchemist pipeline.

    @details
    Exit codes:
      0 – dataset valid
      1 – controlled failure (config/data/export) or blocking findings
      2 – unexpected crash
    """
    _setup_logging()
    args = _parse_args(argv)

    try:
        result = run_pipeline(
            Path(args.config) if args.config else None,
            Path(args.clients),
            Path(args.workers),
            Path(args.tasks),
            Path(args.output) if args.output else None,
        )
        arts = result["artifacts"]
        logging.info(
            "Artifacts: %s",
            ", ".join(str(p) for p in (arts["validation_report"], arts["workbook"], arts["rules_config"]) if p)
            or "none",
        )
        return 0 if result["valid"] else 1

    except ExportError as e:
        logging.error("Export failed: %s", e)
        return 1
    except AlchemistError as e:
        logging.error(str(e))
        return 1
    except Exception:
        logging.error("Unexpected error occurred:")
        traceback.print_exc()
        return 2


if __name__ == "__main__":
    sys.exit(main())
