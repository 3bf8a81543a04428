from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from alchemist.errors import ConfigError
from alchemist.schemas.models import Config

logger = logging.getLogger(__name__)


class ConfigLoader:
    """
    @brief
    Loader responsible for reading and validating runtime configuration.

    @details
    Reads config.yaml, checks that it is a non-empty mapping, and validates it
    against the pydantic `Config` schema:
        - validation: write_report, score_penalty (0..100), fail_on_warnings
        - export: enabled, allow_errors, include_report, include_rules
        - priority_weights: five criteria, each 0..100 (default 50)
        - rules: typed allocation rules with distinct ids
    Omitted sections fall back to defaults; unknown keys are rejected. Every
    failure mode is reported as a `ConfigError`.
    """

    def load(self, path: Path) -> Config:
        """
        @brief
        Load and validate configuration from YAML file.

        @raises
            ConfigError
                Raised if file is missing, malformed, or fails schema validation.
        """
        data = self._read_yaml(path)
        return self._validate(data)

    def load_or_default(self, path: Path | None) -> Config:
        """Load `path` when given, otherwise return the built-in defaults."""
        if path is None:
            return Config()
        return self.load(path)

    def _read_yaml(self, path: Path) -> dict[str, Any]:
        """
        @brief
        Read YAML file into Python mapping with strict checks.

        @raises
            ConfigError
                Raised on invalid path type, missing file, wrong extension,
                I/O error, syntax error, empty file, or non-mapping structure.
        """
        # (1) Validate path type and existence
        if not isinstance(path, Path):
            raise ConfigError(
                message=f"Invalid path type: expected pathlib.Path, got {type(path).__name__}",
                source="ConfigLoader._read_yaml",
                suggested_action="Pass a pathlib.Path object pointing to config.yaml.",
            )

        if not path.exists():
            raise ConfigError(
                message=f"Configuration file not found: {path}",
                source="ConfigLoader._read_yaml",
                suggested_action="Ensure config.yaml exists and the path is correct.",
            )

        # (2) Enforce correct file extension
        if path.suffix.lower() not in {".yaml", ".yml"}:
            raise ConfigError(
                message=f"Invalid configuration file extension: {path.suffix}",
                source="ConfigLoader._read_yaml",
                suggested_action="Use .yaml or .yml extension for configuration files.",
            )

        # (3) Read and parse YAML content
        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(
                message=f"YAML parsing failed: {e}",
                source="ConfigLoader._read_yaml",
                suggested_action="Fix YAML syntax/indentation.",
            ) from e
        except OSError as e:
            raise ConfigError(
                message=f"Unable to read configuration file: {e}",
                source="ConfigLoader._read_yaml",
                suggested_action="Check file permissions and path accessibility.",
            ) from e

        # (4) Validate structural integrity of parsed data
        if data is None:
            raise ConfigError(
                message="Configuration file is empty.",
                source="ConfigLoader._read_yaml",
                suggested_action="Populate config.yaml or omit --config to use defaults.",
            )

        if not isinstance(data, Mapping):
            raise ConfigError(
                message="Configuration root must be a mapping (key: value pairs).",
                source="ConfigLoader._read_yaml",
                suggested_action="Ensure top-level YAML structure uses key: value mappings.",
            )

        return dict(data)

    def _validate(self, data: dict[str, Any]) -> Config:
        """
        @brief
        Validate the parsed mapping against `Config` and check rule ids.

        @details
        Pydantic errors are flattened into one `section.field: reason` line
        per problem, e.g. `priority_weights.fairness: Input should be less
        than or equal to 100`, so the user sees every bad key at once.
        """
        try:
            cfg = Config.model_validate(data)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in e.errors()
            )
            raise ConfigError(
                message=f"Invalid configuration structure: {problems}",
                source="ConfigLoader._validate",
                suggested_action=(
                    "Check field names, types, and bounds in config.yaml "
                    "(weights are 0..100, score_penalty is 0..100, rule types are "
                    "coRun|slotRestriction|loadLimit|phaseWindow|precedence). "
                    "Unknown keys are forbidden."
                ),
            ) from e

        self._check_rule_ids(cfg)
        logger.info(
            "Config OK: %d rule(s) (%d active), export %s",
            len(cfg.rules),
            sum(1 for r in cfg.rules if r.active),
            "enabled" if cfg.export.enabled else "disabled",
        )
        return cfg

    def _check_rule_ids(self, cfg: Config) -> None:
        """Rule ids key the exported rules config, so each must appear once."""
        seen: set[str] = set()
        repeated = []
        for rule in cfg.rules:
            if rule.id in seen and rule.id not in repeated:
                repeated.append(rule.id)
            seen.add(rule.id)
        if repeated:
            raise ConfigError(
                message=f"Duplicate rule id(s): {', '.join(repeated)}",
                source="ConfigLoader._check_rule_ids",
                suggested_action="Give every entry under `rules:` a distinct id.",
            )


__all__ = ["ConfigLoader"]
