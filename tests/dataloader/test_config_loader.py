# tests/dataloader/test_config_loader.py

from pathlib import Path

import pytest
import yaml

from alchemist.dataloader.config_loader import ConfigLoader
from alchemist.errors import ConfigError
from alchemist.schemas.models import Config

CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "config.yaml"


@pytest.fixture()
def tmp_yaml(tmp_path: Path) -> Path:
    """Writes a temporary YAML with a partial but valid Config."""
    path = tmp_path / "config.yaml"
    cfg = {
        "output_dir": "out",
        "validation": {"score_penalty": 10},
        "priority_weights": {"fairness": 80},
        "rules": [{"id": "R1", "type": "precedence", "name": "T1 before T2"}],
    }
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(cfg, f)
    return path


def test_load_valid_yaml_returns_config(tmp_yaml: Path):
    """
    @brief
    Verify that valid YAML is correctly parsed and validated.

    @details
    Ensures that a partial configuration produces a fully validated
    `Config` object, with defaults filled in for omitted sections.
    """
    # --- Arrange ---
    loader = ConfigLoader()

    # --- Act ---
    cfg = loader.load(tmp_yaml)

    # --- Assert ---
    assert isinstance(cfg, Config)
    assert cfg.output_dir == "out"
    assert cfg.validation.score_penalty == 10
    assert cfg.validation.write_report is True
    assert cfg.export.allow_errors is False
    assert cfg.priority_weights.fairness == 80
    assert cfg.priority_weights.skill_matching == 50
    assert cfg.rules[0].active is True


def test_bundled_config_loads():
    cfg = ConfigLoader().load(CONFIG_PATH)
    assert [r.id for r in cfg.rules] == ["R1", "R2"]
    assert cfg.rules[1].active is False


def test_load_or_default_without_path():
    cfg = ConfigLoader().load_or_default(None)
    assert cfg.validation.score_penalty == 5
    assert cfg.export.enabled is True
    assert cfg.rules == []


def test_missing_file_raises_configerror(tmp_path: Path):
    """
    @brief
    Missing configuration file triggers ConfigError.
    """
    # --- Arrange ---
    loader = ConfigLoader()
    path = tmp_path / "no_such.yaml"

    # --- Act / Assert ---
    with pytest.raises(ConfigError) as e:
        loader.load(path)

    assert "not found" in str(e.value)


def test_wrong_extension_raises_configerror(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text("{}", encoding="utf-8")

    with pytest.raises(ConfigError) as e:
        ConfigLoader().load(path)

    assert "extension" in str(e.value)


@pytest.mark.parametrize(
    "text, fragment",
    [
        ("", "empty"),
        ("- a\n- b\n", "mapping"),
        ("validation: [unclosed\n", "YAML parsing failed"),
    ],
)
def test_bad_yaml_content_raises(tmp_path: Path, text: str, fragment: str):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")

    with pytest.raises(ConfigError) as e:
        ConfigLoader().load(path)

    assert fragment in str(e.value)


@pytest.mark.parametrize(
    "cfg",
    [
        {"unknown_key": 1},
        {"priority_weights": {"fairness": 150}},
        {"rules": [{"id": "R1", "type": "teleport", "name": "x"}]},
        {"validation": {"score_penalty": -1}},
    ],
)
def test_schema_violations_raise_configerror(tmp_path: Path, cfg: dict):
    """
    @brief
    Schema violations are wrapped in ConfigError.

    @details
    Covers unknown keys, out-of-range weights, unknown rule types and
    negative penalties.
    """
    # --- Arrange ---
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(cfg), encoding="utf-8")

    # --- Act / Assert ---
    with pytest.raises(ConfigError) as e:
        ConfigLoader().load(path)
    assert "Invalid configuration structure" in str(e.value)
    assert e.value.source == "ConfigLoader._validate"


def test_non_path_argument_raises():
    with pytest.raises(ConfigError):
        ConfigLoader().load("config/config.yaml")  # type: ignore[arg-type]


def test_schema_error_names_offending_field(tmp_path: Path):
    # --- Arrange ---
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"priority_weights": {"fairness": 150}}), encoding="utf-8")

    # --- Act / Assert ---
    with pytest.raises(ConfigError) as e:
        ConfigLoader().load(path)
    assert "priority_weights.fairness" in str(e.value)


def test_duplicate_rule_ids_raise_configerror(tmp_path: Path):
    """
    @brief
    Rule ids must be distinct across the `rules` section.
    """
    # --- Arrange ---
    rules = [
        {"id": "R1", "type": "coRun", "name": "a"},
        {"id": "R1", "type": "loadLimit", "name": "b", "active": False},
        {"id": "R2", "type": "precedence", "name": "c"},
    ]
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"rules": rules}), encoding="utf-8")

    # --- Act / Assert ---
    with pytest.raises(ConfigError) as e:
        ConfigLoader().load(path)
    assert "Duplicate rule id(s): R1" in str(e.value)
    assert e.value.source == "ConfigLoader._check_rule_ids"
