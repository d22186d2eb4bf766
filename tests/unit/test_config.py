"""Tests for synarb.config loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from synarb.config import AppConfig, _deep_merge, load_config

_REPO_CONFIGS = Path(__file__).resolve().parents[2] / "configs"


class TestLoadConfig:
    """YAML loading and environment overrides."""

    def test_repo_default_yaml(self) -> None:
        config = load_config(config_dir=_REPO_CONFIGS)
        assert config.covariance.min_samples == 50
        assert config.detector.z_score_threshold == 2.5
        assert config.risk.min_correlation == 0.8
        assert [t.correlation for t in config.risk.exposure_tiers] == [0.8, 0.9]
        assert config.pipeline.refit_interval == 50
        assert config.system.log_level == "INFO"

    def test_missing_file_yields_defaults(self, tmp_path: Path) -> None:
        config = load_config(config_dir=tmp_path, config_file="absent.yaml")
        assert config == AppConfig()

    def test_yaml_values(self, tmp_path: Path) -> None:
        (tmp_path / "custom.yaml").write_text(
            "detector:\n"
            "  z_score_threshold: 3.0\n"
            "risk:\n"
            "  bankroll: 20000\n"
        )

        config = load_config(config_dir=tmp_path, config_file="custom.yaml")

        assert config.detector.z_score_threshold == 3.0
        assert config.detector.min_confidence == 0.7
        assert config.risk.bankroll == 20000.0

    def test_empty_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "empty.yaml").write_text("")
        assert load_config(config_dir=tmp_path, config_file="empty.yaml") == AppConfig()

    def test_overrides_merge_over_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "default.yaml").write_text("risk:\n  bankroll: 20000\n  kelly_fraction: 0.25\n")

        config = load_config(config_dir=tmp_path, overrides={"risk": {"bankroll": 5000}})

        assert config.risk.bankroll == 5000.0
        assert config.risk.kelly_fraction == 0.25

    def test_env_overrides_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "default.yaml").write_text("risk:\n  bankroll: 20000\n")
        monkeypatch.setenv("SYNARB_RISK__BANKROLL", "50000")

        config = load_config(config_dir=tmp_path)

        assert config.risk.bankroll == 50000.0

    def test_overlay_file(self, tmp_path: Path) -> None:
        (tmp_path / "default.yaml").write_text(
            "detector:\n  z_score_threshold: 2.5\n  min_confidence: 0.75\n"
        )
        (tmp_path / "nfl.yaml").write_text("detector:\n  z_score_threshold: 3.5\n")

        config = load_config(config_dir=tmp_path, overlay_file="nfl.yaml")

        assert config.detector.z_score_threshold == 3.5
        assert config.detector.min_confidence == 0.75

    def test_missing_overlay_is_skipped(self, tmp_path: Path) -> None:
        (tmp_path / "default.yaml").write_text("risk:\n  bankroll: 20000\n")
        config = load_config(config_dir=tmp_path, overlay_file="absent.yaml")
        assert config.risk.bankroll == 20000.0

    def test_non_mapping_yaml_rejected(self, tmp_path: Path) -> None:
        (tmp_path / "list.yaml").write_text("- 1\n- 2\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config(config_dir=tmp_path, config_file="list.yaml")

    def test_invalid_value_rejected(self, tmp_path: Path) -> None:
        (tmp_path / "bad.yaml").write_text("covariance:\n  min_samples: 1\n")
        with pytest.raises(ValidationError):
            load_config(config_dir=tmp_path, config_file="bad.yaml")


class TestDeepMerge:
    def test_nested(self) -> None:
        base = {"a": {"b": 1, "c": 2}, "d": 3}
        merged = _deep_merge(base, {"a": {"c": 20}, "e": 5})
        assert merged == {"a": {"b": 1, "c": 20}, "d": 3, "e": 5}
        assert base == {"a": {"b": 1, "c": 2}, "d": 3}

    def test_non_dict_replaces(self) -> None:
        assert _deep_merge({"a": {"b": 1}}, {"a": 7}) == {"a": 7}
