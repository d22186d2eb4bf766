"""Application settings: YAML layers under SYNARB_* environment overrides."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from synarb.models.config import CovarianceConfig, DetectorConfig, RiskConfig


class SystemConfig(BaseModel):
    """Process-level settings."""

    log_level: str = "INFO"
    json_logs: bool = False


class PipelineConfig(BaseModel):
    """Tick processing settings.

    Attributes:
        refit_interval: Tick pairs between inline relationship refits. 0
            disables them; use ``RefitScheduler`` to refit on a timer instead.
        min_confidence: Confidence floor for relationships published to
            the detector.
        min_correlation: |correlation| floor for published relationships.
        max_latency_delta_ms: Maximum timestamp gap between paired ticks.
    """

    refit_interval: int = Field(default=50, ge=0)
    min_confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    min_correlation: float = Field(default=0.7, ge=0.0, le=1.0)
    max_latency_delta_ms: int = Field(default=1000, ge=0)


class AppConfig(BaseSettings):
    """Application configuration.

    Loads from a YAML file, with environment variable overrides
    (``SYNARB_RISK__BANKROLL=50000``).
    """

    model_config = SettingsConfigDict(
        env_prefix="SYNARB_",
        env_nested_delimiter="__",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """Environment variables override YAML (init) values."""
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    system: SystemConfig = Field(default_factory=SystemConfig)
    covariance: CovarianceConfig = Field(default_factory=CovarianceConfig)
    detector: DetectorConfig = Field(default_factory=DetectorConfig)
    risk: RiskConfig = Field(default_factory=RiskConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)


def _read_yaml(path: Path) -> dict[str, Any]:
    """Parse a YAML mapping; an empty file is an empty mapping.

    Raises:
        ValueError: If the top level of the document is not a mapping.
    """
    data = yaml.safe_load(path.read_text())
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = _deep_merge(current, value)
        merged[key] = value
    return merged


def load_config(
    config_dir: str | Path = "configs",
    config_file: str = "default.yaml",
    overlay_file: str | None = None,
    overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """Load configuration from YAML with env var overrides.

    Layers, lowest precedence first: ``config_file``, ``overlay_file``
    (e.g. per-sport thresholds), ``overrides``, then ``SYNARB_*``
    environment variables. Missing files are skipped.

    Args:
        config_dir: Directory holding the YAML files.
        config_file: Base YAML file name.
        overlay_file: Optional YAML file merged over the base file.
        overrides: Values merged over the YAML contents.

    Returns:
        Validated AppConfig instance.
    """
    directory = Path(config_dir)
    raw: dict[str, Any] = {}
    for name in (config_file, overlay_file):
        if name is None:
            continue
        path = directory / name
        if path.exists():
            raw = _deep_merge(raw, _read_yaml(path))
    if overrides:
        raw = _deep_merge(raw, overrides)
    return AppConfig(**raw)
