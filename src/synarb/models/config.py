"""Configuration models for the covariance engine, detector and risk manager."""

from pydantic import BaseModel, Field, field_validator


class CovarianceConfig(BaseModel):
    """Covariance engine parameters.

    Attributes:
        max_history_size: Capacity of each per-market ring buffer.
        min_samples: Minimum series length accepted by a hedge fit.
        half_life_ms: Fallback relationship half-life in milliseconds.
        high_confidence_threshold: Confidence at which a relationship is
            counted as high-confidence in statistics.
    """

    max_history_size: int = Field(default=1000, ge=1)
    min_samples: int = Field(default=50, ge=3)
    half_life_ms: float = Field(default=300_000.0, gt=0)
    high_confidence_threshold: float = Field(default=0.7, ge=0.0, le=1.0)


class DetectorConfig(BaseModel):
    """Synthetic arbitrage detector thresholds.

    Attributes:
        z_score_threshold: Minimum |z| for a mispricing to be significant.
        min_correlation: Minimum |correlation| of a usable relationship.
        min_confidence: Minimum confidence of a usable relationship.
        max_tail_risk: Tail risk cap applied by ``validate_opportunity``.
        min_edge_pct: Minimum relative edge (0.005 = 0.5%); 0 disables.
        base_stake: Primary-leg stake used for hedge sizing and EV.
    """

    model_config = {"frozen": True}

    z_score_threshold: float = Field(default=2.5, gt=0)
    min_correlation: float = Field(default=0.7, ge=0.0, le=1.0)
    min_confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    max_tail_risk: float = Field(default=5.0, gt=0)
    min_edge_pct: float = Field(default=0.0, ge=0.0)
    base_stake: float = Field(default=1000.0, gt=0)


class ExposureTier(BaseModel):
    """Maximum total exposure permitted at a given correlation."""

    model_config = {"frozen": True}

    correlation: float = Field(ge=0.0, le=1.0)
    max_exposure: float = Field(ge=0.0)


def _default_tiers() -> list[ExposureTier]:
    return [
        ExposureTier(correlation=0.8, max_exposure=25_000),
        ExposureTier(correlation=0.9, max_exposure=50_000),
    ]


class RiskConfig(BaseModel):
    """Risk manager parameters.

    Attributes:
        min_correlation: Opportunities below this |correlation| are rejected.
        exposure_tiers: Correlation -> max exposure anchor points, linearly
            interpolated between tiers.
        primary_stake: Primary-leg stake added to the hedge size when
            checking total exposure.
        max_tail_risk: Maximum acceptable tail risk.
        bankroll: Reference bankroll for position sizing.
        max_bankroll_fraction: Cap on a single position as bankroll fraction.
        kelly_fraction: Fraction of full Kelly to stake.
        min_position_size: Floor for a recommended position.
    """

    min_correlation: float = Field(default=0.8, ge=0.0, le=1.0)
    exposure_tiers: list[ExposureTier] = Field(default_factory=_default_tiers)
    primary_stake: float = Field(default=1000.0, ge=0.0)
    max_tail_risk: float = Field(default=5.0, gt=0)
    bankroll: float = Field(default=100_000.0, gt=0)
    max_bankroll_fraction: float = Field(default=0.25, gt=0.0, le=1.0)
    kelly_fraction: float = Field(default=0.5, gt=0.0, le=1.0)
    min_position_size: float = Field(default=1.0, gt=0.0)

    @field_validator("exposure_tiers")
    @classmethod
    def _sort_tiers(cls, tiers: list[ExposureTier]) -> list[ExposureTier]:
        return sorted(tiers, key=lambda t: t.correlation)
