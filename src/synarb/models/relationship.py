"""Fitted hedge relationships between two markets."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class HedgeParameters:
    """Result of a hedge fit between two aligned price series.

    Attributes:
        ratio: OLS slope of primary price on hedge price (primary units
            per unit of hedge).
        correlation: Pearson correlation of the two series, in [-1, 1].
        confidence: Fit confidence in [0, 1].
        variance: Sample variance (ddof=1) of the primary series.
        residual_std_dev: Standard deviation of the fit residuals.
        intercept: OLS intercept.
        covariance: Sample covariance of the two series.
        samples: Number of observations used.
    """

    ratio: float
    correlation: float
    confidence: float
    variance: float
    residual_std_dev: float
    intercept: float = 0.0
    covariance: float = 0.0
    samples: int = 0


class MarketRelationship(BaseModel):
    """Published relationship between a primary and a hedge market.

    Attributes:
        primary_market: Primary market identifier.
        hedge_market: Hedge market identifier.
        covariance: Covariance of the two price series.
        correlation: Pearson correlation.
        hedge_ratio: Primary units per unit of hedge.
        beta: Same as ``hedge_ratio``.
        half_life: Relationship decay constant in milliseconds.
        residual_std_dev: Residual standard deviation of the fit.
        confidence: Fit confidence in [0, 1].
        last_updated: Fit time in epoch milliseconds.
        intercept: Fit intercept; 0 for a pure ratio relationship.
    """

    model_config = {"frozen": True}

    primary_market: str
    hedge_market: str
    covariance: float
    correlation: float = Field(ge=-1.0, le=1.0)
    hedge_ratio: float
    beta: float
    half_life: float
    residual_std_dev: float = Field(ge=0.0)
    confidence: float = Field(ge=0.0, le=1.0)
    last_updated: int
    intercept: float = 0.0

    @property
    def key(self) -> tuple[str, str]:
        """Lookup key of this relationship."""
        return (self.primary_market, self.hedge_market)
