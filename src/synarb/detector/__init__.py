"""Hedge relationship fitting and synthetic arbitrage detection."""

from synarb.detector.covariance import (
    CovarianceEngine,
    CovarianceError,
    CovarianceStatistics,
    InsufficientDataError,
    LengthMismatchError,
)
from synarb.detector.odds import (
    american_to_probability,
    implied_probability,
    line_value,
    probability_to_american,
)
from synarb.detector.synthetic import DetectorStatistics, SyntheticArbDetector

__all__ = [
    "CovarianceEngine",
    "CovarianceError",
    "CovarianceStatistics",
    "DetectorStatistics",
    "InsufficientDataError",
    "LengthMismatchError",
    "SyntheticArbDetector",
    "american_to_probability",
    "implied_probability",
    "line_value",
    "probability_to_american",
]
