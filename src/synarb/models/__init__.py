"""Data models.

Re-exports the core models for convenient imports:

    from synarb.models import MarketTick, MarketRelationship, Opportunity
"""

from synarb.models.config import CovarianceConfig, DetectorConfig, ExposureTier, RiskConfig
from synarb.models.market import GameContext, MarketTick, OddsPair
from synarb.models.opportunity import Opportunity
from synarb.models.relationship import HedgeParameters, MarketRelationship

__all__ = [
    "CovarianceConfig",
    "DetectorConfig",
    "ExposureTier",
    "GameContext",
    "HedgeParameters",
    "MarketRelationship",
    "MarketTick",
    "OddsPair",
    "Opportunity",
    "RiskConfig",
]
