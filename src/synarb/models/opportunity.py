"""Synthetic arbitrage opportunity model."""

from pydantic import BaseModel

from synarb.models.market import MarketTick


class Opportunity(BaseModel):
    """A statistically significant mispricing between two related markets.

    Attributes:
        id: Identifier derived from the tick pair.
        primary_tick: Tick of the mispriced (primary) leg.
        hedge_tick: Tick of the hedge leg.
        primary_market_id: Market id of the primary leg.
        hedge_market_id: Market id of the hedge leg.
        mispricing: Signed z-score of the primary leg versus the model.
            Positive means the primary leg trades above its implied value.
        expected_value: Edge estimate for the base stake.
        hedge_ratio: Hedge units per unit of primary, after adjustments.
        required_hedge_size: Hedge stake for the base primary stake.
        tail_risk: Worst-case loss estimate, as a multiple (0-10 scale).
        confidence: Relationship confidence.
        correlation: Relationship correlation.
        observed_value: Observed primary line/price.
        theoretical_value: Model-implied primary line/price.
        edge_pct: Relative edge |observed - theoretical| / |theoretical|.
        primary_implied_prob: Implied probability of the primary leg, if
            quoted as an American price.
        hedge_implied_prob: Implied probability of the hedge leg, if quoted
            as an American price.
        timestamp: Epoch ms of the most recent tick of the pair.
    """

    model_config = {"frozen": True}

    id: str
    primary_tick: MarketTick
    hedge_tick: MarketTick
    primary_market_id: str
    hedge_market_id: str
    mispricing: float
    expected_value: float
    hedge_ratio: float
    required_hedge_size: float
    tail_risk: float
    confidence: float
    correlation: float
    observed_value: float
    theoretical_value: float
    edge_pct: float
    primary_implied_prob: float | None = None
    hedge_implied_prob: float | None = None
    timestamp: int
