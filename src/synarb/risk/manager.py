"""Risk manager for synthetic arbitrage opportunities.

Gates opportunities on correlation, correlation-scaled exposure and tail
risk, and sizes approved positions with a fractional Kelly rule capped at
a fraction of the bankroll.
"""

from __future__ import annotations

import math

from synarb.logging import get_logger
from synarb.models.config import RiskConfig
from synarb.models.opportunity import Opportunity

logger = get_logger(__name__)

# Tail risk is reported on a 0-10 scale.
TAIL_RISK_SCALE = 10.0
_MIN_RISK = 1e-3


class RiskManager:
    """Validates and sizes synthetic arbitrage opportunities.

    Attributes:
        config: Risk configuration parameters.
    """

    def __init__(self, config: RiskConfig | None = None) -> None:
        """Initialize the risk manager.

        Args:
            config: Risk configuration. Uses defaults if not provided.
        """
        self.config = config or RiskConfig()

    def max_exposure(self, correlation: float) -> float:
        """Maximum total exposure permitted at a given correlation.

        Linear between the configured tiers, flat above the top tier and
        zero below the lowest one. Non-decreasing in |correlation|.
        """
        tiers = self.config.exposure_tiers
        c = abs(correlation)
        if not tiers or c < tiers[0].correlation:
            return 0.0
        for lower, upper in zip(tiers, tiers[1:]):
            if c < upper.correlation:
                span = upper.correlation - lower.correlation
                frac = (c - lower.correlation) / span if span > 0 else 1.0
                return lower.max_exposure + frac * (upper.max_exposure - lower.max_exposure)
        return tiers[-1].max_exposure

    def check_opportunity(self, opportunity: Opportunity) -> tuple[bool, str]:
        """Check whether an opportunity is within risk limits.

        Validates:
        1. All risk inputs are finite.
        2. |correlation| meets the minimum.
        3. Hedge plus primary stake fits the correlation-scaled exposure cap.
        4. Tail risk is within the cap.

        Args:
            opportunity: The opportunity to validate.

        Returns:
            Tuple of (approved, reason). reason is "approved" on success.
        """
        fields = (
            opportunity.correlation,
            opportunity.required_hedge_size,
            opportunity.tail_risk,
        )
        if not all(math.isfinite(v) for v in fields):
            return self._reject(opportunity, "non-finite risk inputs")

        correlation = abs(opportunity.correlation)
        if correlation < self.config.min_correlation:
            return self._reject(
                opportunity,
                f"correlation {correlation:.3f} below minimum {self.config.min_correlation:.3f}",
            )

        total_exposure = opportunity.required_hedge_size + self.config.primary_stake
        limit = self.max_exposure(correlation)
        if total_exposure > limit:
            return self._reject(
                opportunity,
                f"exposure {total_exposure:.2f} exceeds limit {limit:.2f} at correlation {correlation:.3f}",
            )

        if opportunity.tail_risk > self.config.max_tail_risk:
            return self._reject(
                opportunity,
                f"tail risk {opportunity.tail_risk:.2f} exceeds max {self.config.max_tail_risk:.2f}",
            )

        return True, "approved"

    def validate(self, opportunity: Opportunity) -> bool:
        """Return True if the opportunity passes every risk gate."""
        approved, _ = self.check_opportunity(opportunity)
        return approved

    def calculate_position_size(
        self,
        opportunity: Opportunity,
        bankroll: float | None = None,
    ) -> float:
        """Recommend a stake using a correlation-penalised fractional Kelly.

        The edge is the expected value as a fraction of the bankroll and the
        risk is the tail risk rescaled to [0, 1], so the Kelly fraction is
        ``edge / risk * correlation**2 * (1 - risk)``. The size grows with
        expected value and correlation, shrinks with tail risk, and stays
        within ``[min_position_size, max_bankroll_fraction * bankroll]``.

        Args:
            opportunity: The opportunity to size.
            bankroll: Reference bankroll; defaults to the configured one.

        Returns:
            Recommended position size in bankroll units.
        """
        cfg = self.config
        bankroll = cfg.bankroll if bankroll is None else bankroll
        cap = cfg.max_bankroll_fraction * bankroll
        floor = min(cfg.min_position_size, cap)
        if bankroll <= 0:
            return floor

        edge = opportunity.expected_value / bankroll
        risk = min(max(opportunity.tail_risk / TAIL_RISK_SCALE, 0.0), 1.0)
        kelly = (
            edge
            / max(risk, _MIN_RISK)
            * opportunity.correlation**2
            * (1.0 - risk)
        )
        if not math.isfinite(kelly):
            return floor

        fraction = min(kelly * cfg.kelly_fraction, cfg.max_bankroll_fraction)
        return max(floor, fraction * bankroll)

    def _reject(self, opportunity: Opportunity, reason: str) -> tuple[bool, str]:
        logger.info(
            "opportunity_rejected",
            opportunity_id=opportunity.id,
            primary_market=opportunity.primary_market_id,
            hedge_market=opportunity.hedge_market_id,
            reason=reason,
        )
        return False, reason
