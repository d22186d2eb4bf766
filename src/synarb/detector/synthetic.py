"""Synthetic arbitrage detector.

Compares a live primary/hedge tick pair against the fitted relationship
between the two markets. The primary leg's model-implied value is derived
from the hedge leg; when the observed primary deviates from it by more than
``z_score_threshold`` residual standard deviations, an Opportunity is
emitted. Missing relationships, weak relationships and insignificant
deviations all yield None.
"""

from __future__ import annotations

import math
import threading
import uuid
from collections.abc import Iterable
from dataclasses import dataclass

from synarb.detector.odds import implied_probability, line_value
from synarb.logging import get_logger
from synarb.models.config import DetectorConfig
from synarb.models.market import GameContext, MarketTick
from synarb.models.opportunity import Opportunity
from synarb.models.relationship import MarketRelationship

logger = get_logger(__name__)

_OPPORTUNITY_NAMESPACE = uuid.UUID("6f1c2b1e-7d0a-5c55-9a4e-3b8f0c2d9e71")

# Pace (possessions per 48 min) considered neutral.
_NEUTRAL_PACE = 100.0
# Deviation in sigmas beyond which a move counts as tail exposure.
_TAIL_SIGMA = 3.0
_TAIL_RISK_SCALE = 10.0


@dataclass(frozen=True)
class DetectorStatistics:
    """Summary of the detector's relationship table."""

    total_relationships: int
    high_confidence_relationships: int
    high_correlation_relationships: int
    average_confidence: float
    average_correlation: float


class SyntheticArbDetector:
    """Detects statistical mispricing between correlated markets.

    The relationship table is keyed by ``(primary_market, hedge_market)``.
    Updates build a new table and swap it in under a lock, so readers in
    other threads always see either the old or the new table.

    Args:
        relationships: Initial relationships.
        config: Detector thresholds. Uses defaults if not provided.
    """

    def __init__(
        self,
        relationships: Iterable[MarketRelationship] = (),
        config: DetectorConfig | None = None,
    ) -> None:
        self.config = config or DetectorConfig()
        self._relationships: dict[tuple[str, str], MarketRelationship] = {}
        self._write_lock = threading.Lock()
        self.update_relationships(relationships)

    def update_relationships(
        self,
        relationships: Iterable[MarketRelationship],
        merge: bool = False,
    ) -> None:
        """Replace (or merge into) the relationship table.

        Args:
            relationships: Relationships to publish. Entries that are not
                MarketRelationship instances are skipped.
            merge: Overlay onto the current table instead of replacing it.
        """
        with self._write_lock:
            table = dict(self._relationships) if merge else {}
            skipped = 0
            for rel in relationships or ():
                if not isinstance(rel, MarketRelationship):
                    skipped += 1
                    continue
                table[rel.key] = rel
            self._relationships = table

        if skipped:
            logger.warning("malformed_relationships_skipped", count=skipped)
        logger.debug("relationships_updated", total=len(table), merge=merge)

    def get_relationship(
        self, primary_market: str, hedge_market: str
    ) -> MarketRelationship | None:
        return self._relationships.get((primary_market, hedge_market))

    def detect(
        self,
        primary_tick: MarketTick | None,
        hedge_tick: MarketTick | None,
        game_context: GameContext | None = None,
    ) -> Opportunity | None:
        """Evaluate a tick pair for a synthetic arbitrage opportunity.

        Args:
            primary_tick: Tick of the leg being priced.
            hedge_tick: Tick of the hedge leg.
            game_context: Optional in-game state adjusting the relationship.

        Returns:
            An Opportunity when the mispricing is significant and the
            relationship is strong enough, otherwise None.
        """
        if not isinstance(primary_tick, MarketTick) or not isinstance(
            hedge_tick, MarketTick
        ):
            return None

        relationship = self._relationships.get(
            (primary_tick.market_id, hedge_tick.market_id)
        )
        if relationship is None:
            return None

        cfg = self.config
        if relationship.confidence < cfg.min_confidence:
            return None
        if abs(relationship.correlation) < cfg.min_correlation:
            return None

        sigma = relationship.residual_std_dev
        if not (math.isfinite(sigma) and sigma > 0):
            return None

        observed = line_value(primary_tick.odds)
        hedge_value = line_value(hedge_tick.odds)
        if not (math.isfinite(observed) and math.isfinite(hedge_value)):
            return None

        hedge_ratio = self.adjust_hedge_ratio(relationship.hedge_ratio, game_context)
        theoretical = (
            relationship.intercept
            + hedge_value * hedge_ratio
            + self._pace_adjustment(hedge_value, game_context)
        )

        residual = observed - theoretical
        z_score = residual / sigma
        if abs(z_score) <= cfg.z_score_threshold:
            return None

        edge_pct = abs(residual) / abs(theoretical) if theoretical != 0 else abs(residual)
        if edge_pct < cfg.min_edge_pct:
            return None

        required_hedge_size = cfg.base_stake * abs(hedge_ratio)
        expected_value = abs(residual) * cfg.base_stake * abs(relationship.correlation)
        tail_risk = self.calculate_tail_risk(relationship, theoretical, z_score)

        return Opportunity(
            id=self._opportunity_id(primary_tick, hedge_tick),
            primary_tick=primary_tick,
            hedge_tick=hedge_tick,
            primary_market_id=primary_tick.market_id,
            hedge_market_id=hedge_tick.market_id,
            mispricing=z_score,
            expected_value=expected_value,
            hedge_ratio=hedge_ratio,
            required_hedge_size=required_hedge_size,
            tail_risk=tail_risk,
            confidence=relationship.confidence,
            correlation=relationship.correlation,
            observed_value=observed,
            theoretical_value=theoretical,
            edge_pct=edge_pct,
            primary_implied_prob=implied_probability(primary_tick.odds),
            hedge_implied_prob=implied_probability(hedge_tick.odds),
            timestamp=max(primary_tick.timestamp, hedge_tick.timestamp),
        )

    @staticmethod
    def adjust_hedge_ratio(
        base_ratio: float, game_context: GameContext | None = None
    ) -> float:
        """Scale the fitted ratio for tempo, blowouts and foul trouble."""
        if game_context is None:
            return base_ratio

        ratio = base_ratio
        if game_context.pace > 102:
            ratio *= 1.08
        elif game_context.pace < 98:
            ratio *= 0.92

        if abs(game_context.run_differential) > 12:
            ratio *= 0.92

        if game_context.key_player_fouls >= 2 and game_context.period == 1:
            ratio *= 0.85

        return ratio

    @staticmethod
    def _pace_adjustment(hedge_value: float, game_context: GameContext | None) -> float:
        if game_context is None:
            return 0.0
        return hedge_value * (game_context.pace - _NEUTRAL_PACE) * 0.01

    @staticmethod
    def calculate_tail_risk(
        relationship: MarketRelationship,
        theoretical: float,
        z_score: float,
    ) -> float:
        """Worst-case loss estimate on a 0-10 scale.

        Averages three [0, 1] components: correlation shortfall
        (1 - |r|), residual volatility relative to the implied value, and
        the share of the deviation lying beyond 3 sigma.
        """
        sigma = relationship.residual_std_dev
        correlation_risk = 1.0 - abs(relationship.correlation)
        volatility_risk = sigma / max(abs(theoretical), sigma)
        abs_z = abs(z_score)
        z_risk = max(0.0, abs_z - _TAIL_SIGMA) / abs_z if abs_z > 0 else 0.0
        return _TAIL_RISK_SCALE * (correlation_risk + volatility_risk + z_risk) / 3.0

    @staticmethod
    def _opportunity_id(primary_tick: MarketTick, hedge_tick: MarketTick) -> str:
        name = "|".join(
            (
                primary_tick.market_id,
                primary_tick.exchange,
                str(primary_tick.timestamp),
                repr(primary_tick.odds.home),
                hedge_tick.market_id,
                hedge_tick.exchange,
                str(hedge_tick.timestamp),
                repr(hedge_tick.odds.home),
            )
        )
        return str(uuid.uuid5(_OPPORTUNITY_NAMESPACE, name))

    def validate_opportunity(self, opportunity: Opportunity) -> bool:
        """Check an opportunity against every detector gate."""
        cfg = self.config
        return (
            opportunity.confidence >= cfg.min_confidence
            and abs(opportunity.correlation) >= cfg.min_correlation
            and abs(opportunity.mispricing) >= cfg.z_score_threshold
            and opportunity.expected_value > 0
            and opportunity.tail_risk <= cfg.max_tail_risk
        )

    def get_statistics(self) -> DetectorStatistics:
        relationships = list(self._relationships.values())
        count = len(relationships)
        return DetectorStatistics(
            total_relationships=count,
            high_confidence_relationships=sum(
                1 for r in relationships if r.confidence >= self.config.min_confidence
            ),
            high_correlation_relationships=sum(
                1 for r in relationships if abs(r.correlation) >= 0.8
            ),
            average_confidence=(
                sum(r.confidence for r in relationships) / count if count else 0.0
            ),
            average_correlation=(
                sum(abs(r.correlation) for r in relationships) / count if count else 0.0
            ),
        )
