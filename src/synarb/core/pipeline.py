"""Synthetic arbitrage pipeline: price history -> refit -> detect -> risk.

Feeds live tick pairs into the covariance engine, periodically refits and
publishes relationships to the detector, and passes detected opportunities
through the risk manager. Approved opportunities are returned with a
recommended position size; placing orders is left to the caller.
"""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass, field
from datetime import UTC, datetime

from synarb.config import AppConfig, PipelineConfig
from synarb.detector.covariance import CovarianceEngine
from synarb.detector.odds import line_value
from synarb.detector.synthetic import SyntheticArbDetector
from synarb.logging import get_logger
from synarb.models.market import GameContext, MarketTick
from synarb.models.opportunity import Opportunity
from synarb.monitoring.integration import MetricsIntegration
from synarb.risk.manager import RiskManager


@dataclass
class PipelineStats:
    """Aggregated pipeline statistics.

    Attributes:
        tick_pairs_processed: Tick pairs received.
        stale_pairs_skipped: Pairs whose timestamps were too far apart.
        refits_run: Relationship refits completed.
        relationships_published: Relationships handed to the detector at
            the last refit.
        opportunities_detected: Opportunities emitted by the detector.
        opportunities_approved: Opportunities that passed risk checks.
        opportunities_rejected: Opportunities rejected by risk checks.
        total_proposed_stake: Sum of recommended position sizes.
        rejection_reasons: Rejection counts keyed by reason.
        started_at: Timestamp when the stats were (re)started.
    """

    tick_pairs_processed: int = 0
    stale_pairs_skipped: int = 0
    refits_run: int = 0
    relationships_published: int = 0
    opportunities_detected: int = 0
    opportunities_approved: int = 0
    opportunities_rejected: int = 0
    total_proposed_stake: float = 0.0
    rejection_reasons: dict[str, int] = field(default_factory=dict)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class SizedOpportunity:
    """An approved opportunity and its recommended position size."""

    opportunity: Opportunity
    position_size: float


class SyntheticArbPipeline:
    """Orchestrates covariance refits, detection and risk checks.

    All collaborators are injected; build one pipeline per application
    context (see ``from_config``).

    Attributes:
        engine: Covariance engine holding price histories.
        detector: Synthetic arbitrage detector.
        risk_manager: Risk manager for validation and sizing.
        config: Pipeline settings.
        metrics: Optional Prometheus metrics integration.
    """

    def __init__(
        self,
        engine: CovarianceEngine,
        detector: SyntheticArbDetector,
        risk_manager: RiskManager,
        config: PipelineConfig | None = None,
        metrics: MetricsIntegration | None = None,
    ) -> None:
        self.engine = engine
        self.detector = detector
        self.risk_manager = risk_manager
        self.config = config or PipelineConfig()
        self.metrics = metrics
        self._stats = PipelineStats()
        self._logger = get_logger("pipeline")

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        metrics: MetricsIntegration | None = None,
    ) -> SyntheticArbPipeline:
        """Build a pipeline and its components from application config."""
        return cls(
            engine=CovarianceEngine(config.covariance),
            detector=SyntheticArbDetector(config=config.detector),
            risk_manager=RiskManager(config.risk),
            config=config.pipeline,
            metrics=metrics,
        )

    def process(
        self,
        primary_tick: MarketTick,
        hedge_tick: MarketTick,
        game_context: GameContext | None = None,
    ) -> SizedOpportunity | None:
        """Process one primary/hedge tick pair.

        Every ``refit_interval`` pairs this also runs ``refit`` inline,
        which costs O(markets^2 * history). With many markets, set
        ``refit_interval`` to 0 and drive refits from ``RefitScheduler``.

        Args:
            primary_tick: Tick of the primary leg.
            hedge_tick: Tick of the hedge leg.
            game_context: Optional in-game state for the detector.

        Returns:
            SizedOpportunity if an opportunity was detected and approved,
            otherwise None.
        """
        self._stats.tick_pairs_processed += 1
        if self.metrics is not None:
            self.metrics.record_tick_pair()

        for tick in (primary_tick, hedge_tick):
            self.engine.update_price(tick.market_id, line_value(tick.odds), tick.timestamp)

        interval = self.config.refit_interval
        if interval and self._stats.tick_pairs_processed % interval == 0:
            self.refit()

        if abs(primary_tick.timestamp - hedge_tick.timestamp) > self.config.max_latency_delta_ms:
            self._stats.stale_pairs_skipped += 1
            return None

        opportunity = self.detector.detect(primary_tick, hedge_tick, game_context)
        if opportunity is None:
            return None

        self._stats.opportunities_detected += 1
        if self.metrics is not None:
            self.metrics.record_detection(opportunity)
        self._logger.info(
            "opportunity_detected",
            opportunity_id=opportunity.id,
            primary_market=opportunity.primary_market_id,
            hedge_market=opportunity.hedge_market_id,
            zscore=round(opportunity.mispricing, 3),
            expected_value=round(opportunity.expected_value, 2),
        )

        approved, reason = self.risk_manager.check_opportunity(opportunity)
        if not approved:
            self._stats.opportunities_rejected += 1
            self._stats.rejection_reasons[reason] = (
                self._stats.rejection_reasons.get(reason, 0) + 1
            )
            if self.metrics is not None:
                self.metrics.record_rejection(reason)
            return None

        size = self.risk_manager.calculate_position_size(opportunity)
        sized = SizedOpportunity(opportunity=opportunity, position_size=size)
        self._stats.opportunities_approved += 1
        self._stats.total_proposed_stake += size
        if self.metrics is not None:
            self.metrics.record_approval(sized)
        self._logger.info(
            "opportunity_approved",
            opportunity_id=opportunity.id,
            position_size=round(size, 2),
        )
        return sized

    def refit(self) -> int:
        """Refit relationships and publish the high-confidence ones.

        Returns:
            Number of relationships published to the detector.
        """
        self.engine.refit_relationships()
        published = self.engine.get_high_confidence_relationships(
            min_confidence=self.config.min_confidence,
            min_correlation=self.config.min_correlation,
        )
        self.detector.update_relationships(published)

        self._stats.refits_run += 1
        self._stats.relationships_published = len(published)
        if self.metrics is not None:
            self.metrics.record_refit(len(published), self.engine.get_statistics())
        return len(published)

    async def run(
        self, pairs: AsyncIterable[tuple[MarketTick, MarketTick]]
    ) -> list[SizedOpportunity]:
        """Process an async stream of tick pairs until it is exhausted.

        Returns:
            Every approved opportunity, in arrival order.
        """
        approved: list[SizedOpportunity] = []
        async for primary_tick, hedge_tick in pairs:
            sized = self.process(primary_tick, hedge_tick)
            if sized is not None:
                approved.append(sized)

        self._logger.info(
            "pipeline_run_completed",
            tick_pairs=self._stats.tick_pairs_processed,
            detected=self._stats.opportunities_detected,
            approved=self._stats.opportunities_approved,
            rejected=self._stats.opportunities_rejected,
            refits=self._stats.refits_run,
        )
        return approved

    def get_stats(self) -> PipelineStats:
        """Return aggregated pipeline statistics."""
        return self._stats

    def reset_stats(self) -> None:
        """Start a fresh statistics window."""
        self._stats = PipelineStats()


async def merge_streams(
    primary: AsyncIterable[MarketTick],
    hedge: AsyncIterable[MarketTick],
    tolerance_ms: int,
) -> AsyncIterator[tuple[MarketTick, MarketTick]]:
    """Pair two tick streams element by element.

    Yields ``(primary, hedge)`` pairs whose timestamps are within
    ``tolerance_ms`` of each other; other pairs are dropped. Stops when
    either stream is exhausted.
    """
    primary_iter = aiter(primary)
    hedge_iter = aiter(hedge)
    while True:
        try:
            primary_tick = await anext(primary_iter)
            hedge_tick = await anext(hedge_iter)
        except StopAsyncIteration:
            return
        if abs(primary_tick.timestamp - hedge_tick.timestamp) <= tolerance_ms:
            yield primary_tick, hedge_tick
