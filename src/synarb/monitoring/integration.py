"""Hooks that push pipeline state into Prometheus metrics."""

from __future__ import annotations

from typing import TYPE_CHECKING

from synarb.monitoring.metrics import MetricsCollector

if TYPE_CHECKING:
    from synarb.core.pipeline import SizedOpportunity
    from synarb.detector.covariance import CovarianceStatistics
    from synarb.models.opportunity import Opportunity


class MetricsIntegration:
    """Translates pipeline events into metric updates.

    Attributes:
        collector: The underlying MetricsCollector instance.
    """

    def __init__(self, collector: MetricsCollector) -> None:
        self.collector = collector

    def record_tick_pair(self) -> None:
        self.collector.tick_pairs.inc()

    def record_detection(self, opportunity: Opportunity) -> None:
        self.collector.opportunities_detected.labels(
            sport=opportunity.primary_tick.sport
        ).inc()
        self.collector.mispricing.observe(abs(opportunity.mispricing))

    def record_approval(self, sized: SizedOpportunity) -> None:
        self.collector.opportunities_approved.labels(
            sport=sized.opportunity.primary_tick.sport
        ).inc()
        self.collector.position_size.observe(sized.position_size)

    def record_rejection(self, reason: str) -> None:
        self.collector.opportunities_rejected.labels(
            reason=MetricsCollector.rejection_category(reason)
        ).inc()

    def record_refit(self, relationships: int, stats: CovarianceStatistics) -> None:
        self.collector.refits.inc()
        self.collector.relationships.set(relationships)
        self.collector.tracked_markets.set(stats.total_markets)
