"""Tests for synarb.monitoring metrics and integration."""

from __future__ import annotations

from prometheus_client import CollectorRegistry

from synarb.core.pipeline import SizedOpportunity
from synarb.detector.covariance import CovarianceStatistics
from synarb.models.market import MarketTick, OddsPair
from synarb.models.opportunity import Opportunity
from synarb.monitoring.integration import MetricsIntegration
from synarb.monitoring.metrics import MetricsCollector


def _make_opportunity(sport: str = "nba", mispricing: float = -4.0) -> Opportunity:
    tick = MarketTick(
        game_id="LAL-BOS-2024",
        timestamp=1,
        exchange="draftkings",
        market="spread-1q",
        sport=sport,
        odds=OddsPair(home=-3.5, away=3.5),
    )
    return Opportunity(
        id="opp",
        primary_tick=tick,
        hedge_tick=tick,
        primary_market_id=tick.market_id,
        hedge_market_id=tick.market_id,
        mispricing=mispricing,
        expected_value=100.0,
        hedge_ratio=0.28,
        required_hedge_size=280.0,
        tail_risk=3.0,
        confidence=0.85,
        correlation=0.9,
        observed_value=-3.5,
        theoretical_value=-2.38,
        edge_pct=0.47,
        timestamp=1,
    )


class TestMetricsCollector:
    """Tests for MetricsCollector."""

    def test_counter_opportunities_detected(self) -> None:
        """Detected counter increments per sport."""
        mc = MetricsCollector(registry=CollectorRegistry())

        mc.opportunities_detected.labels(sport="nba").inc()
        mc.opportunities_detected.labels(sport="nba").inc()
        mc.opportunities_detected.labels(sport="nfl").inc()

        assert mc.opportunities_detected.labels(sport="nba")._value.get() == 2.0
        assert mc.opportunities_detected.labels(sport="nfl")._value.get() == 1.0

    def test_gauges(self) -> None:
        mc = MetricsCollector(registry=CollectorRegistry())
        mc.relationships.set(12)
        mc.tracked_markets.set(7)
        assert mc.relationships._value.get() == 12.0
        assert mc.tracked_markets._value.get() == 7.0

    def test_separate_registries_do_not_collide(self) -> None:
        """Two collectors can coexist on their own registries."""
        a = MetricsCollector()
        b = MetricsCollector()
        a.tick_pairs.inc()
        assert b.tick_pairs._value.get() == 0.0
        assert a.registry is not b.registry

    def test_rejection_category(self) -> None:
        assert MetricsCollector.rejection_category("correlation 0.600 below minimum 0.800") == "correlation"
        assert MetricsCollector.rejection_category("exposure 51000.00 exceeds limit") == "exposure"
        assert MetricsCollector.rejection_category("tail risk 6.00 exceeds max 5.00") == "tail_risk"
        assert MetricsCollector.rejection_category("non-finite risk inputs") == "non_finite"
        assert MetricsCollector.rejection_category("something else") == "other"


class TestMetricsIntegration:
    """Tests for MetricsIntegration hooks."""

    def test_record_detection(self) -> None:
        registry = CollectorRegistry()
        mi = MetricsIntegration(MetricsCollector(registry=registry))

        mi.record_detection(_make_opportunity(sport="nba", mispricing=-4.0))

        assert registry.get_sample_value(
            "synarb_opportunities_detected_total", {"sport": "nba"}
        ) == 1.0
        assert registry.get_sample_value("synarb_mispricing_abs_zscore_sum") == 4.0

    def test_record_approval(self) -> None:
        registry = CollectorRegistry()
        mi = MetricsIntegration(MetricsCollector(registry=registry))

        mi.record_approval(SizedOpportunity(_make_opportunity(), 2500.0))

        assert registry.get_sample_value(
            "synarb_opportunities_approved_total", {"sport": "nba"}
        ) == 1.0
        assert registry.get_sample_value("synarb_position_size_sum") == 2500.0

    def test_record_rejection_uses_category(self) -> None:
        registry = CollectorRegistry()
        mi = MetricsIntegration(MetricsCollector(registry=registry))

        mi.record_rejection("tail risk 6.00 exceeds max 5.00")
        mi.record_rejection("tail risk 7.00 exceeds max 5.00")

        assert registry.get_sample_value(
            "synarb_opportunities_rejected_total", {"reason": "tail_risk"}
        ) == 2.0

    def test_record_refit(self) -> None:
        registry = CollectorRegistry()
        mi = MetricsIntegration(MetricsCollector(registry=registry))
        stats = CovarianceStatistics(
            total_markets=4,
            total_relationships=12,
            high_confidence_relationships=6,
            average_correlation=0.8,
            average_confidence=0.7,
        )

        mi.record_refit(6, stats)

        assert registry.get_sample_value("synarb_relationship_refits_total") == 1.0
        assert registry.get_sample_value("synarb_relationships") == 6.0
        assert registry.get_sample_value("synarb_tracked_markets") == 4.0

    def test_record_tick_pair(self) -> None:
        registry = CollectorRegistry()
        mi = MetricsIntegration(MetricsCollector(registry=registry))
        mi.record_tick_pair()
        mi.record_tick_pair()
        assert registry.get_sample_value("synarb_tick_pairs_total") == 2.0
