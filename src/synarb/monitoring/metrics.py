"""Prometheus metrics for the synthetic arbitrage pipeline."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram


class MetricsCollector:
    """Prometheus metrics registry for synarb.

    Uses its own CollectorRegistry so several instances (and tests) do not
    collide on the global default registry.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()

        # --- Counters ---
        self.tick_pairs = Counter(
            "synarb_tick_pairs_total",
            "Tick pairs processed",
            registry=self._registry,
        )
        self.opportunities_detected = Counter(
            "synarb_opportunities_detected_total",
            "Opportunities emitted by the detector",
            ["sport"],
            registry=self._registry,
        )
        self.opportunities_approved = Counter(
            "synarb_opportunities_approved_total",
            "Opportunities approved by the risk manager",
            ["sport"],
            registry=self._registry,
        )
        self.opportunities_rejected = Counter(
            "synarb_opportunities_rejected_total",
            "Opportunities rejected by the risk manager",
            ["reason"],
            registry=self._registry,
        )
        self.refits = Counter(
            "synarb_relationship_refits_total",
            "Relationship refits run",
            registry=self._registry,
        )

        # --- Gauges ---
        self.relationships = Gauge(
            "synarb_relationships",
            "Relationships published to the detector",
            registry=self._registry,
        )
        self.tracked_markets = Gauge(
            "synarb_tracked_markets",
            "Markets with a price history",
            registry=self._registry,
        )

        # --- Histograms ---
        self.position_size = Histogram(
            "synarb_position_size",
            "Recommended position sizes",
            buckets=(100, 500, 1_000, 2_500, 5_000, 10_000, 25_000, 50_000),
            registry=self._registry,
        )
        self.mispricing = Histogram(
            "synarb_mispricing_abs_zscore",
            "Absolute z-score of detected opportunities",
            buckets=(2.5, 3, 4, 5, 7.5, 10, 20, 50),
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    @staticmethod
    def rejection_category(reason: str) -> str:
        """Collapse a rejection message into a low-cardinality label."""
        for category in ("correlation", "exposure", "tail risk", "non-finite"):
            if reason.startswith(category):
                return category.replace(" ", "_").replace("-", "_")
        return "other"
