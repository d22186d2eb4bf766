"""Prometheus metrics and monitoring integration for synarb."""

from __future__ import annotations

from synarb.monitoring.integration import MetricsIntegration
from synarb.monitoring.metrics import MetricsCollector

__all__ = ["MetricsCollector", "MetricsIntegration"]
