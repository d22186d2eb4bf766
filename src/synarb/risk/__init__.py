"""Risk management."""

from synarb.risk.manager import RiskManager

__all__ = ["RiskManager"]
