"""Odds conversions used by the synthetic detector.

Markets are quoted either as American prices (+150, -110) or as point
lines (spread -3.5). Point lines are compared directly; American prices
additionally map to an implied probability.
"""

from __future__ import annotations

import math

from synarb.models.market import OddsPair

AMERICAN_ODDS_MIN_ABS = 100.0


def american_to_probability(odds: float) -> float | None:
    """Convert an American price to its implied probability.

    Args:
        odds: American odds (e.g. -110, +150).

    Returns:
        Implied probability in (0, 1), or None if ``odds`` is not a valid
        American price (|odds| < 100 or non-finite).
    """
    if not math.isfinite(odds) or abs(odds) < AMERICAN_ODDS_MIN_ABS:
        return None
    if odds > 0:
        return 100.0 / (odds + 100.0)
    return -odds / (-odds + 100.0)


def probability_to_american(probability: float) -> float:
    """Convert an implied probability back to an American price.

    Raises:
        ValueError: If ``probability`` is not strictly between 0 and 1.
    """
    if not 0.0 < probability < 1.0:
        raise ValueError(f"probability must be in (0, 1), got {probability}")
    if probability >= 0.5:
        return -(probability / (1.0 - probability)) * 100.0
    return ((1.0 - probability) / probability) * 100.0


def line_value(odds: OddsPair) -> float:
    """Value of a quote on the scale the relationships are fitted on.

    This is the home side's line or price as quoted.
    """
    return float(odds.home)


def implied_probability(odds: OddsPair) -> float | None:
    """Vig-free home probability for an American-priced market.

    When both sides are American prices the overround is removed by
    normalising the two implied probabilities. Returns None for point lines.
    """
    home = american_to_probability(odds.home)
    if home is None:
        return None
    away = american_to_probability(odds.away)
    if away is None:
        return home
    total = home + away
    return home / total if total > 0 else home
