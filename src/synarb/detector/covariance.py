"""Covariance engine for synthetic arbitrage.

Keeps a rolling price history per market and fits linear hedge
relationships between pairs of markets. A fit regresses the primary
market's price on the hedge market's price, so a hedge quoted at ``k``
times the primary yields a hedge ratio of ``1 / k``.
"""

from __future__ import annotations

import itertools
import math
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
from statsmodels.regression.linear_model import OLS
from statsmodels.tools.tools import add_constant

from synarb.core.ring_buffer import RingBuffer
from synarb.logging import get_logger
from synarb.models.config import CovarianceConfig
from synarb.models.relationship import HedgeParameters, MarketRelationship

logger = get_logger(__name__)

# Two-sided 95% normal quantile.
_Z_95 = 1.959963984540054
_MAX_CONFIDENCE = 0.99


class CovarianceError(ValueError):
    """Price series cannot be fitted."""


class InsufficientDataError(CovarianceError):
    """A price series is shorter than the minimum sample count."""

    def __init__(self, required: int, actual: int) -> None:
        self.required = required
        self.actual = actual
        super().__init__(
            f"Insufficient data: need at least {required} samples, got {actual}"
        )


class LengthMismatchError(CovarianceError):
    """The two price series differ in length."""

    def __init__(self, primary_length: int, hedge_length: int) -> None:
        self.primary_length = primary_length
        self.hedge_length = hedge_length
        super().__init__(
            "Price arrays must have equal length "
            f"(primary={primary_length}, hedge={hedge_length})"
        )


@dataclass(frozen=True)
class CovarianceStatistics:
    """Summary of the engine's tracked state.

    Attributes:
        total_markets: Markets with a price history.
        total_relationships: Relationships in the current table.
        high_confidence_relationships: Relationships at or above the
            configured high-confidence threshold.
        average_correlation: Mean |correlation| over all relationships.
        average_confidence: Mean confidence over all relationships.
    """

    total_markets: int
    total_relationships: int
    high_confidence_relationships: int
    average_correlation: float
    average_confidence: float


def _now_ms() -> int:
    return int(time.time() * 1000)


class CovarianceEngine:
    """Fits hedge relationships and maintains per-market price histories.

    Price updates are serialized by a lock so the ring buffers keep their
    FIFO eviction order under concurrent writers. The relationship table
    is rebuilt on every refit and swapped in as a whole.

    Args:
        config: Engine parameters. Uses defaults if not provided.
    """

    def __init__(self, config: CovarianceConfig | None = None) -> None:
        self.config = config or CovarianceConfig()
        self._prices: dict[str, RingBuffer[float]] = {}
        self._timestamps: dict[str, RingBuffer[int]] = {}
        self._relationships: dict[tuple[str, str], MarketRelationship] = {}
        self._lock = threading.Lock()

    @property
    def min_samples(self) -> int:
        return self.config.min_samples

    # ------------------------------------------------------------------
    # Price history
    # ------------------------------------------------------------------

    def update_price(
        self, market_id: str, price: float, timestamp: int | None = None
    ) -> None:
        """Append a price observation to a market's history.

        Does not refit any relationship.

        Args:
            market_id: Market identifier.
            price: Observed price or line value.
            timestamp: Observation time in epoch ms (defaults to now).
        """
        if timestamp is None:
            timestamp = _now_ms()
        with self._lock:
            prices = self._prices.get(market_id)
            if prices is None:
                prices = RingBuffer[float](self.config.max_history_size)
                self._prices[market_id] = prices
                self._timestamps[market_id] = RingBuffer[int](
                    self.config.max_history_size
                )
            prices.push(float(price))
            self._timestamps[market_id].push(int(timestamp))

    def get_history(self, market_id: str) -> tuple[list[float], list[int]]:
        """Return (prices, timestamps) for a market, oldest first."""
        with self._lock:
            prices = self._prices.get(market_id)
            if prices is None:
                return [], []
            return prices.to_list(), self._timestamps[market_id].to_list()

    @property
    def markets(self) -> list[str]:
        """Identifiers of all tracked markets."""
        with self._lock:
            return list(self._prices)

    # ------------------------------------------------------------------
    # Fitting
    # ------------------------------------------------------------------

    def calculate_hedge_ratio(
        self,
        primary_prices: Sequence[float],
        hedge_prices: Sequence[float],
    ) -> HedgeParameters:
        """Fit the hedge relationship between two aligned price series.

        Args:
            primary_prices: Primary market prices, oldest first.
            hedge_prices: Hedge market prices aligned with the primary.

        Returns:
            HedgeParameters of the OLS fit of primary on hedge.

        Raises:
            InsufficientDataError: Either series has fewer than
                ``min_samples`` observations.
            LengthMismatchError: The series differ in length.
            CovarianceError: A series contains non-finite values.
        """
        n_primary = len(primary_prices)
        n_hedge = len(hedge_prices)
        shortest = min(n_primary, n_hedge)
        if shortest < self.min_samples:
            raise InsufficientDataError(self.min_samples, shortest)
        if n_primary != n_hedge:
            raise LengthMismatchError(n_primary, n_hedge)

        primary = np.asarray(primary_prices, dtype=float)
        hedge = np.asarray(hedge_prices, dtype=float)
        if not (np.isfinite(primary).all() and np.isfinite(hedge).all()):
            raise CovarianceError("Price arrays must contain only finite values")

        var_primary = float(np.var(primary, ddof=1))

        covariance = float(np.cov(primary, hedge, ddof=1)[0, 1])

        if _is_flat(primary) or _is_flat(hedge):
            return HedgeParameters(
                ratio=0.0,
                correlation=0.0,
                confidence=0.0,
                variance=var_primary,
                residual_std_dev=float(np.std(primary)),
                intercept=float(np.mean(primary)),
                covariance=covariance,
                samples=n_primary,
            )

        model = OLS(primary, add_constant(hedge, has_constant="add")).fit()
        intercept = float(model.params[0])
        ratio = float(model.params[1])
        residual_std_dev = float(np.std(model.resid))

        correlation = float(np.clip(np.corrcoef(primary, hedge)[0, 1], -1.0, 1.0))

        return HedgeParameters(
            ratio=ratio,
            correlation=correlation,
            confidence=self.fit_confidence(correlation, n_primary),
            variance=var_primary,
            residual_std_dev=residual_std_dev,
            intercept=intercept,
            covariance=covariance,
            samples=n_primary,
        )

    @staticmethod
    def fit_confidence(correlation: float, samples: int) -> float:
        """Lower bound of the 95% Fisher-z interval for |correlation|.

        Grows with the sample count and with |correlation| (i.e. shrinks as
        the relative residual dispersion sqrt(1 - r^2) grows). Clipped to
        [0, 0.99].
        """
        if samples < 4 or not math.isfinite(correlation):
            return 0.0
        r = abs(correlation)
        if r >= 1.0:
            return _MAX_CONFIDENCE
        z = math.atanh(r)
        se = 1.0 / math.sqrt(samples - 3)
        lower = math.tanh(z - _Z_95 * se)
        return max(0.0, min(_MAX_CONFIDENCE, lower))

    @staticmethod
    def compute_half_life(spread: np.ndarray) -> float:
        """Mean-reversion half-life of a spread from an AR(1) fit.

        Fits spread[t] = c + phi * spread[t-1] and returns
        -log(2) / log(phi) in periods, or inf if not mean-reverting.
        """
        if len(spread) < 3:
            return float("inf")

        lag = spread[:-1]
        if np.ptp(lag) == 0.0:
            return float("inf")

        model = OLS(spread[1:], add_constant(lag, has_constant="add")).fit()
        phi = float(model.params[1])

        if phi <= 0 or phi >= 1:
            return float("inf")
        return float(-np.log(2) / np.log(phi))

    def _half_life_ms(self, spread: np.ndarray, timestamps: Sequence[int]) -> float:
        periods = self.compute_half_life(spread)
        if not math.isfinite(periods) or len(timestamps) < 2:
            return self.config.half_life_ms
        steps = np.diff(np.asarray(timestamps, dtype=float))
        steps = steps[steps > 0]
        if steps.size == 0:
            return self.config.half_life_ms
        return periods * float(np.median(steps))

    # ------------------------------------------------------------------
    # Relationship table
    # ------------------------------------------------------------------

    def refit_relationships(self) -> list[MarketRelationship]:
        """Refit every ordered pair of markets with enough history.

        Series are aligned on their most recent common length. Pairs that
        cannot be fitted are skipped. The new table replaces the old one.

        Returns:
            The relationships of the new table.
        """
        with self._lock:
            histories = {
                market_id: (prices.to_list(), self._timestamps[market_id].to_list())
                for market_id, prices in self._prices.items()
                if len(prices) >= self.min_samples
            }

        fitted_at = _now_ms()
        table: dict[tuple[str, str], MarketRelationship] = {}

        for primary_id, hedge_id in itertools.permutations(sorted(histories), 2):
            primary_prices, primary_times = histories[primary_id]
            hedge_prices, _ = histories[hedge_id]
            n = min(len(primary_prices), len(hedge_prices))
            primary_window = primary_prices[-n:]
            hedge_window = hedge_prices[-n:]

            try:
                params = self.calculate_hedge_ratio(primary_window, hedge_window)
            except CovarianceError as e:
                logger.debug(
                    "relationship_fit_skipped",
                    primary_market=primary_id,
                    hedge_market=hedge_id,
                    error=str(e),
                )
                continue

            spread = (
                np.asarray(primary_window)
                - params.intercept
                - params.ratio * np.asarray(hedge_window)
            )
            relationship = MarketRelationship(
                primary_market=primary_id,
                hedge_market=hedge_id,
                covariance=params.covariance,
                correlation=params.correlation,
                hedge_ratio=params.ratio,
                beta=params.ratio,
                half_life=self._half_life_ms(spread, primary_times[-n:]),
                residual_std_dev=params.residual_std_dev,
                confidence=params.confidence,
                last_updated=fitted_at,
                intercept=params.intercept,
            )
            table[relationship.key] = relationship

        with self._lock:
            self._relationships = table

        logger.info(
            "relationships_refitted",
            markets=len(histories),
            relationships=len(table),
        )
        return list(table.values())

    def get_relationship(
        self, primary_market: str, hedge_market: str
    ) -> MarketRelationship | None:
        """Return the fitted relationship for a market pair, if any."""
        return self._relationships.get((primary_market, hedge_market))

    def get_high_confidence_relationships(
        self,
        min_confidence: float = 0.7,
        min_correlation: float = 0.7,
    ) -> list[MarketRelationship]:
        """Relationships passing both the confidence and |correlation| floors."""
        return [
            r
            for r in self._relationships.values()
            if r.confidence >= min_confidence and abs(r.correlation) >= min_correlation
        ]

    def reset(self) -> None:
        """Clear all price histories and relationships."""
        with self._lock:
            self._prices.clear()
            self._timestamps.clear()
            self._relationships = {}

    def get_statistics(self) -> CovarianceStatistics:
        """Return summary counts for monitoring."""
        with self._lock:
            total_markets = len(self._prices)
        relationships = list(self._relationships.values())
        count = len(relationships)
        threshold = self.config.high_confidence_threshold
        return CovarianceStatistics(
            total_markets=total_markets,
            total_relationships=count,
            high_confidence_relationships=sum(
                1 for r in relationships if r.confidence >= threshold
            ),
            average_correlation=(
                sum(abs(r.correlation) for r in relationships) / count if count else 0.0
            ),
            average_confidence=(
                sum(r.confidence for r in relationships) / count if count else 0.0
            ),
        )


def _is_flat(series: np.ndarray) -> bool:
    """True when every value in the series is identical."""
    return float(np.ptp(series)) == 0.0
