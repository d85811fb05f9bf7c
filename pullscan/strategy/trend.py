"""EMA-based trend/pullback classifier.

Implements ``ClassifierProtocol`` from the candles themselves:

- Direction: dual-EMA crossover with price on the trend side of the slow EMA.
- Strength: EMA spread relative to price plus the share of recent closes on
  the trend side of the fast EMA.
- Pullback: the reference level (EMA-20, EMA-50, Fibonacci retracement of the
  recent swing, or prior swing structure) that the last few candles probed
  most closely, provided price closed back on the trend side of it.
"""

from typing import Optional, Sequence

import numpy as np

from pullscan.config import ScanSettings
from pullscan.strategy.base import Classification, draw_trend
from pullscan.strategy.indicators import calculate_ema, swing_range
from pullscan.strategy.models import Candle, PullbackType, TrendDirection


_FIB_LEVELS: tuple[tuple[PullbackType, float], ...] = (
    (PullbackType.FIB_38, 0.382),
    (PullbackType.FIB_50, 0.5),
    (PullbackType.FIB_61, 0.618),
)


class EmaTrendClassifier:
    """Technical-indicator classifier for generated or real series."""

    PULLBACK_LOOKBACK: int = 5
    SWING_LOOKBACK: int = 30
    STRONG_SPREAD_PCT: float = 0.015  # EMA spread that saturates the spread score
    MAX_NEUTRAL_STRENGTH: int = 3

    def __init__(self, settings: Optional[ScanSettings] = None) -> None:
        self._settings = settings or ScanSettings()

    def seed_trend(self, rng: np.random.Generator) -> TrendDirection:
        return draw_trend(
            rng,
            up_above=self._settings.trend_up_above,
            down_below=self._settings.trend_down_below,
        )

    def classify(
        self,
        candles: Sequence[Candle],
        seeded_trend: TrendDirection,
        rng: np.random.Generator,
    ) -> Classification:
        """Classify from price action only; *seeded_trend* and *rng* are unused."""
        s = self._settings
        if len(candles) <= s.ema_slow_period:
            return self._verdict(TrendDirection.NEUTRAL, 0)

        closes = [c.close for c in candles]
        ema_fast = calculate_ema(closes, s.ema_fast_period)
        ema_slow = calculate_ema(closes, s.ema_slow_period)
        ema_f = ema_fast[-1]
        ema_s = ema_slow[-1]
        price = closes[-1]

        if ema_f > ema_s and price > ema_s:
            direction = TrendDirection.UP
        elif ema_f < ema_s and price < ema_s:
            direction = TrendDirection.DOWN
        else:
            direction = TrendDirection.NEUTRAL

        strength = self._strength(closes, ema_fast, direction, price, ema_f, ema_s)
        if direction == TrendDirection.NEUTRAL:
            return self._verdict(direction, min(strength, self.MAX_NEUTRAL_STRENGTH))

        pullback, quality = self._detect_pullback(candles, direction, ema_f, ema_s)
        return self._verdict(direction, strength, pullback, quality)

    # ── Internals ────────────────────────────────────────────────────────

    def _verdict(
        self,
        direction: TrendDirection,
        strength: int,
        pullback: PullbackType = PullbackType.NONE,
        quality: int = 0,
    ) -> Classification:
        return Classification(
            trend_direction=direction,
            trend_strength=strength,
            pullback_type=pullback,
            pullback_quality=quality,
            min_trend_strength=self._settings.min_trend_strength,
        )

    def _strength(
        self,
        closes: list[float],
        ema_fast: list[float],
        direction: TrendDirection,
        price: float,
        ema_f: float,
        ema_s: float,
    ) -> int:
        """Score 0-10 from the EMA spread and how many recent closes sit on the trend side.

        Read off the series, so a directional trend can score below the
        validity threshold; such verdicts come back invalid.
        """
        window = self._settings.ema_fast_period
        spread_pct = abs(ema_f - ema_s) / price
        spread_score = 5.0 * min(1.0, spread_pct / self.STRONG_SPREAD_PCT)

        recent = list(zip(closes[-window:], ema_fast[-window:]))
        if direction == TrendDirection.DOWN:
            on_side = sum(1 for c, e in recent if c < e)
        else:
            on_side = sum(1 for c, e in recent if c > e)
        side_score = 5.0 * on_side / len(recent)

        return max(0, min(10, int(round(spread_score + side_score))))

    def _reference_levels(
        self,
        candles: Sequence[Candle],
        direction: TrendDirection,
        ema_f: float,
        ema_s: float,
    ) -> list[tuple[PullbackType, float]]:
        levels = [(PullbackType.EMA_20, ema_f), (PullbackType.EMA_50, ema_s)]

        swing_high, swing_low = swing_range(candles, self.SWING_LOOKBACK)
        span = swing_high - swing_low
        for label, ratio in _FIB_LEVELS:
            if direction == TrendDirection.UP:
                levels.append((label, swing_high - ratio * span))
            else:
                levels.append((label, swing_low + ratio * span))

        prior = candles[-self.SWING_LOOKBACK:-self.PULLBACK_LOOKBACK]
        if prior:
            prior_high, prior_low = swing_range(prior, len(prior))
            structure = prior_high if direction == TrendDirection.UP else prior_low
            levels.append((PullbackType.STRUCTURE, structure))
        return levels

    def _detect_pullback(
        self,
        candles: Sequence[Candle],
        direction: TrendDirection,
        ema_f: float,
        ema_s: float,
    ) -> tuple[PullbackType, int]:
        recent = candles[-self.PULLBACK_LOOKBACK:]
        price = candles[-1].close
        tolerance = price * self._settings.volatility_pct * 0.5

        if direction == TrendDirection.UP:
            probe = min(c.low for c in recent)
        else:
            probe = max(c.high for c in recent)

        best: Optional[tuple[PullbackType, float]] = None
        for label, level in self._reference_levels(candles, direction, ema_f, ema_s):
            # Price must have closed back on the trend side of the level
            if direction == TrendDirection.UP and price < level:
                continue
            if direction == TrendDirection.DOWN and price > level:
                continue
            distance = abs(probe - level)
            if distance <= tolerance and (best is None or distance < best[1]):
                best = (label, distance)

        if best is None:
            return PullbackType.NONE, 0

        quality = 10 - int(3 * best[1] / tolerance) if tolerance > 0 else 10
        return best[0], max(7, min(10, quality))
