"""Randomized trend/pullback classifier.

Implements ``ClassifierProtocol`` with a sampled policy: the verdict is
drawn from the injected generator rather than read off the series.  It is
the default simulation policy; ``EmaTrendClassifier`` in ``trend.py`` reads
the candles instead.
"""

from typing import Optional, Sequence

import numpy as np

from pullscan.config import ScanSettings
from pullscan.strategy.base import Classification, draw_trend
from pullscan.strategy.models import Candle, PullbackType, TrendDirection


class RandomizedClassifier:
    """Sampled trend/pullback policy.

    Flow:
        1. Trend is the seeded regime.
        2. Strength: NEUTRAL → 0–3, directional → 6–9.
        3. Directional only: a draw above ``pullback_probability_cutoff``
           finds a pullback (EMA_20 above ``ema_pullback_cutoff``, else
           FIB_50) with quality 7–9.
    """

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
        s = self._settings
        trend = seeded_trend

        if trend == TrendDirection.NEUTRAL:
            strength = int(rng.integers(0, 4))
        else:
            strength = int(rng.integers(6, 10))

        pullback = PullbackType.NONE
        quality = 0
        if trend != TrendDirection.NEUTRAL:
            p = rng.random()
            if p > s.pullback_probability_cutoff:
                pullback = (
                    PullbackType.EMA_20 if p > s.ema_pullback_cutoff
                    else PullbackType.FIB_50
                )
                quality = int(rng.integers(7, 10))

        return Classification(
            trend_direction=trend,
            trend_strength=strength,
            pullback_type=pullback,
            pullback_quality=quality,
            min_trend_strength=s.min_trend_strength,
        )
