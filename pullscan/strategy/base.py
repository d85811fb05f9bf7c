"""Classifier protocol and shared verdict type.

Defines the interface that all trend/pullback classifiers must implement.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence, runtime_checkable

import numpy as np

from pullscan.strategy.models import Candle, PullbackType, TrendDirection


@dataclass(frozen=True)
class Classification:
    """Trend and pullback verdict for one price series.

    ``min_trend_strength`` is carried along so validity is judged against
    the same threshold the classifier was configured with.
    """

    trend_direction: TrendDirection
    trend_strength: int
    pullback_type: PullbackType
    pullback_quality: int
    min_trend_strength: int = 6

    @property
    def is_valid(self) -> bool:
        return (
            self.trend_direction != TrendDirection.NEUTRAL
            and self.pullback_type != PullbackType.NONE
            and self.trend_strength > self.min_trend_strength
        )


@runtime_checkable
class ClassifierProtocol(Protocol):
    """Interface that all trend/pullback classifiers must satisfy."""

    def seed_trend(self, rng: np.random.Generator) -> TrendDirection:
        """Pick the regime the synthetic series is generated under."""
        ...

    def classify(
        self,
        candles: Sequence[Candle],
        seeded_trend: TrendDirection,
        rng: np.random.Generator,
    ) -> Classification:
        """Return the trend/pullback verdict for *candles*."""
        ...


def draw_trend(
    rng: np.random.Generator,
    up_above: float = 0.6,
    down_below: float = 0.4,
) -> TrendDirection:
    """Partition one uniform draw into UP / NEUTRAL / DOWN bands."""
    u = rng.random()
    if u > up_above:
        return TrendDirection.UP
    if u < down_below:
        return TrendDirection.DOWN
    return TrendDirection.NEUTRAL
