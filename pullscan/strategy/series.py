"""Synthetic price series — biased random walk with EMA overlays.

Candles are hourly and stamped backwards from *now*, so the last candle
closes one hour before the scan time.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import numpy as np

from pullscan.config import ScanSettings
from pullscan.errors import InvalidInputError
from pullscan.strategy.indicators import calculate_ema
from pullscan.strategy.models import Candle, TrendDirection


def _iso(ts: datetime) -> str:
    return ts.strftime("%Y-%m-%dT%H:%M:%SZ")


def generate_series(
    base_price: float,
    count: int,
    trend: TrendDirection,
    rng: np.random.Generator,
    now: Optional[datetime] = None,
    settings: Optional[ScanSettings] = None,
) -> list[Candle]:
    """Generate *count* hourly candles starting from *base_price*.

    Each step draws ``change = (u - 0.5) × volatility`` and shifts it by
    ``± trend_bias × volatility`` for UP / DOWN trends.  Wicks extend
    beyond the body by up to ``wick_factor × volatility``.

    EMA values are attached only past the warm-up window: ``ema20`` for
    indices above the fast period, ``ema50`` above the slow period.

    Args:
        base_price: Opening price of the first candle.
        count: Number of candles to produce.
        trend: Regime that biases the walk.
        rng: Source of randomness.  A seeded generator reproduces the series.
        now: Reference time for candle stamps (default: current UTC time).
        settings: Engine constants (default ``ScanSettings()``).

    Raises:
        InvalidInputError: If *base_price* or *count* is not positive.
    """
    if not base_price > 0:
        raise InvalidInputError(f"base_price must be positive, got {base_price}")
    if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
        raise InvalidInputError(f"count must be a positive integer, got {count}")

    s = settings or ScanSettings()
    now = now or datetime.now(timezone.utc)
    volatility = base_price * s.volatility_pct

    bias = 0.0
    if trend == TrendDirection.UP:
        bias = volatility * s.trend_bias
    elif trend == TrendDirection.DOWN:
        bias = -volatility * s.trend_bias

    raw: list[tuple[str, float, float, float, float]] = []
    price = base_price
    for i in range(count):
        change = (rng.random() - 0.5) * volatility + bias
        open_ = price
        close = price + change
        high = max(open_, close) + rng.random() * volatility * s.wick_factor
        low = min(open_, close) - rng.random() * volatility * s.wick_factor
        price = close
        stamp = _iso(now - timedelta(hours=count - i))
        raw.append((stamp, open_, high, low, close))

    closes = [r[4] for r in raw]
    ema_fast = calculate_ema(closes, s.ema_fast_period)
    ema_slow = calculate_ema(closes, s.ema_slow_period)

    return [
        Candle(
            time=stamp,
            open=o,
            high=h,
            low=l,
            close=c,
            ema20=ema_fast[i] if i > s.ema_fast_period else None,
            ema50=ema_slow[i] if i > s.ema_slow_period else None,
        )
        for i, (stamp, o, h, l, c) in enumerate(raw)
    ]
