"""Technical indicators — EMA and swing range. Pure functions, no I/O."""

from typing import Sequence

from pullscan.strategy.models import Candle


def calculate_ema(closes: Sequence[float], period: int) -> list[float]:
    """Calculate an Exponential Moving Average series.

    Uses the standard EMA formula:
        ``EMA_today = close × k + EMA_yesterday × (1 - k)``
    where ``k = 2 / (period + 1)``.

    The running value is seeded with the first close and the formula is
    applied from the first close onward, so the result has the same length
    as *closes*.  Callers decide how much warm-up to discard.

    Raises ``ValueError`` if *period* is not positive or *closes* is empty.
    """
    if period < 1:
        raise ValueError(f"period must be positive, got {period}")
    if not closes:
        raise ValueError("Need at least 1 close for EMA")

    k = 2.0 / (period + 1)
    ema = closes[0]
    values: list[float] = []
    for close in closes:
        ema = close * k + ema * (1 - k)
        values.append(ema)
    return values


def swing_range(candles: Sequence[Candle], lookback: int) -> tuple[float, float]:
    """Return ``(highest high, lowest low)`` over the last *lookback* candles.

    Raises ``ValueError`` if *candles* is empty.
    """
    if not candles:
        raise ValueError("Need at least 1 candle for a swing range")
    window = candles[-lookback:] if lookback > 0 else candles
    return max(c.high for c in window), min(c.low for c in window)
