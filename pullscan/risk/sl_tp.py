"""Trade setup construction — entry style, stop-loss, targets. Pure math, no I/O.

ATR-multiple approach:
    SL is 1.5 × ATR against the entry.
    TP1 / TP2 / TP3 sit at 2, 3.5 and 5 × ATR in the profit direction.
    R:R is measured to TP2.

The only random input is one uniform draw that picks the execution style.
"""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from pullscan.config import ScanSettings
from pullscan.strategy.models import ExecutionType, TradeDirection, TradeSetup

# Stop distances at or below this fraction of entry count as zero risk
MIN_RISK_FRACTION = 1e-12

_EXECUTION_NOTES: dict[ExecutionType, str] = {
    ExecutionType.BUY_LIMIT: "Pending Buy Limit placed at precise support level.",
    ExecutionType.BUY_STOP: "Buy Stop set above recent consolidation high for confirmation.",
    ExecutionType.SELL_LIMIT: "Pending Sell Limit placed at resistance test.",
    ExecutionType.SELL_STOP: "Sell Stop set below recent consolidation low.",
}

_MARKET_NOTES: dict[TradeDirection, str] = {
    TradeDirection.BUY: "Bullish candlestick rejection detected. Instant execution valid.",
    TradeDirection.SELL: "Bearish momentum shift confirmed. Instant execution valid.",
}


@dataclass
class SetupResult:
    """Outcome of ``build_setup``.

    ``setup`` is ``None`` when the stop distance is degenerate and the
    risk/reward ratio is undefined.
    """

    setup: Optional[TradeSetup]
    reasoning: list[str] = field(default_factory=list)


def atr_proxy(current_price: float, settings: Optional[ScanSettings] = None) -> float:
    """Return the volatility proxy: ``atr_pct`` of *current_price*."""
    s = settings or ScanSettings()
    return current_price * s.atr_pct


def calculate_rr_ratio(
    direction: TradeDirection,
    entry: float,
    stop_loss: float,
    tp2: float,
) -> Optional[float]:
    """Reward-to-risk measured to TP2, rounded to 2 decimals.

    - **Buy**:  ``(tp2 - entry) / (entry - stop_loss)``
    - **Sell**: ``(entry - tp2) / (stop_loss - entry)``

    Returns ``None`` when the stop distance is zero, negative or negligible.
    """
    if direction == TradeDirection.BUY:
        risk = entry - stop_loss
        reward = tp2 - entry
    else:
        risk = stop_loss - entry
        reward = entry - tp2

    if risk <= 0 or risk <= MIN_RISK_FRACTION * abs(entry):
        return None
    return round(reward / risk, 2)


def _select_execution(
    direction: TradeDirection,
    current_price: float,
    draw: float,
    s: ScanSettings,
) -> tuple[ExecutionType, float]:
    """Map a uniform draw onto limit / market / stop bands."""
    up = current_price * (1 + s.entry_offset_pct)
    down = current_price * (1 - s.entry_offset_pct)

    if draw > s.limit_band_above:
        if direction == TradeDirection.BUY:
            return ExecutionType.BUY_LIMIT, down
        return ExecutionType.SELL_LIMIT, up
    if draw < s.stop_band_below:
        if direction == TradeDirection.BUY:
            return ExecutionType.BUY_STOP, up
        return ExecutionType.SELL_STOP, down
    return ExecutionType.MARKET, current_price


def build_setup(
    direction: TradeDirection,
    current_price: float,
    atr: float,
    rng: np.random.Generator,
    settings: Optional[ScanSettings] = None,
) -> SetupResult:
    """Build a trade setup around *current_price*.

    Args:
        direction: ``TradeDirection.BUY`` or ``TradeDirection.SELL``.
        current_price: Latest close.
        atr: Volatility proxy (see ``atr_proxy``).
        rng: Source of the execution-style draw.
        settings: Engine constants (default ``ScanSettings()``).

    Returns:
        ``SetupResult`` with the setup and one or two reasoning lines.
        ``setup`` is ``None`` if the stop distance collapses to zero.

    Raises:
        ValueError: If *direction* is unknown, *current_price* is not
            positive or *atr* is negative.
    """
    if not isinstance(direction, TradeDirection):
        raise ValueError(f"direction must be BUY or SELL, got '{direction}'")
    if not current_price > 0:
        raise ValueError(f"current_price must be positive, got {current_price}")
    if atr < 0:
        raise ValueError(f"atr must not be negative, got {atr}")

    s = settings or ScanSettings()
    execution, entry = _select_execution(direction, current_price, rng.random(), s)

    reasoning: list[str] = []
    if execution == ExecutionType.MARKET:
        reasoning.append(_MARKET_NOTES[direction])
    else:
        reasoning.append(_EXECUTION_NOTES[execution])
        side = "below" if entry < current_price else "above"
        reasoning.append(
            f"Entry {entry:.5g} rests {s.entry_offset_pct * 100:.1f}% "
            f"{side} current price {current_price:.5g}."
        )

    sign = 1.0 if direction == TradeDirection.BUY else -1.0
    stop_loss = entry - sign * s.sl_atr_mult * atr
    tp1 = entry + sign * s.tp1_atr_mult * atr
    tp2 = entry + sign * s.tp2_atr_mult * atr
    tp3 = entry + sign * s.tp3_atr_mult * atr

    rr = calculate_rr_ratio(direction, entry, stop_loss, tp2)
    if rr is None:
        reasoning.append("Stop distance is zero; risk/reward undefined. Setup rejected.")
        return SetupResult(setup=None, reasoning=reasoning)

    setup = TradeSetup(
        direction=direction,
        execution_type=execution,
        entry=entry,
        stop_loss=stop_loss,
        tp1=tp1,
        tp2=tp2,
        tp3=tp3,
        rr_ratio=rr,
    )
    return SetupResult(setup=setup, reasoning=reasoning)
