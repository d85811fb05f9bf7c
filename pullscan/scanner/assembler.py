"""Signal assembly — one immutable ``Signal`` per instrument.

Connects series generation, classification and setup construction.
Classifier decides → assembler prices the setup and writes the reasoning.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

import numpy as np

from pullscan.config import ScanSettings
from pullscan.risk.sl_tp import atr_proxy, build_setup
from pullscan.strategy.base import ClassifierProtocol
from pullscan.strategy.classifier import RandomizedClassifier
from pullscan.strategy.models import (
    Instrument,
    PullbackType,
    Signal,
    TradeDirection,
    TrendDirection,
)
from pullscan.strategy.series import generate_series

logger = logging.getLogger("pullscan.assembler")


def _signal_id(instrument: Instrument, now: datetime) -> str:
    return f"{instrument.symbol}-{int(now.timestamp() * 1000)}"


def _iso(now: datetime) -> str:
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class SignalAssembler:
    """Builds the scan verdict for a single instrument.

    Args:
        classifier: Any ``ClassifierProtocol`` implementation.  Defaults to
            ``RandomizedClassifier``.
        settings: Engine constants shared with the generator and builder.
    """

    def __init__(
        self,
        classifier: Optional[ClassifierProtocol] = None,
        settings: Optional[ScanSettings] = None,
    ) -> None:
        self._settings = settings or ScanSettings()
        self._classifier = classifier or RandomizedClassifier(self._settings)

    @property
    def classifier(self) -> ClassifierProtocol:
        return self._classifier

    def assemble(
        self,
        instrument: Instrument,
        rng: np.random.Generator,
        now: Optional[datetime] = None,
    ) -> Signal:
        """Generate, classify and price one instrument.

        Raises ``InvalidInputError`` if the configured base price or candle
        count is not positive.
        """
        s = self._settings
        now = now or datetime.now(timezone.utc)

        seeded = self._classifier.seed_trend(rng)
        base_price = s.base_price_for(instrument.asset_class)
        candles = generate_series(base_price, s.candle_count, seeded, rng, now, s)
        verdict = self._classifier.classify(candles, seeded, rng)

        trend = verdict.trend_direction
        reasoning: list[str] = []
        setup = None

        if verdict.is_valid:
            reasoning.append(f"Higher Timeframe (4H) is in a clear {trend.value} trend.")
            reasoning.append(
                f"Trend Strength Score: {verdict.trend_strength}/10. Higher "
                f"{'highs' if trend == TrendDirection.UP else 'lows'} observed."
            )
            reasoning.append(
                f"Price has pulled back to {verdict.pullback_type.value}, "
                "offering a value entry."
            )
            direction = (
                TradeDirection.BUY if trend == TrendDirection.UP else TradeDirection.SELL
            )
            current_price = candles[-1].close
            result = build_setup(
                direction, current_price, atr_proxy(current_price, s), rng, s,
            )
            reasoning.extend(result.reasoning)
            setup = result.setup
        elif trend == TrendDirection.NEUTRAL:
            reasoning.append("Market is ranging/choppy. No valid trend identified.")
        else:
            reasoning.append(
                "Trend exists, but no valid pullback to value area detected yet."
            )

        is_valid = setup is not None
        confidence = (
            (verdict.trend_strength + verdict.pullback_quality) // 2 if is_valid else 0
        )

        logger.debug(
            "%s: %s strength=%d pullback=%s valid=%s confidence=%d",
            instrument.symbol, trend.value, verdict.trend_strength,
            verdict.pullback_type.name, is_valid, confidence,
        )

        return Signal(
            id=_signal_id(instrument, now),
            instrument=instrument,
            timestamp=_iso(now),
            trend_direction=trend,
            trend_strength=verdict.trend_strength,
            pullback_type=verdict.pullback_type,
            pullback_quality=verdict.pullback_quality,
            setup=setup,
            confidence=confidence,
            reasoning=tuple(reasoning),
            is_valid=is_valid,
            candles=tuple(candles),
        )

    def failed(
        self,
        instrument: Instrument,
        reason: str,
        now: Optional[datetime] = None,
    ) -> Signal:
        """Return an explicitly invalid signal for an instrument that errored."""
        now = now or datetime.now(timezone.utc)
        return Signal(
            id=_signal_id(instrument, now),
            instrument=instrument,
            timestamp=_iso(now),
            trend_direction=TrendDirection.NEUTRAL,
            trend_strength=0,
            pullback_type=PullbackType.NONE,
            pullback_quality=0,
            setup=None,
            confidence=0,
            reasoning=(f"Analysis failed: {reason}",),
            is_valid=False,
            candles=(),
        )
