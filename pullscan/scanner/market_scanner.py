"""MarketScanner — runs the signal assembler over an instrument universe.

Every instrument gets its own child generator spawned from one
``SeedSequence``, so a seeded scan reproduces exactly regardless of worker
count or evaluation order.  Instruments share no mutable state and can be
evaluated on a thread pool.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Iterable, Optional

import numpy as np

from pullscan.scanner.assembler import SignalAssembler
from pullscan.strategy.models import AssetClass, Instrument, Signal

logger = logging.getLogger("pullscan.scanner")


class MarketScanner:
    """Ranks pullback signals across a set of instruments.

    Args:
        assembler: Builds each instrument's ``Signal``.
        max_workers: Thread count for per-instrument evaluation.  ``1``
                     evaluates sequentially.
    """

    def __init__(
        self,
        assembler: Optional[SignalAssembler] = None,
        max_workers: int = 1,
    ) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self._assembler = assembler or SignalAssembler()
        self._max_workers = max_workers

    def scan(
        self,
        instruments: Iterable[Instrument],
        seed: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> list[Signal]:
        """Assemble one signal per instrument and rank by confidence.

        The sort is stable: equal confidences keep input order.

        Raises ``ValueError`` if two instruments share a symbol.
        """
        universe = list(instruments)
        symbols = [i.symbol for i in universe]
        duplicates = sorted({s for s in symbols if symbols.count(s) > 1})
        if duplicates:
            raise ValueError(f"Duplicate instrument symbol(s): {', '.join(duplicates)}")

        now = now or datetime.now(timezone.utc)
        children = np.random.SeedSequence(seed).spawn(len(universe))
        jobs = [
            (inst, np.random.default_rng(child))
            for inst, child in zip(universe, children)
        ]

        logger.info("Scanning %d instrument(s) (seed=%s).", len(universe), seed)

        if self._max_workers > 1 and len(jobs) > 1:
            with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
                signals = list(pool.map(lambda job: self._evaluate(*job, now), jobs))
        else:
            signals = [self._evaluate(inst, rng, now) for inst, rng in jobs]

        ranked = sorted(signals, key=lambda sig: sig.confidence, reverse=True)
        logger.info(
            "Scan complete: %d signal(s), %d valid.",
            len(ranked), sum(1 for sig in ranked if sig.is_valid),
        )
        return ranked

    def _evaluate(
        self,
        instrument: Instrument,
        rng: np.random.Generator,
        now: datetime,
    ) -> Signal:
        """Assemble one instrument, converting a failure into an invalid signal."""
        try:
            return self._assembler.assemble(instrument, rng, now)
        except Exception as exc:
            logger.warning("Scan of %s failed: %s", instrument.symbol, exc, exc_info=True)
            return self._assembler.failed(instrument, str(exc), now)


def filter_by_asset_class(
    signals: Iterable[Signal], asset_class: Optional[AssetClass],
) -> list[Signal]:
    """Keep signals for *asset_class*; ``None`` keeps everything."""
    if asset_class is None:
        return list(signals)
    return [s for s in signals if s.instrument.asset_class == asset_class]


def best_signal(signals: Iterable[Signal]) -> Optional[Signal]:
    """Return the first valid signal of a ranked list, or ``None``."""
    return next((s for s in signals if s.is_valid), None)
