"""Tests for signal assembly and the market scanner.

Verifies:
- Confidence and reasoning for fixed classifier verdicts
- is_valid ⇔ setup present, including degenerate stops
- Scan cardinality, stable descending ranking, seeded reproducibility
- Per-instrument failure isolation and parallel evaluation
"""

from dataclasses import replace
from datetime import datetime, timezone

import numpy as np
import pytest

from pullscan.config import ScanSettings
from pullscan.models.catalog import ALL_INSTRUMENTS, CRYPTO_PAIRS, FOREX_PAIRS
from pullscan.scanner.assembler import SignalAssembler
from pullscan.scanner.market_scanner import (
    MarketScanner,
    best_signal,
    filter_by_asset_class,
)
from pullscan.strategy.base import Classification
from pullscan.strategy.models import (
    AssetClass,
    Instrument,
    PullbackType,
    Signal,
    TradeDirection,
    TrendDirection,
)
from pullscan.strategy.trend import EmaTrendClassifier

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
EURUSD = Instrument("EUR/USD", "Euro / US Dollar", AssetClass.FOREX)
BTC = Instrument("BTC/USDT", "Bitcoin", AssetClass.CRYPTO)


# ── Helpers ──────────────────────────────────────────────────────────────


class FixedClassifier:
    """Classifier returning a canned verdict regardless of the series."""

    def __init__(self, trend, strength, pullback, quality):
        self.verdict = Classification(trend, strength, pullback, quality)

    def seed_trend(self, rng):
        return self.verdict.trend_direction

    def classify(self, candles, seeded_trend, rng):
        return self.verdict


class RankedAssembler(SignalAssembler):
    """Assembler whose confidence per symbol is fixed by the test."""

    def __init__(self, confidences: dict[str, int]) -> None:
        super().__init__()
        self._confidences = confidences

    def assemble(self, instrument, rng, now=None):
        base = self.failed(instrument, "stub", now)
        return replace(base, confidence=self._confidences[instrument.symbol])


def _assemble(classifier, instrument=EURUSD, settings=None, seed=3) -> Signal:
    assembler = SignalAssembler(classifier=classifier, settings=settings)
    return assembler.assemble(instrument, np.random.default_rng(seed), NOW)


def _instruments(n: int) -> list[Instrument]:
    return [Instrument(f"SYM{i}", f"Symbol {i}", AssetClass.STOCK) for i in range(n)]


# ── Assembler ────────────────────────────────────────────────────────────


class TestSignalAssembler:
    def test_confidence_scenario(self):
        """UP, strength 8, EMA_20 quality 9 → confidence floor(17 / 2) = 8."""
        sig = _assemble(FixedClassifier(TrendDirection.UP, 8, PullbackType.EMA_20, 9))
        assert sig.is_valid
        assert sig.confidence == 8
        assert sig.setup is not None
        assert sig.setup.direction == TradeDirection.BUY
        assert sig.trend_strength == 8
        assert sig.pullback_quality == 9

    def test_forex_series_starts_at_reference_price(self):
        sig = _assemble(FixedClassifier(TrendDirection.UP, 8, PullbackType.EMA_20, 9))
        assert sig.candles[0].open == 1.0800
        assert len(sig.candles) == 100

    def test_downtrend_produces_sell(self):
        sig = _assemble(FixedClassifier(TrendDirection.DOWN, 9, PullbackType.FIB_50, 7))
        assert sig.setup.direction == TradeDirection.SELL
        assert sig.confidence == 8
        s = sig.setup
        assert s.stop_loss > s.entry > s.tp1 > s.tp2 > s.tp3

    def test_setup_priced_from_last_close(self):
        sig = _assemble(FixedClassifier(TrendDirection.UP, 8, PullbackType.EMA_20, 9))
        last = sig.candles[-1].close
        assert sig.setup.entry in (
            pytest.approx(last),
            pytest.approx(last * 0.998),
            pytest.approx(last * 1.002),
        )
        assert sig.setup.entry - sig.setup.stop_loss == pytest.approx(1.5 * last * 0.01)

    def test_valid_reasoning_order(self):
        sig = _assemble(FixedClassifier(TrendDirection.UP, 8, PullbackType.EMA_20, 9))
        assert sig.reasoning[0] == "Higher Timeframe (4H) is in a clear UP trend."
        assert sig.reasoning[1] == "Trend Strength Score: 8/10. Higher highs observed."
        assert sig.reasoning[2] == (
            "Price has pulled back to 20 EMA Dynamic Support, offering a value entry."
        )
        assert 4 <= len(sig.reasoning) <= 5

    def test_neutral_scenario(self):
        sig = _assemble(FixedClassifier(TrendDirection.NEUTRAL, 2, PullbackType.NONE, 0))
        assert sig.pullback_type == PullbackType.NONE
        assert not sig.is_valid
        assert sig.setup is None
        assert sig.confidence == 0
        assert sig.reasoning == ("Market is ranging/choppy. No valid trend identified.",)

    def test_trend_without_pullback(self):
        sig = _assemble(FixedClassifier(TrendDirection.UP, 9, PullbackType.NONE, 0))
        assert not sig.is_valid
        assert sig.confidence == 0
        assert sig.reasoning == (
            "Trend exists, but no valid pullback to value area detected yet.",
        )

    def test_weak_trend_is_invalid(self):
        sig = _assemble(FixedClassifier(TrendDirection.UP, 6, PullbackType.FIB_50, 9))
        assert not sig.is_valid
        assert sig.setup is None

    def test_degenerate_stop_marks_invalid(self):
        settings = replace(ScanSettings(), atr_pct=0.0)
        sig = _assemble(
            FixedClassifier(TrendDirection.UP, 8, PullbackType.EMA_20, 9),
            settings=settings,
        )
        assert not sig.is_valid
        assert sig.setup is None
        assert sig.confidence == 0
        assert "undefined" in sig.reasoning[-1]

    def test_id_and_timestamp(self):
        sig = _assemble(FixedClassifier(TrendDirection.UP, 8, PullbackType.EMA_20, 9))
        assert sig.id == f"EUR/USD-{int(NOW.timestamp() * 1000)}"
        assert sig.timestamp == "2025-03-01T12:00:00.000Z"

    def test_signal_is_immutable(self):
        sig = _assemble(FixedClassifier(TrendDirection.UP, 8, PullbackType.EMA_20, 9))
        with pytest.raises(AttributeError):
            sig.confidence = 0

    def test_setup_presence_invariant_enforced(self):
        sig = _assemble(FixedClassifier(TrendDirection.UP, 8, PullbackType.EMA_20, 9))
        with pytest.raises(ValueError, match="setup must be present"):
            replace(sig, setup=None)

    def test_failed_signal(self):
        sig = SignalAssembler().failed(BTC, "boom", NOW)
        assert not sig.is_valid
        assert sig.setup is None
        assert sig.candles == ()
        assert sig.reasoning == ("Analysis failed: boom",)

    def test_works_with_ema_classifier(self):
        sig = _assemble(EmaTrendClassifier())
        assert sig.is_valid == (sig.setup is not None)


# ── Scanner ──────────────────────────────────────────────────────────────


class TestMarketScanner:
    def test_one_signal_per_instrument(self):
        signals = MarketScanner().scan(ALL_INSTRUMENTS, seed=1, now=NOW)
        assert len(signals) == len(ALL_INSTRUMENTS)
        assert {s.instrument.symbol for s in signals} == {
            i.symbol for i in ALL_INSTRUMENTS
        }

    @pytest.mark.parametrize("seed", range(5))
    def test_sorted_by_confidence(self, seed):
        signals = MarketScanner().scan(ALL_INSTRUMENTS, seed=seed, now=NOW)
        confidences = [s.confidence for s in signals]
        assert confidences == sorted(confidences, reverse=True)

    @pytest.mark.parametrize("seed", range(5))
    def test_validity_matches_setup(self, seed):
        for sig in MarketScanner().scan(ALL_INSTRUMENTS, seed=seed, now=NOW):
            assert sig.is_valid == (sig.setup is not None)
            if not sig.is_valid:
                assert sig.confidence == 0
            else:
                assert 0 <= sig.confidence <= 10
                s = sig.setup
                if s.direction == TradeDirection.BUY:
                    assert s.stop_loss < s.entry < s.tp1 < s.tp2 < s.tp3
                else:
                    assert s.stop_loss > s.entry > s.tp1 > s.tp2 > s.tp3

    def test_stable_ties_keep_input_order(self):
        instruments = _instruments(6)
        confidences = {"SYM0": 5, "SYM1": 8, "SYM2": 5, "SYM3": 8, "SYM4": 0, "SYM5": 5}
        scanner = MarketScanner(assembler=RankedAssembler(confidences))
        order = [s.instrument.symbol for s in scanner.scan(instruments, seed=0)]
        assert order == ["SYM1", "SYM3", "SYM0", "SYM2", "SYM5", "SYM4"]

    def test_seeded_scan_is_reproducible(self):
        a = MarketScanner().scan(ALL_INSTRUMENTS, seed=99, now=NOW)
        b = MarketScanner().scan(ALL_INSTRUMENTS, seed=99, now=NOW)
        assert [s.to_dict() for s in a] == [s.to_dict() for s in b]

    def test_unseeded_scans_keep_shape(self):
        scanner = MarketScanner()
        for _ in range(3):
            signals = scanner.scan(ALL_INSTRUMENTS)
            assert len(signals) == len(ALL_INSTRUMENTS)
            assert all(s.is_valid == (s.setup is not None) for s in signals)

    def test_parallel_matches_sequential(self):
        seq = MarketScanner(max_workers=1).scan(ALL_INSTRUMENTS, seed=5, now=NOW)
        par = MarketScanner(max_workers=4).scan(ALL_INSTRUMENTS, seed=5, now=NOW)
        assert [s.to_dict() for s in seq] == [s.to_dict() for s in par]

    def test_thread_count_does_not_change_series(self):
        seq = MarketScanner().scan(FOREX_PAIRS, seed=8, now=NOW)
        par = MarketScanner(max_workers=3).scan(FOREX_PAIRS, seed=8, now=NOW)
        by_symbol = {s.instrument.symbol: s for s in par}
        for sig in seq:
            assert by_symbol[sig.instrument.symbol].candles == sig.candles

    def test_empty_universe(self):
        assert MarketScanner().scan([], seed=1) == []

    def test_duplicate_symbols_rejected(self):
        with pytest.raises(ValueError, match="EUR/USD"):
            MarketScanner().scan([EURUSD, EURUSD])

    def test_failure_isolated_to_instrument(self):
        settings = replace(
            ScanSettings(),
            base_prices={
                AssetClass.FOREX: -1.0,
                AssetClass.CRYPTO: 45000.0,
                AssetClass.STOCK: 150.0,
            },
        )
        scanner = MarketScanner(assembler=SignalAssembler(settings=settings))
        signals = scanner.scan([*FOREX_PAIRS[:2], *CRYPTO_PAIRS[:2]], seed=4, now=NOW)
        assert len(signals) == 4
        for sig in signals:
            if sig.instrument.asset_class == AssetClass.FOREX:
                assert not sig.is_valid
                assert sig.candles == ()
                assert sig.reasoning[0].startswith("Analysis failed")
            else:
                assert len(sig.candles) == 100

    def test_unexpected_error_isolated_to_instrument(self):
        class BrokenAssembler(SignalAssembler):
            def assemble(self, instrument, rng, now=None):
                if instrument.symbol == "SYM1":
                    raise KeyError("missing base price")
                return super().assemble(instrument, rng, now)

        universe = _instruments(3)
        signals = MarketScanner(assembler=BrokenAssembler()).scan(
            universe, seed=5, now=NOW,
        )
        assert len(signals) == 3
        broken = next(s for s in signals if s.instrument.symbol == "SYM1")
        assert not broken.is_valid
        assert broken.reasoning[0].startswith("Analysis failed")
        others = [s for s in signals if s.instrument.symbol != "SYM1"]
        assert all(len(s.candles) == 100 for s in others)

    def test_unexpected_error_isolated_in_thread_pool(self):
        class BrokenAssembler(SignalAssembler):
            def assemble(self, instrument, rng, now=None):
                if instrument.symbol == "SYM0":
                    raise TypeError("bad candle payload")
                return super().assemble(instrument, rng, now)

        signals = MarketScanner(assembler=BrokenAssembler(), max_workers=3).scan(
            _instruments(4), seed=5, now=NOW,
        )
        assert len(signals) == 4
        assert sum(1 for s in signals if s.candles == ()) == 1

    def test_rejects_zero_workers(self):
        with pytest.raises(ValueError, match="max_workers"):
            MarketScanner(max_workers=0)


class TestScanHelpers:
    def test_filter_by_asset_class(self):
        signals = MarketScanner().scan(ALL_INSTRUMENTS, seed=2, now=NOW)
        crypto = filter_by_asset_class(signals, AssetClass.CRYPTO)
        assert len(crypto) == len(CRYPTO_PAIRS)
        assert filter_by_asset_class(signals, None) == signals

    def test_best_signal_is_first_valid(self):
        signals = MarketScanner().scan(ALL_INSTRUMENTS, seed=2, now=NOW)
        best = best_signal(signals)
        valid = [s for s in signals if s.is_valid]
        assert best is (valid[0] if valid else None)

    def test_best_signal_none_when_all_invalid(self):
        sig = SignalAssembler().failed(BTC, "x", NOW)
        assert best_signal([sig]) is None
