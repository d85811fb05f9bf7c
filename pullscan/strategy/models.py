"""Scan data models — typed, immutable records passed between engine stages."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class AssetClass(str, Enum):
    FOREX = "Forex"
    CRYPTO = "Crypto"
    STOCK = "Stock"

    @classmethod
    def parse(cls, value: str) -> "AssetClass":
        """Accept either the member name (``"FOREX"``) or its value (``"Forex"``)."""
        for member in cls:
            if value.upper() == member.name or value == member.value:
                return member
        raise ValueError(
            f"Unknown asset class '{value}'. "
            f"Available: {', '.join(m.name for m in cls)}"
        )


class TrendDirection(str, Enum):
    UP = "UP"
    DOWN = "DOWN"
    NEUTRAL = "NEUTRAL"


class PullbackType(str, Enum):
    FIB_38 = "38.2% Fib Retracement"
    FIB_50 = "50% Fib Retracement"
    FIB_61 = "61.8% Fib Retracement"
    EMA_20 = "20 EMA Dynamic Support"
    EMA_50 = "50 EMA Dynamic Support"
    STRUCTURE = "Structure Retest"
    NONE = "None"


class ExecutionType(str, Enum):
    MARKET = "Market Execution"
    BUY_LIMIT = "Buy Limit"
    SELL_LIMIT = "Sell Limit"
    BUY_STOP = "Buy Stop"
    SELL_STOP = "Sell Stop"


class TradeDirection(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


@dataclass(frozen=True)
class Instrument:
    """A tradeable symbol from the instrument catalog."""

    symbol: str
    name: str
    asset_class: AssetClass

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "asset_class": self.asset_class.value,
        }


@dataclass(frozen=True)
class Candle:
    """A single hourly candlestick with optional EMA overlays."""

    time: str
    open: float
    high: float
    low: float
    close: float
    ema20: Optional[float] = None
    ema50: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "time": self.time,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "ema20": self.ema20,
            "ema50": self.ema50,
        }


@dataclass(frozen=True)
class TradeSetup:
    """Entry, stop and targets for a valid signal."""

    direction: TradeDirection
    execution_type: ExecutionType
    entry: float
    stop_loss: float
    tp1: float
    tp2: float
    tp3: float
    rr_ratio: float

    def to_dict(self) -> dict:
        return {
            "direction": self.direction.value,
            "execution_type": self.execution_type.value,
            "entry": self.entry,
            "stop_loss": self.stop_loss,
            "tp1": self.tp1,
            "tp2": self.tp2,
            "tp3": self.tp3,
            "rr_ratio": self.rr_ratio,
        }


@dataclass(frozen=True)
class Signal:
    """The scan verdict for one instrument.

    ``setup`` is present if and only if ``is_valid`` is true.
    """

    id: str
    instrument: Instrument
    timestamp: str
    trend_direction: TrendDirection
    trend_strength: int
    pullback_type: PullbackType
    pullback_quality: int
    setup: Optional[TradeSetup]
    confidence: int
    reasoning: tuple[str, ...]
    is_valid: bool
    candles: tuple[Candle, ...]

    def __post_init__(self) -> None:
        if self.is_valid != (self.setup is not None):
            raise ValueError(
                f"Signal {self.id}: setup must be present iff is_valid "
                f"(is_valid={self.is_valid}, setup={self.setup is not None})"
            )

    def to_dict(self, include_candles: bool = True) -> dict:
        data = {
            "id": self.id,
            "instrument": self.instrument.to_dict(),
            "timestamp": self.timestamp,
            "trend_direction": self.trend_direction.value,
            "trend_strength": self.trend_strength,
            "pullback_type": self.pullback_type.value,
            "pullback_quality": self.pullback_quality,
            "setup": self.setup.to_dict() if self.setup else None,
            "confidence": self.confidence,
            "reasoning": list(self.reasoning),
            "is_valid": self.is_valid,
        }
        if include_candles:
            data["candles"] = [c.to_dict() for c in self.candles]
        return data
