"""PullScan — application configuration.

Loads .env variables into a typed config object.  Engine thresholds live in
``ScanSettings`` so every cutoff is a named, overridable constant.
"""

import os
from dataclasses import dataclass, field, replace
from typing import Optional

from dotenv import load_dotenv

from pullscan.strategy.models import AssetClass


DEFAULT_BASE_PRICES: dict[AssetClass, float] = {
    AssetClass.FOREX: 1.0800,
    AssetClass.CRYPTO: 45000.0,
    AssetClass.STOCK: 150.0,
}


@dataclass(frozen=True)
class ScanSettings:
    """Numeric policy for series generation, classification and setups."""

    # Series generator
    candle_count: int = 100
    volatility_pct: float = 0.005
    trend_bias: float = 0.2
    wick_factor: float = 0.5
    ema_fast_period: int = 20
    ema_slow_period: int = 50

    # Classifier
    trend_up_above: float = 0.6
    trend_down_below: float = 0.4
    min_trend_strength: int = 6  # valid only when strength is strictly above
    pullback_probability_cutoff: float = 0.3
    ema_pullback_cutoff: float = 0.7

    # Setup builder
    limit_band_above: float = 0.6
    stop_band_below: float = 0.2
    entry_offset_pct: float = 0.002
    atr_pct: float = 0.01
    sl_atr_mult: float = 1.5
    tp1_atr_mult: float = 2.0
    tp2_atr_mult: float = 3.5
    tp3_atr_mult: float = 5.0

    base_prices: dict[AssetClass, float] = field(
        default_factory=lambda: dict(DEFAULT_BASE_PRICES)
    )

    def base_price_for(self, asset_class: AssetClass) -> float:
        """Return the reference price used to seed a series for *asset_class*."""
        return self.base_prices[asset_class]


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    classifier: str
    seed: Optional[int]
    max_workers: int
    log_level: str
    api_port: int
    instruments_path: Optional[str]
    settings: ScanSettings = field(default_factory=ScanSettings)


def _int_env(name: str, default: Optional[str]) -> Optional[int]:
    """Parse an integer variable; an unset or empty value falls back to *default*.

    Only a ``None`` default can yield ``None``.
    """
    raw = os.environ.get(name) or default
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'") from None


def _float_env(name: str, default: str) -> float:
    raw = os.environ.get(name) or default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got '{raw}'") from None


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from ``PULLSCAN_*`` environment variables.

    Every variable is optional.  Raises ``ValueError`` naming the variable
    when a value cannot be parsed or is out of range.
    """
    load_dotenv(dotenv_path=env_path)

    max_workers = _int_env("PULLSCAN_MAX_WORKERS", "1")
    if max_workers < 1:
        raise ValueError(
            f"PULLSCAN_MAX_WORKERS must be at least 1, got {max_workers}"
        )

    candle_count = _int_env("PULLSCAN_CANDLE_COUNT", "100")
    if candle_count < 1:
        raise ValueError(
            f"PULLSCAN_CANDLE_COUNT must be positive, got {candle_count}"
        )

    atr_pct = _float_env("PULLSCAN_ATR_PCT", "0.01")
    if atr_pct <= 0:
        raise ValueError(f"PULLSCAN_ATR_PCT must be positive, got {atr_pct}")

    settings = replace(
        ScanSettings(),
        candle_count=candle_count,
        atr_pct=atr_pct,
        min_trend_strength=_int_env("PULLSCAN_MIN_TREND_STRENGTH", "6"),
    )

    return Config(
        classifier=os.environ.get("PULLSCAN_CLASSIFIER") or "randomized",
        seed=_int_env("PULLSCAN_SEED", None),
        max_workers=max_workers,
        log_level=os.environ.get("PULLSCAN_LOG_LEVEL") or "INFO",
        api_port=_int_env("PULLSCAN_API_PORT", "8080"),
        instruments_path=os.environ.get("PULLSCAN_INSTRUMENTS_PATH") or None,
        settings=settings,
    )
