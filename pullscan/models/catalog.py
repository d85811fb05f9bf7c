"""Instrument catalog.

The built-in universe scanned by default, plus a loader for a custom
universe stored as JSON::

    {"instruments": [{"symbol": "EUR/USD", "name": "Euro / US Dollar",
                      "asset_class": "FOREX"}]}
"""

import json
import pathlib

from pullscan.strategy.models import AssetClass, Instrument


FOREX_PAIRS: list[Instrument] = [
    Instrument("EUR/USD", "Euro / US Dollar", AssetClass.FOREX),
    Instrument("GBP/USD", "British Pound / US Dollar", AssetClass.FOREX),
    Instrument("USD/JPY", "US Dollar / Japanese Yen", AssetClass.FOREX),
    Instrument("USD/CHF", "US Dollar / Swiss Franc", AssetClass.FOREX),
    Instrument("USD/CAD", "US Dollar / Canadian Dollar", AssetClass.FOREX),
    Instrument("AUD/USD", "Australian Dollar / US Dollar", AssetClass.FOREX),
    Instrument("NZD/USD", "New Zealand Dollar / US Dollar", AssetClass.FOREX),
    Instrument("EUR/JPY", "Euro / Japanese Yen", AssetClass.FOREX),
]

CRYPTO_PAIRS: list[Instrument] = [
    Instrument("BTC/USDT", "Bitcoin", AssetClass.CRYPTO),
    Instrument("ETH/USDT", "Ethereum", AssetClass.CRYPTO),
    Instrument("SOL/USDT", "Solana", AssetClass.CRYPTO),
    Instrument("XRP/USDT", "Ripple", AssetClass.CRYPTO),
    Instrument("ADA/USDT", "Cardano", AssetClass.CRYPTO),
]

STOCK_TICKERS: list[Instrument] = [
    Instrument("AAPL", "Apple Inc.", AssetClass.STOCK),
    Instrument("MSFT", "Microsoft Corp.", AssetClass.STOCK),
    Instrument("NVDA", "NVIDIA Corp.", AssetClass.STOCK),
    Instrument("TSLA", "Tesla Inc.", AssetClass.STOCK),
    Instrument("AMZN", "Amazon.com Inc.", AssetClass.STOCK),
]

ALL_INSTRUMENTS: list[Instrument] = [*FOREX_PAIRS, *CRYPTO_PAIRS, *STOCK_TICKERS]


def parse_instrument(entry: dict) -> Instrument:
    """Build an ``Instrument`` from a JSON-style dict.

    Raises ``ValueError`` naming the missing key or bad asset class.
    """
    if not isinstance(entry, dict):
        raise ValueError(f"Instrument entry must be an object, got {type(entry).__name__}")
    missing = [k for k in ("symbol", "name", "asset_class") if not entry.get(k)]
    if missing:
        raise ValueError(f"Instrument entry missing: {', '.join(missing)}")
    return Instrument(
        symbol=str(entry["symbol"]),
        name=str(entry["name"]),
        asset_class=AssetClass.parse(str(entry["asset_class"])),
    )


def load_instruments(path: str | pathlib.Path) -> list[Instrument]:
    """Load an instrument universe from a JSON file."""
    data = json.loads(pathlib.Path(path).read_text(encoding="utf-8"))
    return [parse_instrument(e) for e in data.get("instruments", [])]
