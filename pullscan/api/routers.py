"""Internal API routers — /instruments, /scan, /signals, /position-size endpoints.

No business logic.  Delegates to the scanner, the instrument catalog and the
position sizer, and keeps the most recent scan for read endpoints.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from pullscan.models.catalog import ALL_INSTRUMENTS, parse_instrument
from pullscan.risk.position_sizer import calculate_position_size
from pullscan.scanner.market_scanner import MarketScanner, filter_by_asset_class
from pullscan.strategy.models import AssetClass, Instrument, Signal

logger = logging.getLogger("pullscan")
router = APIRouter()

# ── Shared state (set during app startup) ────────────────────────────────

_scanner: Optional[MarketScanner] = None  # Set via configure_routers()
_instruments: list[Instrument] = list(ALL_INSTRUMENTS)
_last_scan: list[Signal] = []
_last_scan_at: Optional[str] = None


def configure_routers(
    scanner: Optional[MarketScanner] = None,
    instruments: Optional[list[Instrument]] = None,
) -> None:
    """Inject dependencies from the application startup.

    Args:
        scanner: A ``MarketScanner`` instance (default scanner if omitted).
        instruments: Default universe for ``POST /scan`` without a body list.
    """
    global _scanner, _instruments, _last_scan, _last_scan_at  # noqa: PLW0603
    _scanner = scanner
    _instruments = list(instruments) if instruments is not None else list(ALL_INSTRUMENTS)
    _last_scan = []
    _last_scan_at = None


def _get_scanner() -> MarketScanner:
    global _scanner  # noqa: PLW0603
    if _scanner is None:
        _scanner = MarketScanner()
    return _scanner


def _error(errors: list[str], status_code: int = 422) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "errors": errors},
    )


def _parse_asset_class(value: Optional[str]) -> Optional[AssetClass]:
    if value is None or value.upper() == "ALL":
        return None
    return AssetClass.parse(value)


# ── Endpoints ────────────────────────────────────────────────────────────


@router.get("/instruments")
async def get_instruments():
    """Return the default instrument universe."""
    return {"instruments": [i.to_dict() for i in _instruments]}


@router.post("/scan")
async def post_scan(body: Optional[dict] = None):
    """Run a scan and return ranked signals.

    Expects ``{"instruments": [...], "seed": 42, "asset_class": "FOREX"}``;
    every key is optional.
    """
    global _last_scan, _last_scan_at  # noqa: PLW0603
    body = body or {}

    errors: list[str] = []
    instruments = _instruments
    raw_instruments = body.get("instruments")
    if raw_instruments is not None and not isinstance(raw_instruments, list):
        errors.append("instruments must be a list")
    elif raw_instruments is not None:
        instruments = []
        for idx, entry in enumerate(raw_instruments):
            try:
                instruments.append(parse_instrument(entry))
            except (ValueError, AttributeError, TypeError) as exc:
                errors.append(f"instruments[{idx}]: {exc}")

    seed = body.get("seed")
    if seed is not None and (not isinstance(seed, int) or isinstance(seed, bool) or seed < 0):
        errors.append("seed must be a non-negative integer")

    asset_class = None
    try:
        asset_class = _parse_asset_class(body.get("asset_class"))
    except ValueError as exc:
        errors.append(str(exc))

    if errors:
        return _error(errors)

    try:
        signals = await run_in_threadpool(_get_scanner().scan, instruments, seed)
    except ValueError as exc:
        return _error([str(exc)])

    _last_scan = signals
    _last_scan_at = datetime.now(timezone.utc).isoformat()

    shown = filter_by_asset_class(signals, asset_class)
    return {
        "signals": [s.to_dict() for s in shown],
        "count": len(shown),
        "valid_count": sum(1 for s in shown if s.is_valid),
        "scanned_at": _last_scan_at,
    }


@router.get("/signals")
async def get_signals(
    asset_class: Optional[str] = Query(default=None),
    valid_only: bool = Query(default=False),
    include_candles: bool = Query(default=False),
):
    """Return the most recent scan, optionally filtered."""
    try:
        wanted = _parse_asset_class(asset_class)
    except ValueError as exc:
        return _error([str(exc)])

    shown = filter_by_asset_class(_last_scan, wanted)
    if valid_only:
        shown = [s for s in shown if s.is_valid]
    return {
        "signals": [s.to_dict(include_candles=include_candles) for s in shown],
        "count": len(shown),
        "scanned_at": _last_scan_at,
    }


@router.get("/signals/{signal_id:path}")
async def get_signal(signal_id: str):
    """Return one signal from the most recent scan, candles included."""
    for sig in _last_scan:
        if sig.id == signal_id:
            return sig.to_dict()
    return _error([f"Unknown signal: {signal_id}"], status_code=404)


@router.post("/position-size")
async def post_position_size(body: dict):
    """Size a position for a signal from the most recent scan.

    Expects ``{"signal_id": "...", "balance": 10000, "risk_pct": 1.0}``.
    """
    signal_id = body.get("signal_id")
    sig = next((s for s in _last_scan if s.id == signal_id), None)
    if sig is None:
        return _error([f"Unknown signal: {signal_id}"], status_code=404)
    if sig.setup is None:
        return _error([f"Signal {signal_id} has no trade setup"])

    try:
        balance = float(body.get("balance", 10_000.0))
        risk_pct = float(body.get("risk_pct", 1.0))
        size = calculate_position_size(
            balance=balance,
            risk_pct=risk_pct,
            entry=sig.setup.entry,
            stop_loss=sig.setup.stop_loss,
            asset_class=sig.instrument.asset_class,
        )
    except (TypeError, ValueError) as exc:
        return _error([str(exc)])

    return {
        "signal_id": sig.id,
        "units": size.units,
        "display": size.display,
        "risk_amount": round(balance * risk_pct / 100.0, 2),
    }
