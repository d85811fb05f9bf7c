"""Position sizing — pure math, no I/O.

Sizes a position from account balance, risk percentage and the distance
between a signal's entry and stop-loss.  Display units follow the asset
class: FX in standard lots, crypto in fractional units, stocks in shares.
"""

import math
from dataclasses import dataclass

from pullscan.strategy.models import AssetClass

FOREX_LOT_UNITS = 100_000


@dataclass(frozen=True)
class PositionSize:
    """Raw unit count plus its asset-class display string."""

    units: float
    display: str


def calculate_position_size(
    balance: float,
    risk_pct: float,
    entry: float,
    stop_loss: float,
    asset_class: AssetClass,
) -> PositionSize:
    """Calculate position size for a setup.

    Formula::

        risk_amount = balance × (risk_pct / 100)
        units       = risk_amount / |entry − stop_loss|

    Args:
        balance: Account balance (e.g. 10_000.0).
        risk_pct: Percentage of balance to risk (e.g. 1.0 for 1 %).
        entry: Setup entry price.
        stop_loss: Setup stop-loss price.
        asset_class: Chooses lots / units / shares for ``display``.

    Raises:
        ValueError: If balance or risk is non-positive, or the stop
            distance is zero.
    """
    if balance <= 0:
        raise ValueError(f"balance must be positive, got {balance}")
    if risk_pct <= 0:
        raise ValueError(f"risk_pct must be positive, got {risk_pct}")
    distance = abs(entry - stop_loss)
    if distance == 0:
        raise ValueError("stop distance must be non-zero")

    units = balance * (risk_pct / 100.0) / distance

    if asset_class == AssetClass.FOREX:
        display = f"{units / FOREX_LOT_UNITS:.2f} Lots"
    elif asset_class == AssetClass.CRYPTO:
        display = f"{units:.4f} Units"
    else:
        display = f"{math.floor(units)} Shares"
    return PositionSize(units=units, display=display)
