"""CLI report — prints a ranked scan to the console."""

from typing import Sequence

from pullscan.scanner.market_scanner import best_signal
from pullscan.strategy.models import Signal


def _fmt_price(value: float) -> str:
    return f"{value:,.5f}" if value < 10 else f"{value:,.2f}"


def format_scan_report(signals: Sequence[Signal]) -> str:
    """Render ranked signals as a fixed-width table.

    The reasoning of the best valid signal, if any, follows the table.
    """
    lines = [
        "──────────────────────────── PullScan Results ────────────────────────────",
        f"  {'#':>2}  {'Symbol':<9} {'Class':<6} {'Trend':<7} {'Pullback':<22} "
        f"{'Conf':>4}  {'Execution':<16} {'Entry':>12} {'R:R':>5}",
    ]
    for rank, sig in enumerate(signals, start=1):
        if sig.setup:
            execution = sig.setup.execution_type.value
            entry = _fmt_price(sig.setup.entry)
            rr = f"{sig.setup.rr_ratio:.2f}"
        else:
            execution, entry, rr = "—", "—", "—"
        lines.append(
            f"  {rank:>2}  {sig.instrument.symbol:<9} "
            f"{sig.instrument.asset_class.value:<6} {sig.trend_direction.value:<7} "
            f"{sig.pullback_type.value:<22} {sig.confidence:>4}  "
            f"{execution:<16} {entry:>12} {rr:>5}"
        )

    valid = sum(1 for s in signals if s.is_valid)
    lines.append(f"  {valid} opportunit{'y' if valid == 1 else 'ies'} in {len(signals)} instrument(s)")

    best = best_signal(signals)
    if best is not None:
        lines.append(f"  Best: {best.instrument.symbol} ({best.instrument.name})")
        lines.extend(f"    - {r}" for r in best.reasoning)
    lines.append("─" * 75)
    return "\n".join(lines)


def print_scan_report(signals: Sequence[Signal]) -> str:
    """Format and print the scan report.

    Returns:
        The formatted string (also printed to stdout).
    """
    output = format_scan_report(signals)
    print(output)
    return output
