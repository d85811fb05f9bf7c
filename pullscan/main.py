"""PullScan — application entry point.

Boots the FastAPI internal server and provides the CLI entry point for
one-shot console scans.
"""

import logging

from fastapi import FastAPI

from pullscan.api.routers import router

app = FastAPI(title="PullScan Internal API", version="0.1.0")
app.include_router(router)

logger = logging.getLogger("pullscan")


@app.get("/health")
async def health():
    """Liveness probe."""
    return {"status": "ok"}


# ── CLI ──────────────────────────────────────────────────────────────────


def _run_cli(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and run a console scan or the API server."""
    import argparse

    from pullscan.api.routers import configure_routers
    from pullscan.cli.report import print_scan_report
    from pullscan.config import load_config
    from pullscan.models.catalog import ALL_INSTRUMENTS, load_instruments
    from pullscan.scanner.assembler import SignalAssembler
    from pullscan.scanner.market_scanner import MarketScanner, filter_by_asset_class
    from pullscan.strategy.models import AssetClass
    from pullscan.strategy.registry import CLASSIFIER_REGISTRY, get_classifier

    parser = argparse.ArgumentParser(description="PullScan pullback signal scanner")
    parser.add_argument("--seed", type=int, help="Seed for a reproducible scan")
    parser.add_argument(
        "--asset-class",
        choices=[m.name for m in AssetClass],
        help="Only report this asset class",
    )
    parser.add_argument(
        "--classifier",
        choices=sorted(CLASSIFIER_REGISTRY),
        help="Trend/pullback classifier (default from PULLSCAN_CLASSIFIER)",
    )
    parser.add_argument("--instruments", help="JSON file with a custom universe")
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Run the HTTP API instead of a one-shot scan",
    )
    parser.add_argument("--port", type=int, help="API port (default from PULLSCAN_API_PORT)")
    args = parser.parse_args(argv)

    config = load_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    classifier = get_classifier(args.classifier or config.classifier, config.settings)
    scanner = MarketScanner(
        assembler=SignalAssembler(classifier=classifier, settings=config.settings),
        max_workers=config.max_workers,
    )

    path = args.instruments or config.instruments_path
    instruments = load_instruments(path) if path else list(ALL_INSTRUMENTS)
    logger.info(
        "Loaded %d instrument(s); classifier=%s.",
        len(instruments), type(classifier).__name__,
    )

    if args.serve:
        import uvicorn

        configure_routers(scanner=scanner, instruments=instruments)
        port = args.port or config.api_port
        logger.info("API available at http://localhost:%d", port)
        uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")
        return

    seed = args.seed if args.seed is not None else config.seed
    signals = scanner.scan(instruments, seed=seed)
    wanted = AssetClass[args.asset_class] if args.asset_class else None
    print_scan_report(filter_by_asset_class(signals, wanted))


if __name__ == "__main__":
    _run_cli()
