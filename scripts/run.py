#!/usr/bin/env python3
"""Alerting entrypoint: wires the stack and watches regions until interrupted.

Usage::

    # Run with default config
    python scripts/run.py

    # Custom config file
    python scripts/run.py --config config/settings.yaml

    # Load regions from a saved resources file instead of the server
    python scripts/run.py --regions regions.json --log-level DEBUG
"""

from __future__ import annotations

import argparse
import asyncio
import json
import signal
import sys
from pathlib import Path

import structlog

from bosun.context import AlertingContext, create_alerting_stack
from bosun.core.config import load_settings
from bosun.core.logging import setup_logging
from bosun.feeds.base import FeedStatus
from bosun.regions.exceptions import RegionSourceError

logger = structlog.get_logger(__name__)


async def _refresh_regions(ctx: AlertingContext, interval_secs: float) -> None:
    """Periodically reload region resources from the server."""
    while True:
        await asyncio.sleep(interval_secs)
        try:
            count = await ctx.loader.refresh(ctx.store)
            logger.info("regions_refreshed", count=count)
        except RegionSourceError as exc:
            logger.warning("regions_refresh_failed", error=str(exc))


def _on_position_status(status: FeedStatus) -> None:
    if status == FeedStatus.ERROR:
        logger.warning("position_fix_lost", detail="region alerts paused until fixes resume")
    elif status == FeedStatus.CONNECTED:
        logger.info("position_fix_available")


async def run(args: argparse.Namespace) -> int:
    """Start all components and run until interrupted."""
    settings = load_settings(args.config)
    setup_logging(level=args.log_level)

    ctx = create_alerting_stack(settings)

    # ── Regions ──────────────────────────────────────────────────
    refresher: asyncio.Task[None] | None = None
    if args.regions:
        path = Path(args.regions)
        try:
            payload = json.loads(path.read_text())
        except (OSError, ValueError) as exc:
            print(f"Cannot read regions file {path}: {exc}", file=sys.stderr)
            return 1
        count = ctx.store.ingest(payload)
        logger.info("regions_loaded", source=str(path), count=count)
    else:
        try:
            count = await ctx.loader.refresh(ctx.store)
            logger.info("regions_loaded", source="server", count=count)
        except RegionSourceError as exc:
            logger.warning("regions_initial_load_failed", error=str(exc))
        refresher = asyncio.create_task(
            _refresh_regions(ctx, settings.regions.refresh_interval_secs)
        )

    if ctx.position is None:
        logger.error("position_feed_disabled")
        print(
            "Position feed disabled. Set position.enabled in config/settings.yaml.",
            file=sys.stderr,
        )
        if refresher is not None:
            refresher.cancel()
        await ctx.close()
        return 1

    # ── Start ────────────────────────────────────────────────────
    await ctx.audio.unlock()
    ctx.position.on_status(_on_position_status)
    await ctx.position.start()

    logger.info(
        "alerting_running",
        regions=len(ctx.store),
        enabled=len(ctx.store.enabled()),
        sound=ctx.registry.sound_enabled,
    )

    # ── Wait for shutdown signal ─────────────────────────────────
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("shutdown_signal_received")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows: signal handlers not supported on ProactorEventLoop
            pass

    try:
        await stop_event.wait()
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt")

    # ── Graceful shutdown ────────────────────────────────────────
    logger.info("alerting_shutting_down")
    if refresher is not None:
        refresher.cancel()
    await ctx.close()

    logger.info(
        "alerting_stopped",
        open_alerts=len(ctx.registry),
        suspect_regions=sorted(ctx.regions.suspect_regions),
    )
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Watch vessel position against alert regions and manage alarms.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level override: DEBUG, INFO, WARNING, ERROR",
    )
    parser.add_argument(
        "--regions",
        default=None,
        help="JSON file of region resources to load instead of fetching them",
    )
    args = parser.parse_args()

    code = asyncio.run(run(args))
    sys.exit(code)


if __name__ == "__main__":
    main()
