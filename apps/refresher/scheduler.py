"""
Refresh Scheduler - Interval and On-Demand Execution

Manages scheduled and manual refresh cycle execution using APScheduler.

Features:
- Interval scheduling (configurable via REFRESH_INTERVAL_SECONDS)
- Immediate first run at startup
- Overlapping triggers skipped (max_instances=1)
- RUN_ONCE mode for a single cycle
- Graceful shutdown handling

Usage:
    # Scheduled mode (default)
    python -m apps.refresher

    # Run once and exit
    RUN_ONCE=true python -m apps.refresher
"""

import asyncio
import logging
import os
import signal
import sys
from datetime import datetime, timezone
from typing import Optional

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from apps.refresher.cache import ensure_cache_dir
from apps.refresher.cycle import RefreshCycle
from apps.refresher.state import LastUpdate
from utils.config import Settings, settings as default_settings
from utils.logging import setup_logging

logger = logging.getLogger(__name__)

JOB_ID = "refresh_job"


class RefreshScheduler:
    """
    Scheduler for periodic or on-demand refresh cycles.

    Handles:
    - APScheduler setup and management
    - Interval-based scheduling with an immediate first run
    - RUN_ONCE immediate execution
    - Signal handling for graceful shutdown
    """

    def __init__(
        self,
        cycle: RefreshCycle,
        settings: Optional[Settings] = None,
        run_once: bool = False,
    ) -> None:
        """
        Initialize scheduler.

        Args:
            cycle: Refresh cycle to trigger
            settings: Application settings, defaults to the global instance
            run_once: If True, run one cycle and exit
        """
        self.cycle = cycle
        self.settings = settings or default_settings
        self.run_once = run_once
        self.scheduler: AsyncIOScheduler | None = None
        self.shutdown_event = asyncio.Event()

        logger.info(
            "RefreshScheduler initialized",
            extra={
                "run_once": run_once,
                "interval_seconds": self.settings.REFRESH_INTERVAL_SECONDS,
            },
        )

    async def execute_cycle(self) -> None:
        """Run one refresh cycle; failures are logged, never raised."""
        try:
            await self.cycle.run()
        except Exception as e:
            logger.error(
                "Refresh cycle crashed",
                extra={"error": str(e)},
                exc_info=True,
            )

    def setup_signal_handlers(self) -> None:
        """Setup handlers for graceful shutdown on SIGINT/SIGTERM."""

        def signal_handler(signum: int, frame: object) -> None:
            logger.info(f"Received signal {signum}, initiating graceful shutdown")
            self.shutdown_event.set()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def start(self) -> None:
        """
        Schedule the refresh job and start APScheduler.

        Must be called from within a running event loop. Returns immediately.
        """
        self.scheduler = AsyncIOScheduler(timezone=timezone.utc)

        trigger = IntervalTrigger(seconds=self.settings.REFRESH_INTERVAL_SECONDS)
        self.scheduler.add_job(
            self.execute_cycle,
            trigger=trigger,
            id=JOB_ID,
            name="Periodic Content Refresh",
            replace_existing=True,
            next_run_time=datetime.now(timezone.utc),
            max_instances=1,
            coalesce=True,
        )

        self.scheduler.start()

        job = self.scheduler.get_job(JOB_ID)
        next_run = getattr(job, "next_run_time", None)
        next_run_str = str(next_run) if next_run is not None else None

        logger.info(
            "Scheduled refresh job",
            extra={
                "interval_seconds": self.settings.REFRESH_INTERVAL_SECONDS,
                "next_run": next_run_str,
            },
        )

    def shutdown(self) -> None:
        """Stop APScheduler if it is running."""
        if self.scheduler and self.scheduler.running:
            logger.info("Shutting down scheduler")
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler shutdown complete")
        self.scheduler = None

    async def serve(self) -> None:
        """
        Start scheduler or execute once.

        In scheduled mode, runs continuously until shutdown signal.
        In RUN_ONCE mode, executes immediately and exits.
        """
        self.setup_signal_handlers()

        if self.run_once:
            logger.info("Running in RUN_ONCE mode")
            await self.execute_cycle()
            return

        logger.info("Running in scheduled mode")
        self.start()
        logger.info("Waiting for jobs...")

        await self.shutdown_event.wait()

        self.shutdown()


def create_client(settings: Settings) -> httpx.AsyncClient:
    """Shared HTTP client for upstream requests."""
    return httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT)


async def main() -> None:
    """Main entry point for the standalone refresher."""
    settings = default_settings
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

    run_once = os.getenv("RUN_ONCE", "false").lower() in ("true", "1", "yes")

    try:
        ensure_cache_dir(settings.CACHE_DIR)
        async with create_client(settings) as client:
            cycle = RefreshCycle(client, LastUpdate(), settings)
            scheduler = RefreshScheduler(cycle, settings, run_once=run_once)
            await scheduler.serve()
    except Exception as e:
        logger.error("Scheduler failed", extra={"error": str(e)}, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
