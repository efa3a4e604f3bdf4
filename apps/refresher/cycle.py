"""
Refresh Cycle - Token then Concurrent Content Fetches

One cycle:
1. Record the start time in the LastUpdate cell
2. Fetch a fresh token (abort the cycle if that fails)
3. Fetch, decode and cache every content type concurrently
4. Report per-type results

A trigger that arrives while a cycle is still running is skipped.
"""

import asyncio
import logging
import time
from typing import Optional, Sequence

import httpx

from apps.refresher.auth import fetch_token
from apps.refresher.content import fetch_and_cache
from apps.refresher.state import LastUpdate
from utils.config import Settings, settings as default_settings
from utils.http import BackoffPolicy, Sleep
from utils.schemas import CONTENT_REQUESTS, ContentRequestSpec, CycleReport

logger = logging.getLogger(__name__)


class RefreshCycle:
    """
    Runs refresh cycles against a shared HTTP client.

    Handles:
    - Overlap guard (one cycle at a time)
    - LastUpdate bookkeeping
    - Token acquisition and concurrent content fetches
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        state: LastUpdate,
        settings: Optional[Settings] = None,
        *,
        requests: Sequence[ContentRequestSpec] = CONTENT_REQUESTS,
        policy: Optional[BackoffPolicy] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.client = client
        self.state = state
        self.settings = settings or default_settings
        self.requests = tuple(requests)
        self.policy = policy or BackoffPolicy(
            max_attempts=self.settings.FETCH_MAX_ATTEMPTS,
            base=self.settings.FETCH_BACKOFF_BASE,
        )
        self.sleep = sleep
        self._running = False
        self._cycle_count = 0

    @property
    def running(self) -> bool:
        return self._running

    async def run(self) -> CycleReport:
        """
        Execute one refresh cycle.

        Returns:
            CycleReport describing the token outcome and per-type results
        """
        if self._running:
            logger.warning("Refresh cycle already in progress, skipping trigger")
            return CycleReport(skipped=True)

        self._running = True
        try:
            return await self._run()
        finally:
            self._running = False

    async def _run(self) -> CycleReport:
        started_at = self.state.mark()
        self._cycle_count += 1
        start_time = time.time()

        logger.info(
            "Starting update cycle at %s",
            started_at.isoformat(),
            extra={"cycle": self._cycle_count},
        )

        try:
            token = await fetch_token(
                self.client, self.settings, policy=self.policy, sleep=self.sleep
            )
        except Exception as e:
            logger.critical(
                "Major update failure: %s",
                str(e),
                extra={"cycle": self._cycle_count},
            )
            return CycleReport(started_at=started_at, token_ok=False, error=str(e))

        results = await asyncio.gather(
            *(
                fetch_and_cache(
                    self.client,
                    request_spec,
                    token,
                    self.settings.CACHE_DIR,
                    self.settings,
                    policy=self.policy,
                    sleep=self.sleep,
                )
                for request_spec in self.requests
            )
        )

        report = CycleReport(started_at=started_at, token_ok=True, results=list(results))

        logger.info(
            "Update cycle finished: succeeded=%d, failed=%d, elapsed=%.3fs",
            len(report.succeeded),
            len(report.failed),
            time.time() - start_time,
            extra={"cycle": self._cycle_count},
        )
        return report
