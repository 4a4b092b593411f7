"""
Background sweeps for the cache and the rate limiter.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from resonance.cache import TTLCache
from resonance.logging import get_logger
from resonance.ratelimit import RateLimiter

logger = get_logger(__name__)


class SweepScheduler:
    """Runs ``cache.sweep`` every TTL and ``limiter.sweep`` every window."""

    def __init__(self, cache: TTLCache, limiter: RateLimiter):
        self.cache = cache
        self.limiter = limiter
        self.scheduler = AsyncIOScheduler()

    def _sweep_cache(self) -> None:
        removed = self.cache.sweep()
        if removed:
            logger.debug(f"cache sweep removed {removed} entries")

    def _sweep_visitors(self) -> None:
        removed = self.limiter.sweep()
        if removed:
            logger.debug(f"rate limiter sweep removed {removed} visitors")

    @property
    def running(self) -> bool:
        return self.scheduler.running

    def start(self) -> None:
        """Start both jobs. Must be called from inside a running event loop."""
        self.scheduler.add_job(
            self._sweep_cache,
            trigger=IntervalTrigger(seconds=self.cache.ttl),
            id="cache_sweep",
            replace_existing=True,
        )
        self.scheduler.add_job(
            self._sweep_visitors,
            trigger=IntervalTrigger(seconds=self.limiter.window),
            id="rate_limit_sweep",
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info("Sweep scheduler started")

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Sweep scheduler stopped")
