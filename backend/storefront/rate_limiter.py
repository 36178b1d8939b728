"""
Simple per-host rate limiter for calls to the spreadsheet API.
"""
import asyncio
from datetime import datetime
from typing import Dict
from dataclasses import dataclass

from storefront.config import settings


@dataclass
class RateLimitConfig:
    """Rate limit configuration for a host."""

    requests_per_second: float = 1.0
    max_concurrent: int = 2


class HostRateLimiter:
    """Rate limiter for a single host."""

    def __init__(self, config: RateLimitConfig) -> None:
        self.config = config
        self.last_request: datetime | None = None
        self.semaphore = asyncio.Semaphore(config.max_concurrent)

    async def acquire(self) -> None:
        """Acquire permission to make a request."""
        await self.semaphore.acquire()

        # Enforce per-second rate limit
        if self.last_request and self.config.requests_per_second > 0:
            time_since_last = (datetime.now() - self.last_request).total_seconds()
            min_interval = 1.0 / self.config.requests_per_second

            if time_since_last < min_interval:
                await asyncio.sleep(min_interval - time_since_last)

        self.last_request = datetime.now()

    def release(self) -> None:
        """Release the semaphore."""
        self.semaphore.release()

    async def __aenter__(self) -> "HostRateLimiter":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.release()


class GlobalRateLimiter:
    """Manages rate limiters for all hosts."""

    def __init__(self) -> None:
        self.limiters: Dict[str, HostRateLimiter] = {}

        # Sheets API read quota is per minute per user; stay well under it
        self.configs: Dict[str, RateLimitConfig] = {
            "sheets.googleapis.com": RateLimitConfig(
                requests_per_second=settings.SHEETS_REQUESTS_PER_SECOND, max_concurrent=2
            ),
            "api.telegram.org": RateLimitConfig(requests_per_second=1.0, max_concurrent=1),
        }

    def get_limiter(self, host: str) -> HostRateLimiter:
        """Get or create rate limiter for host."""
        if host not in self.limiters:
            config = self.configs.get(host, RateLimitConfig())
            self.limiters[host] = HostRateLimiter(config)
        return self.limiters[host]


# Global instance
rate_limiter = GlobalRateLimiter()
