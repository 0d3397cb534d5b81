"""
HTTP utilities for Booster.
"""
import asyncio
import time
import logging
from collections import defaultdict
from typing import Optional, Tuple
from urllib.parse import urlparse

import aiohttp
import async_timeout
import backoff

from booster.config import Config, config as default_config

# Configure logging
logger = logging.getLogger(__name__)

RATE_LIMIT = 1  # seconds between requests per domain

DEFAULT_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36',
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.5',
    'DNT': '1',
    'Connection': 'keep-alive',
}


def is_http_url(url: Optional[str]) -> bool:
    """Whether url is an absolute http(s) URL with a host."""
    if not url:
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


class RateLimiter:
    """
    Rate limiter to prevent overwhelming source websites with too many requests.
    Includes adaptive backoff for failing domains.
    """
    def __init__(self, rate_limit: float = RATE_LIMIT):
        self.rate_limit = rate_limit
        self.last_requests = defaultdict(lambda: 0.0)
        self.locks = defaultdict(asyncio.Lock)
        self.failure_counts = defaultdict(int)
        self.backoff_times = defaultdict(lambda: float(self.rate_limit))
        self.max_backoff = 60.0  # Maximum backoff in seconds
        self.failure_threshold = 3  # Number of failures before increasing backoff

    async def acquire(self, domain: str):
        """
        Acquire rate limit for a domain with adaptive backoff for failing domains.

        Args:
            domain: The domain to rate limit
        """
        try:
            async with self.locks[domain]:
                now = time.monotonic()
                time_passed = now - self.last_requests[domain]

                # Calculate required wait time
                wait_time = max(self.rate_limit, self.backoff_times[domain]) - time_passed

                if wait_time > 0 and self.last_requests[domain]:
                    logger.debug(f"Rate limiting {domain}, waiting {wait_time:.2f}s")
                    await asyncio.sleep(wait_time)

                self.last_requests[domain] = time.monotonic()
        except asyncio.CancelledError:
            logger.warning(f"Rate limiter acquisition for {domain} was cancelled")
            raise

    def report_success(self, domain: str):
        """
        Report a successful request to a domain.
        This will gradually reduce the backoff time for the domain.

        Args:
            domain: The domain that had a successful request
        """
        self.failure_counts[domain] = 0
        # Gradually reduce backoff time, but never below the base rate limit
        if self.backoff_times[domain] > self.rate_limit:
            self.backoff_times[domain] = max(self.rate_limit, self.backoff_times[domain] * 0.8)

    def report_failure(self, domain: str):
        """
        Report a failed request to a domain.
        This will increase the backoff time for the domain.

        Args:
            domain: The domain that had a failed request
        """
        self.failure_counts[domain] += 1

        # Increase backoff time after reaching threshold
        if self.failure_counts[domain] >= self.failure_threshold:
            self.backoff_times[domain] = min(self.max_backoff, max(1.0, self.backoff_times[domain]) * 2.0)
            logger.warning(
                f"Increased backoff for {domain} to {self.backoff_times[domain]:.2f}s "
                f"after {self.failure_counts[domain]} failures"
            )


class PageFetcher:
    """
    Fetches HTML pages for image discovery.
    """
    def __init__(self, config: Optional[Config] = None, rate_limiter: Optional[RateLimiter] = None):
        config = config or default_config
        self.default_timeout = float(config.get('images.timeout_seconds', 10))
        self.rate_limiter = rate_limiter or RateLimiter(
            float(config.get('rate_limiting.min_interval_seconds', RATE_LIMIT))
        )
        self._session = None

    @property
    def session(self):
        """
        Lazy initialization of aiohttp session.

        Returns:
            aiohttp.ClientSession: The HTTP session
        """
        if self._session is None:
            self._session = aiohttp.ClientSession(headers=DEFAULT_HEADERS)
        return self._session

    async def close_session(self):
        """Close aiohttp session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    @backoff.on_exception(
        backoff.expo,
        aiohttp.ClientConnectionError,
        max_tries=2
    )
    async def get_html(self, url: str, timeout: Optional[float] = None) -> Tuple[int, str]:
        """
        Fetch a page with rate limiting and timeout.

        Args:
            url: The URL to fetch
            timeout: Seconds before giving up, defaults to images.timeout_seconds

        Returns:
            Tuple of (status code, body)

        Raises:
            aiohttp.ClientError, asyncio.TimeoutError: on transport failure
        """
        domain = urlparse(url).netloc
        await self.rate_limiter.acquire(domain)

        try:
            async with async_timeout.timeout(timeout or self.default_timeout):
                async with self.session.get(url) as response:
                    body = await response.text(errors='replace')
                    if response.status == 200:
                        self.rate_limiter.report_success(domain)
                    else:
                        self.rate_limiter.report_failure(domain)
                    return response.status, body
        except (aiohttp.ClientError, asyncio.TimeoutError):
            self.rate_limiter.report_failure(domain)
            raise
