"""
AI rewrite engine with bounded retries and exponential backoff.
"""
import asyncio
import logging
import re
from typing import Awaitable, Callable, List, NamedTuple, Optional

import async_timeout

from booster.config import Config, config as default_config
from booster.core.errors import AIProviderUnavailable, RewriteCancelled, RewriteExhausted
from booster.core.models import AttemptOutcome, RewriteAttempt
from booster.utils.text import strip_tags, word_count

RATE_LIMIT_MARKERS = ('rate limit', 'rate_limit', 'ratelimit', 'too many requests')
RATE_LIMIT_STATUS = re.compile(r'\b429\b')

EXPAND_PROMPT = (
    "Expand and rewrite the following short content into a full article while "
    "maintaining the core message and adding relevant details: \n\n"
)
REWRITE_PROMPT = (
    "Rewrite the following content to be unique, engaging, and SEO-friendly while "
    "maintaining accuracy and professionalism: \n\n"
)


def build_prompt(content: str, expand_below_words: int = 100) -> str:
    """Pick the expansion prompt for short content and the rewrite prompt otherwise."""
    if word_count(content) < expand_below_words:
        return EXPAND_PROMPT + content
    return REWRITE_PROMPT + content


def expand_content_locally(content: str) -> str:
    """
    Fallback used when no AI provider is available.

    Args:
        content: Original content, markup allowed

    Returns:
        Plain text with a follow-up sentence appended to short content
    """
    content = strip_tags(content).strip()
    words = word_count(content)
    if words < 50:
        content += "\n\nMore information and updates will follow as the story develops."
    elif words < 100:
        content += "\n\nStay tuned for more detailed coverage and analysis."
    return content


def is_rate_limited(error: BaseException) -> bool:
    """Whether a provider error signals rate limiting."""
    if getattr(error, 'status_code', None) == 429 or getattr(error, 'status', None) == 429:
        return True
    message = f"{type(error).__name__} {error}".lower()
    return bool(RATE_LIMIT_STATUS.search(message)) or any(marker in message for marker in RATE_LIMIT_MARKERS)


class RewriteResult(NamedTuple):
    text: str
    attempts: List[RewriteAttempt]


class RewriteEngine:
    """
    Drives a rewrite provider through up to max_attempts attempts.

    An attempt succeeds when the provider returns non-empty text longer than
    min_length_ratio times the original. Failed attempts wait
    backoff_seconds * 2**(attempt - 1) before the next one, rate-limited
    errors wait backoff_seconds * 2**attempt. The delay of every attempt is
    recorded on its RewriteAttempt and awaited through the injected sleep
    coroutine.
    """
    def __init__(self, config: Optional[Config] = None,
                 sleep: Optional[Callable[[float], Awaitable[None]]] = None,
                 logger: Optional[logging.Logger] = None):
        config = config or default_config
        self.max_attempts = max(1, int(config.get('rewrite.max_attempts', 3)))
        self.backoff_seconds = float(config.get('rewrite.backoff_seconds', 1))
        self.min_length_ratio = float(config.get('rewrite.min_length_ratio', 0.5))
        self.timeout = float(config.get('ai.timeout_seconds', 20))
        self._sleep = sleep or asyncio.sleep
        self.logger = logger or logging.getLogger(__name__)

    def backoff_delay(self, attempt: int, rate_limited: bool = False) -> float:
        """
        Delay before the attempt following `attempt` (1-based).
        """
        exponent = attempt if rate_limited else attempt - 1
        return self.backoff_seconds * (2 ** exponent)

    def classify(self, original: str, rewritten: Optional[str]) -> AttemptOutcome:
        if not rewritten or not rewritten.strip():
            return AttemptOutcome.EMPTY
        if len(rewritten) <= len(original) * self.min_length_ratio:
            return AttemptOutcome.TOO_SHORT
        return AttemptOutcome.SUCCESS

    async def rewrite(self, content: str, provider, cancel_event: Optional[asyncio.Event] = None,
                      label: str = '') -> RewriteResult:
        """
        Rewrite content through the provider.

        Args:
            content: Original content
            provider: Object with an async rewrite(text) method
            cancel_event: When set, pending waits are interrupted and no further attempts run
            label: Item title used in log messages

        Returns:
            RewriteResult with the accepted text and every attempt made

        Raises:
            AIProviderUnavailable: the provider is not configured
            RewriteCancelled: cancel_event was set
            RewriteExhausted: no attempt produced acceptable text
        """
        attempts: List[RewriteAttempt] = []
        last_error: Optional[str] = None
        label = label or 'content'

        for attempt in range(1, self.max_attempts + 1):
            self._raise_if_cancelled(cancel_event)
            self.logger.debug(
                f"[ATTEMPT #{attempt}] AI rewrite for '{label}'. Content length: {len(content)}"
            )

            rewritten = None
            error = None
            rate_limited = False
            try:
                async with async_timeout.timeout(self.timeout):
                    rewritten = await provider.rewrite(content)
                outcome = self.classify(content, rewritten)
            except AIProviderUnavailable:
                raise
            except asyncio.TimeoutError:
                outcome = AttemptOutcome.ERROR
                error = f"timed out after {self.timeout:g}s"
            except Exception as e:
                outcome = AttemptOutcome.ERROR
                error = str(e) or type(e).__name__
                rate_limited = is_rate_limited(e)

            if outcome is AttemptOutcome.SUCCESS:
                attempts.append(RewriteAttempt(attempt, outcome))
                self.logger.info(
                    f"[SUCCESS] Content for '{label}' rewritten on attempt {attempt}. "
                    f"New length: {len(rewritten)}"
                )
                return RewriteResult(rewritten, attempts)

            if error is None:
                error = ("AI returned empty content." if outcome is AttemptOutcome.EMPTY
                         else "Rewritten content too short.")
            last_error = error

            wait = self.backoff_delay(attempt, rate_limited) if attempt < self.max_attempts else 0.0
            attempts.append(RewriteAttempt(attempt, outcome, wait, error))
            self.logger.warning(f"AI rewrite for '{label}' attempt {attempt} - {outcome.value}: {error}")

            if wait > 0:
                if rate_limited:
                    self.logger.warning(f"[RATE LIMIT] Backing off for {wait:g}s for '{label}'")
                else:
                    self.logger.info(
                        f"[RETRY] Waiting {wait:g}s before attempt {attempt + 1} for '{label}'"
                    )
                await self._pause(wait, cancel_event)

        raise RewriteExhausted(attempts, last_error)

    async def _pause(self, seconds: float, cancel_event: Optional[asyncio.Event]) -> None:
        if cancel_event is None:
            await self._sleep(seconds)
            return

        sleeper = asyncio.ensure_future(self._sleep(seconds))
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, waiter):
                if not task.done():
                    task.cancel()
        self._raise_if_cancelled(cancel_event)

    @staticmethod
    def _raise_if_cancelled(cancel_event: Optional[asyncio.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise RewriteCancelled("rewrite cancelled with the enclosing batch")
