import asyncio

import pytest

from booster.config import Config
from booster.core.errors import (
    AIProviderUnavailable, RewriteCancelled, RewriteExhausted, RewriteProviderError,
)
from booster.core.models import AttemptOutcome
from booster.core.rewriter import (
    EXPAND_PROMPT, REWRITE_PROMPT, RewriteEngine, build_prompt,
    expand_content_locally, is_rate_limited,
)
from booster.utils.text import word_count

from tests.fakes import FakeAIProvider, RecordingSleep, words

ORIGINAL = "x" * 100
GOOD = "y" * 80


class HTTPStatusError(Exception):
    def __init__(self, status_code):
        super().__init__("request failed")
        self.status_code = status_code


class SlowProvider:
    async def rewrite(self, text):
        await asyncio.sleep(1)
        return GOOD


class TestRewriteEngine:

    @pytest.fixture
    def engine(self, config, sleep):
        return RewriteEngine(config, sleep=sleep)

    @pytest.mark.asyncio
    async def test_success_first_attempt(self, engine, sleep):
        provider = FakeAIProvider([GOOD])
        result = await engine.rewrite(ORIGINAL, provider)
        assert result.text == GOOD
        assert [a.outcome for a in result.attempts] == [AttemptOutcome.SUCCESS]
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_always_empty_exhausts_with_backoff(self, engine, sleep):
        provider = FakeAIProvider([""])
        with pytest.raises(RewriteExhausted) as excinfo:
            await engine.rewrite(ORIGINAL, provider)

        attempts = excinfo.value.attempts
        assert len(provider.calls) == 3
        assert [a.attempt_number for a in attempts] == [1, 2, 3]
        assert all(a.outcome is AttemptOutcome.EMPTY for a in attempts)
        assert [a.wait_before_next_seconds for a in attempts] == [1.0, 2.0, 0.0]
        assert sleep.delays == [1.0, 2.0]
        assert excinfo.value.last_error == "AI returned empty content."

    @pytest.mark.asyncio
    async def test_too_short_then_success(self, engine, sleep):
        provider = FakeAIProvider(["short", GOOD])
        result = await engine.rewrite(ORIGINAL, provider)
        assert result.text == GOOD
        assert [a.outcome for a in result.attempts] == [AttemptOutcome.TOO_SHORT, AttemptOutcome.SUCCESS]
        assert sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_exactly_half_length_is_too_short(self, engine):
        provider = FakeAIProvider(["y" * 50, GOOD])
        result = await engine.rewrite(ORIGINAL, provider)
        assert result.attempts[0].outcome is AttemptOutcome.TOO_SHORT

    @pytest.mark.asyncio
    async def test_rate_limit_waits_longer(self, engine, sleep):
        provider = FakeAIProvider([RewriteProviderError("Hugging Face rate limit exceeded (HTTP 429)"), GOOD])
        result = await engine.rewrite(ORIGINAL, provider)
        assert result.text == GOOD
        assert sleep.delays == [2.0]
        assert result.attempts[0].outcome is AttemptOutcome.ERROR

    @pytest.mark.asyncio
    async def test_status_code_rate_limit(self, engine, sleep):
        provider = FakeAIProvider([HTTPStatusError(429), HTTPStatusError(429), GOOD])
        await engine.rewrite(ORIGINAL, provider)
        assert sleep.delays == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_generic_error_retried(self, engine, sleep):
        provider = FakeAIProvider([RuntimeError("boom"), GOOD])
        result = await engine.rewrite(ORIGINAL, provider)
        assert result.attempts[0].error == "boom"
        assert result.attempts[0].wait_before_next_seconds == 1.0
        assert sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_unavailable_provider_propagates(self, engine, sleep):
        provider = FakeAIProvider([AIProviderUnavailable("missing key")])
        with pytest.raises(AIProviderUnavailable):
            await engine.rewrite(ORIGINAL, provider)
        assert len(provider.calls) == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_cancelled_before_first_attempt(self, engine):
        event = asyncio.Event()
        event.set()
        provider = FakeAIProvider([GOOD])
        with pytest.raises(RewriteCancelled):
            await engine.rewrite(ORIGINAL, provider, cancel_event=event)
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_cancel_interrupts_backoff(self, config):
        event = asyncio.Event()

        async def cancelling_sleep(seconds):
            event.set()

        engine = RewriteEngine(config, sleep=cancelling_sleep)
        provider = FakeAIProvider([""])
        with pytest.raises(RewriteCancelled):
            await engine.rewrite(ORIGINAL, provider, cancel_event=event)
        assert len(provider.calls) == 1

    @pytest.mark.asyncio
    async def test_uncancelled_event_waits_normally(self, engine, sleep):
        event = asyncio.Event()
        provider = FakeAIProvider(["", GOOD])
        result = await engine.rewrite(ORIGINAL, provider, cancel_event=event)
        assert result.text == GOOD
        assert sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_timeout_counts_as_error(self):
        config = Config(use_env=False, overrides={
            "ai": {"timeout_seconds": 0.05},
            "rewrite": {"max_attempts": 1},
        })
        engine = RewriteEngine(config, sleep=RecordingSleep())
        with pytest.raises(RewriteExhausted) as excinfo:
            await engine.rewrite(ORIGINAL, SlowProvider())
        attempt = excinfo.value.attempts[0]
        assert attempt.outcome is AttemptOutcome.ERROR
        assert "timed out" in attempt.error
        assert attempt.wait_before_next_seconds == 0.0

    def test_backoff_delay(self, engine):
        assert engine.backoff_delay(1) == 1.0
        assert engine.backoff_delay(2) == 2.0
        assert engine.backoff_delay(1, rate_limited=True) == 2.0
        assert engine.backoff_delay(2, rate_limited=True) == 4.0


class TestRewriteHelpers:

    def test_is_rate_limited(self):
        assert is_rate_limited(RuntimeError("Rate limit reached for requests"))
        assert is_rate_limited(RuntimeError("429 Too Many Requests"))
        assert is_rate_limited(HTTPStatusError(429))
        assert not is_rate_limited(HTTPStatusError(500))
        assert not is_rate_limited(RuntimeError("connection reset"))
        assert not is_rate_limited(RuntimeError("request took 4290ms"))
        assert is_rate_limited(RuntimeError("HTTP 429 returned by upstream"))

    def test_build_prompt(self):
        assert build_prompt(words(10)) == EXPAND_PROMPT + words(10)
        assert build_prompt(words(150)) == REWRITE_PROMPT + words(150)

    def test_expand_content_locally(self):
        short = expand_content_locally("<p>Only a <b>few</b> words.</p>")
        assert "<" not in short
        assert short.startswith("Only a")
        assert word_count(short) > 4

        medium = expand_content_locally(words(60))
        assert medium.endswith("Stay tuned for more detailed coverage and analysis.")

        long_text = words(120)
        assert expand_content_locally(long_text) == long_text
