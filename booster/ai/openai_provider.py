"""
OpenAI chat-completion rewrite provider.
"""
import logging
from typing import Optional

from openai import AsyncOpenAI

from booster.ai.base import RewriteProvider
from booster.config import Config
from booster.core.errors import AIProviderUnavailable
from booster.core.rewriter import build_prompt

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful content editor."


class OpenAIProvider(RewriteProvider):
    """
    Rewrites text with a token-limited chat completion.
    """
    name = "openai"

    def __init__(self, api_key: Optional[str], model: str = "gpt-3.5-turbo",
                 temperature: float = 0.7, max_tokens: int = 1000, timeout: float = 20,
                 client: Optional[AsyncOpenAI] = None):
        self.api_key = api_key or ""
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_config(cls, config: Config) -> "OpenAIProvider":
        return cls(
            api_key=config.get('ai.openai.api_key'),
            model=config.get('ai.openai.model', 'gpt-3.5-turbo'),
            temperature=float(config.get('ai.openai.temperature', 0.7)),
            max_tokens=int(config.get('ai.openai.max_tokens', 1000)),
            timeout=float(config.get('ai.timeout_seconds', 20)),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._client) or (len(self.api_key) >= 30 and self.api_key.startswith('sk-'))

    @property
    def client(self) -> AsyncOpenAI:
        """
        Lazy initialization of the OpenAI client.

        Retries are left to the rewrite engine.
        """
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)
        return self._client

    async def rewrite(self, text: str) -> str:
        if not self.is_configured:
            raise AIProviderUnavailable("OpenAI provider is unconfigured: invalid or missing API key")

        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(text)},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

        if not response.choices:
            logger.warning("Empty choices in OpenAI response")
            return ""
        rewritten = response.choices[0].message.content or ""
        logger.debug(f"Rewritten content length: {len(rewritten)}")
        return rewritten.strip()

    async def close_session(self):
        if self._client is not None:
            await self._client.close()
            self._client = None
