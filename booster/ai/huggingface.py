"""
Hugging Face Inference API rewrite provider.
"""
import logging
from typing import Any, Optional

import aiohttp

from booster.ai.base import RewriteProvider
from booster.config import Config
from booster.core.errors import AIProviderUnavailable, RewriteProviderError
from booster.core.rewriter import build_prompt

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api-inference.huggingface.co/models"


class HuggingFaceProvider(RewriteProvider):
    """
    Rewrites text with a hosted sequence-to-sequence model.
    """
    name = "huggingface"

    def __init__(self, api_key: Optional[str], model: str = "google/flan-t5-large",
                 endpoint: str = DEFAULT_ENDPOINT, max_new_tokens: int = 512,
                 timeout: float = 20):
        self.api_key = api_key or ""
        self.model = model
        self.endpoint = endpoint.rstrip('/')
        self.max_new_tokens = max_new_tokens
        self.timeout = timeout
        self._session = None

    @classmethod
    def from_config(cls, config: Config) -> "HuggingFaceProvider":
        return cls(
            api_key=config.get('ai.huggingface.api_key'),
            model=config.get('ai.huggingface.model', 'google/flan-t5-large'),
            endpoint=config.get('ai.huggingface.endpoint', DEFAULT_ENDPOINT),
            max_new_tokens=int(config.get('ai.huggingface.max_new_tokens', 512)),
            timeout=float(config.get('ai.timeout_seconds', 20)),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def session(self) -> aiohttp.ClientSession:
        """
        Lazy initialization of aiohttp session.
        """
        if self._session is None:
            self._session = aiohttp.ClientSession(
                headers={'Authorization': f'Bearer {self.api_key}'},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self._session

    async def close_session(self):
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def rewrite(self, text: str) -> str:
        if not self.is_configured:
            raise AIProviderUnavailable("Hugging Face provider is unconfigured: missing API key")

        payload = {
            "inputs": build_prompt(text),
            "parameters": {"max_new_tokens": self.max_new_tokens},
            "options": {"wait_for_model": True},
        }
        async with self.session.post(f"{self.endpoint}/{self.model}", json=payload) as response:
            if response.status == 429:
                raise RewriteProviderError("Hugging Face rate limit exceeded (HTTP 429)")
            data = await response.json(content_type=None)
            if response.status >= 400 or (isinstance(data, dict) and data.get('error')):
                message = data.get('error') if isinstance(data, dict) else data
                raise RewriteProviderError(f"Hugging Face error {response.status}: {message}")

        return self._generated_text(data)

    @staticmethod
    def _generated_text(data: Any) -> str:
        if isinstance(data, list) and data:
            data = data[0]
        if isinstance(data, dict):
            value = data.get('generated_text') or data.get('summary_text') or ""
            return str(value).strip()
        return ""
