"""
AI rewrite providers.
"""
from typing import Optional

from booster.ai.base import RewriteProvider
from booster.ai.huggingface import HuggingFaceProvider
from booster.ai.openai_provider import OpenAIProvider
from booster.config import Config, config as default_config
from booster.core.errors import ConfigError

PROVIDERS = {
    OpenAIProvider.name: OpenAIProvider,
    HuggingFaceProvider.name: HuggingFaceProvider,
}


def get_provider(name: Optional[str] = None, config: Optional[Config] = None) -> RewriteProvider:
    """
    Build the rewrite provider selected by name or by ai.provider.

    Raises:
        ConfigError: if the name is not a known provider
    """
    config = config or default_config
    name = (name or config.get('ai.provider', 'huggingface') or '').strip().lower()
    if name not in PROVIDERS:
        raise ConfigError(f"Unknown AI provider: '{name}'")
    return PROVIDERS[name].from_config(config)


__all__ = ['RewriteProvider', 'OpenAIProvider', 'HuggingFaceProvider', 'get_provider']
