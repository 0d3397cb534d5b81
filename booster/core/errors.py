"""
Exception hierarchy for the Booster pipeline.

Every recoverable failure in the pipeline is one of these. The orchestrator
catches them at the provider and item seams; none of them aborts a batch.
"""
from typing import List, Optional


class BoosterError(Exception):
    """Base class for all Booster errors."""


class ConfigError(BoosterError):
    """A provider entry or setting is missing required fields."""


class FetchError(BoosterError):
    """Fetching a provider's raw response failed."""

    def __init__(self, message: str, provider: str = ""):
        super().__init__(message)
        self.provider = provider


class GatewayMissing(FetchError):
    """No API gateway is available to perform the call."""


class InvalidShape(FetchError):
    """The gateway answered with an empty or non-container response."""


class Transport(FetchError):
    """The underlying API call failed."""


class NormalizationSkip(BoosterError):
    """A single raw item could not be mapped to a content item."""


class RewriteError(BoosterError):
    """Base class for rewrite failures."""


class AIProviderUnavailable(RewriteError):
    """The AI provider is not configured (for example a missing API key)."""


class RewriteProviderError(RewriteError):
    """The AI provider answered with an error."""


class RewriteCancelled(RewriteError):
    """The enclosing batch was cancelled while a rewrite was in progress."""


class RewriteExhausted(RewriteError):
    """All rewrite attempts failed or returned unusable text."""

    def __init__(self, attempts: List, last_error: Optional[str] = None):
        message = f"rewrite failed after {len(attempts)} attempts"
        if last_error:
            message += f": {last_error}"
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


class ImageUnresolved(BoosterError):
    """No image could be found for an item."""


class PersistenceConflict(BoosterError):
    """A record with the same fingerprint is already stored."""

    def __init__(self, content_hash: str):
        super().__init__(f"record with hash {content_hash} already exists")
        self.content_hash = content_hash
