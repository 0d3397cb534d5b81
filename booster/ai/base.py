"""
Rewrite provider interface.
"""
from abc import ABC, abstractmethod


class RewriteProvider(ABC):
    """
    An opaque text-in, text-out AI service.

    Implementations raise AIProviderUnavailable when they are not configured
    instead of attempting a call.
    """
    name = "base"

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials are present."""

    @abstractmethod
    async def rewrite(self, text: str) -> str:
        """Return the rewritten text."""

    async def close_session(self):
        """Release network resources, if any."""
