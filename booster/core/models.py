"""
Data models for Booster.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from booster.core.errors import ConfigError


class ContentType(str, Enum):
    NEWS = "news"
    PRODUCT = "product"
    CRYPTO = "crypto"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> "ContentType":
        """Map a configured type name to a ContentType, defaulting to OTHER."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.OTHER


class RewriteStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class AttemptOutcome(str, Enum):
    SUCCESS = "success"
    TOO_SHORT = "too_short"
    EMPTY = "empty"
    ERROR = "error"


_TRUE_STRINGS = {'true', '1', 'on', 'yes'}
_FALSE_STRINGS = {'false', '0', 'off', 'no'}


def coerce_bool(value: Any, default: bool = True) -> bool:
    """
    Interpret a loosely typed flag from a config file or form.

    Args:
        value: bool, number or string such as "yes"/"off"
        default: Returned when the value cannot be interpreted

    Returns:
        The boolean value
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        return default
    if isinstance(value, (int, float)):
        return bool(value)
    return default


@dataclass(frozen=True)
class ProviderConfig:
    """
    One configured content source.
    """
    api_id: str
    endpoint_id: str
    content_type: ContentType = ContentType.NEWS
    rewrite_enabled: bool = True
    args: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def key(self) -> str:
        return f"{self.api_id}/{self.endpoint_id}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProviderConfig":
        """
        Build a provider from a config entry.

        Accepts both the short keys (api, endpoint, type, rewrite) and the
        long ones (api_id, endpoint_id, content_type, rewrite_enabled).

        Raises:
            ConfigError: if the entry is not a mapping or an id is missing
        """
        if not isinstance(data, dict):
            raise ConfigError(f"Provider entry must be a mapping, got {type(data).__name__}")

        api_id = str(data.get('api_id', data.get('api')) or '').strip()
        endpoint_id = str(data.get('endpoint_id', data.get('endpoint')) or '').strip()
        if not api_id or not endpoint_id:
            raise ConfigError(
                f"Missing API ID or Endpoint ID. API: '{api_id}', Endpoint: '{endpoint_id}'"
            )

        args = data.get('args') or {}
        if not isinstance(args, dict):
            raise ConfigError(f"Provider {api_id}/{endpoint_id}: args must be a mapping")

        return cls(
            api_id=api_id,
            endpoint_id=endpoint_id,
            content_type=ContentType.parse(data.get('content_type', data.get('type', 'news'))),
            rewrite_enabled=coerce_bool(data.get('rewrite_enabled', data.get('rewrite')), True),
            args=dict(args),
        )


@dataclass
class ContentItem:
    """
    Canonical content item produced by the normalizer.

    content and image are updated in place by the rewrite and image stages.
    """
    title: str
    content: str
    url: str
    image: Optional[str] = None
    category: str = "Uncategorized"
    provider: str = ""
    post_type: str = "post"
    published_at: Optional[str] = None


@dataclass(frozen=True)
class RewriteAttempt:
    attempt_number: int
    outcome: AttemptOutcome
    wait_before_next_seconds: float = 0.0
    error: Optional[str] = None


@dataclass(frozen=True)
class FinishedRecord:
    """
    A content item ready for persistence.
    """
    title: str
    content: str
    url: str
    image: Optional[str]
    category: str
    provider: str
    post_type: str
    published_at: Optional[str]
    content_hash: str
    rewrite_status: RewriteStatus
    trend_score: int
    tags: Tuple[str, ...] = ()
    keywords: Tuple[str, ...] = ()

    @classmethod
    def from_item(cls, item: ContentItem, content_hash: str, rewrite_status: RewriteStatus,
                  trend_score: int, tags: List[str], keywords: List[str]) -> "FinishedRecord":
        return cls(
            title=item.title,
            content=item.content,
            url=item.url,
            image=item.image,
            category=item.category,
            provider=item.provider,
            post_type=item.post_type,
            published_at=item.published_at,
            content_hash=content_hash,
            rewrite_status=rewrite_status,
            trend_score=trend_score,
            tags=tuple(tags),
            keywords=tuple(keywords),
        )


@dataclass
class ImportSummary:
    """
    Aggregate result of one import run.
    """
    created: int = 0
    per_provider: Dict[str, int] = field(default_factory=dict)
    duplicates: int = 0
    failed_providers: List[str] = field(default_factory=list)
