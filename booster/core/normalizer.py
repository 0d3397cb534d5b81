"""
Normalization of raw API responses into canonical content items.
"""
import logging
import uuid
from typing import Any, Callable, Dict, List, Optional

from booster.config import Config, config as default_config
from booster.core.errors import NormalizationSkip
from booster.core.models import ContentItem, ContentType
from booster.core.record import LooseRecord, find_record_list
from booster.utils.http import is_http_url
from booster.utils.text import clean_content, word_count


CONTINUATION_SENTENCE = "Stay tuned for more updates!"

IMAGE_KEYS_NEWS = ['urlToImage', 'image', 'thumbnail']
IMAGE_KEYS_PRODUCT = ['image', 'urlToImage', 'thumbnail']
IMAGE_KEYS_OTHER = ['image', 'icon', 'urlToImage', 'thumbnail']
PUBLISHED_KEYS = ['publishedAt', 'published_at', 'pubDate', 'date']


def expand_content(title: str, content: str, description: str = '',
                   threshold: int = 100) -> str:
    """
    Pad short wire snippets with the context that is available.

    Content that already has `threshold` words or more is returned unchanged.
    Otherwise the description is appended (unless already contained), the
    title is prefixed in bold if the text is still short, and a generic
    continuation sentence is appended.

    Args:
        title: Item title
        content: Cleaned body text
        description: Item description, may be empty
        threshold: Word count under which expansion applies

    Returns:
        The expanded content
    """
    if word_count(content) >= threshold:
        return content

    description = description.strip()
    if description and description not in content:
        content = f"{content}\n\n{description}" if content else description

    if word_count(content) < threshold and title:
        content = f"<strong>{title}</strong>\n\n{content}"

    return f"{content}\n\n{CONTINUATION_SENTENCE}"


class Normalizer:
    """
    Converts raw responses of unknown shape into ContentItems.
    """
    def __init__(self, config: Optional[Config] = None, logger: Optional[logging.Logger] = None):
        self.config = config or default_config
        self.logger = logger or logging.getLogger(__name__)
        self.expand_below_words = int(self.config.get('normalizer.expand_below_words', 100))
        self.min_words: Dict[str, int] = self.config.get('normalizer.min_words', {}) or {}
        self._parsers: Dict[ContentType, Callable[[Any], List[ContentItem]]] = {
            ContentType.NEWS: self.parse_news,
            ContentType.PRODUCT: self.parse_products,
            ContentType.CRYPTO: self.parse_crypto,
            ContentType.OTHER: self.parse_dynamic,
        }

    def normalize(self, raw: Any, content_type: Any) -> List[ContentItem]:
        """
        Normalize a raw API response.

        Args:
            raw: Decoded JSON response
            content_type: ContentType or its name; unknown names use the dynamic parser

        Returns:
            List of content items; malformed entries are skipped
        """
        if not isinstance(raw, (dict, list)):
            self.logger.warning(f"Cannot normalize response of type {type(raw).__name__}")
            return []

        content_type = ContentType.parse(content_type)
        self.logger.debug(f"Normalizing raw response for type: {content_type.value}")
        items = self._parsers[content_type](raw)
        self.logger.info(f"Parsed {len(items)} valid {content_type.value} items")
        return items

    def _min_words(self, content_type: ContentType) -> int:
        return int(self.min_words.get(content_type.value, 0) or 0)

    def _item_list(self, raw: Any, keys: List[str]) -> List[Any]:
        if isinstance(raw, list):
            return raw
        items = LooseRecord(raw).get_list(keys)
        if items is not None:
            return items
        # a mapping without a known key is treated as the list itself
        return list(raw.values())

    def _each(self, entries: List[Any], build: Callable[[LooseRecord], ContentItem],
              label: str) -> List[ContentItem]:
        results = []
        for index, entry in enumerate(entries):
            try:
                if not isinstance(entry, dict):
                    raise NormalizationSkip(f"entry is a {type(entry).__name__}, not a record")
                results.append(build(LooseRecord(entry)))
            except NormalizationSkip as e:
                self.logger.info(f"Skipped {label} item #{index}: {e}")
        return results

    def _check_length(self, content: str, content_type: ContentType, title: str) -> None:
        minimum = self._min_words(content_type)
        if minimum and word_count(content) < minimum:
            raise NormalizationSkip(f"'{title}': content too short")

    def parse_news(self, raw: Any) -> List[ContentItem]:
        """Normalize a news API response (NewsAPI style articles)."""
        def build(item: LooseRecord) -> ContentItem:
            title = item.get_string('title')
            if not title:
                raise NormalizationSkip("missing title")

            description = clean_content(item.get_string('description'))
            body = clean_content(item.get_string(['content', 'body', 'fullText'])) or description
            self._check_length(body, ContentType.NEWS, title)

            url = item.get_string(['url', 'link'])
            if not url:
                raise NormalizationSkip(f"'{title}': missing URL")
            if not is_http_url(url):
                raise NormalizationSkip(f"'{title}': invalid URL {url}")

            return ContentItem(
                title=title,
                content=expand_content(title, body, description, self.expand_below_words),
                url=url,
                image=item.get_optional(IMAGE_KEYS_NEWS),
                category=item.get_string('category', 'News'),
                provider=item.get_string('source.name', 'newsapi'),
                post_type='post',
                published_at=item.get_optional(PUBLISHED_KEYS),
            )

        return self._each(self._item_list(raw, ['articles', 'news']), build, 'news')

    def parse_products(self, raw: Any) -> List[ContentItem]:
        """Normalize a product listing response."""
        def build(item: LooseRecord) -> ContentItem:
            name = item.get_string('name')
            if not name:
                raise NormalizationSkip("missing name")

            content = clean_content(item.get_string(['description', 'content']))
            self._check_length(content, ContentType.PRODUCT, name)

            return ContentItem(
                title=name,
                content=content,
                url=item.get_string(['affiliate_link', 'url']),
                image=item.get_optional(IMAGE_KEYS_PRODUCT),
                category=item.get_string('category', 'Products'),
                provider='productapi',
                post_type='product',
                published_at=item.get_optional(PUBLISHED_KEYS),
            )

        return self._each(self._item_list(raw, ['items', 'products']), build, 'product')

    def parse_crypto(self, raw: Any) -> List[ContentItem]:
        """Normalize a coin listing response."""
        def build(item: LooseRecord) -> ContentItem:
            name = item.get_string('name')
            symbol = item.get_string('symbol')
            if not name or not symbol:
                raise NormalizationSkip("missing name or symbol")

            title = f"{name} ({symbol.upper()})"
            price = item.get_string(['price_usd', 'price', 'quote.USD.price'], 'N/A')
            content = f"Current price: ${price}"
            self._check_length(content, ContentType.CRYPTO, title)

            return ContentItem(
                title=title,
                content=content,
                url=item.get_string('website'),
                image=item.get_optional(['icon', 'image']),
                category='Crypto',
                provider='coinapi',
                post_type='post',
                published_at=item.get_optional(['last_updated'] + PUBLISHED_KEYS),
            )

        return self._each(self._item_list(raw, ['data']), build, 'crypto')

    def parse_dynamic(self, raw: Any) -> List[ContentItem]:
        """
        Normalize a response of unknown shape.

        The item list is the first list of records found by
        find_record_list(); this is a best-effort fallback, not a schema
        inference engine.
        """
        entries = find_record_list(raw)
        if not entries:
            self.logger.info("No list of records found in dynamic response")
            return []

        def build(item: LooseRecord) -> ContentItem:
            title = item.get_string(['title', 'name'])
            if not title:
                # unique so untitled items do not collide on fingerprint
                title = f"Untitled item {uuid.uuid4().hex[:8]}"

            content = clean_content(item.get_string(['description', 'summary', 'text', 'content']))
            self._check_length(content, ContentType.OTHER, title)

            return ContentItem(
                title=title,
                content=content,
                url=item.get_string(['url', 'link']),
                image=item.get_optional(IMAGE_KEYS_OTHER),
                category=item.get_string('category', 'Uncategorized'),
                provider=item.get_string(['source.name', 'provider']),
                post_type='post',
                published_at=item.get_optional(PUBLISHED_KEYS),
            )

        return self._each(entries, build, 'dynamic')
