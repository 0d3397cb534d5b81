"""
Image resolution for content items.
"""
import logging
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from booster.config import Config, config as default_config
from booster.core.errors import ImageUnresolved
from booster.core.models import ContentItem
from booster.utils.http import PageFetcher, is_http_url

META_IMAGE_TAGS = ('og:image', 'twitter:image')


def find_page_image(html: str, page_url: str) -> Optional[str]:
    """
    Find a representative image in an HTML page.

    Looks for an Open Graph image, then a Twitter Card image, then the first
    <img> with a src. Relative and protocol-relative URLs are resolved
    against page_url.

    Args:
        html: Page markup
        page_url: URL the page was fetched from

    Returns:
        Absolute image URL, or None
    """
    soup = BeautifulSoup(html, 'html.parser')

    for tag_name in META_IMAGE_TAGS:
        for attr in ('property', 'name'):
            for meta in soup.find_all('meta', attrs={attr: tag_name}):
                content = (meta.get('content') or '').strip()
                if content:
                    return urljoin(page_url, content)

    for img in soup.find_all('img'):
        src = (img.get('src') or '').strip()
        if src and not src.startswith('data:'):
            return urljoin(page_url, src)

    return None


class ImageResolver:
    """
    Picks an image for an item: its own image field first, then the source page.

    Failures of any kind resolve to no image.
    """
    def __init__(self, page_fetcher: Optional[PageFetcher] = None, config: Optional[Config] = None,
                 logger: Optional[logging.Logger] = None):
        config = config or default_config
        self.page_fetcher = page_fetcher or PageFetcher(config)
        self.enabled = bool(config.get('images.enabled', True))
        self.timeout = float(config.get('images.timeout_seconds', 10))
        self.logger = logger or logging.getLogger(__name__)

    async def resolve(self, item: ContentItem) -> Optional[str]:
        """
        Resolve an image URL for the item.

        Args:
            item: The content item

        Returns:
            Image URL or None
        """
        if item.image and item.image.strip():
            return item.image.strip()
        if not self.enabled or not item.url:
            return None
        return await self.scrape(item.url)

    async def scrape(self, url: str) -> Optional[str]:
        """
        Fetch a page and look for an image on it.

        Returns:
            Image URL, or None when the page yields no image
        """
        try:
            image = await self._scrape(url)
        except ImageUnresolved as e:
            self.logger.info(f"No image for {url}: {e}")
            return None
        self.logger.debug(f"Found image for {url}: {image}")
        return image

    async def _scrape(self, url: str) -> str:
        if not is_http_url(url):
            raise ImageUnresolved("invalid URL")

        try:
            status, html = await self.page_fetcher.get_html(url, self.timeout)
        except Exception as e:
            raise ImageUnresolved(f"fetch failed: {e or type(e).__name__}") from e

        if status != 200:
            raise ImageUnresolved(f"HTTP {status}")
        if not html:
            raise ImageUnresolved("empty page content")

        try:
            image = find_page_image(html, url)
        except Exception as e:
            raise ImageUnresolved(f"error parsing page: {e}") from e

        if not image:
            raise ImageUnresolved("no image on page")
        return image

    async def close_session(self):
        await self.page_fetcher.close_session()
