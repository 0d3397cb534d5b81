"""
Affiliate link injection.
"""
import logging
import re
from typing import List, Optional
from urllib.parse import quote

from booster.config import Config, config as default_config

logger = logging.getLogger(__name__)


class AffiliateLinker:
    """
    Links the first occurrence of each configured keyword to the affiliate base URL.
    """
    def __init__(self, config: Optional[Config] = None, base_url: Optional[str] = None,
                 keywords: Optional[List[str]] = None):
        config = config or default_config
        self.base_url = (base_url if base_url is not None else config.get('affiliate.base_url', '')) or ''
        raw_keywords = keywords if keywords is not None else config.get('affiliate.keywords', [])
        if isinstance(raw_keywords, str):
            raw_keywords = raw_keywords.split(',')
        self.keywords = [k.strip() for k in raw_keywords or [] if k and k.strip()]

    @property
    def enabled(self) -> bool:
        return bool(self.base_url.strip()) and bool(self.keywords)

    def process_content(self, content: str) -> str:
        """
        Add affiliate links to content.

        Args:
            content: The input content

        Returns:
            The content with at most one link per keyword
        """
        if not self.enabled or not content:
            return content

        base_url = self.base_url.strip()
        for keyword in self.keywords:
            pattern = re.compile(r'\b' + re.escape(keyword) + r'\b', re.IGNORECASE)
            href = f"{base_url}?keyword={quote(keyword)}"
            content, count = pattern.subn(
                lambda m: f'<a href="{href}" rel="nofollow sponsored" target="_blank">{m.group(0)}</a>',
                content,
                count=1,
            )
            if count:
                logger.debug(f"Linked affiliate keyword '{keyword}'")
        return content
