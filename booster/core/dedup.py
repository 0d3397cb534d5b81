"""
Content fingerprinting and duplicate detection.
"""
import hashlib
import logging
from typing import Optional


def fingerprint(title: str, url: str) -> str:
    """
    Deterministic dedup key for an item.

    Case and surrounding whitespace of either part do not change the result.

    Args:
        title: Item title
        url: Item URL

    Returns:
        Hex md5 digest of the normalized title and URL
    """
    key = f"{(title or '').strip()}{(url or '').strip()}".strip().lower()
    return hashlib.md5(key.encode('utf-8')).hexdigest()


class Deduplicator:
    """
    Checks fingerprints against everything the store has already ingested.
    """
    def __init__(self, store, logger: Optional[logging.Logger] = None):
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    def is_duplicate(self, content_hash: str) -> bool:
        exists = bool(self.store.exists_by_fingerprint(content_hash))
        if exists:
            self.logger.debug(f"Fingerprint {content_hash} already stored")
        return exists
