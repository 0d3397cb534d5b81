"""
Trend scoring for content items.
"""
from typing import Iterable, List, Optional

from booster.config import Config, config as default_config
from booster.utils.text import extract_keywords


def score(item_keywords: Iterable[str], trending_keywords: Iterable[str]) -> int:
    """
    Percentage of trending keywords present among the item keywords.

    Args:
        item_keywords: Keywords extracted from the item
        trending_keywords: Current trending terms

    Returns:
        Score between 0 and 100
    """
    item_set = {k.strip().lower() for k in item_keywords if k and k.strip()}
    trending_set = {k.strip().lower() for k in trending_keywords if k and k.strip()}
    if not item_set or not trending_set:
        return 0

    matched = item_set & trending_set
    return int(round(min(100.0, len(matched) / len(trending_set) * 100)))


class TrendScorer:
    """
    Scores content against the configured trending keywords and derives tags.
    """
    def __init__(self, config: Optional[Config] = None, trending_keywords: Optional[List[str]] = None):
        config = config or default_config
        self.trending_keywords = list(
            trending_keywords if trending_keywords is not None else config.get('trends.keywords', [])
        )
        self.max_keywords = int(config.get('trends.max_keywords', 5))
        self.threshold = int(config.get('trends.trending_threshold', 60))
        self.trending_tag = config.get('trends.trending_tag', '🔥 Trending')

    def keywords(self, content: str) -> List[str]:
        return extract_keywords(content, self.max_keywords)

    def score(self, item_keywords: Iterable[str]) -> int:
        return score(item_keywords, self.trending_keywords)

    def tags_for(self, item_keywords: List[str], trend_score: int) -> List[str]:
        tags = list(item_keywords)
        if trend_score >= self.threshold:
            tags.append(self.trending_tag)
        return tags
