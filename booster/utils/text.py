"""
Text utilities for Booster.
"""
import re
import warnings
from collections import Counter
from typing import List

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning

TRUNCATION_MARKER = re.compile(r'\[\+\d+\s*chars\]')
WORD_PATTERN = re.compile(r"[^\W\d_]+(?:['-][^\W\d_]+)*")
KEYWORD_PATTERN = re.compile(r'\b[^\W\d_]{4,}\b')

STOP_WORDS = {
    'the', 'and', 'with', 'this', 'that', 'for', 'from', 'https', 'about',
    'your', 'you', 'are', 'was', 'will', 'have', 'has', 'just', 'been',
    'they', 'their', 'there', 'them', 'were', 'what', 'when', 'which',
    'would', 'could', 'should', 'said', 'also', 'into', 'more', 'than',
    'then', 'over', 'some', 'such', 'only', 'other', 'after', 'before',
}


def strip_tags(text: str) -> str:
    """Remove markup and return the visible text."""
    if not text:
        return ""
    if '<' not in text:
        return text
    with warnings.catch_warnings():
        warnings.simplefilter('ignore', MarkupResemblesLocatorWarning)
        soup = BeautifulSoup(text, 'html.parser')
    return soup.get_text(separator=' ')


def word_count(text: str) -> int:
    """Count words in markup-free text. Digits do not count as words."""
    if not text:
        return 0
    return len(WORD_PATTERN.findall(strip_tags(text)))


def clean_content(text: str) -> str:
    """Strip API truncation markers such as "[+1234 chars]" and collapse whitespace."""
    if not text:
        return ""
    text = TRUNCATION_MARKER.sub('', text)
    text = re.sub(r'\s+', ' ', text)
    return text.strip()


def extract_keywords(text: str, max_keywords: int = 5) -> List[str]:
    """
    Extract main keywords from text.

    Args:
        text: Text to analyze, markup allowed
        max_keywords: Maximum number of keywords to return

    Returns:
        List of keywords, most frequent first
    """
    if not text:
        return []

    words = KEYWORD_PATTERN.findall(strip_tags(text).lower())
    filtered_words = [w for w in words if w not in STOP_WORDS]

    # Counter keeps first-seen order for equal counts
    return [word for word, _ in Counter(filtered_words).most_common(max_keywords)]
