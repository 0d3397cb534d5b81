"""
Booster - Content Ingestion Pipeline

Fetches listings from third-party APIs, normalizes them into canonical
content items, rewrites them through an AI provider, resolves images,
scores them against trending keywords and stores deduplicated records.
"""

__version__ = "0.1.0"
