"""
Import pipeline orchestration for Booster.
"""
import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from tqdm import tqdm

from booster.ai import get_provider
from booster.config import Config, config as default_config
from booster.core.affiliate import AffiliateLinker
from booster.core.dedup import Deduplicator, fingerprint
from booster.core.errors import (
    AIProviderUnavailable, ConfigError, FetchError, PersistenceConflict,
    RewriteCancelled, RewriteExhausted,
)
from booster.core.images import ImageResolver
from booster.core.models import (
    ContentItem, FinishedRecord, ImportSummary, ProviderConfig, RewriteStatus,
)
from booster.core.normalizer import Normalizer
from booster.core.rewriter import RewriteEngine, expand_content_locally
from booster.core.store import SQLiteStore
from booster.core.trends import TrendScorer
from booster.fetchers.gateway import Fetcher, HttpApiGateway


class Orchestrator:
    """
    Runs fetch, normalize, dedup, rewrite, image, score and save for every provider.

    Providers run concurrently up to pipeline.max_concurrent_providers; items
    of one provider are processed in order. A failing item or provider is
    logged and skipped, never fatal to the run.
    """
    def __init__(self, store=None, fetcher: Optional[Fetcher] = None,
                 normalizer: Optional[Normalizer] = None,
                 rewrite_engine: Optional[RewriteEngine] = None, rewrite_provider=None,
                 image_resolver: Optional[ImageResolver] = None,
                 trend_scorer: Optional[TrendScorer] = None,
                 affiliate_linker: Optional[AffiliateLinker] = None,
                 config: Optional[Config] = None, logger: Optional[logging.Logger] = None,
                 show_progress: bool = False):
        self.config = config or default_config
        self.logger = logger or logging.getLogger(__name__)
        self.store = store or SQLiteStore(self.config.get('storage.database', 'booster.db'))
        self.fetcher = fetcher or Fetcher(HttpApiGateway(self.config), self.config, self.logger)
        self.normalizer = normalizer or Normalizer(self.config, self.logger)
        self.deduplicator = Deduplicator(self.store, self.logger)
        self.rewrite_engine = rewrite_engine or RewriteEngine(self.config, logger=self.logger)
        self.image_resolver = image_resolver or ImageResolver(config=self.config, logger=self.logger)
        self.trend_scorer = trend_scorer or TrendScorer(self.config)
        self.affiliate_linker = affiliate_linker or AffiliateLinker(self.config)
        self.max_concurrent = max(1, int(self.config.get('pipeline.max_concurrent_providers', 4)))
        self.local_expansion_fallback = bool(self.config.get('rewrite.local_expansion_fallback', True))
        self.show_progress = show_progress
        self._rewrite_provider = rewrite_provider
        self._provider_resolved = rewrite_provider is not None
        self._cancel_event: Optional[asyncio.Event] = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        """Close network sessions held by collaborators."""
        gateway = getattr(self.fetcher, 'gateway', None)
        for component in (gateway, self.image_resolver, self._rewrite_provider):
            close = getattr(component, 'close_session', None)
            if close is not None:
                await close()

    def cancel(self):
        """Stop the running import: pending rewrite waits end and no new items start."""
        if self._cancel_event is not None:
            self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event is not None and self._cancel_event.is_set()

    @property
    def rewrite_provider(self):
        """
        The configured AI provider, built on first use.

        None when the configured provider name is unknown.
        """
        if not self._provider_resolved:
            self._provider_resolved = True
            try:
                self._rewrite_provider = get_provider(config=self.config)
            except ConfigError as e:
                self.logger.error(f"AI rewrite disabled: {e}")
                self._rewrite_provider = None
        return self._rewrite_provider

    def load_providers(self, entries: Optional[Iterable[Any]] = None) -> List[ProviderConfig]:
        """
        Build provider configs, skipping invalid entries.

        Args:
            entries: ProviderConfig objects or dicts; defaults to the providers config list
        """
        if entries is None:
            entries = self.config.get('providers', []) or []

        providers = []
        for entry in entries:
            if isinstance(entry, ProviderConfig):
                providers.append(entry)
                continue
            try:
                providers.append(ProviderConfig.from_dict(entry))
            except ConfigError as e:
                self.logger.warning(f"Skipped provider: {e}")
        return providers

    async def run_import(self, providers: Optional[Iterable[Any]] = None) -> ImportSummary:
        """
        Import content from every provider.

        Args:
            providers: Providers to run; defaults to the providers config list

        Returns:
            ImportSummary with total and per-provider created counts
        """
        summary = ImportSummary()
        provider_list = self.load_providers(providers)
        if not provider_list:
            self.logger.warning("No providers configured.")
            return summary

        self._cancel_event = asyncio.Event()
        semaphore = asyncio.Semaphore(self.max_concurrent)
        for provider in provider_list:
            summary.per_provider.setdefault(provider.key, 0)

        async def import_with_semaphore(provider: ProviderConfig) -> Tuple[ProviderConfig, int]:
            async with semaphore:
                try:
                    return provider, await self.import_provider(provider, summary)
                except Exception as e:
                    self.logger.error(f"Provider {provider.key} failed: {e}", exc_info=True)
                    summary.failed_providers.append(provider.key)
                    return provider, 0

        tasks = [import_with_semaphore(provider) for provider in provider_list]
        for task in tqdm(
            asyncio.as_completed(tasks),
            total=len(tasks),
            desc="Importing providers",
            disable=not self.show_progress
        ):
            provider, created = await task
            summary.per_provider[provider.key] += created
            summary.created += created

        self.logger.info(
            f"Import completed. Imported {summary.created} items "
            f"({summary.duplicates} duplicates skipped)."
        )
        return summary

    async def import_provider(self, provider: ProviderConfig, summary: Optional[ImportSummary] = None) -> int:
        """
        Fetch, normalize and process one provider.

        Returns:
            Number of records created
        """
        summary = summary if summary is not None else ImportSummary()
        try:
            raw = await self.fetcher.fetch(provider)
        except (ConfigError, FetchError) as e:
            self.logger.warning(f"Skipping provider {provider.key}: {type(e).__name__}: {e}")
            summary.failed_providers.append(provider.key)
            return 0

        items = self.normalizer.normalize(raw, provider.content_type)
        if not items:
            self.logger.info(f"Normalization returned no items for {provider.key}")
            return 0

        created = 0
        for item in items:
            if self.cancelled:
                self.logger.warning(f"Import cancelled, stopping provider {provider.key}")
                break
            try:
                record_id = await self.process_item(item, provider)
            except PersistenceConflict:
                self.logger.info(f"Skipped duplicate post on save: '{item.title}'")
                summary.duplicates += 1
                continue
            except RewriteCancelled:
                self.logger.warning(f"Import cancelled during rewrite of '{item.title}'")
                break
            except Exception as e:
                self.logger.error(
                    f"Error creating post from {provider.key}: {e} "
                    f"(title: '{item.title}', url: {item.url})",
                    exc_info=True
                )
                continue

            if record_id is None:
                summary.duplicates += 1
            else:
                created += 1
        return created

    async def process_item(self, item: ContentItem, provider: ProviderConfig) -> Optional[int]:
        """
        Turn one content item into a stored record.

        Returns:
            The stored record id, or None when the item is a duplicate

        Raises:
            PersistenceConflict: another import stored the same fingerprint first
        """
        content_hash = fingerprint(item.title, item.url)
        if self.deduplicator.is_duplicate(content_hash):
            self.logger.info(f"Skipped duplicate post: '{item.title}' (Hash: {content_hash})")
            return None

        rewrite_status = await self.rewrite_item(item, provider)

        item.image = await self.image_resolver.resolve(item)

        keywords = self.trend_scorer.keywords(item.content)
        trend_score = self.trend_scorer.score(keywords)
        tags = self.trend_scorer.tags_for(keywords, trend_score)

        item.content = self.affiliate_linker.process_content(item.content)

        record = FinishedRecord.from_item(item, content_hash, rewrite_status, trend_score, tags, keywords)
        category_id = self.store.create_category_if_missing(item.category)
        record_id = self.store.save(record, category_id)
        self.logger.info(
            f"Created post ID {record_id} - '{item.title}' "
            f"(rewrite: {rewrite_status.value}, trend score: {trend_score}%)"
        )
        return record_id

    async def rewrite_item(self, item: ContentItem, provider: ProviderConfig) -> RewriteStatus:
        """
        Rewrite the item content in place when the provider allows it.

        Returns:
            success, failed (original content kept) or skipped
        """
        if not provider.rewrite_enabled:
            self.logger.info(f"AI rewrite skipped for post: '{item.title}' (disabled in provider config).")
            return RewriteStatus.SKIPPED

        ai_provider = self.rewrite_provider
        try:
            if ai_provider is None:
                raise AIProviderUnavailable("no AI provider configured")
            result = await self.rewrite_engine.rewrite(
                item.content, ai_provider, self._cancel_event, label=item.title
            )
        except AIProviderUnavailable as e:
            self.logger.info(f"AI rewrite skipped for post: '{item.title}' ({e}).")
            if self.local_expansion_fallback:
                item.content = expand_content_locally(item.content)
            return RewriteStatus.SKIPPED
        except RewriteExhausted as e:
            self.logger.warning(
                f"All AI rewrite attempts failed for '{item.title}'; using original content. "
                f"Last error: {e.last_error}"
            )
            return RewriteStatus.FAILED

        item.content = result.text
        return RewriteStatus.SUCCESS

    async def fix_images(self, batch_size: int = 50, dry_run: bool = False) -> Dict[str, int]:
        """
        Re-run page image discovery for stored records that have no image.

        Args:
            batch_size: Records loaded per batch
            dry_run: Report what would change without updating records

        Returns:
            Counts of processed, fixed and unresolved records
        """
        batch_size = batch_size if batch_size > 0 else 50
        counts = {'processed': 0, 'fixed': 0, 'unresolved': 0}
        offset = 0

        while True:
            batch = self.store.records_missing_image(batch_size, offset)
            if not batch:
                break

            fixed_in_batch = 0
            for record in batch:
                counts['processed'] += 1
                image = await self.image_resolver.scrape(record['url'])
                if not image:
                    counts['unresolved'] += 1
                    continue
                if dry_run:
                    self.logger.info(f"[Dry Run] Would set image for record {record['id']}: {image}")
                else:
                    self.store.update_image(record['id'], image)
                    self.logger.info(f"Image set for record {record['id']}: {image}")
                    fixed_in_batch += 1
                counts['fixed'] += 1

            # updated records drop out of the query
            offset += len(batch) - fixed_in_batch

        return counts
