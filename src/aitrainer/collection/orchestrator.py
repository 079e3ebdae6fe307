"""Competitor collector — fills a business type up to its target pattern count.

Flow per business type:
    count active patterns → (enough? stop) → generate the shortfall
    → for each competitor, one at a time:
        fetch → analyze → score → stock images → upsert → courtesy delay
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from typing import Awaitable, Callable, Protocol

from aitrainer.analysis.design import analyze_design, score_pattern
from aitrainer.schemas.config import CollectorConfig
from aitrainer.schemas.pattern import (
    BusinessImages,
    CollectionSummary,
    Competitor,
    DesignPatternRecord,
    FetchedSite,
    ItemResult,
    StockImage,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]
"""Called with a short status message as the run advances."""


class PatternStore(Protocol):
    async def count_active(self, business_type: str) -> int: ...
    async def upsert(self, record: DesignPatternRecord) -> int: ...


class CompetitorSource(Protocol):
    async def generate(self, business_type: str, count: int) -> list[Competitor]: ...


class PageFetcher(Protocol):
    async def fetch(self, url: str) -> FetchedSite: ...


class ImageSource(Protocol):
    async def collect(self, business_type: str) -> list[StockImage]: ...


def build_pattern_record(
    business_type: str,
    site: FetchedSite,
    stock_images: list[StockImage],
) -> DesignPatternRecord:
    """Analyze a fetched page and assemble the row to store."""
    analysis = analyze_design(site.html_content, site.css_content)
    scores = score_pattern(business_type, analysis)
    return DesignPatternRecord(
        business_type=business_type,
        source_url=site.url,
        html_content=site.html_content,
        css_content=site.css_content,
        color_palette=analysis.color_palette,
        font_families=analysis.font_families,
        layout_structure=analysis.layout_structure,
        semantic_analysis=analysis.semantic_analysis,
        performance_metrics=analysis.performance_metrics,
        accessibility_score=analysis.accessibility_score,
        design_score=analysis.design_score,
        mobile_responsive=analysis.mobile_responsive,
        confidence_score=scores.confidence_score,
        quality_score=scores.quality_score,
        training_priority=scores.training_priority,
        tags=scores.tags,
        css_themes=scores.css_themes,
        business_images=BusinessImages(
            site_images=site.site_images,
            stock_images=stock_images,
        ),
    )


def _clean_business_type(business_type: str) -> str:
    cleaned = (business_type or "").strip()
    if not cleaned:
        raise ValueError("business_type must not be empty")
    return cleaned


class CompetitorCollector:
    """Coordinates generation, scraping, analysis and storage of competitors.

    Items are processed strictly one after another with a fixed delay
    between site visits. Per-item failures are recorded in the summary and
    never abort the batch; only counting and generation errors propagate.
    """

    def __init__(
        self,
        repository: PatternStore,
        generator: CompetitorSource,
        fetcher: PageFetcher,
        image_collector: ImageSource,
        config: CollectorConfig | None = None,
        *,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        config = config or CollectorConfig()
        self.repository = repository
        self.generator = generator
        self.fetcher = fetcher
        self.image_collector = image_collector
        self.target_competitors = config.target_competitors
        self.request_delay_seconds = config.request_delay_seconds
        self._sleep = sleep
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, business_type: str) -> asyncio.Lock:
        # Serializes check-then-generate for one business type in this process.
        # Entries vanish once no run holds or waits on the lock.
        key = business_type.lower()
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def run(
        self,
        business_type: str,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> CollectionSummary:
        """Top up ``business_type`` to the target number of stored patterns."""
        business_type = _clean_business_type(business_type)

        async with self._lock_for(business_type):
            logger.info("Starting competitor collection for %r", business_type)
            existing = await self.repository.count_active(business_type)

            if existing >= self.target_competitors:
                logger.info("%d patterns already stored for %r, nothing to do", existing, business_type)
                return CollectionSummary(
                    business_type=business_type,
                    existing_count=existing,
                    sufficient=True,
                    message=f"{existing} competitors already stored for {business_type}",
                )

            needed = self.target_competitors - existing
            if on_progress:
                on_progress(f"Generating {needed} competitors")
            competitors = await self.generator.generate(business_type, needed)

            results: list[ItemResult] = []
            for index, competitor in enumerate(competitors):
                if index > 0 and self.request_delay_seconds > 0:
                    await self._sleep(self.request_delay_seconds)
                if on_progress:
                    on_progress(f"[{index + 1}/{len(competitors)}] {competitor.name or competitor.url}")
                results.append(await self._process(business_type, competitor))

        success_count = sum(1 for r in results if r.success)
        logger.info(
            "Collection finished for %r: %d/%d competitors saved",
            business_type, success_count, len(results),
        )
        return CollectionSummary(
            business_type=business_type,
            existing_count=existing,
            requested_count=needed,
            total_processed=len(results),
            success_count=success_count,
            message=f"Saved {success_count} of {len(results)} competitors",
            results=results,
        )

    async def _process(self, business_type: str, competitor: Competitor) -> ItemResult:
        try:
            record = await self._collect_record(business_type, competitor.url)
            saved_id = await self.repository.upsert(record)
        except Exception as exc:
            logger.warning("Competitor %s (%s) failed: %s", competitor.name, competitor.url, exc)
            return ItemResult(
                name=competitor.name,
                url=competitor.url,
                success=False,
                error=str(exc) or type(exc).__name__,
            )
        return ItemResult(name=competitor.name, url=competitor.url, success=True, saved_id=saved_id)

    async def _collect_record(self, business_type: str, url: str) -> DesignPatternRecord:
        site = await self.fetcher.fetch(url)
        stock_images = await self.image_collector.collect(business_type)
        return build_pattern_record(business_type, site, stock_images)

    async def analyze_url(self, business_type: str, url: str) -> DesignPatternRecord:
        """Fetch, analyze and store a single page; errors propagate."""
        business_type = _clean_business_type(business_type)
        record = await self._collect_record(business_type, url)
        record.id = await self.repository.upsert(record)
        return record


def build_collector(
    config: CollectorConfig,
    repository: PatternStore,
    *,
    dry_run: bool = False,
) -> CompetitorCollector:
    """Wire the production generator, fetcher and image source from ``config``."""
    from aitrainer.collection.generator import CompetitorGenerator
    from aitrainer.shared.browser import SiteFetcher
    from aitrainer.shared.stock_photos import StockPhotoCollector

    if dry_run:
        from aitrainer.shared.completion_client import DryRunClient
        client = DryRunClient()
    elif config.openai_api_key:
        from aitrainer.shared.completion_client import CompletionClient
        client = CompletionClient(config.openai_api_key, model=config.openai_model)
    else:
        client = None

    return CompetitorCollector(
        repository,
        CompetitorGenerator(client),
        SiteFetcher(
            timeout_ms=config.navigation_timeout_ms,
            viewport=(config.viewport_width, config.viewport_height),
        ),
        StockPhotoCollector(
            config.unsplash_access_key,
            per_page=config.stock_photos_per_page,
        ),
        config,
    )
