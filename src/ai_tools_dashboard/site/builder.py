"""Pre-render every (category, platform, window) combination as static HTML.

Each page runs its own fetch -> normalize -> trend -> render -> write sequence.
At most ``concurrent_builds`` pages are in flight; a failed page is counted and
logged without affecting the others. Only an unreachable store at start-up
aborts the build, before the output directory is touched.
"""

import asyncio
import itertools
import logging
import shutil
import time
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from jinja2 import Environment

from ai_tools_dashboard.config import settings
from ai_tools_dashboard.errors import PageBuildError, TransportError
from ai_tools_dashboard.pipeline.fetcher import ROOT_COLLECTION, FetchCache, RankingFetcher
from ai_tools_dashboard.pipeline.models import PlatformView, TimeWindow
from ai_tools_dashboard.pipeline.service import RankingService
from ai_tools_dashboard.store.base import DocumentStore

from .pages import PAGE_TEMPLATE, file_path, page_context, template_env

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageCombination:
    category: str
    platform: PlatformView
    window: TimeWindow


@dataclass
class BuildStats:
    started_at: float = field(default_factory=time.monotonic)
    pages_generated: int = 0
    errors: int = 0
    cache_hits: int = 0
    duration: float = 0.0
    failed: list[PageCombination] = field(default_factory=list)

    @property
    def pages_per_second(self) -> float:
        return self.pages_generated / self.duration if self.duration else 0.0


def page_combinations(
    categories: list[str], platforms: list[str], windows: list[int]
) -> list[PageCombination]:
    return [
        PageCombination(category, PlatformView.parse(platform), TimeWindow.parse(window))
        for category, platform, window in itertools.product(categories, platforms, windows)
    ]


class StaticSiteBuilder:
    def __init__(
        self,
        store: DocumentStore,
        output_dir: Path | None = None,
        test_mode: bool = False,
        concurrency: int | None = None,
        env: Environment | None = None,
        today: date | None = None,
    ):
        self.store = store
        self.output_dir = Path(output_dir or settings.output_dir)
        self.test_mode = test_mode
        self.concurrency = max(concurrency or settings.concurrent_builds, 1)
        self.env = env or template_env()
        self.today = today
        self.cache = FetchCache()
        self.service = RankingService(RankingFetcher(store, self.cache))
        self.stats = BuildStats()

    @property
    def categories(self) -> list[str]:
        return settings.test_categories if self.test_mode else settings.categories

    def combinations(self) -> list[PageCombination]:
        if self.test_mode:
            return page_combinations(
                settings.test_categories, settings.test_platforms, settings.test_time_windows
            )
        return page_combinations(settings.categories, settings.platforms, settings.time_windows)

    async def check_store(self) -> None:
        """Fail fast when the store is unreachable. Raises TransportError."""
        await self.store.list_documents(ROOT_COLLECTION)

    async def render_page(self, combo: PageCombination) -> str:
        result = await self.service.get_rankings(
            combo.category, combo.platform, combo.window, limit=settings.homepage_limit
        )
        if result.status == "error":
            raise PageBuildError(f"Rankings fetch failed: {result.message}")

        trending = await self.service.get_trending()
        performance = await self.service.get_trend(
            result.items, combo.category, combo.platform, combo.window, today=self.today
        )
        context = page_context(
            combo.category,
            combo.platform,
            combo.window,
            rankings=result.items,
            trending=trending,
            performance=performance,
            categories=self.categories,
            message=result.message,
            today=self.today,
        )
        return self.env.get_template(PAGE_TEMPLATE).render(context)

    async def build_page(self, combo: PageCombination) -> Path:
        html = await self.render_page(combo)
        path = file_path(self.output_dir, combo.category, combo.platform, combo.window)
        await asyncio.to_thread(_write_file, path, html)
        return path

    async def _guarded_build(self, combo: PageCombination, semaphore: asyncio.Semaphore) -> None:
        label = f"{combo.category}/{combo.platform.slug}/{combo.window.value}d"
        async with semaphore:
            try:
                path = await self.build_page(combo)
            except Exception as e:
                self.stats.errors += 1
                self.stats.failed.append(combo)
                logger.error("Error generating page %s: %s", label, e)
                return
        self.stats.pages_generated += 1
        logger.info("Generated %s", path)

    async def build_all(self) -> BuildStats:
        combos = self.combinations()
        logger.info("Generating %d pages (%d at a time)...", len(combos), self.concurrency)
        semaphore = asyncio.Semaphore(self.concurrency)
        await asyncio.gather(*(self._guarded_build(c, semaphore) for c in combos))
        return self.stats

    async def build(self) -> BuildStats:
        self.stats = BuildStats()
        await self.check_store()

        if self.output_dir.exists():
            shutil.rmtree(self.output_dir)
        self.output_dir.mkdir(parents=True)
        logger.info("Cleaned output directory: %s", self.output_dir)

        await self.build_all()
        self.stats.cache_hits = self.cache.hits
        self.stats.duration = time.monotonic() - self.stats.started_at
        log_stats(self.stats)
        return self.stats


def _write_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def log_stats(stats: BuildStats) -> None:
    logger.info(
        "=== Build complete: pages=%d errors=%d cache_hits=%d duration=%.2fs (%.2f pages/s) ===",
        stats.pages_generated, stats.errors, stats.cache_hits, stats.duration, stats.pages_per_second,
    )
    if stats.pages_generated == 0:
        logger.error("Build produced no pages")


async def run_build(
    store: DocumentStore, output_dir: Path | None = None, test_mode: bool = False
) -> BuildStats:
    """Build the site and close the store. TransportError from the start-up probe propagates."""
    try:
        return await StaticSiteBuilder(store, output_dir=output_dir, test_mode=test_mode).build()
    except TransportError as e:
        logger.error("Build failed, store unreachable: %s", e)
        raise
    finally:
        await store.aclose()
