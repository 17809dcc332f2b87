import logging
from datetime import date

from ai_tools_dashboard.config import settings
from ai_tools_dashboard.errors import ConfigurationError, NotFoundError, TransportError

from .fetcher import CategoryInfo, RankingFetcher
from .models import PlatformView, RankedItem, RankingResult, TimeWindow, TrendDataset
from .normalizer import extract_trending, normalize
from .timeseries import TrendAssembler

logger = logging.getLogger(__name__)


class RankingService:
    """Fetch -> normalize for the dashboard. Never raises for missing or bad input."""

    def __init__(self, fetcher: RankingFetcher):
        self.fetcher = fetcher
        self.trends = TrendAssembler(fetcher)

    async def get_rankings(
        self,
        category: str,
        platform: PlatformView | str,
        window: TimeWindow | int | str,
        limit: int | None = None,
    ) -> RankingResult:
        try:
            platform = PlatformView.parse(platform)
            window = TimeWindow.parse(window)
        except ConfigurationError as e:
            return RankingResult(status="no_data", message=str(e))

        try:
            snapshot = await self.fetcher.fetch_window(category, platform, window)
        except TransportError as e:
            logger.warning("Rankings unavailable for %s/%s/%dd: %s", category, platform.value, window.value, e)
            return RankingResult(status="error", message="Failed to load data")

        try:
            data = snapshot.require_data()
        except NotFoundError as e:
            logger.warning("No ranking data for %s/%s/%dd (%s)", category, platform.value, window.value, e)
            return RankingResult(status="not_found", message="No data available")

        items = normalize(data, platform, source_category=category, limit=limit)
        if not items:
            return RankingResult(status="ok", message="No data available")
        return RankingResult(items=items)

    async def get_trend(
        self,
        items: list[RankedItem],
        category: str,
        platform: PlatformView | str,
        window: TimeWindow | int | str,
        top_k: int | None = None,
        today: date | None = None,
    ) -> TrendDataset:
        try:
            return await self.trends.assemble(
                items, category, platform, window,
                top_k=top_k if top_k is not None else settings.chart_top_k,
                today=today,
            )
        except ConfigurationError:
            return TrendDataset()

    async def get_trending(self, limit: int | None = None) -> list[RankedItem]:
        try:
            snapshot = await self.fetcher.fetch_trending()
        except TransportError as e:
            logger.warning("Trending data unavailable: %s", e)
            return []
        if not snapshot.exists:
            logger.warning("PH trending data not found")
            return []
        return extract_trending(snapshot.data, limit=limit if limit is not None else settings.trending_limit)

    async def get_categories(self) -> list[CategoryInfo]:
        try:
            return await self.fetcher.list_categories()
        except TransportError as e:
            logger.warning("Category list unavailable: %s", e)
            return []
