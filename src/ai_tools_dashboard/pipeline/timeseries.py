"""Chart series for the top ranked items, built from per-day snapshots."""

import asyncio
import calendar
import logging
from datetime import date, timedelta

from ai_tools_dashboard.errors import TransportError

from .fetcher import RankingFetcher
from .models import PlatformView, RankedItem, TimeWindow, TrendDataset, TrendSeries
from .normalizer import find_entry, select_score

logger = logging.getLogger(__name__)

SERIES_COLORS = ["#ff6b35", "#ff8f65", "#ffb399"]
MAX_BACKOFF_DAYS = 3


def months_ago(day: date, months: int) -> date:
    """Same day of month ``months`` earlier, clamped to the month's length."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def bucket_dates(window: TimeWindow | int | str, today: date) -> list[date]:
    """Snapshot dates for the chart buckets, oldest first.

    7d: seven consecutive days. 30d: six weekly points. 90d: six monthly points.
    """
    window = TimeWindow.parse(window)
    dates = []
    for i in range(window.bucket_count):
        if window is TimeWindow.DAYS_7:
            dates.append(today - timedelta(days=i))
        elif window is TimeWindow.DAYS_30:
            dates.append(today - timedelta(weeks=i))
        else:
            dates.append(months_ago(today, i))
    return list(reversed(dates))


def bucket_labels(window: TimeWindow | int | str, today: date) -> list[str]:
    return [f"{d.strftime('%b')} {d.day}" for d in bucket_dates(window, today)]


def pad_series(values: list[float], size: int) -> list[float]:
    """Left-pad with zeros (and keep the newest values) to exactly ``size`` points."""
    values = list(values)[-size:] if size else []
    return [0] * (size - len(values)) + values


class TrendAssembler:
    def __init__(self, fetcher: RankingFetcher):
        self.fetcher = fetcher

    async def _snapshot_for(self, category: str, window: TimeWindow, target: date):
        """Document for ``target`` or up to three days earlier; None if none exist."""
        for offset in range(MAX_BACKOFF_DAYS + 1):
            day = target - timedelta(days=offset)
            snapshot = await self.fetcher.fetch_daily(category, window, day)
            if snapshot.exists:
                if offset:
                    logger.debug("Using %s instead of %s", day, target)
                return snapshot.data
        return None

    async def _snapshots(self, category: str, window: TimeWindow, today: date) -> list[dict | None]:
        """Snapshot bodies oldest first; missing buckets are None."""
        if window is TimeWindow.DAYS_7:
            recent = await self.fetcher.fetch_recent_daily(category, window, window.bucket_count)
            return [s.data for s in reversed(recent)]
        return [
            await self._snapshot_for(category, window, target)
            for target in bucket_dates(window, today)
        ]

    async def item_series(
        self,
        name: str,
        category: str,
        platform: PlatformView | str,
        window: TimeWindow | int | str,
        today: date | None = None,
    ) -> list[float]:
        """One item's score per bucket. Always ``window.bucket_count`` values."""
        platform = PlatformView.parse(platform)
        window = TimeWindow.parse(window)
        today = today or date.today()
        try:
            snapshots = await self._snapshots(category, window, today)
        except TransportError as e:
            logger.warning("Daily history unavailable for %s: %s", name, e)
            return [0] * window.bucket_count

        values = []
        for data in snapshots:
            metrics = find_entry(data, name) if data else None
            values.append(select_score(metrics, platform) if metrics else 0)
        return pad_series(values, window.bucket_count)

    async def assemble(
        self,
        items: list[RankedItem],
        category: str,
        platform: PlatformView | str,
        window: TimeWindow | int | str,
        top_k: int = 3,
        today: date | None = None,
    ) -> TrendDataset:
        window = TimeWindow.parse(window)
        today = today or date.today()
        top = items[:top_k]
        all_values = await asyncio.gather(*(
            self.item_series(item.name, category, platform, window, today) for item in top
        ))
        return TrendDataset(
            labels=bucket_labels(window, today),
            series=[
                TrendSeries(
                    label=item.name,
                    values=values,
                    color=SERIES_COLORS[i] if i < len(SERIES_COLORS) else "#ccc",
                )
                for i, (item, values) in enumerate(zip(top, all_values))
            ],
        )
