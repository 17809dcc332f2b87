from datetime import date

import pytest

from ai_tools_dashboard.errors import TransportError
from ai_tools_dashboard.pipeline.fetcher import RankingFetcher
from ai_tools_dashboard.pipeline.models import RankedItem
from ai_tools_dashboard.pipeline.timeseries import (
    TrendAssembler,
    bucket_dates,
    bucket_labels,
    months_ago,
    pad_series,
)
from ai_tools_dashboard.store.memory import InMemoryStore


def test_bucket_dates_7d_are_consecutive_oldest_first(today):
    dates = bucket_dates(7, today)
    assert len(dates) == 7
    assert dates[0] == date(2026, 10, 13)
    assert dates[-1] == today


def test_bucket_dates_30d_weekly(today):
    dates = bucket_dates("30", today)
    assert dates == [
        date(2026, 9, 14), date(2026, 9, 21), date(2026, 9, 28),
        date(2026, 10, 5), date(2026, 10, 12), date(2026, 10, 19),
    ]


def test_bucket_dates_90d_monthly(today):
    dates = bucket_dates(90, today)
    assert dates[0] == date(2026, 5, 19)
    assert dates[-1] == today
    assert len(dates) == 6


def test_months_ago_clamps_day():
    assert months_ago(date(2026, 3, 31), 1) == date(2026, 2, 28)
    assert months_ago(date(2026, 1, 15), 2) == date(2025, 11, 15)


def test_bucket_labels(today):
    assert bucket_labels(7, today)[-1] == "Oct 19"
    assert bucket_labels(30, today)[0] == "Sep 14"


def test_pad_series():
    assert pad_series([1, 2], 4) == [0, 0, 1, 2]
    assert pad_series([1, 2, 3, 4, 5], 3) == [3, 4, 5]
    assert pad_series([], 6) == [0] * 6


async def test_7d_series_has_seven_values_oldest_first(fetcher, today):
    values = await TrendAssembler(fetcher).item_series("Perplexity", "all", "reddit", 7, today)
    assert values == [16, 15, 14, 13, 12, 11, 10]


async def test_7d_series_is_zero_padded_when_history_is_short(today):
    store = InMemoryStore({
        "all_categories/all_categories/7_days_daily/2026-10-19": {
            "date": "2026-10-19", "keywords": [{"keyword": "Claude", "combined_score": 9}],
        },
    })
    values = await TrendAssembler(RankingFetcher(store)).item_series("Claude", "all", "all", 7, today)
    assert values == [0, 0, 0, 0, 0, 0, 9]


async def test_30d_series_searches_back_up_to_three_days(today):
    store = InMemoryStore({
        # Exact bucket date
        "all_categories/all_categories/30_days_daily/2026-10-19": {
            "keywords": [{"keyword": "Claude", "combined_score": 6}],
        },
        # Two days before the 2026-10-12 bucket
        "all_categories/all_categories/30_days_daily/2026-10-10": {
            "keywords": {"0": {"keyword": "Claude", "combined_score": 5}},
        },
        # Four days before the 2026-10-05 bucket: too far back
        "all_categories/all_categories/30_days_daily/2026-10-01": {
            "keywords": [{"keyword": "Claude", "combined_score": 4}],
        },
    })
    values = await TrendAssembler(RankingFetcher(store)).item_series("claude", "all", "all", 30, today)
    assert values == [0, 0, 0, 0, 5, 6]


async def test_90d_series_always_six_values(fetcher, today):
    values = await TrendAssembler(fetcher).item_series("Nobody", "all", "youtube", 90, today)
    assert values == [0] * 6


class FailingStore(InMemoryStore):
    async def query_recent(self, *args, **kwargs):
        raise TransportError("offline")

    async def get_document(self, path):
        raise TransportError("offline")


async def test_transport_failure_gives_zero_series(today):
    values = await TrendAssembler(RankingFetcher(FailingStore())).item_series("A", "all", "all", 7, today)
    assert values == [0] * 7


async def test_assemble_top_k(fetcher, today):
    items = [
        RankedItem(rank=1, name="perplexity", category="ai_research", score=40),
        RankedItem(rank=2, name="gemini", category="ai_models", score=33),
        RankedItem(rank=3, name="copilot", category="ai_coding_agents", score=25),
        RankedItem(rank=4, name="notion_ai", category="productivity", score=18),
    ]
    dataset = await TrendAssembler(fetcher).assemble(items, "all", "reddit", 7, top_k=3, today=today)
    assert len(dataset.labels) == 7
    assert [s.label for s in dataset.series] == ["perplexity", "gemini", "copilot"]
    assert [s.color for s in dataset.series] == ["#ff6b35", "#ff8f65", "#ffb399"]
    assert dataset.series[0].values[-1] == 10
    assert dataset.series[1].values == [0] * 7


@pytest.mark.parametrize("window, size", [(7, 7), (30, 6), (90, 6)])
async def test_series_length_fixed_per_window(fetcher, today, window, size):
    values = await TrendAssembler(fetcher).item_series("perplexity", "all", "combined", window, today)
    assert len(values) == size
