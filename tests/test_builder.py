import asyncio
import json
from pathlib import Path

import pytest

from ai_tools_dashboard.config import settings
from ai_tools_dashboard.errors import TransportError
from ai_tools_dashboard.site.builder import PageCombination, StaticSiteBuilder, page_combinations
from ai_tools_dashboard.site.pages import file_path, seo_data, url_path
from ai_tools_dashboard.pipeline.models import PlatformView, RankedItem, TimeWindow
from ai_tools_dashboard.store.memory import InMemoryStore


@pytest.mark.parametrize("category, platform, window, expected", [
    ("all_categories", "all", "30", "/"),
    ("all_categories", "all", "7", "/7d/"),
    ("all_categories", "reddit", 30, "/reddit/"),
    ("all_categories", "youtube", 90, "/youtube/90d/"),
    ("ai_chatbots", "all", 30, "/category/ai_chatbots/"),
    ("ai_chatbots", "reddit", 7, "/category/ai_chatbots/reddit/7d/"),
    ("all", "combined", 30, "/"),
])
def test_url_path(category, platform, window, expected):
    assert url_path(category, platform, window) == expected


def test_file_path(tmp_path):
    assert file_path(tmp_path, "all_categories", "all", 30) == tmp_path / "index.html"
    assert file_path(tmp_path, "robots", "youtube", 7) == tmp_path / "category/robots/youtube/7d/index.html"


def test_page_combinations_cover_cartesian_product():
    combos = page_combinations(["all_categories", "robots"], ["all", "reddit", "youtube"], [7, 30, 90])
    assert len(combos) == 18
    assert PageCombination("robots", PlatformView.YOUTUBE, TimeWindow.DAYS_90) in combos


def test_seo_data_structured_list():
    items = [RankedItem(rank=i, name=f"T{i}", category="ai_models", score=10 - i) for i in range(1, 5)]
    seo = seo_data("ai_models", "reddit", 7, items)
    assert seo["title"].startswith("Best AI Tools - Ai Models (Reddit, 7 Days)")
    assert seo["canonical"] == "/category/ai_models/reddit/7d/"
    listing = seo["structured_data"]
    assert listing["numberOfItems"] == 4
    assert [e["name"] for e in listing["itemListElement"]] == ["T1", "T2", "T3"]


def _builder(store, out: Path, today, **kwargs) -> StaticSiteBuilder:
    return StaticSiteBuilder(store, output_dir=out, test_mode=True, today=today, **kwargs)


async def test_build_writes_every_sample_page(store, tmp_path, today):
    stats = await _builder(store, tmp_path / "public", today).build()

    expected = len(settings.test_categories) * len(settings.test_platforms) * len(settings.test_time_windows)
    assert stats.pages_generated == expected
    assert stats.errors == 0
    root = tmp_path / "public" / "index.html"
    assert root.exists()
    html = root.read_text(encoding="utf-8")
    assert "ChatGPT" in html
    assert '<link rel="canonical" href="/">' in html
    assert (tmp_path / "public" / "category" / "ai_chatbots" / "reddit" / "7d" / "index.html").exists()


async def test_build_page_embeds_chart_and_rankings(store, tmp_path, today):
    builder = _builder(store, tmp_path, today)
    html = await builder.render_page(PageCombination("all_categories", PlatformView.REDDIT, TimeWindow.DAYS_7))
    assert "perplexity" in html
    chart = html.split("const chartData = ", 1)[1].split(";\n", 1)[0]
    data = json.loads(chart)
    assert len(data["labels"]) == 7
    assert data["datasets"][0]["data"] == [16, 15, 14, 13, 12, 11, 10]


async def test_missing_data_page_still_renders(store, tmp_path, today):
    builder = _builder(store, tmp_path, today)
    html = await builder.render_page(PageCombination("fintech", PlatformView.YOUTUBE, TimeWindow.DAYS_90))
    assert "No data available" in html


class FlakyStore(InMemoryStore):
    """Fails every lookup for one category."""

    async def get_document(self, path):
        if "/ai_chatbots/" in path:
            raise TransportError("timeout")
        return await super().get_document(path)


async def test_failed_page_does_not_block_siblings(sample_documents, tmp_path, today):
    stats = await _builder(FlakyStore(sample_documents), tmp_path / "out", today).build()
    assert stats.errors == 4
    assert stats.pages_generated == 4
    assert {c.category for c in stats.failed} == {"ai_chatbots"}
    assert (tmp_path / "out" / "index.html").exists()


class DownStore(InMemoryStore):
    async def list_documents(self, collection_path):
        raise TransportError("no route to host")


async def test_unreachable_store_fails_before_output(tmp_path, today):
    out = tmp_path / "public"
    out.mkdir()
    (out / "keep.html").write_text("previous build")
    with pytest.raises(TransportError):
        await _builder(DownStore(), out, today).build()
    assert (out / "keep.html").exists()


async def test_cache_hits_are_counted(store, tmp_path, today):
    builder = _builder(store, tmp_path / "public", today)
    stats = await builder.build()
    # Trending and daily snapshots are shared across pages
    assert stats.cache_hits > 0


async def test_concurrency_is_bounded(sample_documents, tmp_path, today):
    class SlowStore(InMemoryStore):
        active = 0
        peak = 0

        async def get_document(self, path):
            if "time_windows" in path:
                SlowStore.active += 1
                SlowStore.peak = max(SlowStore.peak, SlowStore.active)
                await asyncio.sleep(0.01)
                SlowStore.active -= 1
            return await super().get_document(path)

    await _builder(SlowStore(sample_documents), tmp_path / "p", today, concurrency=2).build()
    assert SlowStore.peak <= 2


async def test_store_values_cannot_break_out_of_script_blocks(tmp_path, today):
    hostile = "</script><script>alert(1)</script>"
    store = InMemoryStore({
        "all_categories/all_categories/time_windows/30_days": {"keywords": [
            {"keyword": hostile, "combined_score": 5, "category": hostile},
        ]},
    })
    html = await _builder(store, tmp_path, today).render_page(
        PageCombination("all_categories", PlatformView.COMBINED, TimeWindow.DAYS_30)
    )
    assert "<script>alert(1)" not in html
    chart = json.loads(html.split("const chartData = ", 1)[1].split(";\n", 1)[0])
    assert chart["datasets"][0]["label"] == hostile


async def test_static_pages_show_top_five(tmp_path, today):
    store = InMemoryStore({
        "all_categories/all_categories/time_windows/30_days": {"keywords": [
            {"keyword": f"Tool {i}", "combined_score": 100 - i} for i in range(8)
        ]},
    })
    html = await _builder(store, tmp_path, today).render_page(
        PageCombination("all_categories", PlatformView.COMBINED, TimeWindow.DAYS_30)
    )
    assert html.count('<td class="post-count">') == settings.homepage_limit == 5
    assert "Tool 4" in html
    assert "Tool 5" not in html
