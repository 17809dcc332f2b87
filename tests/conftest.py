from datetime import date, timedelta

import pytest

from ai_tools_dashboard.pipeline.fetcher import FetchCache, RankingFetcher
from ai_tools_dashboard.store.memory import InMemoryStore

TODAY = date(2026, 10, 19)


def keywords_doc(entries: list[dict], day: date | None = None) -> dict:
    doc = {"keywords": entries}
    if day is not None:
        doc["date"] = day.isoformat()
    return doc


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def sample_documents() -> dict[str, dict]:
    """A small Firestore layout covering the stored shapes seen in production."""
    docs = {
        # Ordered array, already ranked by combined_score upstream
        "all_categories/all_categories/time_windows/30_days": keywords_doc([
            {"keyword": "ChatGPT", "combined_score": 120, "reddit_post_count": 80,
             "youtube_video_count": 40, "velocity": 3.5, "acceleration": 0.4},
            {"keyword": "Claude", "combined_score": 95, "reddit_post_count": 70,
             "youtube_video_count": 25, "velocity": 2.0},
            {"keyword": "Cursor", "combined_score": 60, "reddit_post_count": 0,
             "youtube_video_count": 60},
        ]),
        # Map keyed by product slug, no ordering
        "all_categories/all_categories/time_windows/7_days": {"all": {
            "midjourney": {"reddit_post_count": 12, "category": "ai_media_generation"},
            "perplexity": {"reddit_post_count": 40, "category": "ai_research"},
            "copilot": {"reddit_post_count": 25, "category": "ai_coding_agents"},
            "gemini": {"reddit_post_count": 33, "category": "ai_models"},
            "notion_ai": {"reddit_post_count": 18, "category": "productivity"},
        }},
        # Map keyed by opaque numeric index
        "all_categories/ai_chatbots/time_windows/30_days": {"keywords": {
            "0": {"keyword": "Character AI", "combined_score": 15, "velocity": 1.0},
            "1": {"name": "Pi", "combined_score": 30},
            "2": {"combined_score": 99},
            "3": {"keyword": "Total", "combined_score": 500},
        }},
        "PH-dashboard/top_this_month": {"products": [
            {"product_name": "Lovable", "score": 540, "category": "website_builder"},
            {"product_name": "Bolt", "score": 420},
            {"product_name": "Unknown", "score": 10},
        ]},
    }
    # Seven consecutive daily snapshots for the aggregate 7d chart
    for i in range(7):
        day = TODAY - timedelta(days=i)
        docs[f"all_categories/all_categories/7_days_daily/{day.isoformat()}"] = keywords_doc(
            [{"keyword": "perplexity", "reddit_post_count": 10 + i, "combined_score": 20 + i}],
            day,
        )
    return docs


@pytest.fixture
def store(sample_documents) -> InMemoryStore:
    return InMemoryStore(sample_documents)


@pytest.fixture
def fetcher(store) -> RankingFetcher:
    return RankingFetcher(store, FetchCache())
