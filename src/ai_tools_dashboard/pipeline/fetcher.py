import logging
from dataclasses import dataclass
from datetime import date

from ai_tools_dashboard.store.base import DocumentSnapshot, DocumentStore

from .models import PlatformView, TimeWindow
from .normalizer import AGGREGATE_IDS, clean_text

logger = logging.getLogger(__name__)

ROOT_COLLECTION = "all_categories"
AGGREGATE_DOC = "all_categories"
TRENDING_COLLECTION = "PH-dashboard"
TRENDING_DOC = "top_this_month"
EXCLUDED_CATEGORY_IDS = {"reddit", "all_reddit", "all_categories"}


@dataclass(frozen=True)
class CategoryInfo:
    id: str
    name: str


class FetchCache:
    """Read-through cache scoped to one build or request.

    Entries are written once and never replaced. Concurrent tasks that miss on
    the same key may both fetch; the first insert wins and both see that value.
    """

    def __init__(self):
        self._entries: dict = {}
        self.hits = 0
        self.misses = 0

    def get(self, key):
        if key in self._entries:
            self.hits += 1
            return self._entries[key]
        self.misses += 1
        return None

    def insert_if_absent(self, key, value):
        return self._entries.setdefault(key, value)

    def __contains__(self, key) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def category_doc_id(category: str | None) -> str:
    """Store document id for a category; the "all" sentinels map to the aggregate doc."""
    if not category or category.strip().lower() in AGGREGATE_IDS:
        return AGGREGATE_DOC
    return category.strip()


class RankingFetcher:
    """Looks up raw ranking documents. Returns them unparsed."""

    def __init__(self, store: DocumentStore, cache: FetchCache | None = None):
        self.store = store
        self.cache = cache if cache is not None else FetchCache()

    async def _cached(self, key, loader):
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        return self.cache.insert_if_absent(key, await loader())

    async def fetch_window(
        self, category: str, platform: PlatformView | str, window: TimeWindow | int | str
    ) -> DocumentSnapshot:
        """Aggregate document for a (category, platform, window) request.

        Reads ``time_windows/{N}_days`` and falls back to the newest
        ``{N}_days_daily`` snapshot when the aggregate is missing.
        """
        platform = PlatformView.parse(platform)
        window = TimeWindow.parse(window)
        doc_id = category_doc_id(category)
        key = ("window", doc_id, platform.value, window.value)
        return await self._cached(key, lambda: self._load_window(doc_id, window))

    async def _load_window(self, doc_id: str, window: TimeWindow) -> DocumentSnapshot:
        snapshot = await self.store.get_aggregate(
            ROOT_COLLECTION, doc_id, f"time_windows/{window.value}_days"
        )
        if snapshot.exists:
            return snapshot

        logger.info(
            "No time_windows aggregate for %s/%dd, trying latest daily snapshot", doc_id, window.value
        )
        recent = await self.store.query_recent(
            ROOT_COLLECTION, doc_id, f"{window.value}_days_daily", "date", descending=True, limit=1
        )
        if recent:
            return recent[0]
        return DocumentSnapshot.missing(f"{window.value}_days")

    async def fetch_daily(
        self, category: str, window: TimeWindow | int | str, day: date
    ) -> DocumentSnapshot:
        window = TimeWindow.parse(window)
        doc_id = category_doc_id(category)
        day_id = day.isoformat()
        key = ("daily", doc_id, window.value, day_id)
        return await self._cached(
            key,
            lambda: self.store.get_aggregate(
                ROOT_COLLECTION, doc_id, f"{window.value}_days_daily/{day_id}"
            ),
        )

    async def fetch_recent_daily(
        self, category: str, window: TimeWindow | int | str, limit: int
    ) -> list[DocumentSnapshot]:
        """Newest first."""
        window = TimeWindow.parse(window)
        doc_id = category_doc_id(category)
        key = ("recent", doc_id, window.value, limit)
        return await self._cached(
            key,
            lambda: self.store.query_recent(
                ROOT_COLLECTION, doc_id, f"{window.value}_days_daily", "date",
                descending=True, limit=limit,
            ),
        )

    async def fetch_trending(self) -> DocumentSnapshot:
        return await self._cached(
            ("trending",),
            lambda: self.store.get_aggregate(TRENDING_COLLECTION, TRENDING_DOC),
        )

    async def list_categories(self) -> list[CategoryInfo]:
        docs = await self._cached(
            ("categories",), lambda: self.store.list_documents(ROOT_COLLECTION)
        )
        categories = [
            CategoryInfo(id=d.id, name=clean_text(d.id))
            for d in docs
            if d.id.lower() not in EXCLUDED_CATEGORY_IDS
        ]
        categories.sort(key=lambda c: c.name)
        return categories
