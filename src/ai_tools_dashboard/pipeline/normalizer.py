"""Normalize stored ranking documents into a canonical ranked list.

Upstream aggregation has written the same metrics in several shapes over time:
an ordered ``keywords`` array, a ``keywords`` or ``all`` map keyed by product
slug or by opaque numeric index, and a legacy ``windowData`` object. Every
shape funnels through :func:`normalize`, which is a pure function of its
input.
"""

import logging
import math
from collections.abc import Mapping, Sequence

from ai_tools_dashboard.errors import MalformedEntryError

from .models import (
    Candidate,
    KeyedMapShape,
    PlatformView,
    RankedItem,
    RawShape,
    SequenceShape,
    resolve_name,
)

logger = logging.getLogger(__name__)

DISALLOWED_NAMES = frozenset({
    "all", "total", "summary", "aggregated", "combined", "misc", "other", "unknown",
})
AGGREGATE_IDS = frozenset({"all", "all_categories"})
DEFAULT_CATEGORY = "General"
DEFAULT_TRENDING_CATEGORY = "AI Tools"

# Containers checked in order when locating entries inside a stored document
ENTRY_CONTAINERS = ("keywords", "all", "windowData", "products")

SCORE_FIELDS: dict[PlatformView, tuple[str, ...]] = {
    PlatformView.REDDIT: ("reddit_post_count", "post_count", "postCount"),
    PlatformView.YOUTUBE: ("youtube_video_count", "video_count", "videoCount"),
    PlatformView.COMBINED: ("combined_score", "post_count"),
}
SIGNAL_FIELDS = ("velocity",)
MOMENTUM_FIELDS = ("momentum", "acceleration")


def to_number(value) -> float | None:
    """Finite numeric value of a stored field, or None when it is absent or not a number."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return value
    return None


def first_number(metrics: Mapping, fields: Sequence[str]) -> float | None:
    for key in fields:
        value = to_number(metrics.get(key))
        if value is not None:
            return value
    return None


def is_disallowed_name(name: str | None) -> bool:
    return not name or name.strip().lower() in DISALLOWED_NAMES


def is_valid_category(value) -> bool:
    if not isinstance(value, str) or not value.strip():
        return False
    text = value.strip().lower()
    return text not in DISALLOWED_NAMES and text not in AGGREGATE_IDS


def resolve_category(metrics: Mapping, source_category: str | None = None) -> str:
    embedded = metrics.get("category")
    if is_valid_category(embedded):
        return embedded.strip()
    if is_valid_category(source_category):
        return source_category.strip()
    return DEFAULT_CATEGORY


def select_score(metrics: Mapping, platform: PlatformView) -> float:
    """The platform view's primary metric.

    Fields are fallbacks: a stored 0 gives way to the next field. The score is
    0 only when every field is 0 or absent.
    """
    for key in SCORE_FIELDS[platform]:
        value = to_number(metrics.get(key))
        if value:
            return value
    return 0


def is_relevant(metrics: Mapping, platform: PlatformView) -> bool:
    """Whether the entry carries any field meaningful for this view."""
    return first_number(metrics, SCORE_FIELDS[platform] + SIGNAL_FIELDS) is not None


def _stated_rank(metrics: Mapping) -> float | None:
    rank = to_number(metrics.get("rank"))
    return rank if rank is not None and rank > 0 else None


def has_signal(metrics: Mapping) -> bool:
    velocity = to_number(metrics.get("velocity"))
    return bool(velocity) or _stated_rank(metrics) is not None


def detect_shape(raw) -> RawShape | None:
    if isinstance(raw, Mapping):
        return KeyedMapShape(raw)
    if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        return SequenceShape(raw)
    return None


def extract_entries(document):
    """Find the entry container inside a stored document.

    A bare list is already a container. A mapping is searched for the known
    container keys; when none is present the mapping itself is the container.
    """
    if not isinstance(document, Mapping):
        return document
    for key in ENTRY_CONTAINERS:
        container = document.get(key)
        if isinstance(container, (Mapping, list, tuple)) and container:
            return container
    if any(key in document for key in ENTRY_CONTAINERS):
        return []
    return document


def iter_candidates(shape: RawShape):
    """Resolve identities for every entry in a shape, skipping malformed ones."""
    for order, (key, value) in enumerate(shape.items()):
        try:
            yield shape.extract_candidate(key, value, order)
        except MalformedEntryError as e:
            logger.debug("Dropped entry: %s", e)


def _sort_key_by_rank(candidate: Candidate):
    rank = _stated_rank(candidate.metrics)
    return (rank is None, rank or 0)


def normalize(
    raw,
    platform: PlatformView | str = PlatformView.COMBINED,
    source_category: str | None = None,
    limit: int | None = None,
) -> list[RankedItem]:
    """Turn a stored entry collection into a densely ranked list for one platform view."""
    platform = PlatformView.parse(platform)
    shape = detect_shape(extract_entries(raw))
    if shape is None:
        logger.debug("Unrecognized ranking container: %s", type(raw).__name__)
        return []

    survivors: list[tuple[Candidate, float]] = []
    for candidate in iter_candidates(shape):
        metrics = candidate.metrics
        if is_disallowed_name(candidate.name):
            continue
        if not is_relevant(metrics, platform):
            continue
        score = select_score(metrics, platform)
        if score == 0 and not has_signal(metrics):
            continue
        survivors.append((candidate, score))

    if any(_stated_rank(c.metrics) is not None for c, _ in survivors):
        survivors.sort(key=lambda pair: _sort_key_by_rank(pair[0]))
    elif not shape.preserves_order:
        survivors.sort(key=lambda pair: pair[1], reverse=True)

    if limit is not None:
        survivors = survivors[:max(limit, 0)]

    items = []
    for index, (candidate, score) in enumerate(survivors):
        metrics = candidate.metrics
        items.append(RankedItem(
            rank=index + 1,
            name=candidate.name,
            category=resolve_category(metrics, source_category),
            score=score,
            velocity=first_number(metrics, SIGNAL_FIELDS) or 0,
            momentum=first_number(metrics, MOMENTUM_FIELDS) or 0,
        ))
    return items


def find_entry(raw, name: str) -> Mapping | None:
    """Metrics of the entry whose resolved name matches ``name`` case-insensitively."""
    shape = detect_shape(extract_entries(raw))
    if shape is None:
        return None
    wanted = name.strip().lower()
    for candidate in iter_candidates(shape):
        if candidate.name.lower() == wanted:
            return candidate.metrics
    return None


def extract_trending(document, limit: int | None = 5) -> list[RankedItem]:
    """Product Hunt style trending list: a ``products`` array already in rank order."""
    if not isinstance(document, Mapping):
        return []
    products = document.get("products")
    if not isinstance(products, list):
        return []

    items: list[RankedItem] = []
    for product in products:
        if not isinstance(product, Mapping):
            continue
        name = product.get("product_name")
        if not isinstance(name, str) or not name.strip():
            name = resolve_name(product)
        if is_disallowed_name(name):
            continue
        name = name.strip()
        category = product.get("category")
        items.append(RankedItem(
            rank=len(items) + 1,
            name=name,
            category=clean_text(category) if is_valid_category(category) else DEFAULT_TRENDING_CATEGORY,
            score=first_number(product, ("score", "votes")) or 0,
        ))
        if limit is not None and len(items) >= limit:
            break
    return items


def clean_text(text: str | None) -> str:
    """Display form of a slug: underscores to spaces, each word capitalized."""
    if not text:
        return ""
    words = text.replace("_", " ").split(" ")
    return " ".join(w[:1].upper() + w[1:].lower() for w in words)
