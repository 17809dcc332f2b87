"""URL layout, SEO metadata and template context for dashboard pages."""

from datetime import date
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ai_tools_dashboard.config import settings
from ai_tools_dashboard.pipeline.fetcher import AGGREGATE_DOC, category_doc_id
from ai_tools_dashboard.pipeline.models import PlatformView, RankedItem, TimeWindow, TrendDataset
from ai_tools_dashboard.pipeline.normalizer import clean_text

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "frontend" / "templates"
PAGE_TEMPLATE = "page.html"
DEFAULT_WINDOW = TimeWindow.DAYS_30


def url_path(category: str, platform: PlatformView | str, window: TimeWindow | int | str) -> str:
    """Site path for a combination. The default (all categories, all platforms, 30d) is ``/``."""
    category = category_doc_id(category)
    platform = PlatformView.parse(platform)
    window = TimeWindow.parse(window)

    parts = []
    if category != AGGREGATE_DOC:
        parts += ["category", category]
    if platform is not PlatformView.COMBINED:
        parts.append(platform.value)
    if window is not DEFAULT_WINDOW:
        parts.append(f"{window.value}d")
    return "/" + "/".join(parts) + "/" if parts else "/"


def file_path(output_dir: Path, category: str, platform, window) -> Path:
    path = url_path(category, platform, window).strip("/")
    return output_dir / path / "index.html" if path else output_dir / "index.html"


def category_display(category: str) -> str:
    doc_id = category_doc_id(category)
    return "All Categories" if doc_id == AGGREGATE_DOC else clean_text(doc_id)


def platform_display(platform: PlatformView | str) -> str:
    platform = PlatformView.parse(platform)
    return "All Platforms" if platform is PlatformView.COMBINED else clean_text(platform.value)


def seo_data(category: str, platform, window, rankings: list[RankedItem]) -> dict:
    window = TimeWindow.parse(window)
    cat = category_display(category)
    plat = platform_display(platform)
    period = f"{window.value} Days"

    title = f"Best AI Tools - {cat} ({plat}, {period}) | {settings.site_name}"
    description = (
        f"Top AI tools rankings for {cat} based on {plat} data over {period}. "
        "Real-time analytics and performance insights."
    )
    return {
        "title": title,
        "description": description,
        "canonical": url_path(category, platform, window),
        "structured_data": {
            "@context": "https://schema.org",
            "@type": "ItemList",
            "name": title,
            "description": description,
            "numberOfItems": len(rankings),
            "itemListElement": [
                {
                    "@type": "ListItem",
                    "position": item.rank,
                    "name": item.name,
                    "description": f"{clean_text(item.category)} tool with {item.score:g} points",
                }
                for item in rankings[:3]
            ],
        },
    }


def page_context(
    category: str,
    platform,
    window,
    rankings: list[RankedItem],
    trending: list[RankedItem],
    performance: TrendDataset,
    categories: list[str],
    message: str | None = None,
    today: date | None = None,
) -> dict:
    platform = PlatformView.parse(platform)
    window = TimeWindow.parse(window)
    doc_id = category_doc_id(category)
    seo = seo_data(doc_id, platform, window, rankings)
    return {
        "site_name": settings.site_name,
        "category": doc_id,
        "platform": platform.slug,
        "window": window.value,
        "category_display": category_display(doc_id),
        "platform_display": platform_display(platform),
        "title": seo["title"],
        "description": seo["description"],
        "canonical": seo["canonical"],
        "structured_data": seo["structured_data"],
        "rankings": rankings,
        "trending": trending,
        "performance": performance.to_dict(),
        "message": message,
        "platform_links": [
            {"label": platform_display(p), "url": url_path(doc_id, p, window), "active": p is platform}
            for p in PlatformView
        ],
        "window_links": [
            {"label": f"{w.value}D", "url": url_path(doc_id, platform, w), "active": w is window}
            for w in TimeWindow
        ],
        "category_links": [
            {
                "label": category_display(c),
                "url": url_path(c, platform, window),
                "active": category_doc_id(c) == doc_id,
            }
            for c in categories
        ],
        "current_date": (today or date.today()).isoformat(),
    }


def template_env(template_dir: Path | None = None) -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(template_dir or TEMPLATE_DIR)),
        autoescape=select_autoescape(["html"]),
    )
    env.filters["display"] = clean_text
    return env
