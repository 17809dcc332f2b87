import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse

from ai_tools_dashboard.api.app import templates
from ai_tools_dashboard.config import settings
from ai_tools_dashboard.errors import TransportError
from ai_tools_dashboard.pipeline.fetcher import ROOT_COLLECTION, FetchCache, RankingFetcher
from ai_tools_dashboard.pipeline.models import PlatformView, TimeWindow
from ai_tools_dashboard.pipeline.service import RankingService
from ai_tools_dashboard.site.pages import PAGE_TEMPLATE, page_context

logger = logging.getLogger(__name__)

router = APIRouter()


def get_service(request: Request) -> RankingService:
    """One fetch cache per request."""
    return RankingService(RankingFetcher(request.app.state.store, FetchCache()))


# --- HTML Routes ---


@router.get("/", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    category: str = "all_categories",
    platform: str = "all",
    window: str = "30",
    service: RankingService = Depends(get_service),
):
    """Dashboard page: ranking table, trend chart and trending list."""
    result = await service.get_rankings(category, platform, window, limit=settings.ranking_limit)
    if result.status == "no_data":
        # Unusable filters fall back to the default view with the message shown
        platform, window = PlatformView.COMBINED, TimeWindow.DAYS_30

    performance = await service.get_trend(result.items, category, platform, window)
    trending = await service.get_trending()
    categories = ["all_categories"] + [c.id for c in await service.get_categories()]

    context = page_context(
        category,
        platform,
        window,
        rankings=result.items,
        trending=trending,
        performance=performance,
        categories=categories,
        message=result.message,
    )
    return templates.TemplateResponse(request, PAGE_TEMPLATE, context)


# --- JSON API Routes ---


@router.get("/api/rankings")
async def api_rankings(
    category: str = "all_categories",
    platform: str = "all",
    window: str = "30",
    limit: int = Query(20, ge=1, le=200),
    service: RankingService = Depends(get_service),
):
    """JSON endpoint: ranked list for one (category, platform, window)."""
    result = await service.get_rankings(category, platform, window, limit=limit)
    return result.to_dict()


@router.get("/api/trend")
async def api_trend(
    category: str = "all_categories",
    platform: str = "all",
    window: str = "30",
    top_k: int = Query(3, ge=1, le=10),
    service: RankingService = Depends(get_service),
):
    """JSON endpoint: chart series for the top ranked items."""
    result = await service.get_rankings(category, platform, window, limit=top_k)
    dataset = await service.get_trend(result.items, category, platform, window, top_k=top_k)
    return {"status": result.status, "message": result.message, **dataset.to_dict()}


@router.get("/api/trending")
async def api_trending(
    limit: int = Query(5, ge=1, le=50),
    service: RankingService = Depends(get_service),
):
    return [item.to_dict() for item in await service.get_trending(limit=limit)]


@router.get("/api/categories")
async def api_categories(service: RankingService = Depends(get_service)):
    return [{"id": c.id, "name": c.name} for c in await service.get_categories()]


@router.get("/api/health")
async def health(request: Request):
    """Health check: document store reachability."""
    try:
        docs = await request.app.state.store.list_documents(ROOT_COLLECTION)
    except TransportError as e:
        logger.warning("Health check failed: %s", e)
        return {"status": "degraded", "store": "unreachable", "detail": str(e)}
    return {"status": "ok", "store": "reachable", "category_count": len(docs)}
