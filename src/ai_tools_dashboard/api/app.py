import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.templating import Jinja2Templates

from ai_tools_dashboard.config import settings
from ai_tools_dashboard.scheduler.jobs import setup_scheduler
from ai_tools_dashboard.site.pages import template_env
from ai_tools_dashboard.store.base import DocumentStore
from ai_tools_dashboard.store.firestore import FirestoreRestStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger.info("Starting %s...", settings.site_name)
    if app.state.store is None:
        app.state.store = FirestoreRestStore()
    sched = None
    if settings.enable_scheduler:
        sched = setup_scheduler(app.state.store)
        sched.start()
        logger.info("Scheduler started with %d jobs", len(sched.get_jobs()))
    yield
    # Shutdown
    if sched is not None:
        sched.shutdown()
        logger.info("Scheduler shut down.")
    await app.state.store.aclose()


def create_app(store: DocumentStore | None = None) -> FastAPI:
    app = FastAPI(title=settings.site_name, version="0.1.0", lifespan=lifespan)
    app.state.store = store

    # Register routes
    from ai_tools_dashboard.api.routes.rankings import router as rankings_router

    app.include_router(rankings_router)

    return app


# Templates instance shared by routes
templates = Jinja2Templates(env=template_env())

app = create_app()
