"""FastAPI application setup"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from learnquest.api.routes import router
from learnquest.api.metrics_routes import router as metrics_router
from learnquest.api.middleware import setup_middleware
from learnquest.db.connection import db
from learnquest.config import LOG_LEVEL
from learnquest.exceptions import LearnQuestError
from learnquest.i18n.translations import resolve_language
from learnquest.observability.metrics import errors_total
from learnquest.observability.sentry_config import init_sentry, shutdown_sentry
from learnquest.services import init_container

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO)
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for FastAPI application"""
    # Startup
    logger.info("Starting API server...")
    init_sentry()
    await db.init_pool()
    logger.info("Database pool initialized")
    init_container(db)

    yield

    # Shutdown
    logger.info("Shutting down API server...")
    await db.close_pool()
    logger.info("Database pool closed")
    shutdown_sentry()


def _component(exc: LearnQuestError) -> str:
    from learnquest.exceptions import DatabaseError, ExternalAPIError

    if isinstance(exc, DatabaseError):
        return "database"
    if isinstance(exc, ExternalAPIError):
        return "coach"
    return "api"


def create_api_application() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="LearnQuest API",
        description="REST API for the LearnQuest learning-habit tracker",
        version="1.0.0",
        lifespan=lifespan
    )

    # Setup middleware
    setup_middleware(app)

    # Include routes
    app.include_router(router)
    app.include_router(metrics_router)

    @app.exception_handler(LearnQuestError)
    async def learnquest_exception_handler(request: Request, exc: LearnQuestError):
        errors_total.labels(error_type=exc.__class__.__name__, component=_component(exc)).inc()
        lang = request.query_params.get("lang")
        content = exc.to_dict(resolve_language(lang) if lang else None)
        return JSONResponse(status_code=exc.status_code, content=content)

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        errors_total.labels(error_type=exc.__class__.__name__, component="api").inc()
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "detail": str(exc)}
        )

    logger.info("FastAPI application created")

    return app
