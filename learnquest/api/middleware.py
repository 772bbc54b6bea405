"""
API middleware: CORS, per-student rate limiting and request metrics.

A whole classroom usually shares one public IP, so limits are keyed by the
student in the path (/api/v1/users/{user_id}/...) and only fall back to the
client address for routes without one.
"""
import logging
from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from learnquest.config import CORS_ORIGINS, DEFAULT_LANGUAGE
from learnquest.i18n.translations import resolve_language, t
from learnquest.observability.metrics import errors_total
from learnquest.observability.metrics_middleware import setup_metrics_middleware

logger = logging.getLogger(__name__)


def rate_limit_key(request: Request) -> str:
    """'user:<id>' for per-student routes, else the client address"""
    user_id = request.path_params.get("user_id")
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(key_func=rate_limit_key)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 in the same shape as LearnQuestError.to_dict(), with a localized message"""
    lang = request.query_params.get("lang")
    lang = resolve_language(lang) if lang else DEFAULT_LANGUAGE
    errors_total.labels(error_type="RateLimitExceeded", component="api").inc()
    logger.warning(f"Rate limit hit for {rate_limit_key(request)} on {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=429,
        content={
            "error": "RateLimitExceeded",
            "message": f"Rate limit exceeded: {exc.detail}",
            "user_message": t("error_rate_limited", lang),
        },
    )


def setup_cors(app):
    """Allow the web client's origins (CORS_ORIGINS)"""
    cors_origins = [origin.strip() for origin in CORS_ORIGINS if origin.strip()]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
    )

    logger.info(f"CORS configured for origins: {cors_origins}")


def setup_rate_limiting(app):
    """Attach the per-student limiter and its 429 handler"""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    logger.info("Rate limiting configured (per-route limits, keyed by student)")


def setup_middleware(app):
    """CORS, rate limiting and Prometheus request metrics"""
    setup_cors(app)
    setup_rate_limiting(app)
    setup_metrics_middleware(app)
