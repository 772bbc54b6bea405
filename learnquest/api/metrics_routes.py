"""Prometheus scrape endpoint (unauthenticated, disabled with ENABLE_METRICS=false)"""
import logging
from fastapi import APIRouter, HTTPException, status
from fastapi.responses import Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from learnquest import config

logger = logging.getLogger(__name__)

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics_endpoint() -> Response:
    if not config.ENABLE_METRICS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Metrics disabled")

    payload = generate_latest()
    logger.debug(f"Serving {len(payload)} bytes of metrics")
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)
