"""Health check endpoint.

Liveness probe. Reports whether email delivery is configured (without
contacting the SMTP server) and in-process aggregation latency.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends

from dailyspark.config import APP_VERSION
from dailyspark.observability.telemetry import get_latency_stats
from dailyspark.api.dependencies import get_services
from dailyspark.services import Services

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(services: Services = Depends(get_services)) -> dict[str, Any]:
    return {
        "status": "healthy",
        "service": "DailySpark API",
        "version": APP_VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
        "email": {"configured": services.settings.email_configured},
        "aggregation_latency": get_latency_stats("aggregation.latency"),
    }
