"""
Core views providing infrastructure endpoints.

Endpoints that are not part of the escrow domain but are needed to run the
service, such as health checks.
"""

import logging

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Used by Docker health checks, Kubernetes liveness checks and load balancers.

    Returns:
        JsonResponse with status and component health:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "disconnected"
        - cache: "connected" or "disconnected"

    HTTP Status Codes:
        200: Database reachable (cache issues only degrade)
        503: Database unreachable
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except DatabaseError:
        logger.exception("Health check database query failed")
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    # The throttle cache is not critical: a broken cache degrades, never fails
    try:
        cache.set("health_check", "ok", timeout=1)
        if cache.get("health_check") == "ok":
            health_status["cache"] = "connected"
        else:
            health_status["cache"] = "disconnected"
    except Exception:
        logger.warning("Health check cache round-trip failed", exc_info=True)
        health_status["cache"] = "disconnected"

    status_code = 200 if is_healthy else 503

    return JsonResponse(health_status, status=status_code)
