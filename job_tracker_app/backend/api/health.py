"""
Health check and system status API endpoints.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Any
from fastapi import APIRouter

from ..config.settings import get_settings
from ..models.db.database import get_document_store

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health", summary="Health Check")
def health_check() -> Dict[str, Any]:
    """
    Basic health check endpoint.
    """
    settings = get_settings()
    return {
        "status": "healthy",
        "message": f"Welcome to {settings.app_name} v{settings.app_version}",
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/health/detailed", summary="Detailed Health Check")
def detailed_health_check() -> Dict[str, Any]:
    """
    Detailed health check with configuration and document store status.
    """
    settings = get_settings()
    store_reachable = get_document_store().ping()

    health_status = {
        "status": "healthy" if store_reachable else "degraded",
        "app_info": {
            "name": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
        },
        "store": {
            "backend": settings.store_backend,
            "reachable": store_reachable,
            "query_in_batch_size": settings.query_in_batch_size,
            "in_filter_limit": settings.store_in_filter_limit,
        },
        "auth": {
            "algorithm": settings.auth_algorithm,
            "audience_configured": bool(settings.auth_audience),
            "issuer_configured": bool(settings.auth_issuer),
        },
    }

    config_issues = settings.validate_required_settings()
    if config_issues:
        health_status["status"] = "degraded"
        health_status["configuration_issues"] = config_issues
        logger.warning("Configuration issues found: %s", config_issues)

    return health_status
