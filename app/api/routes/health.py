from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from app.config import settings
from app.services.catalog.composer import ProductViewService, get_product_view_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("")
async def health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
    }


@router.get("/ready")
async def readiness_check(service: ProductViewService = Depends(get_product_view_service)):
    """Readiness check that includes entity store connectivity."""
    if not await service.store.ping():
        logger.warning("health.store_unreachable")
        raise HTTPException(status_code=503, detail="Entity store is not available")

    return {
        "status": "ready",
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected" if settings.database_url else "not configured",
        "payment_verification": (
            "configured" if settings.payment_verification_enabled else "not configured"
        ),
    }
