"""API endpoints serving the product detail read model."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.models.product_view import ProductView
from app.services.catalog.composer import ProductViewService, get_product_view_service
from app.services.catalog.errors import CatalogError
from app.services.pages import ProductPage

router = APIRouter()
logger = logging.getLogger(__name__)

HOME_PATH = "/"


@router.get("/products/{product_id}", response_model=ProductView)
async def get_product_view(
    product_id: int,
    service: ProductViewService = Depends(get_product_view_service),
) -> ProductView:
    """Return the product joined with its founder, category and current verified revenue."""
    page = ProductPage(service)
    try:
        view = await page.load(product_id)
    except CatalogError as exc:
        logger.warning(
            "catalog.api_error",
            extra={"product_id": product_id, "code": exc.code},
        )
        raise HTTPException(
            status_code=_map_error_code(exc.code),
            detail={"message": str(exc), "code": exc.code, "redirect_to": HOME_PATH},
        ) from exc
    finally:
        page.teardown()
    if view is None:  # pragma: no cover - a single request never supersedes itself
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return view


def _map_error_code(code: str) -> int:
    if code == "404_PRODUCT_NOT_FOUND":
        return status.HTTP_404_NOT_FOUND
    if code == "503_ENTITY_STORE_UNAVAILABLE":
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR
