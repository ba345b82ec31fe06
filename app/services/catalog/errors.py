"""Shared error classes for the product view pipeline and entity stores."""

from __future__ import annotations


class CatalogError(RuntimeError):
    """Base exception raised while building a product view."""

    def __init__(self, message: str, code: str = "CATALOG_ERROR") -> None:
        super().__init__(message)
        self.code = code


class ProductNotFoundError(CatalogError):
    """Raised when the requested product does not exist."""

    def __init__(self, product_id: int) -> None:
        super().__init__(f"Product {product_id} not found.", code="404_PRODUCT_NOT_FOUND")
        self.product_id = product_id


class EntityStoreError(CatalogError):
    """Raised when the entity store cannot answer a lookup."""

    def __init__(self, message: str, code: str = "503_ENTITY_STORE_UNAVAILABLE") -> None:
        super().__init__(message, code=code)
