"""Page-level load holders that keep torn-down pages from receiving late results."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from app.models.payment import PaymentStatus, PaymentUnavailable
from app.models.product_view import ProductView
from app.services.catalog.composer import ProductViewService
from app.services.payments.status import PaymentCheck, PaymentStatusResolver

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class PageClosedError(RuntimeError):
    """Raised when a load is started on a page that was already torn down."""


class PageLoad(Generic[_T]):
    """Owns the in-flight load for one page and publishes its latest result.

    Starting a new load cancels the previous one. A result is published only if
    its load is still the newest one and the page has not been torn down.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._generation = 0
        self._task: asyncio.Future[_T] | None = None
        self._closed = False
        self._value: _T | None = None

    @property
    def value(self) -> _T | None:
        return self._value

    @property
    def loading(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def closed(self) -> bool:
        return self._closed

    async def run(self, load: Callable[[], Awaitable[_T]]) -> _T | None:
        """Run ``load`` and publish its result; returns None when the result went stale."""
        if self._closed:
            raise PageClosedError(f"{self._name} page is closed.")
        self._generation += 1
        generation = self._generation
        if self._task is not None and not self._task.done():
            self._task.cancel()
        task = asyncio.ensure_future(load())
        self._task = task
        try:
            result = await task
        except asyncio.CancelledError:
            # Superseded or torn down while we were waiting; our caller is still alive.
            if task.cancelled() and self._is_stale(generation):
                self._log_dropped(generation)
                return None
            raise
        if self._is_stale(generation):
            self._log_dropped(generation)
            return None
        self._value = result
        return result

    def teardown(self) -> None:
        """Close the page and cancel whatever is still loading."""
        self._closed = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def _is_stale(self, generation: int) -> bool:
        return self._closed or generation != self._generation

    def _log_dropped(self, generation: int) -> None:
        logger.info(
            "pages.stale_result_dropped",
            extra={"page": self._name, "generation": generation, "closed": self._closed},
        )


class ProductPage:
    """State behind a product detail page."""

    def __init__(self, service: ProductViewService) -> None:
        self._service = service
        self._load: PageLoad[ProductView] = PageLoad("product")

    @property
    def view(self) -> ProductView | None:
        return self._load.value

    @property
    def loading(self) -> bool:
        return self._load.loading

    async def load(self, product_id: int) -> ProductView | None:
        return await self._load.run(lambda: self._service.build(product_id))

    def teardown(self) -> None:
        self._load.teardown()


class PaymentReturnPage:
    """State behind the page a processor redirects to after checkout."""

    def __init__(self, resolver: PaymentStatusResolver, *, poll: bool = False) -> None:
        self._resolver = resolver
        self._poll = poll
        self._load: PageLoad[PaymentCheck] = PageLoad("payment_return")

    @property
    def status(self) -> PaymentStatus | None:
        value = self._load.value
        return value if isinstance(value, PaymentStatus) else None

    @property
    def unavailable(self) -> bool:
        return isinstance(self._load.value, PaymentUnavailable)

    async def load(self, payment_id: str | None, processor: str | None) -> PaymentCheck | None:
        if self._poll:
            return await self._load.run(
                lambda: self._resolver.resolve_until_terminal(payment_id, processor)
            )
        return await self._load.run(lambda: self._resolver.resolve(payment_id, processor))

    def teardown(self) -> None:
        self._load.teardown()
