from __future__ import annotations

import asyncio

import pytest

from app.models.payment import PaymentUnavailable
from app.services.catalog.composer import ProductViewService
from app.services.pages import PageClosedError, PageLoad, PaymentReturnPage, ProductPage
from app.services.payments.status import PaymentStatusResolver


class _Gate:
    """Coroutine factory that blocks until released, then returns its value."""

    def __init__(self, value) -> None:
        self.value = value
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.cancelled = False

    async def __call__(self):
        self.started.set()
        try:
            await self.release.wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return self.value


@pytest.mark.asyncio
async def test_result_is_published():
    page: PageLoad[str] = PageLoad("test")

    async def load() -> str:
        return "ready"

    assert await page.run(load) == "ready"
    assert page.value == "ready"
    assert page.loading is False


@pytest.mark.asyncio
async def test_newer_load_supersedes_in_flight_one():
    page: PageLoad[str] = PageLoad("test")
    first = _Gate("first")
    second = _Gate("second")

    first_run = asyncio.create_task(page.run(first))
    await first.started.wait()
    second_run = asyncio.create_task(page.run(second))
    await second.started.wait()
    second.release.set()

    assert await first_run is None
    assert await second_run == "second"
    assert first.cancelled is True
    assert page.value == "second"


@pytest.mark.asyncio
async def test_teardown_drops_late_result():
    page: PageLoad[str] = PageLoad("test")
    gate = _Gate("late")

    run = asyncio.create_task(page.run(gate))
    await gate.started.wait()
    page.teardown()

    assert await run is None
    assert gate.cancelled is True
    assert page.value is None
    assert page.closed is True


@pytest.mark.asyncio
async def test_result_finishing_after_teardown_is_not_written():
    page: PageLoad[str] = PageLoad("test")

    async def load() -> str:
        page.teardown()
        return "written-too-late"

    assert await page.run(load) is None
    assert page.value is None


@pytest.mark.asyncio
async def test_closed_page_rejects_new_loads():
    page: PageLoad[str] = PageLoad("test")
    page.teardown()

    async def load() -> str:
        return "never"

    with pytest.raises(PageClosedError):
        await page.run(load)


@pytest.mark.asyncio
async def test_cancelling_the_caller_propagates():
    page: PageLoad[str] = PageLoad("test")
    gate = _Gate("unused")

    run = asyncio.create_task(page.run(gate))
    await gate.started.wait()
    run.cancel()

    with pytest.raises(asyncio.CancelledError):
        await run
    assert page.value is None


@pytest.mark.asyncio
async def test_product_page_holds_view(catalog_store):
    page = ProductPage(ProductViewService(catalog_store))

    view = await page.load(42)

    assert view is not None and page.view is view
    assert page.loading is False


@pytest.mark.asyncio
async def test_payment_page_reports_unavailable():
    page = PaymentReturnPage(PaymentStatusResolver(None))

    check = await page.load(None, None)

    assert isinstance(check, PaymentUnavailable)
    assert page.unavailable is True
    assert page.status is None
