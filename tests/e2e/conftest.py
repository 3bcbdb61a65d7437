"""Page-object fixtures for browser tests against tests/pages."""

import pytest_asyncio

from harness.session import Session
from tests.e2e.page_objects import BarsPage, CanvasPage, DialogsPage, FormPage, HeapPage


@pytest_asyncio.fixture
async def bars_page(harness_session: Session) -> BarsPage:
    page = BarsPage(harness_session)
    await page.goto()
    return page


@pytest_asyncio.fixture
async def heap_page(harness_session: Session) -> HeapPage:
    page = HeapPage(harness_session)
    await page.goto()
    return page


@pytest_asyncio.fixture
async def dialogs_page(harness_session: Session) -> DialogsPage:
    page = DialogsPage(harness_session)
    await page.goto()
    return page


@pytest_asyncio.fixture
async def form_page(harness_session: Session) -> FormPage:
    page = FormPage(harness_session)
    await page.goto()
    return page


@pytest_asyncio.fixture
async def canvas_page(harness_session: Session) -> CanvasPage:
    page = CanvasPage(harness_session)
    await page.goto()
    return page
