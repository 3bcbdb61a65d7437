"""
Pytest plugin: browser, context and session fixtures for page tests.

Registered through the ``pytest11`` entry point, so installing the package
is enough for ``harness_session`` to be available in any test suite.
"""

import logging
from dataclasses import replace
from typing import AsyncGenerator, Generator, Optional

import pytest
import pytest_asyncio
from _pytest.fixtures import FixtureRequest
from playwright.async_api import Browser, BrowserContext, async_playwright

from harness.assertions import assert_no_unexpected_errors
from harness.config import HarnessConfig
from harness.session import Session
from harness.static_server import StaticServer

logger = logging.getLogger(__name__)

SESSION_KEY = pytest.StashKey[Session]()


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "e2e: Tests that drive a real browser")
    config.addinivalue_line(
        "markers",
        "expect_page_errors(*patterns): The page is expected to report errors; "
        "with patterns only matching errors are tolerated",
    )


def pytest_generate_tests(metafunc: pytest.Metafunc) -> None:
    if "browser_name" in metafunc.fixturenames:
        browsers = HarnessConfig.from_environment().browsers
        metafunc.parametrize("browser_name", browsers, ids=list(browsers), scope="function")


@pytest.hookimpl(hookwrapper=True, tryfirst=True)
def pytest_runtest_makereport(
    item: pytest.Item, call: pytest.CallInfo[None]
) -> Generator[None, pytest.TestReport, None]:
    """Keep each phase's report on the item and attach page signals to failures."""
    outcome = yield
    report: pytest.TestReport = outcome.get_result()  # type: ignore[attr-defined]
    setattr(item, f"rep_{report.when}", report)

    if not report.failed or report.when == "setup":
        return
    session = item.stash.get(SESSION_KEY, None)
    if session is None:
        return
    dump = session.signals.dump()
    if dump:
        report.sections.append(("page signals", dump))
        logger.info(f"Signals for failed test {item.nodeid}:\n{dump}")


@pytest.fixture(scope="session")
def harness_config() -> HarnessConfig:
    """Harness configuration from HARNESS_* environment variables."""
    return HarnessConfig.from_environment()


@pytest.fixture(scope="session")
def static_server(harness_config: HarnessConfig) -> Generator[Optional[StaticServer], None, None]:
    """Serve the configured page directory, or None when it does not exist."""
    if not harness_config.html_dir.is_dir():
        logger.info(
            f"{harness_config.html_dir} not found, using {harness_config.base_url} as is"
        )
        yield None
        return
    with StaticServer(
        harness_config.html_dir, harness_config.host, harness_config.port
    ) as server:
        yield server


@pytest_asyncio.fixture
async def browser(
    browser_name: str, harness_config: HarnessConfig
) -> AsyncGenerator[Browser, None]:
    """Launch one browser per configured browser name."""
    async with async_playwright() as p:
        if not hasattr(p, browser_name):
            pytest.fail(f"Browser {browser_name} not available in Playwright")

        launcher = getattr(p, browser_name)
        browser = await launcher.launch(
            headless=harness_config.headless,
            slow_mo=harness_config.slow_mo,
            args=harness_config.launch_args(browser_name),
        )
        yield browser
        await browser.close()


@pytest_asyncio.fixture
async def browser_context(
    browser: Browser, harness_config: HarnessConfig
) -> AsyncGenerator[BrowserContext, None]:
    """Create a new browser context for each test."""
    context = await browser.new_context(
        viewport=harness_config.viewport_size,  # type: ignore[arg-type]
        ignore_https_errors=True,
    )
    yield context
    await context.close()


@pytest_asyncio.fixture
async def harness_session(
    request: FixtureRequest,
    browser_context: BrowserContext,
    harness_config: HarnessConfig,
    static_server: Optional[StaticServer],
) -> AsyncGenerator[Session, None]:
    """
    Fresh session with the signal collector attached before any navigation.

    On teardown, uncaught page errors and console errors fail the test unless
    it is marked ``expect_page_errors``. The marker's positional arguments,
    when given, are regex patterns of the errors to tolerate.
    """
    config = (
        replace(harness_config, base_url=static_server.base_url)
        if static_server is not None
        else harness_config
    )
    session = await Session.open(browser_context, config)
    request.node.stash[SESSION_KEY] = session

    yield session

    try:
        call_report = getattr(request.node, "rep_call", None)
        if call_report is not None and call_report.passed:
            marker = request.node.get_closest_marker("expect_page_errors")
            if marker is None:
                assert_no_unexpected_errors(session.signals)
            elif marker.args:
                assert_no_unexpected_errors(session.signals, ignore=marker.args)
    finally:
        await session.dispose()
