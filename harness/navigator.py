"""Navigator: loads a target page and waits for a readiness condition."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Literal, Optional, Union

from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from harness.config import HarnessConfig
from harness.errors import NavigationTimeout
from harness.signals import SignalCollector

logger = logging.getLogger(__name__)


class LoadState(str, Enum):
    """Page lifecycle milestones, valued as Playwright's wait_until names."""

    DOM_READY = "domcontentloaded"
    LOAD_EVENT = "load"
    NETWORK_IDLE = "networkidle"


@dataclass(frozen=True)
class SelectorVisible:
    """Ready once any node matching the selector is visible."""

    selector: str


Readiness = Union[LoadState, SelectorVisible]

WaitUntil = Literal["domcontentloaded", "load", "networkidle"]

_Loader = Callable[[], Awaitable[None]]


def describe_readiness(readiness: Readiness) -> str:
    match readiness:
        case SelectorVisible(selector=selector):
            return f"selector-visible({selector})"
        case LoadState():
            return readiness.value


class Navigator:
    """Loads pages for a single session."""

    def __init__(self, page: Page, signals: SignalCollector, config: HarnessConfig) -> None:
        self._page = page
        self._signals = signals
        self._config = config

    @property
    def current_url(self) -> str:
        return self._page.url

    async def goto(
        self,
        url: str,
        readiness: Readiness = LoadState.LOAD_EVENT,
        timeout: Optional[int] = None,
    ) -> None:
        """
        Load ``url`` and wait until ``readiness`` holds.

        Relative URLs resolve against the configured base URL. The signal
        collector must already be attached: the page may emit console output
        or throw during load. An unplanned dialog opened during load raises
        UnresolvedDialog instead of waiting out the timeout.
        """
        target = self._config.resolve_url(url)
        budget = self._config.navigation_timeout if timeout is None else timeout
        logger.info(f"Navigating to {target} ({describe_readiness(readiness)})")

        async def _load() -> None:
            await self._page.goto(
                target, wait_until=self._load_state(readiness), timeout=budget
            )

        await self._run(_load, target, readiness, budget)

    async def reload(
        self,
        readiness: Readiness = LoadState.LOAD_EVENT,
        timeout: Optional[int] = None,
    ) -> None:
        """Reload the current page with the same readiness semantics as goto."""
        budget = self._config.navigation_timeout if timeout is None else timeout
        target = self._page.url
        logger.info(f"Reloading {target} ({describe_readiness(readiness)})")

        async def _load() -> None:
            await self._page.reload(
                wait_until=self._load_state(readiness), timeout=budget
            )

        await self._run(_load, target, readiness, budget)

    @staticmethod
    def _load_state(readiness: Readiness) -> WaitUntil:
        match readiness:
            case LoadState.DOM_READY | SelectorVisible():
                return "domcontentloaded"
            case LoadState.NETWORK_IDLE:
                return "networkidle"
            case _:
                return "load"

    async def _run(
        self,
        load: _Loader,
        target: str,
        readiness: Readiness,
        budget: int,
    ) -> None:
        started = time.monotonic()
        try:
            await self._signals.guard(load())
            if isinstance(readiness, SelectorVisible):
                elapsed = int((time.monotonic() - started) * 1000)
                # Playwright treats 0 as "no timeout"; keep at least 1ms
                remaining = max(budget - elapsed, 1)
                await self._signals.guard(
                    self._page.locator(readiness.selector).first.wait_for(
                        state="visible", timeout=remaining
                    )
                )
        except PlaywrightTimeoutError as e:
            raise NavigationTimeout(
                target, describe_readiness(readiness), budget, e
            ) from e

