"""
Session: one page under test, owning its signal buffers for its lifetime.

The collector is attached in the constructor, before any navigation, so
signals emitted during page load are never lost.
"""

from __future__ import annotations

import logging
import uuid
from types import TracebackType
from typing import Callable, Optional, Tuple, Type, TypeVar, Union

from playwright.async_api import BrowserContext, Locator, Page

from harness.actions import ActionDispatcher, ActionKind, ActionParams, Target
from harness.config import HarnessConfig
from harness.navigator import LoadState, Navigator, Readiness
from harness.queries import QueryBase
from harness.records import ConsoleRecord, DialogRecord, RuntimeErrorRecord
from harness.signals import ResolutionLike, SignalCollector
from harness.state import StateReader

logger = logging.getLogger(__name__)

R = TypeVar("R")


class Session:
    """Drives one page: navigate, act, observe, assert."""

    def __init__(self, page: Page, config: Optional[HarnessConfig] = None) -> None:
        self.id = str(uuid.uuid4())[:8]
        self.page = page
        self.config = config or HarnessConfig()
        self.signals = SignalCollector()
        self.signals.attach(page)
        self.navigator = Navigator(page, self.signals, self.config)
        self.actions = ActionDispatcher(page, self.signals, self.config)
        self.state = StateReader(page, self.signals, self.config)
        self._disposed = False

    @classmethod
    async def open(
        cls, context: BrowserContext, config: Optional[HarnessConfig] = None
    ) -> Session:
        """Create a fresh page in ``context`` with the configured default timeouts."""
        resolved = config or HarnessConfig()
        page = await context.new_page()
        page.set_default_timeout(resolved.action_timeout)
        page.set_default_navigation_timeout(resolved.navigation_timeout)
        session = cls(page, resolved)
        logger.info(f"Session {session.id} opened")
        return session

    async def __aenter__(self) -> Session:
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.dispose()

    @property
    def stalled(self) -> bool:
        """True when an unplanned dialog blocks the page; dispose the session."""
        return self.signals.stalled

    @property
    def disposed(self) -> bool:
        return self._disposed

    async def dispose(self) -> None:
        """Release stalled dialogs, detach listeners and close the page."""
        if self._disposed:
            return
        self._disposed = True
        released = await self.signals.release_stalled_dialogs()
        if released:
            logger.warning(f"Session {self.id} dismissed {released} stalled dialog(s)")
        self.signals.detach()
        if not self.page.is_closed():
            await self.page.close()
        logger.info(f"Session {self.id} disposed")

    # Navigator

    async def goto(
        self,
        url: str,
        readiness: Readiness = LoadState.LOAD_EVENT,
        timeout: Optional[int] = None,
    ) -> None:
        await self.navigator.goto(url, readiness, timeout)

    async def reload(
        self, readiness: Readiness = LoadState.LOAD_EVENT, timeout: Optional[int] = None
    ) -> None:
        await self.navigator.reload(readiness, timeout)

    # Action Dispatcher

    def locator(self, selector: str) -> Locator:
        return self.page.locator(selector)

    async def perform(
        self,
        action: Union[ActionKind, str],
        target: Target = None,
        params: ActionParams = ActionParams(),
    ) -> None:
        await self.actions.perform(action, target, params)

    async def click(self, target: Target, timeout: Optional[int] = None) -> None:
        await self.actions.click(target, timeout)

    async def dblclick(self, target: Target, timeout: Optional[int] = None) -> None:
        await self.actions.dblclick(target, timeout)

    async def fill(self, target: Target, value: str, timeout: Optional[int] = None) -> None:
        await self.actions.fill(target, value, timeout)

    async def select_option(
        self, target: Target, value: str, timeout: Optional[int] = None
    ) -> None:
        await self.actions.select_option(target, value, timeout)

    async def check(self, target: Target, timeout: Optional[int] = None) -> None:
        await self.actions.check(target, timeout)

    async def uncheck(self, target: Target, timeout: Optional[int] = None) -> None:
        await self.actions.uncheck(target, timeout)

    async def press(self, key: str, target: Target = None, timeout: Optional[int] = None) -> None:
        await self.actions.press(key, target, timeout)

    async def hover(self, target: Target, timeout: Optional[int] = None) -> None:
        await self.actions.hover(target, timeout)

    # State Reader

    async def read(self, query: QueryBase[R]) -> R:
        return await self.state.read(query)

    async def wait_for(
        self,
        query: QueryBase[R],
        predicate: Callable[[R], bool],
        timeout: Optional[int] = None,
        interval: Optional[int] = None,
        description: Optional[str] = None,
    ) -> R:
        return await self.state.wait_for(query, predicate, timeout, interval, description)

    async def wait_for_count(
        self,
        selector: str,
        expected: Union[int, Callable[[int], bool]],
        timeout: Optional[int] = None,
    ) -> int:
        return await self.state.wait_for_count(selector, expected, timeout)

    async def wait_for_text(
        self,
        selector: str,
        expected: Union[str, Callable[[Optional[str]], bool]],
        timeout: Optional[int] = None,
    ) -> Optional[str]:
        return await self.state.wait_for_text(selector, expected, timeout)

    async def read_global(self, name: str) -> object:
        return await self.state.read_global(name)

    # Signal Collector

    def console_records(self) -> Tuple[ConsoleRecord, ...]:
        return self.signals.console_records()

    def runtime_errors(self) -> Tuple[RuntimeErrorRecord, ...]:
        return self.signals.runtime_errors()

    def dialogs(self) -> Tuple[DialogRecord, ...]:
        return self.signals.dialogs()

    def on_next_dialog(self, resolution: ResolutionLike, value: Optional[str] = None) -> None:
        self.signals.on_next_dialog(resolution, value)

    def reset_signals(self) -> None:
        self.signals.reset()

    async def wait_for_signals(
        self,
        predicate: Callable[[SignalCollector], bool],
        timeout: Optional[int] = None,
        description: str = "signal condition",
    ) -> None:
        await self.signals.wait_until(
            predicate,
            self.config.wait_timeout if timeout is None else timeout,
            self.config.poll_interval,
            description,
        )
