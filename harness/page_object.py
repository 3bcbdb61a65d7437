"""Base class for page objects wrapping one demo page's locators and helpers."""

import logging
import re
from typing import ClassVar

from playwright.async_api import Locator

from harness.errors import ElementNotActionable
from harness.navigator import LoadState, Readiness
from harness.session import Session

logger = logging.getLogger(__name__)

BUTTON_LIKE_SELECTOR = 'button, input[type="button"], input[type="submit"], [role="button"]'
TEXT_INPUT_SELECTOR = 'input[type="text"], input[type="number"], input:not([type]), textarea'


class BasePage:
    """
    Page object base.

    Subclasses set ``path`` (relative to the configured base URL) and
    optionally ``readiness``, then add locators and helpers for their page.
    """

    path: ClassVar[str] = ""
    readiness: ClassVar[Readiness] = LoadState.LOAD_EVENT

    def __init__(self, session: Session) -> None:
        self.session = session
        self.page = session.page

    async def goto(self) -> None:
        await self.session.goto(self.path, self.readiness)

    async def find_button(self, *names: str, fallback_to_first: bool = False) -> Locator:
        """
        Locate a button by any of ``names`` (case-insensitive).

        Tries the accessible role name first, then visible text of
        button-like elements. With ``fallback_to_first`` the first button on
        the page is used when no name matches.
        """
        guard = self.session.signals.guard
        for name in names:
            pattern = re.compile(re.escape(name), re.IGNORECASE)

            by_role = self.page.get_by_role("button", name=pattern)
            if await guard(by_role.count()):
                return by_role.first

            by_text = self.page.locator(BUTTON_LIKE_SELECTOR).filter(has_text=pattern)
            if await guard(by_text.count()):
                return by_text.first

        if fallback_to_first:
            buttons = self.page.locator(BUTTON_LIKE_SELECTOR)
            if await guard(buttons.count()):
                logger.debug(f"No button named {names}, falling back to the first button")
                return buttons.first

        raise ElementNotActionable(
            " | ".join(names) or BUTTON_LIKE_SELECTOR, "find_button", 0, {"count": 0}
        )

    async def click_button(self, *names: str) -> None:
        await self.session.click(await self.find_button(*names))

    async def first_input(self) -> Locator:
        """The first text-like input on the page."""
        inputs = self.page.locator(TEXT_INPUT_SELECTOR)
        if not await self.session.signals.guard(inputs.count()):
            raise ElementNotActionable(TEXT_INPUT_SELECTOR, "first_input", 0, {"count": 0})
        return inputs.first
