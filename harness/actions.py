"""
Action Dispatcher: user-intent operations against located elements.

Actionability (attached, visible, stable, enabled, receiving pointer events)
is awaited by Playwright within the action timeout. A call returns once the
browser-side event dispatch completes; the page's reaction to the event is
not awaited here, that is the State Reader's job.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Literal, Optional, Tuple, Union

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from harness.config import HarnessConfig
from harness.errors import AmbiguousLocator, ElementNotActionable
from harness.signals import SignalCollector

logger = logging.getLogger(__name__)

MouseButton = Literal["left", "middle", "right"]
Target = Union[str, Locator, None]


class ActionKind(str, Enum):
    """Supported user-intent operations."""

    CLICK = "click"
    DBLCLICK = "dblclick"
    FILL = "fill"
    SELECT_OPTION = "select_option"
    CHECK = "check"
    UNCHECK = "uncheck"
    PRESS_KEY = "press_key"
    MOUSE_MOVE = "mouse_move"
    MOUSE_DOWN = "mouse_down"
    MOUSE_UP = "mouse_up"
    HOVER = "hover"
    DISPATCH_EVENT = "dispatch_event"


# Actions that carry a string payload in ActionParams.value
VALUE_ACTIONS = frozenset(
    {
        ActionKind.FILL,
        ActionKind.SELECT_OPTION,
        ActionKind.PRESS_KEY,
        ActionKind.DISPATCH_EVENT,
    }
)

# Actions that may run without a target element
PAGE_LEVEL_ACTIONS = frozenset(
    {
        ActionKind.PRESS_KEY,
        ActionKind.MOUSE_MOVE,
        ActionKind.MOUSE_DOWN,
        ActionKind.MOUSE_UP,
    }
)

_ELEMENT_STATE_JS = """
(nodes) => {
    const el = nodes[0];
    if (!el) return { count: 0 };
    const rect = el.getBoundingClientRect();
    const style = window.getComputedStyle(el);
    return {
        count: nodes.length,
        visible: rect.width > 0 && rect.height > 0 && style.visibility !== 'hidden',
        disabled: !!el.disabled || el.getAttribute('aria-disabled') === 'true',
        pointer_events: style.pointerEvents,
    };
}
"""


@dataclass(frozen=True)
class ActionParams:
    """
    Parameters for a dispatched action.

    ``position`` is relative to the element's top-left corner when the action
    has a target, and page coordinates for page-level mouse actions.
    """

    value: Optional[str] = None
    position: Optional[Tuple[float, float]] = None
    button: MouseButton = "left"
    steps: int = 1
    timeout: Optional[int] = None


class ActionDispatcher:
    """Dispatches actions for one session, in issue order."""

    def __init__(self, page: Page, signals: SignalCollector, config: HarnessConfig) -> None:
        self._page = page
        self._signals = signals
        self._config = config

    async def perform(
        self,
        action: Union[ActionKind, str],
        target: Target = None,
        params: ActionParams = ActionParams(),
    ) -> None:
        """
        Dispatch ``action`` against ``target``.

        Raises AmbiguousLocator when more than one node matches,
        ElementNotActionable when the node never becomes actionable and
        UnresolvedDialog when an unplanned dialog stalls the page.
        """
        kind = ActionKind(action)
        self._validate(kind, target, params)
        self._signals.raise_if_stalled()

        timeout = self._config.action_timeout if params.timeout is None else params.timeout
        locator, label = self._locate(target)
        if locator is not None:
            await self._ensure_single(locator, label, kind)

        logger.debug(f"{kind.value} -> {label}")
        try:
            await self._signals.guard(self._dispatch(kind, locator, label, params, timeout))
        except PlaywrightTimeoutError as e:
            state = await self._element_state(locator) if locator is not None else {}
            raise ElementNotActionable(label, kind.value, timeout, state, e) from e
        except PlaywrightError as e:
            if "strict mode violation" in str(e):
                raise AmbiguousLocator(label, kind.value, None, e) from e
            raise

    # Shorthands

    async def click(self, target: Target, timeout: Optional[int] = None) -> None:
        await self.perform(ActionKind.CLICK, target, ActionParams(timeout=timeout))

    async def dblclick(self, target: Target, timeout: Optional[int] = None) -> None:
        await self.perform(ActionKind.DBLCLICK, target, ActionParams(timeout=timeout))

    async def fill(self, target: Target, value: str, timeout: Optional[int] = None) -> None:
        await self.perform(ActionKind.FILL, target, ActionParams(value=value, timeout=timeout))

    async def select_option(
        self, target: Target, value: str, timeout: Optional[int] = None
    ) -> None:
        await self.perform(
            ActionKind.SELECT_OPTION, target, ActionParams(value=value, timeout=timeout)
        )

    async def check(self, target: Target, timeout: Optional[int] = None) -> None:
        await self.perform(ActionKind.CHECK, target, ActionParams(timeout=timeout))

    async def uncheck(self, target: Target, timeout: Optional[int] = None) -> None:
        await self.perform(ActionKind.UNCHECK, target, ActionParams(timeout=timeout))

    async def press(self, key: str, target: Target = None, timeout: Optional[int] = None) -> None:
        await self.perform(ActionKind.PRESS_KEY, target, ActionParams(value=key, timeout=timeout))

    async def hover(self, target: Target, timeout: Optional[int] = None) -> None:
        await self.perform(ActionKind.HOVER, target, ActionParams(timeout=timeout))

    # Internals

    @staticmethod
    def _validate(kind: ActionKind, target: Target, params: ActionParams) -> None:
        if kind in VALUE_ACTIONS and params.value is None:
            raise ValueError(f"'{kind.value}' requires ActionParams.value")
        if target is None and kind not in PAGE_LEVEL_ACTIONS:
            raise ValueError(f"'{kind.value}' requires a target element")
        if (
            target is None
            and kind is ActionKind.MOUSE_MOVE
            and params.position is None
        ):
            raise ValueError("Page-level mouse_move requires ActionParams.position")

    def _locate(self, target: Target) -> Tuple[Optional[Locator], str]:
        match target:
            case None:
                return None, "page"
            case str():
                return self._page.locator(target), target
            case _:
                return target, repr(target)

    async def _ensure_single(self, locator: Locator, label: str, kind: ActionKind) -> None:
        # Zero matches is fine here: the element may not be rendered yet and
        # Playwright keeps re-resolving the locator until the timeout.
        count = await self._signals.guard(locator.count())
        if count > 1:
            raise AmbiguousLocator(label, kind.value, count)

    @staticmethod
    async def _element_state(locator: Locator) -> Dict[str, object]:
        try:
            state = await locator.evaluate_all(_ELEMENT_STATE_JS)
        except PlaywrightError as e:
            return {"error": str(e)}
        return dict(state) if isinstance(state, dict) else {}

    async def _dispatch(
        self,
        kind: ActionKind,
        locator: Optional[Locator],
        label: str,
        params: ActionParams,
        timeout: int,
    ) -> None:
        position = (
            {"x": params.position[0], "y": params.position[1]}
            if params.position is not None and locator is not None
            else None
        )
        value = params.value or ""

        match kind:
            case ActionKind.CLICK if locator is not None:
                await locator.click(button=params.button, position=position, timeout=timeout)
            case ActionKind.DBLCLICK if locator is not None:
                await locator.dblclick(button=params.button, position=position, timeout=timeout)
            case ActionKind.FILL if locator is not None:
                await locator.fill(value, timeout=timeout)
            case ActionKind.SELECT_OPTION if locator is not None:
                await locator.select_option(value, timeout=timeout)
            case ActionKind.CHECK if locator is not None:
                await locator.check(position=position, timeout=timeout)
            case ActionKind.UNCHECK if locator is not None:
                await locator.uncheck(position=position, timeout=timeout)
            case ActionKind.HOVER if locator is not None:
                await locator.hover(position=position, timeout=timeout)
            case ActionKind.DISPATCH_EVENT if locator is not None:
                await locator.dispatch_event(value, timeout=timeout)
            case ActionKind.PRESS_KEY:
                if locator is not None:
                    await locator.press(value, timeout=timeout)
                else:
                    await self._page.keyboard.press(value)
            case ActionKind.MOUSE_MOVE:
                x, y = await self._pointer_target(locator, label, params, timeout)
                await self._page.mouse.move(x, y, steps=params.steps)
            case ActionKind.MOUSE_DOWN:
                if locator is not None or params.position is not None:
                    x, y = await self._pointer_target(locator, label, params, timeout)
                    await self._page.mouse.move(x, y, steps=params.steps)
                await self._page.mouse.down(button=params.button)
            case ActionKind.MOUSE_UP:
                if locator is not None or params.position is not None:
                    x, y = await self._pointer_target(locator, label, params, timeout)
                    await self._page.mouse.move(x, y, steps=params.steps)
                await self._page.mouse.up(button=params.button)
            case _:
                raise ValueError(f"'{kind.value}' requires a target element")

    async def _pointer_target(
        self,
        locator: Optional[Locator],
        label: str,
        params: ActionParams,
        timeout: int,
    ) -> Tuple[float, float]:
        """Page coordinates for a mouse action: element-relative or absolute."""
        if locator is None:
            if params.position is None:
                raise ValueError(f"'{label}' requires ActionParams.position without a target")
            return params.position

        await locator.scroll_into_view_if_needed(timeout=timeout)
        box = await locator.bounding_box(timeout=timeout)
        if box is None:
            raise ElementNotActionable(
                label, "mouse", timeout, await self._element_state(locator)
            )
        if params.position is not None:
            return box["x"] + params.position[0], box["y"] + params.position[1]
        return box["x"] + box["width"] / 2, box["y"] + box["height"] / 2
