"""
State Reader: observes DOM, canvas and SVG state after actions.

Two modes:
- ``read`` answers from the current DOM without auto-waiting; use it only
  when the DOM is known to have settled.
- ``wait_for`` polls at a fixed interval until a predicate holds. This is the
  mode to use whenever an action triggers re-render, animation or
  timer-driven state changes.

Reads never mutate the page: pixel data is copied through a scratch canvas
instead of acquiring a rendering context on the target.
"""

import asyncio
import logging
from typing import Callable, Dict, Mapping, Optional, TypeVar, Union

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from harness.config import HarnessConfig
from harness.errors import AmbiguousLocator, ConditionTimeout, UnsupportedQuery
from harness.queries import (
    AttributeQuery,
    AttributeValue,
    BoundingBox,
    BoundingBoxQuery,
    BoxValue,
    CountQuery,
    ElementCount,
    FlagValue,
    InputValueQuery,
    IsCheckedQuery,
    IsVisibleQuery,
    PixelBuffer,
    PixelQuery,
    QueryBase,
    TextQuery,
    TextValue,
    describe_query,
)
from harness.signals import SignalCollector

logger = logging.getLogger(__name__)

R = TypeVar("R")

_PROBE_JS = """
(nodes, probe) => {
    const result = { count: nodes.length };
    if (probe.kind === 'count' || nodes.length !== 1) return result;
    const el = nodes[0];

    const readPixels = (el, region) => {
        const tag = el.tagName.toLowerCase();
        if (tag !== 'canvas' && tag !== 'img') return { unsupported: tag };
        const fullWidth = tag === 'canvas' ? el.width : el.naturalWidth;
        const fullHeight = tag === 'canvas' ? el.height : el.naturalHeight;
        const r = region || { x: 0, y: 0, width: fullWidth, height: fullHeight };
        const x = Math.min(r.x, fullWidth);
        const y = Math.min(r.y, fullHeight);
        const width = Math.max(0, Math.min(r.width, fullWidth - x));
        const height = Math.max(0, Math.min(r.height, fullHeight - y));
        if (width === 0 || height === 0) {
            return { width: 0, height: 0, data: '', tainted: false };
        }
        const scratch = document.createElement('canvas');
        scratch.width = width;
        scratch.height = height;
        const ctx = scratch.getContext('2d');
        try {
            ctx.drawImage(el, x, y, width, height, 0, 0, width, height);
        } catch (e) {
            // Unloaded or broken images draw nothing
        }
        let bytes;
        let tainted = false;
        try {
            bytes = ctx.getImageData(0, 0, width, height).data;
        } catch (e) {
            if (e.name !== 'SecurityError') throw e;
            tainted = true;
            bytes = new Uint8ClampedArray(width * height * 4);
        }
        let binary = '';
        for (let i = 0; i < bytes.length; i += 0x8000) {
            binary += String.fromCharCode.apply(null, bytes.subarray(i, i + 0x8000));
        }
        return { width, height, data: btoa(binary), tainted };
    };

    switch (probe.kind) {
        case 'text':
            result.value = el.textContent;
            break;
        case 'inner_text':
            result.value = el.innerText;
            break;
        case 'input_value':
            result.value = 'value' in el ? String(el.value) : null;
            break;
        case 'attribute':
            result.value = el.getAttribute(probe.name);
            break;
        case 'box': {
            const rect = el.getBoundingClientRect();
            result.value = rect.width > 0 || rect.height > 0
                ? { x: rect.x, y: rect.y, width: rect.width, height: rect.height }
                : null;
            break;
        }
        case 'visible': {
            const rect = el.getBoundingClientRect();
            const style = window.getComputedStyle(el);
            result.value = rect.width > 0 && rect.height > 0
                && style.visibility !== 'hidden' && style.display !== 'none';
            break;
        }
        case 'checked':
            result.value = !!el.checked;
            break;
        case 'pixels':
            result.value = readPixels(el, probe.region);
            break;
    }
    return result;
}
"""


def _probe_for(query: QueryBase[R]) -> Dict[str, object]:
    match query:
        case CountQuery():
            return {"kind": "count"}
        case TextQuery(inner=inner):
            return {"kind": "inner_text" if inner else "text"}
        case InputValueQuery():
            return {"kind": "input_value"}
        case AttributeQuery(name=name):
            return {"kind": "attribute", "name": name}
        case BoundingBoxQuery():
            return {"kind": "box"}
        case IsVisibleQuery():
            return {"kind": "visible"}
        case IsCheckedQuery():
            return {"kind": "checked"}
        case PixelQuery(region=region):
            return {
                "kind": "pixels",
                "region": None
                if region is None
                else {
                    "x": region.x,
                    "y": region.y,
                    "width": region.width,
                    "height": region.height,
                },
            }
        case _:
            raise TypeError(f"Unsupported query type: {type(query).__name__}")


def _optional_str(value: object) -> Optional[str]:
    return None if value is None else str(value)


class StateReader:
    """Reads page state for one session."""

    def __init__(self, page: Page, signals: SignalCollector, config: HarnessConfig) -> None:
        self._page = page
        self._signals = signals
        self._config = config

    async def read(self, query: QueryBase[R]) -> R:
        """
        Answer ``query`` from the current DOM without waiting.

        Zero matches produce the result type's "absent" value; more than one
        match for a single-element query raises AmbiguousLocator.
        """
        raw = await self._signals.guard(
            self._page.locator(query.selector).evaluate_all(_PROBE_JS, _probe_for(query))
        )
        if not isinstance(raw, dict):
            raise TypeError(f"Unexpected probe result for {describe_query(query)}: {raw!r}")
        return self._to_result(query, raw)

    @staticmethod
    def _to_result(query: QueryBase[R], raw: Mapping[str, object]) -> R:
        count = int(str(raw.get("count", 0)))
        value = raw.get("value")

        if isinstance(query, CountQuery):
            return ElementCount(count)  # type: ignore[return-value]
        if count > 1:
            raise AmbiguousLocator(query.selector, f"read {describe_query(query)}", count)

        result: Union[
            TextValue, AttributeValue, BoxValue, FlagValue, Optional[PixelBuffer]
        ]
        match query:
            case TextQuery() | InputValueQuery():
                result = TextValue(_optional_str(value))
            case AttributeQuery(name=name):
                result = AttributeValue(name, _optional_str(value), element_present=count == 1)
            case BoundingBoxQuery():
                result = BoxValue(
                    BoundingBox(
                        x=float(value["x"]),
                        y=float(value["y"]),
                        width=float(value["width"]),
                        height=float(value["height"]),
                    )
                    if isinstance(value, dict)
                    else None
                )
            case IsVisibleQuery() | IsCheckedQuery():
                result = FlagValue(None if count == 0 else bool(value))
            case PixelQuery():
                if count == 0:
                    result = None
                elif isinstance(value, dict) and "unsupported" in value:
                    raise UnsupportedQuery(
                        f"Pixel data is only readable from canvas or img elements, "
                        f"{query.selector} is <{value['unsupported']}>"
                    )
                elif isinstance(value, dict):
                    result = PixelBuffer.from_base64(
                        int(value["width"]),
                        int(value["height"]),
                        str(value["data"]),
                        tainted=bool(value["tainted"]),
                    )
                else:
                    raise TypeError(f"Unexpected pixel probe result: {value!r}")
            case _:
                raise TypeError(f"Unsupported query type: {type(query).__name__}")
        return result  # type: ignore[return-value]

    async def wait_for(
        self,
        query: QueryBase[R],
        predicate: Callable[[R], bool],
        timeout: Optional[int] = None,
        interval: Optional[int] = None,
        description: Optional[str] = None,
    ) -> R:
        """
        Poll ``query`` until ``predicate`` holds and return the final result.

        Transient read failures (not-yet-rendered or re-rendering nodes,
        detached execution contexts) are retried. ``timeout=0`` reads once.
        Raises ConditionTimeout with the last observed value on expiry.
        """
        budget = self._config.wait_timeout if timeout is None else timeout
        step = self._config.poll_interval if interval is None else interval
        label = description or describe_query(query)

        loop = asyncio.get_running_loop()
        deadline = loop.time() + budget / 1000
        last_value: Optional[R] = None
        last_error: Optional[BaseException] = None
        attempts = 0

        while True:
            attempts += 1
            try:
                value = await self.read(query)
            except (PlaywrightError, AmbiguousLocator) as e:
                last_error = e
                logger.debug(f"Read of {label} failed on attempt {attempts}, retrying: {e}")
            else:
                last_value, last_error = value, None
                if predicate(value):
                    return value

            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.warning(f"Condition '{label}' not met after {attempts} reads")
                raise ConditionTimeout(label, last_value, budget, last_error)
            await asyncio.sleep(min(step / 1000, remaining))

    async def wait_for_count(
        self,
        selector: str,
        expected: Union[int, Callable[[int], bool]],
        timeout: Optional[int] = None,
    ) -> int:
        """Wait until the number of matches equals (or satisfies) ``expected``."""
        check: Callable[[int], bool] = (
            expected if callable(expected) else (lambda n: n == expected)
        )
        result = await self.wait_for(
            CountQuery(selector),
            lambda r: check(r.value),
            timeout=timeout,
            description=f"count({selector}) matches {expected!r}"
            if not callable(expected)
            else None,
        )
        return result.value

    async def wait_for_text(
        self,
        selector: str,
        expected: Union[str, Callable[[Optional[str]], bool]],
        timeout: Optional[int] = None,
    ) -> Optional[str]:
        """Wait until the stripped text equals (or satisfies) ``expected``."""
        check: Callable[[Optional[str]], bool] = (
            expected
            if callable(expected)
            else (lambda text: text is not None and text.strip() == expected)
        )
        result = await self.wait_for(
            TextQuery(selector),
            lambda r: check(r.value),
            timeout=timeout,
            description=f"text({selector}) == {expected!r}"
            if not callable(expected)
            else None,
        )
        return result.value

    async def read_global(self, name: str) -> object:
        """JSON-serializable value of a ``window`` property, None when unset."""
        return await self._signals.guard(
            self._page.evaluate("(name) => window[name] ?? null", name)
        )
