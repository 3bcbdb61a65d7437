"""
Signal Collector: buffers console output, uncaught page errors and dialogs.

Listeners append to per-channel buffers as Playwright delivers events; the
test reads snapshots at arbitrary later points. Dialogs are the one channel
that needs the harness to act: every dialog must be accepted or dismissed,
or the page's originating call stays blocked. A dialog that arrives with no
registered plan is left open and marks the collector as stalled.
"""

import asyncio
import itertools
import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Awaitable, Callable, Deque, List, Literal, Optional, Tuple, TypeVar, Union

from playwright.async_api import ConsoleMessage, Dialog, Page
from playwright.async_api import Error as PlaywrightError

from harness.errors import ConditionTimeout, HarnessError, UnresolvedDialog
from harness.records import (
    ConsoleLevel,
    ConsoleRecord,
    DialogKind,
    DialogRecord,
    DialogResolution,
    RuntimeErrorRecord,
    SourceLocation,
    classify_runtime_error,
    console_level,
    dialog_kind,
    format_record,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

ResolutionLike = Union[DialogResolution, Literal["accept", "dismiss"]]


def _consume_result(task: "asyncio.Future[object]") -> None:
    if not task.cancelled():
        task.exception()


@dataclass(frozen=True)
class DialogPlan:
    """One-shot instruction for the next dialog."""

    resolution: DialogResolution
    value: Optional[str] = None


def _to_resolution(resolution: ResolutionLike) -> DialogResolution:
    match resolution:
        case DialogResolution.ACCEPTED | "accept":
            return DialogResolution.ACCEPTED
        case DialogResolution.DISMISSED | "dismiss":
            return DialogResolution.DISMISSED
        case _:
            raise ValueError(f"Dialog plan must accept or dismiss, got {resolution!r}")


class SignalCollector:
    """Per-session buffers for console, page-error and dialog signals."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sequence = itertools.count(1)
        self._console: List[ConsoleRecord] = []
        self._errors: List[RuntimeErrorRecord] = []
        self._dialogs: List[DialogRecord] = []
        self._plans: Deque[DialogPlan] = deque()
        self._open_dialogs: List[Dialog] = []
        self._stalled = asyncio.Event()
        self._page: Optional[Page] = None

    # Lifecycle

    def attach(self, page: Page) -> None:
        """Subscribe to the page's signals; call before the first navigation."""
        if self._page is page:
            return
        if self._page is not None:
            raise HarnessError("SignalCollector is already attached to another page")
        page.on("console", self._on_console)
        page.on("pageerror", self._on_page_error)
        page.on("dialog", self._on_dialog)
        self._page = page
        logger.debug("Signal collector attached")

    def detach(self) -> None:
        """Remove listeners; buffers are kept for post-mortem reads."""
        if self._page is None:
            return
        self._page.remove_listener("console", self._on_console)
        self._page.remove_listener("pageerror", self._on_page_error)
        self._page.remove_listener("dialog", self._on_dialog)
        self._page = None
        logger.debug("Signal collector detached")

    @property
    def attached(self) -> bool:
        return self._page is not None

    # Listeners

    def _next_sequence(self) -> int:
        return next(self._sequence)

    def _on_console(self, message: ConsoleMessage) -> None:
        raw_type = message.type
        location = message.location
        with self._lock:
            record = ConsoleRecord(
                sequence=self._next_sequence(),
                level=console_level(raw_type),
                text=message.text,
                raw_type=raw_type,
                location=SourceLocation(
                    url=str(location.get("url", "")),
                    line=int(location.get("lineNumber", 0) or 0),
                    column=int(location.get("columnNumber", 0) or 0),
                )
                if location
                else None,
            )
            self._console.append(record)
        logger.debug(f"console.{record.level.value}: {record.text}")

    def _on_page_error(self, error: PlaywrightError) -> None:
        name = error.name or ""
        message = error.message or str(error)
        with self._lock:
            record = RuntimeErrorRecord(
                sequence=self._next_sequence(),
                kind=classify_runtime_error(name, message),
                name=name or "Error",
                message=message,
                stack=error.stack,
            )
            self._errors.append(record)
        logger.debug(f"pageerror {record.name}: {record.message}")

    async def _on_dialog(self, dialog: Dialog) -> None:
        kind = dialog_kind(dialog.type)
        with self._lock:
            plan = self._plans.popleft() if self._plans else None
            resolution = plan.resolution if plan else DialogResolution.UNRESOLVED
            value = (
                plan.value
                if plan
                and plan.resolution is DialogResolution.ACCEPTED
                and kind is DialogKind.PROMPT
                else None
            )
            record = DialogRecord(
                sequence=self._next_sequence(),
                kind=kind,
                message=dialog.message,
                default_value=dialog.default_value,
                resolution=resolution,
                value=value,
            )
            self._dialogs.append(record)
            if plan is None:
                self._open_dialogs.append(dialog)

        if plan is None:
            logger.error(
                f"Unresolved {kind.value} dialog {dialog.message!r}: "
                f"no on_next_dialog() plan was registered, page is stalled"
            )
            self._stalled.set()
            return

        logger.debug(f"Resolving {kind.value} dialog as {resolution.value}")
        if resolution is DialogResolution.ACCEPTED:
            if value is not None:
                await dialog.accept(value)
            else:
                await dialog.accept()
        else:
            await dialog.dismiss()

    # Dialog plans

    def on_next_dialog(self, resolution: ResolutionLike, value: Optional[str] = None) -> None:
        """
        Register a one-shot plan for the next dialog.

        Must be called before the action that opens the dialog. ``value`` is
        typed into an accepted prompt; it is ignored for other dialog kinds.
        Plans queue up in registration order.
        """
        plan = DialogPlan(_to_resolution(resolution), value)
        with self._lock:
            self._plans.append(plan)
        logger.debug(f"Dialog plan registered: {plan.resolution.value}")

    @property
    def pending_plans(self) -> int:
        return len(self._plans)

    @property
    def stalled(self) -> bool:
        """True once a dialog opened with no plan."""
        return self._stalled.is_set()

    def stalling_dialog(self) -> Optional[DialogRecord]:
        """The first dialog that was left unresolved, if any."""
        for record in self.dialogs():
            if record.resolution is DialogResolution.UNRESOLVED:
                return record
        return None

    async def wait_for_stall(self) -> DialogRecord:
        """Resolve once an unplanned dialog has stalled the page."""
        await self._stalled.wait()
        record = self.stalling_dialog()
        if record is None:
            raise HarnessError("Collector stalled without an unresolved dialog record")
        return record

    def raise_if_stalled(self) -> None:
        """Fail fast once the page is blocked on an unplanned dialog."""
        if not self.stalled:
            return
        record = self.stalling_dialog()
        if record is None:
            raise UnresolvedDialog("unknown", "")
        raise UnresolvedDialog(record.kind.value, record.message)

    async def guard(self, operation: Awaitable[T]) -> T:
        """
        Await a page operation, failing with UnresolvedDialog if an unplanned
        dialog stalls the page before it completes.
        """
        if self.stalled and asyncio.iscoroutine(operation):
            operation.close()
        self.raise_if_stalled()
        operation_task = asyncio.ensure_future(operation)
        stall_task = asyncio.ensure_future(self.wait_for_stall())
        try:
            done, _ = await asyncio.wait(
                {operation_task, stall_task}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            operation_task.cancel()
            stall_task.cancel()
            raise

        if operation_task in done:
            stall_task.cancel()
            return operation_task.result()

        # The blocked operation can never complete; drop it
        operation_task.add_done_callback(_consume_result)
        operation_task.cancel()
        record = stall_task.result()
        raise UnresolvedDialog(record.kind.value, record.message)

    async def release_stalled_dialogs(self) -> int:
        """Dismiss dialogs left open so the page can be closed."""
        with self._lock:
            dialogs, self._open_dialogs = self._open_dialogs, []
        released = 0
        for dialog in dialogs:
            try:
                await dialog.dismiss()
                released += 1
            except PlaywrightError as e:
                logger.debug(f"Stalled dialog already gone: {e}")
        return released

    # Snapshots

    def console_records(self) -> Tuple[ConsoleRecord, ...]:
        with self._lock:
            return tuple(self._console)

    def console_errors(self) -> Tuple[ConsoleRecord, ...]:
        return tuple(r for r in self.console_records() if r.level is ConsoleLevel.ERROR)

    def runtime_errors(self) -> Tuple[RuntimeErrorRecord, ...]:
        with self._lock:
            return tuple(self._errors)

    def dialogs(self) -> Tuple[DialogRecord, ...]:
        with self._lock:
            return tuple(self._dialogs)

    def reset(self) -> None:
        """
        Clear buffers; listeners and pending dialog plans are kept.

        Unresolved dialogs survive a reset: the page stays blocked on them.
        """
        with self._lock:
            self._console.clear()
            self._errors.clear()
            self._dialogs[:] = [
                r for r in self._dialogs if r.resolution is DialogResolution.UNRESOLVED
            ]
        logger.debug("Signal buffers reset")

    def dump(self) -> str:
        """Render all buffers for failure diagnostics."""
        sections = (
            ("Console", self.console_records()),
            ("Runtime errors", self.runtime_errors()),
            ("Dialogs", self.dialogs()),
        )
        lines: List[str] = []
        for title, records in sections:
            lines.append(f"{title} ({len(records)}):")
            lines.extend(f"  {format_record(r)}" for r in records)
        return "\n".join(lines)

    async def wait_until(
        self,
        predicate: Callable[["SignalCollector"], bool],
        timeout: int,
        interval: int = 50,
        description: str = "signal condition",
    ) -> None:
        """
        Poll the buffers until ``predicate`` holds.

        Signals arrive asynchronously with respect to the action that caused
        them; use this instead of a fixed sleep. Raises ConditionTimeout
        carrying the buffer sizes on expiry.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout / 1000
        while not predicate(self):
            remaining = deadline - loop.time()
            if remaining <= 0:
                sizes = {
                    "console": len(self.console_records()),
                    "runtime_errors": len(self.runtime_errors()),
                    "dialogs": len(self.dialogs()),
                }
                raise ConditionTimeout(description, sizes, timeout)
            await asyncio.sleep(min(interval / 1000, remaining))
