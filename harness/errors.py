"""Harness-level failures.

These are failures of driving the page, never failures of the page itself:
uncaught page exceptions are recorded by the signal collector and only fail a
test through an explicit assertion.
"""

from typing import Mapping, Optional


class HarnessError(Exception):
    """Base class for harness failures."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class ConfigError(HarnessError):
    """Invalid harness configuration."""

    pass


class NavigationTimeout(HarnessError):
    """Readiness condition was not reached; the session should be disposed."""

    def __init__(
        self,
        url: str,
        readiness: str,
        timeout_ms: int,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.url = url
        self.readiness = readiness
        self.timeout_ms = timeout_ms
        super().__init__(
            f"Navigation to {url} did not reach '{readiness}' within {timeout_ms}ms",
            cause,
        )


class ElementNotActionable(HarnessError):
    """Locator never resolved to a visible, enabled, hit-testable element."""

    def __init__(
        self,
        selector: str,
        action: str,
        timeout_ms: int,
        state: Optional[Mapping[str, object]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.selector = selector
        self.action = action
        self.timeout_ms = timeout_ms
        self.state: Mapping[str, object] = dict(state or {})
        detail = ", ".join(f"{k}={v}" for k, v in self.state.items())
        super().__init__(
            f"'{action}' on {selector} not actionable within {timeout_ms}ms"
            + (f" ({detail})" if detail else ""),
            cause,
        )


class AmbiguousLocator(HarnessError):
    """More than one node matched where exactly one is required."""

    def __init__(
        self,
        selector: str,
        action: str,
        count: Optional[int],
        cause: Optional[BaseException] = None,
    ) -> None:
        self.selector = selector
        self.action = action
        self.count = count
        matched = f"{count} elements" if count is not None else "multiple elements"
        super().__init__(
            f"'{action}' requires exactly one element but {selector} matched {matched}",
            cause,
        )


class ConditionTimeout(HarnessError):
    """A polled condition never held; carries the last observed value."""

    def __init__(
        self,
        description: str,
        last_value: object,
        timeout_ms: int,
        last_error: Optional[BaseException] = None,
    ) -> None:
        self.description = description
        self.last_value = last_value
        self.timeout_ms = timeout_ms
        self.last_error = last_error
        message = (
            f"Condition '{description}' not met within {timeout_ms}ms; "
            f"last value: {last_value!r}"
        )
        if last_error is not None:
            message += f"; last read error: {last_error}"
        super().__init__(message, last_error)


class UnresolvedDialog(HarnessError):
    """A dialog opened with no registered plan; the session is stalled.

    This is always a harness-usage defect: register ``on_next_dialog`` before
    the action that opens the dialog.
    """

    def __init__(self, kind: str, message: str) -> None:
        self.kind = kind
        self.dialog_message = message
        super().__init__(
            f"Unresolved {kind} dialog ({message!r}) stalled the page; "
            f"register on_next_dialog() before triggering it and dispose this session"
        )


class UnsupportedQuery(HarnessError):
    """Query cannot be answered for the matched element type."""

    pass
