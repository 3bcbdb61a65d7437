"""
Assertion Layer: matchers and assertions with signal-buffer diagnostics.

Page runtime errors never fail a test on their own; they fail it only through
the explicit assertions in this module.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Collection, Iterable, Optional, Pattern, Sequence, Tuple, Union

from harness.queries import (
    AttributeValue,
    BoxValue,
    ElementCount,
    FlagValue,
    TextValue,
)
from harness.records import ConsoleRecord, RuntimeErrorKind, RuntimeErrorRecord
from harness.signals import SignalCollector


class HarnessAssertionError(AssertionError):
    """Assertion failure carrying the compared values and a signal dump."""

    def __init__(
        self,
        message: str,
        actual: object,
        expected: str,
        signal_dump: Optional[str] = None,
    ) -> None:
        self.actual = actual
        self.expected = expected
        self.signal_dump = signal_dump
        super().__init__(message)


class Matcher(ABC):
    """Predicate over an observed value with a readable description."""

    @abstractmethod
    def matches(self, actual: object) -> bool:
        ...

    @abstractmethod
    def describe(self) -> str:
        ...

    def __repr__(self) -> str:
        return self.describe()


class Exactly(Matcher):
    def __init__(self, expected: object) -> None:
        self.expected = expected

    def matches(self, actual: object) -> bool:
        return bool(actual == self.expected)

    def describe(self) -> str:
        return f"exactly {self.expected!r}"


class Contains(Matcher):
    """Substring match on the string form of the value."""

    def __init__(self, fragment: str) -> None:
        self.fragment = fragment

    def matches(self, actual: object) -> bool:
        return actual is not None and self.fragment in str(actual)

    def describe(self) -> str:
        return f"containing {self.fragment!r}"


class MatchesRegex(Matcher):
    def __init__(self, pattern: Union[str, Pattern[str]], flags: int = 0) -> None:
        self.pattern = re.compile(pattern, flags) if isinstance(pattern, str) else pattern

    def matches(self, actual: object) -> bool:
        return actual is not None and self.pattern.search(str(actual)) is not None

    def describe(self) -> str:
        return f"matching /{self.pattern.pattern}/"


class InRange(Matcher):
    """Numeric range, inclusive on both ends unless told otherwise."""

    def __init__(
        self,
        low: Optional[float] = None,
        high: Optional[float] = None,
        inclusive: bool = True,
    ) -> None:
        if low is None and high is None:
            raise ValueError("InRange needs at least one bound")
        self.low = low
        self.high = high
        self.inclusive = inclusive

    def matches(self, actual: object) -> bool:
        if isinstance(actual, bool) or not isinstance(actual, (int, float)):
            return False
        if self.low is not None:
            if actual < self.low or (not self.inclusive and actual == self.low):
                return False
        if self.high is not None:
            if actual > self.high or (not self.inclusive and actual == self.high):
                return False
        return True

    def describe(self) -> str:
        left, right = ("[", "]") if self.inclusive else ("(", ")")
        low = "-inf" if self.low is None else self.low
        high = "+inf" if self.high is None else self.high
        return f"in range {left}{low}, {high}{right}"


class OneOf(Matcher):
    """Set membership."""

    def __init__(self, values: Iterable[object]) -> None:
        self.values = list(values)

    def matches(self, actual: object) -> bool:
        return actual in self.values

    def describe(self) -> str:
        return f"one of {self.values!r}"


class Not(Matcher):
    def __init__(self, matcher: Matcher) -> None:
        self.matcher = matcher

    def matches(self, actual: object) -> bool:
        return not self.matcher.matches(actual)

    def describe(self) -> str:
        return f"not {self.matcher.describe()}"


def unwrap(actual: object) -> object:
    """Reduce a typed query result to the value a matcher compares."""
    match actual:
        case ElementCount() | TextValue() | AttributeValue() | BoxValue() | FlagValue():
            return actual.value
        case _:
            return actual


def _failure(
    headline: str,
    actual: object,
    expected: str,
    signals: Optional[SignalCollector],
) -> HarnessAssertionError:
    dump = signals.dump() if signals is not None else None
    lines = [headline, f"  expected: {expected}", f"  actual:   {actual!r}"]
    if dump:
        lines.append("Signals at failure:")
        lines.extend(f"  {line}" for line in dump.splitlines())
    return HarnessAssertionError("\n".join(lines), actual, expected, dump)


def assert_that(
    actual: object,
    matcher: Matcher,
    signals: Optional[SignalCollector] = None,
    message: Optional[str] = None,
) -> None:
    """Fail with actual, expected and (when given) the signal buffers."""
    value = unwrap(actual)
    if matcher.matches(value):
        return
    raise _failure(message or "Assertion failed", value, matcher.describe(), signals)


def _excused(text: str, ignore: Sequence[Union[str, Pattern[str]]]) -> bool:
    return any(re.search(pattern, text) for pattern in ignore)


def unexpected_errors(
    signals: SignalCollector,
    ignore: Sequence[Union[str, Pattern[str]]] = (),
) -> Tuple[Sequence[RuntimeErrorRecord], Sequence[ConsoleRecord]]:
    runtime = [
        r for r in signals.runtime_errors() if not _excused(f"{r.name}: {r.message}", ignore)
    ]
    console = [r for r in signals.console_errors() if not _excused(r.text, ignore)]
    return runtime, console


def assert_no_unexpected_errors(
    signals: SignalCollector,
    ignore: Sequence[Union[str, Pattern[str]]] = (),
) -> None:
    """Fail if any uncaught page error or console error was recorded."""
    runtime, console = unexpected_errors(signals, ignore)
    if not runtime and not console:
        return
    raise _failure(
        f"Page reported {len(runtime)} uncaught error(s) and "
        f"{len(console)} console error(s)",
        [f"{r.name}: {r.message}" for r in runtime] + [r.text for r in console],
        "no page errors",
        signals,
    )


def assert_runtime_error(
    signals: SignalCollector,
    kind: RuntimeErrorKind,
    count: Optional[int] = None,
    message: Optional[Matcher] = None,
) -> Collection[RuntimeErrorRecord]:
    """
    Expect uncaught errors of ``kind`` (used against intentionally broken
    pages). Returns the matching records.
    """
    matching = [
        r
        for r in signals.runtime_errors()
        if r.kind is kind and (message is None or message.matches(r.message))
    ]
    expected = f"{count if count is not None else 'at least one'} {kind.value}" + (
        f" {message.describe()}" if message is not None else ""
    )
    if (count is None and not matching) or (count is not None and len(matching) != count):
        raise _failure(
            "Expected runtime error not observed",
            [f"{r.name}: {r.message}" for r in signals.runtime_errors()],
            expected,
            signals,
        )
    return matching
