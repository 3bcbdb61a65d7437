"""
Page Harness

A Playwright-based harness for driving demo web pages: navigate, act,
observe DOM and canvas state, capture console/error/dialog signals and
assert on them.
"""

from harness.actions import ActionDispatcher, ActionKind, ActionParams
from harness.assertions import (
    Contains,
    Exactly,
    HarnessAssertionError,
    InRange,
    MatchesRegex,
    Not,
    OneOf,
    assert_no_unexpected_errors,
    assert_runtime_error,
    assert_that,
)
from harness.config import HarnessConfig
from harness.errors import (
    AmbiguousLocator,
    ConditionTimeout,
    ConfigError,
    ElementNotActionable,
    HarnessError,
    NavigationTimeout,
    UnresolvedDialog,
    UnsupportedQuery,
)
from harness.navigator import LoadState, Navigator, SelectorVisible
from harness.queries import (
    AttributeQuery,
    BoundingBoxQuery,
    CountQuery,
    InputValueQuery,
    IsCheckedQuery,
    IsVisibleQuery,
    PixelBuffer,
    PixelQuery,
    Region,
    TextQuery,
)
from harness.records import (
    ConsoleLevel,
    ConsoleRecord,
    DialogKind,
    DialogRecord,
    DialogResolution,
    RuntimeErrorKind,
    RuntimeErrorRecord,
)
from harness.session import Session
from harness.signals import SignalCollector
from harness.state import StateReader

__version__ = "0.1.0"

__all__ = [
    "Session",
    "HarnessConfig",
    "Navigator",
    "LoadState",
    "SelectorVisible",
    "SignalCollector",
    "ActionDispatcher",
    "ActionKind",
    "ActionParams",
    "StateReader",
    "CountQuery",
    "TextQuery",
    "InputValueQuery",
    "AttributeQuery",
    "BoundingBoxQuery",
    "IsVisibleQuery",
    "IsCheckedQuery",
    "PixelQuery",
    "PixelBuffer",
    "Region",
    "ConsoleLevel",
    "ConsoleRecord",
    "RuntimeErrorKind",
    "RuntimeErrorRecord",
    "DialogKind",
    "DialogRecord",
    "DialogResolution",
    "assert_that",
    "assert_no_unexpected_errors",
    "assert_runtime_error",
    "Exactly",
    "Contains",
    "MatchesRegex",
    "InRange",
    "OneOf",
    "Not",
    "HarnessAssertionError",
    "HarnessError",
    "ConfigError",
    "NavigationTimeout",
    "ElementNotActionable",
    "AmbiguousLocator",
    "ConditionTimeout",
    "UnresolvedDialog",
    "UnsupportedQuery",
]
