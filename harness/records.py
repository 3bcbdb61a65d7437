"""Signal records captured from the page under test."""

import re
import time
from enum import Enum
from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ConsoleLevel(str, Enum):
    """Console message level."""

    LOG = "log"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    DEBUG = "debug"


class RuntimeErrorKind(str, Enum):
    """Uncaught exception classification."""

    REFERENCE_ERROR = "ReferenceError"
    TYPE_ERROR = "TypeError"
    SYNTAX_ERROR = "SyntaxError"
    OTHER = "Other"


class DialogKind(str, Enum):
    """Native dialog type."""

    ALERT = "alert"
    CONFIRM = "confirm"
    PROMPT = "prompt"
    BEFOREUNLOAD = "beforeunload"


class DialogResolution(str, Enum):
    """How a dialog was resolved."""

    ACCEPTED = "accepted"
    DISMISSED = "dismissed"
    UNRESOLVED = "unresolved"  # No plan was registered; page is stalled


class SourceLocation(BaseModel):
    """Script location a console message was emitted from."""

    url: str = ""
    line: int = 0
    column: int = 0

    model_config = ConfigDict(frozen=True)


class ConsoleRecord(BaseModel):
    """A console message, in emission order."""

    sequence: int
    level: ConsoleLevel
    text: str
    raw_type: str
    location: Optional[SourceLocation] = None
    timestamp: float = Field(default_factory=time.monotonic)

    model_config = ConfigDict(frozen=True)


class RuntimeErrorRecord(BaseModel):
    """An uncaught exception surfaced from the page's execution context."""

    sequence: int
    kind: RuntimeErrorKind
    name: str
    message: str
    stack: Optional[str] = None
    timestamp: float = Field(default_factory=time.monotonic)

    model_config = ConfigDict(frozen=True)


class DialogRecord(BaseModel):
    """A native dialog and how the harness resolved it."""

    sequence: int
    kind: DialogKind
    message: str
    default_value: str = ""
    resolution: DialogResolution
    value: Optional[str] = None  # Text supplied to an accepted prompt
    timestamp: float = Field(default_factory=time.monotonic)

    model_config = ConfigDict(frozen=True)


SignalRecord = Union[ConsoleRecord, RuntimeErrorRecord, DialogRecord]

_CONSOLE_LEVELS: Dict[str, ConsoleLevel] = {
    "log": ConsoleLevel.LOG,
    "info": ConsoleLevel.INFO,
    "warning": ConsoleLevel.WARN,
    "warn": ConsoleLevel.WARN,
    "error": ConsoleLevel.ERROR,
    "debug": ConsoleLevel.DEBUG,
}

_ERROR_KINDS: Dict[str, RuntimeErrorKind] = {
    kind.value: kind for kind in RuntimeErrorKind if kind is not RuntimeErrorKind.OTHER
}

_MESSAGE_PREFIX = re.compile(r"^\s*(?:Uncaught\s+)?([A-Za-z]+Error)\b:?")


def console_level(raw_type: str) -> ConsoleLevel:
    """Map a browser console type onto a level; unknown types are plain logs."""
    return _CONSOLE_LEVELS.get(raw_type.lower(), ConsoleLevel.LOG)


def classify_runtime_error(name: Optional[str], message: str) -> RuntimeErrorKind:
    """
    Classify an uncaught exception.

    Uses the error name when the browser reports one, otherwise a leading
    "TypeError: ..." style prefix in the message.
    """
    if name and name in _ERROR_KINDS:
        return _ERROR_KINDS[name]
    match = _MESSAGE_PREFIX.match(message)
    if match is not None:
        return _ERROR_KINDS.get(match.group(1), RuntimeErrorKind.OTHER)
    return RuntimeErrorKind.OTHER


def dialog_kind(raw_type: str) -> DialogKind:
    """Map a browser dialog type; raises ValueError on unknown types."""
    return DialogKind(raw_type.lower())


def format_record(record: SignalRecord) -> str:
    """One-line rendering used in diagnostic dumps."""
    match record:
        case ConsoleRecord():
            return f"#{record.sequence} console.{record.level.value}: {record.text}"
        case RuntimeErrorRecord():
            return f"#{record.sequence} {record.name}: {record.message}"
        case DialogRecord():
            suffix = f" -> {record.value!r}" if record.value is not None else ""
            return (
                f"#{record.sequence} {record.kind.value}({record.message!r}) "
                f"{record.resolution.value}{suffix}"
            )
