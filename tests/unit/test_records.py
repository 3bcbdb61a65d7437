"""Tests for signal record models and classification helpers."""

import pytest
from pydantic import ValidationError

from harness.records import (
    ConsoleLevel,
    ConsoleRecord,
    DialogKind,
    DialogRecord,
    DialogResolution,
    RuntimeErrorKind,
    RuntimeErrorRecord,
    classify_runtime_error,
    console_level,
    dialog_kind,
    format_record,
)
from tests.pytest_marks import parametrize, unit


@unit
class TestConsoleLevel:
    @parametrize(
        "raw,expected",
        [
            ("log", ConsoleLevel.LOG),
            ("info", ConsoleLevel.INFO),
            ("warning", ConsoleLevel.WARN),
            ("warn", ConsoleLevel.WARN),
            ("error", ConsoleLevel.ERROR),
            ("debug", ConsoleLevel.DEBUG),
            ("ERROR", ConsoleLevel.ERROR),
        ],
    )
    def test_known_types(self, raw: str, expected: ConsoleLevel) -> None:
        assert console_level(raw) is expected

    def test_unknown_types_are_plain_logs(self) -> None:
        assert console_level("table") is ConsoleLevel.LOG
        assert console_level("trace") is ConsoleLevel.LOG


@unit
class TestClassifyRuntimeError:
    def test_uses_error_name(self) -> None:
        assert classify_runtime_error("TypeError", "x is undefined") is RuntimeErrorKind.TYPE_ERROR
        assert (
            classify_runtime_error("ReferenceError", "foo is not defined")
            is RuntimeErrorKind.REFERENCE_ERROR
        )
        assert classify_runtime_error("SyntaxError", "bad") is RuntimeErrorKind.SYNTAX_ERROR

    def test_falls_back_to_message_prefix(self) -> None:
        assert (
            classify_runtime_error("", "Uncaught TypeError: Cannot read properties of undefined")
            is RuntimeErrorKind.TYPE_ERROR
        )
        assert (
            classify_runtime_error(None, "ReferenceError: heap is not defined")
            is RuntimeErrorKind.REFERENCE_ERROR
        )

    def test_other_errors(self) -> None:
        assert classify_runtime_error("RangeError", "Invalid array length") is RuntimeErrorKind.OTHER
        assert classify_runtime_error("", "something broke") is RuntimeErrorKind.OTHER
        assert classify_runtime_error("Error", "custom") is RuntimeErrorKind.OTHER


@unit
class TestDialogKind:
    def test_known_kinds(self) -> None:
        assert dialog_kind("prompt") is DialogKind.PROMPT
        assert dialog_kind("beforeunload") is DialogKind.BEFOREUNLOAD

    def test_unknown_kind_raises(self) -> None:
        with pytest.raises(ValueError):
            dialog_kind("popup")


@unit
class TestRecords:
    def test_records_are_frozen(self) -> None:
        record = ConsoleRecord(sequence=1, level=ConsoleLevel.LOG, text="hi", raw_type="log")
        with pytest.raises(ValidationError):
            record.text = "changed"  # type: ignore[misc]

    def test_timestamps_default_to_now(self) -> None:
        first = ConsoleRecord(sequence=1, level=ConsoleLevel.LOG, text="a", raw_type="log")
        second = ConsoleRecord(sequence=2, level=ConsoleLevel.LOG, text="b", raw_type="log")
        assert second.timestamp >= first.timestamp

    def test_json_dump_uses_enum_values(self) -> None:
        record = DialogRecord(
            sequence=3,
            kind=DialogKind.PROMPT,
            message="Enter a number",
            resolution=DialogResolution.ACCEPTED,
            value="42",
        )
        dumped = record.model_dump(mode="json")
        assert dumped["kind"] == "prompt"
        assert dumped["resolution"] == "accepted"
        assert dumped["value"] == "42"


@unit
class TestFormatRecord:
    def test_console(self) -> None:
        record = ConsoleRecord(sequence=1, level=ConsoleLevel.WARN, text="careful", raw_type="warning")
        assert format_record(record) == "#1 console.warn: careful"

    def test_runtime_error(self) -> None:
        record = RuntimeErrorRecord(
            sequence=2, kind=RuntimeErrorKind.TYPE_ERROR, name="TypeError", message="boom"
        )
        assert format_record(record) == "#2 TypeError: boom"

    def test_dialog_with_value(self) -> None:
        record = DialogRecord(
            sequence=4,
            kind=DialogKind.PROMPT,
            message="Enter",
            resolution=DialogResolution.ACCEPTED,
            value="42",
        )
        assert format_record(record) == "#4 prompt('Enter') accepted -> '42'"

    def test_unresolved_dialog(self) -> None:
        record = DialogRecord(
            sequence=5,
            kind=DialogKind.ALERT,
            message="Hello",
            resolution=DialogResolution.UNRESOLVED,
        )
        assert format_record(record) == "#5 alert('Hello') unresolved"
