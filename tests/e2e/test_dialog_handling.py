"""Browser tests for planned and unplanned native dialogs."""

import pytest

from harness.errors import UnresolvedDialog
from harness.queries import TextQuery
from harness.records import DialogKind, DialogResolution
from tests.e2e.page_objects import DialogsPage
from tests.pytest_marks import e2e


@e2e
class TestPlannedDialogs:
    async def test_accepted_prompt_value_reaches_page(self, dialogs_page: DialogsPage) -> None:
        session = dialogs_page.session
        session.on_next_dialog("accept", "42")
        await session.click("#promptButton")

        assert await session.wait_for_text("#resultDisplay", "42") == "42"
        assert await dialogs_page.result() == "42"
        (record,) = session.dialogs()
        assert record.kind is DialogKind.PROMPT
        assert record.message == "Enter a number"
        assert record.default_value == "0"
        assert record.resolution is DialogResolution.ACCEPTED
        assert record.value == "42"

    async def test_dismissed_prompt_returns_null(self, dialogs_page: DialogsPage) -> None:
        session = dialogs_page.session
        session.on_next_dialog("dismiss")
        await session.click("#promptButton")
        await session.wait_for_text("#resultDisplay", "cancelled")

    @pytest.mark.parametrize("resolution,expected", [("accept", "yes"), ("dismiss", "no")])
    async def test_confirm(
        self, dialogs_page: DialogsPage, resolution: str, expected: str
    ) -> None:
        session = dialogs_page.session
        session.on_next_dialog(resolution)  # type: ignore[arg-type]
        await session.click("#confirmButton")
        await session.wait_for_text("#confirmResult", expected)
        assert session.dialogs()[0].kind is DialogKind.CONFIRM

    async def test_alert(self, dialogs_page: DialogsPage) -> None:
        session = dialogs_page.session
        session.on_next_dialog("accept")
        await session.click("#alertButton")
        await session.wait_for_text("#alertResult", "done")
        assert session.dialogs()[0].message == "Hello"

    async def test_plans_apply_in_registration_order(self, dialogs_page: DialogsPage) -> None:
        session = dialogs_page.session
        session.on_next_dialog("accept", "first")
        session.on_next_dialog("accept", "second")
        await session.click("#twoPrompts")
        await session.wait_for_text("#pairResult", "first|second")
        assert [d.value for d in session.dialogs()] == ["first", "second"]
        assert session.signals.pending_plans == 0


@e2e
class TestUnplannedDialogs:
    async def test_unplanned_dialog_raises(self, dialogs_page: DialogsPage) -> None:
        session = dialogs_page.session
        with pytest.raises(UnresolvedDialog) as info:
            await session.click("#alertButton")

        assert info.value.kind == "alert"
        assert info.value.dialog_message == "Hello"
        assert session.stalled
        assert session.dialogs()[0].resolution is DialogResolution.UNRESOLVED

    async def test_stalled_session_fails_fast(self, dialogs_page: DialogsPage) -> None:
        session = dialogs_page.session
        with pytest.raises(UnresolvedDialog):
            await session.click("#confirmButton")

        with pytest.raises(UnresolvedDialog):
            await session.click("#promptButton")
        with pytest.raises(UnresolvedDialog):
            await session.read(TextQuery("#confirmResult"))

    async def test_dispose_releases_stalled_dialog(self, dialogs_page: DialogsPage) -> None:
        session = dialogs_page.session
        with pytest.raises(UnresolvedDialog):
            await session.click("#promptButton")
        await session.dispose()
        assert session.disposed
        assert session.page.is_closed()
