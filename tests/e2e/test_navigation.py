"""Browser tests for page loading and readiness conditions."""

import time

import pytest

from harness.errors import NavigationTimeout, UnresolvedDialog
from harness.navigator import LoadState, SelectorVisible
from harness.queries import CountQuery, TextQuery
from harness.session import Session
from tests.e2e.page_objects import BarsPage
from tests.pytest_marks import e2e


@e2e
class TestNavigation:
    async def test_relative_path_resolves_against_base_url(
        self, harness_session: Session
    ) -> None:
        await harness_session.goto("empty.html")
        assert harness_session.navigator.current_url.endswith("/empty.html")
        assert harness_session.navigator.current_url.startswith(harness_session.config.base_url)

    @pytest.mark.parametrize(
        "readiness", [LoadState.DOM_READY, LoadState.LOAD_EVENT, LoadState.NETWORK_IDLE]
    )
    async def test_load_states(self, harness_session: Session, readiness: LoadState) -> None:
        await harness_session.goto("bars.html", readiness)
        assert (await harness_session.read(CountQuery("#generate"))).value == 1

    async def test_selector_visible_waits_for_late_render(
        self, harness_session: Session
    ) -> None:
        await harness_session.goto("delayed.html", SelectorVisible("#late"))
        assert (await harness_session.read(TextQuery("#late"))).value == "Rendered late"

    async def test_selector_never_visible_times_out(self, harness_session: Session) -> None:
        with pytest.raises(NavigationTimeout) as info:
            await harness_session.goto("delayed.html", SelectorVisible("#never"), timeout=1000)
        assert info.value.readiness == "selector-visible(#never)"
        assert info.value.timeout_ms == 1000
        assert info.value.url.endswith("/delayed.html")

    async def test_reload_discards_page_state(self, bars_page: BarsPage) -> None:
        await bars_page.generate()
        await bars_page.session.wait_for_count(".bar", 1)
        await bars_page.session.reload(SelectorVisible("#generate"))
        assert await bars_page.bar_count() == 0

    async def test_load_time_console_output_is_captured(self, harness_session: Session) -> None:
        await harness_session.goto("console.html")
        await harness_session.wait_for_signals(
            lambda s: any(r.text == "head script loaded" for r in s.console_records()),
            description="head script log",
        )

    async def test_unplanned_dialog_during_load_raises(self, harness_session: Session) -> None:
        started = time.monotonic()
        with pytest.raises(UnresolvedDialog) as info:
            await harness_session.goto("load_alert.html", timeout=10000)

        assert time.monotonic() - started < 5
        assert info.value.kind == "alert"
        assert info.value.dialog_message == "Welcome"
        assert harness_session.stalled

    async def test_planned_dialog_during_load_completes(self, harness_session: Session) -> None:
        harness_session.on_next_dialog("accept")
        await harness_session.goto("load_alert.html", SelectorVisible("#status"))
        assert (await harness_session.read(TextQuery("#status"))).value == "loaded"
        assert harness_session.dialogs()[0].message == "Welcome"
