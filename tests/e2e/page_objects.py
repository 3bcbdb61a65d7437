"""Page objects for the bundled test pages."""

from typing import List, Optional

from harness.navigator import SelectorVisible
from harness.page_object import BasePage
from harness.queries import CountQuery, TextQuery


class BarsPage(BasePage):
    path = "bars.html"
    readiness = SelectorVisible("#generate")

    async def bar_count(self) -> int:
        return (await self.session.read(CountQuery(".bar"))).value

    async def generate(self) -> None:
        await self.session.click("#generate")

    async def status(self) -> Optional[str]:
        return (await self.session.read(TextQuery("#status"))).value

    async def values(self) -> List[int]:
        raw = await self.session.read_global("barValues")
        return [int(v) for v in raw] if isinstance(raw, list) else []


class HeapPage(BasePage):
    path = "heap.html"

    async def insert(self, value: int) -> None:
        await self.session.fill("#valueInput", str(value))
        await self.session.click("#insert")

    async def remove_min(self) -> None:
        await self.session.click("#removeWhenEmpty")


class DialogsPage(BasePage):
    path = "dialogs.html"

    async def result(self) -> Optional[str]:
        return (await self.session.read(TextQuery("#resultDisplay"))).value


class FormPage(BasePage):
    path = "form.html"
    readiness = SelectorVisible("#name")

    async def submit(self, name: str, color: str, agree: bool) -> None:
        await self.session.fill("#name", name)
        await self.session.select_option("#color", color)
        if agree:
            await self.session.check("#agree")
        else:
            await self.session.uncheck("#agree")
        await self.click_button("Submit")


class CanvasPage(BasePage):
    path = "canvas.html"
    readiness = SelectorVisible("#board")
