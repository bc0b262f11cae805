from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, MarkdownViewer, Select

from api import resources
from api.models import ReturnRequest
from utils.messages import ModeSwitchedMessage, NewNotificationMessage
from utils.pure import filter_returns, generate_markdown_table
from views.base_screen import BaseScreen


class ReturnsScreen(BaseScreen):
    """
    Return requests with customer search, status and payment method filters.
    """

    def __init__(self) -> None:
        super().__init__()
        self._returns: List[ReturnRequest] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            with Horizontal(id="hort-filters"):
                yield Input(id="input-search", placeholder="Search customer...")
                yield Select([], prompt="Any status", id="select-status")
                yield Select([], prompt="Any payment", id="select-method")
                yield Button("Refresh", id="btn-refresh")
            yield DataTable(id="table-returns")
            yield MarkdownViewer(id="md-return", show_table_of_contents=False)

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Customer", "Reason", "Status", "Payment", "Amount ($)", "Date")
        self.load_returns()

    @on(Button.Pressed, "#btn-refresh")
    @on(NewNotificationMessage)
    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    @work(exclusive=True, group="returns")
    async def load_returns(self) -> None:
        admin = self.app.admin
        result = await admin.call(
            "fetch returns", resources.list_returns(admin.client, admin.token)
        )
        if not self.report(result):
            return
        self._returns = result.value or []

        for select_id, values in (
            ("#select-status", {r.status for r in self._returns}),
            ("#select-method", {r.paymentMethod for r in self._returns if r.paymentMethod}),
        ):
            select = self.query_one(select_id, Select)
            current = select.value
            select.set_options([(v, v) for v in sorted(values)])
            if isinstance(current, str) and current in values:
                select.value = current
        self.apply_filters()

    @on(Input.Changed, "#input-search")
    @on(Select.Changed)
    def apply_filters(self) -> None:
        status = self.query_one("#select-status", Select).value
        method = self.query_one("#select-method", Select).value
        shown = filter_returns(
            self._returns,
            self.query_one("#input-search", Input).value,
            status if isinstance(status, str) else "",
            method if isinstance(method, str) else "",
        )
        table = self.query_one(DataTable)
        table.clear()
        for r in shown:
            table.add_row(
                r.id,
                r.customer_name,
                r.reason,
                r.status,
                r.paymentMethod or "-",
                f"{r.totalAmount:.2f}",
                (r.createdAt or "-")[:10],
                key=r.id,
            )
        self.render_detail(self._current())

    def _current(self) -> Optional[ReturnRequest]:
        table = self.query_one(DataTable)
        if not table.row_count:
            return None
        return_id = table.get_row_at(table.cursor_row)[0]
        return next((r for r in self._returns if r.id == return_id), None)

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self) -> None:
        self.render_detail(self._current())

    def render_detail(self, ret: Optional[ReturnRequest]) -> None:
        viewer = self.query_one("#md-return", MarkdownViewer)
        if ret is None:
            viewer.document.update("### No return request selected.")
            return
        order = ret.order.get("_id") if isinstance(ret.order, dict) else ret.order
        md = (
            f"### Return #{ret.id}\n"
            f"Order: {order or '-'}  \n"
            f"Customer: {ret.customer_name}  \n"
            f"Reason: {ret.reason}  \n"
            f"Status: **{ret.status}**\n\n"
        )
        if ret.items:
            md += generate_markdown_table(
                ["Product", "Size", "Qty", "Price"],
                [[i.name, i.size or "-", i.qty, f"{i.price:.2f}"] for i in ret.items],
                ["l", "c", "r", "r"],
            )
        viewer.document.update(md)
