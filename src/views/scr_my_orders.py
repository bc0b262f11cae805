from math import ceil
from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.reactive import reactive
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Label, MarkdownViewer

from api import resources
from api.models import Order
from utils.messages import ModeSwitchedMessage, NewOrderMessage
from utils.pure import generate_markdown_table
from views.base_screen import BaseScreen
from views.modal_dialog import ChoiceDialogModal

PAGE_SIZE = 5
RETURN_REASONS = ["Size Issue", "Wrong Item", "Damaged Item", "Other"]


class MyOrdersScreen(BaseScreen):
    """
    Customers can browse their past orders with pagination, view details
    and request a return for delivered orders.

    Layout:
    - Markdown detail view at the top, showing the highlighted order.
    - Orders table below (newest first), 5 per page with Prev/Next.
    """

    BINDINGS = [
        Binding("r", "request_return", "Request Return", show=True),
    ]

    page_idx = reactive(1)
    page_cnt = reactive(1)

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("<", id="btn-prev")
            yield Input("1", id="input-page", type="integer")
            yield Label(" / 1", id="label-total-page-cnt")
            yield Button(">", id="btn-next")
            yield Button("Request Return", id="btn-return", variant="warning")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order", "Date", "Status", "Ship To", "Total ($)")
        self.load_orders()

    @on(Button.Pressed, "#btn-refresh")
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(NewOrderMessage)
    @work(exclusive=True, group="orders")
    async def load_orders(self) -> None:
        shop = self.app.shop
        if not shop.has_token:
            return
        result = await shop.call(
            "fetch orders", resources.list_my_orders(shop.client, shop.token)
        )
        if not self.report(result):
            return

        self._orders = sorted(
            result.value or [], key=lambda o: o.createdAt or "", reverse=True
        )
        self.page_cnt = max(ceil(len(self._orders) / PAGE_SIZE), 1)
        self.query_one("#label-total-page-cnt", Label).content = f" / {self.page_cnt}"
        if self.page_idx > self.page_cnt:
            self.page_idx = self.page_cnt
        else:
            self.render_page()

    def watch_page_idx(self, old: int, new: int) -> None:
        self.query_one("#input-page", Input).value = str(new)
        self.render_page()

    def _refresh_buttons(self) -> None:
        self.query_one("#btn-prev", Button).disabled = self.page_idx <= 1
        self.query_one("#btn-next", Button).disabled = self.page_idx >= self.page_cnt
        self.query_one("#input-page", Input).validators = [
            Number(minimum=1, maximum=self.page_cnt)
        ]

    @on(Button.Pressed, "#btn-prev")
    def handle_prev(self) -> None:
        if self.page_idx > 1:
            self.page_idx -= 1

    @on(Button.Pressed, "#btn-next")
    def handle_next(self) -> None:
        if self.page_idx < self.page_cnt:
            self.page_idx += 1

    @on(Input.Changed, "#input-page")
    def handle_page_input(self, ev: Input.Changed) -> None:
        if ev.value and ev.value.isdigit():
            new_idx = max(1, min(int(ev.value), self.page_cnt))
            if new_idx != self.page_idx:
                self.page_idx = new_idx

    def render_page(self) -> None:
        start = (self.page_idx - 1) * PAGE_SIZE
        table = self.query_one(DataTable)
        table.clear()
        for o in self._orders[start : start + PAGE_SIZE]:
            table.add_row(
                o.id,
                o.created.strftime("%Y-%m-%d") if o.created else "-",
                o.status,
                o.shippingAddress.one_line() or "-",
                f"{o.totalAmount:.2f}",
                key=o.id,
            )
        self._refresh_buttons()
        if table.row_count:
            table.cursor_coordinate = (0, 0)
        self.render_detail(self._selected_order())

    def _selected_order(self) -> Optional[Order]:
        table = self.query_one(DataTable)
        if not table.row_count:
            return None
        order_id = table.get_row_at(table.cursor_row)[0]
        return next((o for o in self._orders if o.id == order_id), None)

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self) -> None:
        self.render_detail(self._selected_order())

    def render_detail(self, order: Optional[Order]) -> None:
        viewer = self.query_one("#md-order-detail", MarkdownViewer)
        if order is None:
            viewer.document.update("### Select an order to view its details.")
            return

        addr = order.shippingAddress
        header = (
            f"### Order #{order.id}\n"
            f"Status: **{order.status}**  \n"
            f"Payment: {order.paymentMethod or '-'}  \n"
            f"Ship To: {addr.fullName} {addr.one_line()}\n\n"
        )
        rows = [
            [i.name, i.size or "-", i.qty, f"{i.price:.2f}", f"{i.price * i.qty:.2f}"]
            for i in order.items
        ]
        table = generate_markdown_table(
            ["Product", "Size", "Qty", "Unit Price", "Line Total"],
            rows,
            ["l", "c", "r", "r", "r"],
        )
        footer = (
            f"\n\nShipping: ${order.shippingPrice:.2f}  \n"
            f"Discount: -${order.discount:.2f}  \n"
            f"**Grand Total:** ${order.totalAmount:.2f}"
        )
        if order.isReturnRequested:
            footer += "\n\n_Return requested._"
        elif order.isReturned:
            footer += "\n\n_Returned._"
        viewer.document.update(header + table + footer)

    @on(Button.Pressed, "#btn-return")
    def handle_return_button(self) -> None:
        self.action_request_return()

    @work(group="orders-mutation")
    async def action_request_return(self) -> None:
        order = self._selected_order()
        if order is None:
            return
        if not order.can_return:
            self.notify(
                "Only delivered orders without a pending return can be returned.",
                severity="warning",
            )
            return

        reason = await self.app.push_screen_wait(
            ChoiceDialogModal(f"Return order #{order.id}, reason:", RETURN_REASONS)
        )
        if not reason:
            return

        shop = self.app.shop
        result = await shop.call(
            "request return",
            resources.create_return(shop.client, shop.token, order.id, reason),
        )
        if self.report(result, "Return request submitted."):
            self.load_orders()
