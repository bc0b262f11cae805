from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input

from api import resources
from api.models import User
from utils.checkout import sanitize_phone
from utils.messages import ModeSwitchedMessage
from utils.pure import filter_customers
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal


class CustomersScreen(BaseScreen):
    """
    Registered customers: search, edit contact details, delete.
    """

    def __init__(self) -> None:
        super().__init__()
        self._customers: List[User] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            with Horizontal(id="hort-filters"):
                yield Input(id="input-search", placeholder="Search id, name, email or phone...")
                yield Button("Refresh", id="btn-refresh")
            yield DataTable(id="table-customers")
            with Horizontal(id="hort-controls"):
                yield Input(placeholder="First name", id="input-first")
                yield Input(placeholder="Last name", id="input-last")
                yield Input(placeholder="Phone", id="input-phone")
                yield Button("Save", id="btn-save", variant="success")
                yield Button("Delete", id="btn-delete", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Name", "Email", "Phone", "Gender")
        self.load_customers()

    @on(Button.Pressed, "#btn-refresh")
    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    @work(exclusive=True, group="customers")
    async def load_customers(self) -> None:
        admin = self.app.admin
        result = await admin.call(
            "fetch customers", resources.list_customers(admin.client, admin.token)
        )
        if not self.report(result):
            return
        self._customers = result.value or []
        self.apply_filters()

    @on(Input.Changed, "#input-search")
    def apply_filters(self) -> None:
        shown = filter_customers(self._customers, self.query_one("#input-search", Input).value)
        table = self.query_one(DataTable)
        table.clear()
        for c in shown:
            table.add_row(c.id, c.full_name or "-", c.email, c.phone or "-", c.gender or "-", key=c.id)
        self.fill_form(self._current())

    def _current(self) -> Optional[User]:
        table = self.query_one(DataTable)
        if not table.row_count:
            return None
        customer_id = table.get_row_at(table.cursor_row)[0]
        return next((c for c in self._customers if c.id == customer_id), None)

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self) -> None:
        self.fill_form(self._current())

    def fill_form(self, customer: Optional[User]) -> None:
        self.query_one("#input-first", Input).value = customer.firstName if customer else ""
        self.query_one("#input-last", Input).value = customer.lastName if customer else ""
        self.query_one("#input-phone", Input).value = customer.phone if customer else ""

    @on(Input.Changed, "#input-phone")
    def handle_phone_changed(self, message: Input.Changed) -> None:
        cleaned = sanitize_phone(message.value)
        if cleaned != message.value:
            message.input.value = cleaned

    @on(Button.Pressed, "#btn-save")
    @work(group="customer-mutation")
    async def handle_save(self) -> None:
        customer = self._current()
        if customer is None:
            return
        fields = {
            "firstName": self.query_one("#input-first", Input).value.strip(),
            "lastName": self.query_one("#input-last", Input).value.strip(),
            "phone": self.query_one("#input-phone", Input).value,
        }
        admin = self.app.admin
        result = await admin.call(
            "update customer",
            resources.update_customer(admin.client, admin.token, customer.id, fields),
        )
        if self.report(result, "Customer updated."):
            self.load_customers()

    @on(Button.Pressed, "#btn-delete")
    @work(group="customer-mutation")
    async def handle_delete(self) -> None:
        customer = self._current()
        if customer is None:
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Delete customer {customer.full_name or customer.email}?",
                primary_text="Delete",
                secondary_text="Cancel",
                tone="error",
            )
        ):
            return
        admin = self.app.admin
        result = await admin.call(
            "delete customer", resources.delete_customer(admin.client, admin.token, customer.id)
        )
        if self.report(result, "Customer deleted."):
            self.load_customers()
