from typing import Dict

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, LoadingIndicator, MarkdownViewer, Select

from state.checkout import CheckoutFlow
from utils.checkout import BILLING_FIELDS, SHIPPING_RATES, CheckoutValidationError, sanitize_phone
from utils.messages import SessionExpiredMessage
from utils.pure import generate_markdown_table
from views.modal_dialog import DialogModal

FIELD_LABELS = {
    "firstName": "First Name",
    "lastName": "Last Name",
    "country": "Country",
    "state": "State",
    "city": "City",
    "address": "Address",
    "zip": "ZIP",
    "phone": "Phone (10 digits)",
}


class CheckoutModal(ModalScreen[bool]):
    """
    Shipping, billing and payment for the current cart.
    Return True when an order was placed, False otherwise.
    """

    def __init__(self):
        super().__init__()
        self.flow: CheckoutFlow = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-checkout"):
            yield MarkdownViewer("", show_table_of_contents=False, id="md-summary")
            with VerticalScroll(id="div-checkout-form"):
                yield Label("Shipping Method")
                yield Select(
                    [(f"{m.title()} (${r:.0f})", m) for m, r in SHIPPING_RATES.items()],
                    value="standard",
                    allow_blank=False,
                    id="select-shipping",
                )
                for field in BILLING_FIELDS:
                    yield Input(placeholder=FIELD_LABELS[field], id=f"input-{field}")
                yield Label("Payment")
                yield Select(
                    [("Card", "card"), ("UPI", "upi"), ("Cash on Delivery", "cod")],
                    value="card",
                    allow_blank=False,
                    id="select-payment",
                )
                yield Input(placeholder="Card number (16 digits)", id="input-cardNumber")
                yield Input(placeholder="MM/YY", id="input-expiry")
                yield Input(placeholder="CVV", password=True, id="input-cvv")
                yield Input(placeholder="name@upi", id="input-upiId", classes="hidden")
                yield LoadingIndicator(id="loading-processing", classes="hidden")
                with Horizontal():
                    yield Button("Go Back", id="btn-quit")
                    yield Button("Place Order", id="btn-submit", variant="primary")

    async def on_mount(self):
        self.flow = CheckoutFlow(self.app.shop)
        await self.flow.load()

        # billing defaults to the last shipping details
        for field in BILLING_FIELDS:
            value = self.flow.shipping_details.get(field)
            if value:
                self.query_one(f"#input-{field}", Input).value = str(value)
        self.query_one("#select-shipping", Select).value = self.flow.shipping_method
        await self.render_summary()
        self.query_one("#input-firstName").focus()

    async def render_summary(self) -> None:
        method = self.query_one("#select-shipping", Select).value
        totals = self.flow.totals(method if isinstance(method, str) else None)
        rows = [
            [c.product.name, c.size or "-", c.qty, f"{c.product.new_price:.2f}", f"{c.line_total:.2f}"]
            for c in self.flow.items
        ]
        md = "### Order Summary\n\n" + generate_markdown_table(
            ["Product", "Size", "Qty", "Unit Price", "Total"],
            rows,
            ["l", "c", "c", "r", "r"],
        )
        md += f"\n\n**Subtotal:** ${totals.sub_total:.2f}  \n"
        md += f"**Shipping:** ${totals.shipping_cost:.2f}  \n"
        if totals.discount:
            md += f"**First order discount (20%):** -${totals.discount:.2f}  \n"
        md += f"**Total:** ${totals.grand_total:.2f}"
        await self.query_one("#md-summary", MarkdownViewer).document.update(md)

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape" and not self.flow.processing:
            self.dismiss(False)

    @on(Select.Changed, "#select-shipping")
    async def handle_shipping_changed(self) -> None:
        if self.flow is not None:
            await self.render_summary()

    @on(Select.Changed, "#select-payment")
    def handle_payment_changed(self, message: Select.Changed) -> None:
        is_card = message.value == "card"
        for field in ("cardNumber", "expiry", "cvv"):
            self.query_one(f"#input-{field}").set_class(not is_card, "hidden")
        self.query_one("#input-upiId").set_class(message.value != "upi", "hidden")

    @on(Input.Changed, "#input-phone")
    def handle_phone_changed(self, message: Input.Changed) -> None:
        cleaned = sanitize_phone(message.value)
        if cleaned != message.value:
            message.input.value = cleaned

    def _form(self, fields) -> Dict[str, str]:
        return {f: self.query_one(f"#input-{f}", Input).value.strip() for f in fields}

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        billing = self._form(BILLING_FIELDS)
        payment_method = str(self.query_one("#select-payment", Select).value)
        payment = self._form(("cardNumber", "expiry", "cvv", "upiId"))
        shipping_method = str(self.query_one("#select-shipping", Select).value)

        if not await self.app.push_screen_wait(
            DialogModal(
                "Place order? This cannot be undone.",
                primary_text="Yes",
                secondary_text="No",
                tone="positive",
            )
        ):
            return

        self.query_one("#loading-processing").remove_class("hidden")
        self.query_one("#btn-submit", Button).disabled = True
        try:
            await self.flow.save_shipping({**billing, "method": shipping_method})
            result = await self.flow.place_order(billing, payment_method, payment)
        except CheckoutValidationError as e:
            self.notify(str(e), severity="error")
            return
        finally:
            self.query_one("#loading-processing").add_class("hidden")
            self.query_one("#btn-submit", Button).disabled = False

        if result.auth_expired or result.login_required:
            self.app.post_message(SessionExpiredMessage(result.reason))
            self.dismiss(False)
            return
        if not result.ok:
            self.notify(result.reason or "Error placing order", severity="error")
            return

        self.notify(f"Order placed successfully! Order number {result.value.id}.")
        self.dismiss(True)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        if not self.flow.processing:
            self.dismiss(False)
