from typing import List, Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label, MarkdownViewer, Select

from api import resources
from api.errors import ApiError, NotFoundError
from api.models import Product
from utils.messages import SessionExpiredMessage, WishlistChangedMessage
from utils.pure import generate_markdown_table


class ProdDetailModal(ModalScreen[bool]):
    """
    prod detail, plus add to cart and wishlist
    Will return true if cart or wishlist changed, false if not
    """

    order_qty = reactive(1)

    def __init__(self, product_id: str) -> None:
        super().__init__()

        self._product_id = product_id
        self._prod: Optional[Product] = None
        self._changed = False

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-prod-detail"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Vertical(id="div-prod-actions"):
                yield Label("Size")
                yield Select([], prompt="No size", id="select-size")
                yield Label("Quantity")
                with Horizontal():
                    yield Button("-", id="btn-sub-qty")
                    yield Input(value="1", id="input-order-qty", type="integer")
                    yield Button("+", id="btn-add-qty")
                yield Button("♡ Wishlist", id="btn-wishlist")
                with Horizontal():
                    yield Button("Go Back", id="btn-quit")
                    yield Button("Add to Cart", id="btn-addcart", variant="primary")

    async def on_mount(self):
        try:
            self._prod = await resources.get_product(self.app.client, self._product_id)
        except NotFoundError:
            self.notify("This product is no longer available.", severity="error")
            self.dismiss(False)
            return
        except ApiError as e:
            self.notify(e.message, severity="error")
            self.dismiss(False)
            return

        try:
            related = await resources.get_related_products(
                self.app.client, self._product_id
            )
        except ApiError:
            related = []
        await self.render_detail(related)

        if self._prod.sizes:
            self.query_one("#select-size", Select).set_options(
                [(s, s) for s in self._prod.sizes]
            )
            self.query_one("#select-size", Select).value = self._prod.sizes[0]

        if self._prod.stockQuantity < 1:
            order_btn = self.query_one("#btn-addcart")
            order_btn.label = "Out of Stock"
            order_btn.disabled = True
            order_btn.variant = "warning"

        self.query_one("#input-order-qty").validators = [
            Number(minimum=1, maximum=max(self._prod.stockQuantity, 1))
        ]
        self._refresh_wishlist_button()
        self.query_one("#input-order-qty").focus()

    async def render_detail(self, related: List[Product]) -> None:
        p = self._prod
        rows = [
            ["Price", f"${p.new_price:.2f}"],
            ["Was", f"${p.old_price:.2f}" if p.old_price else "-"],
            ["Category", p.category or "-"],
            ["Sizes", ", ".join(p.sizes) or "-"],
            ["Colors", ", ".join(p.colors) or "-"],
            ["SKU", p.sku or "-"],
            ["In Stock", p.stockQuantity if p.inStock else "No"],
        ]
        md = f"### {p.name}\n\n" + generate_markdown_table(
            ["Attribute", "Value"], rows, ["l", "l"]
        )
        if p.description:
            md += f"\n\n{p.description}"
        if related:
            md += "\n\n#### Related\n\n" + "\n".join(
                f"- {r.name} (${r.new_price:.2f})" for r in related[:4]
            )
        await self.query_one(MarkdownViewer).document.update(md)

    def _refresh_wishlist_button(self) -> None:
        btn = self.query_one("#btn-wishlist", Button)
        if self.app.shop.in_wishlist(self._product_id):
            btn.label = "♥ In Wishlist"
        else:
            btn.label = "♡ Wishlist"

    def _selected_size(self) -> Optional[str]:
        value = self.query_one("#select-size", Select).value
        return value if isinstance(value, str) else None

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(self._changed)

    async def on_input_changed(self, message: Input.Changed) -> None:
        if (
            message.input.id == "input-order-qty"
            and message.input.is_valid
            and self.focused == message.input
        ):
            self.order_qty = int(message.value)

    def watch_order_qty(self, qty: int):
        self.query_one("#btn-sub-qty").disabled = qty <= 1
        if self._prod is not None:
            self.query_one("#btn-add-qty").disabled = qty >= self._prod.stockQuantity
        self.query_one("#input-order-qty").value = str(qty)

    @on(Button.Pressed, "#btn-add-qty")
    def handle_add_qty(self):
        self.order_qty += 1

    @on(Button.Pressed, "#btn-sub-qty")
    def handle_sub_qty(self):
        if self.order_qty > 1:
            self.order_qty -= 1

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(self._changed)

    def _handle_failure(self, reason: str, back_to_login: bool) -> None:
        if back_to_login:
            self.app.post_message(SessionExpiredMessage(reason))
            self.dismiss(False)
        else:
            self.notify(reason, severity="error")

    @on(Button.Pressed, "#btn-wishlist")
    @work(exclusive=True)
    async def handle_wishlist(self):
        result = await self.app.shop.toggle_wishlist(
            self._product_id, self._selected_size()
        )
        if not result.ok:
            self._handle_failure(
                result.reason, result.auth_expired or result.login_required
            )
            return
        self._changed = True
        self._refresh_wishlist_button()
        self.app.post_message(WishlistChangedMessage())

    @on(Button.Pressed, "#btn-addcart")
    @work(exclusive=True)
    async def handle_addcart(self):
        result = await self.app.shop.add_to_cart(
            self._product_id, self.order_qty, self._selected_size()
        )
        if not result.ok:
            self._handle_failure(
                result.reason, result.auth_expired or result.login_required
            )
            return
        self.app.notify("Item added to cart successfully.")
        self.dismiss(True)
