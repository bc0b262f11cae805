from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, HorizontalGroup, VerticalScroll
from textual.events import ScreenResume
from textual.message import Message
from textual.widgets import Button, Label, Rule

from api import resources
from api.models import CartProduct
from utils.checkout import compute_totals, is_first_order
from utils.messages import CartChangedMessage, ModeSwitchedMessage, NewOrderMessage
from views.base_screen import BaseScreen
from views.modal_checkout import CheckoutModal
from views.modal_dialog import DialogModal


class CartItemActionMessage(Message):
    bubble = True

    def __init__(self, product_id: str, action: str) -> None:
        super().__init__()
        self.product_id = product_id
        self.action = action


class CartItemActionLabel(Label):
    def __init__(self, product_id: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.product_id = product_id

    def action_inc(self):
        self.post_message(CartItemActionMessage(self.product_id, "inc"))

    def action_dec(self):
        self.post_message(CartItemActionMessage(self.product_id, "dec"))

    def action_remove(self):
        self.post_message(CartItemActionMessage(self.product_id, "remove"))


class CartItemWidget(HorizontalGroup):
    def __init__(self, item: CartProduct):
        super().__init__()
        self.item = item

    def compose(self):
        pid = self.item.product.id
        size = f" ({self.item.size})" if self.item.size else ""
        with Container(id="div-cart-item-group"):
            with Container(id="div-item"):
                yield Label(self.item.product.name + size, id="label-item-name")
                yield Label(str(self.item.qty), id="label-item-qty")
                yield Label(f"${self.item.line_total:.2f}", id="label-item-price")
            with Container(id="div-actions"):
                yield CartItemActionLabel(pid, "[@click=dec()] - [/]", id="link-item-dec")
                yield CartItemActionLabel(pid, "[@click=inc()] + [/]", id="link-item-inc")
                yield CartItemActionLabel(
                    pid, "[@click=remove()]Remove[/]", id="link-item-remove"
                )


class CartScreen(BaseScreen):
    """
    Cart lines hydrated with product details, totals and checkout.
    """

    def __init__(self) -> None:
        super().__init__()
        self._first_order = False

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("Subtotal: $0.00", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Clear Cart", id="btn-clear-cart")
            yield Button("Refresh", id="btn-refresh")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    async def on_mount(self):
        self.handle_cart_change()
        self.check_first_order()

    @on(NewOrderMessage)
    @work(exclusive=True, group="first-order")
    async def check_first_order(self) -> None:
        shop = self.app.shop
        if not shop.has_token:
            return
        result = await shop.call(
            "check first order", resources.list_my_orders(shop.client, shop.token)
        )
        self._first_order = result.ok and is_first_order(result.value or [])
        self.render_totals()

    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True, group="cart-sync")
    async def handle_refresh(self) -> None:
        self.report(await self.app.shop.fetch_cart())
        self.handle_cart_change()

    @on(CartChangedMessage)
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @work(exclusive=True)  # must be exclusive, a stale hydration could overwrite a newer one
    async def handle_cart_change(self):
        items = await self.app.shop.hydrate_cart()

        content = self.query_one("#vertscroll-content")
        await content.remove_children()
        await content.mount_all([CartItemWidget(item) for item in items])

        if not items:
            content.add_class("no-items")
        else:
            content.remove_class("no-items")
        self.render_totals()

    def render_totals(self) -> None:
        totals = compute_totals(self.app.shop.cart_products, first_order=self._first_order)
        text = f"Subtotal: ${totals.sub_total:.2f}"
        if totals.discount:
            text += f"   First order -20%: -${totals.discount:.2f}"
        text += f"   Total: ${totals.grand_total:.2f}"
        self.query_one("#label-cart-total", Label).update(text)

    @on(CartItemActionMessage)
    @work(group="cart-mutation")
    async def handle_item_action(self, message: CartItemActionMessage) -> None:
        shop = self.app.shop
        if message.action == "inc":
            result = await shop.increase_qty(message.product_id)
        elif message.action == "dec":
            result = await shop.decrease_qty(message.product_id)
        else:
            if not await self.app.push_screen_wait(
                DialogModal(
                    "Do you really want to remove this item from cart?",
                    primary_text="Yes",
                    secondary_text="No",
                    tone="warning",
                )
            ):
                return
            result = await shop.remove_from_cart(message.product_id)
            self.report(result, "Item removed from cart.")

        if result.ok and result.changed:
            self.post_message(CartChangedMessage())
        elif not result.ok and message.action != "remove":
            self.report(result)

    @on(Button.Pressed, "#btn-clear-cart")
    @work(group="cart-mutation")
    async def handle_clear_cart(self) -> None:
        if not self.app.shop.cart:
            self.app.notify("Cart is empty.", severity="warning")
            return

        remove_confirmed = await self.app.push_screen_wait(
            DialogModal(
                "Do you really want to remove all items from cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="error",
            )
        )
        if remove_confirmed:
            self.report(await self.app.shop.reset_cart())
            self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-checkout")
    @work()
    async def handle_checkout(self) -> None:
        if not self.app.shop.cart:
            self.app.notify("Cart is empty.", severity="warning")
            return

        if await self.app.push_screen_wait(CheckoutModal()):
            self.app.post_message(NewOrderMessage())
            self.check_first_order()
        self.post_message(CartChangedMessage())
