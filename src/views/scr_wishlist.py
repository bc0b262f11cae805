from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.events import ScreenResume
from textual.widgets import Button, DataTable

from utils.messages import CartChangedMessage, ModeSwitchedMessage, WishlistChangedMessage
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal


class WishlistScreen(BaseScreen):
    """
    Saved products; a line can be moved to the cart or removed.
    """

    BINDINGS = [
        Binding("m", "move_to_cart", "Move to Cart", show=True),
        Binding("delete", "remove", "Remove", show=True),
    ]

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield DataTable(id="table-wishlist")
        with Horizontal(id="hort-buttons"):
            yield Button("Clear Wishlist", id="btn-clear", variant="error")
            yield Button("Refresh", id="btn-refresh")
            yield Button("Move to Cart", id="btn-move", variant="primary")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Name", "Size", "Price", "Added", "Stock")
        self.handle_wishlist_change()

    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True, group="wishlist-sync")
    async def handle_refresh(self) -> None:
        self.report(await self.app.shop.fetch_wishlist())
        self.handle_wishlist_change()

    @on(WishlistChangedMessage)
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @work(exclusive=True)
    async def handle_wishlist_change(self) -> None:
        items = await self.app.shop.hydrate_wishlist()
        table = self.query_one(DataTable)
        table.clear()
        for w in items:
            table.add_row(
                w.product.id,
                w.product.name,
                w.size or "-",
                f"${w.product.new_price:.2f}",
                (w.dateAdded or "-")[:10],
                "Yes" if w.product.inStock else "No",
                key=w.product.id,
            )

    def _current_id(self):
        table = self.query_one(DataTable)
        if not table.row_count:
            return None
        return table.get_row_at(table.cursor_row)[0]

    @on(Button.Pressed, "#btn-move")
    def handle_move(self) -> None:
        self.action_move_to_cart()

    @work(group="wishlist-mutation")
    async def action_move_to_cart(self) -> None:
        product_id = self._current_id()
        if product_id is None:
            return
        shop = self.app.shop
        size = (shop.wishlist.get(product_id) or {}).get("size")
        if not self.report(await shop.add_to_cart(product_id, 1, size)):
            return
        if self.report(await shop.toggle_wishlist(product_id), "Moved to cart."):
            self.app.post_message(CartChangedMessage())
            self.post_message(WishlistChangedMessage())

    @work(group="wishlist-mutation")
    async def action_remove(self) -> None:
        product_id = self._current_id()
        if product_id is None:
            return
        if self.report(
            await self.app.shop.toggle_wishlist(product_id), "Removed from wishlist."
        ):
            self.post_message(WishlistChangedMessage())

    @on(Button.Pressed, "#btn-clear")
    @work(group="wishlist-mutation")
    async def handle_clear(self) -> None:
        if not self.app.shop.wishlist:
            self.notify("Wishlist is empty.", severity="warning")
            return
        if await self.app.push_screen_wait(
            DialogModal(
                "Remove everything from your wishlist?",
                primary_text="Yes",
                secondary_text="No",
                tone="error",
            )
        ):
            self.report(await self.app.shop.clear_wishlist())
            self.post_message(WishlistChangedMessage())
