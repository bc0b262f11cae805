from math import ceil
from typing import List

from textual import events, on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.reactive import reactive
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Label, Select

from api import resources
from api.errors import ApiError
from api.models import Product
from utils.messages import CartChangedMessage, WishlistChangedMessage
from utils.pure import filter_products
from views.base_screen import BaseScreen
from views.modal_prod_detail import ProdDetailModal

PAGE_SIZE = 10


class ShopScreen(BaseScreen):
    """
    Product catalogue for customers: search, category and price sorting.
    """

    # shown in the footer only, enter is handled in on_key
    BINDINGS = [
        Binding("fn+shift+1", "noop", "View Product", show=True, key_display="⏎"),
    ]

    page_idx = reactive(1)
    page_cnt = reactive(1)

    def __init__(self):
        super().__init__()
        self._products: List[Product] = []
        self._filtered: List[Product] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-filters"):
            yield Input(id="input-search", placeholder="Search products...")
            yield Select([], prompt="All categories", id="select-category")
            yield Select(
                [("Price: low to high", "low"), ("Price: high to low", "high")],
                prompt="Sort",
                id="select-price",
            )
        yield DataTable(id="table-products")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Input("1", id="input-page", type="integer")
            yield Label(" / 1", id="label-total-page-cnt")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Name", "Category", "Price", "Was", "Stock", "♥")

        self.query_one("#input-search").focus()
        self.load_products()

    @on(Button.Pressed, "#btn-refresh")
    @on(WishlistChangedMessage)
    @work(exclusive=True, group="catalogue")
    async def load_products(self) -> None:
        try:
            products = await resources.list_products(self.app.client)
        except ApiError as e:
            self.notify(f"Failed to load products: {e.message}", severity="error")
            return

        self._products = [p for p in products if p.published]
        categories = sorted({p.category for p in self._products if p.category})
        self.query_one("#select-category", Select).set_options(
            [(c.title(), c) for c in categories]
        )
        self.apply_filters()

    @on(Input.Changed, "#input-search")
    @on(Select.Changed)
    def apply_filters(self) -> None:
        search = self.query_one("#input-search", Input).value
        category = self.query_one("#select-category", Select).value
        price = self.query_one("#select-price", Select).value
        self._filtered = filter_products(
            self._products,
            search,
            category if isinstance(category, str) else "",
            price if isinstance(price, str) else "",
        )
        self.page_cnt = max(ceil(len(self._filtered) / PAGE_SIZE), 1)
        self.query_one("#label-total-page-cnt").content = f" / {self.page_cnt}"
        if self.page_idx != 1:
            self.page_idx = 1
        else:
            self.render_page()

    @on(Input.Changed, "#input-page")
    def handle_page_input(self, message: Input.Changed) -> None:
        if message.value and message.value.isdigit():
            self.page_idx = int(message.value)

    def validate_page_idx(self, page_idx: int) -> int:
        return max(1, min(page_idx, self.page_cnt))

    def watch_page_idx(self, _, new_page_idx: int) -> None:
        self.query_one("#input-page").value = str(new_page_idx)
        self.query_one("#input-page").validators = [
            Number(minimum=1, maximum=self.page_cnt)
        ]
        self.render_page()

    def render_page(self) -> None:
        start = (self.page_idx - 1) * PAGE_SIZE
        wishlist = self.app.shop.wishlist
        table = self.query_one(DataTable)
        table.clear()
        for p in self._filtered[start : start + PAGE_SIZE]:
            table.add_row(
                p.id,
                p.name,
                p.category,
                f"${p.new_price:.2f}",
                f"${p.old_price:.2f}" if p.old_price else "-",
                p.stockQuantity if p.inStock else "Out",
                "♥" if p.id in wishlist else "",
                key=p.id,
            )

    async def on_key(self, event: events.Key) -> None:
        table = self.query_one(DataTable)
        if event.key == "enter" and self.focused == table and table.row_count:
            product_id = table.get_row_at(table.cursor_row)[0]
            self.open_detail(product_id)

    @work()
    async def open_detail(self, product_id: str) -> None:
        changed = await self.app.push_screen_wait(ProdDetailModal(product_id))
        if changed:
            self.app.post_message(CartChangedMessage())
            self.render_page()
