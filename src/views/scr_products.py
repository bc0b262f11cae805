from typing import Dict, List, Optional, Set

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Label, MarkdownViewer, Select

from api import resources
from api.models import Product
from utils.messages import ModeSwitchedMessage
from utils.pure import filter_inventory, filter_products, generate_markdown_table
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal
from views.modal_product_form import ProductFormModal


class ProductsScreen(BaseScreen):
    """
    Admins browse the catalogue, update price/stock, toggle visibility
    and remove products. Space marks rows for a bulk delete.
    """

    BINDINGS = [
        Binding("space", "toggle_mark", "Mark", show=True),
        Binding("e", "edit", "Edit", show=True),
        Binding("p", "toggle_published", "Publish", show=True),
        Binding("o", "toggle_popular", "Popular", show=True),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._products: List[Product] = []
        self._by_id: Dict[str, Product] = {}
        self._marked: Set[str] = set()

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            with Horizontal(id="hort-filters"):
                yield Input(id="input-search", placeholder="Search name or SKU...")
                yield Select([], prompt="All categories", id="select-category")
                yield Select(
                    [("In stock", "in"), ("Out of stock", "out")],
                    prompt="Any stock",
                    id="select-stock",
                )
                yield Select(
                    [("Price: low to high", "low"), ("Price: high to low", "high")],
                    prompt="Sort",
                    id="select-price",
                )
            yield DataTable(id="table-products")
            yield MarkdownViewer(id="md-prod", show_table_of_contents=False)
            with Horizontal(id="hort-controls"):
                with Horizontal(id="div-new-inputs"):
                    with Vertical():
                        yield Label("New Price ($):")
                        yield Input(
                            placeholder="leave blank to keep",
                            id="input-price",
                            type="number",
                            validators=[Number(minimum=0.0)],
                        )
                    with Vertical():
                        yield Label("New Stock:")
                        yield Input(
                            placeholder="leave blank to keep",
                            id="input-stock",
                            type="integer",
                            validators=[Number(minimum=0)],
                        )
                with Horizontal(id="div-button"):
                    yield Button("Update", id="btn-update", variant="success")
                    yield Button("Add", id="btn-add", variant="primary")
                    yield Button("Delete", id="btn-delete", variant="error")
                    yield Button("Delete Marked", id="btn-bulk-delete", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("", "ID", "Name", "SKU", "Category", "Price", "Stock", "Published", "Popular")
        self.query_one("#input-search", Input).focus()
        self.load_products()

    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    @work(exclusive=True, group="catalogue")
    async def load_products(self) -> None:
        admin = self.app.admin
        result = await admin.call("fetch products", resources.list_products(admin.client))
        if not self.report(result):
            return
        self._products = result.value or []
        self._by_id = {p.id: p for p in self._products}
        self._marked &= set(self._by_id)
        categories = sorted({p.category for p in self._products if p.category})
        category_select = self.query_one("#select-category", Select)
        current = category_select.value
        category_select.set_options([(c.title(), c) for c in categories])
        if isinstance(current, str) and current in categories:
            category_select.value = current
        self.apply_filters()

    @on(Input.Changed, "#input-search")
    @on(Select.Changed)
    def apply_filters(self) -> None:
        def value(select_id: str) -> str:
            v = self.query_one(select_id, Select).value
            return v if isinstance(v, str) else ""

        search = self.query_one("#input-search", Input).value
        # category and price go through the catalogue filter, search and
        # stock through the inventory one (which also matches SKU)
        shown = filter_products(self._products, "", value("#select-category"), value("#select-price"))
        shown = filter_inventory(shown, search, value("#select-stock"))

        table = self.query_one(DataTable)
        table.clear()
        for p in shown:
            table.add_row(
                "●" if p.id in self._marked else "",
                p.id,
                p.name,
                p.sku or "-",
                p.category or "-",
                f"{p.new_price:.2f}",
                p.stockQuantity,
                "Yes" if p.published else "No",
                "★" if p.isPopular else "",
                key=p.id,
            )
        self.render_product(self._current())

    def _current(self) -> Optional[Product]:
        table = self.query_one(DataTable)
        if not table.row_count:
            return None
        return self._by_id.get(table.get_row_at(table.cursor_row)[1])

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self) -> None:
        self.render_product(self._current())

    def render_product(self, prod: Optional[Product]) -> None:
        viewer = self.query_one("#md-prod", MarkdownViewer)
        if prod is None:
            viewer.document.update("### No product selected.")
            return
        rows = [
            ["Name", prod.name],
            ["SKU", prod.sku or "-"],
            ["Category", prod.category or "-"],
            ["Price", f"${prod.new_price:.2f}"],
            ["Old price", f"${prod.old_price:.2f}" if prod.old_price else "-"],
            ["Stock", prod.stockQuantity],
            ["Sizes", ", ".join(prod.sizes) or "-"],
            ["Colors", ", ".join(prod.colors) or "-"],
            ["Tags", ", ".join(prod.tags) or "-"],
            ["Images", len(prod.images)],
        ]
        viewer.document.update(
            f"### Product Detail: {prod.name}\n\n"
            + generate_markdown_table(["Attribute", "Value"], rows, ["l", "l"])
        )
        # prefill inputs with current values for convenience
        self.query_one("#input-price", Input).value = f"{prod.new_price:.2f}"
        self.query_one("#input-stock", Input).value = str(prod.stockQuantity)

    def action_toggle_mark(self) -> None:
        prod = self._current()
        if prod is None:
            return
        self._marked ^= {prod.id}
        table = self.query_one(DataTable)
        table.update_cell(prod.id, table.ordered_columns[0].key, "●" if prod.id in self._marked else "")

    @on(Button.Pressed, "#btn-update")
    @work(group="product-mutation")
    async def handle_update(self) -> None:
        prod = self._current()
        if prod is None:
            return
        price_input = self.query_one("#input-price", Input)
        stock_input = self.query_one("#input-stock", Input)
        if not price_input.is_valid or not price_input.value:
            price_input.focus()
            return
        if not stock_input.is_valid or not stock_input.value:
            stock_input.focus()
            return

        new_price = float(price_input.value)
        new_stock = int(stock_input.value)
        if new_price == prod.new_price and new_stock == prod.stockQuantity:
            self.notify("Nothing to update.", severity="warning")
            return

        admin = self.app.admin
        result = await admin.call(
            "update product",
            resources.update_product(
                admin.client,
                admin.token,
                prod.id,
                {"new_price": new_price, "stockQuantity": new_stock, "inStock": new_stock > 0},
            ),
        )
        if self.report(result, "Product updated successfully."):
            self.load_products()

    @on(Button.Pressed, "#btn-add")
    @work(group="product-mutation")
    async def handle_add(self) -> None:
        if await self.app.push_screen_wait(ProductFormModal()):
            self.load_products()

    @work(group="product-mutation")
    async def action_edit(self) -> None:
        prod = self._current()
        if prod is not None and await self.app.push_screen_wait(ProductFormModal(prod)):
            self.load_products()

    @work(group="product-mutation")
    async def action_toggle_published(self) -> None:
        prod = self._current()
        if prod is None:
            return
        admin = self.app.admin
        result = await admin.call(
            "toggle published",
            resources.set_product_published(admin.client, admin.token, prod.id, not prod.published),
        )
        if self.report(result, "Published." if not prod.published else "Unpublished."):
            self.load_products()

    @work(group="product-mutation")
    async def action_toggle_popular(self) -> None:
        prod = self._current()
        if prod is None:
            return
        admin = self.app.admin
        result = await admin.call(
            "toggle popular",
            resources.set_product_popular(admin.client, admin.token, prod.id, not prod.isPopular),
        )
        if self.report(result, "Popular flag updated."):
            self.load_products()

    @on(Button.Pressed, "#btn-delete")
    @work(group="product-mutation")
    async def handle_delete(self) -> None:
        prod = self._current()
        if prod is None:
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Delete {prod.name}?", primary_text="Delete", secondary_text="Cancel", tone="error"
            )
        ):
            return
        admin = self.app.admin
        result = await admin.call(
            "delete product", resources.delete_product(admin.client, admin.token, prod.id)
        )
        if self.report(result, "Product deleted."):
            self.load_products()

    @on(Button.Pressed, "#btn-bulk-delete")
    @work(group="product-mutation")
    async def handle_bulk_delete(self) -> None:
        if not self._marked:
            self.notify("Mark products with space first.", severity="warning")
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Delete {len(self._marked)} marked products?",
                primary_text="Delete",
                secondary_text="Cancel",
                tone="error",
            )
        ):
            return
        admin = self.app.admin
        result = await admin.call(
            "bulk delete products",
            resources.bulk_delete_products(admin.client, admin.token, sorted(self._marked)),
        )
        if self.report(result, "Marked products deleted."):
            self._marked.clear()
            self.load_products()
