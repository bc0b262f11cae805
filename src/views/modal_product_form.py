import asyncio
from pathlib import Path
from typing import List, Optional, Tuple

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, TextArea

from api import resources
from api.models import Product
from utils.messages import SessionExpiredMessage
from utils.pure import product_form_payload, split_list

FORM_FIELDS = [
    ("name", "Name *"),
    ("category", "Category *"),
    ("sku", "SKU *"),
    ("new_price", "Price *"),
    ("old_price", "Old price"),
    ("stockQuantity", "Stock"),
    ("sizes", "Sizes (comma separated)"),
    ("colors", "Colors (comma separated)"),
    ("tags", "Tags (comma separated)"),
    ("images", "Image files to upload (comma separated paths)"),
]


def _read_files(paths: List[str]) -> List[Tuple[str, bytes]]:
    return [(Path(p).name, Path(p).expanduser().read_bytes()) for p in paths]


class ProductFormModal(ModalScreen[bool]):
    """
    Create a product, or edit one when `product` is given.
    Returns True when the backend accepted the change.
    """

    def __init__(self, product: Optional[Product] = None):
        super().__init__()
        self.product = product

    def compose(self) -> ComposeResult:
        title = f"Edit {self.product.name}" if self.product else "Add Product"
        with VerticalScroll(id="div-product-form"):
            yield Label(title, classes="section-title")
            for key, placeholder in FORM_FIELDS:
                yield Input(placeholder=placeholder, id=f"input-{key}")
            yield Label("Description")
            yield TextArea(id="textarea-description")
            with Horizontal():
                yield Button("Cancel", id="btn-quit")
                yield Button("Save", id="btn-submit", variant="primary")

    def on_mount(self) -> None:
        p = self.product
        if p is not None:
            values = {
                "name": p.name,
                "category": p.category,
                "sku": p.sku,
                "new_price": f"{p.new_price:.2f}",
                "old_price": f"{p.old_price:.2f}",
                "stockQuantity": str(p.stockQuantity),
                "sizes": ", ".join(p.sizes),
                "colors": ", ".join(p.colors),
                "tags": ", ".join(p.tags),
            }
            for key, value in values.items():
                self.query_one(f"#input-{key}", Input).value = value
            self.query_one("#textarea-description", TextArea).text = p.description
        self.query_one("#input-name").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self) -> None:
        self.dismiss(False)

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self) -> None:
        form = {key: self.query_one(f"#input-{key}", Input).value for key, _ in FORM_FIELDS}
        form["description"] = self.query_one("#textarea-description", TextArea).text
        try:
            payload = product_form_payload(form)
        except ValueError as e:
            self.notify(str(e), severity="error")
            return

        admin = self.app.admin
        paths = split_list(form["images"])
        images = list(self.product.images) if self.product else []
        if paths:
            try:
                files = await asyncio.to_thread(_read_files, paths)
            except OSError as e:
                self.notify(f"Cannot read image: {e}", severity="error")
                return
            upload = await admin.call(
                "upload images", resources.upload_images(admin.client, admin.token, files)
            )
            if not self._check(upload):
                return
            images = upload.value + images
        payload["images"] = images

        if self.product is None:
            request = resources.create_product(admin.client, admin.token, payload)
        else:
            request = resources.update_product(
                admin.client, admin.token, self.product.id, payload
            )
        result = await admin.call("save product", request)
        if self._check(result):
            self.app.notify("Product saved.")
            self.dismiss(True)

    def _check(self, result) -> bool:
        if result.auth_expired:
            self.app.post_message(SessionExpiredMessage(result.reason))
            self.dismiss(False)
        elif not result.ok:
            self.notify(result.reason, severity="error")
        return result.ok
