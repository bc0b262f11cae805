import asyncio
from pathlib import Path
from typing import Dict

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Label, TabbedContent, TabPane

from api import resources
from utils.messages import ModeSwitchedMessage, UserLoginMessage
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal

BANNER_FIELDS = ("title", "subtitle", "imageUrl", "category", "link")


class WebsiteScreen(BaseScreen):
    """
    Storefront content (logo, hero and category banners, contact details)
    and the admin's own profile.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="tabs-website"):
            with TabPane("Banners", id="tab-banners"):
                for kind in ("hero", "category"):
                    yield Label(f"{kind.title()} banners", classes="section-title")
                    yield DataTable(id=f"table-{kind}", classes="table-banners")
                    with Horizontal(classes="div-banner-form"):
                        for field in BANNER_FIELDS:
                            yield Input(placeholder=field, id=f"input-{kind}-{field}")
                        yield Button("Add", id=f"btn-{kind}-add", variant="primary")
                        yield Button("Delete", id=f"btn-{kind}-delete", variant="error")

            with TabPane("Logo", id="tab-logo"):
                with Vertical():
                    yield Label("Current logo: -", id="label-logo")
                    yield Input(placeholder="Path to new logo image", id="input-logo")
                    yield Button("Upload", id="btn-logo", variant="primary")

            with TabPane("Contact", id="tab-contact"):
                with Vertical():
                    yield Input(placeholder="Email", id="input-contact-email")
                    yield Input(placeholder="Phone", id="input-contact-phone")
                    yield Input(placeholder="Address", id="input-contact-address")
                    yield Button("Save Contact", id="btn-contact", variant="primary")

            with TabPane("My Profile", id="tab-profile"):
                with Vertical():
                    yield Input(placeholder="Name", id="input-admin-name")
                    yield Input(placeholder="Email", id="input-admin-email")
                    yield Input(placeholder="Phone", id="input-admin-phone")
                    yield Button("Save Profile", id="btn-admin-profile", variant="primary")

    def on_mount(self) -> None:
        for kind in ("hero", "category"):
            table = self.query_one(f"#table-{kind}", DataTable)
            table.cursor_type = "row"
            table.zebra_stripes = True
            table.add_columns("ID", "Title", "Subtitle", "Category", "Image")
        self.load_content()

    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    @work(exclusive=True, group="content")
    async def load_content(self) -> None:
        client = self.app.client
        admin = self.app.admin
        hero, category, logo, contact = await asyncio.gather(
            admin.call("fetch hero banners", resources.list_hero_banners(client)),
            admin.call("fetch category banners", resources.list_category_banners(client)),
            admin.call("fetch logo", resources.get_logo(client)),
            admin.call("fetch contact", resources.get_contact(client)),
        )
        for kind, result in (("hero", hero), ("category", category)):
            if not self.report(result):
                continue
            table = self.query_one(f"#table-{kind}", DataTable)
            table.clear()
            for b in result.value:
                table.add_row(b.id, b.title, b.subtitle, b.category or "-", b.imageUrl, key=b.id)

        if self.report(logo):
            self.query_one("#label-logo", Label).update(f"Current logo: {logo.value or '-'}")
        if self.report(contact):
            self.query_one("#input-contact-email", Input).value = contact.value.email
            self.query_one("#input-contact-phone", Input).value = contact.value.phone
            self.query_one("#input-contact-address", Input).value = contact.value.address

        profile = admin.profile
        if profile is not None:
            self.query_one("#input-admin-name", Input).value = profile.name
            self.query_one("#input-admin-email", Input).value = profile.email
            self.query_one("#input-admin-phone", Input).value = profile.phone

    def _banner_form(self, kind: str) -> Dict[str, str]:
        return {
            f: self.query_one(f"#input-{kind}-{f}", Input).value.strip() for f in BANNER_FIELDS
        }

    @on(Button.Pressed, "#btn-hero-add, #btn-category-add")
    @work(group="content-mutation")
    async def handle_add_banner(self, message: Button.Pressed) -> None:
        kind = message.button.id.split("-")[1]
        fields = self._banner_form(kind)
        if not fields["title"] or not fields["imageUrl"]:
            self.notify("A banner needs a title and an image url.", severity="error")
            return
        if kind == "category" and not fields["category"]:
            self.notify("A category banner needs a category.", severity="error")
            return

        admin = self.app.admin
        save = resources.save_hero_banner if kind == "hero" else resources.save_category_banner
        result = await admin.call(f"save {kind} banner", save(admin.client, admin.token, fields))
        if self.report(result, "Banner saved."):
            for f in BANNER_FIELDS:
                self.query_one(f"#input-{kind}-{f}", Input).value = ""
            self.load_content()

    @on(Button.Pressed, "#btn-hero-delete, #btn-category-delete")
    @work(group="content-mutation")
    async def handle_delete_banner(self, message: Button.Pressed) -> None:
        kind = message.button.id.split("-")[1]
        table = self.query_one(f"#table-{kind}", DataTable)
        if not table.row_count:
            return
        banner_id = table.get_row_at(table.cursor_row)[0]
        if not await self.app.push_screen_wait(
            DialogModal("Delete this banner?", primary_text="Delete", secondary_text="Cancel", tone="error")
        ):
            return

        admin = self.app.admin
        delete = resources.delete_hero_banner if kind == "hero" else resources.delete_category_banner
        result = await admin.call(f"delete {kind} banner", delete(admin.client, admin.token, banner_id))
        if self.report(result, "Banner deleted."):
            self.load_content()

    @on(Button.Pressed, "#btn-logo")
    @work(group="content-mutation")
    async def handle_logo(self) -> None:
        path = Path(self.query_one("#input-logo", Input).value.strip()).expanduser()
        if not path.is_file():
            self.notify("Logo file not found.", severity="error")
            return
        content = await asyncio.to_thread(path.read_bytes)
        admin = self.app.admin
        result = await admin.call(
            "upload logo", resources.set_logo(admin.client, admin.token, path.name, content)
        )
        if self.report(result, "Logo updated."):
            self.load_content()

    @on(Button.Pressed, "#btn-contact")
    @work(group="content-mutation")
    async def handle_contact(self) -> None:
        fields = {
            key: self.query_one(f"#input-contact-{key}", Input).value.strip()
            for key in ("email", "phone", "address")
        }
        admin = self.app.admin
        result = await admin.call(
            "update contact", resources.update_contact(admin.client, admin.token, fields)
        )
        self.report(result, "Contact details saved.")

    @on(Button.Pressed, "#btn-admin-profile")
    @work(group="content-mutation")
    async def handle_admin_profile(self) -> None:
        fields = {
            key: self.query_one(f"#input-admin-{key}", Input).value.strip()
            for key in ("name", "email", "phone")
        }
        if not fields["name"] or not fields["email"]:
            self.notify("Name and email are required.", severity="error")
            return
        if self.report(await self.app.admin.update_profile(fields), "Profile updated."):
            self.post_message(UserLoginMessage())
