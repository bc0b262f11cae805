from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.widgets import Button, Input, Label, Rule, Select

from api import resources
from utils.checkout import sanitize_phone
from utils.messages import UserLoginMessage
from views.base_screen import BaseScreen


class AccountScreen(BaseScreen):
    """
    Customer profile, password change and the newsletter offer.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with VerticalScroll(id="div-account"):
            yield Label("Profile", classes="section-title")
            with Horizontal():
                yield Input(placeholder="First name", id="input-first")
                yield Input(placeholder="Last name", id="input-last")
            yield Input(placeholder="Email", id="input-email", disabled=True)
            yield Input(placeholder="Phone (10 digits)", id="input-phone")
            yield Select(
                [(g, g) for g in ("Female", "Male", "Other")],
                prompt="Gender",
                id="select-gender",
            )
            with Horizontal(classes="div-form-btns"):
                yield Button("Reload", id="btn-reload")
                yield Button("Save Profile", id="btn-save", variant="primary")

            yield Rule(line_style="dashed")
            yield Label("Change Password", classes="section-title")
            yield Input(placeholder="Current password", password=True, id="input-pwd-cur")
            yield Input(placeholder="New password", password=True, id="input-pwd-new")
            yield Input(placeholder="Confirm new password", password=True, id="input-pwd-confirm")
            with Horizontal(classes="div-form-btns"):
                yield Button("Update Password", id="btn-pwd", variant="warning")

            yield Rule(line_style="dashed")
            with Vertical():
                yield Label("Claim the newsletter offer", classes="section-title")
                yield Input(placeholder="Email for the offer", id="input-offer")
                yield Button("Claim", id="btn-offer", variant="success")

    def on_mount(self) -> None:
        self.load_profile()

    @on(Button.Pressed, "#btn-reload")
    @work(exclusive=True, group="profile")
    async def load_profile(self) -> None:
        shop = self.app.shop
        if not shop.has_token:
            return
        result = await shop.call("fetch profile", resources.get_me(shop.client, shop.token))
        if not self.report(result):
            return
        user = result.value
        self.query_one("#input-first", Input).value = user.firstName
        self.query_one("#input-last", Input).value = user.lastName
        self.query_one("#input-email", Input).value = user.email
        self.query_one("#input-phone", Input).value = user.phone
        self.query_one("#input-offer", Input).value = user.email
        if user.gender:
            self.query_one("#select-gender", Select).value = user.gender

    @on(Input.Changed, "#input-phone")
    def handle_phone_changed(self, message: Input.Changed) -> None:
        cleaned = sanitize_phone(message.value)
        if cleaned != message.value:
            message.input.value = cleaned

    @on(Button.Pressed, "#btn-save")
    @work(group="profile-mutation")
    async def handle_save(self) -> None:
        shop = self.app.shop
        first = self.query_one("#input-first", Input).value.strip()
        last = self.query_one("#input-last", Input).value.strip()
        phone = self.query_one("#input-phone", Input).value
        if not first or not last:
            self.notify("First and last name are required.", severity="error")
            return
        if phone and len(phone) != 10:
            self.notify("Phone number must be 10 digits.", severity="error")
            return

        fields = {"firstName": first, "lastName": last, "phone": phone}
        gender = self.query_one("#select-gender", Select).value
        if isinstance(gender, str):
            fields["gender"] = gender

        result = await shop.call(
            "update profile",
            resources.update_user(shop.client, shop.token, shop.user_id, fields),
        )
        if self.report(result, "Profile updated."):
            updated = (result.value or {}).get("user") or result.value or {}
            await shop.set_user({**(shop.user or {}), **fields, **updated})
            self.post_message(UserLoginMessage())

    @on(Button.Pressed, "#btn-pwd")
    @work(group="profile-mutation")
    async def handle_change_password(self) -> None:
        current = self.query_one("#input-pwd-cur", Input)
        new = self.query_one("#input-pwd-new", Input)
        confirm = self.query_one("#input-pwd-confirm", Input)
        if not current.value or not new.value:
            self.notify("Fill in both the current and the new password.", severity="error")
            return
        if new.value != confirm.value:
            self.notify("New passwords do not match.", severity="error")
            confirm.focus()
            return

        shop = self.app.shop
        result = await shop.call(
            "change password",
            resources.change_password(
                shop.client, shop.token, shop.user_id, current.value, new.value
            ),
        )
        if self.report(result, "Password updated."):
            for field in (current, new, confirm):
                field.value = ""

    @on(Button.Pressed, "#btn-offer")
    @work(group="offer")
    async def handle_claim_offer(self) -> None:
        email = self.query_one("#input-offer", Input).value.strip()
        if "@" not in email:
            self.notify("Enter a valid email.", severity="error")
            return
        result = await self.app.shop.call(
            "claim offer", resources.claim_offer(self.app.client, email)
        )
        if self.report(result):
            await self.app.storage.set_item("offerClaimed", True)
            self.notify(result.value)
