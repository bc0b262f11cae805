from typing import Literal

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.events import Key
from textual.widgets import Button, Input, Label, Select, TabbedContent, TabPane

from api import resources
from api.errors import ApiError
from utils.checkout import sanitize_phone
from utils.messages import UserLoginMessage
from views.base_screen import BaseScreen
from views.modal_dialog import QuitDialogModal

Role = Literal["customer", "admin"]


class LoginScreen(BaseScreen):
    """
    Storefront and admin sign-in. Dismisses with the role that logged in.
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Login", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-loginscr"):
            with TabPane("Login", id="tab-login"):
                with Vertical(id="div-login"):
                    yield Label("Email")
                    yield Input(placeholder="user@example.com", id="input-login-email")
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-login-pwd"
                    )
                    with Horizontal(id="div-login-btns"):
                        yield Button("Quit", id="btn-quit")
                        yield Button("Login", id="btn-login", variant="primary")

            with TabPane("Sign up", id="tab-signup"):
                with Vertical(id="div-reg"):
                    with Horizontal():
                        yield Input(placeholder="First name", id="input-reg-first")
                        yield Input(placeholder="Last name", id="input-reg-last")
                    yield Input(placeholder="user@example.com", id="input-reg-email")
                    yield Input(placeholder="Phone (10 digits)", id="input-reg-phone")
                    yield Select(
                        [(g, g) for g in ("Female", "Male", "Other")],
                        value="Female",
                        allow_blank=False,
                        id="select-reg-gender",
                    )
                    yield Input(
                        placeholder="Password", password=True, id="input-reg-pwd"
                    )
                    with Container(id="div-reg-btns"):
                        yield Button("Register", id="btn-reg", variant="primary")

            with TabPane("Admin", id="tab-admin"):
                with Vertical(id="div-admin"):
                    yield Label("Admin Email")
                    yield Input(placeholder="admin@example.com", id="input-admin-email")
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-admin-pwd"
                    )
                    with Horizontal(id="div-admin-btns"):
                        yield Button("Register", id="btn-admin-reg")
                        yield Button("Login", id="btn-admin-login", variant="primary")

    def on_mount(self):
        self.query_one("#input-login-email").focus()

    def on_key(self, event: Key) -> None:
        if event.key != "enter":
            return
        if self.focused == self.query_one("#input-login-pwd"):
            self.handle_login_submit()
        elif self.focused == self.query_one("#input-reg-pwd"):
            self.handle_registration_submit()
        elif self.focused == self.query_one("#input-admin-pwd"):
            self.handle_admin_login()

    def _mark_invalid(self, input_id: str) -> None:
        widget = self.query_one(input_id, Input)
        widget.value = ""
        widget.focus()
        widget.add_class("-invalid")

    def _finish(self, role: Role) -> None:
        self.app.post_message(UserLoginMessage())
        self.dismiss(role)

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        email = self.query_one("#input-login-email", Input).value.strip()
        pwd = self.query_one("#input-login-pwd", Input).value.strip()

        if not email or not pwd:
            self.notify("Please enter both email and password", severity="error")
            return

        try:
            token, user = await resources.login_user(self.app.client, email, pwd)
        except ApiError as e:
            self.notify(e.message or "Invalid email or password.", severity="error")
            self._mark_invalid("#input-login-pwd")
            return

        await self.app.shop.login(token, user)
        self.notify(f"Hello {user.get('firstName') or email}!")
        self._finish("customer")

    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self) -> None:
        first = self.query_one("#input-reg-first", Input).value.strip()
        last = self.query_one("#input-reg-last", Input).value.strip()
        email = self.query_one("#input-reg-email", Input).value.strip()
        phone = sanitize_phone(self.query_one("#input-reg-phone", Input).value)
        gender = self.query_one("#select-reg-gender", Select).value
        pwd = self.query_one("#input-reg-pwd", Input).value.strip()

        if not first or not last or not email or not pwd:
            self.notify("Make sure all inputs are filled.", severity="error")
            return

        try:
            token, user = await resources.register_user(
                self.app.client, first, last, email, pwd, phone, str(gender)
            )
        except ApiError as e:
            self.notify(e.message, severity="error")
            return

        await self.app.shop.login(token, user)
        self.notify("Signup successful!")
        self._finish("customer")

    @on(Button.Pressed, "#btn-admin-login")
    @work(exclusive=True)
    async def handle_admin_login(self) -> None:
        email = self.query_one("#input-admin-email", Input).value.strip()
        pwd = self.query_one("#input-admin-pwd", Input).value

        if not email or not pwd:
            self.notify("Please enter both email and password", severity="error")
            return

        result = await self.app.admin.authenticate(email, pwd)
        if not result.ok:
            self.notify(result.reason, severity="error")
            self._mark_invalid("#input-admin-pwd")
            return

        self.notify(f"Welcome back, {result.value.get('name') or email}!")
        self._finish("admin")

    @on(Button.Pressed, "#btn-admin-reg")
    @work(exclusive=True)
    async def handle_admin_register(self) -> None:
        email = self.query_one("#input-admin-email", Input).value.strip()
        pwd = self.query_one("#input-admin-pwd", Input).value

        if not email or not pwd:
            self.notify("Email and password are required.", severity="error")
            return

        name = email.split("@")[0]
        try:
            message = await resources.admin_register(self.app.client, name, email, pwd)
        except ApiError as e:
            self.notify(e.message, severity="error")
            return
        self.notify(message)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit_(self) -> None:
        self.app.push_screen(QuitDialogModal())
