from typing import Literal, Optional

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from api.client import ApiClient
from api.errors import ApiError
from api.models import Notification
from api.push import NotificationChannel
from db.storage import Storage
from state.admin import AdminSession
from state.notifications import NotificationsState
from state.shop import ShopState
from utils.logger import get_logger
from utils.messages import (
    ModeSwitchedMessage,
    NewNotificationMessage,
    QuitRequestedMessage,
    SessionExpiredMessage,
    UserLogoutMessage,
)
from views.scr_account import AccountScreen
from views.scr_cart import CartScreen
from views.scr_customers import CustomersScreen
from views.scr_dashboard import DashboardScreen
from views.scr_login import LoginScreen
from views.scr_my_orders import MyOrdersScreen
from views.scr_notifications import NotificationsScreen
from views.scr_products import ProductsScreen
from views.scr_returns import ReturnsScreen
from views.scr_shop import ShopScreen
from views.scr_website import WebsiteScreen
from views.scr_wishlist import WishlistScreen

_logger = get_logger(__name__)


class ShopfrontApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "shop": ShopScreen,
        "cart": CartScreen,
        "wishlist": WishlistScreen,
        "my_orders": MyOrdersScreen,
        "account": AccountScreen,
        "dashboard": DashboardScreen,
        "products": ProductsScreen,
        "returns": ReturnsScreen,
        "customers": CustomersScreen,
        "notifications": NotificationsScreen,
        "website": WebsiteScreen,
    }

    ADMIN_MODES = {
        "dashboard": "Dashboard",
        "products": "Products & Inventory",
        "returns": "Returns",
        "customers": "Customers",
        "notifications": "Notifications",
        "website": "Website Content",
    }
    CUSTOMER_MODES = {
        "shop": "Shop",
        "cart": "Cart",
        "wishlist": "Wishlist",
        "my_orders": "My Orders",
        "account": "My Account",
    }

    CSS_PATH = [
        "styles/index.tcss",
        "styles/login.tcss",
        "styles/shop.tcss",
        "styles/cart.tcss",
        "styles/orders.tcss",
        "styles/admin.tcss",
    ]

    role: Optional[Literal["customer", "admin"]] = None

    def __init__(
        self,
        client: Optional[ApiClient] = None,
        storage: Optional[Storage] = None,
        channel: Optional[NotificationChannel] = None,
    ):
        super().__init__()
        self.client = client or ApiClient()
        self.storage = storage or Storage()
        self.channel = channel or NotificationChannel()
        self.shop: Optional[ShopState] = None
        self.admin: Optional[AdminSession] = None
        self.notifications: Optional[NotificationsState] = None

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.shop = await ShopState.init(self.client, self.storage)
        self.admin = await AdminSession.init(self.client, self.storage)
        self.notifications = NotificationsState(self.admin)
        self.notifications.attach(self.channel)
        self.channel.subscribe(self._on_push_notification)
        self.main_flow()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    async def _on_push_notification(self, notification: Notification) -> None:
        # screens only see messages posted to them or bubbling up through them
        self.screen.post_message(NewNotificationMessage(notification))
        if self.role == "admin":
            self.notify(notification.message, title="New notification")

    async def _end_session(self) -> None:
        if self.role == "customer":
            await self.shop.logout()
        elif self.role == "admin":
            await self.admin.logout()
            await self.channel.disconnect()
        self.role = None

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        await self._end_session()
        self.notify("Logout successful.")
        self.main_flow()

    @on(SessionExpiredMessage)
    @work(exclusive=True, group="session")
    async def handle_session_expired(self, message: SessionExpiredMessage):
        if self.role is None:
            return
        await self._end_session()
        self.notify(message.reason, severity="error")
        self.main_flow()

    @on(QuitRequestedMessage)
    @work
    async def handle_quit(self):
        await self.shop.teardown()
        await self.channel.disconnect()
        await self.client.aclose()
        self.exit()

    async def _start_admin(self) -> None:
        await self.notifications.fetch()
        try:
            await self.channel.connect(self.admin.token)
        except ApiError as e:
            self.notify(str(e), severity="warning")

    @work
    async def main_flow(self):
        if self.shop.has_token:
            self.role = "customer"
        elif self.admin.is_authenticated:
            self.role = "admin"
        else:
            self.role = await self.push_screen_wait(LoginScreen())

        if self.role == "customer":
            self.post_message(ModeSwitchedMessage(self.current_mode, "shop"))
            await self.switch_mode("shop")
        elif self.role == "admin":
            await self._start_admin()
            self.post_message(ModeSwitchedMessage(self.current_mode, "dashboard"))
            await self.switch_mode("dashboard")


def run() -> None:
    app = ShopfrontApp()
    app.run()


if __name__ == "__main__":
    run()
