from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label

from utils.messages import ModeSwitchedMessage, NewNotificationMessage
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal


class NotificationsScreen(BaseScreen):
    """
    Live admin notifications, newest first. New ones arrive over the push
    channel; deletes only disappear once the backend confirms them.
    """

    BINDINGS = [
        Binding("delete", "delete_one", "Delete", show=True),
    ]

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield Label("", id="label-unread")
        yield DataTable(id="table-notifications")
        with Horizontal(id="hort-buttons"):
            yield Button("Delete All", id="btn-delete-all", variant="error")
            yield Button("Refresh", id="btn-refresh")
            yield Button("Mark All Read", id="btn-read", variant="primary")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("", "Type", "Message", "Order", "Date")
        self.handle_refresh()

    @on(Button.Pressed, "#btn-refresh")
    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    @work(exclusive=True, group="notifications")
    async def handle_refresh(self) -> None:
        if self.report(await self.app.notifications.fetch()):
            self.render_list()

    @on(NewNotificationMessage)
    def handle_new_notification(self) -> None:
        # the state already holds the pushed notification
        self.render_list()

    def render_list(self) -> None:
        state = self.app.notifications
        self.query_one("#label-unread", Label).update(f"Unread: {state.unread_count}")
        table = self.query_one(DataTable)
        table.clear()
        for n in state.notifications:
            table.add_row(
                "" if n.read else "●",
                n.type,
                n.message,
                n.orderId or "-",
                (n.date or "-")[:16].replace("T", " "),
                key=n.id,
            )

    @on(Button.Pressed, "#btn-read")
    def handle_mark_read(self) -> None:
        self.app.notifications.mark_all_read()
        self.render_list()

    @work(group="notification-mutation")
    async def action_delete_one(self) -> None:
        table = self.query_one(DataTable)
        if not table.row_count:
            return
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        if not await self.app.push_screen_wait(
            DialogModal(
                "Delete this notification?",
                primary_text="Delete",
                secondary_text="Cancel",
                tone="error",
            )
        ):
            return
        self.report(await self.app.notifications.delete_one(row_key.value), "Notification deleted.")
        self.render_list()

    @on(Button.Pressed, "#btn-delete-all")
    @work(group="notification-mutation")
    async def handle_delete_all(self) -> None:
        if not self.app.notifications.notifications:
            self.notify("No notifications.", severity="warning")
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                "Delete all notifications?",
                primary_text="Delete",
                secondary_text="Cancel",
                tone="error",
            )
        ):
            return
        self.report(await self.app.notifications.delete_all(), "All notifications deleted.")
        self.render_list()
