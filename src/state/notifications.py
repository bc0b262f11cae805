from __future__ import annotations

import dataclasses
from typing import List, Optional

from api import resources
from api.models import Notification
from api.push import NotificationChannel
from state.admin import AdminSession
from state.result import MutationResult
from utils.logger import get_logger

_logger = get_logger(__name__)


class NotificationsState:
    """
    Live notification list for the admin dashboard, newest first.

    Pushed notifications are prepended as they arrive. Deletes are applied
    locally only after the backend confirms them.
    """

    def __init__(self, session: AdminSession):
        self.session = session
        self.notifications: List[Notification] = []
        self._channel: Optional[NotificationChannel] = None

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.read)

    async def fetch(self) -> MutationResult[List[Notification]]:
        result = await self.session.call(
            "fetch notifications",
            resources.list_notifications(self.session.client, self.session.token),
        )
        if result.ok:
            self.notifications = list(result.value or [])
        return result

    async def push(self, notification: Notification) -> None:
        self.notifications.insert(0, notification)

    def mark_all_read(self) -> None:
        self.notifications = [dataclasses.replace(n, read=True) for n in self.notifications]

    async def delete_one(self, notification_id: str) -> MutationResult[List[Notification]]:
        result = await self.session.call(
            "delete notification",
            resources.delete_notification(
                self.session.client, self.session.token, notification_id
            ),
        )
        if result.ok:
            self.notifications = [
                n for n in self.notifications if n.id != notification_id
            ]
        return result.with_value(self.notifications)

    async def delete_all(self) -> MutationResult[List[Notification]]:
        result = await self.session.call(
            "delete all notifications",
            resources.delete_all_notifications(self.session.client, self.session.token),
        )
        if result.ok:
            self.notifications = []
        return result.with_value(self.notifications)

    def attach(self, channel: NotificationChannel) -> None:
        """Start mirroring pushed notifications from channel."""
        self.detach()
        channel.subscribe(self.push)
        self._channel = channel

    def detach(self) -> None:
        if self._channel is not None:
            self._channel.unsubscribe(self.push)
            self._channel = None
