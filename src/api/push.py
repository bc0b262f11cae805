from __future__ import annotations

from typing import Any, Awaitable, Callable, List, Optional

import socketio
from socketio.exceptions import ConnectionError as SocketConnectionError

from api.errors import ApiError
from api.models import Notification
from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)

NEW_NOTIFICATION_EVENT = "newNotification"

NotificationCallback = Callable[[Notification], Awaitable[None]]


class NotificationChannel:
    """
    Socket.IO subscription to the backend's live notification feed.

    Each `newNotification` payload is parsed into a Notification and handed
    to every subscribed callback in registration order.
    """

    def __init__(
        self,
        url: str = config.API_URL,
        sio: Optional[socketio.AsyncClient] = None,
    ):
        self.url = url
        self._sio = sio or socketio.AsyncClient(reconnection=True, logger=False)
        self._callbacks: List[NotificationCallback] = []
        self._sio.on(NEW_NOTIFICATION_EVENT, self._dispatch)

    @property
    def connected(self) -> bool:
        return self._sio.connected

    def subscribe(self, callback: NotificationCallback) -> None:
        self._callbacks.append(callback)

    def unsubscribe(self, callback: NotificationCallback) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    async def _dispatch(self, payload: Any) -> None:
        if not isinstance(payload, dict):
            _logger.warning(f"Ignoring malformed notification payload: {payload!r}")
            return
        notification = Notification.from_json(payload)
        _logger.info(f"New notification: {notification.message}")
        for callback in list(self._callbacks):
            await callback(notification)

    async def connect(self, token: Optional[str] = None) -> None:
        if self._sio.connected:
            return
        try:
            await self._sio.connect(
                self.url,
                auth={"token": token} if token else None,
                transports=["websocket", "polling"],
            )
        except SocketConnectionError as e:
            _logger.error(f"Push channel connection to {self.url} failed: {e}")
            raise ApiError(f"Could not connect to notification feed: {e}") from e
        _logger.info(f"Push channel connected to {self.url}")

    async def disconnect(self) -> None:
        if self._sio.connected:
            await self._sio.disconnect()
            _logger.info("Push channel disconnected")
