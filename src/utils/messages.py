from textual.message import Message

from api.models import Notification


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user logs out
    """

    bubble = True


class UserLoginMessage(Message):
    """
    Fired when user logged, so the scren can refresh
    """

    bubble = True


class SessionExpiredMessage(Message):
    """
    Fired when the backend rejected the session token (401).
    The session has already been cleared; the app goes back to login.
    """

    bubble = True

    def __init__(self, reason: str) -> None:
        super().__init__()
        self.reason = reason


class CartChangedMessage(Message):
    """
    Fired whenever the local cart snapshot was replaced.
    Will trigger a refresh of cart screen

    Outside CartScreen posting at App level is enough, the cart screen
    also re-hydrates whenever it is resumed.
    """

    bubble = True


class WishlistChangedMessage(Message):
    bubble = True


class NewOrderMessage(Message):
    """
    Fired when a new order is created.
    Listened to by my orders and the cart (first-order discount)
    """

    bubble = True


class NewNotificationMessage(Message):
    """
    Fired by the app when the push channel delivers a notification.
    """

    bubble = True

    def __init__(self, notification: Notification) -> None:
        super().__init__()
        self.notification = notification


class ModeSwitchedMessage(Message):
    """
    fired whenever switch_mode is called
    must be fired from app level
    """

    bubble = True

    def __init__(self, old_mode: str, new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode
