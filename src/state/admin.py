from __future__ import annotations

from typing import Any, Awaitable, Dict, Optional, TypeVar

from api import resources
from api.client import ApiClient
from api.errors import ApiError, AuthError
from api.models import Admin
from db.storage import CorruptValueError, Storage
from state.result import MutationResult
from utils.logger import get_logger

_logger = get_logger(__name__)

T = TypeVar("T")

ADMIN_KEYS = ("adminToken", "adminUser")


class AdminSession:
    """
    Admin dashboard session. A stored session is only restored when both
    the admin record and its token are present.
    """

    def __init__(self, client: ApiClient, storage: Storage):
        self.client = client
        self.storage = storage
        self.admin: Optional[Dict[str, Any]] = None
        self.token: str = ""

    @classmethod
    async def init(cls, client: ApiClient, storage: Storage) -> AdminSession:
        session = cls(client, storage)
        try:
            admin = await storage.get_item("adminUser")
            token = await storage.get_item("adminToken")
        except CorruptValueError as e:
            _logger.error(f"Failed to parse stored admin session ({e.key})")
            await storage.remove_items(ADMIN_KEYS)
            admin, token = None, None

        if isinstance(admin, dict) and isinstance(token, str) and token:
            session.admin = admin
            session.token = token
        return session

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token) and self.admin is not None

    @property
    def profile(self) -> Optional[Admin]:
        return Admin.from_json(self.admin) if self.admin else None

    async def login(self, admin: Dict[str, Any], token: str) -> None:
        self.admin = admin
        self.token = token
        await self.storage.set_many({"adminUser": admin, "adminToken": token})
        _logger.info(f"Admin session started for {admin.get('email', 'admin')}")

    async def logout(self) -> None:
        self.admin = None
        self.token = ""
        await self.storage.remove_items(ADMIN_KEYS)
        _logger.info("Admin session cleared.")

    async def authenticate(self, email: str, password: str) -> MutationResult[Dict[str, Any]]:
        """Log in against the backend and store the session on success."""
        try:
            token, admin = await resources.admin_login(self.client, email, password)
        except ApiError as e:
            _logger.warning(f"Admin login failed: {e}")
            return MutationResult.failure(e.message or "Something went wrong")
        await self.login(admin, token)
        return MutationResult.success(admin)

    async def update_profile(self, fields: Dict[str, Any]) -> MutationResult[Dict[str, Any]]:
        result = await self.call(
            "update profile", resources.admin_update(self.client, self.token, fields)
        )
        if result.ok and result.value:
            self.admin = {**(self.admin or {}), **result.value}
            await self.storage.set_item("adminUser", self.admin)
        return result

    async def call(self, operation: str, request: Awaitable[T]) -> MutationResult[T]:
        """Same policy as the storefront: a 401 ends the admin session."""
        try:
            value = await request
        except AuthError as e:
            _logger.error(f"{operation} 401 Error: {e.message}")
            await self.logout()
            return MutationResult.failure(e.message, auth_expired=True)
        except ApiError as e:
            _logger.error(f"{operation} Error: {e}")
            return MutationResult.failure(e.message or f"Failed to {operation}. Try again.")
        return MutationResult.success(value)
