from __future__ import annotations

import asyncio
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Dict,
    List,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
)

from api import resources
from api.client import ApiClient
from api.errors import ApiError, AuthError, NotFoundError
from api.models import CartProduct, Product, WishlistProduct
from db.storage import CorruptValueError, Storage
from state.result import MutationResult
from state.tasks import RequestSuperseded, RequestTracker
from utils.logger import get_logger

_logger = get_logger(__name__)

T = TypeVar("T")

SESSION_KEYS = ("token", "user", "cart", "wishlist")


async def iter_products(
    client: ApiClient, product_ids: Sequence[str]
) -> AsyncIterator[Tuple[str, Product]]:
    """
    Fetch every product concurrently and yield (id, product) in the given
    order, dropping the ones that fail. A missing product is logged as a
    warning, any other failure as an error; neither aborts the batch.
    """
    tasks = [
        asyncio.ensure_future(resources.get_product(client, pid)) for pid in product_ids
    ]
    try:
        for pid, task in zip(product_ids, tasks):
            try:
                product = await task
            except NotFoundError:
                _logger.warning(f"Product {pid} not found, skipping.")
                continue
            except ApiError as e:
                _logger.error(f"Error fetching product {pid}: {e}")
                continue
            yield pid, product
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()


class ShopState:
    """
    Storefront session: token, user, cart and wishlist.

    Local `cart` and `wishlist` mirror the server's last snapshot. Every
    mutation goes to the backend first and only a successful response
    replaces local state; a 401 from any authenticated call ends the
    session. Concurrent mutations are not serialized, the last response
    to arrive wins.

    Build with `await ShopState.init(client, storage)` and release with
    `await state.teardown()`.
    """

    def __init__(self, client: ApiClient, storage: Storage):
        self.client = client
        self.storage = storage

        self.token: Optional[str] = None
        self.user: Optional[Dict[str, Any]] = None
        self.cart: Dict[str, Dict[str, Any]] = {}
        self.wishlist: Dict[str, Dict[str, Any]] = {}
        self.cart_products: List[CartProduct] = []
        self.wishlist_products: List[WishlistProduct] = []

        self._tracker = RequestTracker()

    @classmethod
    async def init(
        cls, client: ApiClient, storage: Storage, sync: bool = True
    ) -> ShopState:
        """Restore the persisted session, then pull fresh snapshots if logged in."""
        state = cls(client, storage)
        await state._restore()
        if sync and state.has_token:
            await state.fetch_cart()
            await state.fetch_wishlist()
        return state

    async def teardown(self) -> None:
        await self._tracker.cancel_all()

    async def _restore(self) -> None:
        try:
            token = await self.storage.get_item("token")
        except CorruptValueError:
            _logger.error("Stored token is unreadable, discarding it.")
            await self.storage.remove_item("token")
            token = None
        self.token = token if isinstance(token, str) else None

        try:
            user = await self.storage.get_item("user")
            cart = await self.storage.get_item("cart", {})
            wishlist = await self.storage.get_item("wishlist", {})
        except CorruptValueError as e:
            _logger.error(f"Error parsing stored session data ({e.key}), resetting.")
            await self.storage.remove_item("user", "cart", "wishlist")
            user, cart, wishlist = None, {}, {}

        self.user = user if isinstance(user, dict) else None
        self.cart = cart if isinstance(cart, dict) else {}
        self.wishlist = wishlist if isinstance(wishlist, dict) else {}

    # ---------------------------
    # Session
    # ---------------------------

    @property
    def has_token(self) -> bool:
        return isinstance(self.token, str) and self.token.strip() != ""

    @property
    def user_id(self) -> Optional[str]:
        if not self.user:
            return None
        return self.user.get("_id") or self.user.get("id")

    async def login(self, token: str, user: Dict[str, Any]) -> None:
        """Store a freshly issued session and pull its cart and wishlist."""
        self.token = token
        self.user = user
        await self.storage.set_many({"token": token, "user": user})
        _logger.info(f"Storefront session started for {user.get('email', 'user')}")
        await self.fetch_cart()
        await self.fetch_wishlist()

    async def set_user(self, user: Dict[str, Any]) -> None:
        self.user = user
        await self.storage.set_item("user", user)

    async def logout(self) -> None:
        """Drop the session locally and from storage."""
        await self._tracker.cancel_all()
        self.token = None
        self.user = None
        self.cart = {}
        self.wishlist = {}
        self.cart_products = []
        self.wishlist_products = []
        await self.storage.remove_items(SESSION_KEYS)
        _logger.info("Storefront session cleared.")

    async def call(self, operation: str, request: Awaitable[T]) -> MutationResult[T]:
        """
        Await one backend call and fold its outcome into a MutationResult.

        A 401 logs the session out before returning. Other failures leave
        local state untouched; the caller decides what to show.
        """
        try:
            value = await request
        except RequestSuperseded:
            return MutationResult.failure(f"{operation} superseded", superseded=True)
        except AuthError as e:
            _logger.error(f"{operation} 401 Error: {e.message}")
            await self.logout()
            return MutationResult.failure(e.message, auth_expired=True)
        except ApiError as e:
            _logger.error(f"{operation} Error: {e}")
            return MutationResult.failure(e.message or f"Failed to {operation}. Try again.")
        return MutationResult.success(value)

    # ---------------------------
    # Snapshots
    # ---------------------------

    async def _set_cart(self, cart: Optional[Dict[str, Any]]) -> None:
        self.cart = dict(cart or {})
        await self.storage.set_item("cart", self.cart)

    async def _set_wishlist(self, wishlist: Optional[Dict[str, Any]]) -> None:
        self.wishlist = dict(wishlist or {})
        await self.storage.set_item("wishlist", self.wishlist)

    async def fetch_cart(self) -> MutationResult[Dict[str, Any]]:
        if not self.has_token:
            _logger.warning("No valid token for fetch cart")
            await self._set_cart({})
            return MutationResult.failure("Not logged in", login_required=True)

        result = await self.call(
            "fetch cart",
            self._tracker.run("cart", resources.get_cart(self.client, self.token)),
        )
        if result.ok:
            await self._set_cart(result.value)
        elif not (result.auth_expired or result.superseded):
            # stale data is worse than none
            await self._set_cart({})
        return result

    async def fetch_wishlist(self) -> MutationResult[Dict[str, Any]]:
        if not self.has_token:
            _logger.warning("No valid token for fetch wishlist")
            await self._set_wishlist({})
            return MutationResult.failure("Not logged in", login_required=True)

        result = await self.call(
            "fetch wishlist",
            self._tracker.run("wishlist", resources.get_wishlist(self.client, self.token)),
        )
        if result.ok:
            await self._set_wishlist(result.value)
        elif not (result.auth_expired or result.superseded):
            await self._set_wishlist({})
        return result

    # ---------------------------
    # Cart
    # ---------------------------

    async def add_to_cart(
        self, product_id: str, qty: int = 1, size: Optional[str] = None
    ) -> MutationResult[Dict[str, Any]]:
        if not self.has_token:
            _logger.warning("No valid token for add to cart")
            return MutationResult.failure(
                "Please login to add items to cart", login_required=True
            )

        result = await self.call(
            "add item to cart",
            resources.add_cart_item(self.client, self.token, product_id, qty, size),
        )
        if result.ok:
            await self._set_cart(result.value)
        return result

    async def remove_from_cart(self, product_id: str) -> MutationResult[Dict[str, Any]]:
        if not self.has_token:
            _logger.warning("No valid token for remove from cart")
            return MutationResult.failure("Not logged in")

        result = await self.call(
            "remove item from cart",
            resources.delete_cart_item(self.client, self.token, product_id),
        )
        if result.ok:
            await self._set_cart(result.value)
        return result

    async def update_cart_item(
        self, product_id: str, qty: int
    ) -> MutationResult[Dict[str, Any]]:
        if not self.has_token:
            _logger.warning("No valid token for update cart item")
            return MutationResult.failure("Not logged in")

        result = await self.call(
            "update cart item",
            resources.update_cart_item(self.client, self.token, product_id, qty),
        )
        if result.ok:
            await self._set_cart(result.value)
        return result

    async def increase_qty(self, product_id: str) -> MutationResult[Dict[str, Any]]:
        entry = self.cart.get(product_id)
        if not entry:
            return MutationResult.unchanged(self.cart)
        return await self.update_cart_item(product_id, int(entry.get("qty") or 0) + 1)

    async def decrease_qty(self, product_id: str) -> MutationResult[Dict[str, Any]]:
        entry = self.cart.get(product_id)
        if not entry or int(entry.get("qty") or 0) <= 1:
            return MutationResult.unchanged(self.cart)
        return await self.update_cart_item(product_id, int(entry["qty"]) - 1)

    async def reset_cart(self) -> MutationResult[Dict[str, Any]]:
        """Empty the cart. Local state ends up empty whatever the server says."""
        if not self.has_token:
            _logger.warning("No valid token for reset cart")
            await self._set_cart({})
            self.cart_products = []
            return MutationResult.failure("Not logged in")

        result = await self.call(
            "reset cart", resources.reset_cart(self.client, self.token)
        )
        if not result.auth_expired:
            await self._set_cart({})
        self.cart_products = []
        return result.with_value({})

    def total_amount(self) -> float:
        return sum(item.product.new_price * item.qty for item in self.cart_products)

    def cart_count(self) -> int:
        return sum(int(entry.get("qty") or 0) for entry in self.cart.values())

    # ---------------------------
    # Wishlist
    # ---------------------------

    def in_wishlist(self, product_id: str) -> bool:
        return product_id in self.wishlist

    async def toggle_wishlist(
        self, product_id: str, size: Optional[str] = None
    ) -> MutationResult[Dict[str, Any]]:
        """
        DELETE when the product is in the local wishlist, POST otherwise.
        The choice is made from local state, so two quick toggles before the
        first response can both pick the same method.
        """
        if not self.has_token:
            return MutationResult.failure("Please login first", login_required=True)

        if product_id in self.wishlist:
            request = resources.delete_wishlist_item(self.client, self.token, product_id)
        else:
            request = resources.add_wishlist_item(
                self.client, self.token, product_id, size
            )
        result = await self.call("toggle wishlist", request)
        if result.ok:
            await self._set_wishlist(result.value)
        return result

    async def clear_wishlist(self) -> MutationResult[Dict[str, Any]]:
        if not self.has_token:
            _logger.warning("No valid token for clear wishlist")
            await self._set_wishlist({})
            self.wishlist_products = []
            return MutationResult.failure("Not logged in")

        result = await self.call(
            "clear wishlist", resources.reset_wishlist(self.client, self.token)
        )
        if not result.auth_expired:
            await self._set_wishlist({})
        self.wishlist_products = []
        return result.with_value({})

    # ---------------------------
    # Product details for display
    # ---------------------------

    async def _collect_cart(self, cart: Dict[str, Dict[str, Any]]) -> List[CartProduct]:
        items: List[CartProduct] = []
        async for pid, product in iter_products(self.client, list(cart)):
            entry = cart.get(pid) or {}
            size = entry.get("size") or (product.sizes[0] if product.sizes else None)
            items.append(
                CartProduct(product=product, qty=int(entry.get("qty") or 1), size=size)
            )
        return items

    async def _collect_wishlist(
        self, wishlist: Dict[str, Dict[str, Any]]
    ) -> List[WishlistProduct]:
        items: List[WishlistProduct] = []
        async for pid, product in iter_products(self.client, list(wishlist)):
            entry = wishlist.get(pid) or {}
            items.append(
                WishlistProduct(
                    product=product,
                    size=entry.get("size") or None,
                    dateAdded=entry.get("dateAdded") or None,
                )
            )
        return items

    async def hydrate_cart(self) -> List[CartProduct]:
        """Resolve product details for every cart key; unresolvable keys are dropped."""
        if not self.cart:
            self.cart_products = []
            return self.cart_products
        try:
            self.cart_products = await self._tracker.run(
                "hydrate:cart", self._collect_cart(dict(self.cart))
            )
        except RequestSuperseded:
            pass
        return self.cart_products

    async def hydrate_wishlist(self) -> List[WishlistProduct]:
        if not self.wishlist:
            self.wishlist_products = []
            return self.wishlist_products
        try:
            self.wishlist_products = await self._tracker.run(
                "hydrate:wishlist", self._collect_wishlist(dict(self.wishlist))
            )
        except RequestSuperseded:
            pass
        return self.wishlist_products
