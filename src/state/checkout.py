from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from api import resources
from api.models import CartProduct, Order
from db.storage import CorruptValueError
from state.result import MutationResult
from state.shop import ShopState
from utils.checkout import (
    CheckoutTotals,
    CheckoutValidationError,
    build_order_payload,
    compute_totals,
    is_first_order,
    valid_items,
    validate_billing,
    validate_payment,
)
from utils.logger import get_logger

_logger = get_logger(__name__)


class CheckoutFlow:
    """
    One pass through shipping and payment for the current cart.

    `processing` is True only while the order request is in flight and is
    always cleared afterwards; the HTTP timeout bounds how long that is.
    """

    def __init__(self, state: ShopState):
        self.state = state
        self.first_order = False
        self.shipping_details: Dict[str, Any] = {}
        self.processing = False

    async def load(self) -> List[CartProduct]:
        """Hydrate the cart, restore saved shipping details and check discount eligibility."""
        await self.state.hydrate_cart()
        try:
            self.shipping_details = await self.state.storage.get_item("shippingDetails", {})
        except CorruptValueError:
            self.shipping_details = {}

        if self.state.has_token:
            result = await self.state.call(
                "check first order",
                resources.list_my_orders(self.state.client, self.state.token),
            )
            self.first_order = result.ok and is_first_order(result.value or [])
        return self.items

    @property
    def items(self) -> List[CartProduct]:
        return valid_items(self.state.cart_products)

    @property
    def shipping_method(self) -> str:
        return self.shipping_details.get("method") or "standard"

    def totals(self, shipping_method: Optional[str] = None) -> CheckoutTotals:
        return compute_totals(
            self.items, shipping_method or self.shipping_method, self.first_order
        )

    async def save_shipping(self, details: Mapping[str, Any]) -> CheckoutTotals:
        """
        Cache the shipping form and the totals it implies.

        Raises CheckoutValidationError before anything is stored.
        """
        validate_billing(details)
        self.shipping_details = dict(details)
        totals = self.totals()
        await self.state.storage.set_many(
            {"shippingDetails": self.shipping_details, **totals.as_storage()}
        )
        return totals

    async def place_order(
        self,
        billing: Mapping[str, Any],
        payment_method: str,
        payment_details: Mapping[str, Any],
    ) -> MutationResult[Order]:
        """
        Validate, submit and, on success, empty the cart.

        Raises:
            CheckoutValidationError: when the forms are incomplete; nothing is sent.
        """
        validate_billing(billing)
        items = self.items
        if not items:
            raise CheckoutValidationError("Cart is empty")
        if not self.state.has_token:
            return MutationResult.failure("Please log in to continue", login_required=True)
        validate_payment(payment_method, payment_details)

        totals = self.totals()
        payload = build_order_payload(billing, payment_method, items, totals)

        self.processing = True
        try:
            result = await self.state.call(
                "place order",
                resources.place_order(self.state.client, self.state.token, payload),
            )
            if result.ok:
                _logger.info(f"Order {result.value.id} placed, total {totals.grand_total:.2f}")
                await self.state.reset_cart()
                await self.state.storage.set_item("firstOrderUsed", True)
                self.first_order = False
            return result
        finally:
            self.processing = False
