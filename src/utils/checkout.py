"""Checkout pricing, validation and order payload assembly.

First-order eligibility is derived here on the client (no previous
orders means eligible). The backend does not confirm it, so the discount
shown is advisory until the backend issues its own eligibility flag.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping

from api.models import CartProduct, Order, OrderItem, ShippingAddress

SHIPPING_RATES: Dict[str, float] = {"standard": 0.0, "express": 5.0, "priority": 10.0}
FIRST_ORDER_DISCOUNT_RATE = 0.2

BILLING_FIELDS = (
    "firstName",
    "lastName",
    "country",
    "state",
    "city",
    "address",
    "zip",
    "phone",
)

PAYMENT_METHODS = {"card": "ONLINE", "upi": "UPI", "cod": "COD"}

_PHONE_RE = re.compile(r"^\d{10}$")
_CARD_RE = re.compile(r"^\d{16}$")
_CVV_RE = re.compile(r"^\d{3,4}$")


class CheckoutValidationError(ValueError):
    pass


@dataclass(frozen=True)
class CheckoutTotals:
    sub_total: float
    shipping_cost: float
    discount: float
    grand_total: float

    def as_storage(self) -> Dict[str, str]:
        return {
            "subTotal": f"{self.sub_total:.2f}",
            "shippingCost": f"{self.shipping_cost:.2f}",
            "discount": f"{self.discount:.2f}",
            "grandTotal": f"{self.grand_total:.2f}",
        }


def sanitize_phone(value: str) -> str:
    return re.sub(r"\D", "", value or "")[:10]


def is_first_order(orders: Iterable[Order]) -> bool:
    return len(list(orders)) == 0


def valid_items(cart_products: Iterable[CartProduct]) -> List[CartProduct]:
    """Drop lines that cannot be ordered (no name, no price or no quantity)."""
    return [
        c
        for c in cart_products
        if c.product.id and c.product.name and c.product.new_price > 0 and c.qty > 0
    ]


def compute_totals(
    cart_products: Iterable[CartProduct],
    shipping_method: str = "standard",
    first_order: bool = False,
) -> CheckoutTotals:
    """Totals over the orderable lines only, so the cart and checkout agree."""
    sub_total = sum(c.product.new_price * c.qty for c in valid_items(cart_products))
    shipping_cost = SHIPPING_RATES.get(shipping_method, 0.0)
    discount = sub_total * FIRST_ORDER_DISCOUNT_RATE if first_order else 0.0
    return CheckoutTotals(
        sub_total=sub_total,
        shipping_cost=shipping_cost,
        discount=discount,
        grand_total=sub_total + shipping_cost - discount,
    )


def validate_billing(details: Mapping[str, Any]) -> None:
    if any(not str(details.get(f) or "").strip() for f in BILLING_FIELDS):
        raise CheckoutValidationError("Please fill all billing details")
    if not _PHONE_RE.match(str(details["phone"])):
        raise CheckoutValidationError("Phone must be 10 digits")


def validate_payment(method: str, details: Mapping[str, Any]) -> None:
    if method == "card":
        if (
            not _CARD_RE.match(str(details.get("cardNumber") or ""))
            or not details.get("expiry")
            or not _CVV_RE.match(str(details.get("cvv") or ""))
        ):
            raise CheckoutValidationError("Enter valid card details")
    elif method == "upi":
        if not details.get("upiId"):
            raise CheckoutValidationError("Enter UPI ID")
    elif method not in PAYMENT_METHODS:
        raise CheckoutValidationError(f"Unknown payment method: {method}")


def build_order_payload(
    billing: Mapping[str, Any],
    payment_method: str,
    cart_products: Iterable[CartProduct],
    totals: CheckoutTotals,
) -> Dict[str, Any]:
    """Body for POST /api/orders; item lines are snapshots of the cart."""
    shipping_address = ShippingAddress(
        fullName=f"{billing['firstName']} {billing['lastName']}",
        phone=str(billing["phone"]),
        address=billing["address"],
        city=billing["city"],
        state=billing["state"],
        pincode=str(billing["zip"]),
    )
    items = [
        OrderItem(
            productId=c.product.id,
            name=c.product.name,
            price=float(c.product.new_price),
            qty=int(c.qty),
            size=c.size or "",
            image=c.product.images[0] if c.product.images else "",
        )
        for c in cart_products
    ]
    return {
        "shippingAddress": shipping_address.to_json(),
        "paymentMethod": PAYMENT_METHODS.get(payment_method, "COD"),
        "totalAmount": totals.grand_total,
        "shippingPrice": totals.shipping_cost,
        "discount": totals.discount,
        "items": [i.to_json() for i in items],
    }
