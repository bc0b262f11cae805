# provide dataclass models for records exchanged with the backend

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


def _id(data: Dict[str, Any]) -> str:
    return str(data.get("_id") or data.get("id") or "")


def _float(val, default: float = 0.0) -> float:
    try:
        return float(val)
    except (TypeError, ValueError):
        return default


def _int(val, default: int = 0) -> int:
    try:
        return int(val)
    except (TypeError, ValueError):
        return default


def parse_timestamp(val: Optional[str]) -> Optional[datetime]:
    """ISO-8601 timestamp as sent by the backend, None if unparsable."""
    if not val:
        return None
    try:
        return datetime.fromisoformat(str(val).replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    category: str = ""
    old_price: float = 0.0
    new_price: float = 0.0
    images: List[str] = field(default_factory=list)
    sizes: List[str] = field(default_factory=list)
    colors: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    stockQuantity: int = 0
    inStock: bool = False
    sku: str = ""
    isPopular: bool = False
    isNew: bool = False
    published: bool = True
    description: str = ""

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> Product:
        stock = _int(data.get("stockQuantity"))
        return cls(
            id=_id(data),
            name=data.get("name") or "",
            category=data.get("category") or "",
            old_price=_float(data.get("old_price")),
            new_price=_float(data.get("new_price")),
            images=list(data.get("images") or []),
            sizes=list(data.get("sizes") or []),
            colors=list(data.get("colors") or []),
            tags=list(data.get("tags") or []),
            stockQuantity=stock,
            inStock=bool(data.get("inStock", stock > 0)),
            sku=data.get("sku") or "",
            isPopular=bool(data.get("isPopular", False)),
            isNew=bool(data.get("isNew", False)),
            published=bool(data.get("published", True)),
            description=data.get("description") or "",
        )


@dataclass(frozen=True)
class CartProduct:
    """Product detail merged with its cart entry, for display."""

    product: Product
    qty: int
    size: Optional[str]

    @property
    def line_total(self) -> float:
        return self.product.new_price * self.qty


@dataclass(frozen=True)
class WishlistProduct:
    product: Product
    size: Optional[str]
    dateAdded: Optional[str]


@dataclass(frozen=True)
class OrderItem:
    productId: str
    name: str
    price: float
    qty: int
    size: str = ""
    image: str = ""

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> OrderItem:
        return cls(
            productId=str(data.get("productId") or ""),
            name=data.get("name") or "",
            price=_float(data.get("price")),
            qty=_int(data.get("qty"), 1),
            size=data.get("size") or "",
            image=data.get("image") or "",
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "productId": self.productId,
            "qty": self.qty,
            "size": self.size,
            "price": self.price,
            "name": self.name,
            "image": self.image,
        }


@dataclass(frozen=True)
class ShippingAddress:
    fullName: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""

    @classmethod
    def from_json(cls, data: Optional[Dict[str, Any]]) -> ShippingAddress:
        data = data or {}
        return cls(
            fullName=data.get("fullName") or "",
            phone=str(data.get("phone") or ""),
            address=data.get("address") or "",
            city=data.get("city") or "",
            state=data.get("state") or "",
            pincode=str(data.get("pincode") or ""),
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "fullName": self.fullName,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "pincode": self.pincode,
        }

    def one_line(self) -> str:
        parts = [self.address, self.city, self.state, self.pincode]
        return ", ".join(p for p in parts if p)


@dataclass(frozen=True)
class Order:
    id: str
    items: List[OrderItem]
    shippingAddress: ShippingAddress
    paymentMethod: str
    totalAmount: float
    status: str
    createdAt: Optional[str]
    shippingPrice: float = 0.0
    discount: float = 0.0
    isReturned: bool = False
    isReturnRequested: bool = False
    user: Any = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> Order:
        return cls(
            id=_id(data),
            items=[OrderItem.from_json(i) for i in data.get("items") or []],
            shippingAddress=ShippingAddress.from_json(data.get("shippingAddress")),
            paymentMethod=data.get("paymentMethod") or "",
            totalAmount=_float(data.get("totalAmount")),
            status=data.get("status") or "Pending",
            createdAt=data.get("createdAt"),
            shippingPrice=_float(data.get("shippingPrice")),
            discount=_float(data.get("discount")),
            isReturned=bool(data.get("isReturned", False)),
            isReturnRequested=bool(data.get("isReturnRequested", False)),
            user=data.get("user"),
        )

    @property
    def created(self) -> Optional[datetime]:
        return parse_timestamp(self.createdAt)

    @property
    def can_return(self) -> bool:
        return (
            self.status == "Delivered"
            and not self.isReturned
            and not self.isReturnRequested
        )


@dataclass(frozen=True)
class Notification:
    id: str
    type: str
    message: str
    orderId: Optional[str] = None
    date: Optional[str] = None
    read: bool = False

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> Notification:
        order_id = data.get("orderId")
        if isinstance(order_id, dict):
            order_id = _id(order_id)
        return cls(
            id=_id(data),
            type=data.get("type") or "info",
            message=data.get("message") or "",
            orderId=str(order_id) if order_id else None,
            date=data.get("date") or data.get("createdAt"),
            read=bool(data.get("read", False)),
        )


@dataclass(frozen=True)
class ReturnRequest:
    id: str
    order: Any
    reason: str
    status: str
    user: Any = None
    items: List[OrderItem] = field(default_factory=list)
    totalAmount: float = 0.0
    paymentMethod: str = ""
    createdAt: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> ReturnRequest:
        return cls(
            id=_id(data),
            order=data.get("order") or data.get("orderId"),
            reason=data.get("reason") or "",
            status=data.get("status") or "Pending",
            user=data.get("user"),
            items=[OrderItem.from_json(i) for i in data.get("items") or []],
            totalAmount=_float(data.get("totalAmount")),
            paymentMethod=data.get("paymentMethod") or "",
            createdAt=data.get("createdAt"),
        )

    @property
    def customer_name(self) -> str:
        user = self.user
        if isinstance(user, dict):
            full = f"{user.get('firstName') or ''} {user.get('lastName') or ''}".strip()
            return full or user.get("name") or user.get("email") or "Unknown"
        return "Unknown"


@dataclass(frozen=True)
class User:
    id: str
    email: str
    firstName: str = ""
    lastName: str = ""
    phone: str = ""
    gender: str = ""
    role: str = "customer"

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> User:
        return cls(
            id=_id(data),
            email=data.get("email") or "",
            firstName=data.get("firstName") or "",
            lastName=data.get("lastName") or "",
            phone=str(data.get("phone") or ""),
            gender=data.get("gender") or "",
            role=data.get("role") or "customer",
        )

    @property
    def full_name(self) -> str:
        return f"{self.firstName} {self.lastName}".strip()


@dataclass(frozen=True)
class Admin:
    id: str
    name: str
    email: str
    phone: str = ""
    role: str = "Admin"
    avatar: str = ""

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> Admin:
        return cls(
            id=_id(data),
            name=data.get("name") or "",
            email=data.get("email") or "",
            phone=str(data.get("phone") or ""),
            role=data.get("role") or "Admin",
            avatar=data.get("avatar") or "",
        )


@dataclass(frozen=True)
class Banner:
    id: str
    title: str = ""
    subtitle: str = ""
    imageUrl: str = ""
    category: str = ""
    link: str = ""

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> Banner:
        return cls(
            id=_id(data),
            title=data.get("title") or "",
            subtitle=data.get("subtitle") or "",
            imageUrl=data.get("imageUrl") or "",
            category=data.get("category") or "",
            link=data.get("link") or "",
        )


@dataclass(frozen=True)
class ContactInfo:
    email: str = ""
    phone: str = ""
    address: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: Optional[Dict[str, Any]]) -> ContactInfo:
        data = dict(data or {})
        return cls(
            email=data.pop("email", "") or "",
            phone=str(data.pop("phone", "") or ""),
            address=data.pop("address", "") or "",
            extra={k: v for k, v in data.items() if not k.startswith("_")},
        )
