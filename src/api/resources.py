# src/api/resources.py
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import quote

from api import models
from api.client import ApiClient


def _path_id(value: str) -> str:
    return quote(str(value), safe="")


def _unwrap_list(data: Any, key: str) -> List[Dict[str, Any]]:
    """Some endpoints answer with a bare list, others wrap it under key."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return data.get(key) or []
    return []


# ---------------------------
# Auth & Registration
# ---------------------------


async def login_user(
    client: ApiClient, email: str, password: str
) -> Tuple[str, Dict[str, Any]]:
    """Customer login. Returns (token, raw user record)."""
    data = await client.post(
        "/api/auth/login", json={"email": email.strip(), "password": password.strip()}
    )
    return data["token"], data.get("user") or {}


async def register_user(
    client: ApiClient,
    first_name: str,
    last_name: str,
    email: str,
    password: str,
    phone: str = "",
    gender: str = "Female",
) -> Tuple[str, Dict[str, Any]]:
    """Customer signup, the backend signs the new user in straight away."""
    data = await client.post(
        "/api/auth/register",
        json={
            "firstName": first_name.strip(),
            "lastName": last_name.strip(),
            "email": email.strip(),
            "password": password.strip(),
            "phone": phone.strip(),
            "gender": gender,
        },
    )
    return data["token"], data.get("user") or {}


async def admin_login(
    client: ApiClient, email: str, password: str
) -> Tuple[str, Dict[str, Any]]:
    data = await client.post(
        "/api/admin/login", json={"email": email.strip(), "password": password}
    )
    return data["token"], data.get("admin") or {}


async def admin_register(client: ApiClient, name: str, email: str, password: str) -> str:
    """Returns the backend's confirmation message."""
    data = await client.post(
        "/api/admin/register",
        json={"name": name.strip(), "email": email.strip(), "password": password},
    )
    return (data or {}).get("message") or "Registered"


async def admin_update(
    client: ApiClient, token: str, fields: Dict[str, Any]
) -> Dict[str, Any]:
    data = await client.put("/api/admin/update", token=token, json=fields)
    return (data or {}).get("admin") or data or {}


# ---------------------------
# Users
# ---------------------------


async def get_me(client: ApiClient, token: str) -> models.User:
    data = await client.get("/api/user/me", token=token)
    return models.User.from_json((data or {}).get("user") or data or {})


async def update_user(
    client: ApiClient, token: str, user_id: str, fields: Dict[str, Any]
) -> Dict[str, Any]:
    return await client.put(f"/api/user/{_path_id(user_id)}", token=token, json=fields)


async def change_password(
    client: ApiClient, token: str, user_id: str, current: str, new: str
) -> None:
    await client.put(
        f"/api/user/password/{_path_id(user_id)}",
        token=token,
        json={"currentPassword": current, "newPassword": new},
    )


async def list_customers(client: ApiClient, token: Optional[str] = None) -> List[models.User]:
    data = await client.get("/api/user/all", token=token)
    return [models.User.from_json(c) for c in _unwrap_list(data, "users")]


async def update_customer(
    client: ApiClient, token: Optional[str], customer_id: str, fields: Dict[str, Any]
) -> models.User:
    data = await client.put(f"/api/user/{_path_id(customer_id)}", token=token, json=fields)
    return models.User.from_json(data or {})


async def delete_customer(
    client: ApiClient, token: Optional[str], customer_id: str
) -> None:
    await client.delete(f"/api/user/{_path_id(customer_id)}", token=token)


async def count_new_customers(client: ApiClient, token: Optional[str] = None) -> int:
    data = await client.get("/api/user/new-customers", token=token)
    return int((data or {}).get("newCustomers") or 0)


# ---------------------------
# Products
# ---------------------------


async def list_products(client: ApiClient) -> List[models.Product]:
    data = await client.get("/api/products")
    return [models.Product.from_json(p) for p in _unwrap_list(data, "products")]


async def get_product(client: ApiClient, product_id: str) -> models.Product:
    """Raises NotFoundError if the product no longer exists."""
    data = await client.get(f"/api/products/{_path_id(product_id)}")
    return models.Product.from_json((data or {}).get("product") or data or {})


async def get_related_products(
    client: ApiClient, product_id: str
) -> List[models.Product]:
    data = await client.get(f"/api/products/related/{_path_id(product_id)}")
    return [models.Product.from_json(p) for p in _unwrap_list(data, "products")]


async def create_product(
    client: ApiClient, token: str, fields: Dict[str, Any]
) -> models.Product:
    data = await client.post("/api/products", token=token, json=fields)
    return models.Product.from_json((data or {}).get("product") or data or {})


async def update_product(
    client: ApiClient, token: str, product_id: str, fields: Dict[str, Any]
) -> models.Product:
    data = await client.put(
        f"/api/products/{_path_id(product_id)}", token=token, json=fields
    )
    return models.Product.from_json((data or {}).get("product") or data or {})


async def delete_product(client: ApiClient, token: str, product_id: str) -> None:
    await client.delete(f"/api/products/{_path_id(product_id)}", token=token)


async def bulk_delete_products(
    client: ApiClient, token: str, product_ids: Iterable[str]
) -> None:
    await client.post(
        "/api/products/bulk-delete", token=token, json={"ids": list(product_ids)}
    )


async def set_product_popular(
    client: ApiClient, token: str, product_id: str, popular: bool
) -> models.Product:
    data = await client.put(
        f"/api/products/{_path_id(product_id)}/popular",
        token=token,
        json={"isPopular": popular},
    )
    return models.Product.from_json(data or {})


async def set_product_published(
    client: ApiClient, token: str, product_id: str, published: bool
) -> models.Product:
    return await update_product(client, token, product_id, {"published": published})


async def upload_images(
    client: ApiClient, token: Optional[str], files: List[Tuple[str, bytes]]
) -> List[str]:
    """Upload (filename, content) pairs, returns the stored image urls."""
    data = await client.post(
        "/api/upload",
        token=token,
        files=[("images", (name, content)) for name, content in files],
    )
    data = data or {}
    return list(data.get("urls") or data.get("images") or [])


# ---------------------------
# Cart & Wishlist
# ---------------------------


async def get_cart(client: ApiClient, token: str) -> Dict[str, Any]:
    data = await client.get("/api/cart", token=token)
    return (data or {}).get("cart") or {}


async def add_cart_item(
    client: ApiClient, token: str, product_id: str, qty: int, size: Optional[str]
) -> Dict[str, Any]:
    data = await client.post(
        "/api/cart",
        token=token,
        json={"productId": product_id, "qty": qty, "size": size},
    )
    return (data or {}).get("cart") or {}


async def update_cart_item(
    client: ApiClient, token: str, product_id: str, qty: int
) -> Dict[str, Any]:
    data = await client.put(
        f"/api/cart/{_path_id(product_id)}", token=token, json={"qty": qty}
    )
    return (data or {}).get("cart") or {}


async def delete_cart_item(
    client: ApiClient, token: str, product_id: str
) -> Dict[str, Any]:
    data = await client.delete(f"/api/cart/{_path_id(product_id)}", token=token)
    return (data or {}).get("cart") or {}


async def reset_cart(client: ApiClient, token: str) -> None:
    await client.post("/api/cart/reset", token=token)


async def get_wishlist(client: ApiClient, token: str) -> Dict[str, Any]:
    data = await client.get("/api/wishlist", token=token)
    return (data or {}).get("wishlist") or {}


async def add_wishlist_item(
    client: ApiClient, token: str, product_id: str, size: Optional[str]
) -> Dict[str, Any]:
    data = await client.post(
        "/api/wishlist", token=token, json={"productId": product_id, "size": size}
    )
    return (data or {}).get("wishlist") or {}


async def delete_wishlist_item(
    client: ApiClient, token: str, product_id: str
) -> Dict[str, Any]:
    data = await client.delete(f"/api/wishlist/{_path_id(product_id)}", token=token)
    return (data or {}).get("wishlist") or {}


async def reset_wishlist(client: ApiClient, token: str) -> None:
    await client.post("/api/wishlist/reset", token=token)


# ---------------------------
# Orders & Returns
# ---------------------------


async def list_orders(client: ApiClient, token: Optional[str]) -> List[models.Order]:
    """All orders, admin view."""
    data = await client.get("/api/orders", token=token)
    return [models.Order.from_json(o) for o in _unwrap_list(data, "orders")]


async def list_my_orders(client: ApiClient, token: str) -> List[models.Order]:
    data = await client.get("/api/orders/my-orders", token=token)
    return [models.Order.from_json(o) for o in _unwrap_list(data, "orders")]


async def place_order(
    client: ApiClient, token: str, payload: Dict[str, Any]
) -> models.Order:
    data = await client.post("/api/orders", token=token, json=payload)
    return models.Order.from_json((data or {}).get("order") or {})


async def list_returns(
    client: ApiClient, token: Optional[str]
) -> List[models.ReturnRequest]:
    data = await client.get("/api/returns", token=token)
    return [models.ReturnRequest.from_json(r) for r in _unwrap_list(data, "returns")]


async def create_return(
    client: ApiClient, token: str, order_id: str, reason: str
) -> Dict[str, Any]:
    if not reason:
        raise ValueError("A return reason is required")
    return await client.post(
        "/api/returns", token=token, json={"orderId": order_id, "reason": reason}
    )


# ---------------------------
# Notifications
# ---------------------------


async def list_notifications(
    client: ApiClient, token: Optional[str]
) -> List[models.Notification]:
    data = await client.get("/api/notifications", token=token)
    return [
        models.Notification.from_json(n) for n in _unwrap_list(data, "notifications")
    ]


async def delete_notification(
    client: ApiClient, token: Optional[str], notification_id: str
) -> None:
    await client.delete(f"/api/notifications/{_path_id(notification_id)}", token=token)


async def delete_all_notifications(client: ApiClient, token: Optional[str]) -> None:
    await client.delete("/api/notifications", token=token)


# ---------------------------
# Website content
# ---------------------------


async def get_logo(client: ApiClient) -> Optional[str]:
    data = await client.get("/api/logo")
    data = data or {}
    return data.get("logoUrl") or data.get("url")


async def set_logo(
    client: ApiClient, token: Optional[str], filename: str, content: bytes
) -> Optional[str]:
    data = await client.post("/api/logo", token=token, files=[("logo", (filename, content))])
    data = data or {}
    return data.get("logoUrl") or data.get("url")


async def _list_banners(
    client: ApiClient, path: str, params: Optional[Dict[str, Any]] = None
) -> List[models.Banner]:
    data = await client.get(path, params=params)
    return [models.Banner.from_json(b) for b in _unwrap_list(data, "banners")]


async def _save_banner(
    client: ApiClient,
    path: str,
    token: Optional[str],
    fields: Dict[str, Any],
    banner_id: Optional[str],
) -> None:
    if banner_id:
        await client.put(f"{path}/{_path_id(banner_id)}", token=token, json=fields)
    else:
        await client.post(path, token=token, json=fields)


async def list_hero_banners(client: ApiClient) -> List[models.Banner]:
    return await _list_banners(client, "/api/hero-banners")


async def save_hero_banner(
    client: ApiClient,
    token: Optional[str],
    fields: Dict[str, Any],
    banner_id: Optional[str] = None,
) -> None:
    """Create when banner_id is None, otherwise update."""
    await _save_banner(client, "/api/hero-banners", token, fields, banner_id)


async def delete_hero_banner(
    client: ApiClient, token: Optional[str], banner_id: str
) -> None:
    await client.delete(f"/api/hero-banners/{_path_id(banner_id)}", token=token)


async def list_category_banners(
    client: ApiClient, category: Optional[str] = None
) -> List[models.Banner]:
    params = {"category": category} if category else None
    return await _list_banners(client, "/api/category-banners", params)


async def save_category_banner(
    client: ApiClient,
    token: Optional[str],
    fields: Dict[str, Any],
    banner_id: Optional[str] = None,
) -> None:
    await _save_banner(client, "/api/category-banners", token, fields, banner_id)


async def delete_category_banner(
    client: ApiClient, token: Optional[str], banner_id: str
) -> None:
    await client.delete(f"/api/category-banners/{_path_id(banner_id)}", token=token)


async def get_contact(client: ApiClient) -> models.ContactInfo:
    data = await client.get("/api/contact")
    return models.ContactInfo.from_json((data or {}).get("contact") or data or {})


async def update_contact(
    client: ApiClient, token: Optional[str], fields: Dict[str, Any]
) -> models.ContactInfo:
    data = await client.put("/api/contact", token=token, json=fields)
    return models.ContactInfo.from_json((data or {}).get("contact") or data or {})


async def claim_offer(client: ApiClient, email: str) -> str:
    data = await client.post("/api/offer/claim", json={"email": email.strip()})
    return (data or {}).get("message") or "Offer claimed"
