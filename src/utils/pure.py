import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional

from api.models import Order, Product, ReturnRequest, User

MONTHS = [
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
]


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows, each a list of strings.
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all center ('c').

    Returns:
        str: Markdown formatted table.
    """
    if not rows:
        return ""

    # If no headers, take the first row as header and remove it from rows
    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = list(map(str, headers))
    rows = [list(map(str, row)) for row in rows]

    num_cols = len(headers)
    if aligns is None:
        aligns = ["c"] * num_cols
    elif len(aligns) != num_cols:
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {
        "l": ":---",
        "c": ":---:",
        "r": "---:",
    }

    header_line = "| " + " | ".join(headers) + " |"
    align_line = "| " + " | ".join(align_map[a] for a in aligns) + " |"
    row_lines = ["| " + " | ".join(map(str, row)) + " |" for row in rows]

    return "\n".join([header_line, align_line, *row_lines])


@dataclass(frozen=True)
class DashboardStats:
    total_revenue: float
    total_orders: int
    average_order_value: float
    returned_orders: int = 0
    new_customers: int = 0


@dataclass(frozen=True)
class MonthlySales:
    month: str
    revenue: float
    orders: int


def dashboard_stats(
    orders: List[Order], returned_orders: int = 0, new_customers: int = 0
) -> DashboardStats:
    """Headline numbers; average order value is 0 when there are no orders."""
    total_revenue = sum(o.totalAmount for o in orders)
    total_orders = len(orders)
    average = total_revenue / total_orders if total_orders else 0.0
    return DashboardStats(
        total_revenue=total_revenue,
        total_orders=total_orders,
        average_order_value=average,
        returned_orders=returned_orders,
        new_customers=new_customers,
    )


def monthly_sales(orders: Iterable[Order]) -> List[MonthlySales]:
    """Revenue and order count per calendar month (all years folded together)."""
    revenue = [0.0] * 12
    counts = [0] * 12
    for order in orders:
        created = order.created
        if created is None:
            continue
        revenue[created.month - 1] += order.totalAmount
        counts[created.month - 1] += 1
    return [MonthlySales(MONTHS[i], revenue[i], counts[i]) for i in range(12)]


def product_sales(orders: Iterable[Order]) -> Dict[str, int]:
    """Units sold per product name, in first-seen order."""
    sales: Dict[str, int] = {}
    for order in orders:
        for item in order.items:
            sales[item.name] = sales.get(item.name, 0) + (item.qty or 1)
    return sales


def filter_products(
    products: Iterable[Product],
    search: str = "",
    category: str = "",
    price_order: Literal["", "low", "high"] = "",
) -> List[Product]:
    needle = search.strip().lower()
    result = [
        p
        for p in products
        if needle in p.name.lower() and (not category or p.category == category)
    ]
    if price_order == "low":
        result.sort(key=lambda p: p.new_price)
    elif price_order == "high":
        result.sort(key=lambda p: p.new_price, reverse=True)
    return result


def filter_inventory(
    products: Iterable[Product],
    search: str = "",
    stock: Literal["", "in", "out"] = "",
) -> List[Product]:
    needle = search.strip().lower()
    result = []
    for p in products:
        if needle and needle not in p.name.lower() and needle not in p.sku.lower():
            continue
        if stock == "in" and p.stockQuantity <= 0:
            continue
        if stock == "out" and p.stockQuantity != 0:
            continue
        result.append(p)
    return result


def filter_returns(
    returns: Iterable[ReturnRequest],
    search: str = "",
    status: str = "",
    method: str = "",
) -> List[ReturnRequest]:
    needle = search.strip().lower()
    return [
        r
        for r in returns
        if (not needle or needle in r.customer_name.lower())
        and (not status or r.status == status)
        and (not method or r.paymentMethod == method)
    ]


def filter_customers(customers: Iterable[User], search: str = "") -> List[User]:
    needle = search.strip().lower()
    if not needle:
        return list(customers)
    return [
        c
        for c in customers
        if needle in c.id.lower()
        or needle in c.full_name.lower()
        or needle in c.email.lower()
        or needle in c.phone.lower()
    ]


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.strip().lower()).strip("-")


def split_list(text: str) -> List[str]:
    """Comma separated form field to a list, blanks dropped."""
    return [part.strip() for part in text.split(",") if part.strip()]


def product_form_payload(form: Mapping[str, str]) -> Dict[str, Any]:
    """
    Turn the admin product form into the product create/update body.

    Raises:
        ValueError: when a required field is missing or a number is malformed
    """
    missing = [f for f in ("name", "category", "new_price", "sku") if not form.get(f, "").strip()]
    if missing:
        raise ValueError("Please fill in all required fields: " + ", ".join(missing))

    try:
        new_price = float(form["new_price"])
        old_price = float(form.get("old_price") or 0)
        stock = int(form.get("stockQuantity") or 0)
    except ValueError:
        raise ValueError("Prices and stock must be numbers")
    if not (math.isfinite(new_price) and math.isfinite(old_price)):
        raise ValueError("Prices and stock must be numbers")
    if new_price < 0 or old_price < 0 or stock < 0:
        raise ValueError("Prices and stock cannot be negative")

    name = form["name"].strip()
    return {
        "name": name,
        "category": form["category"].strip(),
        "description": form.get("description", "").strip(),
        "old_price": old_price,
        "new_price": new_price,
        "stockQuantity": stock,
        "inStock": stock > 0,
        "sizes": split_list(form.get("sizes", "")),
        "colors": split_list(form.get("colors", "")),
        "tags": split_list(form.get("tags", "")),
        "sku": form["sku"].strip(),
        "slug": slugify(name),
    }
