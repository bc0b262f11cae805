import unittest

import support  # noqa: F401

from api.models import Order, Product, ReturnRequest, User
from utils.pure import (
    dashboard_stats,
    filter_customers,
    filter_inventory,
    filter_products,
    filter_returns,
    generate_markdown_table,
    monthly_sales,
    product_sales,
    product_form_payload,
    slugify,
)


def order(total, created, items=()):
    return Order.from_json({"_id": f"O{total}", "totalAmount": total, "createdAt": created, "items": list(items)})


class AggregationTestCase(unittest.TestCase):
    def test_dashboard_stats(self):
        orders = [order(100, "2024-01-05T10:00:00Z"), order(50, "2024-02-10T10:00:00Z")]
        stats = dashboard_stats(orders, returned_orders=1, new_customers=3)
        self.assertEqual(stats.total_revenue, 150)
        self.assertEqual(stats.total_orders, 2)
        self.assertEqual(stats.average_order_value, 75)
        self.assertEqual(stats.returned_orders, 1)
        self.assertEqual(stats.new_customers, 3)

    def test_average_is_zero_without_orders(self):
        stats = dashboard_stats([])
        self.assertEqual(stats.total_revenue, 0)
        self.assertEqual(stats.average_order_value, 0.0)

    def test_monthly_sales_skips_bad_dates(self):
        orders = [
            order(10, "2024-03-01T00:00:00Z"),
            order(20, "2023-03-15T00:00:00Z"),
            order(5, "not a date"),
            order(7, None),
        ]
        months = monthly_sales(orders)
        self.assertEqual(len(months), 12)
        self.assertEqual(months[2].month, "Mar")
        self.assertEqual(months[2].revenue, 30)
        self.assertEqual(months[2].orders, 2)
        self.assertEqual(sum(m.orders for m in months), 2)

    def test_product_sales_defaults_qty_to_one(self):
        orders = [
            order(1, None, [{"name": "Tee", "qty": 2}, {"name": "Cap"}]),
            order(2, None, [{"name": "Tee", "qty": 3}]),
        ]
        self.assertEqual(product_sales(orders), {"Tee": 5, "Cap": 1})

    def test_markdown_table(self):
        md = generate_markdown_table(["A", "B"], [[1, "x"]], ["l", "r"])
        self.assertEqual(md.splitlines()[0], "| A | B |")
        self.assertEqual(md.splitlines()[-1], "| 1 | x |")


class FilterTestCase(unittest.TestCase):
    def setUp(self):
        self.products = [
            Product.from_json({"_id": "1", "name": "Red Shirt", "category": "men", "new_price": 30, "stockQuantity": 0, "sku": "RS-1"}),
            Product.from_json({"_id": "2", "name": "Blue Shirt", "category": "women", "new_price": 10, "stockQuantity": 4, "sku": "BS-2"}),
            Product.from_json({"_id": "3", "name": "Cap", "category": "men", "new_price": 20, "stockQuantity": 1, "sku": "CP-3"}),
        ]

    def test_filter_products(self):
        self.assertEqual([p.id for p in filter_products(self.products, "shirt")], ["1", "2"])
        self.assertEqual([p.id for p in filter_products(self.products, category="men")], ["1", "3"])
        self.assertEqual([p.id for p in filter_products(self.products, price_order="low")], ["2", "3", "1"])
        self.assertEqual([p.id for p in filter_products(self.products, price_order="high")], ["1", "3", "2"])
        self.assertEqual([p.id for p in filter_products(self.products)], ["1", "2", "3"])

    def test_filter_inventory(self):
        self.assertEqual([p.id for p in filter_inventory(self.products, stock="in")], ["2", "3"])
        self.assertEqual([p.id for p in filter_inventory(self.products, stock="out")], ["1"])
        self.assertEqual([p.id for p in filter_inventory(self.products, "cp-")], ["3"])

    def test_filter_returns(self):
        returns = [
            ReturnRequest.from_json({"_id": "R1", "status": "Pending", "paymentMethod": "COD", "user": {"firstName": "Ann", "lastName": "Lee"}}),
            ReturnRequest.from_json({"_id": "R2", "status": "Approved", "paymentMethod": "UPI", "user": {"firstName": "Bob"}}),
            ReturnRequest.from_json({"_id": "R3", "status": "Pending", "paymentMethod": "UPI"}),
        ]
        self.assertEqual([r.id for r in filter_returns(returns, "ann")], ["R1"])
        self.assertEqual([r.id for r in filter_returns(returns, status="Pending")], ["R1", "R3"])
        self.assertEqual([r.id for r in filter_returns(returns, status="Pending", method="UPI")], ["R3"])
        self.assertEqual(returns[2].customer_name, "Unknown")

    def test_filter_customers(self):
        customers = [
            User.from_json({"_id": "U1", "email": "ann@x.io", "firstName": "Ann", "lastName": "Lee", "phone": "5551234567"}),
            User.from_json({"_id": "U2", "email": "bob@y.io", "firstName": "Bob"}),
        ]
        self.assertEqual([c.id for c in filter_customers(customers, "ann lee")], ["U1"])
        self.assertEqual([c.id for c in filter_customers(customers, "Y.IO")], ["U2"])
        self.assertEqual([c.id for c in filter_customers(customers, "555")], ["U1"])
        self.assertEqual(len(filter_customers(customers, "  ")), 2)


class ProductFormTestCase(unittest.TestCase):
    def test_payload(self):
        payload = product_form_payload(
            {
                "name": " Summer Tee ",
                "category": "men",
                "sku": "ST-1",
                "new_price": "19.99",
                "old_price": "",
                "stockQuantity": "0",
                "sizes": "S, M,,L",
                "colors": "",
                "tags": "summer",
            }
        )
        self.assertEqual(payload["name"], "Summer Tee")
        self.assertEqual(payload["slug"], "summer-tee")
        self.assertEqual(payload["old_price"], 0.0)
        self.assertFalse(payload["inStock"])
        self.assertEqual(payload["sizes"], ["S", "M", "L"])
        self.assertEqual(payload["colors"], [])

    def test_required_and_numeric_fields(self):
        with self.assertRaises(ValueError):
            product_form_payload({"name": "Tee", "category": "men", "new_price": "5"})
        with self.assertRaises(ValueError):
            product_form_payload({"name": "Tee", "category": "men", "sku": "T", "new_price": "five"})
        with self.assertRaises(ValueError):
            product_form_payload({"name": "Tee", "category": "men", "sku": "T", "new_price": "-1"})
        for bad in ("nan", "inf", "-inf"):
            with self.subTest(new_price=bad):
                with self.assertRaises(ValueError):
                    product_form_payload({"name": "Tee", "category": "men", "sku": "T", "new_price": bad})
        with self.assertRaises(ValueError):
            product_form_payload({"name": "Tee", "category": "men", "sku": "T", "new_price": "5", "old_price": "nan"})

    def test_slugify(self):
        self.assertEqual(slugify("  Men's Jacket / Winter "), "men-s-jacket-winter")
