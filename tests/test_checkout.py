import unittest

from support import FakeBackend, StorageTestCase

from api.models import CartProduct, Product
from state.checkout import CheckoutFlow
from state.shop import ShopState
from utils.checkout import (
    CheckoutValidationError,
    build_order_payload,
    compute_totals,
    is_first_order,
    sanitize_phone,
    valid_items,
    validate_billing,
    validate_payment,
)

BILLING = {
    "firstName": "Ann",
    "lastName": "Lee",
    "country": "IN",
    "state": "KA",
    "city": "Bengaluru",
    "address": "1 Main Rd",
    "zip": "560001",
    "phone": "9876543210",
}
CARD = {"cardNumber": "4111111111111111", "expiry": "12/29", "cvv": "123"}


def line(pid, price, qty, size=None, name=None):
    product = Product(id=pid, name=name if name is not None else f"Product {pid}", new_price=price, images=["img.png"])
    return CartProduct(product=product, qty=qty, size=size)


class CheckoutHelpersTestCase(unittest.TestCase):
    def test_totals_per_shipping_method(self):
        items = [line("P1", 10.0, 2), line("P2", 5.0, 1)]
        self.assertEqual(compute_totals(items).grand_total, 25.0)
        self.assertEqual(compute_totals(items, "express").shipping_cost, 5.0)
        self.assertEqual(compute_totals(items, "priority").grand_total, 35.0)
        self.assertEqual(compute_totals(items, "unknown").shipping_cost, 0.0)

    def test_first_order_discount(self):
        items = [line("P1", 50.0, 2)]
        totals = compute_totals(items, "express", first_order=True)
        self.assertEqual(totals.sub_total, 100.0)
        self.assertEqual(totals.discount, 20.0)
        self.assertEqual(totals.grand_total, 85.0)
        self.assertEqual(totals.as_storage()["grandTotal"], "85.00")

        self.assertTrue(is_first_order([]))

    def test_valid_items_drops_broken_lines(self):
        items = [line("P1", 10.0, 1), line("P2", 0.0, 1), line("P3", 5.0, 0), line("P4", 5.0, 1, name="")]
        self.assertEqual([c.product.id for c in valid_items(items)], ["P1"])
        self.assertEqual(compute_totals(items).sub_total, 10.0)

    def test_sanitize_phone(self):
        self.assertEqual(sanitize_phone("+91 (987) 654-3210 99"), "9198765432")
        self.assertEqual(sanitize_phone(""), "")

    def test_validate_billing(self):
        validate_billing(BILLING)
        with self.assertRaises(CheckoutValidationError):
            validate_billing({**BILLING, "city": "  "})
        with self.assertRaises(CheckoutValidationError):
            validate_billing({**BILLING, "phone": "12345"})

    def test_validate_payment(self):
        validate_payment("card", CARD)
        validate_payment("upi", {"upiId": "ann@upi"})
        validate_payment("cod", {})
        for method, details in (
            ("card", {**CARD, "cardNumber": "4111"}),
            ("card", {**CARD, "cvv": "12"}),
            ("card", {**CARD, "expiry": ""}),
            ("upi", {}),
            ("cheque", {}),
        ):
            with self.subTest(method=method, details=details):
                with self.assertRaises(CheckoutValidationError):
                    validate_payment(method, details)

    def test_order_payload(self):
        items = [line("P1", 10.0, 2, "M")]
        totals = compute_totals(items, "express")
        payload = build_order_payload(BILLING, "card", items, totals)
        self.assertEqual(payload["paymentMethod"], "ONLINE")
        self.assertEqual(payload["shippingAddress"]["fullName"], "Ann Lee")
        self.assertEqual(payload["shippingAddress"]["pincode"], "560001")
        self.assertEqual(payload["totalAmount"], 25.0)
        self.assertEqual(payload["shippingPrice"], 5.0)
        self.assertEqual(
            payload["items"],
            [{"productId": "P1", "qty": 2, "size": "M", "price": 10.0, "name": "Product P1", "image": "img.png"}],
        )
        self.assertEqual(build_order_payload(BILLING, "upi", items, totals)["paymentMethod"], "UPI")
        self.assertEqual(build_order_payload(BILLING, "cod", items, totals)["paymentMethod"], "COD")


class CheckoutFlowTestCase(StorageTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.backend = FakeBackend(
            {
                ("GET", "/api/products/P1"): (200, {"_id": "P1", "name": "Tee", "new_price": 40, "sizes": ["M"]}),
                ("GET", "/api/orders/my-orders"): (200, {"orders": []}),
                ("POST", "/api/orders"): (201, {"order": {"_id": "O1", "totalAmount": 64, "status": "Pending"}}),
                ("POST", "/api/cart/reset"): (200, None),
            }
        )
        client = self.backend.client()
        self.addAsyncCleanup(client.aclose)
        await self.storage.set_many({"token": "T", "user": {"_id": "U1"}, "cart": {"P1": {"qty": 2}}})
        self.shop = await ShopState.init(client, self.storage, sync=False)
        self.flow = CheckoutFlow(self.shop)

    async def test_load_and_totals(self):
        items = await self.flow.load()
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0].size, "M")
        self.assertTrue(self.flow.first_order)
        totals = self.flow.totals("standard")
        self.assertEqual(totals.sub_total, 80.0)
        self.assertEqual(totals.discount, 16.0)
        self.assertEqual(totals.grand_total, 64.0)

    async def test_save_shipping_caches_totals(self):
        await self.flow.load()
        await self.flow.save_shipping({**BILLING, "method": "express"})
        self.assertEqual(self.flow.shipping_method, "express")
        self.assertEqual((await self.storage.get_item("shippingDetails"))["city"], "Bengaluru")
        self.assertEqual(await self.storage.get_item("grandTotal"), "69.00")

    async def test_save_shipping_rejects_invalid_form(self):
        await self.flow.load()
        with self.assertRaises(CheckoutValidationError):
            await self.flow.save_shipping({"firstName": "", "phone": "12"})
        self.assertIsNone(await self.storage.get_raw("shippingDetails"))
        self.assertIsNone(await self.storage.get_raw("grandTotal"))

    async def test_place_order_success_resets_cart(self):
        await self.flow.load()
        result = await self.flow.place_order(BILLING, "card", CARD)

        self.assertTrue(result.ok)
        self.assertEqual(result.value.id, "O1")
        self.assertFalse(self.flow.processing)
        body = FakeBackend.body(self.backend.calls("POST", "/api/orders")[0])
        self.assertEqual(body["totalAmount"], 64.0)
        self.assertEqual(body["discount"], 16.0)
        self.assertEqual(self.shop.cart, {})
        self.assertTrue(await self.storage.get_item("firstOrderUsed"))

    async def test_invalid_forms_send_nothing(self):
        await self.flow.load()
        sent = len(self.backend.requests)
        with self.assertRaises(CheckoutValidationError):
            await self.flow.place_order({**BILLING, "zip": ""}, "card", CARD)
        with self.assertRaises(CheckoutValidationError):
            await self.flow.place_order(BILLING, "card", {})
        self.assertEqual(len(self.backend.requests), sent)

    async def test_empty_cart(self):
        self.shop.cart = {}
        await self.flow.load()
        with self.assertRaises(CheckoutValidationError):
            await self.flow.place_order(BILLING, "cod", {})

    async def test_failed_order_keeps_cart(self):
        self.backend.routes[("POST", "/api/orders")] = (400, {"message": "Insufficient stock"})
        await self.flow.load()
        result = await self.flow.place_order(BILLING, "cod", {})
        self.assertFalse(result.ok)
        self.assertEqual(result.reason, "Insufficient stock")
        self.assertFalse(self.flow.processing)
        self.assertEqual(self.shop.cart, {"P1": {"qty": 2}})

    async def test_returning_customer_has_no_discount(self):
        self.backend.routes[("GET", "/api/orders/my-orders")] = (200, [{"_id": "O0"}])
        await self.flow.load()
        self.assertFalse(self.flow.first_order)
        self.assertEqual(self.flow.totals().discount, 0.0)
