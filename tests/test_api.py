import unittest

import httpx
from support import FakeBackend

from api import resources
from api.errors import ApiError, AuthError, NotFoundError


class ApiClientTestCase(unittest.IsolatedAsyncioTestCase):
    def use(self, routes):
        self.backend = FakeBackend(routes)
        client = self.backend.client()
        self.addAsyncCleanup(client.aclose)
        return client

    # ---------- Error mapping ----------

    async def test_401_maps_to_auth_error(self):
        client = self.use(
            {
                ("GET", "/api/cart"): (401, {"message": "jwt expired"}),
                ("GET", "/api/wishlist"): (401, None),
            }
        )
        with self.assertRaises(AuthError) as ctx:
            await client.get("/api/cart", token="T")
        self.assertEqual(ctx.exception.message, "jwt expired")
        self.assertEqual(ctx.exception.status, 401)

        with self.assertRaises(AuthError) as ctx:
            await client.get("/api/wishlist", token="T")
        self.assertEqual(ctx.exception.message, AuthError.DEFAULT_MESSAGE)

    async def test_404_and_other_errors(self):
        client = self.use({("POST", "/api/orders"): (500, {"message": "boom"})})
        with self.assertRaises(NotFoundError):
            await client.get("/api/products/missing")

        with self.assertRaises(ApiError) as ctx:
            await client.post("/api/orders", json={})
        self.assertNotIsInstance(ctx.exception, AuthError)
        self.assertEqual(ctx.exception.status, 500)
        self.assertEqual(str(ctx.exception), "HTTP 500: boom")

    async def test_transport_failure(self):
        def fail(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = self.use({("GET", "/api/products"): fail})
        with self.assertRaises(ApiError) as ctx:
            await client.get("/api/products")
        self.assertIsNone(ctx.exception.status)
        self.assertIn("Could not reach server", ctx.exception.message)

    async def test_bearer_header_and_empty_body(self):
        client = self.use(
            {
                ("POST", "/api/cart/reset"): (200, None),
                ("GET", "/api/products"): (200, []),
            }
        )
        self.assertIsNone(await client.post("/api/cart/reset", token="T"))
        self.assertEqual(self.backend.requests[0].headers["Authorization"], "Bearer T")

        await client.get("/api/products")
        self.assertNotIn("Authorization", self.backend.requests[1].headers)

    # ---------- Resource functions ----------

    async def test_list_products_accepts_bare_and_wrapped_lists(self):
        client = self.use(
            {
                ("GET", "/api/products"): (
                    200,
                    [{"_id": "P1", "name": "Tee", "new_price": "12.5", "stockQuantity": 3}],
                ),
                ("GET", "/api/products/related/P1"): (
                    200,
                    {"products": [{"id": "P2", "name": "Cap"}]},
                ),
            }
        )
        products = await resources.list_products(client)
        self.assertEqual(len(products), 1)
        self.assertEqual(products[0].id, "P1")
        self.assertEqual(products[0].new_price, 12.5)
        self.assertTrue(products[0].inStock)

        related = await resources.get_related_products(client, "P1")
        self.assertEqual([p.id for p in related], ["P2"])

    async def test_add_cart_item_body(self):
        client = self.use(
            {("POST", "/api/cart"): (200, {"cart": {"P1": {"qty": 2, "size": "M"}}})}
        )
        cart = await resources.add_cart_item(client, "T", "P1", 2, "M")
        self.assertEqual(cart, {"P1": {"qty": 2, "size": "M"}})
        self.assertEqual(
            FakeBackend.body(self.backend.requests[0]),
            {"productId": "P1", "qty": 2, "size": "M"},
        )

    async def test_admin_login_returns_token_and_admin(self):
        client = self.use(
            {
                ("POST", "/api/admin/login"): (
                    200,
                    {"token": "A", "admin": {"_id": "a1", "name": "Root", "email": "r@x.io"}},
                )
            }
        )
        token, admin = await resources.admin_login(client, " r@x.io ", "pw")
        self.assertEqual(token, "A")
        self.assertEqual(admin["name"], "Root")
        self.assertEqual(FakeBackend.body(self.backend.requests[0])["email"], "r@x.io")

    async def test_create_return_requires_reason(self):
        client = self.use({})
        with self.assertRaises(ValueError):
            await resources.create_return(client, "T", "O1", "")
        self.assertEqual(self.backend.requests, [])

    async def test_bulk_delete_and_popular(self):
        client = self.use(
            {
                ("POST", "/api/products/bulk-delete"): (200, {"message": "ok"}),
                ("PUT", "/api/products/P1/popular"): (
                    200,
                    {"_id": "P1", "name": "Tee", "isPopular": True},
                ),
            }
        )
        await resources.bulk_delete_products(client, "A", ["P1", "P2"])
        self.assertEqual(FakeBackend.body(self.backend.requests[0]), {"ids": ["P1", "P2"]})

        product = await resources.set_product_popular(client, "A", "P1", True)
        self.assertTrue(product.isPopular)

    async def test_count_new_customers(self):
        client = self.use({("GET", "/api/user/new-customers"): (200, {"newCustomers": 4})})
        self.assertEqual(await resources.count_new_customers(client, "A"), 4)
