import asyncio

import httpx
from support import FakeBackend, StorageTestCase

from db import database as db_database
from state.shop import SESSION_KEYS, ShopState

USER = {"_id": "U1", "email": "ann@example.com", "firstName": "Ann", "lastName": "Lee"}


def product(pid, price=10.0, sizes=None):
    return {"_id": pid, "name": f"Product {pid}", "new_price": price, "sizes": sizes or []}


class ShopStateTestCase(StorageTestCase):
    async def make_state(self, routes=None, token="T") -> ShopState:
        self.backend = FakeBackend(routes)
        client = self.backend.client()
        self.addAsyncCleanup(client.aclose)
        if token:
            await self.storage.set_many({"token": token, "user": USER})
        state = await ShopState.init(client, self.storage, sync=False)
        self.addAsyncCleanup(state.teardown)
        return state

    # ---------- Session ----------

    async def test_init_restores_and_syncs(self):
        self.backend = FakeBackend(
            {
                ("GET", "/api/cart"): (200, {"cart": {"P1": {"qty": 1}}}),
                ("GET", "/api/wishlist"): (200, {"wishlist": {"P2": {"size": "L"}}}),
            }
        )
        client = self.backend.client()
        self.addAsyncCleanup(client.aclose)
        await self.storage.set_many({"token": "T", "user": USER})

        state = await ShopState.init(client, self.storage)
        self.assertTrue(state.has_token)
        self.assertEqual(state.user_id, "U1")
        self.assertEqual(state.cart, {"P1": {"qty": 1}})
        self.assertEqual(state.wishlist, {"P2": {"size": "L"}})
        self.assertEqual(await self.storage.get_item("cart"), {"P1": {"qty": 1}})

    async def test_corrupt_storage_is_reset(self):
        async with db_database.connect() as conn:
            await conn.execute("INSERT INTO kv (key, value) VALUES ('cart', '{oops');")
            await conn.commit()
        state = await self.make_state(token=None)
        self.assertEqual(state.cart, {})
        self.assertIsNone(await self.storage.get_raw("cart"))

    async def test_login_stores_session_and_fetches(self):
        state = await self.make_state(
            {
                ("GET", "/api/cart"): (200, {"cart": {}}),
                ("GET", "/api/wishlist"): (200, {"wishlist": {}}),
            },
            token=None,
        )
        self.assertFalse(state.has_token)
        await state.login("T", USER)
        self.assertEqual(await self.storage.get_item("token"), "T")
        self.assertEqual(len(self.backend.calls("GET", "/api/cart")), 1)
        self.assertEqual(len(self.backend.calls("GET", "/api/wishlist")), 1)

    # ---------- Cart ----------

    async def test_add_to_cart_replaces_with_server_snapshot(self):
        state = await self.make_state(
            {("POST", "/api/cart"): (200, {"cart": {"P1": {"qty": 2, "size": "M"}}})}
        )
        result = await state.add_to_cart("P1", 2, "M")

        self.assertTrue(result.ok)
        calls = self.backend.calls("POST", "/api/cart")
        self.assertEqual(len(calls), 1)
        self.assertEqual(calls[0].headers["Authorization"], "Bearer T")
        self.assertEqual(
            FakeBackend.body(calls[0]), {"productId": "P1", "qty": 2, "size": "M"}
        )
        self.assertEqual(state.cart, {"P1": {"qty": 2, "size": "M"}})
        self.assertEqual(await self.storage.get_item("cart"), state.cart)

    async def test_cart_qty_comes_from_server_not_local_math(self):
        state = await self.make_state(
            {("POST", "/api/cart"): (200, {"cart": {"P1": {"qty": 5, "size": "M"}}})}
        )
        state.cart = {"P1": {"qty": 1, "size": "M"}}
        await state.add_to_cart("P1", 1, "M")
        self.assertEqual(state.cart["P1"]["qty"], 5)

    async def test_add_to_cart_without_token_sends_nothing(self):
        state = await self.make_state(token=None)
        result = await state.add_to_cart("P1")
        self.assertFalse(result.ok)
        self.assertTrue(result.login_required)
        self.assertEqual(self.backend.requests, [])

    async def test_failed_add_keeps_local_cart(self):
        state = await self.make_state({("POST", "/api/cart"): (500, {"message": "Out of stock"})})
        state.cart = {"P9": {"qty": 1}}
        result = await state.add_to_cart("P1")
        self.assertFalse(result.ok)
        self.assertEqual(result.reason, "Out of stock")
        self.assertEqual(state.cart, {"P9": {"qty": 1}})

    async def test_decrease_qty_at_one_is_noop(self):
        state = await self.make_state()
        state.cart = {"P1": {"qty": 1}}
        result = await state.decrease_qty("P1")
        self.assertTrue(result.ok)
        self.assertFalse(result.changed)
        self.assertEqual(state.cart, {"P1": {"qty": 1}})

        result = await state.increase_qty("missing")
        self.assertFalse(result.changed)
        self.assertEqual(self.backend.requests, [])

    async def test_increase_and_decrease_send_new_qty(self):
        state = await self.make_state(
            {("PUT", "/api/cart/P1"): (200, {"cart": {"P1": {"qty": 3}}})}
        )
        state.cart = {"P1": {"qty": 2}}
        await state.increase_qty("P1")
        self.assertEqual(FakeBackend.body(self.backend.requests[-1]), {"qty": 3})
        self.assertEqual(state.cart, {"P1": {"qty": 3}})

        await state.decrease_qty("P1")
        self.assertEqual(FakeBackend.body(self.backend.requests[-1]), {"qty": 2})

    async def test_reset_cart_always_empties_local_cart(self):
        for status in (200, 500):
            with self.subTest(status=status):
                state = await self.make_state({("POST", "/api/cart/reset"): (status, None)})
                state.cart = {"P1": {"qty": 1}}
                result = await state.reset_cart()
                self.assertEqual(result.ok, status == 200)
                self.assertEqual(state.cart, {})
                self.assertEqual(await self.storage.get_item("cart"), {})

    async def test_reset_cart_without_token(self):
        state = await self.make_state(token=None)
        state.cart = {"P1": {"qty": 1}}
        await state.reset_cart()
        self.assertEqual(state.cart, {})

    async def test_fetch_failure_resets_to_empty(self):
        state = await self.make_state({("GET", "/api/cart"): (500, {"message": "db down"})})
        state.cart = {"P1": {"qty": 1}}
        result = await state.fetch_cart()
        self.assertFalse(result.ok)
        self.assertEqual(state.cart, {})

    async def test_superseded_fetch_does_not_overwrite(self):
        gate = asyncio.Event()
        replies = iter([{"cart": {"OLD": {"qty": 1}}}, {"cart": {"NEW": {"qty": 1}}}])

        async def cart(request):
            body = next(replies)
            if "OLD" in body["cart"]:
                await gate.wait()
            return httpx.Response(200, json=body)

        state = await self.make_state({("GET", "/api/cart"): cart})
        first = asyncio.ensure_future(state.fetch_cart())
        while not self.backend.requests:
            await asyncio.sleep(0.01)

        second = await state.fetch_cart()
        stale = await first

        self.assertTrue(second.ok)
        self.assertTrue(stale.superseded)
        self.assertEqual(state.cart, {"NEW": {"qty": 1}})

    # ---------- Wishlist ----------

    async def test_toggle_wishlist_posts_then_deletes(self):
        state = await self.make_state(
            {
                ("POST", "/api/wishlist"): (200, {"wishlist": {"P1": {"size": "S"}}}),
                ("DELETE", "/api/wishlist/P1"): (200, {"wishlist": {}}),
            }
        )
        await state.toggle_wishlist("P1", "S")
        self.assertTrue(state.in_wishlist("P1"))
        self.assertEqual(
            FakeBackend.body(self.backend.requests[0]), {"productId": "P1", "size": "S"}
        )

        await state.toggle_wishlist("P1")
        self.assertFalse(state.in_wishlist("P1"))
        self.assertEqual([r.method for r in self.backend.requests], ["POST", "DELETE"])

    async def test_rapid_toggles_last_response_wins(self):
        gates = [asyncio.Event(), asyncio.Event()]
        bodies = [{"wishlist": {"P1": {"size": "first"}}}, {"wishlist": {"P1": {"size": "second"}}}]
        seen = []

        async def wishlist(request):
            idx = len(seen)
            seen.append(idx)
            await gates[idx].wait()
            return httpx.Response(200, json=bodies[idx])

        state = await self.make_state({("POST", "/api/wishlist"): wishlist})
        first = asyncio.ensure_future(state.toggle_wishlist("P1"))
        second = asyncio.ensure_future(state.toggle_wishlist("P1"))
        while len(seen) < 2:
            await asyncio.sleep(0.01)

        # both picked POST from the same local state
        self.assertEqual([r.method for r in self.backend.requests], ["POST", "POST"])

        gates[1].set()
        await second
        gates[0].set()
        await first
        self.assertEqual(state.wishlist, {"P1": {"size": "first"}})

    async def test_expired_token_logs_out(self):
        state = await self.make_state(
            {("GET", "/api/wishlist"): (401, {"message": "jwt expired", "wishlist": {"X": {}}})}
        )
        await self.storage.set_many({"cart": {"P1": {"qty": 1}}, "wishlist": {"P2": {}}})

        result = await state.fetch_wishlist()

        self.assertFalse(result.ok)
        self.assertTrue(result.auth_expired)
        self.assertIsNone(state.token)
        self.assertIsNone(state.user)
        self.assertEqual(state.wishlist, {})
        for key in SESSION_KEYS:
            self.assertIsNone(await self.storage.get_raw(key), key)

    async def test_clear_wishlist(self):
        state = await self.make_state({("POST", "/api/wishlist/reset"): (200, None)})
        state.wishlist = {"P1": {}}
        result = await state.clear_wishlist()
        self.assertTrue(result.ok)
        self.assertEqual(state.wishlist, {})

    # ---------- Hydration ----------

    async def test_hydrate_cart_drops_missing_products(self):
        state = await self.make_state(
            {
                ("GET", "/api/products/P1"): (200, {"product": product("P1", 10.0, ["S", "M"])}),
                ("GET", "/api/products/P3"): (200, product("P3", 2.5)),
            }
        )
        state.cart = {"P1": {"qty": 2}, "P2": {"qty": 1}, "P3": {"qty": 4, "size": "L"}}

        items = await state.hydrate_cart()

        self.assertEqual([i.product.id for i in items], ["P1", "P3"])
        # no size stored falls back to the product's first size
        self.assertEqual(items[0].size, "S")
        self.assertEqual(items[1].size, "L")
        self.assertEqual(state.total_amount(), 30.0)
        self.assertEqual(state.cart_count(), 7)

    async def test_hydrate_wishlist(self):
        state = await self.make_state(
            {("GET", "/api/products/P1"): (200, product("P1"))}
        )
        state.wishlist = {"P1": {"size": "M", "dateAdded": "2024-05-01T10:00:00Z"}, "P2": {}}
        items = await state.hydrate_wishlist()
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0].size, "M")
        self.assertEqual(items[0].dateAdded, "2024-05-01T10:00:00Z")
