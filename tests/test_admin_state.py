from support import FakeBackend, StorageTestCase

from api.models import Notification
from db import database as db_database
from state.admin import ADMIN_KEYS, AdminSession
from state.notifications import NotificationsState

ADMIN = {"_id": "A1", "name": "Root", "email": "root@shop.io", "role": "Owner"}


def note(nid, read=False):
    return {"_id": nid, "type": "order", "message": f"Order {nid}", "read": read}


class AdminSessionTestCase(StorageTestCase):
    def backend_client(self, routes=None):
        self.backend = FakeBackend(routes)
        client = self.backend.client()
        self.addAsyncCleanup(client.aclose)
        return client

    async def test_restore_requires_both_keys(self):
        client = self.backend_client()
        await self.storage.set_item("adminUser", ADMIN)
        session = await AdminSession.init(client, self.storage)
        self.assertFalse(session.is_authenticated)

        await self.storage.set_item("adminToken", "A")
        session = await AdminSession.init(client, self.storage)
        self.assertTrue(session.is_authenticated)
        self.assertEqual(session.profile.name, "Root")
        self.assertEqual(session.profile.role, "Owner")

    async def test_corrupt_admin_session_is_removed(self):
        client = self.backend_client()
        await self.storage.set_item("adminToken", "A")
        async with db_database.connect() as conn:
            await conn.execute("INSERT INTO kv (key, value) VALUES ('adminUser', '{oops');")
            await conn.commit()

        session = await AdminSession.init(client, self.storage)
        self.assertFalse(session.is_authenticated)
        for key in ADMIN_KEYS:
            self.assertIsNone(await self.storage.get_raw(key))

    async def test_authenticate_success_and_failure(self):
        client = self.backend_client(
            {("POST", "/api/admin/login"): (200, {"token": "A", "admin": ADMIN})}
        )
        session = await AdminSession.init(client, self.storage)
        result = await session.authenticate("root@shop.io", "pw")
        self.assertTrue(result.ok)
        self.assertEqual(await self.storage.get_item("adminToken"), "A")

        self.backend.routes[("POST", "/api/admin/login")] = (400, {"message": "Invalid credentials"})
        await session.logout()
        result = await session.authenticate("root@shop.io", "bad")
        self.assertFalse(result.ok)
        self.assertEqual(result.reason, "Invalid credentials")
        self.assertFalse(session.is_authenticated)

    async def test_401_ends_admin_session(self):
        client = self.backend_client({("PUT", "/api/admin/update"): (401, None)})
        await self.storage.set_many({"adminUser": ADMIN, "adminToken": "A"})
        session = await AdminSession.init(client, self.storage)

        result = await session.update_profile({"name": "New"})
        self.assertTrue(result.auth_expired)
        self.assertFalse(session.is_authenticated)
        for key in ADMIN_KEYS:
            self.assertIsNone(await self.storage.get_raw(key))

    async def test_update_profile_merges(self):
        client = self.backend_client(
            {("PUT", "/api/admin/update"): (200, {"admin": {**ADMIN, "name": "New"}})}
        )
        await self.storage.set_many({"adminUser": ADMIN, "adminToken": "A"})
        session = await AdminSession.init(client, self.storage)
        result = await session.update_profile({"name": "New"})
        self.assertTrue(result.ok)
        self.assertEqual(session.profile.name, "New")
        self.assertEqual((await self.storage.get_item("adminUser"))["name"], "New")


class NotificationsStateTestCase(StorageTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.backend = FakeBackend(
            {("GET", "/api/notifications"): (200, [note("N1"), note("N2", read=True)])}
        )
        client = self.backend.client()
        self.addAsyncCleanup(client.aclose)
        await self.storage.set_many({"adminUser": ADMIN, "adminToken": "A"})
        self.session = await AdminSession.init(client, self.storage)
        self.state = NotificationsState(self.session)
        await self.state.fetch()

    async def test_fetch_uses_admin_token(self):
        self.assertEqual(
            self.backend.requests[0].headers["Authorization"], "Bearer A"
        )
        self.assertEqual([n.id for n in self.state.notifications], ["N1", "N2"])
        self.assertEqual(self.state.unread_count, 1)

    async def test_push_prepends_and_mark_all_read(self):
        await self.state.push(Notification.from_json(note("N0")))
        self.assertEqual(self.state.notifications[0].id, "N0")
        self.assertEqual(self.state.unread_count, 2)

        self.state.mark_all_read()
        self.assertEqual(self.state.unread_count, 0)

    async def test_delete_is_confirmed_only(self):
        self.backend.routes[("DELETE", "/api/notifications/N1")] = (500, {"message": "nope"})
        result = await self.state.delete_one("N1")
        self.assertFalse(result.ok)
        self.assertEqual(len(self.state.notifications), 2)

        self.backend.routes[("DELETE", "/api/notifications/N1")] = (200, {"message": "ok"})
        result = await self.state.delete_one("N1")
        self.assertTrue(result.ok)
        self.assertEqual([n.id for n in self.state.notifications], ["N2"])

    async def test_delete_all(self):
        self.backend.routes[("DELETE", "/api/notifications")] = (500, None)
        await self.state.delete_all()
        self.assertEqual(len(self.state.notifications), 2)

        self.backend.routes[("DELETE", "/api/notifications")] = (200, None)
        result = await self.state.delete_all()
        self.assertTrue(result.ok)
        self.assertEqual(self.state.notifications, [])
