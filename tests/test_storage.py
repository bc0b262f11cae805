from support import StorageTestCase

from db import database as db_database
from db.storage import CorruptValueError


class KeyValueStorageTest(StorageTestCase):
    async def test_set_get_and_default(self):
        self.assertIsNone(await self.storage.get_item("token"))
        self.assertEqual(await self.storage.get_item("cart", {}), {})

        await self.storage.set_item("token", "T")
        await self.storage.set_item("cart", {"P1": {"qty": 2, "size": "M"}})
        self.assertEqual(await self.storage.get_item("token"), "T")
        self.assertEqual(
            await self.storage.get_item("cart"), {"P1": {"qty": 2, "size": "M"}}
        )

        # overwrite keeps a single row per key
        await self.storage.set_item("token", "T2")
        self.assertEqual(await self.storage.get_item("token"), "T2")
        self.assertEqual(await self.storage.keys(), ["cart", "token"])

    async def test_set_many_and_remove(self):
        await self.storage.set_many({"token": "T", "user": {"email": "a@b.c"}, "x": 1})
        await self.storage.remove_item("token", "user")
        self.assertEqual(await self.storage.keys(), ["x"])

        await self.storage.remove_items([])
        await self.storage.clear()
        self.assertEqual(await self.storage.keys(), [])

    async def test_corrupt_value_raises(self):
        async with db_database.connect() as conn:
            await conn.execute(
                "INSERT INTO kv (key, value) VALUES (?, ?);", ("cart", "{not json")
            )
            await conn.commit()

        self.assertEqual(await self.storage.get_raw("cart"), "{not json")
        with self.assertRaises(CorruptValueError) as ctx:
            await self.storage.get_item("cart")
        self.assertEqual(ctx.exception.key, "cart")
