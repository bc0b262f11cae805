import json
import os
import sys
import tempfile
import unittest
from typing import Any, Callable, Dict, List, Tuple, Union

import httpx

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from api.client import ApiClient  # noqa: E402
from db import database as db_database  # noqa: E402
from db.storage import Storage  # noqa: E402

Reply = Union[Tuple[int, Any], Callable[[httpx.Request], Any]]


class FakeBackend:
    """
    Canned responses keyed by (method, path), recording every request.

    A reply is either (status, json_body) or a callable taking the request
    and returning an httpx.Response (sync or async). Unknown routes get 404.
    """

    def __init__(self, routes: Dict[Tuple[str, str], Reply] = None):
        self.routes: Dict[Tuple[str, str], Reply] = dict(routes or {})
        self.requests: List[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.routes.get((request.method, request.url.path))
        if reply is None:
            return httpx.Response(404, json={"message": "No such route"})
        if callable(reply):
            response = reply(request)
            if hasattr(response, "__await__"):
                response = await response
            return response
        status, body = reply
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [
            r for r in self.requests if r.method == method and r.url.path == path
        ]

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content)

    def client(self) -> ApiClient:
        return ApiClient("http://shop.test", timeout=5, transport=httpx.MockTransport(self))


class StorageTestCase(unittest.IsolatedAsyncioTestCase):
    """Points the local store at a temporary file and forces re-initialization."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "test.sqlite")
        db_database.DB_PATH = self.db_path
        db_database._initialized = False
        self.storage = Storage()

    async def asyncSetUp(self):
        # Touch initialization by opening a connection
        async with db_database.connect() as conn:
            cur = await conn.execute("SELECT name FROM sqlite_master WHERE type='table';")
            await cur.fetchall()
            await cur.close()

    def tearDown(self):
        self.temp_dir.cleanup()
