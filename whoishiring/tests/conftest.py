"""Shared fixtures for the whoishiring test-suite."""

import asyncio

import pytest
import pytest_asyncio
from aiohttp import test_utils, web

from whoishiring.config import DatabaseConfig
from whoishiring.storage.database import create_session_factory, init_db
from whoishiring.storage.repository import SQLAlchemyRepository

# Items served by the local Hacker News API; the whoishiring user submitted [1, 5, 4]
HN_ITEMS = {
    1: {
        "by": "whoishiring",
        "id": 1,
        "kids": [2, 7],
        "time": 1790000000,
        "title": "Ask HN: Who is hiring? (October 2026)",
        "type": "story",
        "score": 420,
    },
    2: {"by": "acme", "id": 2, "parent": 1, "text": "Acme | Remote", "time": 1790000100, "type": "comment"},
    7: {"id": 7, "parent": 1, "deleted": True, "time": 1790000200, "type": "comment"},
}


async def handle_user(request: web.Request) -> web.Response:
    if request.match_info["name"] != "whoishiring":
        return web.Response(text="null", content_type="application/json")
    return web.json_response({"id": "whoishiring", "created": 1300000000, "submitted": [1, 5, 4]})


async def handle_item(request: web.Request) -> web.Response:
    item_id = int(request.match_info["item_id"])
    if item_id == 500:
        return web.Response(status=500, text="internal error")
    if item_id == 404:
        return web.Response(status=404, text="not found")
    if item_id == 8:
        return web.Response(text="<html>not json</html>", content_type="text/html")
    if item_id == 9:
        await asyncio.sleep(1)
    if item_id not in HN_ITEMS:
        return web.Response(text="null", content_type="application/json")
    return web.json_response(HN_ITEMS[item_id])


@pytest_asyncio.fixture
async def hn_server():
    """Local aiohttp server mimicking the Hacker News API under /v0."""
    app = web.Application()
    app.router.add_get("/v0/user/{name}.json", handle_user)
    app.router.add_get(r"/v0/item/{item_id:\d+}.json", handle_item)
    server = test_utils.TestServer(app)
    await server.start_server()
    yield server
    await server.close()


@pytest.fixture
def db_config(tmp_path):
    """DatabaseConfig pointing at a throwaway SQLite file."""
    return DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'whoishiring.db'}")


@pytest_asyncio.fixture
async def repository(db_config):
    """SQLAlchemyRepository on a freshly created schema."""
    engine, session_factory = create_session_factory(db_config)
    await init_db(engine)
    yield SQLAlchemyRepository(session_factory)
    await engine.dispose()
