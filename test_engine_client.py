"""Tests for the HTTP search engine client against a local aiohttp server."""

import asyncio
import json

import pytest
from aiohttp import test_utils, web

from kraicklist.indexer.config import EngineConfig
from kraicklist.indexer.engine_client import API_KEY_HEADER, SearchEngineClient
from kraicklist.indexer.exceptions import EngineException

API_KEY = "secret-key"


class RecordingEngine:
    """Minimal engine HTTP API that records what it receives."""

    def __init__(self):
        self.requests = []

    async def record(self, request: web.Request) -> str:
        body = await request.text()
        self.requests.append(
            {
                "method": request.method,
                "path": request.path,
                "query": dict(request.query),
                "api_key": request.headers.get(API_KEY_HEADER),
                "content_type": request.headers.get("Content-Type"),
                "body": body,
            }
        )
        return body

    async def health(self, request):
        await self.record(request)
        return web.json_response({"ok": True})

    async def import_documents(self, request):
        body = await self.record(request)
        results = [{"success": True} for line in body.splitlines() if line.strip()]
        results[-1] = {"success": False, "error": "A document with id 2 already exists."}
        return web.Response(text="\n".join(json.dumps(r) for r in results))

    async def multi_search(self, request):
        body = await self.record(request)
        searches = json.loads(body)["searches"]
        return web.json_response({"results": [{"found": 0, "hits": [], "request_params": searches[0]}]})

    async def upsert_synonym(self, request):
        body = await self.record(request)
        return web.json_response({"id": request.match_info["synonym_id"], **json.loads(body)})

    async def delete_collection(self, request):
        await self.record(request)
        return web.json_response({"message": "Not Found"}, status=404)

    async def retrieve_collection(self, request):
        await self.record(request)
        return web.Response(text="upstream unavailable", status=503)

    async def slow(self, request):
        await asyncio.sleep(0.5)
        return web.json_response({"ok": True})

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/health", self.health)
        app.router.add_post("/collections/ads/documents/import", self.import_documents)
        app.router.add_post("/multi_search", self.multi_search)
        app.router.add_put("/collections/ads/synonyms/{synonym_id}", self.upsert_synonym)
        app.router.add_delete("/collections/ads", self.delete_collection)
        app.router.add_get("/collections/ads", self.retrieve_collection)
        app.router.add_get("/collections/slow", self.slow)
        return app


def run_against_engine(engine, scenario, collection_name="ads", timeout=5.0):
    """Start the engine app, run ``scenario(client)`` and shut everything down."""

    async def main():
        server = test_utils.TestServer(engine.make_app())
        await server.start_server()
        config = EngineConfig(
            base_url=str(server.make_url("/")), api_key=API_KEY, collection_name=collection_name, timeout=timeout
        )
        try:
            async with SearchEngineClient(config) as client:
                return await scenario(client)
        finally:
            await server.close()

    return asyncio.run(main())


def test_requests_carry_api_key():
    engine = RecordingEngine()

    healthy = run_against_engine(engine, lambda client: client.health_check())

    assert healthy is True
    assert engine.requests[0]["api_key"] == API_KEY


def test_import_sends_jsonl_with_create_action():
    engine = RecordingEngine()
    documents = [{"id": "1", "title": "Toyota"}, {"id": "2", "title": "شقة"}]

    results = run_against_engine(engine, lambda client: client.import_documents(documents, batch_size=40))

    request = engine.requests[0]
    assert request["method"] == "POST"
    assert request["query"] == {"action": "create", "batch_size": "40"}
    assert request["content_type"].startswith("text/plain")
    assert [json.loads(line) for line in request["body"].splitlines()] == documents
    assert results == [{"success": True}, {"success": False, "error": "A document with id 2 already exists."}]


def test_multi_search_posts_searches():
    engine = RecordingEngine()
    payload = {"searches": [{"collection": "ads", "q": "car", "per_page": 9, "page": 1}]}

    response = run_against_engine(engine, lambda client: client.multi_search(payload))

    assert response["results"][0]["request_params"]["q"] == "car"
    assert engine.requests[0]["path"] == "/multi_search"
    assert engine.requests[0]["content_type"].startswith("application/json")


def test_upsert_synonym_puts_rule():
    engine = RecordingEngine()

    created = run_against_engine(engine, lambda client: client.upsert_synonym("cars", {"synonyms": ["car", "auto"]}))

    assert created == {"id": "cars", "synonyms": ["car", "auto"]}
    assert engine.requests[0]["method"] == "PUT"
    assert engine.requests[0]["path"] == "/collections/ads/synonyms/cars"


def test_delete_of_missing_collection_is_not_found():
    engine = RecordingEngine()

    with pytest.raises(EngineException) as exc_info:
        run_against_engine(engine, lambda client: client.delete_collection())

    assert exc_info.value.status_code == 404
    assert exc_info.value.is_not_found
    assert "Not Found" in str(exc_info.value)


def test_server_error_carries_status_and_body():
    engine = RecordingEngine()

    with pytest.raises(EngineException) as exc_info:
        run_against_engine(engine, lambda client: client.retrieve_collection())

    assert exc_info.value.status_code == 503
    assert exc_info.value.body == "upstream unavailable"
    assert not exc_info.value.is_client_error


def test_timeout_becomes_engine_exception():
    engine = RecordingEngine()

    with pytest.raises(EngineException) as exc_info:
        run_against_engine(engine, lambda client: client.retrieve_collection(), collection_name="slow", timeout=0.05)

    assert exc_info.value.status_code is None


def test_connection_failure_becomes_engine_exception():
    async def main():
        server = test_utils.TestServer(web.Application())
        await server.start_server()
        url = str(server.make_url("/"))
        await server.close()

        async with SearchEngineClient(EngineConfig(base_url=url, api_key=API_KEY)) as client:
            with pytest.raises(EngineException) as exc_info:
                await client.retrieve_collection()
            return exc_info.value, await client.health_check()

    error, healthy = asyncio.run(main())

    assert error.status_code is None
    assert healthy is False
