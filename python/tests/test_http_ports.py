"""Tests for the HTTP storage ports.

All HTTP calls are mocked with respx. Tests cover request shapes, envelope
parsing and the mapping of status codes and transport failures to
chatsync errors.
"""

import json

import httpx
import pytest
import respx

from chatsync.errors import InvalidRequestError, NotFoundError, StorageError
from chatsync.schemas import to_wire
from chatsync.storage.http import (
    HttpBlobStore,
    HttpConversationStore,
    HttpLlmRegistry,
    create_http_client,
)
from tests.factories import make_conversation, make_message, make_registry

BASE_URL = "http://chatsync.test"


def _error(code: str, message: str) -> dict:
    return {"success": False, "error": {"code": code, "message": message}}


@pytest.fixture
def http_client():
    """Create the shared AsyncClient pointed at the mocked API."""
    return create_http_client(BASE_URL + "/", timeout_s=5)


class TestHttpBlobStore:
    @pytest.mark.asyncio
    @respx.mock
    async def test_get_reads_value_and_version(self, http_client):
        respx.get(f"{BASE_URL}/stores/app-ui").respond(
            200, json={"success": True, "data": {"centerMode": "wide"}, "version": 3}
        )

        blob = await HttpBlobStore(http_client).get("app-ui")

        assert blob.value == {"centerMode": "wide"}
        assert blob.version == 3

    @pytest.mark.asyncio
    @respx.mock
    async def test_get_missing_returns_none(self, http_client):
        respx.get(f"{BASE_URL}/stores/app-ui").respond(
            404, json=_error("E_STORE_NOT_FOUND", "Store 'app-ui' not found")
        )

        assert await HttpBlobStore(http_client).get("app-ui") is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_put_sends_data_and_version(self, http_client):
        route = respx.put(f"{BASE_URL}/stores/app-ui").respond(200, json={"success": True})

        await HttpBlobStore(http_client).put("app-ui", {"a": 1}, version=2)

        assert route.called
        assert json.loads(route.calls.last.request.content) == {"data": {"a": 1}, "version": 2}

    @pytest.mark.asyncio
    @respx.mock
    async def test_name_is_path_quoted(self, http_client):
        route = respx.delete(url__startswith=f"{BASE_URL}/stores/").respond(
            200, json={"success": True}
        )

        assert await HttpBlobStore(http_client).delete("a/b") is True
        assert route.calls.last.request.url.raw_path == b"/stores/a%2Fb"

    @pytest.mark.asyncio
    @respx.mock
    async def test_delete_missing_returns_false(self, http_client):
        respx.delete(f"{BASE_URL}/stores/x").respond(404, json=_error("E_STORE_NOT_FOUND", "x"))

        assert await HttpBlobStore(http_client).delete("x") is False


class TestHttpConversationStore:
    @pytest.mark.asyncio
    @respx.mock
    async def test_load_all(self, http_client):
        conversation = make_conversation("c1", messages=[make_message("m1")])
        respx.get(f"{BASE_URL}/chats").respond(
            200,
            json={"success": True, "data": {"conversations": [to_wire(conversation)], "count": 1}},
        )

        loaded = await HttpConversationStore(http_client).load_all()

        assert loaded == [conversation]

    @pytest.mark.asyncio
    @respx.mock
    async def test_save_puts_wire_shape(self, http_client):
        conversation = make_conversation("c1", user_title="T")
        route = respx.put(f"{BASE_URL}/chats/c1").respond(200, json={"success": True})

        await HttpConversationStore(http_client).save(conversation)

        sent = json.loads(route.calls.last.request.content)
        assert sent == {"conversation": to_wire(conversation)}

    @pytest.mark.asyncio
    @respx.mock
    async def test_load_missing_returns_none(self, http_client):
        respx.get(f"{BASE_URL}/chats/nope").respond(
            404, json=_error("E_CONVERSATION_NOT_FOUND", "Conversation 'nope' not found")
        )

        assert await HttpConversationStore(http_client).load("nope") is None


class TestHttpLlmRegistry:
    @pytest.mark.asyncio
    @respx.mock
    async def test_load_maps_response_sections(self, http_client):
        registry = make_registry()
        wire = to_wire(registry)
        respx.get(f"{BASE_URL}/llms").respond(
            200,
            json={
                "success": True,
                "data": {
                    "services": wire["sources"],
                    "models": wire["llms"],
                    "confServiceId": wire["confServiceId"],
                    "assignments": wire["modelAssignments"],
                    "counts": registry.counts(),
                },
            },
        )

        assert await HttpLlmRegistry(http_client).load() == registry

    @pytest.mark.asyncio
    @respx.mock
    async def test_replace_posts_registry(self, http_client):
        route = respx.post(f"{BASE_URL}/llms").respond(200, json={"success": True})

        await HttpLlmRegistry(http_client).replace(make_registry())

        assert route.called


class TestErrorMapping:
    @pytest.mark.asyncio
    @respx.mock
    async def test_400_becomes_invalid_request(self, http_client):
        respx.post(f"{BASE_URL}/llms").respond(
            400, json=_error("E_INVALID_REQUEST", "llms: Field required")
        )

        with pytest.raises(InvalidRequestError) as exc_info:
            await HttpLlmRegistry(http_client).replace(make_registry())

        assert exc_info.value.message == "llms: Field required"

    @pytest.mark.asyncio
    @respx.mock
    async def test_500_becomes_storage_error(self, http_client):
        respx.put(f"{BASE_URL}/stores/x").respond(
            500, json=_error("E_STORAGE_ERROR", "Failed to write store x")
        )

        with pytest.raises(StorageError) as exc_info:
            await HttpBlobStore(http_client).put("x", {})

        assert exc_info.value.details == "Failed to write store x"

    @pytest.mark.asyncio
    @respx.mock
    async def test_non_json_error_body(self, http_client):
        respx.delete(f"{BASE_URL}/llms").respond(502, text="Bad Gateway")

        with pytest.raises(StorageError) as exc_info:
            await HttpLlmRegistry(http_client).clear()

        assert exc_info.value.details == "Bad Gateway"

    @pytest.mark.asyncio
    @respx.mock
    async def test_transport_failure_becomes_storage_error(self, http_client):
        respx.get(f"{BASE_URL}/chats").mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(StorageError) as exc_info:
            await HttpConversationStore(http_client).load_all()

        assert "refused" in exc_info.value.details

    @pytest.mark.asyncio
    @respx.mock
    async def test_404_where_absence_is_not_a_value(self, http_client):
        respx.get(f"{BASE_URL}/stores").respond(404, json=_error("E_NOT_FOUND", "Not found"))

        with pytest.raises(NotFoundError):
            await HttpBlobStore(http_client).list_all()
