"""Storage ports that speak the REST contract over HTTP.

Used by processes that do not own the databases. All ports share one
httpx.AsyncClient (connection pooling, configured timeout) created and
closed by the caller.

Error mapping:
- 404 -> absent value, or NotFoundError where absence is not a value
- 400 -> InvalidRequestError
- any other non-2xx -> StorageError (status and body in details)
- transport failures (httpx.HTTPError) -> StorageError
"""

from typing import Any
from urllib.parse import quote

import httpx

from chatsync.errors import ApiErrorCode, InvalidRequestError, NotFoundError, StorageError
from chatsync.logging import get_logger
from chatsync.schemas.base import to_wire
from chatsync.schemas.blobs import BlobValue, StoreEntry
from chatsync.schemas.conversation import Conversation
from chatsync.schemas.llms import LlmRegistry
from chatsync.storage.ports import BlobStorePort, ConversationStorePort, LlmRegistryPort

logger = get_logger(__name__)


def create_http_client(base_url: str, timeout_s: float = 30.0) -> httpx.AsyncClient:
    """Create the shared client used by the HTTP storage ports."""
    return httpx.AsyncClient(
        base_url=base_url.rstrip("/"),
        timeout=httpx.Timeout(timeout_s, connect=10.0),
        limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
    )


def _error_message(response: httpx.Response) -> str:
    """Extract the error message from an error envelope, if any."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("message") or f"HTTP {response.status_code}"
    if isinstance(error, str):
        return error
    return f"HTTP {response.status_code}"


class _HttpPort:
    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("storage_http_failed", method=method, path=path, error=str(exc))
            raise StorageError(f"{method} {path} failed", details=str(exc)) from exc

        if response.status_code == 404:
            raise NotFoundError(ApiErrorCode.E_NOT_FOUND, _error_message(response))
        if response.status_code == 400:
            raise InvalidRequestError(ApiErrorCode.E_INVALID_REQUEST, _error_message(response))
        if response.is_error:
            raise StorageError(
                f"{method} {path} returned {response.status_code}",
                details=_error_message(response),
            )
        return response

    async def _data(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._request(method, path, **kwargs)
        return response.json().get("data")


class HttpBlobStore(_HttpPort, BlobStorePort):
    @staticmethod
    def _path(name: str) -> str:
        return f"/stores/{quote(name, safe='')}"

    async def get(self, name: str) -> BlobValue | None:
        try:
            response = await self._request("GET", self._path(name))
        except NotFoundError:
            return None
        body = response.json()
        return BlobValue(value=body.get("data"), version=body.get("version", 1))

    async def put(self, name: str, value: Any, version: int = 1) -> None:
        await self._request("PUT", self._path(name), json={"data": value, "version": version})

    async def delete(self, name: str) -> bool:
        try:
            await self._request("DELETE", self._path(name))
        except NotFoundError:
            return False
        return True

    async def list_all(self) -> list[StoreEntry]:
        data = await self._data("GET", "/stores")
        return [StoreEntry.model_validate(entry) for entry in data or []]


class HttpConversationStore(_HttpPort, ConversationStorePort):
    @staticmethod
    def _path(conversation_id: str) -> str:
        return f"/chats/{quote(conversation_id, safe='')}"

    async def load_all(self) -> list[Conversation]:
        data = await self._data("GET", "/chats")
        return [Conversation.model_validate(c) for c in data["conversations"]]

    async def load(self, conversation_id: str) -> Conversation | None:
        try:
            data = await self._data("GET", self._path(conversation_id))
        except NotFoundError:
            return None
        return Conversation.model_validate(data["conversation"])

    async def save(self, conversation: Conversation) -> None:
        await self._request(
            "PUT",
            self._path(conversation.id),
            json={"conversation": to_wire(conversation)},
        )

    async def delete(self, conversation_id: str) -> bool:
        try:
            await self._request("DELETE", self._path(conversation_id))
        except NotFoundError:
            return False
        return True


class HttpLlmRegistry(_HttpPort, LlmRegistryPort):
    async def load(self) -> LlmRegistry:
        data = await self._data("GET", "/llms")
        return LlmRegistry.model_validate(
            {
                "llms": data["models"],
                "sources": data["services"],
                "confServiceId": data.get("confServiceId"),
                "modelAssignments": data["assignments"],
            }
        )

    async def replace(self, registry: LlmRegistry) -> None:
        await self._request("POST", "/llms", json=to_wire(registry))

    async def clear(self) -> None:
        await self._request("DELETE", "/llms")
