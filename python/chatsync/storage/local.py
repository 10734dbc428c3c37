"""Storage ports backed by the in-process relational adapters.

Adapters are synchronous; calls are moved off the event loop with
asyncio.to_thread. No timeout or retry is applied: a stalled database
call stalls the caller.
"""

import asyncio
from typing import Any

from chatsync.adapters import BlobStoreAdapter, ConversationAdapter, LlmRegistryAdapter
from chatsync.schemas.blobs import BlobValue, StoreEntry
from chatsync.schemas.conversation import Conversation
from chatsync.schemas.llms import LlmRegistry
from chatsync.storage.ports import BlobStorePort, ConversationStorePort, LlmRegistryPort


class LocalBlobStore(BlobStorePort):
    def __init__(self, adapter: BlobStoreAdapter):
        self._adapter = adapter

    async def get(self, name: str) -> BlobValue | None:
        return await asyncio.to_thread(self._adapter.get, name)

    async def put(self, name: str, value: Any, version: int = 1) -> None:
        await asyncio.to_thread(self._adapter.put, name, value, version)

    async def delete(self, name: str) -> bool:
        return await asyncio.to_thread(self._adapter.delete, name)

    async def list_all(self) -> list[StoreEntry]:
        return await asyncio.to_thread(self._adapter.list_all)


class LocalConversationStore(ConversationStorePort):
    def __init__(self, adapter: ConversationAdapter):
        self._adapter = adapter

    async def load_all(self) -> list[Conversation]:
        return await asyncio.to_thread(self._adapter.load_all)

    async def load(self, conversation_id: str) -> Conversation | None:
        return await asyncio.to_thread(self._adapter.load, conversation_id)

    async def save(self, conversation: Conversation) -> None:
        await asyncio.to_thread(self._adapter.save, conversation)

    async def delete(self, conversation_id: str) -> bool:
        return await asyncio.to_thread(self._adapter.delete, conversation_id)


class LocalLlmRegistry(LlmRegistryPort):
    def __init__(self, adapter: LlmRegistryAdapter):
        self._adapter = adapter

    async def load(self) -> LlmRegistry:
        return await asyncio.to_thread(self._adapter.load)

    async def replace(self, registry: LlmRegistry) -> None:
        await asyncio.to_thread(self._adapter.save, registry)

    async def clear(self) -> None:
        await asyncio.to_thread(self._adapter.clear)
