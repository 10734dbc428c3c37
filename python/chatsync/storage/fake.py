"""In-memory storage ports for tests.

Values are deep-copied on the way in and out so callers never share
mutable state with the fake.
"""

import copy
from datetime import datetime, timezone
from typing import Any

from chatsync.errors import StorageError
from chatsync.schemas.blobs import BlobValue, StoreEntry
from chatsync.schemas.conversation import Conversation
from chatsync.schemas.llms import LlmRegistry
from chatsync.storage.ports import BlobStorePort, ConversationStorePort, LlmRegistryPort


class FakeBlobStore(BlobStorePort):
    """Blob store kept in a dict.

    Set fail_reads / fail_writes to simulate backing-store failures.
    """

    def __init__(self, initial: dict[str, BlobValue] | None = None):
        self.blobs: dict[str, BlobValue] = dict(initial or {})
        self.writes: list[tuple[str, Any, int]] = []
        self.fail_reads = False
        self.fail_writes = False

    async def get(self, name: str) -> BlobValue | None:
        if self.fail_reads:
            raise StorageError(f"Failed to read store {name}")
        blob = self.blobs.get(name)
        return blob.model_copy(deep=True) if blob is not None else None

    async def put(self, name: str, value: Any, version: int = 1) -> None:
        if self.fail_writes:
            raise StorageError(f"Failed to write store {name}")
        value = copy.deepcopy(value)
        self.blobs[name] = BlobValue(value=value, version=version)
        self.writes.append((name, value, version))

    async def delete(self, name: str) -> bool:
        return self.blobs.pop(name, None) is not None

    async def list_all(self) -> list[StoreEntry]:
        now = datetime.now(timezone.utc)
        return [
            StoreEntry(
                name=name,
                data=blob.value,
                version=blob.version,
                created_at=now,
                updated_at=now,
            )
            for name, blob in self.blobs.items()
        ]


class FakeConversationStore(ConversationStorePort):
    def __init__(self, conversations: list[Conversation] | None = None):
        self.conversations: dict[str, Conversation] = {c.id: c for c in conversations or []}
        self.saves: list[Conversation] = []
        self.fail_reads = False
        self.fail_writes = False

    async def load_all(self) -> list[Conversation]:
        if self.fail_reads:
            raise StorageError("Failed to load conversations")
        return [c.model_copy(deep=True) for c in self.conversations.values()]

    async def load(self, conversation_id: str) -> Conversation | None:
        conversation = self.conversations.get(conversation_id)
        return conversation.model_copy(deep=True) if conversation is not None else None

    async def save(self, conversation: Conversation) -> None:
        if self.fail_writes:
            raise StorageError("Failed to save conversation")
        stored = conversation.model_copy(deep=True)
        stored.abort_handle = None
        self.conversations[conversation.id] = stored
        self.saves.append(stored)

    async def delete(self, conversation_id: str) -> bool:
        return self.conversations.pop(conversation_id, None) is not None


class FakeLlmRegistry(LlmRegistryPort):
    def __init__(self, registry: LlmRegistry | None = None):
        self.registry = registry or LlmRegistry()
        self.replacements: list[LlmRegistry] = []

    async def load(self) -> LlmRegistry:
        return self.registry.model_copy(deep=True)

    async def replace(self, registry: LlmRegistry) -> None:
        self.registry = registry.model_copy(deep=True)
        self.replacements.append(self.registry)

    async def clear(self) -> None:
        self.registry = LlmRegistry()
