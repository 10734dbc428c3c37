"""Storage port interfaces.

The persistence middleware and client code depend only on these async
interfaces. The server process wires Local* implementations backed by
the relational adapters; other processes wire Http* implementations that
speak the REST contract; tests wire Fake* implementations.

All implementations raise the same error types (NotFoundError,
InvalidRequestError, StorageError) from chatsync.errors.
"""

from abc import ABC, abstractmethod
from typing import Any

from chatsync.schemas.blobs import BlobValue, StoreEntry
from chatsync.schemas.conversation import Conversation
from chatsync.schemas.llms import LlmRegistry


class BlobStorePort(ABC):
    """Named JSON blobs with a schema version."""

    @abstractmethod
    async def get(self, name: str) -> BlobValue | None:
        """Return the value and version under name, or None when absent."""
        ...

    @abstractmethod
    async def put(self, name: str, value: Any, version: int = 1) -> None:
        """Replace the whole blob stored under name."""
        ...

    @abstractmethod
    async def delete(self, name: str) -> bool:
        """Delete the blob. Returns False when nothing was stored."""
        ...

    @abstractmethod
    async def list_all(self) -> list[StoreEntry]:
        ...


class ConversationStorePort(ABC):
    """Conversation aggregates, persisted by whole-aggregate replace."""

    @abstractmethod
    async def load_all(self) -> list[Conversation]:
        ...

    @abstractmethod
    async def load(self, conversation_id: str) -> Conversation | None:
        ...

    @abstractmethod
    async def save(self, conversation: Conversation) -> None:
        ...

    @abstractmethod
    async def delete(self, conversation_id: str) -> bool:
        ...


class LlmRegistryPort(ABC):
    """The LLM registry, persisted as a whole."""

    @abstractmethod
    async def load(self) -> LlmRegistry:
        ...

    @abstractmethod
    async def replace(self, registry: LlmRegistry) -> None:
        ...

    @abstractmethod
    async def clear(self) -> None:
        ...
