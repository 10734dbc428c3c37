"""State backends: how a persisted store reads and writes its state.

A backend adapts one storage port to the middleware's view of a store:
a state dict plus the schema version it was written at. Conversations
and the LLM registry are stored without a version and are read back as
the current version.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from chatsync.logging import get_logger
from chatsync.schemas.llms import LlmRegistry
from chatsync.storage.ports import BlobStorePort, ConversationStorePort, LlmRegistryPort

logger = get_logger(__name__)

State = dict[str, Any]


@dataclass
class Snapshot:
    """Persisted state; version None means unversioned (treat as current)."""

    state: State
    version: int | None = None


class StateBackend(ABC):
    @abstractmethod
    async def load(self, name: str) -> Snapshot | None:
        """Return the persisted state, or None when nothing is stored."""
        ...

    @abstractmethod
    async def save(self, name: str, state: State, version: int) -> None:
        ...

    @abstractmethod
    async def clear(self, name: str, state: State) -> None:
        """Delete everything persisted for the store."""
        ...


class BlobStateBackend(StateBackend):
    """Whole state stored as one named blob, with its version."""

    def __init__(self, port: BlobStorePort):
        self._port = port

    async def load(self, name: str) -> Snapshot | None:
        blob = await self._port.get(name)
        if blob is None or not isinstance(blob.value, dict):
            return None
        return Snapshot(state=blob.value, version=blob.version)

    async def save(self, name: str, state: State, version: int) -> None:
        await self._port.put(name, state, version)

    async def clear(self, name: str, state: State) -> None:
        await self._port.delete(name)


class ConversationStateBackend(StateBackend):
    """State {"conversations": [...]} stored one aggregate at a time.

    Saving writes every conversation in the state and deletes the ones
    that were persisted before but are no longer in the state.
    """

    def __init__(self, port: ConversationStorePort):
        self._port = port
        self._persisted_ids: set[str] = set()

    async def load(self, name: str) -> Snapshot | None:
        conversations = await self._port.load_all()
        self._persisted_ids = {c.id for c in conversations}
        if not conversations:
            return None
        return Snapshot(state={"conversations": conversations})

    async def save(self, name: str, state: State, version: int) -> None:
        conversations = state.get("conversations") or []
        for conversation in conversations:
            await self._port.save(conversation)

        current_ids = {c.id for c in conversations}
        for conversation_id in self._persisted_ids - current_ids:
            await self._port.delete(conversation_id)
        self._persisted_ids = current_ids

        logger.debug("conversations_flushed", store=name, count=len(conversations))

    async def clear(self, name: str, state: State) -> None:
        for conversation in state.get("conversations") or []:
            await self._port.delete(conversation.id)
            self._persisted_ids.discard(conversation.id)


class LlmRegistryStateBackend(StateBackend):
    """State shaped like LlmRegistry, replaced as a whole on every save."""

    def __init__(self, port: LlmRegistryPort):
        self._port = port

    async def load(self, name: str) -> Snapshot | None:
        registry = await self._port.load()
        if not (registry.sources or registry.llms or registry.model_assignments):
            return None
        return Snapshot(state=dict(registry))

    async def save(self, name: str, state: State, version: int) -> None:
        await self._port.replace(LlmRegistry.model_validate(state))

    async def clear(self, name: str, state: State) -> None:
        await self._port.clear()
