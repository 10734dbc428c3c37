"""Async storage ports.

Provides:
- Port interfaces consumed by the persistence middleware
- Local ports backed by the relational adapters (server process)
- HTTP ports speaking the REST contract (client processes)
- In-memory fakes for tests
"""

from chatsync.storage.fake import FakeBlobStore, FakeConversationStore, FakeLlmRegistry
from chatsync.storage.http import (
    HttpBlobStore,
    HttpConversationStore,
    HttpLlmRegistry,
    create_http_client,
)
from chatsync.storage.local import LocalBlobStore, LocalConversationStore, LocalLlmRegistry
from chatsync.storage.ports import BlobStorePort, ConversationStorePort, LlmRegistryPort

__all__ = [
    "BlobStorePort",
    "ConversationStorePort",
    "LlmRegistryPort",
    "LocalBlobStore",
    "LocalConversationStore",
    "LocalLlmRegistry",
    "HttpBlobStore",
    "HttpConversationStore",
    "HttpLlmRegistry",
    "create_http_client",
    "FakeBlobStore",
    "FakeConversationStore",
    "FakeLlmRegistry",
]
