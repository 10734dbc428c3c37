"""Synchronous relational adapters, one per persistence domain.

Each adapter is constructed once with the session factory of its domain
and runs every operation in its own transaction.
"""

from chatsync.adapters.blobs import BlobStoreAdapter
from chatsync.adapters.conversations import ConversationAdapter
from chatsync.adapters.llms import LlmRegistryAdapter, RegistryItem, RegistryRemoval
from chatsync.adapters.metrics import MetricsAdapter
from chatsync.adapters.workspace import WorkspaceAdapter

__all__ = [
    "BlobStoreAdapter",
    "ConversationAdapter",
    "LlmRegistryAdapter",
    "MetricsAdapter",
    "RegistryItem",
    "RegistryRemoval",
    "WorkspaceAdapter",
]
