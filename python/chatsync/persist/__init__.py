"""Store persistence: reactive store, flush scheduling, hydration and migrations."""

from chatsync.persist.backends import (
    BlobStateBackend,
    ConversationStateBackend,
    LlmRegistryStateBackend,
    Snapshot,
    StateBackend,
)
from chatsync.persist.middleware import HydrationStatus, PersistMiddleware, PersistOptions
from chatsync.persist.migrations import MigrationChain
from chatsync.persist.scheduler import FlushScheduler, FlushState
from chatsync.persist.store import State, Store

__all__ = [
    "Store",
    "State",
    "FlushScheduler",
    "FlushState",
    "MigrationChain",
    "PersistMiddleware",
    "PersistOptions",
    "HydrationStatus",
    "StateBackend",
    "Snapshot",
    "BlobStateBackend",
    "ConversationStateBackend",
    "LlmRegistryStateBackend",
]
