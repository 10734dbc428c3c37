"""Concrete persisted stores and their factories.

Each factory takes a storage port and the settings that hold the store's
debounce interval; the caller starts hydration with ``store.start()``.
"""

from chatsync.config import Settings, get_settings
from chatsync.storage.ports import BlobStorePort, ConversationStorePort, LlmRegistryPort
from chatsync.stores.base import PersistedStore, merge_defaults
from chatsync.stores.chats import CHATS_STORE_NAME, ChatStore, TokenEstimator
from chatsync.stores.llms import LLMS_STORE_NAME, LlmRegistryStore
from chatsync.stores.ui import UI_STORE_NAME, UiPreferencesStore
from chatsync.stores.ux_labs import UX_LABS_STORE_NAME, UxLabsStore


def create_ui_store(port: BlobStorePort, settings: Settings | None = None) -> UiPreferencesStore:
    settings = settings or get_settings()
    return UiPreferencesStore(port, debounce_ms=settings.store_debounce_ms)


def create_ux_labs_store(port: BlobStorePort, settings: Settings | None = None) -> UxLabsStore:
    settings = settings or get_settings()
    return UxLabsStore(port, debounce_ms=settings.store_debounce_ms)


def create_chat_store(
    port: ConversationStorePort,
    settings: Settings | None = None,
    estimate_tokens: TokenEstimator | None = None,
) -> ChatStore:
    settings = settings or get_settings()
    return ChatStore(port, debounce_ms=settings.chat_debounce_ms, estimate_tokens=estimate_tokens)


def create_llm_store(port: LlmRegistryPort, settings: Settings | None = None) -> LlmRegistryStore:
    settings = settings or get_settings()
    return LlmRegistryStore(port, debounce_ms=settings.llm_debounce_ms)


__all__ = [
    "PersistedStore",
    "merge_defaults",
    "ChatStore",
    "LlmRegistryStore",
    "UiPreferencesStore",
    "UxLabsStore",
    "CHATS_STORE_NAME",
    "LLMS_STORE_NAME",
    "UI_STORE_NAME",
    "UX_LABS_STORE_NAME",
    "create_chat_store",
    "create_llm_store",
    "create_ui_store",
    "create_ux_labs_store",
]
