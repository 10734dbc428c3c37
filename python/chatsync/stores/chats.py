"""Conversation store, persisted one conversation aggregate at a time.

State shape: {"conversations": [Conversation, ...]}, newest first.
Conversations are treated as immutable values: every action replaces the
touched conversation with an updated copy so listeners see a new state.
"""

import uuid
from collections.abc import Callable

from chatsync.errors import ApiErrorCode, NotFoundError
from chatsync.logging import get_logger
from chatsync.persist import ConversationStateBackend, MigrationChain, PersistOptions, State
from chatsync.schemas.base import now_ms
from chatsync.schemas.conversation import DEFAULT_SYSTEM_PURPOSE_ID, Conversation, Message
from chatsync.storage.ports import ConversationStorePort
from chatsync.stores.base import PersistedStore

logger = get_logger(__name__)

CHATS_STORE_NAME = "app-chats"
CHATS_STORE_VERSION = 4

TokenEstimator = Callable[[Message], int]

# Conversations carry no stored version; they always load as the current one.
chats_migrations = MigrationChain()


def _rehydrate_conversations(
    state: State, estimate_tokens: TokenEstimator | None
) -> State:
    """Reset in-memory handles and recompute token counts after a load."""
    conversations = []
    for conversation in state.get("conversations") or []:
        messages = []
        for message in conversation.messages:
            if estimate_tokens is not None and message.token_count == 0 and message.fragments:
                message = message.model_copy(update={"token_count": estimate_tokens(message)})
            messages.append(message)
        conversations.append(
            conversation.model_copy(
                update={
                    "abort_handle": None,
                    "messages": messages,
                    "token_count": sum(m.token_count for m in messages),
                }
            )
        )
    return {"conversations": conversations}


class ChatStore(PersistedStore):
    """Conversations and their message histories."""

    def __init__(
        self,
        port: ConversationStorePort,
        debounce_ms: int = 500,
        estimate_tokens: TokenEstimator | None = None,
    ):
        options = PersistOptions(
            name=CHATS_STORE_NAME,
            version=CHATS_STORE_VERSION,
            migrations=chats_migrations,
            on_rehydrate_storage=lambda state: _rehydrate_conversations(state, estimate_tokens),
        )
        super().__init__(
            ConversationStateBackend(port), options, {"conversations": []}, debounce_ms
        )

    @property
    def conversations(self) -> list[Conversation]:
        return self.state["conversations"]

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        for conversation in self.conversations:
            if conversation.id == conversation_id:
                return conversation
        return None

    def create_conversation(
        self,
        system_purpose_id: str = DEFAULT_SYSTEM_PURPOSE_ID,
        is_incognito: bool = False,
    ) -> str:
        """Prepend a new empty conversation and return its id."""
        created = now_ms()
        conversation = Conversation(
            id=str(uuid.uuid4()),
            system_purpose_id=system_purpose_id,
            is_incognito=is_incognito,
            created=created,
            updated=created,
        )
        self.store.set_state(lambda s: {"conversations": [conversation, *s["conversations"]]})
        return conversation.id

    def import_conversation(self, conversation: Conversation, prevent_clash: bool = False) -> str:
        """Insert a conversation at the top, replacing one with the same id.

        With prevent_clash a clashing conversation is kept and the imported
        one gets a fresh id instead.
        """
        existing = self.get_conversation(conversation.id)
        if existing is not None and prevent_clash:
            conversation = conversation.model_copy(update={"id": str(uuid.uuid4())})
            logger.info("conversation_import_renamed", conversation_id=conversation.id)
        elif existing is not None:
            self._abort(existing)

        self.store.set_state(
            lambda s: {
                "conversations": [
                    conversation,
                    *(c for c in s["conversations"] if c.id != conversation.id),
                ]
            }
        )
        return conversation.id

    def delete_conversations(self, conversation_ids: list[str]) -> None:
        doomed = set(conversation_ids)
        for conversation in self.conversations:
            if conversation.id in doomed:
                self._abort(conversation)
        self.store.set_state(
            lambda s: {"conversations": [c for c in s["conversations"] if c.id not in doomed]}
        )

    def edit_conversation(self, conversation_id: str, **changes) -> None:
        """Apply field changes to a conversation and bump its updated time."""
        self._replace(conversation_id, lambda c: c.model_copy(update=changes))

    def set_user_title(self, conversation_id: str, user_title: str) -> None:
        self.edit_conversation(conversation_id, user_title=user_title)

    def set_auto_title(self, conversation_id: str, auto_title: str) -> None:
        self.edit_conversation(conversation_id, auto_title=auto_title)

    def set_archived(self, conversation_id: str, is_archived: bool) -> None:
        self.edit_conversation(conversation_id, is_archived=is_archived)

    def set_system_purpose_id(self, conversation_id: str, system_purpose_id: str) -> None:
        self.edit_conversation(conversation_id, system_purpose_id=system_purpose_id)

    def append_message(self, conversation_id: str, message: Message) -> None:
        def append(conversation: Conversation) -> Conversation:
            messages = [*conversation.messages, message]
            return conversation.model_copy(
                update={
                    "messages": messages,
                    "token_count": sum(m.token_count for m in messages),
                }
            )

        self._replace(conversation_id, append)

    def delete_message(self, conversation_id: str, message_id: str) -> None:
        def remove(conversation: Conversation) -> Conversation:
            messages = [m for m in conversation.messages if m.id != message_id]
            return conversation.model_copy(
                update={
                    "messages": messages,
                    "token_count": sum(m.token_count for m in messages),
                }
            )

        self._replace(conversation_id, remove)

    def history_replace(self, conversation_id: str, messages: list[Message]) -> None:
        self._replace(
            conversation_id,
            lambda c: c.model_copy(
                update={
                    "messages": list(messages),
                    "token_count": sum(m.token_count for m in messages),
                }
            ),
        )

    def set_abort_handle(self, conversation_id: str, handle) -> None:
        """Attach or clear the in-memory generation handle.

        The handle is never persisted, so this does not bump updated.
        """
        self._replace(
            conversation_id,
            lambda c: c.model_copy(update={"abort_handle": handle}),
            touch=False,
        )

    def abort_conversation(self, conversation_id: str) -> None:
        conversation = self.get_conversation(conversation_id)
        if conversation is not None:
            self._abort(conversation)

    def _replace(
        self,
        conversation_id: str,
        change: Callable[[Conversation], Conversation],
        touch: bool = True,
    ) -> None:
        if self.get_conversation(conversation_id) is None:
            raise NotFoundError(
                ApiErrorCode.E_CONVERSATION_NOT_FOUND,
                f"Conversation not found: {conversation_id}",
            )

        def update(state: State) -> State:
            conversations = []
            for conversation in state["conversations"]:
                if conversation.id == conversation_id:
                    conversation = change(conversation)
                    if touch:
                        conversation = conversation.model_copy(update={"updated": now_ms()})
                conversations.append(conversation)
            return {"conversations": conversations}

        self.store.set_state(update)

    @staticmethod
    def _abort(conversation: Conversation) -> None:
        # abort controllers expose abort(), asyncio tasks cancel()
        handle = conversation.abort_handle
        stop = getattr(handle, "abort", None) or getattr(handle, "cancel", None)
        if stop is not None:
            stop()
