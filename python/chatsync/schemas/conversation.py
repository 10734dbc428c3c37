"""Conversation aggregate schemas.

A Conversation is the aggregate root; Messages and their Fragments exist
only inside it. The shapes mirror the chat client's persisted state, so
keys are camelCase on the wire.
"""

from typing import Any, Literal

from pydantic import AliasChoices, Field, field_validator

from chatsync.schemas.base import CamelModel, now_ms

# Valid message roles - must match DB constraint
MESSAGE_ROLES = Literal["user", "assistant", "system"]

# Valid fragment types - must match DB constraint
FRAGMENT_TYPES = Literal["content", "attachment", "void"]

DEFAULT_SYSTEM_PURPOSE_ID = "Generic"


class Fragment(CamelModel):
    """Ordered piece of a message.

    The part payload is opaque; its "pt" key names the part type (text,
    image_ref, doc, ...) and the whole dict is persisted as-is.
    """

    f_id: str
    ft: FRAGMENT_TYPES
    title: str | None = None
    part: dict[str, Any]

    @property
    def part_type(self) -> str:
        return self.part.get("pt", "text")


class MessageMetadata(CamelModel):
    """Opaque cross-references of a message."""

    in_reference_to: list[Any] | None = None
    entangled: Any | None = None


class MessageGenerator(CamelModel):
    """Model that generated a message."""

    llm_id: str | None = None
    llm_label: str | None = None
    llm_output_tokens: int | None = None
    metrics: dict[str, Any] | None = None


class UserFlag(CamelModel):
    flag: str
    value: str | None = None


class Message(CamelModel):
    """A single message; fragments are kept in render order."""

    id: str
    role: MESSAGE_ROLES
    purpose_id: str | None = None
    token_count: int = 0
    created: int = Field(default_factory=now_ms)
    updated: int | None = None
    metadata: MessageMetadata | None = None
    generator: MessageGenerator | None = None
    user_flags: list[UserFlag] | None = None
    fragments: list[Fragment] = Field(default_factory=list)

    @field_validator("user_flags")
    @classmethod
    def _no_flags_as_none(cls, value: list[UserFlag] | None) -> list[UserFlag] | None:
        # An empty flag list is stored as no rows and loads back as None
        return value or None


class Conversation(CamelModel):
    """Conversation aggregate root.

    abort_handle holds an in-flight generation handle. It lives only in
    memory: it is never serialized and is always None after a load.
    """

    id: str = Field(min_length=1)
    user_title: str | None = None
    auto_title: str | None = None
    is_archived: bool = False
    is_incognito: bool = Field(
        default=False,
        validation_alias=AliasChoices("isIncognito", "_isIncognito", "is_incognito"),
    )
    user_symbol: str | None = None
    system_purpose_id: str = DEFAULT_SYSTEM_PURPOSE_ID
    created: int = Field(default_factory=now_ms)
    updated: int | None = None
    token_count: int = 0
    messages: list[Message] = Field(default_factory=list)
    abort_handle: Any = Field(default=None, exclude=True)

    def message_token_total(self) -> int:
        """Sum of the token counts of all messages."""
        return sum(message.token_count for message in self.messages)


# =============================================================================
# Request Schemas
# =============================================================================


class ConversationRequest(CamelModel):
    """Body of POST /chats and PUT /chats/{id}."""

    conversation: Conversation
