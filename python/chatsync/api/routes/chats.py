"""Conversation routes.

- GET /chats: every conversation, most recently updated first
- POST /chats: save a conversation (whole-aggregate replace)
- GET /chats/{id}: one conversation (404 if absent)
- PUT /chats/{id}: save a conversation whose id matches the path
- DELETE /chats/{id}: delete a conversation and its messages (404 if absent)

Conversations travel with camelCase keys, as the chat client stores them.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from chatsync.adapters import ConversationAdapter
from chatsync.api.deps import get_conversation_adapter
from chatsync.errors import ApiErrorCode, InvalidRequestError, NotFoundError
from chatsync.logging import get_logger
from chatsync.responses import success_response
from chatsync.schemas import to_wire
from chatsync.schemas.conversation import ConversationRequest

logger = get_logger(__name__)

router = APIRouter(tags=["chats"])

Conversations = Annotated[ConversationAdapter, Depends(get_conversation_adapter)]


def _not_found(conversation_id: str) -> NotFoundError:
    return NotFoundError(
        ApiErrorCode.E_CONVERSATION_NOT_FOUND, f"Conversation '{conversation_id}' not found"
    )


@router.get("/chats")
def list_conversations(conversations: Conversations) -> dict:
    loaded = conversations.load_all()
    return success_response(
        {"conversations": [to_wire(c) for c in loaded], "count": len(loaded)}
    )


@router.post("/chats")
def create_conversation(body: ConversationRequest, conversations: Conversations) -> dict:
    conversation = body.conversation
    conversations.save(conversation)
    logger.info(
        "conversation_received",
        conversation_id=conversation.id,
        messages=len(conversation.messages),
    )
    return success_response(
        message=f"Conversation '{conversation.id}' saved successfully",
        conversationId=conversation.id,
    )


@router.get("/chats/{conversation_id}")
def get_conversation(conversation_id: str, conversations: Conversations) -> dict:
    conversation = conversations.load(conversation_id)
    if conversation is None:
        raise _not_found(conversation_id)
    return success_response({"conversation": to_wire(conversation)})


@router.put("/chats/{conversation_id}")
def update_conversation(
    conversation_id: str, body: ConversationRequest, conversations: Conversations
) -> dict:
    """Replace a conversation.

    Errors:
        E_ID_MISMATCH (400): Body conversation id differs from the path id
    """
    if body.conversation.id != conversation_id:
        raise InvalidRequestError(ApiErrorCode.E_ID_MISMATCH, "Conversation ID mismatch")
    conversations.save(body.conversation)
    return success_response(message=f"Conversation '{conversation_id}' updated successfully")


@router.delete("/chats/{conversation_id}")
def delete_conversation(conversation_id: str, conversations: Conversations) -> dict:
    if not conversations.delete(conversation_id):
        raise _not_found(conversation_id)
    return success_response(message=f"Conversation '{conversation_id}' deleted successfully")
