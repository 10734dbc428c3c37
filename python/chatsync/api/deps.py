"""FastAPI dependencies for route handlers.

The relational adapters are created once in the application lifespan and
kept on app.state; routes receive them through these dependencies.
"""

from fastapi import Request

from chatsync.adapters import (
    BlobStoreAdapter,
    ConversationAdapter,
    LlmRegistryAdapter,
    MetricsAdapter,
    WorkspaceAdapter,
)


def get_blob_adapter(request: Request) -> BlobStoreAdapter:
    return request.app.state.blob_adapter


def get_conversation_adapter(request: Request) -> ConversationAdapter:
    return request.app.state.conversation_adapter


def get_llm_adapter(request: Request) -> LlmRegistryAdapter:
    return request.app.state.llm_adapter


def get_metrics_adapter(request: Request) -> MetricsAdapter:
    return request.app.state.metrics_adapter


def get_workspace_adapter(request: Request) -> WorkspaceAdapter:
    return request.app.state.workspace_adapter
