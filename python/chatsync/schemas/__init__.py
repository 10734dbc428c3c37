"""Pydantic schemas for aggregates and request/response models.

All schemas are re-exported here for convenient imports.
"""

from chatsync.schemas.base import CamelModel, now_ms, to_wire
from chatsync.schemas.blobs import BlobValue, CreateStoreRequest, StoreEntry, UpdateStoreRequest
from chatsync.schemas.conversation import (
    Conversation,
    ConversationRequest,
    Fragment,
    Message,
    MessageGenerator,
    MessageMetadata,
    UserFlag,
)
from chatsync.schemas.llms import (
    LlmModel,
    LlmRegistry,
    LlmService,
    ModelAssignment,
    SaveRegistryRequest,
)
from chatsync.schemas.metrics import (
    AddCostEntryOperation,
    ClearOperation,
    CostBreakdown,
    MetricsEntryOut,
    MetricsOperation,
    SaveStoreOperation,
    ServiceMetrics,
)
from chatsync.schemas.workspace import (
    AssignFileOperation,
    CopyAssignmentsOperation,
    WorkspaceFiles,
    WorkspaceOperation,
    WorkspaceState,
)

__all__ = [
    "CamelModel",
    "now_ms",
    "to_wire",
    # Blobs
    "BlobValue",
    "StoreEntry",
    "CreateStoreRequest",
    "UpdateStoreRequest",
    # Conversations
    "Conversation",
    "Message",
    "Fragment",
    "MessageMetadata",
    "MessageGenerator",
    "UserFlag",
    "ConversationRequest",
    # LLMs
    "LlmService",
    "LlmModel",
    "ModelAssignment",
    "LlmRegistry",
    "SaveRegistryRequest",
    # Metrics
    "CostBreakdown",
    "ServiceMetrics",
    "MetricsEntryOut",
    "AddCostEntryOperation",
    "SaveStoreOperation",
    "ClearOperation",
    "MetricsOperation",
    # Workspace
    "WorkspaceState",
    "WorkspaceFiles",
    "AssignFileOperation",
    "CopyAssignmentsOperation",
    "WorkspaceOperation",
]
