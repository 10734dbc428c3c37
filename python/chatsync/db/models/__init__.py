"""ORM models, one declarative base per persistence domain.

Each base owns its own MetaData so every domain's tables are created in,
and only in, that domain's database.
"""

from sqlalchemy import MetaData

from chatsync.config import Domain
from chatsync.db.models.blobs import BlobsBase, StoreRecord
from chatsync.db.models.chats import (
    ChatsBase,
    ConversationRecord,
    FragmentRecord,
    MessageGeneratorRecord,
    MessageMetadataRecord,
    MessageRecord,
    MessageUserFlagRecord,
)
from chatsync.db.models.llms import (
    LlmAssignmentRecord,
    LlmModelRecord,
    LlmsBase,
    LlmServiceRecord,
    LlmStoreMetadataRecord,
)
from chatsync.db.models.metrics import (
    MetricsBase,
    MetricsEntryRecord,
    MetricsStoreRecord,
    ServiceAggregateRecord,
)
from chatsync.db.models.workspace import (
    WorkspaceBase,
    WorkspaceLiveFileRecord,
    WorkspaceStoreRecord,
)

DOMAIN_METADATA: dict[Domain, MetaData] = {
    Domain.BLOBS: BlobsBase.metadata,
    Domain.CHATS: ChatsBase.metadata,
    Domain.LLMS: LlmsBase.metadata,
    Domain.METRICS: MetricsBase.metadata,
    Domain.WORKSPACE: WorkspaceBase.metadata,
}

__all__ = [
    "DOMAIN_METADATA",
    # Bases
    "BlobsBase",
    "ChatsBase",
    "LlmsBase",
    "MetricsBase",
    "WorkspaceBase",
    # Blobs
    "StoreRecord",
    # Chats
    "ConversationRecord",
    "MessageRecord",
    "MessageMetadataRecord",
    "MessageGeneratorRecord",
    "MessageUserFlagRecord",
    "FragmentRecord",
    # LLMs
    "LlmServiceRecord",
    "LlmModelRecord",
    "LlmAssignmentRecord",
    "LlmStoreMetadataRecord",
    # Metrics
    "MetricsStoreRecord",
    "MetricsEntryRecord",
    "ServiceAggregateRecord",
    # Workspace
    "WorkspaceStoreRecord",
    "WorkspaceLiveFileRecord",
]
