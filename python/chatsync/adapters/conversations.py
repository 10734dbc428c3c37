"""Relational adapter for the conversation aggregate.

Maps a Conversation (messages, fragments, metadata, generator, flags) onto
the normalized chats database. Every operation runs in its own
transaction scoped to one aggregate:

- save: upsert the root row, delete every message of the conversation
  (database cascades take fragments, metadata, generator and flags with
  them), then re-insert the whole tree in list order.
- load / load_all: reassemble the tree, messages by creation time and
  fragments by their stored order.
- delete: delete the root row; dependents go through the cascades.

A failed save rolls back, so the previously committed aggregate stays
intact. Whole-aggregate rewrite is the baseline; there is no diffing.
"""

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session, selectinload, sessionmaker

from chatsync.db.models import (
    ConversationRecord,
    FragmentRecord,
    MessageGeneratorRecord,
    MessageMetadataRecord,
    MessageRecord,
    MessageUserFlagRecord,
)
from chatsync.db.session import unit_of_work
from chatsync.logging import get_logger
from chatsync.schemas.conversation import (
    Conversation,
    Fragment,
    Message,
    MessageGenerator,
    MessageMetadata,
    UserFlag,
)

logger = get_logger(__name__)

# Dependent rows are fetched with one batched query per table instead of
# one query per conversation.
_TREE_LOAD = selectinload(ConversationRecord.messages).options(
    selectinload(MessageRecord.fragments),
    selectinload(MessageRecord.metadata_record),
    selectinload(MessageRecord.generator),
    selectinload(MessageRecord.user_flags),
)


# =============================================================================
# Row Mapping
# =============================================================================


def _root_values(conversation: Conversation) -> dict:
    return {
        "id": conversation.id,
        "user_title": conversation.user_title,
        "auto_title": conversation.auto_title,
        "is_archived": conversation.is_archived,
        "is_incognito": conversation.is_incognito,
        "user_symbol": conversation.user_symbol,
        "system_purpose_id": conversation.system_purpose_id,
        "created": conversation.created,
        "updated": conversation.updated,
        "token_count": conversation.token_count,
    }


def _message_to_record(conversation_id: str, order: int, message: Message) -> MessageRecord:
    record = MessageRecord(
        id=message.id,
        conversation_id=conversation_id,
        role=message.role,
        purpose_id=message.purpose_id,
        token_count=message.token_count,
        created=message.created,
        updated=message.updated,
        message_order=order,
    )
    record.fragments = [
        FragmentRecord(
            id=fragment.f_id,
            fragment_type=fragment.ft,
            fragment_order=index,
            title=fragment.title,
            part_type=fragment.part_type,
            part_data=fragment.part,
        )
        for index, fragment in enumerate(message.fragments)
    ]
    if message.metadata is not None:
        record.metadata_record = MessageMetadataRecord(
            in_reference_to=message.metadata.in_reference_to,
            entangled=message.metadata.entangled,
        )
    if message.generator is not None:
        record.generator = MessageGeneratorRecord(
            llm_id=message.generator.llm_id,
            llm_label=message.generator.llm_label,
            llm_output_tokens=message.generator.llm_output_tokens,
            metrics=message.generator.metrics,
        )
    if message.user_flags:
        record.user_flags = [
            MessageUserFlagRecord(flag_type=flag.flag, flag_value=flag.value)
            for flag in message.user_flags
        ]
    return record


def _record_to_message(record: MessageRecord) -> Message:
    metadata = None
    if record.metadata_record is not None:
        metadata = MessageMetadata(
            in_reference_to=record.metadata_record.in_reference_to,
            entangled=record.metadata_record.entangled,
        )

    generator = None
    if record.generator is not None:
        generator = MessageGenerator(
            llm_id=record.generator.llm_id,
            llm_label=record.generator.llm_label,
            llm_output_tokens=record.generator.llm_output_tokens,
            metrics=record.generator.metrics,
        )

    user_flags = None
    if record.user_flags:
        user_flags = [UserFlag(flag=f.flag_type, value=f.flag_value) for f in record.user_flags]

    return Message(
        id=record.id,
        role=record.role,
        purpose_id=record.purpose_id,
        token_count=record.token_count,
        created=record.created,
        updated=record.updated,
        metadata=metadata,
        generator=generator,
        user_flags=user_flags,
        fragments=[
            Fragment(f_id=f.id, ft=f.fragment_type, title=f.title, part=f.part_data)
            for f in record.fragments
        ],
    )


def _record_to_conversation(record: ConversationRecord) -> Conversation:
    return Conversation(
        id=record.id,
        user_title=record.user_title,
        auto_title=record.auto_title,
        is_archived=record.is_archived,
        is_incognito=record.is_incognito,
        user_symbol=record.user_symbol,
        system_purpose_id=record.system_purpose_id,
        created=record.created,
        updated=record.updated,
        token_count=record.token_count,
        messages=[_record_to_message(m) for m in record.messages],
        abort_handle=None,
    )


# =============================================================================
# Adapter
# =============================================================================


class ConversationAdapter:
    """Persists conversation aggregates in the chats database."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def save(self, conversation: Conversation) -> None:
        """Replace the persisted aggregate with the given one."""
        values = _root_values(conversation)
        upsert = sqlite_insert(ConversationRecord).values(**values)
        upsert = upsert.on_conflict_do_update(
            index_elements=[ConversationRecord.id],
            set_={
                **{key: upsert.excluded[key] for key in values if key != "id"},
                "updated_at": func.current_timestamp(),
            },
        )

        with unit_of_work(self._session_factory, "save conversation") as db:
            db.execute(upsert)
            db.execute(
                delete(MessageRecord).where(MessageRecord.conversation_id == conversation.id)
            )
            db.add_all(
                _message_to_record(conversation.id, index, message)
                for index, message in enumerate(conversation.messages)
            )

        logger.debug(
            "conversation_saved",
            conversation_id=conversation.id,
            message_count=len(conversation.messages),
        )

    def load(self, conversation_id: str) -> Conversation | None:
        """Load one aggregate, or None when the root row is absent."""
        with unit_of_work(self._session_factory, "load conversation") as db:
            record = db.scalars(
                select(ConversationRecord)
                .where(ConversationRecord.id == conversation_id)
                .options(_TREE_LOAD)
            ).first()
            if record is None:
                return None
            return _record_to_conversation(record)

    def load_all(self) -> list[Conversation]:
        """Load every aggregate, most recently updated first."""
        with unit_of_work(self._session_factory, "load conversations") as db:
            records = db.scalars(
                select(ConversationRecord)
                .order_by(ConversationRecord.updated.desc(), ConversationRecord.created.desc())
                .options(_TREE_LOAD)
            ).all()
            return [_record_to_conversation(record) for record in records]

    def delete(self, conversation_id: str) -> bool:
        """Delete an aggregate. Returns False when it did not exist."""
        with unit_of_work(self._session_factory, "delete conversation") as db:
            result = db.execute(
                delete(ConversationRecord).where(ConversationRecord.id == conversation_id)
            )
            deleted = result.rowcount > 0

        if deleted:
            logger.info("conversation_deleted", conversation_id=conversation_id)
        return deleted

    def exists(self, conversation_id: str) -> bool:
        with unit_of_work(self._session_factory, "check conversation") as db:
            found = db.scalar(
                select(ConversationRecord.id).where(ConversationRecord.id == conversation_id)
            )
            return found is not None

    def count(self) -> int:
        with unit_of_work(self._session_factory, "count conversations") as db:
            return db.scalar(select(func.count()).select_from(ConversationRecord)) or 0
