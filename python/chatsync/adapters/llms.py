"""LLM registry adapter.

The registry (services, models, domain assignments and the configured
service id) is persisted as a whole: save replaces every row in one
transaction. find, patch and remove operate on a single service or model
and rewrite the registry in the same transaction they read it in.

Referential rules: models belong to a service (cascade) and assignments
point at a model (cascade). The registry schema rejects dangling
references before anything is written.
"""

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import ValidationError
from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from chatsync.db.models import (
    LlmAssignmentRecord,
    LlmModelRecord,
    LlmServiceRecord,
    LlmStoreMetadataRecord,
)
from chatsync.db.session import unit_of_work
from chatsync.errors import ApiErrorCode, InvalidRequestError
from chatsync.logging import get_logger
from chatsync.schemas.llms import LlmModel, LlmRegistry, LlmService, ModelAssignment

logger = get_logger(__name__)

CONF_SERVICE_ID_KEY = "conf_service_id"

ItemType = Literal["service", "model"]


@dataclass
class RegistryItem:
    """A service with its models, or a model with its service."""

    type: ItemType
    service: LlmService | None
    model: LlmModel | None = None
    models: list[LlmModel] = field(default_factory=list)


@dataclass
class RegistryRemoval:
    """Outcome of removing a service or a model."""

    type: ItemType
    deleted: LlmService | LlmModel
    models_removed: int = 0
    assignments_removed: int = 0


# =============================================================================
# Row Mapping
# =============================================================================


def _service_to_record(service: LlmService, position: int) -> LlmServiceRecord:
    return LlmServiceRecord(
        id=service.id,
        vendor_id=service.v_id,
        label=service.label,
        setup=service.setup,
        position=position,
    )


def _record_to_service(record: LlmServiceRecord) -> LlmService:
    return LlmService(id=record.id, v_id=record.vendor_id, label=record.label, setup=record.setup)


def _model_to_record(model: LlmModel, position: int) -> LlmModelRecord:
    return LlmModelRecord(
        id=model.id,
        service_id=model.s_id,
        vendor_id=model.v_id,
        label=model.label,
        created=model.created,
        updated=model.updated,
        description=model.description,
        context_tokens=model.context_tokens,
        max_output_tokens=model.max_output_tokens,
        training_data_cutoff=model.training_data_cutoff,
        interfaces=model.interfaces,
        input_types=model.input_types,
        benchmark=model.benchmark,
        pricing=model.pricing,
        initial_parameters=model.initial_parameters,
        user_parameters=model.user_parameters,
        user_label=model.user_label,
        user_hidden=model.user_hidden,
        user_starred=model.user_starred,
        position=position,
    )


def _record_to_model(record: LlmModelRecord) -> LlmModel:
    return LlmModel(
        id=record.id,
        s_id=record.service_id,
        v_id=record.vendor_id,
        label=record.label,
        created=record.created,
        updated=record.updated,
        description=record.description,
        context_tokens=record.context_tokens,
        max_output_tokens=record.max_output_tokens,
        training_data_cutoff=record.training_data_cutoff,
        interfaces=record.interfaces,
        input_types=record.input_types,
        benchmark=record.benchmark,
        pricing=record.pricing,
        initial_parameters=record.initial_parameters,
        user_parameters=record.user_parameters,
        user_label=record.user_label,
        user_hidden=record.user_hidden,
        user_starred=record.user_starred,
    )


def _rebuild_registry(registry: LlmRegistry, **changes: Any) -> LlmRegistry:
    """Re-validate a modified registry, reporting broken references as 400."""
    data = registry.model_dump()
    data.update(changes)
    try:
        return LlmRegistry.model_validate(data)
    except ValidationError as exc:
        raise InvalidRequestError(ApiErrorCode.E_INVALID_REQUEST, _first_error(exc)) from exc


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    return errors[0]["msg"] if errors else "Invalid LLM registry"


# =============================================================================
# Adapter
# =============================================================================


class LlmRegistryAdapter:
    """Persists the LLM registry in the LLMs database."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    # -------------------------------------------------------------------------
    # Whole-registry operations
    # -------------------------------------------------------------------------

    def load(self) -> LlmRegistry:
        """Load the registry; an empty database yields an empty registry."""
        with unit_of_work(self._session_factory, "load llm registry") as db:
            return self._read(db)

    def save(self, registry: LlmRegistry) -> None:
        """Replace the whole registry in one transaction."""
        with unit_of_work(self._session_factory, "save llm registry") as db:
            self._write(db, registry)

        logger.info("llm_registry_saved", **registry.counts())

    def clear(self) -> None:
        with unit_of_work(self._session_factory, "clear llm registry") as db:
            self._delete_all(db)
        logger.info("llm_registry_cleared")

    # -------------------------------------------------------------------------
    # Single service / model operations
    # -------------------------------------------------------------------------

    def find(self, item_id: str) -> RegistryItem | None:
        """Resolve an id as a service first, then as a model."""
        registry = self.load()

        service = registry.find_service(item_id)
        if service is not None:
            models = [m for m in registry.llms if m.s_id == item_id]
            return RegistryItem(type="service", service=service, models=models)

        model = registry.find_model(item_id)
        if model is not None:
            return RegistryItem(
                type="model", service=registry.find_service(model.s_id), model=model
            )

        return None

    def patch(self, item_id: str, fields: dict[str, Any]) -> RegistryItem | None:
        """Shallow-merge fields into the service or model with this id.

        Keys use the wire (camelCase) names. Returns None when the id
        matches neither a service nor a model.
        """
        with unit_of_work(self._session_factory, "patch llm registry") as db:
            registry = self._read(db)

            index = next((i for i, s in enumerate(registry.sources) if s.id == item_id), None)
            if index is not None:
                sources = [s.model_dump(by_alias=True) for s in registry.sources]
                sources[index] = {**sources[index], **fields}
                updated = _rebuild_registry(registry, sources=sources)
                self._write(db, updated)
                return RegistryItem(type="service", service=updated.sources[index])

            index = next((i for i, m in enumerate(registry.llms) if m.id == item_id), None)
            if index is not None:
                llms = [m.model_dump(by_alias=True) for m in registry.llms]
                llms[index] = {**llms[index], **fields}
                updated = _rebuild_registry(registry, llms=llms)
                self._write(db, updated)
                model = updated.llms[index]
                return RegistryItem(
                    type="model", service=updated.find_service(model.s_id), model=model
                )

            return None

    def remove(self, item_id: str) -> RegistryRemoval | None:
        """Remove a service (with its models and orphaned assignments) or a model."""
        with unit_of_work(self._session_factory, "remove from llm registry") as db:
            registry = self._read(db)

            service = registry.find_service(item_id)
            if service is not None:
                llms = [m for m in registry.llms if m.s_id != item_id]
                model_ids = {m.id for m in llms}
                assignments = {
                    domain: a
                    for domain, a in registry.model_assignments.items()
                    if a.model_id in model_ids
                }
                updated = LlmRegistry(
                    llms=llms,
                    sources=[s for s in registry.sources if s.id != item_id],
                    conf_service_id=registry.conf_service_id,
                    model_assignments=assignments,
                )
                self._write(db, updated)
                return RegistryRemoval(
                    type="service",
                    deleted=service,
                    models_removed=len(registry.llms) - len(llms),
                    assignments_removed=len(registry.model_assignments) - len(assignments),
                )

            model = registry.find_model(item_id)
            if model is not None:
                assignments = {
                    domain: a
                    for domain, a in registry.model_assignments.items()
                    if a.model_id != item_id
                }
                updated = LlmRegistry(
                    llms=[m for m in registry.llms if m.id != item_id],
                    sources=registry.sources,
                    conf_service_id=registry.conf_service_id,
                    model_assignments=assignments,
                )
                self._write(db, updated)
                return RegistryRemoval(
                    type="model",
                    deleted=model,
                    assignments_removed=len(registry.model_assignments) - len(assignments),
                )

            return None

    # -------------------------------------------------------------------------
    # Session-level helpers
    # -------------------------------------------------------------------------

    def _read(self, db: Session) -> LlmRegistry:
        services = db.scalars(
            select(LlmServiceRecord).order_by(LlmServiceRecord.position, LlmServiceRecord.id)
        ).all()
        models = db.scalars(
            select(LlmModelRecord).order_by(LlmModelRecord.position, LlmModelRecord.id)
        ).all()
        assignments = db.scalars(
            select(LlmAssignmentRecord).order_by(LlmAssignmentRecord.domain_id)
        ).all()
        conf_service = db.get(LlmStoreMetadataRecord, CONF_SERVICE_ID_KEY)

        return LlmRegistry(
            llms=[_record_to_model(r) for r in models],
            sources=[_record_to_service(r) for r in services],
            conf_service_id=(conf_service.value or None) if conf_service else None,
            model_assignments={
                r.domain_id: ModelAssignment(
                    domain_id=r.domain_id,
                    model_id=r.model_id,
                    temperature=r.temperature,
                    max_tokens=r.max_tokens,
                )
                for r in assignments
            },
        )

    def _write(self, db: Session, registry: LlmRegistry) -> None:
        self._delete_all(db)

        # Parents are flushed before children; the records carry no
        # relationships to order the inserts.
        db.add_all(_service_to_record(s, i) for i, s in enumerate(registry.sources))
        db.flush()
        db.add_all(_model_to_record(m, i) for i, m in enumerate(registry.llms))
        db.flush()
        db.add_all(
            LlmAssignmentRecord(
                domain_id=domain_id,
                model_id=assignment.model_id,
                temperature=assignment.temperature,
                max_tokens=assignment.max_tokens,
            )
            for domain_id, assignment in registry.model_assignments.items()
        )
        db.add(
            LlmStoreMetadataRecord(key=CONF_SERVICE_ID_KEY, value=registry.conf_service_id or "")
        )
        db.flush()

    def _delete_all(self, db: Session) -> None:
        db.expunge_all()
        db.execute(delete(LlmAssignmentRecord))
        db.execute(delete(LlmModelRecord))
        db.execute(delete(LlmServiceRecord))
        db.execute(delete(LlmStoreMetadataRecord))
