"""LLM registry schemas.

The registry holds configured services ("sources"), the models they
offer, the configured service id and the per-domain model assignments.
Unknown keys on services and models are dropped.
"""

from typing import Any

from pydantic import Field, model_validator

from chatsync.schemas.base import CamelModel


class LlmService(CamelModel):
    """Configured vendor service."""

    id: str = Field(..., min_length=1)
    v_id: str
    label: str
    setup: dict[str, Any] = Field(default_factory=dict)


class LlmModel(CamelModel):
    """Model offered by a service, plus user customizations."""

    id: str = Field(..., min_length=1)
    s_id: str
    v_id: str
    label: str
    created: int = 0
    updated: int | None = None
    description: str | None = None
    context_tokens: int | None = None
    max_output_tokens: int | None = None
    training_data_cutoff: str | None = None
    interfaces: list[str] = Field(default_factory=list)
    input_types: dict[str, Any] | None = None
    benchmark: dict[str, Any] | None = None
    pricing: dict[str, Any] | None = None
    initial_parameters: dict[str, Any] | None = None
    user_parameters: dict[str, Any] | None = None
    user_label: str | None = None
    user_hidden: bool = False
    user_starred: bool = False


class ModelAssignment(CamelModel):
    """Model chosen for a domain (chat, fast, code, ...)."""

    domain_id: str
    model_id: str
    temperature: float | None = None
    max_tokens: int | None = None


class LlmRegistry(CamelModel):
    """Whole LLM registry.

    Invariants checked on construction: every model references a present
    service, and every assignment references a present model.
    """

    llms: list[LlmModel] = Field(default_factory=list)
    sources: list[LlmService] = Field(default_factory=list)
    conf_service_id: str | None = None
    model_assignments: dict[str, ModelAssignment] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_references(self) -> "LlmRegistry":
        """Reject dangling model and assignment references."""
        service_ids = {service.id for service in self.sources}
        for model in self.llms:
            if model.s_id not in service_ids:
                raise ValueError(f"Model {model.id} references unknown service {model.s_id}")
        model_ids = {model.id for model in self.llms}
        for domain_id, assignment in self.model_assignments.items():
            if assignment.model_id not in model_ids:
                raise ValueError(
                    f"Assignment {domain_id} references unknown model {assignment.model_id}"
                )
        return self

    def find_service(self, service_id: str) -> LlmService | None:
        return next((s for s in self.sources if s.id == service_id), None)

    def find_model(self, model_id: str) -> LlmModel | None:
        return next((m for m in self.llms if m.id == model_id), None)

    def counts(self) -> dict[str, int]:
        return {
            "services": len(self.sources),
            "models": len(self.llms),
            "assignments": len(self.model_assignments),
        }


# =============================================================================
# Request Schemas
# =============================================================================


class SaveRegistryRequest(LlmRegistry):
    """Body of POST /llms; llms, sources and modelAssignments are required."""

    llms: list[LlmModel]
    sources: list[LlmService]
    model_assignments: dict[str, ModelAssignment]
