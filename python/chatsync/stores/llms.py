"""LLM registry store, persisted by whole-registry replace.

State shape mirrors LlmRegistry: llms, sources, conf_service_id and
model_assignments. Actions keep the registry referentially consistent:
removing a service drops its models, and dropping a model drops the
assignments that pointed at it.
"""

from chatsync.persist import LlmRegistryStateBackend, PersistOptions, State
from chatsync.schemas.llms import LlmModel, LlmRegistry, LlmService, ModelAssignment
from chatsync.storage.ports import LlmRegistryPort
from chatsync.stores.base import PersistedStore

LLMS_STORE_NAME = "app-models"
LLMS_STORE_VERSION = 1

DEFAULT_LLMS_STATE: State = {
    "llms": [],
    "sources": [],
    "conf_service_id": None,
    "model_assignments": {},
}


def _without_dangling(state: State, llms: list[LlmModel]) -> State:
    """Return llms plus the assignments that still reference one of them."""
    model_ids = {model.id for model in llms}
    return {
        "llms": llms,
        "model_assignments": {
            domain_id: assignment
            for domain_id, assignment in state["model_assignments"].items()
            if assignment.model_id in model_ids
        },
    }


class LlmRegistryStore(PersistedStore):
    """Configured services, their models and the per-domain assignments."""

    def __init__(self, port: LlmRegistryPort, debounce_ms: int = 100):
        options = PersistOptions(name=LLMS_STORE_NAME, version=LLMS_STORE_VERSION)
        super().__init__(LlmRegistryStateBackend(port), options, DEFAULT_LLMS_STATE, debounce_ms)

    def registry(self) -> LlmRegistry:
        return LlmRegistry.model_validate(self.state)

    def add_service(self, service: LlmService) -> None:
        self.store.set_state(
            lambda s: {"sources": [*(x for x in s["sources"] if x.id != service.id), service]}
        )

    def remove_service(self, service_id: str) -> None:
        def remove(state: State) -> State:
            llms = [m for m in state["llms"] if m.s_id != service_id]
            update = _without_dangling(state, llms)
            update["sources"] = [s for s in state["sources"] if s.id != service_id]
            if state["conf_service_id"] == service_id:
                update["conf_service_id"] = None
            return update

        self.store.set_state(remove)

    def update_service_setup(self, service_id: str, setup: dict) -> None:
        """Shallow-merge setup values into a service."""
        self.store.set_state(
            lambda s: {
                "sources": [
                    (
                        x.model_copy(update={"setup": {**x.setup, **setup}})
                        if x.id == service_id
                        else x
                    )
                    for x in s["sources"]
                ]
            }
        )

    def set_service_models(self, service_id: str, models: list[LlmModel]) -> None:
        """Replace the models offered by one service."""
        if not any(s.id == service_id for s in self.state["sources"]):
            raise ValueError(f"Unknown service {service_id}")

        def replace(state: State) -> State:
            kept = [m for m in state["llms"] if m.s_id != service_id]
            return _without_dangling(state, [*kept, *models])

        self.store.set_state(replace)

    def update_model(self, model_id: str, **fields) -> None:
        self.store.set_state(
            lambda s: {
                "llms": [m.model_copy(update=fields) if m.id == model_id else m for m in s["llms"]]
            }
        )

    def remove_model(self, model_id: str) -> None:
        self.store.set_state(
            lambda s: _without_dangling(s, [m for m in s["llms"] if m.id != model_id])
        )

    def set_conf_service_id(self, service_id: str | None) -> None:
        self.store.set_state({"conf_service_id": service_id})

    def assign_model(
        self,
        domain_id: str,
        model_id: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> None:
        if not any(m.id == model_id for m in self.state["llms"]):
            raise ValueError(f"Unknown model {model_id}")
        assignment = ModelAssignment(
            domain_id=domain_id,
            model_id=model_id,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        self.store.set_state(
            lambda s: {"model_assignments": {**s["model_assignments"], domain_id: assignment}}
        )
