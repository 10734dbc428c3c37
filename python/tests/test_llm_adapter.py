"""Tests for the LLM registry adapter.

Tests cover:
- Whole-registry save/load preserving order and every model field
- find resolves services before models
- patch merges wire-named fields and re-validates references
- remove cascades to models and orphaned assignments
"""

import pytest
from pydantic import ValidationError

from chatsync.errors import ApiErrorCode, InvalidRequestError
from chatsync.schemas.llms import LlmRegistry, ModelAssignment
from tests.factories import make_model, make_registry, make_service


class TestSaveLoad:
    def test_empty_database_loads_empty_registry(self, llm_adapter):
        registry = llm_adapter.load()

        assert registry == LlmRegistry()

    def test_round_trip(self, llm_adapter):
        """Services, models, assignments and the configured service survive a reload."""
        registry = make_registry()

        llm_adapter.save(registry)

        assert llm_adapter.load() == registry

    def test_order_preserved(self, llm_adapter):
        registry = make_registry()
        registry.llms.reverse()
        registry.sources.reverse()

        llm_adapter.save(registry)
        loaded = llm_adapter.load()

        assert [m.id for m in loaded.llms] == [m.id for m in registry.llms]
        assert [s.id for s in loaded.sources] == ["anthropic-1", "openai-1"]

    def test_save_replaces_everything(self, llm_adapter):
        llm_adapter.save(make_registry())
        replacement = LlmRegistry(sources=[make_service("x-1")], llms=[make_model("x-m", "x-1")])

        llm_adapter.save(replacement)

        loaded = llm_adapter.load()
        assert loaded == replacement
        assert loaded.conf_service_id is None

    def test_clear(self, llm_adapter):
        llm_adapter.save(make_registry())
        llm_adapter.clear()

        assert llm_adapter.load() == LlmRegistry()


class TestReferences:
    def test_model_with_unknown_service_rejected(self):
        with pytest.raises(ValidationError, match="unknown service"):
            LlmRegistry(sources=[], llms=[make_model("m", "ghost")])

    def test_assignment_with_unknown_model_rejected(self):
        with pytest.raises(ValidationError, match="unknown model"):
            LlmRegistry(
                model_assignments={"chat": ModelAssignment(domain_id="chat", model_id="ghost")}
            )


class TestFind:
    def test_find_service_with_models(self, llm_adapter):
        llm_adapter.save(make_registry())

        item = llm_adapter.find("openai-1")

        assert item.type == "service"
        assert item.service.label == "OpenAI"
        assert [m.id for m in item.models] == ["openai-1-gpt-4o", "openai-1-gpt-4o-mini"]

    def test_find_model_with_service(self, llm_adapter):
        llm_adapter.save(make_registry())

        item = llm_adapter.find("anthropic-1-sonnet")

        assert item.type == "model"
        assert item.model.label == "Sonnet"
        assert item.service.id == "anthropic-1"

    def test_find_unknown_returns_none(self, llm_adapter):
        assert llm_adapter.find("nope") is None


class TestPatch:
    def test_patch_model_with_wire_names(self, llm_adapter):
        """Fields are merged by their camelCase names."""
        llm_adapter.save(make_registry())

        item = llm_adapter.patch("openai-1-gpt-4o", {"userLabel": "Mine", "userStarred": True})

        assert item.type == "model"
        assert item.model.user_label == "Mine"
        reloaded = llm_adapter.find("openai-1-gpt-4o").model
        assert reloaded.user_starred is True
        assert reloaded.context_tokens == 128_000

    def test_patch_service_setup(self, llm_adapter):
        llm_adapter.save(make_registry())

        item = llm_adapter.patch("anthropic-1", {"setup": {"anthropicKey": "k"}})

        assert item.type == "service"
        assert llm_adapter.load().find_service("anthropic-1").setup == {"anthropicKey": "k"}

    def test_patch_breaking_reference_rejected(self, llm_adapter):
        """Moving a model to a missing service is a 400 and nothing changes."""
        registry = make_registry()
        llm_adapter.save(registry)

        with pytest.raises(InvalidRequestError) as exc_info:
            llm_adapter.patch("anthropic-1-sonnet", {"sId": "ghost"})

        assert exc_info.value.code == ApiErrorCode.E_INVALID_REQUEST
        assert "unknown service" in exc_info.value.message
        assert llm_adapter.load() == registry

    def test_patch_unknown_returns_none(self, llm_adapter):
        assert llm_adapter.patch("nope", {"label": "x"}) is None


class TestRemove:
    def test_remove_service_cascades(self, llm_adapter):
        """Removing a service drops its models and assignments pointing at them."""
        llm_adapter.save(make_registry())

        removal = llm_adapter.remove("openai-1")

        assert removal.type == "service"
        assert removal.models_removed == 2
        assert removal.assignments_removed == 1
        loaded = llm_adapter.load()
        assert [s.id for s in loaded.sources] == ["anthropic-1"]
        assert [m.id for m in loaded.llms] == ["anthropic-1-sonnet"]
        assert list(loaded.model_assignments) == ["fastUtil"]

    def test_remove_model_drops_its_assignments(self, llm_adapter):
        llm_adapter.save(make_registry())

        removal = llm_adapter.remove("anthropic-1-sonnet")

        assert removal.type == "model"
        assert removal.deleted.id == "anthropic-1-sonnet"
        assert removal.assignments_removed == 1
        assert "fastUtil" not in llm_adapter.load().model_assignments

    def test_remove_unknown_returns_none(self, llm_adapter):
        assert llm_adapter.remove("nope") is None
