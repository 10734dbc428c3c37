"""Tests for logging context propagation."""

from fastapi.testclient import TestClient

from chatsync.errors import ApiErrorCode
from chatsync.logging import (
    add_request_context,
    clear_request_context,
    get_request_id,
    set_request_context,
)
from chatsync.responses import error_response


class TestRequestContext:
    """Tests for request-scoped ContextVars injected into log events."""

    def setup_method(self):
        clear_request_context()

    def teardown_method(self):
        clear_request_context()

    def test_path_and_method_injected(self):
        """path and method appear in log event dict when set."""
        set_request_context("req-1", path="/chats/abc", method="PUT")
        event_dict = add_request_context(None, "info", {})
        assert event_dict["path"] == "/chats/abc"
        assert event_dict["method"] == "PUT"
        assert event_dict["request_id"] == "req-1"

    def test_none_values_not_injected(self):
        set_request_context("req-1")
        event_dict = add_request_context(None, "info", {})
        assert "path" not in event_dict
        assert "method" not in event_dict

    def test_clear_clears_all(self):
        set_request_context("req-1", path="/stores", method="GET")
        clear_request_context()
        event_dict = add_request_context(None, "info", {"event": "x"})
        assert event_dict == {"event": "x"}
        assert get_request_id() is None

    def test_error_response_uses_context_request_id(self):
        set_request_context("req-9")
        body = error_response(ApiErrorCode.E_NOT_FOUND, "missing")
        assert body["error"]["request_id"] == "req-9"

    def test_context_cleared_after_request(self, client: TestClient):
        """The middleware never leaks a request id outside the request."""
        client.get("/health", headers={"X-Request-ID": "leak-check"})

        assert get_request_id() is None
