"""Test helpers for API envelopes and timer-driven persistence.

Provides:
- Envelope assertions for success and error responses
- Polling helper for debounced background work
"""

import asyncio
from collections.abc import Callable

import httpx


def assert_success(response: httpx.Response, status_code: int = 200) -> dict:
    """Assert a success envelope and return its body."""
    assert response.status_code == status_code, response.text
    body = response.json()
    assert body["success"] is True
    assert "timestamp" in body
    return body


def assert_error(response: httpx.Response, status_code: int, code: str) -> dict:
    """Assert an error envelope with the given status and code; return the error object."""
    assert response.status_code == status_code, response.text
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == code
    return body["error"]


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll predicate on the running loop until it holds or timeout expires."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)
