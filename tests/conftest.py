"""Pytest configuration and shared fixtures for logforward tests."""

from __future__ import annotations

from collections.abc import Generator

import pytest

from logforward import ForwarderConfig, LogForwarder
from tests.mocks import TEST_ENDPOINT, MockEndpoint


@pytest.fixture
def endpoint() -> MockEndpoint:
    """A scripted endpoint that answers 200 unless told otherwise."""
    return MockEndpoint()


@pytest.fixture
def config() -> ForwarderConfig:
    """License-key config with no backoff delay, to keep tests fast."""
    return ForwarderConfig(
        endpoint=TEST_ENDPOINT,
        license_key="cool-guy",
        max_retries=3,
        backoff_initial=0,
        backoff_max=0,
    )


@pytest.fixture
def forwarder(config: ForwarderConfig, endpoint: MockEndpoint) -> Generator[LogForwarder, None, None]:
    """A started forwarder sending to the mock endpoint; drained on teardown."""
    fwd = LogForwarder(config, http_client=endpoint.client())
    fwd.start()
    yield fwd
    endpoint.release()
    fwd.drain()


@pytest.fixture
def sample_event() -> dict:
    """Return a sample raw event."""
    return {
        "message": "Test message",
        "other": "Other value",
        "level": "INFO",
        "duration_ms": 12.5,
        "ok": True,
    }


@pytest.fixture
def sample_events(sample_event: dict) -> list[dict]:
    """Return a small ordered batch of raw events."""
    return [
        {**sample_event, "message": "Test message 1"},
        {**sample_event, "message": "Test message 2", "level": "ERROR"},
        {**sample_event, "message": "Test message 3", "level": "WARNING"},
    ]
