"""Fixtures for integration tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest

from tests.helpers.mock_switch import MockSwitchServer


@pytest.fixture
async def mock_switch() -> AsyncGenerator[MockSwitchServer]:
    """Fixture providing a mock switch."""
    server = MockSwitchServer()
    await server.start()
    yield server
    await server.stop()
