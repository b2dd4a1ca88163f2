"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import structlog
from doubles import API_TOKEN, BASE_URL, FakeTransport, RecordingSleep

from paperless_client.core import CredentialStore, PaperlessClient, RetryPolicy


if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Generator


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Undo any logging configuration a test applied."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def base_url() -> str:
    """Base URL for test clients."""
    return BASE_URL


@pytest.fixture
def api_token() -> str:
    """API token for test clients."""
    return API_TOKEN


@pytest.fixture
def transport() -> FakeTransport:
    """An empty in-memory transport; tests queue outcomes on it."""
    return FakeTransport()


@pytest.fixture
def sleep() -> RecordingSleep:
    """A sleep double for retry tests."""
    return RecordingSleep()


@pytest.fixture
async def fake_client(
    transport: FakeTransport,
    api_token: str,
) -> AsyncGenerator[PaperlessClient, None]:
    """A client wired to the in-memory transport, without retries."""
    async with PaperlessClient(
        BASE_URL,
        CredentialStore.with_token(api_token),
        transport=transport,
        retry=RetryPolicy.disabled(),
    ) as client:
        yield client
