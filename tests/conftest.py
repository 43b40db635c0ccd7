"""Shared fixtures: mock-mode configuration, in-memory token store, mock transport."""

import pytest

from feedline.core.config import AppIdentity, RunMode, TransportConfig
from feedline.core.storage import MemoryStore, TokenStore
from feedline.core.transport import MockTransport


@pytest.fixture
def identity():
    return AppIdentity(name="Feedline", version="0.1.0")


@pytest.fixture
def mock_config(identity):
    return TransportConfig.for_run_mode(RunMode.MOCK, identity)


@pytest.fixture
def live_config(identity):
    return TransportConfig.for_run_mode(RunMode.LIVE, identity)


@pytest.fixture
def token_store():
    return TokenStore(MemoryStore())


@pytest.fixture
def transport():
    return MockTransport()
