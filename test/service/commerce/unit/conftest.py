"""
Conftest for pure unit tests - no external dependencies.

Overrides the database cleanup and the session-scoped TestClient so nothing
here touches SQLite, Kvrocks or the app lifespan.
"""

from collections.abc import Generator
from unittest.mock import MagicMock

import pytest

from test.service.commerce.fakes import FakeUnitOfWork


@pytest.fixture(autouse=True, scope='function')
def clean_database() -> Generator[None, None, None]:
    """No-op override for unit tests - no real database needed"""
    yield


@pytest.fixture(scope='session')
def client() -> Generator[MagicMock, None, None]:
    """Mock client for unit tests - no FastAPI app needed"""
    yield MagicMock()


@pytest.fixture
def fake_uow() -> FakeUnitOfWork:
    return FakeUnitOfWork()
