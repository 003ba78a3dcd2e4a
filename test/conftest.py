"""
Test Configuration and Fixtures

This module provides:
- A file-backed SQLite database per xdist worker (aiosqlite for the app, sqlite3 for setup)
- Table cleanup before every integration test
- The session-scoped TestClient over the test application
- Service fixtures (imported from fixture_loader.py)
- BDD step definitions (imported from bdd_steps_loader.py)

Architecture:
- Unit tests (test/**/unit/): marked `unit`, override cleanup fixtures with no-ops
- Integration tests: real repositories and unit of work against SQLite,
  fakes only at the payment processor and status mirror edges
"""

# =============================================================================
# CRITICAL: Environment setup MUST happen before any other imports
# Settings are read once at import time (src.platform.config.core_setting)
# =============================================================================
import os
from pathlib import Path
import tempfile


def _early_setup_test_environment() -> None:
    """Set test environment variables before any module imports."""
    worker_id = os.environ.get('PYTEST_XDIST_WORKER', 'master')

    db_dir = Path(tempfile.gettempdir()) / 'commerce_fulfillment_test'
    db_dir.mkdir(exist_ok=True)
    os.environ['DATABASE_URL'] = f'sqlite+aiosqlite:///{db_dir / f"commerce_{worker_id}.db"}'
    os.environ['KVROCKS_KEY_PREFIX'] = f'test_{worker_id}_'

    # Create test log directory
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)

    os.environ['ENABLE_RESERVATION_SWEEPER'] = 'false'
    os.environ.setdefault('SQLITE_BUSY_TIMEOUT', '30')


# Call immediately to set env vars before any imports
_early_setup_test_environment()

from collections.abc import Generator  # noqa: E402
from typing import Any  # noqa: E402

from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402

from test.sqlite_test_database import clean_all_tables, setup_test_database  # noqa: E402


# =============================================================================
# Pytest Hooks: Detect test type and setup accordingly
# =============================================================================
def _is_unit_test_only_run(config: pytest.Config) -> bool:
    markexpr = config.getoption('markexpr', default='')
    if markexpr and 'unit' in str(markexpr) and 'not unit' not in str(markexpr):
        return True

    args = config.args or []
    test_paths = [arg for arg in args if arg and not arg.startswith('-')]
    return bool(test_paths and all('/unit/' in path or '\\unit\\' in path for path in test_paths))


def pytest_sessionstart(session: pytest.Session) -> None:
    if _is_unit_test_only_run(session.config):
        return
    setup_test_database()


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        markers = [m.name for m in item.iter_markers()]
        fixturenames = getattr(item, 'fixturenames', None)
        if 'unit' not in markers and fixturenames is not None:
            fixturenames.insert(0, 'clean_database')


# =============================================================================
# Integration Test Fixtures
# =============================================================================
@pytest.fixture(scope='function')
def clean_database() -> Generator[None, None, None]:
    clean_all_tables()
    yield


# =============================================================================
# Session-scoped Fixtures
# =============================================================================
@pytest.fixture(scope='session')
def client() -> Generator[Any, None, None]:
    from test.test_main import app

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


# =============================================================================
# Load BDD steps and service fixtures
# =============================================================================
from test.bdd_steps_loader import *  # noqa: E402, F401, F403
from test.fixture_loader import *  # noqa: E402, F401, F403
