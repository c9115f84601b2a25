"""
Pytest configuration and shared fixtures for ledger-core tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
3. Configures pytest markers and settings
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_common = importlib.import_module("fixtures.common")

make_entries = _common.make_entries
make_metadata = _common.make_metadata
make_manager = _common.make_manager


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def entries():
    """Five distinct diary entries."""
    return make_entries(5)


@pytest.fixture
def metadata():
    """Default (non-anonymous) user metadata."""
    return make_metadata()


@pytest.fixture
def gateway():
    """Fresh, not yet connected, in-memory ledger."""
    from core.ledger.memory import InMemoryLedgerGateway
    return InMemoryLedgerGateway()


@pytest.fixture
def store():
    from core.did.store import InMemoryRecordStore
    return InMemoryRecordStore()


@pytest.fixture
def manager(gateway, store):
    """Lifecycle manager over the ``gateway`` and ``store`` fixtures."""
    return make_manager(gateway, store)


@pytest.fixture(autouse=True)
def _isolate_default_config():
    """Keep the process-wide default config from leaking between tests."""
    from core.config.runtime import set_default_config
    set_default_config(None)
    yield
    set_default_config(None)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
