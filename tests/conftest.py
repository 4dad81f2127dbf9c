"""
Pytest configuration and shared fixtures for pool tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
3. Keeps POOL_* environment variables from leaking into tests
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_common = importlib.import_module("fixtures.common")

make_tree_config = _common.make_tree_config
make_commitments = _common.make_commitments
make_pool = _common.make_pool


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

_POOL_ENV_VARS = (
    "POOL_TREE_DEPTH",
    "POOL_ZERO_VALUE",
    "POOL_HASH_FUNCTION",
    "POOL_ROOT_HISTORY_WINDOW",
    "POOL_LEDGER_SOURCE",
    "POOL_LEDGER_TIMEOUT",
    "POOL_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_pool_env(monkeypatch):
    """Remove POOL_* overrides so config tests see only what they set."""
    for name in _POOL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(params=["poseidon-simplified", "sha256"])
def hash_function(request):
    """Run a test once per registered hasher."""
    return request.param


@pytest.fixture
def tree_config(hash_function):
    """Depth-4 TreeConfig for each hasher."""
    return make_tree_config(depth=4, hash_function=hash_function)


@pytest.fixture
def hasher(tree_config):
    return tree_config.create_hasher()


@pytest.fixture
def empty_pool():
    """ShieldedPool (depth 4, simplified Poseidon) with no deposits."""
    pool, _ = make_pool(deposits=0)
    return pool


@pytest.fixture
def funded_pool():
    """ShieldedPool (depth 4, simplified Poseidon) with three deposits."""
    return make_pool(deposits=3)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
