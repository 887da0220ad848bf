"""
Pytest configuration and fixtures for collectible registry tests.
"""

import pytest
import tempfile
import threading
from pathlib import Path

from crypto.keys import PrivateKey
from minter.auth import sign_invocation
from minter.environment import ContractEnvironment
from registry.schema import ContractConfig


OWNER_KEY = "01" * 32
ALICE_KEY = "02" * 32
BOB_KEY = "03" * 32


@pytest.fixture
def temp_dir():
    """Create temporary directory for file-backed tests."""
    with tempfile.TemporaryDirectory() as directory:
        yield Path(directory)


@pytest.fixture
def owner_key():
    return PrivateKey.from_hex(OWNER_KEY)


@pytest.fixture
def alice_key():
    return PrivateKey.from_hex(ALICE_KEY)


@pytest.fixture
def bob_key():
    return PrivateKey.from_hex(BOB_KEY)


@pytest.fixture
def contract_config():
    """Default collection limits."""
    return ContractConfig()


@pytest.fixture
def small_config():
    """A collection small enough to sell out in a test."""
    return ContractConfig(max_tokens=11, tokens_reserved=2, max_mint_per_tx=5)


def signed_call(env, key, function, *args, nonce=1):
    """Invoke ``function`` with ``key``'s signature over the invocation."""
    authorization = sign_invocation(key, env.new_invocation(function, *args, nonce=nonce))
    return env.invoke(function, *args, authorizations=[authorization], nonce=nonce)


class NonceSequence:
    """Hands out increasing nonces so repeated calls never collide."""

    def __init__(self):
        self._value = 0
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            self._value += 1
            return self._value


@pytest.fixture
def call():
    """Signed invocation helper with a fresh nonce per call."""
    nonces = NonceSequence()

    def _call(env, key, function, *args):
        return signed_call(env, key, function, *args, nonce=nonces.next())

    return _call


@pytest.fixture
def env(contract_config):
    """Uninitialized in-memory contract."""
    return ContractEnvironment.in_memory(contract_config)


@pytest.fixture
def initialized_env(env, owner_key, call):
    """Contract initialized by the owner key, sale still paused."""
    call(env, owner_key, "init", owner_key.address)
    return env


@pytest.fixture
def live_env(initialized_env, owner_key, call):
    """Initialized contract with the sale open."""
    call(initialized_env, owner_key, "flip_sale_state", owner_key.address)
    return initialized_env


# Test markers for different test categories
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "concurrency: mark test as a concurrency test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# Pytest collection hooks
def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on test names."""
    for item in items:
        # Add markers based on test file paths
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)

        if "concurrent" in item.name or "thread" in item.name:
            item.add_marker(pytest.mark.concurrency)

        if "slow" in item.name or "large" in item.name:
            item.add_marker(pytest.mark.slow)
