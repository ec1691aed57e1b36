"""
Pytest configuration and fixtures for ledger tests.
"""

import threading

import pytest

from ledger import AssetRegistry, Category
from ledger.schema import LedgerState, RegistryConfig


ADMIN = "ST0ADMIN"
MINTER = "ST1TEST"
FEE_RECIPIENT = "ST2TEST"
OWNER = "ST3OWNER"

DIAMOND_METADATA = {
    "origin": "MineA",
    "certification": "Cert1",
    "location": "LocX",
    "unit": "Carat",
}

GOLD_METADATA = {
    "origin": "MineB",
    "certification": "Cert2",
    "location": "LocY",
    "unit": "Gram",
}


@pytest.fixture
def unconfigured_registry():
    """Memory-only registry with no fee recipient."""
    return AssetRegistry()


@pytest.fixture
def registry():
    """Memory-only registry ready for minting."""
    registry = AssetRegistry()
    registry.set_fee_recipient(FEE_RECIPIENT, ADMIN)
    registry.deposit_fee_funds(MINTER, 1_000_000)
    return registry


@pytest.fixture
def storage_dir(tmp_path):
    """Temporary ledger data directory."""
    return str(tmp_path / "ledger_data")


@pytest.fixture
def persistent_registry(storage_dir):
    """Disk-backed registry ready for minting."""
    registry = AssetRegistry(storage_dir=storage_dir)
    registry.set_fee_recipient(FEE_RECIPIENT, ADMIN)
    registry.deposit_fee_funds(MINTER, 1_000_000)
    return registry


@pytest.fixture
def state():
    """Bare ledger state for component tests."""
    return LedgerState(config=RegistryConfig(fee_recipient=FEE_RECIPIENT))


@pytest.fixture
def mint_unique():
    """Mint a unique item with default arguments."""
    def _mint(registry, owner=OWNER, caller=MINTER, metadata=None):
        return registry.mint(
            caller, Category.UNIQUE_ITEM, dict(metadata or DIAMOND_METADATA), 1, owner, 1, 10
        )
    return _mint


@pytest.fixture
def mint_fungible():
    """Mint a fungible batch with default arguments."""
    def _mint(registry, quantity=100, owner=OWNER, caller=MINTER, metadata=None):
        return registry.mint(
            caller, Category.FUNGIBLE_BATCH, dict(metadata or GOLD_METADATA), quantity, owner, 50, 500
        )
    return _mint


class ThreadSafeCounter:
    """Thread-safe counter for testing."""

    def __init__(self, initial_value: int = 0):
        self._value = initial_value
        self._lock = threading.Lock()

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    def get_value(self) -> int:
        with self._lock:
            return self._value


@pytest.fixture
def thread_counter():
    """Create thread-safe counter for testing."""
    return ThreadSafeCounter()


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "concurrency: mark test as a concurrency test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


def pytest_collection_modifyitems(config, items):
    """Add markers based on test location and name."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)

        if "concurrent" in item.name or "thread" in item.name:
            item.add_marker(pytest.mark.concurrency)
