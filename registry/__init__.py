"""
Collectible Registry - Registry State Module

Storage keys, key-value backends, invocation transactions and the typed
state accessor the mint controller runs against.
"""

from .schema import (
    MAX_TOKENS,
    TOKENS_RESERVED,
    MAX_MINT_PER_TX,
    ContractConfig,
    DataKey,
    KeyKind,
    RegistrySnapshot,
)
from .storage import (
    StorageError,
    LockTimeoutError,
    IntegrityError,
    FileLock,
    KeyValueStore,
    MemoryStore,
    JSONFileStore,
    StorageTransaction,
)
from .state import RegistryState
from .concurrency import ConcurrencyError, ReadWriteLock

__all__ = [
    "MAX_TOKENS",
    "TOKENS_RESERVED",
    "MAX_MINT_PER_TX",
    "ContractConfig",
    "DataKey",
    "KeyKind",
    "RegistrySnapshot",
    "StorageError",
    "LockTimeoutError",
    "IntegrityError",
    "FileLock",
    "KeyValueStore",
    "MemoryStore",
    "JSONFileStore",
    "StorageTransaction",
    "RegistryState",
    "ConcurrencyError",
    "ReadWriteLock",
]
