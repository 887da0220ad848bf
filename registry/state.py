"""
Capped-Mint Collectible Registry - Registry State Accessor

Typed get/set access to the contract's durable counters, flags and
ownership map. Every getter returns ``None`` for a key that was never
written so callers can tell "absent" apart from a stored zero or ``False``.
Deciding what absence means is left to the caller.
"""

from typing import Any, Dict, Iterator, Optional, Tuple, Union

from .schema import DataKey, KeyKind
from .storage import KeyValueStore, StorageTransaction


StorageView = Union[StorageTransaction, KeyValueStore]


class RegistryState:
    """Typed accessor over a storage view."""

    def __init__(self, storage: StorageView):
        self.storage = storage

    def _get(self, key: DataKey, expected: type) -> Optional[Any]:
        value = self.storage.get(key)
        if value is None:
            return None
        # bool is a subclass of int; keep counters and flags apart
        if expected is int and isinstance(value, bool):
            raise TypeError(f"Stored value for {key} is not an integer")
        if not isinstance(value, expected):
            raise TypeError(f"Stored value for {key} is {type(value).__name__}, expected {expected.__name__}")
        return value

    # Singleton keys

    def owner(self) -> Optional[str]:
        return self._get(DataKey.owner(), str)

    def set_owner(self, address: str) -> None:
        self.storage.set(DataKey.owner(), address)

    def has_owner(self) -> bool:
        return self.owner() is not None

    def is_sale_active(self) -> Optional[bool]:
        return self._get(DataKey.sale_active(), bool)

    def set_sale_active(self, active: bool) -> None:
        self.storage.set(DataKey.sale_active(), bool(active))

    def total_supply(self) -> Optional[int]:
        return self._get(DataKey.total_supply(), int)

    def set_total_supply(self, value: int) -> None:
        self.storage.set(DataKey.total_supply(), value)

    def price(self) -> Optional[int]:
        return self._get(DataKey.price(), int)

    def set_price(self, value: int) -> None:
        self.storage.set(DataKey.price(), value)

    def base_uri(self) -> Optional[str]:
        return self._get(DataKey.base_uri(), str)

    def set_base_uri(self, value: str) -> None:
        self.storage.set(DataKey.base_uri(), value)

    def base_extension(self) -> Optional[str]:
        return self._get(DataKey.base_extension(), str)

    def set_base_extension(self, value: str) -> None:
        self.storage.set(DataKey.base_extension(), value)

    def max_tokens(self) -> Optional[int]:
        return self._get(DataKey.max_tokens(), int)

    def set_max_tokens(self, value: int) -> None:
        self.storage.set(DataKey.max_tokens(), value)

    def max_mint_per_tx(self) -> Optional[int]:
        return self._get(DataKey.max_mint_per_tx(), int)

    def set_max_mint_per_tx(self, value: int) -> None:
        self.storage.set(DataKey.max_mint_per_tx(), value)

    # Per-address and per-token keys

    def minted_per_wallet(self, address: str) -> Optional[int]:
        return self._get(DataKey.minted_per_wallet(address), int)

    def set_minted_per_wallet(self, address: str, value: int) -> None:
        self.storage.set(DataKey.minted_per_wallet(address), value)

    def token_owner(self, token_id: int) -> Optional[str]:
        return self._get(DataKey.token_owner(token_id), str)

    def set_token_owner(self, token_id: int, address: str) -> None:
        self.storage.set(DataKey.token_owner(token_id), address)

    def iter_token_owners(self) -> Iterator[Tuple[int, str]]:
        """Yield (token_id, owner) for every ownership entry visible to this view."""
        if isinstance(self.storage, StorageTransaction):
            entries: Dict[str, Any] = self.storage.snapshot()
        else:
            entries = self.storage.load()

        owners = []
        for raw, value in entries.items():
            key = DataKey.decode(raw)
            if key.kind == KeyKind.TOKEN_OWNER:
                owners.append((key.arg, value))
        yield from sorted(owners)
