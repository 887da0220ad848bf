"""
Capped-Mint Collectible Registry - Registry Schema Models

This module defines the storage key layout, the contract configuration
model and the read-only state snapshot used by queries and the CLI.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


# Collection limits
MAX_TOKENS = 10_000
TOKENS_RESERVED = 5
MAX_MINT_PER_TX = 10

# Values written by initialization
DEFAULT_BASE_URI = "https://ipfs.io/ipfs/QmUNLLsPACCz1vLxQVkXqqLX5R1X345qqfHbsf67hvA3Nn"
DEFAULT_BASE_EXTENSION = ".json"
DEFAULT_PRICE = 100_000_000_000_000_000  # 0.1 ether in wei

ADDRESS_PATTERN = re.compile(r'^0[23][a-f0-9]{64}$')


class KeyKind(str, Enum):
    """Storage key variants."""
    OWNER = "Owner"
    SALE_ACTIVE = "IsSaleActive"
    TOTAL_SUPPLY = "TotalSupply"
    PRICE = "Price"
    BASE_URI = "BaseUri"
    BASE_EXTENSION = "BaseExtension"
    MAX_TOKENS = "MaxTokens"
    MAX_MINT_PER_TX = "MaxMintPerTx"
    MINTED_PER_WALLET = "MintedPerWallet"
    TOKEN_OWNER = "TokenOwner"


SINGLETON_KINDS = frozenset({
    KeyKind.OWNER,
    KeyKind.SALE_ACTIVE,
    KeyKind.TOTAL_SUPPLY,
    KeyKind.PRICE,
    KeyKind.BASE_URI,
    KeyKind.BASE_EXTENSION,
    KeyKind.MAX_TOKENS,
    KeyKind.MAX_MINT_PER_TX,
})


@dataclass(frozen=True)
class DataKey:
    """
    A key in the contract's flat key-value namespace.

    Singleton keys carry no argument. ``MintedPerWallet`` is keyed by an
    address and ``TokenOwner`` by a positive token id.
    """
    kind: KeyKind
    arg: Optional[Union[str, int]] = None

    def __post_init__(self):
        if self.kind in SINGLETON_KINDS:
            if self.arg is not None:
                raise ValueError(f"{self.kind.value} key takes no argument")
        elif self.kind == KeyKind.MINTED_PER_WALLET:
            if not isinstance(self.arg, str) or not self.arg:
                raise ValueError("MintedPerWallet key requires an address")
        elif self.kind == KeyKind.TOKEN_OWNER:
            if isinstance(self.arg, bool) or not isinstance(self.arg, int) or self.arg < 1:
                raise ValueError("TokenOwner key requires a positive token id")

    @classmethod
    def owner(cls) -> 'DataKey':
        return cls(KeyKind.OWNER)

    @classmethod
    def sale_active(cls) -> 'DataKey':
        return cls(KeyKind.SALE_ACTIVE)

    @classmethod
    def total_supply(cls) -> 'DataKey':
        return cls(KeyKind.TOTAL_SUPPLY)

    @classmethod
    def price(cls) -> 'DataKey':
        return cls(KeyKind.PRICE)

    @classmethod
    def base_uri(cls) -> 'DataKey':
        return cls(KeyKind.BASE_URI)

    @classmethod
    def base_extension(cls) -> 'DataKey':
        return cls(KeyKind.BASE_EXTENSION)

    @classmethod
    def max_tokens(cls) -> 'DataKey':
        return cls(KeyKind.MAX_TOKENS)

    @classmethod
    def max_mint_per_tx(cls) -> 'DataKey':
        return cls(KeyKind.MAX_MINT_PER_TX)

    @classmethod
    def minted_per_wallet(cls, address: str) -> 'DataKey':
        return cls(KeyKind.MINTED_PER_WALLET, address)

    @classmethod
    def token_owner(cls, token_id: int) -> 'DataKey':
        return cls(KeyKind.TOKEN_OWNER, token_id)

    def encode(self) -> str:
        """Encode the key as a flat storage string, e.g. ``TokenOwner:42``."""
        if self.arg is None:
            return self.kind.value
        return f"{self.kind.value}:{self.arg}"

    @classmethod
    def decode(cls, raw: str) -> 'DataKey':
        """Parse a flat storage string back into a key."""
        tag, sep, arg = raw.partition(':')
        try:
            kind = KeyKind(tag)
        except ValueError:
            raise ValueError(f"Unknown storage key tag: {tag!r}")

        if not sep:
            return cls(kind)
        if kind == KeyKind.TOKEN_OWNER:
            if not arg.isdigit():
                raise ValueError(f"Invalid token id in key: {raw!r}")
            return cls(kind, int(arg))
        return cls(kind, arg)

    def __str__(self) -> str:
        return self.encode()


class ContractConfig(BaseModel):
    """Collection limits and initialization defaults."""

    max_tokens: int = Field(default=MAX_TOKENS, gt=0, le=MAX_TOKENS, description="Hard supply ceiling")
    tokens_reserved: int = Field(default=TOKENS_RESERVED, ge=0, description="Tokens minted to the owner at init")
    max_mint_per_tx: int = Field(default=MAX_MINT_PER_TX, gt=0, le=MAX_MINT_PER_TX, description="Per-transaction and per-wallet cap")
    default_price: int = Field(default=DEFAULT_PRICE, ge=0)
    default_base_uri: str = Field(default=DEFAULT_BASE_URI)
    default_base_extension: str = Field(default=DEFAULT_BASE_EXTENSION)

    @model_validator(mode='after')
    def validate_limits(self):
        """Validate limit relationships."""
        if self.tokens_reserved > self.max_tokens:
            raise ValueError('Reserved tokens cannot exceed maximum supply')
        if self.tokens_reserved > self.max_mint_per_tx:
            raise ValueError('Reserved tokens cannot exceed the per-wallet cap')
        return self


class RegistrySnapshot(BaseModel):
    """Read-only view of an initialized contract."""

    owner: str
    sale_active: bool
    total_supply: int = Field(..., ge=0)
    max_tokens: int = Field(..., gt=0)
    price: int = Field(..., ge=0)
    base_uri: str
    base_extension: str

    @field_validator('owner')
    @classmethod
    def validate_owner(cls, v):
        """Validate owner address format."""
        if not ADDRESS_PATTERN.match(v):
            raise ValueError('Owner must be a compressed public key hex string')
        return v

    @property
    def remaining_supply(self) -> int:
        return self.max_tokens - self.total_supply

    def to_dict(self) -> dict:
        data = self.model_dump()
        data['remaining_supply'] = self.remaining_supply
        return data
