"""
Unit tests for registry schema models.
"""

import pytest
from pydantic import ValidationError

from registry.schema import (
    DEFAULT_BASE_EXTENSION, DEFAULT_BASE_URI, DEFAULT_PRICE,
    MAX_MINT_PER_TX, MAX_TOKENS, TOKENS_RESERVED,
    ContractConfig, DataKey, KeyKind, RegistrySnapshot
)


OWNER = "02" + "ab" * 32


class TestDataKey:
    """Test storage key construction and encoding."""

    def test_singleton_keys_encode_to_tag(self):
        """Test singleton keys encode as their bare tag."""
        assert DataKey.owner().encode() == "Owner"
        assert DataKey.sale_active().encode() == "IsSaleActive"
        assert DataKey.total_supply().encode() == "TotalSupply"
        assert DataKey.price().encode() == "Price"
        assert DataKey.base_uri().encode() == "BaseUri"
        assert DataKey.base_extension().encode() == "BaseExtension"
        assert DataKey.max_tokens().encode() == "MaxTokens"
        assert DataKey.max_mint_per_tx().encode() == "MaxMintPerTx"

    def test_parameterized_keys_encode_argument(self):
        """Test per-token and per-wallet keys include their argument."""
        assert DataKey.token_owner(42).encode() == "TokenOwner:42"
        assert DataKey.minted_per_wallet(OWNER).encode() == f"MintedPerWallet:{OWNER}"
        assert str(DataKey.token_owner(7)) == "TokenOwner:7"

    def test_decode(self):
        """Test decoding flat strings back into keys."""
        key = DataKey.decode("TokenOwner:42")
        assert key.kind == KeyKind.TOKEN_OWNER
        assert key.arg == 42
        assert key == DataKey.token_owner(42)

        assert DataKey.decode("Owner") == DataKey.owner()
        assert DataKey.decode(f"MintedPerWallet:{OWNER}") == DataKey.minted_per_wallet(OWNER)

    def test_decode_rejects_unknown_tag(self):
        """Test unknown tags are rejected."""
        with pytest.raises(ValueError, match="Unknown storage key tag"):
            DataKey.decode("Balance:1")

    def test_decode_rejects_bad_token_id(self):
        """Test non-numeric token ids are rejected."""
        with pytest.raises(ValueError):
            DataKey.decode("TokenOwner:abc")

    def test_token_owner_requires_positive_id(self):
        """Test token ids start at 1."""
        with pytest.raises(ValueError):
            DataKey.token_owner(0)
        with pytest.raises(ValueError):
            DataKey.token_owner(True)

    def test_singleton_rejects_argument(self):
        """Test singleton kinds take no argument."""
        with pytest.raises(ValueError):
            DataKey(KeyKind.OWNER, "x")

    def test_minted_per_wallet_requires_address(self):
        """Test wallet keys need a non-empty address."""
        with pytest.raises(ValueError):
            DataKey.minted_per_wallet("")

    def test_distinct_ids_give_distinct_keys(self):
        """Test keys are hashable and distinguish their arguments."""
        keys = {DataKey.token_owner(i) for i in range(1, 11)}
        assert len(keys) == 10


class TestContractConfig:
    """Test contract configuration validation."""

    def test_defaults(self):
        """Test default collection limits."""
        config = ContractConfig()

        assert config.max_tokens == MAX_TOKENS == 10_000
        assert config.tokens_reserved == TOKENS_RESERVED == 5
        assert config.max_mint_per_tx == MAX_MINT_PER_TX == 10
        assert config.default_price == DEFAULT_PRICE == 100_000_000_000_000_000
        assert config.default_base_uri == DEFAULT_BASE_URI
        assert config.default_base_extension == DEFAULT_BASE_EXTENSION == ".json"

    def test_reserve_cannot_exceed_supply(self):
        """Test the reserve must fit inside the collection."""
        with pytest.raises(ValidationError):
            ContractConfig(max_tokens=3, tokens_reserved=5)

    def test_limits_capped_at_collection_constants(self):
        """Test limits above the collection constants are rejected."""
        with pytest.raises(ValidationError):
            ContractConfig(max_tokens=MAX_TOKENS + 1)
        with pytest.raises(ValidationError):
            ContractConfig(max_mint_per_tx=MAX_MINT_PER_TX + 1)

    def test_reserve_cannot_exceed_wallet_cap(self):
        """Test the owner reserve fits within one wallet's quota."""
        with pytest.raises(ValidationError):
            ContractConfig(tokens_reserved=8, max_mint_per_tx=5)

        config = ContractConfig(tokens_reserved=5, max_mint_per_tx=5)
        assert config.tokens_reserved == config.max_mint_per_tx

    def test_limits_must_be_positive(self):
        """Test zero or negative limits are rejected."""
        with pytest.raises(ValidationError):
            ContractConfig(max_tokens=0)
        with pytest.raises(ValidationError):
            ContractConfig(max_mint_per_tx=0)
        with pytest.raises(ValidationError):
            ContractConfig(tokens_reserved=-1)


class TestRegistrySnapshot:
    """Test the read-only state view."""

    def test_remaining_supply(self):
        """Test remaining supply is derived from the ceiling."""
        snapshot = RegistrySnapshot(
            owner=OWNER, sale_active=True, total_supply=15, max_tokens=100,
            price=1, base_uri="ipfs://x/", base_extension=".json"
        )

        assert snapshot.remaining_supply == 85
        data = snapshot.to_dict()
        assert data["remaining_supply"] == 85
        assert data["owner"] == OWNER

    def test_owner_must_be_address(self):
        """Test owner format validation."""
        with pytest.raises(ValidationError):
            RegistrySnapshot(
                owner="not-an-address", sale_active=False, total_supply=0,
                max_tokens=1, price=0, base_uri="", base_extension=""
            )
