"""
Mint Precondition Rules

This module implements the ordered chain of checks a public mint must pass.
Each rule reads the state it needs from a ``MintRequest`` and raises its
own ``ContractError`` on failure. Rules never mutate state; the chain stops
at the first failing rule.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List

from registry.schema import ContractConfig

from .exceptions import (
    ContractError,
    ExceedsPerTransactionLimit,
    ExceedsWalletQuota,
    SaleNotActive,
    SupplyExhausted,
)


@dataclass(frozen=True)
class MintRequest:
    """State read for one mint call, before any write."""
    recipient: str
    num_tokens: int
    sale_active: bool
    minted_so_far: int
    total_supply: int


class MintRule(ABC):
    """
    Abstract base class for mint precondition rules.
    """

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description
        self.logger = logging.getLogger(f"minter.rules.{name}")
        self.stats = {
            "checks_performed": 0,
            "rejected": 0,
        }

    def check(self, request: MintRequest) -> None:
        """
        Run the rule against a request.

        Raises:
            ContractError: the rule's specific rejection
        """
        self.stats["checks_performed"] += 1
        try:
            self._check(request)
        except ContractError as e:
            self.stats["rejected"] += 1
            self.logger.debug(f"Mint to {request.recipient} rejected: {e.message}")
            raise

    @abstractmethod
    def _check(self, request: MintRequest) -> None:
        pass

    def get_statistics(self) -> Dict[str, Any]:
        return dict(self.stats, name=self.name)


class SaleActiveRule(MintRule):
    """Public minting is only open while the sale flag is set."""

    def __init__(self):
        super().__init__(
            name="sale_active",
            description="Rejects mints while the sale is paused"
        )

    def _check(self, request: MintRequest) -> None:
        if not request.sale_active:
            raise SaleNotActive()


class PerTransactionLimitRule(MintRule):
    """Caps the number of tokens a single mint call may request."""

    def __init__(self, max_per_tx: int):
        super().__init__(
            name="per_transaction_limit",
            description="Enforces the per-transaction mint cap"
        )
        self.max_per_tx = max_per_tx

    def _check(self, request: MintRequest) -> None:
        if request.num_tokens > self.max_per_tx:
            raise ExceedsPerTransactionLimit(
                f"Requested {request.num_tokens} tokens, limit is {self.max_per_tx} per transaction"
            )


class WalletQuotaRule(MintRule):
    """
    Caps cumulative mints per recipient address.

    The wallet quota shares its ceiling with the per-transaction cap, so a
    wallet can never hold more than that many mints across all calls.
    """

    def __init__(self, max_per_wallet: int):
        super().__init__(
            name="wallet_quota",
            description="Enforces the lifetime per-wallet mint cap"
        )
        self.max_per_wallet = max_per_wallet

    def _check(self, request: MintRequest) -> None:
        if request.minted_so_far + request.num_tokens > self.max_per_wallet:
            raise ExceedsWalletQuota(
                f"Wallet has minted {request.minted_so_far}, requesting {request.num_tokens} "
                f"would exceed {self.max_per_wallet}"
            )


class SupplyLimitRule(MintRule):
    """Keeps total supply at or below the collection ceiling."""

    def __init__(self, max_tokens: int):
        super().__init__(
            name="supply_limit",
            description="Enforces the maximum collection size"
        )
        self.max_tokens = max_tokens

    def _check(self, request: MintRequest) -> None:
        if request.total_supply + request.num_tokens > self.max_tokens:
            raise SupplyExhausted(
                f"Supply is {request.total_supply}/{self.max_tokens}, "
                f"cannot mint {request.num_tokens} more"
            )


def default_mint_rules(config: ContractConfig) -> List[MintRule]:
    """Build the mint precondition chain in evaluation order."""
    return [
        SaleActiveRule(),
        PerTransactionLimitRule(config.max_mint_per_tx),
        WalletQuotaRule(config.max_mint_per_tx),
        SupplyLimitRule(config.max_tokens),
    ]


def run_mint_rules(rules: List[MintRule], request: MintRequest) -> None:
    """Evaluate rules in order, stopping at the first rejection."""
    for rule in rules:
        rule.check(request)
