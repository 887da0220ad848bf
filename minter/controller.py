"""
Mint Controller

The state machine that moves tokens from "unissued" to "owned by an
address". Entry points validate preconditions against the registry state,
then either raise a ``ContractError`` without writing anything or apply
their whole batch of writes.

Phases: Uninitialized (no owner; only ``initialize`` is valid) and
Initialized, where the sale flag toggles between paused and active and
``mint`` is only valid while active.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from crypto.keys import is_valid_address
from registry.schema import ContractConfig, RegistrySnapshot
from registry.state import RegistryState

from .context import ExecutionContext
from .exceptions import (
    AlreadyInitialized,
    InvalidArgument,
    LimitsMismatch,
    NonexistentToken,
    NotInitialized,
    Unauthorized,
)
from .rules import MintRequest, MintRule, default_mint_rules, run_mint_rules


def _require(value: Optional[Any], name: str) -> Any:
    if value is None:
        raise NotInitialized(f"{name} is not set; the contract was never initialized")
    return value


def _check_address(address: Any, name: str = "address") -> str:
    if not is_valid_address(address):
        raise InvalidArgument(f"Malformed {name}: {address!r}")
    return address


def _check_unsigned(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidArgument(f"{name} must be a non-negative integer, got {value!r}")
    return value


def _check_string(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise InvalidArgument(f"{name} must be a string, got {type(value).__name__}")
    return value


class MintController:
    """
    Issuance logic for a fixed-supply collection.

    Args:
        config: Collection limits and initialization defaults
        rules: Mint precondition chain; defaults to ``default_mint_rules``
    """

    MUTATING = frozenset({
        "init",
        "mint",
        "flip_sale_state",
        "set_base_uri",
        "set_base_extension",
        "set_price",
    })

    QUERIES = frozenset({
        "info",
        "owner",
        "owner_of",
        "token_uri",
        "total_supply",
        "is_sale_active",
        "price",
        "minted_by",
        "tokens_of",
    })

    def __init__(self, config: Optional[ContractConfig] = None,
                 rules: Optional[List[MintRule]] = None):
        self.config = config or ContractConfig()
        self.rules = rules if rules is not None else default_mint_rules(self.config)
        self.logger = logging.getLogger("minter.controller")

    def entry_point(self, function: str) -> Callable[..., Any]:
        """Look up a public entry point by name."""
        if function not in self.MUTATING and function not in self.QUERIES:
            raise InvalidArgument(f"Unknown contract function: {function!r}")
        return getattr(self, "initialize" if function == "init" else function)

    def is_mutating(self, function: str) -> bool:
        return function in self.MUTATING

    def check_limits(self, storage) -> None:
        """
        Refuse to run against a contract initialized with other limits.

        The supply ceiling and per-wallet cap are fixed at initialization.
        A store without recorded limits is left alone.

        Raises:
            LimitsMismatch: a stored limit differs from this controller's config
        """
        state = RegistryState(storage)
        for name, stored, configured in (
            ("max_tokens", state.max_tokens(), self.config.max_tokens),
            ("max_mint_per_tx", state.max_mint_per_tx(), self.config.max_mint_per_tx),
        ):
            if stored is not None and stored != configured:
                raise LimitsMismatch(f"{name} is {configured} but the contract was initialized with {stored}")

    def _owner(self, state: RegistryState) -> str:
        return _require(state.owner(), "Owner")

    def _require_owner_consent(self, ctx: ExecutionContext, state: RegistryState) -> str:
        owner = self._owner(state)
        ctx.auth.require_consent(owner)
        return owner

    def _mint_token(self, state: RegistryState, to: str, token_id: int) -> None:
        """
        Assign ``token_id`` to ``to``.

        The only place ownership is assigned. Supply and quota limits are the
        caller's responsibility.
        """
        if state.token_owner(token_id) is not None:
            raise RuntimeError(f"Token {token_id} is already owned")

        state.set_token_owner(token_id, to)
        minted = state.minted_per_wallet(to) or 0
        state.set_minted_per_wallet(to, minted + 1)

    # Mutating entry points

    def initialize(self, ctx: ExecutionContext, owner: str) -> List[int]:
        """
        Install ``owner`` and mint the reserve to it.

        Returns:
            Token ids minted to the owner

        Raises:
            Unauthorized: ``owner`` did not consent
            AlreadyInitialized: an owner is already stored
        """
        _check_address(owner, "owner")
        ctx.auth.require_consent(owner)

        state = RegistryState(ctx.storage)
        if state.has_owner():
            raise AlreadyInitialized()

        state.set_owner(owner)
        state.set_sale_active(False)
        state.set_total_supply(0)
        state.set_base_uri(self.config.default_base_uri)
        state.set_base_extension(self.config.default_base_extension)
        state.set_price(self.config.default_price)
        state.set_max_tokens(self.config.max_tokens)
        state.set_max_mint_per_tx(self.config.max_mint_per_tx)

        reserved = list(range(1, self.config.tokens_reserved + 1))
        for token_id in reserved:
            self._mint_token(state, owner, token_id)

        state.set_total_supply(self.config.tokens_reserved)

        self.logger.info(f"Initialized with owner {owner}, reserved {len(reserved)} tokens")
        return reserved

    def mint(self, ctx: ExecutionContext, to: str, num_tokens: int) -> List[int]:
        """
        Mint ``num_tokens`` new tokens to ``to``.

        Token ids are assigned densely, in increasing order, directly after
        the current total supply. The call is all-or-nothing.

        Returns:
            Token ids minted by this call
        """
        _check_address(to, "recipient")
        ctx.auth.require_consent(to)
        _check_unsigned(num_tokens, "num_tokens")

        state = RegistryState(ctx.storage)
        sale_active = _require(state.is_sale_active(), "SaleActive")
        total_supply = _require(state.total_supply(), "TotalSupply")
        minted = state.minted_per_wallet(to) or 0

        run_mint_rules(self.rules, MintRequest(
            recipient=to,
            num_tokens=num_tokens,
            sale_active=sale_active,
            minted_so_far=minted,
            total_supply=total_supply,
        ))

        token_ids = [total_supply + i for i in range(1, num_tokens + 1)]
        for token_id in token_ids:
            self._mint_token(state, to, token_id)

        state.set_minted_per_wallet(to, minted + num_tokens)
        state.set_total_supply(total_supply + num_tokens)

        self.logger.info(f"Minted {num_tokens} tokens to {to}, supply now {total_supply + num_tokens}")
        return token_ids

    def flip_sale_state(self, ctx: ExecutionContext, caller: str) -> bool:
        """Toggle the sale flag. Only the stored owner may call this."""
        _check_address(caller, "caller")
        ctx.auth.require_consent(caller)

        state = RegistryState(ctx.storage)
        if caller != self._owner(state):
            raise Unauthorized(f"{caller} is not the contract owner")

        active = not _require(state.is_sale_active(), "SaleActive")
        state.set_sale_active(active)

        self.logger.info(f"Sale {'activated' if active else 'paused'}")
        return active

    def set_base_uri(self, ctx: ExecutionContext, base_uri: str) -> None:
        state = RegistryState(ctx.storage)
        self._require_owner_consent(ctx, state)
        state.set_base_uri(_check_string(base_uri, "base_uri"))
        self.logger.info(f"Base URI set to {base_uri}")

    def set_base_extension(self, ctx: ExecutionContext, base_extension: str) -> None:
        state = RegistryState(ctx.storage)
        self._require_owner_consent(ctx, state)
        state.set_base_extension(_check_string(base_extension, "base_extension"))
        self.logger.info(f"Base extension set to {base_extension}")

    def set_price(self, ctx: ExecutionContext, price: int) -> None:
        # No upper bound: the owner may set any non-negative price
        state = RegistryState(ctx.storage)
        self._require_owner_consent(ctx, state)
        state.set_price(_check_unsigned(price, "price"))
        self.logger.info(f"Price set to {price}")

    # Read-only entry points

    def info(self, ctx: ExecutionContext) -> RegistrySnapshot:
        state = RegistryState(ctx.storage)
        return RegistrySnapshot(
            owner=self._owner(state),
            sale_active=_require(state.is_sale_active(), "SaleActive"),
            total_supply=_require(state.total_supply(), "TotalSupply"),
            max_tokens=self.config.max_tokens,
            price=_require(state.price(), "Price"),
            base_uri=_require(state.base_uri(), "BaseUri"),
            base_extension=_require(state.base_extension(), "BaseExtension"),
        )

    def owner(self, ctx: ExecutionContext) -> str:
        return self._owner(RegistryState(ctx.storage))

    def owner_of(self, ctx: ExecutionContext, token_id: int) -> str:
        _check_unsigned(token_id, "token_id")
        if token_id < 1:
            raise NonexistentToken(f"Token {token_id} does not exist")

        owner = RegistryState(ctx.storage).token_owner(token_id)
        if owner is None:
            raise NonexistentToken(f"Token {token_id} does not exist")
        return owner

    def token_uri(self, ctx: ExecutionContext, token_id: int) -> str:
        """Metadata URI: base URI, token id and extension concatenated."""
        self.owner_of(ctx, token_id)
        state = RegistryState(ctx.storage)
        base_uri = _require(state.base_uri(), "BaseUri")
        base_extension = _require(state.base_extension(), "BaseExtension")
        return f"{base_uri}{token_id}{base_extension}"

    def total_supply(self, ctx: ExecutionContext) -> int:
        return _require(RegistryState(ctx.storage).total_supply(), "TotalSupply")

    def is_sale_active(self, ctx: ExecutionContext) -> bool:
        return _require(RegistryState(ctx.storage).is_sale_active(), "SaleActive")

    def price(self, ctx: ExecutionContext) -> int:
        return _require(RegistryState(ctx.storage).price(), "Price")

    def minted_by(self, ctx: ExecutionContext, address: str) -> int:
        _check_address(address)
        return RegistryState(ctx.storage).minted_per_wallet(address) or 0

    def tokens_of(self, ctx: ExecutionContext, address: str) -> List[int]:
        _check_address(address)
        state = RegistryState(ctx.storage)
        return [token_id for token_id, owner in state.iter_token_owners() if owner == address]

    def get_rule_statistics(self) -> Dict[str, Dict[str, Any]]:
        return {rule.name: rule.get_statistics() for rule in self.rules}
