"""
Collectible Registry - Mint Controller Module

Issuance logic for a fixed-supply, capped-mint collection: the minting
state machine, its precondition rules, the consent verifier it depends on,
and the environment that runs each invocation atomically.
"""

from .exceptions import (
    ContractError,
    Unauthorized,
    NotInitialized,
    AlreadyInitialized,
    SaleNotActive,
    ExceedsPerTransactionLimit,
    ExceedsWalletQuota,
    SupplyExhausted,
    NonexistentToken,
    InvalidArgument,
    LimitsMismatch,
)
from .auth import (
    Authorizer,
    Invocation,
    SignatureAuthorizer,
    SignedAuthorization,
    StaticAuthorizer,
    new_nonce,
    sign_invocation,
)
from .context import ExecutionContext
from .rules import (
    MintRequest,
    MintRule,
    SaleActiveRule,
    PerTransactionLimitRule,
    WalletQuotaRule,
    SupplyLimitRule,
    default_mint_rules,
)
from .controller import MintController
from .environment import ContractEnvironment

__version__ = "0.1.0"
__all__ = [
    # Errors
    "ContractError",
    "Unauthorized",
    "NotInitialized",
    "AlreadyInitialized",
    "SaleNotActive",
    "ExceedsPerTransactionLimit",
    "ExceedsWalletQuota",
    "SupplyExhausted",
    "NonexistentToken",
    "InvalidArgument",
    "LimitsMismatch",

    # Authorization
    "Authorizer",
    "Invocation",
    "SignatureAuthorizer",
    "SignedAuthorization",
    "StaticAuthorizer",
    "new_nonce",
    "sign_invocation",

    # Controller
    "ExecutionContext",
    "MintRequest",
    "MintRule",
    "SaleActiveRule",
    "PerTransactionLimitRule",
    "WalletQuotaRule",
    "SupplyLimitRule",
    "default_mint_rules",
    "MintController",
    "ContractEnvironment",
]
