"""
Contract Exceptions for the Collectible Registry

Every caller-triggerable failure of a contract entry point is one of the
exceptions below. Raising any of them aborts the invocation and discards
all of its pending writes.
"""


class ContractError(Exception):
    """Base exception for all contract errors."""

    code = "ContractError"

    def __init__(self, message: str = ""):
        super().__init__(message or self.__doc__)
        self.message = message or self.__doc__

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class Unauthorized(ContractError):
    """Authorization proof missing or invalid."""
    code = "Unauthorized"


class NotInitialized(ContractError):
    """Contract has not been initialized."""
    code = "NotInitialized"


class AlreadyInitialized(ContractError):
    """Contract has already been initialized."""
    code = "AlreadyInitialized"


class SaleNotActive(ContractError):
    """The sale is paused."""
    code = "SaleNotActive"


class ExceedsPerTransactionLimit(ContractError):
    """Cannot mint that many tokens in one transaction."""
    code = "ExceedsPerTransactionLimit"


class ExceedsWalletQuota(ContractError):
    """Cannot mint that many tokens in total."""
    code = "ExceedsWalletQuota"


class SupplyExhausted(ContractError):
    """Exceeds total token supply."""
    code = "SupplyExhausted"


class NonexistentToken(ContractError):
    """Query for nonexistent token."""
    code = "NonexistentToken"


class InvalidArgument(ContractError):
    """Argument outside the accepted domain."""
    code = "InvalidArgument"


class LimitsMismatch(ContractError):
    """Configured collection limits differ from the stored ones."""
    code = "LimitsMismatch"
