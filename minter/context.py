"""
Execution context handed to every contract entry point.
"""

from dataclasses import dataclass

from registry.storage import StorageTransaction

from .auth import Authorizer


@dataclass
class ExecutionContext:
    """Storage view and consent verifier for one invocation."""
    storage: StorageTransaction
    auth: Authorizer
    contract_id: str = ""
