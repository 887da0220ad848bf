"""
Contract Execution Environment

Hosts one contract instance: dispatches entry points, resolves
authorization, and commits each invocation's writes atomically. Mutating
invocations are serialized behind a write lock, so every invocation
observes either none or all of another invocation's effects.
"""

import logging
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from registry.concurrency import ReadWriteLock
from registry.schema import ContractConfig
from registry.storage import JSONFileStore, KeyValueStore, MemoryStore, StorageTransaction

from .auth import Authorizer, Invocation, SignatureAuthorizer, SignedAuthorization, StaticAuthorizer
from .context import ExecutionContext
from .controller import MintController
from .exceptions import InvalidArgument


DEFAULT_CONTRACT_ID = "collectible-registry"


class ContractEnvironment:
    """
    Runs contract invocations against a store.

    Args:
        store: Durable contract state
        controller: Contract logic; defaults to a ``MintController``
        contract_id: Identifier bound into every signed invocation
        nonce_store: Spent authorization nonces; defaults to memory
        lock_timeout: Seconds to wait for the invocation lock
    """

    def __init__(
        self,
        store: KeyValueStore,
        controller: Optional[MintController] = None,
        contract_id: str = DEFAULT_CONTRACT_ID,
        nonce_store: Optional[KeyValueStore] = None,
        lock_timeout: float = 30.0
    ):
        self.store = store
        self.controller = controller or MintController()
        self.contract_id = contract_id
        self.nonce_store = nonce_store or MemoryStore()
        self.logger = logging.getLogger("minter.environment")
        self._rw_lock = ReadWriteLock(f"contract:{contract_id}", timeout=lock_timeout)

    @classmethod
    def in_memory(cls, config: Optional[ContractConfig] = None, **kwargs) -> 'ContractEnvironment':
        return cls(MemoryStore(), controller=MintController(config), **kwargs)

    @classmethod
    def from_directory(
        cls,
        data_dir: Union[str, Path],
        config: Optional[ContractConfig] = None,
        compressed: bool = False,
        backup_count: int = 5,
        lock_timeout: float = 30.0,
        **kwargs
    ) -> 'ContractEnvironment':
        """Open (or create) a file-backed contract in ``data_dir``."""
        data_dir = Path(data_dir)
        suffix = '.json.gz' if compressed else '.json'
        store = JSONFileStore(
            data_dir / f"contract{suffix}",
            compressed=compressed,
            backup_count=backup_count,
            lock_timeout=lock_timeout
        )
        nonce_store = JSONFileStore(
            data_dir / "nonces.json",
            backup_count=0,
            lock_timeout=lock_timeout
        )
        return cls(
            store,
            controller=MintController(config),
            nonce_store=nonce_store,
            lock_timeout=lock_timeout,
            **kwargs
        )

    def _nonce_key(self, address: str, nonce: int) -> str:
        return f"{address}:{nonce}"

    def nonce_used(self, address: str, nonce: int) -> bool:
        return self.nonce_store.get(self._nonce_key(address, nonce)) is not None

    def new_invocation(self, function: str, *args: Any, nonce: int = 0) -> Invocation:
        return Invocation(self.contract_id, function, tuple(args), nonce)

    def invoke(
        self,
        function: str,
        *args: Any,
        authorizations: Iterable[SignedAuthorization] = (),
        nonce: int = 0,
        authorizer: Optional[Authorizer] = None
    ) -> Any:
        """
        Run a mutating entry point as one transaction.

        Authorization comes from ``authorizer`` when given, otherwise from
        signatures over the invocation. On any exception nothing is
        written and the exception propagates unchanged.
        """
        if not self.controller.is_mutating(function):
            raise InvalidArgument(f"{function!r} is not a mutating entry point")
        entry_point = self.controller.entry_point(function)

        invocation = self.new_invocation(function, *args, nonce=nonce)
        if authorizer is None:
            authorizer = SignatureAuthorizer(invocation, authorizations, nonce_used=self.nonce_used)

        with self._rw_lock.write_lock():
            with self.store.locked():
                txn = StorageTransaction(self.store)
                ctx = ExecutionContext(storage=txn, auth=authorizer, contract_id=self.contract_id)
                try:
                    if function != "init":
                        self.controller.check_limits(txn)
                    result = entry_point(ctx, *args)
                except Exception as e:
                    txn.discard()
                    self.logger.debug(f"Invocation {function} aborted: {type(e).__name__}: {e}")
                    raise

                # Spent nonces are recorded before the contract writes land
                spent = {self._nonce_key(address, n): True for address, n in authorizer.consumed_nonces}
                if spent:
                    try:
                        self.nonce_store.apply(spent)
                    except Exception:
                        txn.discard()
                        raise

                written = txn.commit()

        self.logger.debug(f"Invocation {function} committed {written} writes")
        return result

    def query(self, function: str, *args: Any) -> Any:
        """Run a read-only entry point; nothing is ever committed."""
        if self.controller.is_mutating(function):
            raise InvalidArgument(f"{function!r} mutates state; use invoke()")
        entry_point = self.controller.entry_point(function)

        with self._rw_lock.read_lock():
            txn = StorageTransaction(self.store)
            ctx = ExecutionContext(storage=txn, auth=StaticAuthorizer(), contract_id=self.contract_id)
            try:
                self.controller.check_limits(txn)
                return entry_point(ctx, *args)
            finally:
                txn.discard()

    def get_lock_metrics(self):
        return self._rw_lock.get_metrics()
