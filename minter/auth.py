"""
Authorization Verification for Contract Invocations

The controller only ever asks one question: "did ``address`` consent to
this invocation?" An ``Authorizer`` answers it. ``SignatureAuthorizer``
checks ECDSA signatures over the invocation digest, where the address is
the signer's compressed public key. ``StaticAuthorizer`` grants consent
for a fixed set of addresses.
"""

import json
import logging
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from crypto.exceptions import InvalidKeyError, InvalidSignatureError
from crypto.keys import PrivateKey, PublicKey
from crypto.signatures import ECDSASignature, sha256, sign_ecdsa, verify_ecdsa

from .exceptions import Unauthorized


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Invocation:
    """A single call of a contract entry point."""
    contract_id: str
    function: str
    args: Tuple[Any, ...] = ()
    nonce: int = 0

    def payload(self) -> Dict[str, Any]:
        return {
            "contract_id": self.contract_id,
            "function": self.function,
            "args": list(self.args),
            "nonce": self.nonce,
        }

    def digest(self) -> bytes:
        """SHA-256 of the canonical JSON encoding of this invocation."""
        encoded = json.dumps(self.payload(), sort_keys=True, separators=(',', ':'))
        return sha256(encoded.encode('utf-8'))


@dataclass(frozen=True)
class SignedAuthorization:
    """An address's signature over an invocation digest."""
    address: str
    signature: str  # 64-byte compact signature, hex

    def to_dict(self) -> Dict[str, str]:
        return {"address": self.address, "signature": self.signature}


def new_nonce() -> int:
    return secrets.randbits(63)


def sign_invocation(private_key: PrivateKey, invocation: Invocation) -> SignedAuthorization:
    """Produce the authorization proving ``private_key``'s owner consents."""
    signature = sign_ecdsa(private_key, invocation.digest())
    return SignedAuthorization(address=private_key.address, signature=signature.hex())


class Authorizer(ABC):
    """Answers whether an address consented to the current invocation."""

    @abstractmethod
    def require_consent(self, address: str) -> None:
        """
        Return normally if ``address`` consented, else raise.

        Raises:
            Unauthorized: consent for ``address`` cannot be proven
        """
        pass

    @property
    def consumed_nonces(self) -> List[Tuple[str, int]]:
        """(address, nonce) pairs to record alongside the invocation's writes."""
        return []


class StaticAuthorizer(Authorizer):
    """Grants consent for a fixed set of addresses."""

    def __init__(self, addresses: Iterable[str] = ()):
        self.addresses: Set[str] = set(addresses)

    def require_consent(self, address: str) -> None:
        if address not in self.addresses:
            raise Unauthorized(f"Address {address} has not authorized this call")


class SignatureAuthorizer(Authorizer):
    """
    Verifies signed authorizations against one invocation.

    Args:
        invocation: The invocation every authorization must sign
        authorizations: Signatures supplied with the call
        nonce_used: Returns True if (address, nonce) was already spent
    """

    def __init__(
        self,
        invocation: Invocation,
        authorizations: Iterable[SignedAuthorization] = (),
        nonce_used: Optional[Callable[[str, int], bool]] = None
    ):
        self.invocation = invocation
        self._digest = invocation.digest()
        self._nonce_used = nonce_used or (lambda address, nonce: False)
        self._by_address: Dict[str, SignedAuthorization] = {}
        for auth in authorizations:
            self._by_address[auth.address] = auth
        self._verified: Set[str] = set()
        self._consumed: List[Tuple[str, int]] = []

    def require_consent(self, address: str) -> None:
        if address in self._verified:
            return

        auth = self._by_address.get(address)
        if auth is None:
            raise Unauthorized(f"No authorization supplied for {address}")

        if self._nonce_used(address, self.invocation.nonce):
            raise Unauthorized(f"Authorization nonce {self.invocation.nonce} already used by {address}")

        try:
            public_key = PublicKey.from_address(address)
            signature = ECDSASignature.from_hex(auth.signature)
        except (InvalidKeyError, InvalidSignatureError) as e:
            raise Unauthorized(f"Malformed authorization for {address}: {e}")

        if not verify_ecdsa(public_key, signature, self._digest):
            logger.debug(f"Signature check failed for {address} on {self.invocation.function}")
            raise Unauthorized(f"Invalid signature from {address}")

        self._verified.add(address)
        self._consumed.append((address, self.invocation.nonce))

    @property
    def consumed_nonces(self) -> List[Tuple[str, int]]:
        return list(self._consumed)
