"""
Key Management for the Collectible Registry

This module wraps secp256k1 private/public keys and defines how a key maps
to an address: an address is the lowercase hex of the compressed public key.
"""

import re
import secrets
from typing import Optional, Union
from coincurve import PrivateKey as CoinCurvePrivateKey, PublicKey as CoinCurvePublicKey

from .exceptions import InvalidKeyError


CURVE_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

ADDRESS_RE = re.compile(r'^0[23][a-f0-9]{64}$')


class PrivateKey:
    """
    Wrapper for secp256k1 private key operations.
    """

    def __init__(self, key_bytes: Optional[bytes] = None):
        """
        Initialize private key.

        Args:
            key_bytes: 32-byte private key. If None, generates random key.
        """
        if key_bytes is None:
            key_bytes = secrets.randbits(256).to_bytes(32, 'big')
            # Ensure key is valid (not zero, not >= curve order)
            while int.from_bytes(key_bytes, 'big') == 0 or \
                  int.from_bytes(key_bytes, 'big') >= CURVE_ORDER:
                key_bytes = secrets.randbits(256).to_bytes(32, 'big')

        if not isinstance(key_bytes, bytes) or len(key_bytes) != 32:
            raise InvalidKeyError("Private key must be 32 bytes")

        key_int = int.from_bytes(key_bytes, 'big')
        if key_int == 0 or key_int >= CURVE_ORDER:
            raise InvalidKeyError("Private key out of valid range")

        try:
            self._key = CoinCurvePrivateKey(key_bytes)
        except ValueError as e:
            raise InvalidKeyError(f"Failed to create private key: {e}")

    @classmethod
    def from_hex(cls, hex_str: str) -> 'PrivateKey':
        """Parse a 64-character hex private key (optional 0x prefix)."""
        if hex_str.startswith('0x'):
            hex_str = hex_str[2:]
        try:
            key_bytes = bytes.fromhex(hex_str)
        except ValueError:
            raise InvalidKeyError("Private key must be hex encoded")
        return cls(key_bytes)

    @property
    def bytes(self) -> bytes:
        """Get private key as bytes."""
        return self._key.secret

    @property
    def hex(self) -> str:
        """Get private key as hex string."""
        return self._key.secret.hex()

    def public_key(self) -> 'PublicKey':
        """Get corresponding public key."""
        return PublicKey(self._key.public_key)

    @property
    def address(self) -> str:
        return self.public_key().address

    def __repr__(self) -> str:
        return f"PrivateKey(address={self.address})"


class PublicKey:
    """
    Wrapper for public key operations.
    """

    def __init__(self, key_data: Union[bytes, CoinCurvePublicKey]):
        """
        Initialize public key.

        Args:
            key_data: Public key bytes (33 or 65 bytes) or CoinCurvePublicKey
        """
        if isinstance(key_data, CoinCurvePublicKey):
            self._key = key_data
            return

        if not isinstance(key_data, bytes):
            raise InvalidKeyError("Public key data must be bytes")
        if len(key_data) not in [33, 65]:
            raise InvalidKeyError("Public key must be 33 or 65 bytes")
        try:
            self._key = CoinCurvePublicKey(key_data)
        except ValueError as e:
            raise InvalidKeyError(f"Failed to create public key: {e}")

    @classmethod
    def from_address(cls, address: str) -> 'PublicKey':
        """Recover the public key an address was derived from."""
        if not is_valid_address(address):
            raise InvalidKeyError(f"Malformed address: {address!r}")
        return cls(bytes.fromhex(address))

    @property
    def bytes(self) -> bytes:
        """Get compressed public key as bytes."""
        return self._key.format(compressed=True)

    @property
    def hex(self) -> str:
        """Get compressed public key as hex string."""
        return self.bytes.hex()

    @property
    def address(self) -> str:
        return address_from_public_key(self)

    def __eq__(self, other) -> bool:
        return isinstance(other, PublicKey) and self.bytes == other.bytes

    def __hash__(self) -> int:
        return hash(self.bytes)


def address_from_public_key(public_key: PublicKey) -> str:
    """Derive the address for a public key."""
    return public_key.hex


def is_valid_address(address: str) -> bool:
    """
    Check that a string is a well-formed address.

    Only the format is checked here; ``PublicKey.from_address`` additionally
    rejects x-coordinates that are not on the curve.
    """
    return isinstance(address, str) and bool(ADDRESS_RE.match(address))
