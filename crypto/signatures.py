"""
ECDSA Signature Operations for the Collectible Registry

This module provides ECDSA signing and verification over 32-byte digests,
used to prove that an address consented to a contract invocation.

References:
- ECDSA: https://en.wikipedia.org/wiki/Elliptic_Curve_Digital_Signature_Algorithm
- RFC6979: https://tools.ietf.org/rfc/rfc6979.txt (Deterministic ECDSA)
"""

import hashlib
from dataclasses import dataclass

from .exceptions import InvalidSignatureError
from .keys import CURVE_ORDER, PrivateKey, PublicKey


@dataclass
class ECDSASignature:
    """
    ECDSA signature representation.
    """
    r: int
    s: int

    def __post_init__(self):
        """Validate signature components."""
        if not (1 <= self.r < CURVE_ORDER):
            raise InvalidSignatureError("Invalid r value")
        if not (1 <= self.s < CURVE_ORDER):
            raise InvalidSignatureError("Invalid s value")

    @classmethod
    def from_der(cls, der_bytes: bytes) -> 'ECDSASignature':
        """
        Parse DER-encoded signature.

        Args:
            der_bytes: DER-encoded signature

        Returns:
            ECDSASignature object
        """
        try:
            if len(der_bytes) < 8:
                raise InvalidSignatureError("DER signature too short")

            if der_bytes[0] != 0x30:
                raise InvalidSignatureError("Invalid DER signature header")

            length = der_bytes[1]
            if length != len(der_bytes) - 2:
                raise InvalidSignatureError("Invalid DER length")

            if der_bytes[2] != 0x02:
                raise InvalidSignatureError("Invalid r component")

            r_length = der_bytes[3]
            r = int.from_bytes(der_bytes[4:4 + r_length], 'big')

            s_offset = 4 + r_length
            if der_bytes[s_offset] != 0x02:
                raise InvalidSignatureError("Invalid s component")

            s_length = der_bytes[s_offset + 1]
            s = int.from_bytes(der_bytes[s_offset + 2:s_offset + 2 + s_length], 'big')

            return cls(r=r, s=s)

        except IndexError as e:
            raise InvalidSignatureError(f"Failed to parse DER signature: {e}")

    def to_der(self) -> bytes:
        """
        Encode signature in DER format.

        Returns:
            DER-encoded signature
        """
        r_bytes = self.r.to_bytes((self.r.bit_length() + 7) // 8, 'big')
        s_bytes = self.s.to_bytes((self.s.bit_length() + 7) // 8, 'big')

        # Add padding if first byte >= 0x80 (to keep positive)
        if r_bytes[0] >= 0x80:
            r_bytes = b'\x00' + r_bytes
        if s_bytes[0] >= 0x80:
            s_bytes = b'\x00' + s_bytes

        r_der = b'\x02' + bytes([len(r_bytes)]) + r_bytes
        s_der = b'\x02' + bytes([len(s_bytes)]) + s_bytes

        sequence = r_der + s_der
        return b'\x30' + bytes([len(sequence)]) + sequence

    def to_compact(self) -> bytes:
        """
        Encode signature in compact format (64 bytes: 32-byte r + 32-byte s).
        """
        return self.r.to_bytes(32, 'big') + self.s.to_bytes(32, 'big')

    @classmethod
    def from_compact(cls, compact_bytes: bytes) -> 'ECDSASignature':
        """
        Parse compact format signature.

        Args:
            compact_bytes: 64-byte compact signature
        """
        if len(compact_bytes) != 64:
            raise InvalidSignatureError("Compact signature must be 64 bytes")

        r = int.from_bytes(compact_bytes[:32], 'big')
        s = int.from_bytes(compact_bytes[32:], 'big')

        return cls(r=r, s=s)

    def hex(self) -> str:
        return self.to_compact().hex()

    @classmethod
    def from_hex(cls, hex_str: str) -> 'ECDSASignature':
        try:
            return cls.from_compact(bytes.fromhex(hex_str))
        except ValueError:
            raise InvalidSignatureError("Signature must be hex encoded")


def sign_ecdsa(private_key: PrivateKey, message_hash: bytes) -> ECDSASignature:
    """
    Sign a 32-byte message hash with deterministic (RFC6979) ECDSA.

    Args:
        private_key: Private key for signing
        message_hash: 32-byte message hash

    Returns:
        ECDSA signature
    """
    if len(message_hash) != 32:
        raise InvalidSignatureError("Message hash must be 32 bytes")

    signature_der = private_key._key.sign(message_hash, hasher=None)
    return ECDSASignature.from_der(signature_der)


def verify_ecdsa(public_key: PublicKey, signature: ECDSASignature,
                 message_hash: bytes) -> bool:
    """
    Verify ECDSA signature.

    Args:
        public_key: Public key for verification
        signature: ECDSA signature to verify
        message_hash: 32-byte message hash

    Returns:
        True if signature is valid
    """
    if len(message_hash) != 32:
        return False

    try:
        return public_key._key.verify(signature.to_der(), message_hash, hasher=None)
    except ValueError:
        return False


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()
