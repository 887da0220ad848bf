"""
Collectible Registry - Cryptographic Operations Module

secp256k1 keys, addresses and ECDSA signatures used to prove that an
address consented to a contract invocation.

Dependencies:
- coincurve: Fast secp256k1 operations
- hashlib: Cryptographic hash functions
- secrets: Secure random number generation
"""

from .exceptions import (
    CryptoError,
    InvalidKeyError,
    InvalidSignatureError,
)
from .keys import (
    PrivateKey,
    PublicKey,
    address_from_public_key,
    is_valid_address,
)
from .signatures import (
    ECDSASignature,
    sign_ecdsa,
    verify_ecdsa,
)

__all__ = [
    # Exceptions
    "CryptoError",
    "InvalidKeyError",
    "InvalidSignatureError",

    # Keys
    "PrivateKey",
    "PublicKey",
    "address_from_public_key",
    "is_valid_address",

    # Signatures
    "ECDSASignature",
    "sign_ecdsa",
    "verify_ecdsa",
]
