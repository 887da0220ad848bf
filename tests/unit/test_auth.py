"""
Unit tests for invocation authorization.
"""

import pytest

from minter.auth import (
    Invocation, SignatureAuthorizer, SignedAuthorization,
    StaticAuthorizer, new_nonce, sign_invocation
)
from minter.exceptions import Unauthorized


class TestInvocation:
    """Test the signed invocation payload."""

    def test_digest_is_stable(self):
        """Test equal invocations hash the same."""
        a = Invocation("c", "mint", ("addr", 3), 7)
        b = Invocation("c", "mint", ("addr", 3), 7)

        assert a.digest() == b.digest()
        assert len(a.digest()) == 32

    def test_digest_binds_every_field(self):
        """Test contract, function, args and nonce all change the digest."""
        base = Invocation("c", "mint", ("addr", 3), 7)
        variants = [
            Invocation("other", "mint", ("addr", 3), 7),
            Invocation("c", "init", ("addr", 3), 7),
            Invocation("c", "mint", ("addr", 4), 7),
            Invocation("c", "mint", ("addr", 3), 8),
        ]

        assert all(v.digest() != base.digest() for v in variants)

    def test_payload(self):
        """Test the payload layout."""
        payload = Invocation("c", "mint", ("addr", 3), 7).payload()
        assert payload == {"contract_id": "c", "function": "mint", "args": ["addr", 3], "nonce": 7}

    def test_new_nonce_range(self):
        """Test nonces are non-negative and vary."""
        nonces = {new_nonce() for _ in range(10)}
        assert len(nonces) > 1
        assert all(0 <= n < 2 ** 63 for n in nonces)


class TestStaticAuthorizer:
    """Test the fixed-set authorizer."""

    def test_grants_listed_addresses(self):
        auth = StaticAuthorizer(["a"])
        auth.require_consent("a")

        with pytest.raises(Unauthorized):
            auth.require_consent("b")

    def test_empty_denies_everything(self):
        with pytest.raises(Unauthorized):
            StaticAuthorizer().require_consent("a")


class TestSignatureAuthorizer:
    """Test signature-based consent."""

    @pytest.fixture
    def invocation(self, alice_key):
        return Invocation("registry", "mint", (alice_key.address, 2), 11)

    def test_valid_signature(self, alice_key, invocation):
        """Test a matching signature grants consent."""
        auth = SignatureAuthorizer(invocation, [sign_invocation(alice_key, invocation)])

        auth.require_consent(alice_key.address)
        assert auth.consumed_nonces == [(alice_key.address, 11)]

    def test_repeated_check_consumes_once(self, alice_key, invocation):
        """Test asking twice for the same address records one nonce."""
        auth = SignatureAuthorizer(invocation, [sign_invocation(alice_key, invocation)])

        auth.require_consent(alice_key.address)
        auth.require_consent(alice_key.address)
        assert len(auth.consumed_nonces) == 1

    def test_missing_authorization(self, alice_key, bob_key, invocation):
        """Test an address without a signature is refused."""
        auth = SignatureAuthorizer(invocation, [sign_invocation(alice_key, invocation)])

        with pytest.raises(Unauthorized, match="No authorization"):
            auth.require_consent(bob_key.address)

    def test_signature_by_wrong_key(self, alice_key, bob_key, invocation):
        """Test a signature claiming another address is refused."""
        forged = SignedAuthorization(
            address=alice_key.address,
            signature=sign_invocation(bob_key, invocation).signature
        )
        auth = SignatureAuthorizer(invocation, [forged])

        with pytest.raises(Unauthorized, match="Invalid signature"):
            auth.require_consent(alice_key.address)
        assert auth.consumed_nonces == []

    def test_tampered_arguments(self, alice_key, invocation):
        """Test a signature over different arguments is refused."""
        signed_for = Invocation("registry", "mint", (alice_key.address, 1), 11)
        auth = SignatureAuthorizer(invocation, [sign_invocation(alice_key, signed_for)])

        with pytest.raises(Unauthorized):
            auth.require_consent(alice_key.address)

    def test_replayed_nonce(self, alice_key, invocation):
        """Test a spent nonce is refused."""
        spent = {(alice_key.address, 11)}
        auth = SignatureAuthorizer(
            invocation,
            [sign_invocation(alice_key, invocation)],
            nonce_used=lambda address, nonce: (address, nonce) in spent
        )

        with pytest.raises(Unauthorized, match="already used"):
            auth.require_consent(alice_key.address)

    def test_malformed_signature(self, alice_key, invocation):
        """Test garbage signatures are refused, not crashed on."""
        auth = SignatureAuthorizer(invocation, [SignedAuthorization(alice_key.address, "zz")])

        with pytest.raises(Unauthorized, match="Malformed"):
            auth.require_consent(alice_key.address)

    def test_to_dict(self, alice_key, invocation):
        authorization = sign_invocation(alice_key, invocation)
        assert authorization.to_dict() == {
            "address": alice_key.address,
            "signature": authorization.signature,
        }
