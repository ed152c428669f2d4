"""
Tests for token and password helpers.
"""
import jwt
import pytest

from security import jwt as jwt_utils
from security.password import hash_password, verify_password


class TestPasswords:
    """Test password hashing."""

    def test_hash_and_verify(self):
        hashed = hash_password("SecurePass123!")

        assert hashed != "SecurePass123!"
        assert verify_password("SecurePass123!", hashed) is True
        assert verify_password("wrong", hashed) is False

    def test_empty_hash_never_verifies(self):
        assert verify_password("anything", "") is False

    def test_long_password(self):
        """Passwords past bcrypt's 72 bytes still hash and verify"""
        password = "p" * 100
        hashed = hash_password(password)

        assert verify_password(password, hashed) is True


class TestTokens:
    """Test access token issuance."""

    def test_claims(self):
        token = jwt_utils.create_access_token("user-1", "store", "store-1")

        payload = jwt_utils.decode_access(token)

        assert payload["sub"] == "user-1"
        assert payload["role"] == "store"
        assert payload["store_id"] == "store-1"
        assert payload["type"] == "access"

    def test_admin_token_without_store(self):
        payload = jwt_utils.decode_access(jwt_utils.create_access_token("admin-1", "admin"))

        assert payload["store_id"] is None

    def test_wrong_type_rejected(self):
        token = jwt_utils._encode({"sub": "user-1", "type": "refresh"}, jwt_utils.settings.JWT_SECRET, 5)

        with pytest.raises(jwt.InvalidTokenError):
            jwt_utils.decode_access(token)

    def test_foreign_secret_rejected(self):
        token = jwt_utils._encode({"sub": "user-1", "type": "access"}, "someone-else", 5)

        with pytest.raises(jwt.InvalidTokenError):
            jwt_utils.decode_access(token)
