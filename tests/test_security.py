"""Unit tests for storefront.core.security: bcrypt hashing and the two JWT kinds."""

import unittest

import jwt

from storefront.core.config import settings
from storefront.core.security import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)


class TestPasswordHashing(unittest.TestCase):
    def test_hash_and_verify(self) -> None:
        hashed = hash_password("password123")
        self.assertNotEqual(hashed, "password123")
        self.assertTrue(verify_password("password123", hashed))
        self.assertFalse(verify_password("password124", hashed))

    def test_salted(self) -> None:
        self.assertNotEqual(hash_password("same"), hash_password("same"))

    def test_garbage_hash_is_false(self) -> None:
        self.assertFalse(verify_password("x", "not-a-bcrypt-hash"))


class TestTokens(unittest.TestCase):
    def test_access_token_payload_carries_only_identity(self) -> None:
        payload = decode_access_token(create_access_token(5))
        self.assertEqual(payload["sub"], "5")
        self.assertNotIn("role", payload)
        self.assertNotIn("email", payload)
        self.assertIn("exp", payload)

    def test_secrets_are_independent(self) -> None:
        access = create_access_token(1)
        refresh = create_refresh_token(1)
        with self.assertRaises(jwt.PyJWTError):
            decode_refresh_token(access)
        with self.assertRaises(jwt.PyJWTError):
            decode_access_token(refresh)
        self.assertEqual(decode_refresh_token(refresh)["sub"], "1")

    def test_lifetimes(self) -> None:
        access = decode_access_token(create_access_token(1))
        refresh = decode_refresh_token(create_refresh_token(1))
        self.assertEqual(access["exp"] - access["iat"], settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60)
        self.assertEqual(
            refresh["exp"] - refresh["iat"], settings.REFRESH_TOKEN_EXPIRE_DAYS * 86400
        )

    def test_tokens_issued_together_differ(self) -> None:
        self.assertNotEqual(create_refresh_token(1), create_refresh_token(1))


if __name__ == "__main__":
    unittest.main()
