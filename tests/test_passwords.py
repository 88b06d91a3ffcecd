"""Tests for password hashing."""

import hashlib

from taskmanager.auth import hash_password, verify_password
from taskmanager.config import settings


class TestHashPassword:
    def test_digest_is_sha256_hex_of_password_and_secret(self):
        expected = hashlib.sha256(("Password1" + settings.password_secret).encode()).hexdigest()
        assert hash_password("Password1") == expected

    def test_deterministic(self):
        assert hash_password("same") == hash_password("same")
        assert len(hash_password("same")) == 64

    def test_identical_passwords_share_a_digest(self):
        # No per-user salt: two accounts with one password are indistinguishable.
        alice_hash = hash_password("correct horse")
        bob_hash = hash_password("correct horse")
        assert alice_hash == bob_hash


class TestVerifyPassword:
    def test_accepts_matching_password(self):
        assert verify_password("Password1", hash_password("Password1")) is True

    def test_rejects_wrong_password(self):
        assert verify_password("Password2", hash_password("Password1")) is False

    def test_malformed_digest_is_false(self):
        assert verify_password("Password1", "not-a-digest") is False
        assert verify_password("Password1", "") is False
