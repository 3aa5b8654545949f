"""
Unit Tests for Password Hashing
===============================
Tests for the bcrypt PasswordHasher.
"""

import pytest

from school_admin.utils.password_hashing import PasswordHasher


@pytest.fixture(scope="module")
def stored_hash():
    return PasswordHasher.hash_password("Registrar@123")


class TestPasswordHasher:
    def test_hash_is_bcrypt(self, stored_hash):
        assert stored_hash.startswith("$2")
        assert stored_hash != "Registrar@123"

    def test_hash_is_salted(self, stored_hash):
        assert PasswordHasher.hash_password("Registrar@123") != stored_hash

    def test_verify_correct_password(self, stored_hash):
        assert PasswordHasher.verify_password("Registrar@123", stored_hash) is True

    def test_verify_wrong_password(self, stored_hash):
        assert PasswordHasher.verify_password("registrar@123", stored_hash) is False

    @pytest.mark.parametrize("bad_hash", ["", None, "not-a-bcrypt-hash"])
    def test_malformed_hash_never_verifies(self, bad_hash):
        assert PasswordHasher.verify_password("anything", bad_hash) is False
