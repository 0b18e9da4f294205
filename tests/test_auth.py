"""
Tests for api/auth.py: password hashing, tokens and admin validation.
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from api.auth import (
    authenticate,
    create_token,
    decode_token,
    email_domain_allowed,
    hash_password,
    validate_new_admin,
    verify_password,
)

ADMIN_EMAIL = "jane@ecoagris.org"
ADMIN_PASSWORD = "secret123"


class TestPasswords:
    def test_roundtrip(self):
        hashed = hash_password("secret123")
        assert hashed != "secret123"
        assert verify_password("secret123", hashed)
        assert not verify_password("wrong", hashed)

    def test_garbage_hash(self):
        assert verify_password("secret123", "not-a-bcrypt-hash") is False


class TestTokens:
    def test_subject(self):
        claims = decode_token(create_token("jane@ecoagris.org", secret="k"), secret="k")
        assert claims["sub"] == "jane@ecoagris.org"
        assert "exp" in claims

    def test_wrong_secret(self):
        assert decode_token(create_token("a@b.org", secret="k1"), secret="k2") is None

    def test_expired(self):
        assert decode_token(create_token("a@b.org", secret="k", expires_days=-1), secret="k") is None

    def test_garbage(self):
        assert decode_token("not.a.token") is None


class TestDomain:
    def test_allowed(self):
        assert email_domain_allowed("Jane@EcoAgris.org", "ecoagris.org")

    def test_rejected(self):
        assert not email_domain_allowed("jane@gmail.com", "ecoagris.org")
        assert not email_domain_allowed("jane@notecoagris.org", "ecoagris.org")

    def test_empty_domain_allows_all(self):
        assert email_domain_allowed("jane@gmail.com", "")


class TestValidateNewAdmin:
    def test_ok(self):
        assert validate_new_admin("Jane", "jane@ecoagris.org", "secret1", "ecoagris.org") is None

    def test_name_required(self):
        assert validate_new_admin(" ", "jane@ecoagris.org", "secret1", "ecoagris.org") == "Name is required"

    def test_email_required(self):
        assert validate_new_admin("Jane", "jane", "secret1", "ecoagris.org") == "A valid email is required"

    def test_domain(self):
        assert validate_new_admin("Jane", "jane@gmail.com", "secret1", "ecoagris.org") == \
            "Email must end with @ecoagris.org"

    def test_short_password(self):
        assert validate_new_admin("Jane", "jane@ecoagris.org", "12345", "ecoagris.org") == \
            "Password must be at least 6 characters"


class TestAuthenticate:
    def test_success(self, db, admin_account):
        admin = authenticate(db, ADMIN_EMAIL.upper(), ADMIN_PASSWORD)
        assert admin["email"] == ADMIN_EMAIL

    def test_wrong_password(self, db, admin_account):
        assert authenticate(db, ADMIN_EMAIL, "nope") is None

    def test_unknown_email(self, db):
        assert authenticate(db, "ghost@ecoagris.org", ADMIN_PASSWORD) is None
