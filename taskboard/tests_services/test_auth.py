# tests_services/test_auth.py
import unittest
import jwt
import pytest

from taskboard.errors import Conflict, ValidationError
from taskboard.models.user import RoleEnum
from taskboard.services.auth import AuthService, _norm_email, _assert_valid_email, JWT_ALGORITHM

SECRET = "test-secret-key-for-testing-only"


class TestAuthHelpers(unittest.TestCase):

    def test_norm_email(self):
        self.assertEqual(_norm_email("  TEST@Example.COM  "), "test@example.com")
        self.assertEqual(_norm_email(None), "")

    def test_assert_valid_email(self):
        _assert_valid_email("test@example.com")
        _assert_valid_email("user.name@domain.co.uk")
        for bad in ("invalid-email", "missing@domain", "@nodomain.com"):
            with self.assertRaises(ValidationError):
                _assert_valid_email(bad)


class TestAuthServicePassword(unittest.TestCase):

    def test_hash_and_verify(self):
        hashed = AuthService.hash_password("test_password123")
        self.assertNotEqual(hashed, "test_password123")
        self.assertTrue(AuthService.verify_password(hashed, "test_password123"))
        self.assertFalse(AuthService.verify_password(hashed, "wrong"))

    def test_verify_rejects_empty_or_foreign_hash(self):
        self.assertFalse(AuthService.verify_password("", "x"))
        self.assertFalse(AuthService.verify_password("$2b$10$notawerkzeughash", "x"))


class TestAuthServiceJWT(unittest.TestCase):

    def test_generate_and_verify_token(self):
        user = {"id": 7, "email": "a@example.com", "role": RoleEnum.ADMIN}
        token = AuthService.generate_token(user, SECRET, 1)
        payload = jwt.decode(token, SECRET, algorithms=[JWT_ALGORITHM])
        self.assertEqual(payload["sub"], "7")
        self.assertEqual(payload["role"], "ADMIN")
        self.assertEqual(AuthService.verify_token(f"Bearer {token}", SECRET)["sub"], "7")

    def test_verify_token_invalid(self):
        self.assertIsNone(AuthService.verify_token("invalid.token.here", SECRET))
        self.assertIsNone(AuthService.verify_token(None, SECRET))
        token = AuthService.generate_token({"id": 1, "email": "a@b.co", "role": "MEMBER"}, "other")
        self.assertIsNone(AuthService.verify_token(token, SECRET))

    def test_expired_token(self):
        token = AuthService.generate_token({"id": 1, "email": "a@b.co", "role": "MEMBER"}, SECRET, -1)
        self.assertIsNone(AuthService.verify_token(token, SECRET))


def test_load_caller_uses_stored_role(conn, factory):
    u = factory.user(role=RoleEnum.ADMIN)
    caller = AuthService.load_caller(conn, u.id)
    assert caller.role == RoleEnum.ADMIN and caller.is_admin
    assert AuthService.load_caller(conn, 999) is None


def test_authenticate_user(conn, factory):
    factory.user("Kim", password="pw-123")
    user = AuthService.authenticate_user(conn, " KIM@example.com ", "pw-123")
    assert user["name"] == "Kim"
    assert "password_hash" not in user
    assert AuthService.authenticate_user(conn, "kim@example.com", "nope") is None
    assert AuthService.authenticate_user(conn, "", "pw-123") is None


def test_create_user_rules(engine):
    with engine.connect() as conn, conn.begin():
        user = AuthService.create_user(conn, {"email": "New@Example.com", "password": "pw", "name": "New"})
    assert user["email"] == "new@example.com"
    assert user["role"] == "MEMBER"

    with engine.connect() as conn:
        with pytest.raises(Conflict) as ei:
            AuthService.create_user(conn, {"email": "new@example.com", "password": "pw"})
        assert ei.value.code == "email_exists"
        with pytest.raises(ValidationError):
            AuthService.create_user(conn, {"email": "x@example.com", "password": "pw", "role": "OWNER"})
        with pytest.raises(ValidationError):
            AuthService.create_user(conn, {"email": "x@example.com"})
