# tests_routes/conftest.py
import pytest

from taskboard import create_app
from taskboard.services.auth import AuthService

JWT_SECRET = "test-secret"


@pytest.fixture
def app(engine):
    app = create_app(
        {
            "TESTING": True,
            "JWT_SECRET": JWT_SECRET,
            "JWT_EXPIRES_HOURS": 1,
            "SEED_ADMIN": False,
            "AUTO_CREATE_TABLES": False,
        },
        engine=engine,
    )
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth():
    """auth(caller) -> Authorization header for that caller."""
    def _headers(caller, role_claim=None):
        token = AuthService.generate_token(
            {"id": caller.id, "email": f"{caller.id}@example.com", "role": role_claim or caller.role},
            JWT_SECRET,
            1,
        )
        return {"Authorization": f"Bearer {token}"}
    return _headers
