# conftest.py
import itertools
from datetime import timedelta

import pytest
from sqlalchemy import text
from sqlalchemy.pool import StaticPool

from taskboard.db.base import utcnow
from taskboard.db.engine import init_db, make_engine
from taskboard.models.user import RoleEnum
from taskboard.services.access import Caller
from taskboard.services.auth import AuthService


@pytest.fixture
def engine():
    """Fresh in-memory database per test; StaticPool keeps one shared connection."""
    eng = make_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    init_db(eng)
    yield eng
    eng.dispose()


class Factory:
    """Inserts rows straight into the store so tests can set up any shape of data."""

    def __init__(self, engine):
        self.engine = engine
        self._seq = itertools.count(1)
        self._clock = utcnow() - timedelta(days=1)

    def _tick(self):
        # strictly increasing created_at so ordering is deterministic
        self._clock += timedelta(seconds=1)
        return self._clock

    def user(self, name=None, role=RoleEnum.MEMBER, password="secret123"):
        n = next(self._seq)
        name = name or f"user{n}"
        with self.engine.begin() as conn:
            uid = conn.execute(
                text("""
                    INSERT INTO users (email, name, role, password_hash, created_at, updated_at)
                    VALUES (:email, :name, :role, :hash, :now, :now)
                    RETURNING id
                """),
                {
                    "email": f"{name.lower()}@example.com",
                    "name": name,
                    "role": role.value,
                    "hash": AuthService.hash_password(password),
                    "now": self._tick(),
                },
            ).scalar_one()
        return Caller(id=uid, role=role)

    def project(self, owner, name=None, members=(), status="ACTIVE"):
        with self.engine.begin() as conn:
            pid = conn.execute(
                text("""
                    INSERT INTO projects (name, description, status, owner_id, created_at, updated_at)
                    VALUES (:name, NULL, :status, :owner, :now, :now)
                    RETURNING id
                """),
                {"name": name or f"project{next(self._seq)}", "status": status,
                 "owner": owner.id, "now": self._tick()},
            ).scalar_one()
            for m in members:
                conn.execute(
                    text("INSERT INTO project_members (project_id, user_id) VALUES (:pid, :uid)"),
                    {"pid": pid, "uid": m.id},
                )
        return pid

    def task(self, project_id, created_by, assigned_to=None, title=None,
             status="TODO", priority="MEDIUM", due_date=None):
        with self.engine.begin() as conn:
            return conn.execute(
                text("""
                    INSERT INTO tasks (title, description, priority, status, due_date, project_id,
                                       created_by_id, assigned_to_id, created_at, updated_at)
                    VALUES (:title, NULL, :priority, :status, :due, :pid, :cby, :ato, :now, :now)
                    RETURNING id
                """),
                {
                    "title": title or f"task{next(self._seq)}",
                    "priority": priority,
                    "status": status,
                    "due": due_date,
                    "pid": project_id,
                    "cby": created_by.id,
                    "ato": assigned_to.id if assigned_to else None,
                    "now": self._tick(),
                },
            ).scalar_one()


@pytest.fixture
def factory(engine):
    return Factory(engine)


@pytest.fixture
def conn(engine):
    with engine.connect() as c:
        yield c
