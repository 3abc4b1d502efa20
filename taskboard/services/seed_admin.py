# taskboard/services/seed_admin.py
import logging
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..errors import Conflict
from .auth import AuthService

log = logging.getLogger(__name__)

SEEDED = "seeded"
ALREADY_SEEDED = "already seeded"
SKIPPED = "skipped"


def ensure_seeded(engine: Engine, email: str, password: str, name: str = "System Admin") -> str:
    """
    Create the default ADMIN account unless a user with `email` already exists.
    Safe to call on every boot. A store fault while checking is logged and
    seeding is skipped so startup carries on.
    """
    try:
        with engine.connect() as conn:
            existing = conn.execute(
                text("SELECT id FROM users WHERE lower(email) = :email"),
                {"email": email.strip().lower()},
            ).scalar()
    except SQLAlchemyError:
        log.exception("Seeding check failed, skipping admin seeding")
        return SKIPPED

    if existing:
        log.info("Database already seeded")
        return ALREADY_SEEDED

    try:
        with engine.connect() as conn, conn.begin():
            admin = AuthService.create_user(conn, {
                "email": email,
                "password": password,
                "role": "ADMIN",
                "name": name,
            })
    except Conflict:
        # another worker inserted it after our check
        log.info("Database already seeded")
        return ALREADY_SEEDED
    log.info("Created default admin user: %s", admin["email"])
    return SEEDED
