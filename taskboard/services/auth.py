# taskboard/services/auth.py
from werkzeug.security import generate_password_hash, check_password_hash
import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError
import re

from ..db.base import utcnow
from ..errors import Conflict, ValidationError
from ..models.user import RoleEnum
from .access import Caller

JWT_ALGORITHM = "HS256"

# ---- Email validation ----
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]{2,}$", re.I)

PUBLIC_USER_COLS = "id, email, name, role"


def _norm_email(v: Optional[str]) -> str:
    return (v or "").strip().lower()


def _assert_valid_email(email: str) -> None:
    if not EMAIL_RE.fullmatch(email):
        raise ValidationError("invalid_email", details={"email": "invalid email address"})


class AuthService:
    # ---------- password helpers ----------
    @staticmethod
    def hash_password(password: str) -> str:
        return generate_password_hash(password)

    @staticmethod
    def verify_password(hashed_password: str, password: str) -> bool:
        if not hashed_password:
            return False
        try:
            return check_password_hash(hashed_password, password)
        except ValueError:
            # unknown hash method stored for this row
            return False

    # ---------- JWT helpers ----------
    @staticmethod
    def generate_token(user: Dict[str, Any], secret: str, expires_hours: int = 24) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user["id"]),
            "email": user["email"],
            "role": getattr(user["role"], "value", user["role"]),
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(hours=expires_hours)).timestamp()),
        }
        return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)

    @staticmethod
    def verify_token(token: str, secret: str) -> Optional[Dict[str, Any]]:
        """Verify JWT token and return payload if valid."""
        try:
            if not token or not secret:
                return None
            if token.startswith("Bearer "):
                token = token[7:]
            return jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
        except (jwt.ExpiredSignatureError, jwt.InvalidTokenError, AttributeError):
            return None

    # ---------- user flows ----------
    @staticmethod
    def authenticate_user(conn: Connection, email: str, password: str) -> Optional[Dict[str, Any]]:
        """Return the public user row when the credentials match, else None."""
        email = _norm_email(email)
        if not email or not password or not EMAIL_RE.fullmatch(email):
            return None

        row = conn.execute(
            text(f"SELECT {PUBLIC_USER_COLS}, password_hash FROM users WHERE lower(email) = :email"),
            {"email": email},
        ).mappings().first()

        if not row or not AuthService.verify_password(row["password_hash"], password):
            return None
        user = dict(row)
        user.pop("password_hash")
        return user

    @staticmethod
    def load_caller(conn: Connection, user_id: int) -> Optional[Caller]:
        """Resolve the caller from the store; the stored role wins over any token claim."""
        role = conn.execute(
            text("SELECT role FROM users WHERE id = :id"),
            {"id": user_id},
        ).scalar()
        if role is None:
            return None
        return Caller(id=user_id, role=RoleEnum(role))

    @staticmethod
    def get_user_by_id(conn: Connection, user_id: int) -> Optional[Dict[str, Any]]:
        row = conn.execute(
            text(f"SELECT {PUBLIC_USER_COLS} FROM users WHERE id = :user_id"),
            {"user_id": user_id},
        ).mappings().first()
        return dict(row) if row else None

    @staticmethod
    def get_all_users(conn: Connection) -> list:
        rows = conn.execute(
            text(f"SELECT {PUBLIC_USER_COLS} FROM users ORDER BY name, email")
        ).mappings().all()
        return [dict(r) for r in rows]

    @staticmethod
    def create_user(conn: Connection, user_data: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a user; caller owns the transaction."""
        email = _norm_email(user_data.get("email"))
        _assert_valid_email(email)

        try:
            role = RoleEnum(str(user_data.get("role") or RoleEnum.MEMBER.value).strip().upper())
        except ValueError:
            raise ValidationError(details={"role": "must be one of MEMBER, ADMIN"})

        password = user_data.get("password") or ""
        if not password:
            raise ValidationError(details={"password": "required"})

        existing = conn.execute(
            text("SELECT id FROM users WHERE lower(email) = :email"),
            {"email": email},
        ).scalar()
        if existing:
            raise Conflict("email_exists")

        now = utcnow()
        try:
            row = conn.execute(
                text(f"""
                    INSERT INTO users (email, name, role, password_hash, created_at, updated_at)
                    VALUES (:email, :name, :role, :password_hash, :now, :now)
                    RETURNING {PUBLIC_USER_COLS}
                """),
                {
                    "email": email,
                    "name": (user_data.get("name") or "").strip() or None,
                    "role": role.value,
                    "password_hash": AuthService.hash_password(password),
                    "now": now,
                },
            ).mappings().one()
        except IntegrityError:
            # lost a race with another insert of the same email
            raise Conflict("email_exists")
        return dict(row)
