# taskboard/config.py
import os
from typing import Any, Dict

_TRUE = {"1", "true", "yes", "on"}


def _flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in _TRUE


def load_config() -> Dict[str, Any]:
    """Read settings from the environment (call load_dotenv() first)."""
    return {
        "DATABASE_URL": os.environ.get("DATABASE_URL"),
        "JWT_SECRET": os.environ.get("JWT_SECRET", "dev-secret-change-me"),
        "JWT_EXPIRES_HOURS": int(os.environ.get("JWT_EXPIRES_HOURS", "24")),
        "SEED_ADMIN": _flag("SEED_ADMIN", "true"),
        "SEED_ADMIN_EMAIL": os.environ.get("SEED_ADMIN_EMAIL", "admin@example.com"),
        "SEED_ADMIN_PASSWORD": os.environ.get("SEED_ADMIN_PASSWORD", "admin123"),
        "SEED_ADMIN_NAME": os.environ.get("SEED_ADMIN_NAME", "System Admin"),
        "AUTO_CREATE_TABLES": _flag("AUTO_CREATE_TABLES", "false"),
        "CORS_ORIGINS": os.environ.get("CORS_ORIGINS", "*"),
        "LOG_LEVEL": os.environ.get("LOG_LEVEL", "INFO").upper(),
    }
