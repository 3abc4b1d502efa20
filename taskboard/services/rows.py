# taskboard/services/rows.py
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional
from sqlalchemy import bindparam, text
from sqlalchemy.engine import Connection

from ..errors import ValidationError


def iso(v: Any) -> Any:
    return v.isoformat() if isinstance(v, datetime) else v


def enum_value(v: Any) -> Any:
    return getattr(v, "value", v)


def user_summary(row: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    return {"id": row["id"], "name": row["name"], "email": row["email"]}


def users_by_id(conn: Connection, ids: Iterable[int]) -> Dict[int, Dict[str, Any]]:
    ids = sorted({i for i in ids if i is not None})
    if not ids:
        return {}
    rows = conn.execute(
        text("SELECT id, name, email FROM users WHERE id IN :ids")
        .bindparams(bindparam("ids", expanding=True)),
        {"ids": ids},
    ).mappings().all()
    return {r["id"]: user_summary(r) for r in rows}


def assert_users_exist(conn: Connection, ids: List[int], field: str) -> None:
    """Referential check done up front so a bad id is a 400, not a store fault."""
    missing = sorted(set(ids) - set(users_by_id(conn, ids)))
    if missing:
        raise ValidationError(details={field: f"unknown user id(s): {', '.join(map(str, missing))}"})
