# taskboard/services/projects.py
from typing import Any, Dict, List, Mapping, Optional
from sqlalchemy import bindparam, text
from sqlalchemy.engine import Connection

from ..db.base import utcnow
from ..errors import NotFound, PermissionDenied
from .access import (
    Caller,
    can_delete_project,
    can_edit_project,
    can_read_project,
    project_visibility_predicate,
)
from .payloads import ProjectInput, UNSET, provided
from .rows import assert_users_exist, enum_value, iso, users_by_id

PROJECT_COLS = "p.id, p.name, p.description, p.status, p.owner_id, p.created_at, p.updated_at"

_UPDATABLE = {"name", "description", "status"}


def get_project_row(conn: Connection, project_id: int) -> Optional[Dict[str, Any]]:
    row = conn.execute(
        text(f"SELECT {PROJECT_COLS} FROM projects p WHERE p.id = :pid"),
        {"pid": project_id},
    ).mappings().one_or_none()
    return dict(row) if row else None


def get_member_ids(conn: Connection, project_id: int) -> List[int]:
    return list(conn.execute(
        text("SELECT user_id FROM project_members WHERE project_id = :pid"),
        {"pid": project_id},
    ).scalars())


def replace_members(conn: Connection, project_id: int, member_ids: List[int]) -> None:
    """
    Wholesale replace of the member set. Must run inside the caller's
    transaction so readers never observe the empty intermediate state.
    """
    conn.execute(
        text("DELETE FROM project_members WHERE project_id = :pid"),
        {"pid": project_id},
    )
    if member_ids:
        conn.execute(
            text("INSERT INTO project_members (project_id, user_id) VALUES (:pid, :uid)"),
            [{"pid": project_id, "uid": uid} for uid in member_ids],
        )


def enrich_projects(conn: Connection, rows: List[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Attach owner, members and a task status digest to each project row."""
    if not rows:
        return []
    pids = [r["id"] for r in rows]

    members: Dict[int, List[Dict[str, Any]]] = {pid: [] for pid in pids}
    member_rows = conn.execute(
        text("""
            SELECT pm.project_id, u.id, u.name, u.email
            FROM project_members pm
            JOIN users u ON u.id = pm.user_id
            WHERE pm.project_id IN :pids
            ORDER BY u.name, u.id
        """).bindparams(bindparam("pids", expanding=True)),
        {"pids": pids},
    ).mappings().all()
    for m in member_rows:
        members[m["project_id"]].append({"user": {"id": m["id"], "name": m["name"], "email": m["email"]}})

    tasks: Dict[int, List[Dict[str, Any]]] = {pid: [] for pid in pids}
    task_rows = conn.execute(
        text("SELECT id, project_id, status FROM tasks WHERE project_id IN :pids ORDER BY id")
        .bindparams(bindparam("pids", expanding=True)),
        {"pids": pids},
    ).mappings().all()
    for t in task_rows:
        tasks[t["project_id"]].append({"id": t["id"], "status": enum_value(t["status"])})

    owners = users_by_id(conn, (r["owner_id"] for r in rows))

    out = []
    for r in rows:
        out.append({
            "id": r["id"],
            "name": r["name"],
            "description": r["description"],
            "status": enum_value(r["status"]),
            "ownerId": r["owner_id"],
            "owner": owners.get(r["owner_id"]),
            "members": members[r["id"]],
            "tasks": tasks[r["id"]],
            "createdAt": iso(r["created_at"]),
            "updatedAt": iso(r["updated_at"]),
        })
    return out


def list_projects(conn: Connection, caller: Caller) -> List[Dict[str, Any]]:
    pred = project_visibility_predicate(caller)
    rows = conn.execute(
        text(f"""
            SELECT {PROJECT_COLS}
            FROM projects p
            WHERE {pred.sql}
            ORDER BY p.created_at DESC, p.id DESC
        """),
        pred.params,
    ).mappings().all()
    return enrich_projects(conn, rows)


def _load_enriched(conn: Connection, project_id: int) -> Dict[str, Any]:
    return enrich_projects(conn, [get_project_row(conn, project_id)])[0]


def get_project(conn: Connection, caller: Caller, project_id: int) -> Dict[str, Any]:
    project = get_project_row(conn, project_id)
    if project is None:
        raise NotFound("project not found")
    if not can_read_project(caller, project, get_member_ids(conn, project_id)):
        raise PermissionDenied()
    return enrich_projects(conn, [project])[0]


def create_project(conn: Connection, caller: Caller, inp: ProjectInput) -> Dict[str, Any]:
    assert_users_exist(conn, inp.member_ids, "memberIds")
    now = utcnow()
    project_id = conn.execute(
        text("""
            INSERT INTO projects (name, description, status, owner_id, created_at, updated_at)
            VALUES (:name, :description, :status, :owner_id, :now, :now)
            RETURNING id
        """),
        {
            "name": inp.name,
            "description": inp.description or None,
            "status": enum_value(inp.status),
            "owner_id": caller.id,
            "now": now,
        },
    ).scalar_one()
    replace_members(conn, project_id, inp.member_ids)
    return _load_enriched(conn, project_id)


def update_project(conn: Connection, caller: Caller, project_id: int, inp: ProjectInput) -> Dict[str, Any]:
    project = get_project_row(conn, project_id)
    if project is None:
        raise NotFound("project not found")
    if not can_edit_project(caller, project):
        raise PermissionDenied()

    changes = {k: enum_value(v) for k, v in provided(inp).items() if k in _UPDATABLE}
    if inp.member_ids is not UNSET:
        assert_users_exist(conn, inp.member_ids, "memberIds")

    if changes:
        sets = ", ".join(f"{k} = :{k}" for k in changes)
        conn.execute(
            text(f"UPDATE projects SET {sets}, updated_at = :now WHERE id = :pid"),
            {**changes, "now": utcnow(), "pid": project_id},
        )
    if inp.member_ids is not UNSET:
        replace_members(conn, project_id, inp.member_ids)
    return _load_enriched(conn, project_id)


def delete_project(conn: Connection, caller: Caller, project_id: int) -> None:
    project = get_project_row(conn, project_id)
    if project is None:
        raise NotFound("project not found")
    if not can_delete_project(caller, project):
        raise PermissionDenied()
    # tasks and memberships go with the project
    conn.execute(text("DELETE FROM tasks WHERE project_id = :pid"), {"pid": project_id})
    conn.execute(text("DELETE FROM project_members WHERE project_id = :pid"), {"pid": project_id})
    conn.execute(text("DELETE FROM projects WHERE id = :pid"), {"pid": project_id})
