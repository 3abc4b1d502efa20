# taskboard/services/tasks.py
from typing import Any, Dict, List, Mapping, Optional
from sqlalchemy import text
from sqlalchemy.engine import Connection

from ..db.base import utcnow
from ..errors import NotFound, PermissionDenied
from .access import (
    Caller,
    can_delete_task,
    can_edit_task,
    is_project_visible,
    is_task_visible,
    task_visibility_predicate,
)
from .payloads import TaskFilters, TaskInput, UNSET, provided
from .projects import get_member_ids, get_project_row
from .rows import assert_users_exist, enum_value, iso, users_by_id

TASK_COLS = """
    t.id, t.title, t.description, t.priority, t.status, t.due_date,
    t.project_id, t.created_by_id, t.assigned_to_id, t.created_at, t.updated_at,
    p.name AS project_name, p.owner_id AS project_owner_id
"""

TASK_FROM = "tasks t JOIN projects p ON p.id = t.project_id"

# priority DESC, due date ASC with undated last, newest first
TASK_ORDER = """
    CASE t.priority WHEN 'HIGH' THEN 3 WHEN 'MEDIUM' THEN 2 ELSE 1 END DESC,
    CASE WHEN t.due_date IS NULL THEN 1 ELSE 0 END,
    t.due_date ASC,
    t.created_at DESC,
    t.id DESC
"""

_UPDATABLE = {"title", "description", "priority", "status", "due_date", "assigned_to_id"}


def get_task_row(conn: Connection, task_id: int) -> Optional[Dict[str, Any]]:
    row = conn.execute(
        text(f"SELECT {TASK_COLS} FROM {TASK_FROM} WHERE t.id = :tid"),
        {"tid": task_id},
    ).mappings().one_or_none()
    return dict(row) if row else None


def enrich_tasks(conn: Connection, rows: List[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    users = users_by_id(conn, [r["created_by_id"] for r in rows] + [r["assigned_to_id"] for r in rows])
    return [
        {
            "id": r["id"],
            "title": r["title"],
            "description": r["description"],
            "priority": enum_value(r["priority"]),
            "status": enum_value(r["status"]),
            "dueDate": iso(r["due_date"]),
            "projectId": r["project_id"],
            "project": {"id": r["project_id"], "name": r["project_name"]},
            "createdBy": users.get(r["created_by_id"]),
            "assignedTo": users.get(r["assigned_to_id"]),
            "createdAt": iso(r["created_at"]),
            "updatedAt": iso(r["updated_at"]),
        }
        for r in rows
    ]


def list_tasks(conn: Connection, caller: Caller, filters: TaskFilters) -> List[Dict[str, Any]]:
    pred = task_visibility_predicate(caller)
    where = [pred.sql]
    params: Dict[str, Any] = dict(pred.params)

    # extra constraints AND onto the visibility scope
    if filters.project_id is not None:
        where.append("t.project_id = :f_project_id")
        params["f_project_id"] = filters.project_id
    if filters.status is not None:
        where.append("t.status = :f_status")
        params["f_status"] = filters.status.value
    if filters.priority is not None:
        where.append("t.priority = :f_priority")
        params["f_priority"] = filters.priority.value
    if filters.assigned_to_me:
        where.append("t.assigned_to_id = :f_me")
        params["f_me"] = caller.id

    rows = conn.execute(
        text(f"""
            SELECT {TASK_COLS}
            FROM {TASK_FROM}
            WHERE {" AND ".join(where)}
            ORDER BY {TASK_ORDER}
        """),
        params,
    ).mappings().all()
    return enrich_tasks(conn, rows)


def get_task(conn: Connection, caller: Caller, task_id: int) -> Dict[str, Any]:
    task = get_task_row(conn, task_id)
    if task is None:
        raise NotFound("task not found")
    visible = is_task_visible(caller, task, get_member_ids(conn, task["project_id"]))
    if not (visible or can_edit_task(caller, task)):
        raise PermissionDenied()
    return enrich_tasks(conn, [task])[0]


def create_task(conn: Connection, caller: Caller, inp: TaskInput) -> Dict[str, Any]:
    project = get_project_row(conn, inp.project_id)
    if project is None:
        raise NotFound("project not found")
    if not is_project_visible(caller, project, get_member_ids(conn, inp.project_id)):
        raise PermissionDenied()
    if inp.assigned_to_id:
        assert_users_exist(conn, [inp.assigned_to_id], "assignedToId")

    now = utcnow()
    task_id = conn.execute(
        text("""
            INSERT INTO tasks (title, description, priority, status, due_date,
                               project_id, created_by_id, assigned_to_id, created_at, updated_at)
            VALUES (:title, :description, :priority, :status, :due_date,
                    :project_id, :created_by_id, :assigned_to_id, :now, :now)
            RETURNING id
        """),
        {
            "title": inp.title,
            "description": inp.description or None,
            "priority": enum_value(inp.priority),
            "status": enum_value(inp.status),
            "due_date": inp.due_date or None,
            "project_id": inp.project_id,
            "created_by_id": caller.id,
            "assigned_to_id": inp.assigned_to_id or None,
            "now": now,
        },
    ).scalar_one()
    return enrich_tasks(conn, [get_task_row(conn, task_id)])[0]


def update_task(conn: Connection, caller: Caller, task_id: int, inp: TaskInput) -> Dict[str, Any]:
    task = get_task_row(conn, task_id)
    if task is None:
        raise NotFound("task not found")
    if not can_edit_task(caller, task):
        raise PermissionDenied()
    if inp.assigned_to_id not in (UNSET, None):
        assert_users_exist(conn, [inp.assigned_to_id], "assignedToId")

    # omitted keys stay as they are, explicit nulls clear the column
    changes = {k: enum_value(v) for k, v in provided(inp).items() if k in _UPDATABLE}
    if changes:
        sets = ", ".join(f"{col} = :{col}" for col in changes)
        conn.execute(
            text(f"UPDATE tasks SET {sets}, updated_at = :now WHERE id = :tid"),
            {**changes, "now": utcnow(), "tid": task_id},
        )
    return enrich_tasks(conn, [get_task_row(conn, task_id)])[0]


def delete_task(conn: Connection, caller: Caller, task_id: int) -> None:
    task = get_task_row(conn, task_id)
    if task is None:
        raise NotFound("task not found")
    if not can_delete_task(caller, task):
        raise PermissionDenied()
    conn.execute(text("DELETE FROM tasks WHERE id = :tid"), {"tid": task_id})
