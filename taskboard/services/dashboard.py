# taskboard/services/dashboard.py
"""
Dashboard figures for one caller.

Every aggregate is computed over the same scope the list endpoints use
(access.project_visibility_predicate / access.task_visibility_predicate),
except recent_tasks and upcoming_tasks which are personal by definition.
Nothing is cached; each call reads the current state of the store.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy import text
from sqlalchemy.engine import Connection

from ..db.base import utcnow
from ..models.task import TaskStatusEnum
from .access import Caller, project_visibility_predicate, task_visibility_predicate
from .rows import enum_value
from .tasks import TASK_COLS, TASK_FROM, enrich_tasks

DEFAULT_LIMIT = 5


def project_count(conn: Connection, caller: Caller) -> int:
    pred = project_visibility_predicate(caller)
    return conn.execute(
        text(f"SELECT COUNT(*) FROM projects p WHERE {pred.sql}"), pred.params
    ).scalar_one()


def task_count(conn: Connection, caller: Caller) -> int:
    pred = task_visibility_predicate(caller)
    return conn.execute(
        text(f"SELECT COUNT(*) FROM tasks t WHERE {pred.sql}"), pred.params
    ).scalar_one()


def assigned_open_count(conn: Connection, caller: Caller) -> int:
    return conn.execute(
        text("SELECT COUNT(*) FROM tasks t WHERE t.assigned_to_id = :uid AND t.status <> :done"),
        {"uid": caller.id, "done": TaskStatusEnum.DONE.value},
    ).scalar_one()


def _counts_by(conn: Connection, caller: Caller, column: str) -> Dict[str, int]:
    pred = task_visibility_predicate(caller)
    rows = conn.execute(
        text(f"""
            SELECT t.{column} AS k, COUNT(*) AS n
            FROM tasks t
            WHERE {pred.sql}
            GROUP BY t.{column}
        """),
        pred.params,
    ).all()
    # values with no tasks are omitted; readers default them to 0
    return {enum_value(k): n for k, n in rows}


def counts_by_status(conn: Connection, caller: Caller) -> Dict[str, int]:
    return _counts_by(conn, caller, "status")


def counts_by_priority(conn: Connection, caller: Caller) -> Dict[str, int]:
    return _counts_by(conn, caller, "priority")


def recent_tasks(conn: Connection, caller: Caller, limit: int = DEFAULT_LIMIT) -> List[Dict[str, Any]]:
    """Tasks the caller created or holds; membership alone does not qualify."""
    rows = conn.execute(
        text(f"""
            SELECT {TASK_COLS}
            FROM {TASK_FROM}
            WHERE t.created_by_id = :uid OR t.assigned_to_id = :uid
            ORDER BY t.created_at DESC, t.id DESC
            LIMIT :lim
        """),
        {"uid": caller.id, "lim": limit},
    ).mappings().all()
    return enrich_tasks(conn, rows)


def upcoming_tasks(conn: Connection, caller: Caller, limit: int = DEFAULT_LIMIT,
                   now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Open tasks assigned to the caller that are due now or later, soonest first."""
    rows = conn.execute(
        text(f"""
            SELECT {TASK_COLS}
            FROM {TASK_FROM}
            WHERE t.assigned_to_id = :uid
              AND t.status <> :done
              AND t.due_date IS NOT NULL
              AND t.due_date >= :now
            ORDER BY t.due_date ASC, t.id ASC
            LIMIT :lim
        """),
        {"uid": caller.id, "done": TaskStatusEnum.DONE.value, "now": now or utcnow(), "lim": limit},
    ).mappings().all()
    return enrich_tasks(conn, rows)


def completion_pct(completed: int, total: int) -> int:
    if total == 0:
        return 0
    # half rounds up
    return int(completed * 100 / total + 0.5)


def project_overview(conn: Connection, caller: Caller, limit: int = DEFAULT_LIMIT) -> List[Dict[str, Any]]:
    pred = project_visibility_predicate(caller)
    rows = conn.execute(
        text(f"""
            SELECT p.id, p.name, p.status,
                   COUNT(t.id) AS total,
                   COALESCE(SUM(CASE WHEN t.status = :done THEN 1 ELSE 0 END), 0) AS completed
            FROM projects p
            LEFT JOIN tasks t ON t.project_id = p.id
            WHERE {pred.sql}
            GROUP BY p.id, p.name, p.status, p.created_at
            ORDER BY p.created_at DESC, p.id DESC
            LIMIT :lim
        """),
        {**pred.params, "done": TaskStatusEnum.DONE.value, "lim": limit},
    ).mappings().all()
    return [
        {
            "id": r["id"],
            "name": r["name"],
            "status": enum_value(r["status"]),
            "totalTasks": int(r["total"]),
            "completedTasks": int(r["completed"]),
            "completionPct": completion_pct(int(r["completed"]), int(r["total"])),
        }
        for r in rows
    ]


def build_dashboard(conn: Connection, caller: Caller) -> Dict[str, Any]:
    now = utcnow()
    return {
        "stats": {
            "totalProjects": project_count(conn, caller),
            "totalTasks": task_count(conn, caller),
            "assignedTasks": assigned_open_count(conn, caller),
        },
        "tasksByStatus": counts_by_status(conn, caller),
        "tasksByPriority": counts_by_priority(conn, caller),
        "recentTasks": recent_tasks(conn, caller),
        "upcomingTasks": upcoming_tasks(conn, caller, now=now),
        "projectStats": project_overview(conn, caller),
    }
