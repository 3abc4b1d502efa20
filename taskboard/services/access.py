# taskboard/services/access.py
"""
Visibility and permission rules for projects and tasks.

Everything here is a pure function of (caller, entity snapshot). Nothing
touches the database: list queries splice the SQL predicates below into
their WHERE clause, and mutating handlers load the row first and ask
can_edit_* / can_delete_* before writing.

Visibility (who may list/read):
  project: owner, or a row in project_members
  task:    creator, assignee, or anyone who can see the task's project

Rights (who may change):
  edit project / delete project: owner or ADMIN
  edit task:   creator, assignee, project owner or ADMIN
  delete task: creator, project owner or ADMIN (assignee alone cannot)

ADMIN widens edit/delete rights only; it does not widen visibility.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, NamedTuple, Optional

from ..models.user import RoleEnum


@dataclass(frozen=True)
class Caller:
    id: int
    role: RoleEnum

    @property
    def is_admin(self) -> bool:
        return self.role == RoleEnum.ADMIN


class Predicate(NamedTuple):
    """A parenthesised SQL boolean expression plus its bind parameters."""
    sql: str
    params: Dict[str, Any]


# ---------- SQL predicates (scoped queries) ----------
def project_visibility_predicate(caller: Caller, alias: str = "p") -> Predicate:
    sql = (
        f"({alias}.owner_id = :viewer_id"
        f" OR EXISTS (SELECT 1 FROM project_members vm"
        f" WHERE vm.project_id = {alias}.id AND vm.user_id = :viewer_id))"
    )
    return Predicate(sql, {"viewer_id": caller.id})


def task_visibility_predicate(caller: Caller, alias: str = "t") -> Predicate:
    project_pred = project_visibility_predicate(caller, alias="vp")
    sql = (
        f"({alias}.created_by_id = :viewer_id"
        f" OR {alias}.assigned_to_id = :viewer_id"
        f" OR EXISTS (SELECT 1 FROM projects vp"
        f" WHERE vp.id = {alias}.project_id AND {project_pred.sql}))"
    )
    return Predicate(sql, dict(project_pred.params))


# ---------- in-memory checks (single entity snapshots) ----------
def is_project_visible(caller: Caller, project: Mapping[str, Any],
                       member_ids: Optional[Iterable[int]] = None) -> bool:
    if project["owner_id"] == caller.id:
        return True
    if member_ids is None:
        member_ids = project.get("member_ids") or ()
    return caller.id in set(member_ids)


def is_task_visible(caller: Caller, task: Mapping[str, Any],
                    project_member_ids: Optional[Iterable[int]] = None) -> bool:
    """`task` must carry project_owner_id next to its own columns."""
    if caller.id in (task["created_by_id"], task.get("assigned_to_id")):
        return True
    project = {"owner_id": task["project_owner_id"]}
    return is_project_visible(caller, project, project_member_ids or ())


def can_edit_project(caller: Caller, project: Mapping[str, Any]) -> bool:
    return project["owner_id"] == caller.id or caller.is_admin


def can_delete_project(caller: Caller, project: Mapping[str, Any]) -> bool:
    return can_edit_project(caller, project)


def can_read_project(caller: Caller, project: Mapping[str, Any],
                     member_ids: Optional[Iterable[int]] = None) -> bool:
    # single-project reads also open to whoever may edit it (admins)
    return is_project_visible(caller, project, member_ids) or can_edit_project(caller, project)


def can_edit_task(caller: Caller, task: Mapping[str, Any]) -> bool:
    return (
        caller.id == task["created_by_id"]
        or caller.id == task.get("assigned_to_id")
        or caller.id == task["project_owner_id"]
        or caller.is_admin
    )


def can_delete_task(caller: Caller, task: Mapping[str, Any]) -> bool:
    return (
        caller.id == task["created_by_id"]
        or caller.id == task["project_owner_id"]
        or caller.is_admin
    )
