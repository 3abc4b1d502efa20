# taskboard/services/payloads.py
"""
Request body parsing for projects and tasks.

Every field of an input structure is one of three things: UNSET (key absent,
leave the column alone), None (explicit null, clear the column) or a value.
Parsers collect per-field problems and raise ValidationError with all of them.
"""
from __future__ import annotations
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from ..errors import ValidationError
from ..models.project import ProjectStatusEnum
from ..models.task import TaskPriorityEnum, TaskStatusEnum


class _Unset:
    _inst = None

    def __new__(cls):
        if cls._inst is None:
            cls._inst = super().__new__(cls)
        return cls._inst

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass
class ProjectInput:
    name: Any = UNSET
    description: Any = UNSET
    status: Any = UNSET
    member_ids: Any = UNSET


@dataclass
class TaskInput:
    title: Any = UNSET
    description: Any = UNSET
    priority: Any = UNSET
    status: Any = UNSET
    due_date: Any = UNSET
    project_id: Any = UNSET
    assigned_to_id: Any = UNSET


@dataclass
class TaskFilters:
    project_id: Optional[int] = None
    status: Optional[TaskStatusEnum] = None
    priority: Optional[TaskPriorityEnum] = None
    assigned_to_me: bool = False


def provided(inp) -> Dict[str, Any]:
    """Fields the client actually sent (explicit nulls included)."""
    return {f.name: getattr(inp, f.name) for f in fields(inp) if getattr(inp, f.name) is not UNSET}


# ---------- field coercion ----------
def _as_id(v: Any) -> int:
    if isinstance(v, bool):
        raise ValueError
    if isinstance(v, int):
        return v
    if isinstance(v, str) and v.strip().isdigit():
        return int(v.strip())
    raise ValueError


def _as_enum(enum_cls, v: Any):
    if not isinstance(v, str):
        raise ValueError
    return enum_cls(v.strip().upper())


def _as_datetime(v: Any) -> datetime:
    if not isinstance(v, str) or not v.strip():
        raise ValueError
    s = v.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _allowed(enum_cls) -> str:
    return "must be one of " + ", ".join(e.value for e in enum_cls)


def _require_object(data: Any) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValidationError("JSON object body required")
    return data


def _text(data, key, errors, *, required=False, nullable=True):
    if key not in data:
        if required:
            errors[key] = "required"
        return UNSET
    v = data[key]
    if v is None:
        if not nullable:
            errors[key] = "must not be null"
        return None
    if not isinstance(v, str):
        errors[key] = "must be a string"
        return UNSET
    v = v.strip()
    if not v:
        if nullable:
            return None  # blank clears
        errors[key] = "must not be empty"
    return v


def _enum(data, key, enum_cls, errors):
    if key not in data:
        return UNSET
    try:
        return _as_enum(enum_cls, data[key])
    except ValueError:
        errors[key] = _allowed(enum_cls)
        return UNSET


def _optional_id(data, key, errors):
    if key not in data:
        return UNSET
    if data[key] is None:
        return None
    try:
        return _as_id(data[key])
    except ValueError:
        errors[key] = "must be an integer id or null"
        return UNSET


# ---------- projects ----------
def _member_ids(data, errors):
    if "memberIds" not in data:
        return UNSET
    raw = data["memberIds"]
    if not isinstance(raw, list):
        errors["memberIds"] = "must be an array of user ids"
        return UNSET
    out: List[int] = []
    try:
        for v in raw:
            uid = _as_id(v)
            if uid not in out:
                out.append(uid)
    except ValueError:
        errors["memberIds"] = "must be an array of user ids"
        return UNSET
    return out


def parse_project_create(data: Any) -> ProjectInput:
    data = _require_object(data)
    errors: Dict[str, str] = {}
    inp = ProjectInput(
        name=_text(data, "name", errors, required=True, nullable=False),
        description=_text(data, "description", errors),
        status=_enum(data, "status", ProjectStatusEnum, errors),
        member_ids=_member_ids(data, errors),
    )
    if errors:
        raise ValidationError(details=errors)
    if inp.status is UNSET:
        inp.status = ProjectStatusEnum.ACTIVE
    if inp.member_ids is UNSET:
        inp.member_ids = []
    return inp


def parse_project_update(data: Any) -> ProjectInput:
    data = _require_object(data)
    errors: Dict[str, str] = {}
    inp = ProjectInput(
        name=_text(data, "name", errors, nullable=False),
        description=_text(data, "description", errors),
        status=_enum(data, "status", ProjectStatusEnum, errors),
        member_ids=_member_ids(data, errors),
    )
    if errors:
        raise ValidationError(details=errors)
    return inp


# ---------- tasks ----------
def _due_date(data, errors):
    if "dueDate" not in data:
        return UNSET
    v = data["dueDate"]
    if v is None or v == "":
        return None
    try:
        return _as_datetime(v)
    except ValueError:
        errors["dueDate"] = "must be an ISO-8601 date or null"
        return UNSET


def parse_task_create(data: Any) -> TaskInput:
    data = _require_object(data)
    errors: Dict[str, str] = {}
    project_id = UNSET
    if "projectId" not in data or data["projectId"] is None:
        errors["projectId"] = "required"
    else:
        try:
            project_id = _as_id(data["projectId"])
        except ValueError:
            errors["projectId"] = "must be an integer id"

    inp = TaskInput(
        title=_text(data, "title", errors, required=True, nullable=False),
        description=_text(data, "description", errors),
        priority=_enum(data, "priority", TaskPriorityEnum, errors),
        status=_enum(data, "status", TaskStatusEnum, errors),
        due_date=_due_date(data, errors),
        project_id=project_id,
        assigned_to_id=_optional_id(data, "assignedToId", errors),
    )
    if errors:
        raise ValidationError(details=errors)
    if inp.priority is UNSET:
        inp.priority = TaskPriorityEnum.MEDIUM
    if inp.status is UNSET:
        inp.status = TaskStatusEnum.TODO
    return inp


def parse_task_update(data: Any) -> TaskInput:
    data = _require_object(data)
    errors: Dict[str, str] = {}
    if "projectId" in data:
        errors["projectId"] = "cannot be changed"
    inp = TaskInput(
        title=_text(data, "title", errors, nullable=False),
        description=_text(data, "description", errors),
        priority=_enum(data, "priority", TaskPriorityEnum, errors),
        status=_enum(data, "status", TaskStatusEnum, errors),
        due_date=_due_date(data, errors),
        assigned_to_id=_optional_id(data, "assignedToId", errors),
    )
    if errors:
        raise ValidationError(details=errors)
    return inp


def parse_task_filters(args: Mapping[str, str]) -> TaskFilters:
    errors: Dict[str, str] = {}
    filters = TaskFilters()

    if args.get("projectId"):
        try:
            filters.project_id = _as_id(args["projectId"])
        except ValueError:
            errors["projectId"] = "must be an integer id"
    if args.get("status"):
        try:
            filters.status = _as_enum(TaskStatusEnum, args["status"])
        except ValueError:
            errors["status"] = _allowed(TaskStatusEnum)
    if args.get("priority"):
        try:
            filters.priority = _as_enum(TaskPriorityEnum, args["priority"])
        except ValueError:
            errors["priority"] = _allowed(TaskPriorityEnum)
    filters.assigned_to_me = (args.get("assignedToMe") or "").strip().lower() == "true"

    if errors:
        raise ValidationError(details=errors)
    return filters
