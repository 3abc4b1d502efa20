# taskboard/routes/tasks.py
from __future__ import annotations
from flask import Blueprint, request, jsonify, g

from .. import get_conn
from ..auth.guards import require_auth
from ..services import tasks as svc
from ..services.payloads import parse_task_create, parse_task_filters, parse_task_update

tasks_bp = Blueprint("tasks", __name__)

@tasks_bp.get("/tasks")
@require_auth
def list_tasks():
    """
    GET /api/tasks?projectId=&status=&priority=&assignedToMe=true
    Filters narrow the caller's visible tasks; they never widen them.
    """
    filters = parse_task_filters(request.args)
    with get_conn() as conn:
        return jsonify(svc.list_tasks(conn, g.caller, filters)), 200


@tasks_bp.post("/tasks")
@require_auth
def create_task():
    inp = parse_task_create(request.get_json(silent=True) or {})
    with get_conn() as conn, conn.begin():
        task = svc.create_task(conn, g.caller, inp)
    return jsonify(task), 201


@tasks_bp.get("/tasks/<int:task_id>")
@require_auth
def get_task(task_id: int):
    with get_conn() as conn:
        return jsonify(svc.get_task(conn, g.caller, task_id)), 200


@tasks_bp.route("/tasks/<int:task_id>", methods=["PUT", "PATCH"])
@require_auth
def update_task(task_id: int):
    inp = parse_task_update(request.get_json(silent=True))
    with get_conn() as conn, conn.begin():
        task = svc.update_task(conn, g.caller, task_id, inp)
    return jsonify(task), 200


@tasks_bp.delete("/tasks/<int:task_id>")
@require_auth
def delete_task(task_id: int):
    with get_conn() as conn, conn.begin():
        svc.delete_task(conn, g.caller, task_id)
    return jsonify({"deleted": True, "id": task_id}), 200
