# taskboard/routes/projects.py
from __future__ import annotations
from flask import Blueprint, request, jsonify, current_app, g

from .. import get_conn
from ..auth.guards import require_auth
from ..services import projects as svc
from ..services.payloads import parse_project_create, parse_project_update

projects_bp = Blueprint("projects", __name__)

# validate -> exists -> permitted -> mutate -> return enriched entity
# writes run in one transaction; membership replace-all included

@projects_bp.get("/projects")
@require_auth
def list_projects():
    with get_conn() as conn:
        return jsonify(svc.list_projects(conn, g.caller)), 200


@projects_bp.post("/projects")
@require_auth
def create_project():
    inp = parse_project_create(request.get_json(silent=True) or {})
    with get_conn() as conn, conn.begin():
        project = svc.create_project(conn, g.caller, inp)
    current_app.logger.info("project %s created by user %s", project["id"], g.caller.id)
    return jsonify(project), 201


@projects_bp.get("/projects/<int:project_id>")
@require_auth
def get_project(project_id: int):
    with get_conn() as conn:
        return jsonify(svc.get_project(conn, g.caller, project_id)), 200


@projects_bp.route("/projects/<int:project_id>", methods=["PUT", "PATCH"])
@require_auth
def update_project(project_id: int):
    inp = parse_project_update(request.get_json(silent=True))
    with get_conn() as conn, conn.begin():
        project = svc.update_project(conn, g.caller, project_id, inp)
    return jsonify(project), 200


@projects_bp.delete("/projects/<int:project_id>")
@require_auth
def delete_project(project_id: int):
    with get_conn() as conn, conn.begin():
        svc.delete_project(conn, g.caller, project_id)
    current_app.logger.info("project %s deleted by user %s", project_id, g.caller.id)
    return jsonify({"deleted": True, "id": project_id}), 200
