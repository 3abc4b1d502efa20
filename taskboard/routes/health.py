from flask import Blueprint, jsonify

health_bp = Blueprint("health", __name__)

@health_bp.get("/healthz")
def health():
    return jsonify(ok=True)
