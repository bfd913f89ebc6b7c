from __future__ import annotations

from flask import Blueprint, Response, current_app, jsonify

health_bp = Blueprint("health", __name__)


@health_bp.get("/health")
def health() -> Response:
    # liveness only: answers whether or not Slack and the store came up
    return Response("ok\n", status=200, content_type="text/plain; charset=utf-8")


@health_bp.get("/health/ready")
def ready() -> tuple[Response, int]:
    ext = current_app.extensions
    body = {
        "store": ext.get("gem_store_error") or "ok",
        "slack": ext.get("slack_error") or "ok",
    }
    status = 200 if ext.get("gem_store") is not None and ext.get("slack_handler") is not None else 503
    return jsonify(body), status
