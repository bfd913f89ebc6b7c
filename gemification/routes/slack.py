from __future__ import annotations

import traceback

from flask import Blueprint, Response, current_app, request

slack_bp = Blueprint("slack", __name__)


def _plain(text: str, status: int) -> Response:
    return Response(text, status=status, content_type="text/plain; charset=utf-8")


def _not_ready() -> Response:
    ext = current_app.extensions
    lines = ["Slack is not configured" + (f": {ext['slack_error']}" if ext.get("slack_error") else "")]
    if ext.get("gem_store_error"):
        lines.append(f"Gem store failed to start: {ext['gem_store_error']}")
    return _plain("\n".join(lines) + "\n", 500)


def _to_bolt() -> Response:
    handler = current_app.extensions.get("slack_handler")
    if handler is None:
        return _not_ready()
    try:
        return handler.handle(request)  # type: ignore[no-any-return]
    except Exception as e:
        print(f"[slack] handler failed: {type(e).__name__} {e} path={request.path} content_type={request.content_type}")
        print(traceback.format_exc())
        return _plain(f"Exception while handling the Slack request: `{type(e).__name__}`\n", 500)


@slack_bp.post("/slack/events")
def slack_events() -> Response:
    return _to_bolt()


# Bolt answers both itself in OAuth mode and 404s them in token mode
@slack_bp.get("/slack/install")
@slack_bp.get("/slack/oauth_redirect")
def slack_oauth() -> Response:
    return _to_bolt()
