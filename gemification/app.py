from __future__ import annotations

from flask import Flask

from .config import Settings, load_settings
from .gems.store import GemStore, build_store
from .routes import health_bp, slack_bp
from .services import build_services
from .slack import SlackBuildResult, build_slack


def _open_store(app: Flask, settings: Settings) -> GemStore | None:
    try:
        store = build_store(backend=settings.store_backend, database_url=settings.database_url)
    except Exception as e:
        # recorded for /slack/events and /health/ready; /health keeps answering
        err = f"{type(e).__name__}: {str(e) or type(e).__name__}"
        print(f"[store] init failed: {err}")
        app.extensions["gem_store_error"] = err
        return None
    app.extensions["gem_store_error"] = None
    return store


def create_app(settings: Settings | None = None) -> Flask:
    settings = settings or load_settings()

    app = Flask(__name__)
    app.extensions["settings"] = settings

    store = _open_store(app, settings)
    app.extensions["gem_store"] = store

    if store is None:
        app.extensions["services"] = None
        slack = SlackBuildResult(app=None, handler=None, error="gem store is unavailable")
    else:
        services = build_services(settings, store)
        app.extensions["services"] = services
        slack = build_slack(settings, services)
    app.extensions["slack_handler"] = slack.handler
    app.extensions["slack_error"] = slack.error

    for bp in (health_bp, slack_bp):
        app.register_blueprint(bp)
    return app
