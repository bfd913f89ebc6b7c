from __future__ import annotations

import os
from dataclasses import dataclass

from slack_bolt import App
from slack_bolt.adapter.flask import SlackRequestHandler
from slack_bolt.oauth.oauth_settings import OAuthSettings
from slack_sdk.oauth.installation_store import FileInstallationStore
from slack_sdk.oauth.state_store import FileOAuthStateStore

from ..config import Settings
from ..services import Services
from .install import build_callback_options, install_in_background
from .registry import register_all

SCOPES = [
    "app_mentions:read",
    "channels:history",
    "channels:read",
    "chat:write",
    "groups:history",
    "groups:read",
    "im:history",
    "im:read",
    "im:write",
    "reactions:write",
    "users:read",
]


@dataclass(frozen=True)
class SlackBuildResult:
    app: object | None
    handler: object | None
    error: str | None


def _oauth_settings(settings: Settings, services: Services) -> OAuthSettings:
    base = settings.installation_dir
    return OAuthSettings(
        client_id=settings.slack_client_id,
        client_secret=settings.slack_client_secret,
        scopes=SCOPES,
        installation_store=FileInstallationStore(base_dir=base),
        state_store=FileOAuthStateStore(expiration_seconds=600, base_dir=os.path.join(base, "states")),
        install_path="/slack/install",
        redirect_uri_path="/slack/oauth_redirect",
        callback_options=build_callback_options(services),
    )


def build_slack(settings: Settings, services: Services) -> SlackBuildResult:
    """
    OAuth mode (SLACK_CLIENT_ID / SLACK_CLIENT_SECRET) serves any number of
    workspaces through /slack/install. Token mode (SLACK_BOT_TOKEN) serves one.
    """
    if not settings.slack_signing_secret or not (settings.oauth_enabled or settings.slack_bot_token):
        return SlackBuildResult(
            app=None,
            handler=None,
            error="SLACK_SIGNING_SECRET and SLACK_BOT_TOKEN (or SLACK_CLIENT_ID / SLACK_CLIENT_SECRET) are not set",
        )

    try:
        if settings.oauth_enabled:
            slack_app = App(
                signing_secret=settings.slack_signing_secret,
                oauth_settings=_oauth_settings(settings, services),
                process_before_response=False,
            )
        else:
            slack_app = App(
                token=settings.slack_bot_token,
                signing_secret=settings.slack_signing_secret,
                # Slack expects a 200 within 3 seconds; listeners run after the ack
                process_before_response=False,
            )
    except Exception as e:
        # Bolt may fail at startup (invalid_auth etc). /health must still come up.
        err = f"{type(e).__name__}: {str(e) or type(e).__name__}"
        print(f"[slack] build failed: {err}")
        return SlackBuildResult(app=None, handler=None, error=err)

    register_all(slack_app, services)
    handler = SlackRequestHandler(slack_app)

    if not settings.oauth_enabled and settings.installer_user_id:
        # restarts only resume setup for a team that never finished it
        install_in_background(
            services,
            token=settings.slack_bot_token,
            installer_id=settings.installer_user_id,
            skip_configured=True,
        )

    mode = "oauth" if settings.oauth_enabled else "token"
    print(f"[slack] ready mode={mode}")
    return SlackBuildResult(app=slack_app, handler=handler, error=None)
