from __future__ import annotations

import threading
import traceback

from slack_bolt.oauth.callback_options import CallbackOptions, FailureArgs, SuccessArgs
from slack_bolt.response import BoltResponse

from ..chat import SlackChat
from ..onboarding import run_installation
from ..services import Services


def install_team(services: Services, *, token: str, installer_id: str, skip_configured: bool = False) -> None:
    """Connects the bot for `token` and walks the installer through setup."""
    with services.bots.watch(token):
        bot, created = services.bots.spawn(token)
        if not created:
            print(f"[install] bot already online team={bot.team_id}")
        ctx = services.context(team_id=bot.team_id, chat=SlackChat(bot.client))
        if skip_configured and ctx.store.is_team_configured(team_id=ctx.team_id):
            print(f"[install] team={ctx.team_id} is already configured; nothing to do")
            return
        run_installation(ctx, installer_id=installer_id)


def install_in_background(
    services: Services,
    *,
    token: str,
    installer_id: str,
    skip_configured: bool = False,
) -> threading.Thread:
    def _run() -> None:
        try:
            install_team(services, token=token, installer_id=installer_id, skip_configured=skip_configured)
        except Exception as e:
            print(f"[install] failed: {type(e).__name__} {e}")
            print(traceback.format_exc())

    # the OAuth redirect must answer before the setup conversation starts
    t = threading.Thread(target=_run, name="gemification-install", daemon=True)
    t.start()
    return t


def build_callback_options(services: Services) -> CallbackOptions:
    def success(args: SuccessArgs) -> BoltResponse:
        inst = args.installation
        if inst.bot_token and inst.user_id:
            install_in_background(services, token=inst.bot_token, installer_id=inst.user_id)
        else:
            print(f"[install] installation without bot token team={inst.team_id}")
        return args.default.success(args)

    def failure(args: FailureArgs) -> BoltResponse:
        print(f"[install] OAuth failed: {args.reason}")
        return args.default.failure(args)

    return CallbackOptions(success=success, failure=failure)
