from __future__ import annotations

from ...dispatch import Dispatcher, Event, Scope
from ..context import team_context


def register(slack_app, services) -> None:  # noqa: ANN001
    dispatcher = Dispatcher()

    @slack_app.event("message")
    def handle_message(event, context, client):  # noqa: ANN001
        # edits, joins, bot posts and our own replies arrive here too
        if event.get("subtype") or event.get("bot_id"):
            return
        user_id = event.get("user")
        if not user_id:
            return
        text = event.get("text") or ""
        scope = Scope.DIRECT_MESSAGE if event.get("channel_type") == "im" else Scope.AMBIENT
        bot_user_id = context.bot_user_id
        if scope is Scope.AMBIENT and bot_user_id and f"<@{bot_user_id}>" in text:
            # handled as an app_mention
            return

        with services.bots.watch(context.bot_token):
            ctx = team_context(services, context, client)
            dispatcher.handle(
                ctx,
                Event(
                    scope=scope,
                    team_id=ctx.team_id,
                    user_id=user_id,
                    channel_id=event["channel"],
                    text=text,
                    ts=event.get("ts"),
                ),
            )
