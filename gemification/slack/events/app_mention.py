from __future__ import annotations

from ...dispatch import Dispatcher, Event, Scope
from ..context import team_context


def register(slack_app, services) -> None:  # noqa: ANN001
    dispatcher = Dispatcher()

    @slack_app.event("app_mention")
    def handle_mention(event, context, client):  # noqa: ANN001
        user_id = event.get("user")
        if not user_id or event.get("bot_id"):
            return
        with services.bots.watch(context.bot_token):
            ctx = team_context(services, context, client)
            dispatcher.handle(
                ctx,
                Event(
                    scope=Scope.DIRECT_MENTION,
                    team_id=ctx.team_id,
                    user_id=user_id,
                    channel_id=event["channel"],
                    text=event.get("text") or "",
                    ts=event.get("ts"),
                ),
            )
