from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Settings:
    port: int
    slack_bot_token: str | None
    slack_signing_secret: str | None
    slack_client_id: str | None = None
    slack_client_secret: str | None = None
    installation_dir: str = "./data/installations"
    # token mode only: the user walked through team bootstrap at startup
    installer_user_id: str | None = None
    store_backend: str = "auto"
    database_url: str | None = None
    roster_ttl_seconds: float = 60.0
    timezone: str = "UTC"
    reaction_user_ids: tuple[str, ...] = field(default_factory=tuple)
    reaction_emoji: str = "cow-hat"

    @property
    def oauth_enabled(self) -> bool:
        return bool(self.slack_client_id and self.slack_client_secret)


def _csv(value: str | None) -> tuple[str, ...]:
    return tuple(v.strip() for v in (value or "").split(",") if v.strip())


def load_settings() -> Settings:
    port = int(os.environ.get("PORT", "8080"))
    return Settings(
        port=port,
        slack_bot_token=os.environ.get("SLACK_BOT_TOKEN"),
        slack_signing_secret=os.environ.get("SLACK_SIGNING_SECRET"),
        slack_client_id=os.environ.get("SLACK_CLIENT_ID"),
        slack_client_secret=os.environ.get("SLACK_CLIENT_SECRET"),
        installation_dir=os.environ.get("SLACK_INSTALLATION_DIR") or "./data/installations",
        installer_user_id=os.environ.get("GEMIFICATION_INSTALLER_ID") or None,
        store_backend=(os.environ.get("GEM_STORE_BACKEND") or "auto").strip().lower(),
        database_url=os.environ.get("DATABASE_URL") or None,
        roster_ttl_seconds=float(os.environ.get("GEMIFICATION_ROSTER_TTL") or "60"),
        timezone=os.environ.get("GEMIFICATION_TIMEZONE") or "UTC",
        reaction_user_ids=_csv(os.environ.get("GEMIFICATION_REACTION_USERS")),
        reaction_emoji=os.environ.get("GEMIFICATION_REACTION_EMOJI") or "cow-hat",
    )
