"""
bot/config.py
Environment-sourced settings, loaded once at startup.
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

DEFAULT_PORT = 3000


class ConfigError(ValueError):
    """Raised when a required setting is missing or malformed."""


def _parse_id(env: Mapping[str, str], key: str, required: bool = True) -> Optional[int]:
    raw = (env.get(key) or "").strip()
    if not raw:
        if required:
            raise ConfigError(f"{key} is not set.")
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be a numeric Discord ID, got {raw!r}.") from None


@dataclass(frozen=True)
class Settings:
    token: str
    guild_id: int
    main_channel_id: int
    waiting_area_id: int
    target_user_id: Optional[int] = None
    port: int = DEFAULT_PORT

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from the environment. When no mapping is given,
        .env is loaded into os.environ first.
        """
        if env is None:
            load_dotenv()
            env = os.environ

        token = (env.get("BOT_TOKEN") or "").strip()
        if not token:
            raise ConfigError("BOT_TOKEN is not set.")

        port_raw = (env.get("PORT") or "").strip()
        try:
            port = int(port_raw) if port_raw else DEFAULT_PORT
        except ValueError:
            raise ConfigError(f"PORT must be an integer, got {port_raw!r}.") from None

        return cls(
            token=token,
            guild_id=_parse_id(env, "GUILD_ID"),
            main_channel_id=_parse_id(env, "CHANNEL_ID"),
            waiting_area_id=_parse_id(env, "WAITING_AREA_ID"),
            target_user_id=_parse_id(env, "TARGET_USER_ID", required=False),
            port=port,
        )
