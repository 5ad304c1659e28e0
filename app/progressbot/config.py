"""
Runtime configuration for the Progress Report Bot.

Values come from an optional JSON file and from the environment; the
environment wins. Everything is read once at process start.
"""

import json
import os
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ConfigError
from .models.layout import RenderMode

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.getenv(
    "PROGRESSBOT_CONFIG",
    "/data/progressbot.config",
)

DEFAULT_PORT = 10000
DEFAULT_FETCH_TIMEOUT = 30.0
# Discord drops interactions that are not answered within 3 seconds.
DEFAULT_ACK_DEADLINE = 2.5

# setting name -> environment variable
ENV_VARS = {
    "bot_token": "DISCORD_BOT_TOKEN",
    "application_id": "DISCORD_APPLICATION_ID",
    "public_key": "DISCORD_PUBLIC_KEY",
    "guild_id": "DISCORD_GUILD_ID",
    "channel_id": "DISCORD_CHANNEL_ID",
    "api_base_url": "API_BASE_URL",
    "port": "PORT",
    "render_mode": "PROGRESSBOT_RENDER_MODE",
    "fetch_timeout": "PROGRESSBOT_FETCH_TIMEOUT",
    "ack_deadline": "PROGRESSBOT_ACK_DEADLINE",
    "log_level": "PROGRESSBOT_LOG_LEVEL",
}


def load_config(path: Optional[str] = None) -> dict:
    """
    Load the optional JSON configuration file.

    A missing or unreadable file yields an empty dict so the environment
    alone can configure the bot.
    """
    path = path or DEFAULT_CONFIG_PATH
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        log.info("Config file not found: %s (using environment only)", path)
        return {}
    except Exception:
        log.exception("Failed to load config %s", path)
        return {}
    if not isinstance(data, dict):
        log.error("Config file %s must hold a JSON object; ignoring it", path)
        return {}
    return data


def _number(name: str, raw, default: float, cast=float):
    if raw in (None, ""):
        return default
    try:
        value = cast(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    bot_token: str = ""
    application_id: str = ""
    public_key: str = ""
    guild_id: str = ""
    channel_id: str = ""
    api_base_url: str = ""
    port: int = DEFAULT_PORT
    render_mode: RenderMode = RenderMode.COMBINED
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    ack_deadline: float = DEFAULT_ACK_DEADLINE
    log_level: str = "INFO"

    @classmethod
    def from_mapping(cls, file_values: Mapping, environ: Mapping) -> "Settings":
        raw = {}
        for key, env_name in ENV_VARS.items():
            value = environ.get(env_name)
            if value in (None, ""):
                value = file_values.get(key)
            raw[key] = value

        logging_cfg = file_values.get("logging") or {}
        if not raw["log_level"] and isinstance(logging_cfg, dict):
            raw["log_level"] = logging_cfg.get("level")

        mode_name = str(raw["render_mode"] or RenderMode.COMBINED.value).strip().lower()
        try:
            render_mode = RenderMode(mode_name)
        except ValueError:
            choices = ", ".join(m.value for m in RenderMode)
            raise ConfigError(f"render_mode must be one of {choices}, got {mode_name!r}") from None

        return cls(
            bot_token=str(raw["bot_token"] or ""),
            application_id=str(raw["application_id"] or ""),
            public_key=str(raw["public_key"] or ""),
            guild_id=str(raw["guild_id"] or ""),
            channel_id=str(raw["channel_id"] or ""),
            api_base_url=str(raw["api_base_url"] or ""),
            port=_number("port", raw["port"], DEFAULT_PORT, int),
            render_mode=render_mode,
            fetch_timeout=_number("fetch_timeout", raw["fetch_timeout"], DEFAULT_FETCH_TIMEOUT),
            ack_deadline=_number("ack_deadline", raw["ack_deadline"], DEFAULT_ACK_DEADLINE),
            log_level=str(raw["log_level"] or "INFO").upper(),
        )

    @classmethod
    def load(cls, path: Optional[str] = None, environ: Optional[Mapping] = None) -> "Settings":
        """Build settings from the config file and the process environment."""
        return cls.from_mapping(load_config(path), os.environ if environ is None else environ)

    def log_summary(self) -> None:
        log.info("Loaded configuration:")
        log.info("DISCORD_BOT_TOKEN: %s", "✅ Yes" if self.bot_token else "❌ No")
        log.info("DISCORD_PUBLIC_KEY: %s", "✅ Yes" if self.public_key else "❌ No")
        log.info("DISCORD_APPLICATION_ID: %s", self.application_id)
        log.info("DISCORD_GUILD_ID: %s", self.guild_id)
        log.info("DISCORD_CHANNEL_ID: %s", self.channel_id)
        log.info("API_BASE_URL: %s", self.api_base_url)
        log.info("PORT: %s", self.port)
        log.info("Render mode: %s", self.render_mode.value)
