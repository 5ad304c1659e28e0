import logging
import os
from typing import Optional

from .config import load_config

log = logging.getLogger("progressbot")

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def _resolve_log_level(level_name: Optional[str] = None) -> int:
    if level_name:
        return logging._nameToLevel.get(str(level_name).upper(), logging.INFO)

    env_level = os.getenv("PROGRESSBOT_LOG_LEVEL")
    if env_level:
        return logging._nameToLevel.get(env_level.upper(), logging.INFO)

    cfg = load_config()
    level_name = (cfg.get("logging") or {}).get("level", "INFO")
    return logging._nameToLevel.get(str(level_name).upper(), logging.INFO)


def configure_logging(level: Optional[int] = None, level_name: Optional[str] = None) -> None:
    resolved = level if level is not None else _resolve_log_level(level_name)
    logging.basicConfig(level=resolved, format=DEFAULT_LOG_FORMAT)
