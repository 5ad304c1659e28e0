"""Slash command definitions and the parsed form of an incoming interaction.

Independent of FastAPI / HTTP details: these types are built from the raw
interaction payload and consumed by the dispatcher.
"""
import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..discord_utils import APPLICATION_COMMAND

STRING_OPTION = 3


class CommandName(enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    SEASON = "season"

    @classmethod
    def parse(cls, name: Optional[str]) -> Optional["CommandName"]:
        try:
            return cls(str(name or "").strip().lower())
        except ValueError:
            return None


COMMAND_DESCRIPTIONS = {
    CommandName.DAILY: "Show a player's stats for the last day.",
    CommandName.WEEKLY: "Show a player's stats for the last week.",
    CommandName.SEASON: "Show a player's stats for the current season.",
}

COMMANDS = [
    {
        "name": command.value,
        "description": COMMAND_DESCRIPTIONS[command],
        "options": [
            {
                "type": STRING_OPTION,
                "name": "id",
                "description": "Player ID",
                "required": True,
            }
        ],
    }
    for command in CommandName
]


@dataclass(frozen=True)
class CommandEvent:
    interaction_type: Optional[int]
    command_name: str
    channel_id: str
    options: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_command(self) -> bool:
        return self.interaction_type == APPLICATION_COMMAND

    def option(self, name: str) -> Optional[str]:
        value = self.options.get(name)
        return None if value is None else str(value)

    @classmethod
    def from_payload(cls, payload: dict) -> "CommandEvent":
        data = payload.get("data") or {}
        options = {
            opt.get("name"): opt.get("value")
            for opt in data.get("options") or []
            if isinstance(opt, dict) and opt.get("name")
        }
        channel_id = payload.get("channel_id") or (payload.get("channel") or {}).get("id") or ""
        return cls(
            interaction_type=payload.get("type"),
            command_name=str(data.get("name") or ""),
            channel_id=str(channel_id),
            options=options,
        )


@dataclass(frozen=True)
class CommandRequest:
    command: CommandName
    subject_id: str
    channel_id: str
