from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from .metrics import Period

EMBED_COLOR = 0x0099FF
EMBED_FOOTER = "Progress Report Bot"
ZERO_WIDTH_SPACE = "\u200b"
DATA_PERIOD_LABEL = "Data Period"

# Discord embed limits.
TITLE_LIMIT = 256
FIELD_NAME_LIMIT = 256
FIELD_VALUE_LIMIT = 1024


def _clamp(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "\u2026"


@dataclass(frozen=True)
class Section:
    label: str
    value: str
    inline: bool = True


@dataclass(frozen=True)
class Report:
    title: str
    period: Period
    sections: Tuple[Section, ...]

    def to_embed(self, timestamp: Optional[datetime] = None) -> dict:
        """Render the report as a Discord embed object."""
        fields = []
        for section in self.sections:
            name = ZERO_WIDTH_SPACE if section.label == DATA_PERIOD_LABEL else section.label
            fields.append(
                {
                    "name": _clamp(name, FIELD_NAME_LIMIT),
                    "value": _clamp(section.value, FIELD_VALUE_LIMIT),
                    "inline": section.inline,
                }
            )

        embed = {
            "title": _clamp(self.title, TITLE_LIMIT),
            "color": EMBED_COLOR,
            "fields": fields,
            "footer": {"text": EMBED_FOOTER},
        }
        if timestamp is not None:
            embed["timestamp"] = timestamp.isoformat()
        return embed
