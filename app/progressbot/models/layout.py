"""Positional layout of a stats row.

The stats API returns each player as a flat list. Every index that the bot
reads is named here and nowhere else.
"""
import enum
from dataclasses import dataclass
from typing import Dict, Tuple


class RenderMode(enum.Enum):
    COMBINED = "combined"  # two period columns shown as "a + b"
    DELTA = "delta"        # current value plus its change


# Metric keys, in report order. Paired metrics read two indices,
# resource metrics read one.
PAIRED_METRICS = (
    "power",
    "kills",
    "t5_kills",
    "t4_kills",
    "t3_kills",
    "t2_kills",
    "t1_kills",
    "deads",
    "healed",
)

RESOURCE_KINDS = ("food", "wood", "stone", "gold")


@dataclass(frozen=True)
class RowLayout:
    mode: RenderMode
    name: int
    player_id: int
    period_start: int
    period_end: int
    # metric key -> (first index, second index); meaning of the pair depends on mode
    pairs: Dict[str, Tuple[int, int]]
    spent: Dict[str, int]
    gathered: Dict[str, int]

    @property
    def required_length(self) -> int:
        indices = [self.name, self.player_id, self.period_start, self.period_end]
        for a, b in self.pairs.values():
            indices.extend((a, b))
        indices.extend(self.spent.values())
        indices.extend(self.gathered.values())
        return max(indices) + 1


_SPENT = {"food": 21, "wood": 22, "stone": 23, "gold": 24}
_GATHERED = {"food": 25, "wood": 26, "stone": 27, "gold": 28}

COMBINED_LAYOUT = RowLayout(
    mode=RenderMode.COMBINED,
    name=3,
    player_id=5,
    period_start=30,
    period_end=29,
    pairs={
        "power": (8, 9),
        "kills": (13, 14),
        "t5_kills": (42, 36),
        "t4_kills": (43, 37),
        "t3_kills": (44, 38),
        "t2_kills": (45, 39),
        "t1_kills": (46, 40),
        "deads": (17, 18),
        "healed": (15, 16),
    },
    spent=_SPENT,
    gathered=_GATHERED,
)

# (base, delta)
DELTA_LAYOUT = RowLayout(
    mode=RenderMode.DELTA,
    name=3,
    player_id=5,
    period_start=30,
    period_end=29,
    pairs={
        "power": (9, 10),
        "kills": (13, 14),
        "t5_kills": (36, 42),
        "t4_kills": (37, 43),
        "t3_kills": (38, 44),
        "t2_kills": (39, 45),
        "t1_kills": (40, 46),
        "deads": (17, 18),
        "healed": (15, 16),
    },
    spent=_SPENT,
    gathered=_GATHERED,
)

LAYOUTS = {
    RenderMode.COMBINED: COMBINED_LAYOUT,
    RenderMode.DELTA: DELTA_LAYOUT,
}


def layout_for(mode: RenderMode) -> RowLayout:
    return LAYOUTS[mode]
