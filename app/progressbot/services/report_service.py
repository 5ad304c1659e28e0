"""
Report rendering for the /daily, /weekly and /season commands.

Pure formatting: no network calls, no logging, no environment access.
"""

from typing import List, Tuple

from ..models.metrics import (
    Amount,
    CombinedMetric,
    DeltaMetric,
    DerivedMetric,
    DerivedStats,
    Number,
)
from ..models.report import DATA_PERIOD_LABEL, Report, Section

NO_CHANGE = "No Change For This Period"

DELTA_NEUTRAL = "⚪ No Change"
DELTA_UP = "🟢"
DELTA_DOWN = "🔴"

# (label, metric key). Users read the report top to bottom in this order.
SECTION_ORDER: List[Tuple[str, str]] = [
    ("Power", "power"),
    ("Kills", "kills"),
    ("T5 Killed", "t5_kills"),
    ("T4 Killed", "t4_kills"),
    ("T3 Killed", "t3_kills"),
    ("T2 Killed", "t2_kills"),
    ("T1 Killed", "t1_kills"),
    ("Deads", "deads"),
    ("Healed", "healed"),
    ("Resources Spent", "resources_spent"),
    ("Food Spent", "food_spent"),
    ("Wood Spent", "wood_spent"),
    ("Stone Spent", "stone_spent"),
    ("Gold Spent", "gold_spent"),
    ("Resources Gathered", "resources_gathered"),
    ("Food Gathered", "food_gathered"),
    ("Wood Gathered", "wood_gathered"),
    ("Stone Gathered", "stone_gathered"),
    ("Gold Gathered", "gold_gathered"),
]


def _plain(value: Number) -> str:
    return str(value)


def _grouped(value: Number) -> str:
    return f"{value:,}"


def format_combined(part_a: Number, part_b: Number) -> str:
    if part_a == 0 and part_b == 0:
        return NO_CHANGE
    if part_a == 0:
        return f"{NO_CHANGE} + {_plain(part_b)}"
    if part_b == 0:
        return f"{_plain(part_a)} + {NO_CHANGE}"
    return f"{_plain(part_a)} + {_plain(part_b)}"


def format_delta(base: Number, delta: Number) -> str:
    if delta == 0:
        marker = DELTA_NEUTRAL
    elif delta > 0:
        marker = f"{DELTA_UP} +{_grouped(delta)}"
    else:
        marker = f"{DELTA_DOWN} {_grouped(delta)}"
    return f"{_grouped(base)} ({marker})"


def format_metric(metric: DerivedMetric) -> str:
    if isinstance(metric, CombinedMetric):
        return format_combined(metric.part_a, metric.part_b)
    if isinstance(metric, DeltaMetric):
        return format_delta(metric.base, metric.delta)
    if isinstance(metric, Amount):
        return _grouped(metric.value)
    raise TypeError(f"Unsupported metric type: {type(metric).__name__}")


def format_title(command: str, subject_name: str, subject_id: str) -> str:
    return f"{command.upper()} stats for {subject_name} ID: {subject_id}"


def render_report(command: str, stats: DerivedStats) -> Report:
    sections = [
        Section(label, format_metric(stats.metrics[key]))
        for label, key in SECTION_ORDER
    ]
    sections.append(
        Section(
            DATA_PERIOD_LABEL,
            f"📅Data Period: {stats.period.start} to {stats.period.end}",
            inline=False,
        )
    )
    return Report(
        title=format_title(command, stats.subject_name, stats.subject_id),
        period=stats.period,
        sections=tuple(sections),
    )
