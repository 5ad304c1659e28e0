"""Turn a positional stats row into named, numeric metrics."""
import logging
import math
import re
from typing import Any, Dict, Sequence

from ..models.layout import PAIRED_METRICS, RESOURCE_KINDS, RenderMode, RowLayout
from ..models.metrics import (
    Amount,
    CombinedMetric,
    DeltaMetric,
    DerivedMetric,
    DerivedStats,
    Number,
    Period,
)

log = logging.getLogger("progressbot.derive")

UNKNOWN = "Unknown"

# Plain ASCII decimals or 0x hex; rejects underscores and non-ASCII digits.
_DECIMAL = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_HEX = re.compile(r"0[xX][0-9a-fA-F]+")


def to_number(value: Any) -> Number:
    """Coerce a raw cell to a finite number; anything unusable becomes 0."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        return int(value) if value.is_integer() else value
    if not isinstance(value, str):
        return 0

    txt = value.strip()
    if _HEX.fullmatch(txt):
        return int(txt, 16)
    if not _DECIMAL.fullmatch(txt):
        return 0
    try:
        return int(txt)
    except ValueError:
        pass
    parsed = float(txt)
    if not math.isfinite(parsed):
        return 0
    return int(parsed) if parsed.is_integer() else parsed


def _cell(row: Sequence, index: int) -> Any:
    return row[index] if index < len(row) else None


def _number_at(row: Sequence, index: int) -> Number:
    return to_number(_cell(row, index))


def _text_at(row: Sequence, index: int, default: str) -> str:
    value = _cell(row, index)
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def derive_metrics(row: Sequence, layout: RowLayout) -> Dict[str, DerivedMetric]:
    metrics: Dict[str, DerivedMetric] = {}

    for key in PAIRED_METRICS:
        first, second = layout.pairs[key]
        a = _number_at(row, first)
        b = _number_at(row, second)
        if layout.mode is RenderMode.DELTA:
            metrics[key] = DeltaMetric(base=a, delta=b)
        else:
            metrics[key] = CombinedMetric(part_a=a, part_b=b)

    for group, indices in (("spent", layout.spent), ("gathered", layout.gathered)):
        total = 0
        for kind in RESOURCE_KINDS:
            value = _number_at(row, indices[kind])
            metrics[f"{kind}_{group}"] = Amount(value)
            total += value
        metrics[f"resources_{group}"] = Amount(total)

    return metrics


def derive_period(row: Sequence, layout: RowLayout) -> Period:
    # Dates are shown as the API sends them.
    return Period(
        start=_text_at(row, layout.period_start, UNKNOWN),
        end=_text_at(row, layout.period_end, UNKNOWN),
    )


def derive(row: Sequence, layout: RowLayout, fallback_id: str) -> DerivedStats:
    if len(row) < layout.required_length:
        log.warning(
            "Stats row has %d columns, layout %s reads up to %d; missing values count as 0",
            len(row),
            layout.mode.value,
            layout.required_length,
        )

    return DerivedStats(
        subject_name=_text_at(row, layout.name, UNKNOWN),
        subject_id=_text_at(row, layout.player_id, fallback_id),
        period=derive_period(row, layout),
        metrics=derive_metrics(row, layout),
    )
