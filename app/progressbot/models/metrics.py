from dataclasses import dataclass
from typing import Dict, Union

Number = Union[int, float]


@dataclass(frozen=True)
class CombinedMetric:
    part_a: Number
    part_b: Number

    @property
    def total(self) -> Number:
        return self.part_a + self.part_b


@dataclass(frozen=True)
class DeltaMetric:
    base: Number
    delta: Number


@dataclass(frozen=True)
class Amount:
    value: Number


DerivedMetric = Union[CombinedMetric, DeltaMetric, Amount]


@dataclass(frozen=True)
class Period:
    start: str
    end: str


@dataclass(frozen=True)
class DerivedStats:
    """Everything the renderer needs from one stats row."""

    subject_name: str
    subject_id: str
    period: Period
    metrics: Dict[str, DerivedMetric]
