# models.py
from __future__ import annotations
from dataclasses import asdict, dataclass, field
import math
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
import numpy as np

from site_sensitivity.config import NODATA


# region Grid Geometry
@dataclass(frozen=True)
class GridSpec:
    # Extent spans the centres of the edge cells; row 0 is the northern row.
    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float
    W: int
    H: int

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.H, self.W)
# endregion


# region Grid
@dataclass(frozen=True, eq=False)
class Grid:
    """
    values: (H,W) cell values, float64, read-only
    nodata: sentinel marking cells with no valid measurement (NaN is NoData too)
    spec:   optional geographic extent; compared when checking alignment
    """
    values: np.ndarray
    nodata: float = NODATA
    spec: Optional[GridSpec] = None

    def __post_init__(self):
        arr = np.array(self.values, dtype=np.float64, copy=True)
        if arr.ndim != 2:
            raise ValueError(f"Grid values must be 2-D, got shape {arr.shape}.")
        if self.spec is not None and self.spec.shape != arr.shape:
            raise ValueError(f"GridSpec {self.spec.shape} does not match values {arr.shape}.")
        arr.flags.writeable = False
        object.__setattr__(self, "values", arr)
        object.__setattr__(self, "nodata", float(self.nodata))

    @property
    def shape(self) -> Tuple[int, int]:
        return self.values.shape

    def valid_mask(self) -> np.ndarray:
        v = self.values
        return np.isfinite(v) & (v != self.nodata)

    def finite_values(self) -> np.ndarray:
        return self.values[self.valid_mask()]

    def with_values(self, values: np.ndarray) -> "Grid":
        return Grid(values, nodata=self.nodata, spec=self.spec)

    def to_masked(self) -> np.ma.MaskedArray:
        return np.ma.masked_array(self.values, mask=~self.valid_mask())
# endregion


# region Breakpoints
@dataclass(frozen=True)
class Interval:
    lo: float
    hi: float
    weight: float

    def __post_init__(self):
        lo, hi = float(self.lo), float(self.hi)
        if math.isnan(lo) or math.isnan(hi) or not lo < hi:
            raise ValueError(f"Interval bounds must satisfy from < to, got [{lo}, {hi}).")
        object.__setattr__(self, "lo", lo)
        object.__setattr__(self, "hi", hi)
        object.__setattr__(self, "weight", float(self.weight))

    def contains(self, v: float) -> bool:
        return self.lo <= v < self.hi


@dataclass(frozen=True)
class BreakpointTable:
    """Ordered half-open intervals [from, to) mapped to weights for one variable."""
    name: str
    intervals: Tuple[Interval, ...]

    def __post_init__(self):
        ivs = tuple(self.intervals)
        if not ivs:
            raise ValueError(f"Breakpoint table '{self.name}' has no intervals.")
        object.__setattr__(self, "intervals", ivs)

    @classmethod
    def from_triples(cls, name: str, triples: Iterable[Sequence[float]]) -> "BreakpointTable":
        ivs = []
        for row in triples:
            if len(row) != 3:
                raise ValueError(f"Breakpoint rows need (from, to, weight), got {row!r}.")
            ivs.append(Interval(*row))
        return cls(name, tuple(ivs))

    @classmethod
    def from_records(cls, name: str, records: Iterable[Mapping[str, float]]) -> "BreakpointTable":
        return cls(name, tuple(Interval(r["from"], r["to"], r["weight"]) for r in records))

    def overlaps(self) -> List[Tuple[Interval, Interval]]:
        ordered = sorted(self.intervals, key=lambda iv: (iv.lo, iv.hi))
        return [(a, b) for a, b in zip(ordered[:-1], ordered[1:]) if b.lo < a.hi]

    def __len__(self) -> int:
        return len(self.intervals)
# endregion


# region Labeled Sample
@dataclass(frozen=True, eq=False)
class LabeledSample:
    values: np.ndarray   # (N,) float64
    labels: np.ndarray   # (N,) int8, 1 = site, 0 = background

    def __post_init__(self):
        v = np.asarray(self.values, dtype=np.float64).ravel()
        y = np.asarray(self.labels).ravel()
        if v.shape != y.shape:
            raise ValueError(f"values {v.shape} and labels {y.shape} differ in length.")
        if y.size and not np.isin(y, (0, 1)).all():
            raise ValueError("labels must be 0 or 1.")
        if not np.isfinite(v).all():
            raise ValueError("LabeledSample values must be finite.")
        v = v.copy(); v.flags.writeable = False
        y = y.astype(np.int8); y.flags.writeable = False
        object.__setattr__(self, "values", v)
        object.__setattr__(self, "labels", y)

    @property
    def n_positive(self) -> int:
        return int(np.count_nonzero(self.labels == 1))

    @property
    def n_negative(self) -> int:
        return int(np.count_nonzero(self.labels == 0))

    def positives(self) -> np.ndarray:
        return self.values[self.labels == 1]

    def negatives(self) -> np.ndarray:
        return self.values[self.labels == 0]
# endregion


# region Performance Table
@dataclass(frozen=True)
class PerformanceRow:
    threshold: float
    sens: float
    spec: float
    back_pct: float
    sens_spec: float
    xover: float
    kg: float
    reach: float


@dataclass(frozen=True)
class ThresholdReport:
    rows: Tuple[PerformanceRow, ...]
    auc: float
    sens_spec_threshold: float
    xover_threshold: float
    kg_threshold: float
    reach_threshold: float
    n_positive: int
    n_negative: int
    degenerate: bool = field(default=False)

    def thresholds(self) -> Dict[str, float]:
        return {
            "sens_spec": self.sens_spec_threshold,
            "xover": self.xover_threshold,
            "kg": self.kg_threshold,
            "reach": self.reach_threshold,
        }

    def as_records(self) -> List[Dict[str, float]]:
        return [asdict(r) for r in self.rows]

    def column(self, name: str) -> np.ndarray:
        return np.array([getattr(r, name) for r in self.rows], dtype=np.float64)

    def row_at(self, threshold: float) -> Optional[PerformanceRow]:
        for r in self.rows:
            if r.threshold == threshold:
                return r
        return None
# endregion
