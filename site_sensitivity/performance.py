# performance.py
# ----------------
# Threshold sweep over a labeled sample of sensitivity-surface values.
#
# Exposes:
#   - sweep_counts(sample)            (thresholds, TP, TN integer counts)
#   - sweep_rates(sample)             (thresholds, Sens, Spec arrays)
#   - auc_from_rates(sens, spec)      (trapezoidal ROC area)
#   - evaluate_thresholds(sample)     (full ThresholdReport)
#   - evaluate_surface(surface, mask) (sample construction + evaluation)
#
# A row is classified positive when its value is >= t. Candidate thresholds
# are every distinct sample value plus +inf, so the table always runs from
# (Sens=1, Spec=0) at the minimum to (Sens=0, Spec=1) at the synthetic top.

from __future__ import annotations
import logging
import warnings
from typing import Tuple
import numpy as np

from site_sensitivity.config import METRIC_DECIMALS, REACH_DEGENERATE
from site_sensitivity.errors import DegenerateSampleWarning
from site_sensitivity.mask import build_labeled_sample
from site_sensitivity.models import Grid, LabeledSample, PerformanceRow, ThresholdReport

LOGGER = logging.getLogger(__name__)

NAN = float("nan")


# -----------------------------
# Rates
# -----------------------------

def candidate_thresholds(values: np.ndarray) -> np.ndarray:
    """Sorted distinct values plus one synthetic threshold above the maximum."""
    return np.append(np.unique(values), np.inf)


def sweep_counts(sample: LabeledSample) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Returns (thresholds, tp, tn): site rows at or above each threshold and
    background rows below it, as integer counts ascending by threshold.
    """
    t = candidate_thresholds(sample.values)
    pos = np.sort(sample.positives())
    neg = np.sort(sample.negatives())
    tp = pos.size - np.searchsorted(pos, t, side="left")
    tn = np.searchsorted(neg, t, side="left")
    return t, tp.astype(np.int64), tn.astype(np.int64)


def sweep_rates(sample: LabeledSample) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Returns (thresholds, sens, spec), all ascending by threshold.

      sens[i] = #(site rows     with value >= t_i) / #site rows
      spec[i] = #(background rows with value <  t_i) / #background rows

    Counts come from binary search on the sorted label groups, so sens is
    non-increasing and spec non-decreasing in t by construction. A label
    group with no rows gives NaN for its rate at every threshold.
    """
    t, tp, tn = sweep_counts(sample)
    n_pos, n_neg = sample.n_positive, sample.n_negative
    sens = tp / n_pos if n_pos else np.full(t.shape, np.nan)
    spec = tn / n_neg if n_neg else np.full(t.shape, np.nan)

    return t, sens.astype(np.float64), spec.astype(np.float64)


def auc_from_rates(sens: np.ndarray, spec: np.ndarray) -> float:
    """
    Trapezoidal area under Sens plotted against 1 - Spec.
    Rates are given in ascending-threshold order, where 1 - Spec is
    non-increasing, so the curve is walked in reverse.
    """
    if sens.size < 2 or np.isnan(sens).any() or np.isnan(spec).any():
        return NAN
    x = (1.0 - spec)[::-1]
    y = sens[::-1]
    area = float(np.sum(np.diff(x) * (y[1:] + y[:-1]) * 0.5))
    return round(min(1.0, max(0.0, area)), METRIC_DECIMALS)


# -----------------------------
# Derived metrics
# -----------------------------

def _round(a: np.ndarray) -> np.ndarray:
    return np.round(a, METRIC_DECIMALS)


def derived_metrics(sens: np.ndarray, spec: np.ndarray):
    """
    back_pct = 1 - Spec
    xover    = |Sens + back_pct - 1|
    kg       = 1 - back_pct / Sens          (NaN where Sens == 0)
    reach    = 1 - (1 - Sens) / Spec        (NaN where Spec == 0)
    """
    back_pct = 1.0 - spec
    with np.errstate(divide="ignore", invalid="ignore"):
        xover = np.abs(sens + back_pct - 1.0)
        kg = np.where(sens == 0, np.nan, 1.0 - back_pct / sens)
        reach = np.where(spec == 0, np.nan, 1.0 - (1.0 - sens) / spec)
    return back_pct, _round(xover), _round(kg), _round(reach)


def _pick(thresholds: np.ndarray, score: np.ndarray, *, maximize: bool) -> float:
    """First threshold at the optimum of score, ignoring NaN rows; NaN if none qualify."""
    ok = ~np.isnan(score)
    if not ok.any():
        return NAN
    masked = np.where(ok, score, -np.inf if maximize else np.inf)
    i = int(np.argmax(masked) if maximize else np.argmin(masked))
    return float(thresholds[i])


# -----------------------------
# Evaluator
# -----------------------------

def evaluate_thresholds(sample: LabeledSample) -> ThresholdReport:
    """
    Build the full performance table and the four recommended thresholds:

      sens_spec -> max Sens + Spec
      xover     -> min Xover
      kg        -> max KG
      reach     -> max Reach, rows with Reach == 1 excluded

    Ties go to the lowest threshold. With no site rows or no background
    rows a DegenerateSampleWarning is issued and AUC plus every
    recommendation come back as NaN.
    """
    n_pos, n_neg = sample.n_positive, sample.n_negative
    degenerate = n_pos == 0 or n_neg == 0
    if degenerate:
        which = "positive" if n_pos == 0 else "negative"
        if n_pos == 0 and n_neg == 0:
            which = "positive or negative"
        warnings.warn(f"Labeled sample has no {which} rows; metrics are undefined.",
                      DegenerateSampleWarning, stacklevel=2)

    t, sens, spec = sweep_rates(sample)
    back_pct, xover, kg, reach = derived_metrics(sens, spec)
    sens_spec = sens + spec

    # Sens + Spec scaled by n_pos * n_neg, exact in integers so equal sums tie
    _, tp, tn = sweep_counts(sample)
    if degenerate:
        sens_spec_score = np.full(t.shape, np.nan)
    else:
        sens_spec_score = (tp * n_neg + tn * n_pos).astype(np.float64)

    rows = tuple(
        PerformanceRow(
            threshold=float(t[i]),
            sens=float(sens[i]),
            spec=float(spec[i]),
            back_pct=float(back_pct[i]),
            sens_spec=float(sens_spec[i]),
            xover=float(xover[i]),
            kg=float(kg[i]),
            reach=float(reach[i]),
        )
        for i in range(t.size)
    )

    reach_eligible = np.where(reach == REACH_DEGENERATE, np.nan, reach)
    report = ThresholdReport(
        rows=rows,
        auc=auc_from_rates(sens, spec),
        sens_spec_threshold=_pick(t, sens_spec_score, maximize=True),
        xover_threshold=_pick(t, xover, maximize=False),
        kg_threshold=_pick(t, kg, maximize=True),
        reach_threshold=_pick(t, reach_eligible, maximize=True),
        n_positive=n_pos,
        n_negative=n_neg,
        degenerate=degenerate,
    )
    LOGGER.info("Evaluated %d thresholds (pos=%d, neg=%d): AUC=%s %s",
                len(rows), n_pos, n_neg, report.auc, report.thresholds())
    return report


def evaluate_surface(surface: Grid, mask: Grid) -> ThresholdReport:
    return evaluate_thresholds(build_labeled_sample(surface, mask))
