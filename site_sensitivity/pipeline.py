# pipeline.py
from __future__ import annotations
from dataclasses import dataclass
import logging
import math
from typing import Dict, Mapping, Optional

from site_sensitivity.aggregate import sum_grids
from site_sensitivity.classify import classify
from site_sensitivity.config import CRITERIA
from site_sensitivity.grid import check_aligned
from site_sensitivity.models import BreakpointTable, Grid, ThresholdReport
from site_sensitivity.performance import evaluate_surface
from site_sensitivity.reclassify import reclassify_layers

LOGGER = logging.getLogger(__name__)


# region Run Result
@dataclass(frozen=True)
class SensitivityRun:
    weights: Dict[str, Grid]
    surface: Grid
    report: ThresholdReport
    criterion: Optional[str] = None
    prediction: Optional[Grid] = None

    @property
    def threshold(self) -> float:
        if self.criterion is None:
            return float("nan")
        return self.report.thresholds()[self.criterion]
# endregion


# region Forward Pipeline
def run_sensitivity(
    layers: Mapping[str, Grid],
    tables: Mapping[str, BreakpointTable],
    mask: Grid,
    criterion: Optional[str] = None,
) -> SensitivityRun:
    """
    layers -> reclassify -> sum -> evaluate against mask -> (classify)

    criterion picks which recommended threshold classifies the surface:
    "sens_spec", "xover", "kg" or "reach". None skips classification.
    """
    if criterion is not None and criterion not in CRITERIA:
        raise ValueError(f"Unknown criterion {criterion!r}; expected one of {CRITERIA}.")
    if not layers:
        raise ValueError("At least one environmental layer is required.")

    check_aligned(list(layers.values()) + [mask], what="input grids")

    weights = reclassify_layers(layers, tables)
    surface = sum_grids(list(weights.values()))
    report = evaluate_surface(surface, mask)

    prediction = None
    if criterion is not None:
        t = report.thresholds()[criterion]
        if math.isnan(t):
            LOGGER.warning("Threshold for %s is undefined; no prediction grid produced", criterion)
        else:
            prediction = classify(surface, t)
            LOGGER.info("Classified surface at %s threshold %g: %d cells flagged",
                        criterion, t, int((prediction.values == 1.0).sum()))

    return SensitivityRun(weights=weights, surface=surface, report=report,
                          criterion=criterion, prediction=prediction)
# endregion
