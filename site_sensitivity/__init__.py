"""
site_sensitivity: Landscape Sensitivity Surfaces for Site Prediction
====================================================================

Reclassifies continuous environmental rasters into weight classes, sums them
into a sensitivity surface, and evaluates every achievable threshold against
known site locations (sensitivity/specificity, AUC, crossover, Kvamme Gain,
Reach).

Main Modules:
--------------
- reclassify   : breakpoint tables -> weight grids
- aggregate    : weight grids -> sensitivity surface (NoData absorbing)
- mask         : site mask -> labeled sample
- performance  : threshold sweep and recommended thresholds
- classify     : surface + threshold -> binary prediction
- pipeline     : the forward flow in one call
- raster / viz / app : GeoTIFF adapter, matplotlib plots, Flask API
"""
from site_sensitivity.aggregate import sum_grids
from site_sensitivity.classify import classify
from site_sensitivity.errors import DegenerateSampleWarning, RangeError, ShapeMismatchError
from site_sensitivity.mask import build_labeled_sample, extract_positives
from site_sensitivity.models import (
    BreakpointTable, Grid, GridSpec, Interval, LabeledSample, PerformanceRow, ThresholdReport,
)
from site_sensitivity.performance import evaluate_surface, evaluate_thresholds
from site_sensitivity.pipeline import SensitivityRun, run_sensitivity
from site_sensitivity.reclassify import load_breakpoints, reclassify, reclassify_layers

__all__ = [
    "BreakpointTable", "DegenerateSampleWarning", "Grid", "GridSpec", "Interval",
    "LabeledSample", "PerformanceRow", "RangeError", "SensitivityRun",
    "ShapeMismatchError", "ThresholdReport", "build_labeled_sample", "classify",
    "evaluate_surface", "evaluate_thresholds", "extract_positives", "load_breakpoints",
    "reclassify", "reclassify_layers", "run_sensitivity", "sum_grids",
]
