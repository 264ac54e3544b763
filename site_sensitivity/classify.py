# classify.py
import math
import numpy as np

from site_sensitivity.models import Grid


def classify(surface: Grid, threshold: float) -> Grid:
    """1 where surface >= threshold, 0 below it, NoData where the surface has none."""
    t = float(threshold)
    if math.isnan(t):
        raise ValueError("Cannot classify with an undefined (NaN) threshold.")
    valid = surface.valid_mask()
    out = np.where(surface.values >= t, 1.0, 0.0)
    return surface.with_values(np.where(valid, out, surface.nodata))
