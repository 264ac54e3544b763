# region Imports
import logging
from typing import Sequence
import numpy as np

from site_sensitivity.grid import check_aligned
from site_sensitivity.models import Grid
# endregion

LOGGER = logging.getLogger(__name__)

# region Weighted Layer Sum
def sum_grids(grids: Sequence[Grid]) -> Grid:
    """Cell-wise sum of weight grids. NoData in any input is NoData in the output."""
    grids = list(grids)
    check_aligned(grids, what="weight grids")

    ref = grids[0]
    total = np.zeros(ref.shape, dtype=np.float64)
    valid = np.ones(ref.shape, dtype=bool)
    for g in grids:
        valid &= g.valid_mask()
        total += np.where(g.valid_mask(), g.values, 0.0)

    clash = valid & (~np.isfinite(total) | (total == ref.nodata))
    if clash.any():
        r, c = np.argwhere(clash)[0]
        raise ValueError(f"Weight sum {total[r, c]} at cell ({r}, {c}) collides with NoData ({ref.nodata}).")

    out = np.where(valid, total, ref.nodata)
    LOGGER.debug("Summed %d layers, %d of %d cells valid",
                 len(grids), int(valid.sum()), valid.size)
    return ref.with_values(out)
# endregion
