# region Imports
from typing import Iterable, Sequence, Tuple
import numpy as np

from site_sensitivity.config import NODATA
from site_sensitivity.errors import ShapeMismatchError
from site_sensitivity.models import Grid, GridSpec
# endregion

# region Index Helpers
def nearest_idx(lon, lat, spec: GridSpec) -> int:
    x = int(round((lon - spec.min_lon) / (spec.max_lon - spec.min_lon) * (spec.W - 1))) if spec.W > 1 else 0
    y = int(round((spec.max_lat - lat) / (spec.max_lat - spec.min_lat) * (spec.H - 1))) if spec.H > 1 else 0
    x = max(0, min(spec.W - 1, x))
    y = max(0, min(spec.H - 1, y))
    return y * spec.W + x


def idx_to_rc(i: int, W: int):
    return (i // W, i % W)
# endregion

# region Alignment Checks
def check_aligned(grids: Sequence[Grid], what: str = "grids") -> Tuple[int, int]:
    """Raise ShapeMismatchError unless every grid shares shape and geometry."""
    if not grids:
        raise ValueError(f"No {what} given.")
    ref = grids[0]
    for i, g in enumerate(grids[1:], start=1):
        if g.shape != ref.shape:
            raise ShapeMismatchError(
                f"{what}[{i}] has shape {g.shape}, expected {ref.shape}.")
        if ref.spec is not None and g.spec is not None and g.spec != ref.spec:
            raise ShapeMismatchError(
                f"{what}[{i}] geometry {g.spec} differs from {ref.spec}.")
    return ref.shape
# endregion

# region Site Rasterisation
def sites_to_mask(points: Iterable[Tuple[float, float]], spec: GridSpec,
                  nodata: float = NODATA) -> Grid:
    """Snap (lon, lat) site points to their nearest cell; 1.0 at sites, NoData elsewhere."""
    mask = np.full(spec.shape, nodata, dtype=np.float64)
    for lon, lat in points:
        r, c = idx_to_rc(nearest_idx(float(lon), float(lat), spec), spec.W)
        mask[r, c] = 1.0
    return Grid(mask, nodata=nodata, spec=spec)
# endregion
