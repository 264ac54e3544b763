# tests/test_grid.py
import numpy as np
import pytest

from site_sensitivity.config import NODATA
from site_sensitivity.errors import ShapeMismatchError
from site_sensitivity.grid import check_aligned, idx_to_rc, nearest_idx, sites_to_mask
from site_sensitivity.models import Grid, GridSpec

SPEC = GridSpec(min_lon=10.0, min_lat=40.0, max_lon=10.4, max_lat=40.2, W=5, H=3)


def test_nearest_idx_row_zero_is_north():
    assert nearest_idx(10.0, 40.2, SPEC) == 0
    assert nearest_idx(10.4, 40.0, SPEC) == 14
    # outside the extent snaps to the edge
    assert nearest_idx(9.0, 41.0, SPEC) == 0


def test_sites_snap_to_nearest_cell():
    pts = [(10.1, 40.1), (10.1, 40.1), (10.4, 40.0)]
    mask = sites_to_mask(pts, SPEC)
    assert mask.shape == (3, 5)
    assert int(mask.valid_mask().sum()) == 2
    assert mask.values[1, 1] == 1.0
    assert mask.values[2, 4] == 1.0
    assert mask.values[0, 0] == NODATA
    assert [idx_to_rc(int(i), SPEC.W) for i in np.flatnonzero(mask.valid_mask())] == [(1, 1), (2, 4)]


def test_check_aligned():
    a = Grid(np.zeros((3, 5)), spec=SPEC)
    assert check_aligned([a, Grid(np.ones((3, 5)))]) == (3, 5)
    with pytest.raises(ShapeMismatchError):
        check_aligned([a, Grid(np.ones((5, 3)))])


def test_grid_is_immutable_copy():
    raw = np.zeros((2, 2))
    g = Grid(raw)
    raw[0, 0] = 5.0
    assert g.values[0, 0] == 0.0
    with pytest.raises(ValueError):
        g.values[0, 0] = 1.0
    with pytest.raises(ValueError):
        Grid(np.zeros(4))
    with pytest.raises(ValueError):
        Grid(np.zeros((2, 2)), spec=SPEC)
