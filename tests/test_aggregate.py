# tests/test_aggregate.py
import numpy as np
import pytest

from site_sensitivity.aggregate import sum_grids
from site_sensitivity.config import NODATA
from site_sensitivity.errors import ShapeMismatchError
from site_sensitivity.models import Grid, GridSpec


def test_elementwise_sum():
    a = Grid(np.array([[1, 2], [3, 4]], dtype=float))
    b = Grid(np.array([[10, 20], [30, 40]], dtype=float))
    c = Grid(np.full((2, 2), 0.5))
    out = sum_grids([a, b, c])
    assert out.values.tolist() == [[11.5, 22.5], [33.5, 44.5]]


def test_nodata_is_absorbing():
    a = Grid(np.array([[1.0, NODATA], [3.0, 4.0]]))
    b = Grid(np.array([[5.0, 100.0], [np.nan, 0.0]]))
    out = sum_grids([a, b])
    assert out.values[0, 0] == 6.0
    assert out.values[0, 1] == NODATA
    assert out.values[1, 0] == NODATA
    assert out.values[1, 1] == 4.0


def test_shape_mismatch_is_fatal():
    with pytest.raises(ShapeMismatchError):
        sum_grids([Grid(np.zeros((2, 2))), Grid(np.zeros((2, 3)))])


def test_geometry_mismatch_is_fatal():
    s1 = GridSpec(0, 0, 1, 1, 2, 2)
    s2 = GridSpec(5, 5, 6, 6, 2, 2)
    with pytest.raises(ShapeMismatchError):
        sum_grids([Grid(np.zeros((2, 2)), spec=s1), Grid(np.zeros((2, 2)), spec=s2)])


def test_empty_input_rejected():
    with pytest.raises(ValueError):
        sum_grids([])


def test_sum_equal_to_nodata_is_rejected():
    a = Grid(np.array([[1.0, -1.0]]), nodata=0.0)
    b = Grid(np.array([[2.0, 1.0]]), nodata=0.0)
    with pytest.raises(ValueError, match="NoData"):
        sum_grids([a, b])
    out = sum_grids([a, Grid(np.array([[2.0, 3.0]]), nodata=0.0)])
    assert out.values.tolist() == [[3.0, 2.0]]
    assert out.valid_mask().all()
