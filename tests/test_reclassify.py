# tests/test_reclassify.py
import json
import math

import numpy as np
import pytest

from site_sensitivity.config import NODATA
from site_sensitivity.errors import RangeError
from site_sensitivity.models import BreakpointTable, Grid, Interval
from site_sensitivity.reclassify import load_breakpoints, reclassify, reclassify_layers

SLOPE = BreakpointTable.from_triples("slope", [(0, 5, 3), (5, 15, 2), (15, math.inf, 0)])


def test_maps_each_value_to_its_interval():
    g = Grid(np.array([[0.0, 4.999, 5.0], [14.9, 15.0, 80.0]]))
    out = reclassify(g, SLOPE)
    assert out.values.tolist() == [[3, 3, 2], [2, 0, 0]]
    assert out.shape == g.shape


def test_nodata_propagates_and_input_untouched():
    raw = np.array([[1.0, NODATA], [np.nan, 20.0]])
    g = Grid(raw)
    out = reclassify(g, SLOPE)
    assert out.values[0, 1] == NODATA
    assert out.values[1, 0] == NODATA
    assert out.values[1, 1] == 0.0
    assert np.isnan(g.values[1, 0])
    assert not out.values.flags.writeable


def test_gap_raises_with_value_and_variable():
    table = BreakpointTable.from_triples("water", [(0, 10, 1), (20, 30, 2)])
    g = Grid(np.array([[5.0, 15.0]]))
    with pytest.raises(RangeError) as ei:
        reclassify(g, table)
    assert ei.value.value == 15.0
    assert ei.value.matches == 0
    assert ei.value.variable == "water"
    assert "water" in str(ei.value)


def test_overlap_raises_instead_of_first_match():
    table = BreakpointTable.from_triples("slope", [(0, 10, 1), (5, 20, 2)])
    assert len(table.overlaps()) == 1
    with pytest.raises(RangeError) as ei:
        reclassify(Grid(np.array([[2.0, 7.0]])), table)
    assert ei.value.value == 7.0
    assert ei.value.matches == 2


def test_identity_table_is_idempotent():
    table = BreakpointTable.from_triples("id", [(k, k + 1, k) for k in range(5)])
    g = Grid(np.array([[0, 1, 2], [3, 4, NODATA]], dtype=float))
    once = reclassify(g, table)
    twice = reclassify(once, table)
    np.testing.assert_array_equal(once.values, g.values)
    np.testing.assert_array_equal(twice.values, once.values)


def test_interval_requires_ordered_bounds():
    with pytest.raises(ValueError):
        Interval(5, 5, 1)
    with pytest.raises(ValueError):
        BreakpointTable.from_triples("bad", [(0, 1)])
    with pytest.raises(ValueError):
        BreakpointTable("empty", ())


def test_reclassify_layers_needs_a_table_per_layer():
    layers = {"slope": Grid(np.ones((2, 2))), "water": Grid(np.ones((2, 2)))}
    with pytest.raises(KeyError):
        reclassify_layers(layers, {"slope": SLOPE})
    out = reclassify_layers({"slope": layers["slope"]}, {"slope": SLOPE})
    assert out["slope"].values.tolist() == [[3, 3], [3, 3]]


def test_load_breakpoints_accepts_triples_and_records(tmp_path):
    cfg = {
        "slope": [[0, 5, 3], [5, "Infinity", 1]],
        "water": [{"from": 0, "to": 100, "weight": 2}, {"from": 100, "to": 1e9, "weight": 0}],
    }
    p = tmp_path / "bp.json"
    p.write_text(json.dumps(cfg))
    tables = load_breakpoints(str(p))
    assert set(tables) == {"slope", "water"}
    assert tables["slope"].intervals[1].hi == math.inf
    assert tables["water"].intervals[0] == Interval(0, 100, 2)
    assert tables["water"].intervals[0].contains(0) and not tables["water"].intervals[0].contains(100)


def test_weight_equal_to_nodata_is_rejected():
    g = Grid(np.array([[1.0, 7.0]]), nodata=0.0)
    with pytest.raises(ValueError, match="NoData"):
        reclassify(g, BreakpointTable.from_triples("v", [(0, 5, 0), (5, 10, 1)]))
    with pytest.raises(ValueError, match="NoData"):
        reclassify(Grid(np.array([[1.0]])), BreakpointTable.from_triples("v", [(0, 5, NODATA)]))
    out = reclassify(g, BreakpointTable.from_triples("v", [(0, 5, 2), (5, 10, 1)]))
    assert out.values.tolist() == [[2.0, 1.0]]
