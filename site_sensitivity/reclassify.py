# reclassify.py
# ----------------
# Continuous raster values -> discrete weight classes.
#
# Exposes:
#   - reclassify(grid, table)             (GridReclassifier)
#   - reclassify_layers(layers, tables)   (one table per named variable)
#   - load_breakpoints(path)              (JSON -> BreakpointTable per variable)

from __future__ import annotations
import json
import logging
from typing import Dict, Mapping
import numpy as np

from site_sensitivity.errors import RangeError
from site_sensitivity.models import BreakpointTable, Grid

LOGGER = logging.getLogger(__name__)


# -----------------------------
# Reclassification
# -----------------------------

def reclassify(grid: Grid, table: BreakpointTable) -> Grid:
    """
    Map every valid cell to the weight of the unique interval [from, to)
    containing it. NoData cells stay NoData.

    Raises RangeError for the first valid cell that falls in no interval
    (a gap) or in more than one (an overlap).
    Raises ValueError when a weight would read back as NoData.
    """
    v = grid.values
    valid = grid.valid_mask()

    for iv in table.intervals:
        if not np.isfinite(iv.weight) or iv.weight == grid.nodata:
            raise ValueError(f"{table.name}: weight {iv.weight} of [{iv.lo:g}, {iv.hi:g}) "
                             f"collides with NoData ({grid.nodata}).")

    out = np.full(v.shape, grid.nodata, dtype=np.float64)
    hits = np.zeros(v.shape, dtype=np.int32)

    for iv in table.intervals:
        sel = valid & (v >= iv.lo) & (v < iv.hi)
        hits += sel
        out[sel] = iv.weight

    bad = valid & (hits != 1)
    if bad.any():
        r, c = np.argwhere(bad)[0]
        n_bad = int(bad.sum())
        LOGGER.error("%s: %d cell(s) not covered by exactly one interval", table.name, n_bad)
        raise RangeError(v[r, c], hits[r, c], table.name)

    LOGGER.debug("Reclassified %s: %d valid cells into %d classes",
                 table.name, int(valid.sum()), len(table))
    return grid.with_values(out)


def reclassify_layers(layers: Mapping[str, Grid],
                      tables: Mapping[str, BreakpointTable]) -> Dict[str, Grid]:
    missing = [name for name in layers if name not in tables]
    if missing:
        raise KeyError(f"No breakpoint table for layer(s): {', '.join(missing)}")
    return {name: reclassify(grid, tables[name]) for name, grid in layers.items()}


# -----------------------------
# Breakpoint configuration
# -----------------------------

def tables_from_config(cfg: Mapping[str, list]) -> Dict[str, BreakpointTable]:
    """
    cfg: {variable: [[from, to, weight], ...]}
      or {variable: [{"from": .., "to": .., "weight": ..}, ...]}
    """
    tables = {}
    for name, rows in cfg.items():
        rows = list(rows)
        if rows and isinstance(rows[0], Mapping):
            tables[name] = BreakpointTable.from_records(name, rows)
        else:
            tables[name] = BreakpointTable.from_triples(name, rows)
        for a, b in tables[name].overlaps():
            LOGGER.warning("%s: intervals [%g, %g) and [%g, %g) overlap",
                           name, a.lo, a.hi, b.lo, b.hi)
    return tables


def load_breakpoints(path: str) -> Dict[str, BreakpointTable]:
    with open(path, "r") as f:
        cfg = json.load(f)
    if not isinstance(cfg, dict):
        raise ValueError(f"{path}: expected an object keyed by variable name.")
    return tables_from_config(cfg)
