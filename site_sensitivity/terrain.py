# terrain.py
# ----------------
# Environmental layers derived from terrain, plus a synthetic study area.
#
# Exposes:
#   - slope_deg(dem, meters_per_cell)
#   - SyntheticLandscape      (data container)
#   - make_synthetic_landscape(H=128, W=128, seed=0, ...)
#
# Dependencies: numpy

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import numpy as np

from site_sensitivity.config import NODATA
from site_sensitivity.models import Grid, GridSpec


# -----------------------------
# Slope
# -----------------------------

def slope_deg(dem: Grid, meters_per_cell: float) -> Grid:
    """
    Slope from DEM using central differences.
      slope = arctan( sqrt( (dz/dx)^2 + (dz/dy)^2 ) )  [degrees]
    NoData cells are filled with the mean height for differencing and stay
    NoData in the output.
    """
    if meters_per_cell <= 0:
        raise ValueError("meters_per_cell must be positive.")
    valid = dem.valid_mask()
    if not valid.any():
        return dem.with_values(np.full(dem.shape, dem.nodata))
    height = np.where(valid, dem.values, dem.values[valid].mean())
    gy, gx = np.gradient(height, meters_per_cell, meters_per_cell)
    slope = np.degrees(np.arctan(np.hypot(gx, gy)))
    return dem.with_values(np.where(valid, slope, dem.nodata))


# -----------------------------
# Synthetic study area (for tests and demos)
# -----------------------------

@dataclass
class SyntheticLandscape:
    """
    dem:        heights in meters
    slope:      slope in degrees
    water_dist: distance to the river in meters
    sites:      presence mask, 1.0 at site cells, NoData elsewhere
    """
    dem: Grid
    slope: Grid
    water_dist: Grid
    sites: Grid
    meters_per_cell: float


def make_synthetic_landscape(
    H: int = 128,
    W: int = 128,
    seed: int = 0,
    meters_per_cell: float = 30.0,
    n_sites: int = 40,
    spec: Optional[GridSpec] = None,
) -> SyntheticLandscape:
    """
    Rolling hills cut by one meandering river. Sites are drawn without
    replacement with probability favouring gentle slopes close to water,
    so a sensible weighting scheme separates them from background.
    """
    rng = np.random.default_rng(seed)
    if spec is None:
        spec = GridSpec(0.0, 0.0, W * 0.001, H * 0.001, W, H)
    yy, xx = np.meshgrid(np.linspace(0, 4*np.pi, H), np.linspace(0, 4*np.pi, W), indexing="ij")

    base = 60 * np.sin(0.5*xx) * np.cos(0.4*yy)
    long_waves = 40 * np.sin(0.15*xx + 0.3) * np.cos(0.12*yy - 0.8)
    noise = rng.normal(0, 2.0, (H, W))
    height = base + long_waves + noise

    rows = np.arange(H)[:, None]
    river_row = H / 2.0 + (H / 6.0) * np.sin(np.linspace(0, 2*np.pi, W))[None, :]
    water = np.abs(rows - river_row) * meters_per_cell

    dem = Grid(height, nodata=NODATA, spec=spec)
    slope = slope_deg(dem, meters_per_cell)

    attract = np.exp(-slope.values / 8.0) * np.exp(-water / (8.0 * meters_per_cell))
    p = attract.ravel() / attract.sum()
    n = max(0, min(int(n_sites), H * W))
    picks = rng.choice(H * W, size=n, replace=False, p=p)
    sites = np.full(H * W, NODATA)
    sites[picks] = 1.0

    return SyntheticLandscape(
        dem=dem,
        slope=slope,
        water_dist=Grid(water, nodata=NODATA, spec=spec),
        sites=Grid(sites.reshape(H, W), nodata=NODATA, spec=spec),
        meters_per_cell=float(meters_per_cell),
    )
