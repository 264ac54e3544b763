# raster.py
# GeoTIFF adapter: rasterio in, Grid out (and back). The core never imports this.
from typing import Optional
import numpy as np
import rasterio
from rasterio.crs import CRS
from rasterio.transform import from_origin

from site_sensitivity.config import NODATA
from site_sensitivity.models import Grid, GridSpec


def _spec_from_dataset(ds) -> GridSpec:
    # bounds are cell edges; GridSpec holds the edge-cell centres
    xres, yres = abs(ds.transform.a), abs(ds.transform.e)
    b = ds.bounds
    return GridSpec(
        min_lon=b.left + xres / 2.0,
        min_lat=b.bottom + yres / 2.0,
        max_lon=b.right - xres / 2.0,
        max_lat=b.top - yres / 2.0,
        W=int(ds.width),
        H=int(ds.height),
    )


def read_grid(path: str, band: int = 1) -> Grid:
    with rasterio.open(path) as ds:
        arr = ds.read(band).astype(np.float64)
        nodata = ds.nodata
        spec = _spec_from_dataset(ds)

    if nodata is not None and not np.isnan(nodata):
        mask_nodata = np.isclose(arr, nodata) | ~np.isfinite(arr)
    else:
        mask_nodata = ~np.isfinite(arr)
    arr = np.where(mask_nodata, NODATA, arr)
    return Grid(arr, nodata=NODATA, spec=spec)


def _transform_from_spec(spec: GridSpec):
    xres = (spec.max_lon - spec.min_lon) / max(spec.W - 1, 1) or 1.0
    yres = (spec.max_lat - spec.min_lat) / max(spec.H - 1, 1) or 1.0
    return from_origin(spec.min_lon - xres / 2.0, spec.max_lat + yres / 2.0, xres, yres)


def write_grid(grid: Grid, path: str, like: Optional[str] = None) -> str:
    """
    Single-band float32 GeoTIFF. Georeferencing comes from the template
    raster `like` when given, else from grid.spec (EPSG:4326), else none.
    """
    H, W = grid.shape
    crs, transform = None, None
    if like is not None:
        with rasterio.open(like) as ref:
            if (ref.height, ref.width) != (H, W):
                raise ValueError(f"Template {like} is {ref.height}x{ref.width}, grid is {H}x{W}.")
            crs, transform = ref.crs, ref.transform
    elif grid.spec is not None:
        crs, transform = CRS.from_epsg(4326), _transform_from_spec(grid.spec)

    profile = dict(driver="GTiff", height=H, width=W, count=1, dtype="float32",
                   nodata=grid.nodata)
    if crs is not None:
        profile["crs"] = crs
    if transform is not None:
        profile["transform"] = transform

    data = np.where(grid.valid_mask(), grid.values, grid.nodata).astype(np.float32)
    with rasterio.open(path, "w", **profile) as dst:
        dst.write(data, 1)
    return path
