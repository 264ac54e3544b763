# app.py: Slim Flask API over the sensitivity pipeline
# deps: pip install flask numpy pillow

from __future__ import annotations
from typing import Any, Dict, Optional
import io, logging, math
import numpy as np
from flask import Flask, request, jsonify, make_response
from PIL import Image

from site_sensitivity.config import API_HOST, API_PORT, CRITERIA, NODATA
from site_sensitivity.errors import RangeError, ShapeMismatchError
from site_sensitivity.grid import sites_to_mask
from site_sensitivity.models import Grid, GridSpec
from site_sensitivity.pipeline import SensitivityRun, run_sensitivity
from site_sensitivity.reclassify import tables_from_config

LOGGER = logging.getLogger(__name__)

app = Flask(__name__)


class BadRequest(ValueError):
    pass


# ======= CORS =======
@app.after_request
def _cors(resp):
    resp.headers["Access-Control-Allow-Origin"]  = "*"
    resp.headers["Access-Control-Allow-Headers"] = "*"
    resp.headers["Access-Control-Allow-Methods"] = "GET,POST,OPTIONS"
    return resp


# ======= helpers =======
def _num(x: float) -> Optional[float]:
    # JSON has no NaN/Infinity; undefined values go out as null
    x = float(x)
    return x if math.isfinite(x) else None


def _grid_json(g: Grid):
    return [[_num(v) if ok else None for v, ok in zip(row, okrow)]
            for row, okrow in zip(g.values.tolist(), g.valid_mask().tolist())]


def _parse_spec(data: Dict[str, Any], H: int, W: int) -> Optional[GridSpec]:
    ext = data.get("extent")
    if not ext:
        return None
    try:
        return GridSpec(float(ext["min_lon"]), float(ext["min_lat"]),
                        float(ext["max_lon"]), float(ext["max_lat"]), W, H)
    except (KeyError, TypeError, ValueError) as e:
        raise BadRequest(f"extent must hold min_lon, min_lat, max_lon, max_lat: {e}")


def _parse_grid(raw, nodata: float, spec: Optional[GridSpec], name: str) -> Grid:
    try:
        arr = np.array([[nodata if v is None else float(v) for v in row] for row in raw],
                       dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise BadRequest(f"{name} must be a 2-D array of numbers: {e}")
    if arr.ndim != 2 or arr.size == 0:
        raise BadRequest(f"{name} must be a non-empty 2-D array.")
    return Grid(arr, nodata=nodata, spec=spec)


def _run_from_request(data: Dict[str, Any]) -> SensitivityRun:
    layers_raw = data.get("layers") or {}
    if not isinstance(layers_raw, dict) or not layers_raw:
        raise BadRequest("layers must map variable names to 2-D arrays.")
    bp = data.get("breakpoints") or {}
    if not isinstance(bp, dict):
        raise BadRequest("breakpoints must map variable names to interval lists.")

    nodata = float(data.get("nodata", NODATA))
    for k, v in layers_raw.items():
        if not isinstance(v, list) or not v or not all(isinstance(row, list) for row in v):
            raise BadRequest(f"layers.{k} must be a non-empty 2-D array.")
    first = next(iter(layers_raw.values()))
    H = len(first); W = len(first[0])
    spec = _parse_spec(data, H, W)

    layers = {k: _parse_grid(v, nodata, spec, f"layers.{k}") for k, v in layers_raw.items()}

    if data.get("mask") is not None:
        mask = _parse_grid(data["mask"], nodata, spec, "mask")
    elif data.get("sites") is not None:
        if spec is None:
            raise BadRequest("sites given as lon/lat need an extent.")
        try:
            pts = [(float(p["lon"]), float(p["lat"])) for p in data["sites"]]
        except (KeyError, TypeError, ValueError):
            raise BadRequest("sites must be a list of {lon, lat} objects.")
        mask = sites_to_mask(pts, spec, nodata=nodata)
    else:
        raise BadRequest("Either mask or sites is required.")

    criterion = data.get("criterion")
    criterion = None if criterion in (None, "", "null") else str(criterion).lower()
    if criterion is not None and criterion not in CRITERIA:
        raise BadRequest(f"criterion must be one of {', '.join(CRITERIA)}")

    try:
        tables = tables_from_config(bp)
    except TypeError as e:
        raise BadRequest(f"breakpoints must map variable names to lists of [from, to, weight]: {e}")

    return run_sensitivity(layers, tables, mask, criterion=criterion)


def _error(e: Exception):
    LOGGER.info("Rejected request: %s", e)
    body = {"error": str(e), "type": type(e).__name__}
    if isinstance(e, RangeError):
        body.update({"value": _num(e.value), "variable": e.variable})
    return jsonify(body), 400


# ======= public endpoints =======
@app.route("/", methods=["GET"])
def root():
    return {"ok": True,
            "evaluate": "/sensitivity/evaluate (POST JSON)",
            "preview": "/sensitivity/preview (POST JSON, image/png)",
            "criteria": list(CRITERIA)}


@app.route("/sensitivity/evaluate", methods=["POST"])
def evaluate():
    """
    JSON body:
    {
      "layers": {"slope": [[..], ..], "water": [[..], ..]},
      "breakpoints": {"slope": [[from, to, weight], ..], ..},
      "mask": [[..], ..]                     // non-null cells are sites
        or "sites": [{"lon":..,"lat":..}, ..] with "extent",
      "extent": {"min_lon":..,"min_lat":..,"max_lon":..,"max_lat":..},
      "nodata": -9999,
      "criterion": "sens_spec" | "xover" | "kg" | "reach" | null
    }
    """
    data = request.get_json(force=True, silent=True) or {}
    try:
        run = _run_from_request(data)
    except (ShapeMismatchError, RangeError, KeyError, TypeError, ValueError) as e:
        return _error(e)

    rep = run.report
    resp = {
        "auc": _num(rep.auc),
        "thresholds": {k: _num(v) for k, v in rep.thresholds().items()},
        "n_positive": rep.n_positive,
        "n_negative": rep.n_negative,
        "degenerate": rep.degenerate,
        "table": [{k: _num(v) for k, v in r.items()} for r in rep.as_records()],
        "surface": _grid_json(run.surface),
    }
    if run.criterion is not None:
        resp["criterion"] = run.criterion
        resp["threshold"] = _num(run.threshold)
        resp["prediction"] = _grid_json(run.prediction) if run.prediction is not None else None
    return jsonify(resp)


@app.route("/sensitivity/preview", methods=["POST"])
def preview():
    """Same body as /sensitivity/evaluate; PNG of the prediction, or the surface without one."""
    data = request.get_json(force=True, silent=True) or {}
    try:
        run = _run_from_request(data)
    except (ShapeMismatchError, RangeError, KeyError, TypeError, ValueError) as e:
        return _error(e)

    g = run.prediction if run.prediction is not None else run.surface
    arr = g.values
    valid = g.valid_mask()
    vals = arr[valid]
    if vals.size == 0:
        lo, hi = 0.0, 1.0
    else:
        lo, hi = float(np.min(vals)), float(np.max(vals))
        if hi <= lo:
            hi = lo + 1.0

    scaled = np.clip((np.where(valid, arr, lo) - lo) / (hi - lo), 0, 1)
    rgba = np.zeros(arr.shape + (4,), dtype="uint8")
    rgba[..., 0] = rgba[..., 1] = rgba[..., 2] = (scaled * 255).astype("uint8")
    rgba[..., 3] = np.where(valid, 255, 0)

    buf = io.BytesIO()
    Image.fromarray(rgba).save(buf, "PNG")
    buf.seek(0)
    resp = make_response(buf.read())
    resp.headers["Content-Type"] = "image/png"
    return resp


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app.run(host=API_HOST, port=API_PORT, threaded=True)
