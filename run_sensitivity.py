# region Header
"""
run_sensitivity.py: build and validate a site sensitivity surface

Requires:
  pip install numpy rasterio matplotlib

Examples:
  python run_sensitivity.py --layer slope=slope.tif --layer water=water_dist.tif \
      --breakpoints breakpoints.json --mask sites.tif --criterion kg --out prediction.tif
  python run_sensitivity.py --synthetic --plot report.png
"""
# endregion

# region Imports
import argparse
import json
import logging
import math
import sys

from site_sensitivity.config import CRITERIA
from site_sensitivity.grid import sites_to_mask
from site_sensitivity.models import BreakpointTable
from site_sensitivity.pipeline import run_sensitivity
from site_sensitivity.reclassify import load_breakpoints

LOGGER = logging.getLogger("run_sensitivity")
# endregion

# region Synthetic Defaults
SYNTHETIC_BREAKPOINTS = {
    "slope": [(0.0, 5.0, 3.0), (5.0, 15.0, 2.0), (15.0, 30.0, 1.0), (30.0, math.inf, 0.0)],
    "water": [(0.0, 150.0, 3.0), (150.0, 600.0, 2.0), (600.0, 1500.0, 1.0), (1500.0, math.inf, 0.0)],
}


def synthetic_inputs(seed=0, size=128):
    from site_sensitivity.terrain import make_synthetic_landscape
    land = make_synthetic_landscape(H=size, W=size, seed=seed)
    layers = {"slope": land.slope, "water": land.water_dist}
    tables = {k: BreakpointTable.from_triples(k, v) for k, v in SYNTHETIC_BREAKPOINTS.items()}
    return layers, tables, land.sites
# endregion

# region Argument Parsing
def _layer_arg(s):
    name, sep, path = s.partition("=")
    if not sep or not name or not path:
        raise argparse.ArgumentTypeError(f"expected NAME=PATH, got {s!r}")
    return name, path


def build_parser():
    p = argparse.ArgumentParser(description="Site sensitivity surface and threshold report")
    p.add_argument("--layer", action="append", type=_layer_arg, default=[],
                   metavar="NAME=PATH", help="environmental GeoTIFF, repeat per variable")
    p.add_argument("--breakpoints", help="JSON file {variable: [[from, to, weight], ...]}")
    p.add_argument("--mask", help="presence-mask GeoTIFF (non-NoData cells are sites)")
    p.add_argument("--sites", help="JSON file [{\"lon\": .., \"lat\": ..}, ...] snapped to the layer grid")
    p.add_argument("--criterion", choices=CRITERIA, help="threshold used for the prediction grid")
    p.add_argument("--out", help="write the prediction grid to this GeoTIFF")
    p.add_argument("--plot", help="save ROC and surface figure to this image file")
    p.add_argument("--synthetic", action="store_true", help="run on a generated study area")
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("-v", "--verbose", action="store_true")
    return p
# endregion

# region Inputs
def load_inputs(args):
    if args.synthetic:
        return synthetic_inputs(seed=args.seed)

    from site_sensitivity.raster import read_grid
    if not args.layer:
        raise SystemExit("At least one --layer NAME=PATH is required (or --synthetic).")
    if not args.breakpoints:
        raise SystemExit("--breakpoints is required.")

    layers = {name: read_grid(path) for name, path in args.layer}
    tables = load_breakpoints(args.breakpoints)
    if args.mask:
        mask = read_grid(args.mask)
    elif args.sites:
        with open(args.sites, "r") as f:
            pts = [(float(p["lon"]), float(p["lat"])) for p in json.load(f)]
        spec = next(iter(layers.values())).spec
        mask = sites_to_mask(pts, spec)
    else:
        raise SystemExit("Either --mask or --sites is required.")
    return layers, tables, mask
# endregion

# region Report
def _fmt(x):
    return "   nan" if isinstance(x, float) and math.isnan(x) else f"{x:6.3f}"


def print_report(report, out=None):
    out = out or sys.stdout
    print(f"Sites: {report.n_positive} | Background cells: {report.n_negative}", file=out)
    print(f"AUC: {report.auc}", file=out)
    print(f"{'threshold':>10} {'sens':>6} {'spec':>6} {'xover':>6} {'kg':>6} {'reach':>6}", file=out)
    for r in report.rows:
        print(f"{r.threshold:>10.3f} {_fmt(r.sens)} {_fmt(r.spec)} "
              f"{_fmt(r.xover)} {_fmt(r.kg)} {_fmt(r.reach)}", file=out)
    for name, t in report.thresholds().items():
        print(f"{name:>10} threshold: {t}", file=out)


def save_figure(run, sites, path):
    import matplotlib.pyplot as plt
    from site_sensitivity.viz import show_roc_curve, show_surface
    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(13, 6))
    show_surface(run.surface, ax=ax1, sites=sites)
    show_roc_curve(run.report, ax=ax2)
    fig.tight_layout()
    fig.savefig(path, dpi=120)
    plt.close(fig)
    return path
# endregion

# region Main
def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    layers, tables, mask = load_inputs(args)
    LOGGER.info("Layers: %s | grid %dx%d", ", ".join(layers), *mask.shape)
    run = run_sensitivity(layers, tables, mask, criterion=args.criterion)
    print_report(run.report)

    if args.out:
        if run.prediction is None:
            LOGGER.error("No prediction grid to write (criterion missing or threshold undefined).")
            return 1
        from site_sensitivity.raster import write_grid
        like = args.layer[0][1] if args.layer else None
        write_grid(run.prediction, args.out, like=like)
        LOGGER.info("Wrote prediction grid to %s", args.out)

    if args.plot:
        save_figure(run, mask, args.plot)
        LOGGER.info("Saved figure to %s", args.plot)
    return 0


if __name__ == "__main__":
    sys.exit(main())
# endregion
