# region Imports
import numpy as np
import matplotlib.pyplot as plt
from matplotlib.lines import Line2D

from site_sensitivity.models import Grid, ThresholdReport
# endregion

# region Helpers
def _axes(ax, figsize=(7, 6)):
    if ax is None:
        _, ax = plt.subplots(figsize=figsize)
    return ax


def _mark(ax, x, y, label, color):
    if np.isfinite(x) and np.isfinite(y):
        ax.scatter([x], [y], s=60, edgecolors="black", facecolors=color, label=label, zorder=3)
# endregion

# region Surface Map
def show_surface(grid: Grid, ax=None, sites: Grid = None, title="Sensitivity surface",
                 cmap="viridis", show=False):
    """Render a grid with NoData transparent and optional site cells overlaid."""
    ax = _axes(ax, figsize=(8, 8))
    img = ax.imshow(grid.to_masked(), origin="upper", cmap=cmap)
    cbar = ax.figure.colorbar(img, ax=ax, fraction=0.046, pad=0.04)
    cbar.set_label("weight")

    if sites is not None:
        rc = np.argwhere(sites.valid_mask())
        if len(rc):
            ax.scatter(rc[:, 1], rc[:, 0], s=12, marker="^", edgecolors="black",
                       facecolors="red", label="Known sites", zorder=3)
            ax.legend(loc="lower right", fontsize=8, framealpha=0.85)

    ax.set_title(title)
    ax.set_axis_off()
    if show:
        plt.show()
    return ax
# endregion

# region ROC Curve
def show_roc_curve(report: ThresholdReport, ax=None, title="ROC", show=False):
    """Sens against 1 - Spec with the four recommended operating points marked."""
    ax = _axes(ax)
    sens = report.column("sens")
    back = report.column("back_pct")
    ax.plot(back, sens, color="tab:blue", linewidth=2)
    ax.plot([0, 1], [0, 1], color="gray", linestyle="--", linewidth=1)

    colors = {"sens_spec": "white", "xover": "yellow", "kg": "orange", "reach": "magenta"}
    for name, t in report.thresholds().items():
        row = report.row_at(t)
        if row is not None:
            _mark(ax, row.back_pct, row.sens, name, colors[name])

    ax.set_xlim(0, 1); ax.set_ylim(0, 1.02)
    ax.set_xlabel("1 - specificity (background flagged)")
    ax.set_ylabel("sensitivity")
    ax.set_title(f"{title} (AUC = {report.auc})")
    ax.legend(handles=[Line2D([0], [0], color="tab:blue", lw=2, label="ROC")]
              + [h for h in ax.collections if h.get_label() in colors],
              loc="lower right", fontsize=8, framealpha=0.85)
    if show:
        plt.show()
    return ax
# endregion

# region Metric Curves
def show_metric_curves(report: ThresholdReport, ax=None, title="Threshold metrics", show=False):
    ax = _axes(ax, figsize=(8, 5))
    t = report.column("threshold")
    finite = np.isfinite(t)
    for name, style in (("sens", "-"), ("spec", "-"), ("xover", ":"), ("kg", "--"), ("reach", "-.")):
        ax.plot(t[finite], report.column(name)[finite], style, label=name)
    ax.set_xlabel("threshold (surface value)")
    ax.set_ylabel("metric")
    ax.set_title(title)
    ax.legend(loc="best", fontsize=8)
    if show:
        plt.show()
    return ax
# endregion
