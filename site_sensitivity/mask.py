# mask.py
import logging
import numpy as np

from site_sensitivity.grid import check_aligned
from site_sensitivity.models import Grid, LabeledSample

LOGGER = logging.getLogger(__name__)


def extract_positives(surface: Grid, mask: Grid) -> np.ndarray:
    """
    Surface values under every non-NoData mask cell, in row-major order.
    Mask cells lying on NoData surface cells carry no value and are dropped.
    """
    check_aligned([surface, mask], what="surface/mask")
    site = mask.valid_mask()
    keep = site & surface.valid_mask()
    dropped = int(site.sum() - keep.sum())
    if dropped:
        LOGGER.warning("%d site cell(s) fall on NoData surface cells and were skipped", dropped)
    return surface.values[keep].copy()


def build_labeled_sample(surface: Grid, mask: Grid) -> LabeledSample:
    """Every valid surface cell as background (0), plus every site cell again as a site (1)."""
    background = surface.finite_values()
    sites = extract_positives(surface, mask)
    values = np.concatenate([background, sites])
    labels = np.concatenate([np.zeros(background.size, dtype=np.int8),
                             np.ones(sites.size, dtype=np.int8)])
    LOGGER.info("Labeled sample: %d background rows, %d site rows",
                background.size, sites.size)
    return LabeledSample(values, labels)
