# tests/conftest.py
# Ensure project root is importable as a module during pytest runs
import pathlib
import sys

import matplotlib
import numpy as np
import pytest

matplotlib.use("Agg")

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from site_sensitivity.config import NODATA  # noqa: E402
from site_sensitivity.models import Grid, LabeledSample  # noqa: E402


@pytest.fixture
def scenario_sample():
    # six background cells, cells 2 and 3 (values 20 and 10) are sites
    background = [0, 10, 20, 10, 0, 20]
    sites = [20, 10]
    return LabeledSample(background + sites, [0] * 6 + [1] * 2)


@pytest.fixture
def scenario_grids():
    surface = Grid(np.array([[0, 10, 20], [10, 0, 20]], dtype=float))
    mask = Grid(np.array([[NODATA, NODATA, 1.0], [1.0, NODATA, NODATA]]))
    return surface, mask
