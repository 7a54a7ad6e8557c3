"""
Title: conftest.py
Purpose: Contains fixtures writing small synthetic plotfiles.
"""
import pytest

from amrex_reader.context import DatasetContext
from amrex_reader.geometry.box import Box

# Two 4^3 grids sharing the x=3|4 face
two_grid_boxes = [Box((0, 0, 0), (3, 3, 3)), Box((4, 0, 0), (7, 3, 3))]

# A 2x2x2 arrangement of grids of uneven sizes, with negative indices
uneven_boxes = [
    Box((-4, -4, -2), (-1, -1, -1)),
    Box((0, -4, -2), (5, -1, -1)),
    Box((-4, 0, -2), (-1, 3, -1)),
    Box((0, 0, -2), (5, 3, -1)),
    Box((-4, -4, 0), (-1, -1, 2)),
    Box((0, -4, 0), (5, -1, 2)),
    Box((-4, 0, 0), (-1, 3, 2)),
    Box((0, 0, 0), (5, 3, 2)),
]


@pytest.fixture
def status_codes():
    return {"no_error": 0, "severe": 1, "fatal": -1}


@pytest.fixture
def context(status_codes):
    ctx = DatasetContext()
    ctx.configure_status_codes(**status_codes)
    return ctx


@pytest.fixture
def two_grid_plotfile(tmp_path):
    from amrex_reader.testing import fake_plotfile

    return fake_plotfile(str(tmp_path / "plt00000"), two_grid_boxes)


@pytest.fixture
def uneven_plotfile(tmp_path):
    from amrex_reader.testing import fake_plotfile

    return fake_plotfile(str(tmp_path / "plt00010"), uneven_boxes, nfiles=3)
