import os

import numpy as np
import pytest

from amrex_reader.context import DatasetContext
from amrex_reader.extraction import SubdomainExtractor, output_view
from amrex_reader.geometry.box import Box
from amrex_reader.status import STATUS_UNSET, Severity
from amrex_reader.testing import (
    as_components,
    assert_array_equal,
    assert_equal,
    expected_subdomain,
    fake_plotfile,
)
from amrex_reader.utilities.exceptions import AMReXBufferError

from .conftest import two_grid_boxes, uneven_boxes


def _buffer(lo, hi, fill=np.nan):
    n = 3 * int(np.prod([h - l + 1 for l, h in zip(lo, hi)]))
    return np.full(n, fill, dtype="float64")


def _extract(context, lo, hi, fill=np.nan):
    out = _buffer(lo, hi, fill)
    result = context.extract_subdomain(lo, hi, out)
    return result, as_components(out, lo, hi)


def test_query_inside_one_grid(context, two_grid_plotfile):
    assert context.load_dataset(two_grid_plotfile).ok
    lo, hi = (1, 0, 2), (2, 3, 3)
    result, values = _extract(context, lo, hi)
    assert_equal(result.severity, Severity.NOERROR)
    assert_equal(result.status, 0)
    assert_equal(result.message, "")
    assert_array_equal(values, expected_subdomain(lo, hi, two_grid_boxes))


def test_single_cell_query(context, two_grid_plotfile):
    context.load_dataset(two_grid_plotfile)
    out = np.zeros(3)
    result = context.extract_subdomain((5, 2, 1), (5, 2, 1), out)
    assert result.ok
    assert_array_equal(out, [5 + 200 + 10000 + 0.25, 1e6 + 10205.25, 2e6 + 10205.25])


def test_query_spanning_shared_face(context, two_grid_plotfile):
    context.load_dataset(two_grid_plotfile)
    lo, hi = (2, 1, 0), (5, 2, 3)
    result, values = _extract(context, lo, hi)
    assert result.ok
    expected = expected_subdomain(lo, hi, two_grid_boxes)
    assert not np.isnan(expected).any()
    assert_array_equal(values, expected)
    # each half comes from its own grid
    assert_array_equal(values[:, :2], expected_subdomain((2, 1, 0), (3, 2, 3), two_grid_boxes))
    assert_array_equal(values[:, 2:], expected_subdomain((4, 1, 0), (5, 2, 3), two_grid_boxes))


def test_whole_domain(context, uneven_plotfile):
    result = context.load_dataset(uneven_plotfile)
    assert_equal(result.domain_dimensions, (10, 8, 5))
    # local coordinates start at the lower corner of the grids, (-4, -4, -2)
    lo, hi = (0, 0, 0), (9, 7, 4)
    result, values = _extract(context, lo, hi)
    assert result.ok
    assert_array_equal(values, expected_subdomain((-4, -4, -2), (5, 3, 2), uneven_boxes))


def test_query_across_negative_indices(context, uneven_plotfile):
    context.load_dataset(uneven_plotfile)
    lo, hi = (2, 3, 1), (6, 5, 3)
    result, values = _extract(context, lo, hi)
    assert result.ok
    assert_array_equal(values, expected_subdomain((-2, -1, -1), (2, 1, 1), uneven_boxes))


def test_grid_one_bucket_below_query(context, tmp_path):
    boxes = [Box((0, 0, 0), (1, 1, 1)), Box((2, 0, 0), (5, 1, 1))]
    fn = fake_plotfile(str(tmp_path / "plt"), boxes)
    context.load_dataset(fn)
    lo, hi = (4, 0, 0), (5, 1, 1)
    result, values = _extract(context, lo, hi)
    assert result.ok
    assert_array_equal(values, expected_subdomain(lo, hi, boxes))


def test_partially_outside_is_severe(context, two_grid_plotfile):
    context.load_dataset(two_grid_plotfile)
    lo, hi = (6, 0, 0), (8, 3, 3)
    result, values = _extract(context, lo, hi, fill=-7.0)
    assert_equal(result.severity, Severity.SEVERE)
    assert_equal(result.status, 1)
    assert "Available data domain: (0:7,0:3,0:3)" in result.message
    assert "(6:8,0:3,0:3)" in result.message
    expected = expected_subdomain(lo, hi, two_grid_boxes, fill=-7.0)
    assert_array_equal(values, expected)
    assert np.all(values[:, 2] == -7.0)


def test_entirely_outside(context, two_grid_plotfile):
    context.load_dataset(two_grid_plotfile)
    lo, hi = (-5, -5, -5), (-2, -3, -4)
    result, values = _extract(context, lo, hi, fill=3.0)
    assert_equal(result.severity, Severity.SEVERE)
    assert np.all(values == 3.0)


def test_empty_query(context, two_grid_plotfile):
    context.load_dataset(two_grid_plotfile)
    result = context.extract_subdomain((3, 0, 0), (2, 3, 3), np.empty(0))
    assert_equal(result.severity, Severity.NOERROR)


def test_bad_record_stops_extraction(context, tmp_path):
    boxes = [Box((4 * i, 0, 0), (4 * i + 3, 3, 3)) for i in range(3)]
    fab_boxes = [boxes[0], Box((4, 0, 0), (7, 3, 2)), boxes[2]]
    fn = fake_plotfile(str(tmp_path / "plt"), boxes, fab_boxes=fab_boxes, nfiles=2)
    context.load_dataset(fn)
    lo, hi = (0, 0, 0), (11, 3, 3)
    result, values = _extract(context, lo, hi, fill=-1.0)
    assert_equal(result.severity, Severity.FATAL)
    assert_equal(result.status, -1)
    assert "Wrong data format" in result.message
    # the first grid was copied before the failure, nothing after it
    assert_array_equal(values[:, :4], expected_subdomain((0, 0, 0), (3, 3, 3), boxes))
    assert np.all(values[:, 4:] == -1.0)


def test_missing_data_file(context, two_grid_plotfile):
    context.load_dataset(two_grid_plotfile)
    os.remove(os.path.join(two_grid_plotfile, "Level_0", "Cell_D_00000"))
    result, _ = _extract(context, (0, 0, 0), (1, 1, 1))
    assert_equal(result.severity, Severity.FATAL)
    assert result.message.startswith("Failed to open")


@pytest.mark.parametrize(
    "lo, hi",
    [
        ((0, 0, 0), (1, 1, 1)),
        ((0, 0, 0), (0, 0, 0)),
        ((3, 0, 0), (2, 0, 0)),
        ((-9, 2, 1), (40, 3, 1)),
    ],
)
def test_not_loaded(context, lo, hi):
    out = _buffer(lo, hi, fill=5.0)
    result = context.extract_subdomain(lo, hi, out)
    assert_equal(result.severity, Severity.FATAL)
    assert_equal(result.status, -1)
    assert "not loaded" in result.message
    assert np.all(out == 5.0)


def test_status_codes_unconfigured(two_grid_plotfile):
    ctx = DatasetContext()
    assert not ctx.codes_configured
    assert not ctx.dataset_loaded
    result = ctx.extract_subdomain((0, 0, 0), (0, 0, 0), np.zeros(3))
    assert_equal(result.severity, Severity.FATAL)
    assert result.status is STATUS_UNSET
    load = ctx.load_dataset(two_grid_plotfile)
    assert load.ok
    assert load.status is STATUS_UNSET
    assert ctx.dataset_loaded
    assert not ctx.codes_configured
    ctx.configure_status_codes(10, 20, 30)
    assert_equal(ctx.extract_subdomain((0, 0, 0), (0, 0, 0), np.zeros(3)).status, 10)


def test_load_result(context, tmp_path):
    fn = fake_plotfile(
        str(tmp_path / "plt"),
        two_grid_boxes,
        time=2.5,
        prob_lo=(1.0, 2.0, 3.0),
        dx=(0.1, 0.2, 0.3),
    )
    result = context.load_dataset(fn)
    assert_equal(result.severity, Severity.NOERROR)
    assert_equal(result.status, 0)
    assert_equal(result.domain_dimensions, (8, 4, 4))
    assert_equal(result.origin, (1.0, 2.0, 3.0))
    assert_equal(result.spacing, (0.1, 0.2, 0.3))
    assert_equal(result.time, 2.5)


def test_failed_load_keeps_previous_dataset(context, two_grid_plotfile, tmp_path):
    assert context.load_dataset(two_grid_plotfile).ok
    bad = fake_plotfile(str(tmp_path / "bad"), uneven_boxes, nghost=2)
    result = context.load_dataset(bad)
    assert_equal(result.severity, Severity.FATAL)
    assert_equal(result.status, -1)
    assert result.domain_dimensions is None
    assert "ghost" in result.message
    assert context.dataset_loaded
    lo, hi = (0, 0, 0), (7, 3, 3)
    extraction, values = _extract(context, lo, hi)
    assert extraction.ok
    assert_array_equal(values, expected_subdomain(lo, hi, two_grid_boxes))


def test_failed_first_load_stays_unloaded(context, tmp_path):
    result = context.load_dataset(str(tmp_path / "missing"))
    assert_equal(result.severity, Severity.FATAL)
    assert not context.dataset_loaded
    result, _ = _extract(context, (0, 0, 0), (0, 0, 0))
    assert "not loaded" in result.message


def test_reload_replaces_dataset(context, two_grid_plotfile, uneven_plotfile):
    context.load_dataset(two_grid_plotfile)
    context.load_dataset(uneven_plotfile)
    assert_equal(context.plotfile.domain_dimensions, (10, 8, 5))
    lo, hi = (0, 0, 0), (9, 7, 4)
    result, values = _extract(context, lo, hi)
    assert result.ok
    assert_array_equal(values, expected_subdomain((-4, -4, -2), (5, 3, 2), uneven_boxes))


def test_independent_contexts(two_grid_plotfile, uneven_plotfile):
    a, b = DatasetContext(), DatasetContext()
    a.load_dataset(two_grid_plotfile)
    b.load_dataset(uneven_plotfile)
    assert_equal(a.plotfile.domain_dimensions, (8, 4, 4))
    assert_equal(b.plotfile.domain_dimensions, (10, 8, 5))


def test_message_truncation(context, two_grid_plotfile):
    context.load_dataset(two_grid_plotfile)
    out = _buffer((6, 0, 0), (8, 3, 3))
    result = context.extract_subdomain((6, 0, 0), (8, 3, 3), out, message_length=12)
    assert_equal(result.severity, Severity.SEVERE)
    assert_equal(result.message, "Available da")
    result = context.extract_subdomain((6, 0, 0), (8, 3, 3), out, message_length=0)
    assert_equal(result.severity, Severity.SEVERE)
    assert_equal(result.message, "")


@pytest.mark.parametrize(
    "out, reason",
    [
        (np.zeros(3 * 8 - 3), "holds 21 values"),
        (np.zeros(3 * 8, dtype="float32"), "float64"),
        (np.zeros((3 * 8, 2))[:, 0], "not contiguous"),
        ([0.0] * 24, "numpy array"),
    ],
)
def test_bad_buffers(context, two_grid_plotfile, out, reason):
    context.load_dataset(two_grid_plotfile)
    result = context.extract_subdomain((0, 0, 0), (1, 1, 1), out)
    assert_equal(result.severity, Severity.FATAL)
    assert reason in result.message


def test_read_only_buffer(context, two_grid_plotfile):
    context.load_dataset(two_grid_plotfile)
    out = np.zeros(24)
    out.flags.writeable = False
    result = context.extract_subdomain((0, 0, 0), (1, 1, 1), out)
    assert_equal(result.severity, Severity.FATAL)
    assert "read-only" in result.message


def test_output_layout():
    out = np.arange(3 * 2 * 3 * 4, dtype="float64")
    view = output_view(out, (2, 3, 4))
    assert_equal(view.shape, (3, 2, 3, 4))
    # component fastest, then i, j, k
    assert_equal(view[1, 0, 0, 0], 1)
    assert_equal(view[0, 1, 0, 0], 3)
    assert_equal(view[0, 0, 1, 0], 6)
    assert_equal(view[0, 0, 0, 1], 18)
    view[2, 1, 2, 3] = -1
    assert_equal(out[2 + 3 * (1 + 2 * (2 + 3 * 3))], -1)


def test_output_view_shaped_buffers():
    c_order = np.zeros((4, 3, 2, 3))
    output_view(c_order, (2, 3, 4))[1, 1, 2, 3] = 9
    assert_equal(c_order[3, 2, 1, 1], 9)
    f_order = np.zeros((3, 2, 3, 4), order="F")
    output_view(f_order, (2, 3, 4))[1, 1, 2, 3] = 9
    assert_equal(f_order[1, 1, 2, 3], 9)
    with pytest.raises(AMReXBufferError):
        output_view(np.zeros(5), (2, 3, 4))
    with pytest.raises(AMReXBufferError, match="not contiguous"):
        output_view(np.zeros(144)[::2], (2, 3, 4))


def test_extractor_direct(two_grid_plotfile):
    from amrex_reader.data_structures import AMReXPlotfile

    extractor = SubdomainExtractor(AMReXPlotfile(two_grid_plotfile))
    out = _buffer((0, 0, 0), (7, 3, 3))
    severity, message = extractor.extract((0, 0, 0), (7, 3, 3), out)
    assert_equal(severity, Severity.NOERROR)
    assert_array_equal(
        as_components(out, (0, 0, 0), (7, 3, 3)),
        expected_subdomain((0, 0, 0), (7, 3, 3), two_grid_boxes),
    )


def test_empty_query_outside_bounds(context, two_grid_plotfile):
    # an empty box is never checked for containment
    context.load_dataset(two_grid_plotfile)
    out = np.full(6, 4.0)
    result = context.extract_subdomain((-5, 0, 0), (-6, 0, 0), out)
    assert_equal(result.severity, Severity.NOERROR)
    assert_equal(result.status, 0)
    assert_equal(result.message, "")
    assert np.all(out == 4.0)


@pytest.mark.parametrize(
    "lo, hi",
    [
        ((1.7, 0, 0), (3, 3, 3)),
        ((0, 0, 0), (3, 3.0, 3)),
        ((0, 0, 0), ("3", 3, 3)),
    ],
)
def test_non_integral_corners(context, two_grid_plotfile, lo, hi):
    context.load_dataset(two_grid_plotfile)
    out = np.full(3 * 4 * 4 * 4, 2.0)
    with pytest.raises(TypeError):
        context.extract_subdomain(lo, hi, out)
    assert np.all(out == 2.0)


def test_numpy_integer_corners(context, two_grid_plotfile):
    context.load_dataset(two_grid_plotfile)
    lo, hi = np.array([1, 0, 2]), (np.int32(6), np.int64(3), 3)
    out = _buffer((1, 0, 2), (6, 3, 3))
    result = context.extract_subdomain(lo, hi, out)
    assert_equal(result.severity, Severity.NOERROR)
    assert_array_equal(
        as_components(out, (1, 0, 2), (6, 3, 3)),
        expected_subdomain((1, 0, 2), (6, 3, 3), two_grid_boxes),
    )


def test_handles_closed_after_bad_record(context, tmp_path, monkeypatch):
    from amrex_reader import extraction

    boxes = [Box((4 * i, 0, 0), (4 * i + 3, 3, 3)) for i in range(3)]
    fab_boxes = [boxes[0], Box((4, 0, 0), (7, 3, 2)), boxes[2]]
    fn = fake_plotfile(str(tmp_path / "plt"), boxes, fab_boxes=fab_boxes, nfiles=3)
    context.load_dataset(fn)

    opened = []

    class RecordingCache(extraction.FileHandleCache):
        def __getitem__(self, filename):
            f = super().__getitem__(filename)
            opened.append(f)
            return f

    monkeypatch.setattr(extraction, "FileHandleCache", RecordingCache)
    result, _ = _extract(context, (0, 0, 0), (11, 3, 3))
    assert_equal(result.severity, Severity.FATAL)
    assert "Wrong data format" in result.message
    assert len({f.name for f in opened}) == 2
    assert all(f.closed for f in opened)
