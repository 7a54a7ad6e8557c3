import os

import numpy as np
from numpy.testing import (  # NOQA: F401
    assert_array_equal,
    assert_equal,
    assert_raises,
)

from amrex_reader.definitions import NCOMP
from amrex_reader.geometry.box import Box

_little_endian_descriptor = "((8, (64 11 52 0 1 12 0 1023)),(8, (8 7 6 5 4 3 2 1)))"
_big_endian_descriptor = "((8, (64 11 52 0 1 12 0 1023)),(8, (1 2 3 4 5 6 7 8)))"
_single_descriptor = "((8, (32 8 23 0 1 9 0 127)),(4, (4 3 2 1)))"


def sentinel_value(i, j, k, comp):
    """A value unique to each (cell, component) of the fake plotfiles."""
    return comp * 1.0e6 + k * 1.0e4 + j * 1.0e2 + i + 0.25


def sentinel_cells(box):
    """Sentinel values over *box*, indexed ``[i, j, k, component]``."""
    i, j, k = (
        np.arange(l, h + 1, dtype="float64")[
            tuple(slice(None) if d == ax else None for d in range(3))
        ]
        for ax, (l, h) in enumerate(zip(box.lo, box.hi))
    )
    return np.stack([sentinel_value(i, j, k, c) for c in range(NCOMP)], axis=-1)


def expected_subdomain(lo, hi, boxes, fill=np.nan):
    """
    What an extraction of the absolute box ``[lo, hi]`` should produce as
    ``[component, i, j, k]``, with *fill* where no grid covers a cell.
    """
    query = Box(lo, hi)
    expected = np.full((NCOMP,) + query.shape, fill, dtype="float64")
    for box in boxes:
        overlap = box.intersection(query)
        if overlap is None:
            continue
        values = sentinel_cells(overlap)
        expected[(slice(None),) + overlap.slices(query.lo)] = np.moveaxis(values, -1, 0)
    return expected


def as_components(out, lo, hi):
    """View a flat output buffer as ``[component, i, j, k]``."""
    shape = tuple(h - l + 1 for l, h in zip(lo, hi))
    return out.reshape((NCOMP,) + shape, order="F")


def fake_plotfile(
    output_dir,
    boxes,
    time=0.5,
    prob_lo=(0.0, 0.0, 0.0),
    dx=(0.125, 0.125, 0.125),
    domain_box=None,
    nfiles=1,
    fab_boxes=None,
    fab_ncomp=None,
    descriptor=_little_endian_descriptor,
    field_names=("x_velocity", "y_velocity", "z_velocity"),
    dimensionality=3,
    finest_level=0,
    nghost=0,
):
    """
    Write a single-level plotfile holding :func:`sentinel_value` data.

    Grids are spread round-robin over *nfiles* data files.  *fab_boxes* and
    *fab_ncomp* override what is written into the FAB headers, to produce
    records that disagree with Cell_H.
    """
    boxes = [b if isinstance(b, Box) else Box(*b) for b in boxes]
    if fab_boxes is None:
        fab_boxes = boxes
    fab_boxes = [b if isinstance(b, Box) else Box(*b) for b in fab_boxes]
    if domain_box is None:
        domain_box = Box(
            np.min([b.lo for b in boxes], axis=0), np.max([b.hi for b in boxes], axis=0)
        )
    level_dir = os.path.join(output_dir, "Level_0")
    os.makedirs(level_dir, exist_ok=True)

    big_endian = descriptor == _big_endian_descriptor
    dtype = ">f8" if big_endian else "<f8"
    if descriptor == _single_descriptor:
        dtype = "<f4"
    ncomp = NCOMP if fab_ncomp is None else fab_ncomp

    fab_on_disk = []
    data_files = {}
    for gi, (box, fab_box) in enumerate(zip(boxes, fab_boxes)):
        fn = f"Cell_D_{gi % nfiles:05d}"
        f = data_files.get(fn)
        if f is None:
            f = data_files[fn] = open(os.path.join(level_dir, fn), "wb")
        fab_on_disk.append((fn, f.tell()))
        f.write(f"FAB {descriptor}{fab_box.to_string()} {ncomp}\n".encode("ascii"))
        values = sentinel_cells(box)
        f.write(values.astype(dtype).tobytes(order="F"))
    for f in data_files.values():
        f.close()

    with open(os.path.join(output_dir, "Header"), "w") as f:
        f.write("HyperCLaw-V1.1\n")
        f.write(f"{len(field_names)}\n")
        for name in field_names:
            f.write(f"{name}\n")
        f.write(f"{dimensionality}\n")
        f.write(f"{float(time)!r}\n")
        f.write(f"{finest_level}\n")
        prob_hi = [
            p + d * n for p, d, n in zip(prob_lo, dx, domain_box.shape)
        ]
        f.write(" ".join(repr(float(v)) for v in prob_lo) + " \n")
        f.write(" ".join(repr(float(v)) for v in prob_hi) + " \n")
        f.write("\n")
        f.write(domain_box.to_string() + " \n")
        f.write("0 \n")
        f.write(" ".join(repr(float(v)) for v in dx) + " \n")
        f.write("0\n")
        f.write("0\n")
        f.write(f"0 {len(boxes)} {float(time)!r}\n")
        f.write("0\n")
        for box in boxes:
            for d in range(3):
                lo = prob_lo[d] + dx[d] * (box.lo[d] - domain_box.lo[d])
                hi = lo + dx[d] * box.shape[d]
                f.write(f"{float(lo)!r} {float(hi)!r}\n")
        f.write("Level_0/Cell\n")

    with open(os.path.join(level_dir, "Cell_H"), "w") as f:
        f.write("1\n")
        f.write("0\n")
        f.write(f"{NCOMP}\n")
        f.write(f"{nghost}\n")
        f.write(f"({len(boxes)} 0\n")
        for box in boxes:
            f.write(box.to_string() + "\n")
        f.write(")\n")
        f.write(f"{len(boxes)}\n")
        for fn, offset in fab_on_disk:
            f.write(f"FabOnDisk: {fn} {offset}\n")
        f.write("\n")
        # per-FAB minima and maxima, which the reader skips
        for label in ("min", "max"):
            f.write(f"{len(boxes)},{NCOMP}\n")
            for box in boxes:
                values = sentinel_cells(box)
                agg = values.min(axis=(0, 1, 2)) if label == "min" else values.max(
                    axis=(0, 1, 2)
                )
                f.write(",".join(f"{float(v)!r}" for v in agg) + ",\n")
            f.write("\n")

    return output_dir
