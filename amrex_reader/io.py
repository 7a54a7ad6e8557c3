import contextlib
import re

import numpy as np

from amrex_reader.definitions import (
    BYTES_PER_REAL,
    FAB_DESCRIPTOR_CLOSERS,
    FAB_MAGIC,
    NCOMP,
)
from amrex_reader.geometry.box import Box
from amrex_reader.utilities.exceptions import AMReXFABFormatError, AMReXFileOpenError
from amrex_reader.utilities.logger import arLogger as mylog

# FAB header lines as written by AMReX:
#   DOUBLE data
#   FAB ((8, (64 11 52 0 1 12 0 1023)),(8, (8 7 6 5 4 3 2 1)))((0,0,0) (63,63,63) (0,0,0)) 3
#   FLOAT data
#   FAB ((8, (32 8 23 0 1 9 0 127)),(4, (4 3 2 1)))((0,0,0) (63,63,63) (0,0,0)) 3
_descriptor_regex = re.compile(r"^\(\(\d+,\ \([\d\ ]+\)\),\((\d+),\ \(([\d\ ]+)\)\)\)$")
_3dregx = r"-?\d+,-?\d+,-?\d+"
_fab_box_pattern = re.compile(
    rf"""^\s*\(
          \s*\(( {_3dregx} )\)      # match `start`
          \s*\(( {_3dregx} )\)      # match `end`
          \s*\(  {_3dregx}   \)     # skip `centering`
        \s*\)
        \s*(-?\d+)                  # match `nc`
        \s*$
    """,
    re.VERBOSE,
)


def _descriptor_dtype(descriptor):
    """
    The dtype described by a FAB real descriptor.  Anything we cannot parse
    is read as little-endian float64.
    """
    match = _descriptor_regex.match(descriptor)
    if match is None:
        mylog.debug("Unrecognized real descriptor %s, assuming <f8", descriptor)
        return np.dtype("<f8")
    bpr, endian = match.groups()
    order = endian.split()
    if int(bpr) != BYTES_PER_REAL:
        return None
    if order == [str(i) for i in range(len(order), 0, -1)]:
        return np.dtype(f"<f{bpr}")
    if order == [str(i) for i in range(1, len(order) + 1)]:
        return np.dtype(f">f{bpr}")
    mylog.debug("Unrecognized byte order %s, assuming <f8", endian)
    return np.dtype("<f8")


class FABRecord:
    """
    One grid's data as stored on disk: a text header line followed by the
    payload, component-major with axis 0 fastest.

    ``data`` is indexed ``[i, j, k, component]``.
    """

    def __init__(self, box, ncomp, data):
        self.box = box
        self.ncomp = ncomp
        self.data = data

    @classmethod
    def read(cls, f, entry, max_header_bytes=4096):
        """
        Read the record of catalog *entry* from the open binary file *f*,
        checking it against the catalog before trusting its payload.
        """

        def bad(reason):
            return AMReXFABFormatError(entry.filename, entry.offset, reason)

        f.seek(entry.offset)
        raw = f.readline(max_header_bytes)
        if not raw.endswith(b"\n"):
            raise bad("FAB header is truncated or too long")
        header = raw.decode("ascii", "replace")

        if header[: len(FAB_MAGIC)] != FAB_MAGIC:
            raise bad(f"expected {FAB_MAGIC!r}, found {header[:3]!r}")

        # skip the real descriptor by its closing parentheses
        pos = len(FAB_MAGIC)
        for _ in range(FAB_DESCRIPTOR_CLOSERS):
            pos = header.find(")", pos) + 1
            if pos == 0:
                raise bad("real descriptor is truncated")
        dtype = _descriptor_dtype(header[len(FAB_MAGIC) : pos].strip())
        if dtype is None:
            raise bad("only double precision data is supported")

        match = _fab_box_pattern.match(header[pos:])
        if match is None:
            raise bad("could not parse box and component count")
        start, stop, nc = match.groups()
        try:
            box = Box(start.split(","), stop.split(","))
        except ValueError as err:
            raise bad(str(err)) from err
        ncomp = int(nc)
        if box != entry.box:
            raise bad(f"box {box} does not match the catalog box {entry.box}")
        if ncomp != NCOMP:
            raise bad(f"{ncomp} components, not {NCOMP}")

        count = box.num_cells * ncomp
        nbytes = count * dtype.itemsize
        buf = f.read(nbytes)
        if len(buf) != nbytes:
            raise bad(f"expected {nbytes} bytes of data, found {len(buf)}")
        mylog.debug("Read %s from %s at offset %s", box, entry.filename, entry.offset)
        data = np.frombuffer(buf, dtype=dtype, count=count)
        return cls(box, ncomp, data.reshape(box.shape + (ncomp,), order="F"))

    def __repr__(self):
        return f"FABRecord({self.box!r}, ncomp={self.ncomp})"


class FileHandleCache:
    """
    Binary read handles keyed by path, opened on first use.  Meant to live
    for one extraction:

        with FileHandleCache() as handles:
            f = handles[filename]

    Every handle is closed when the block exits, however it exits.
    """

    def __init__(self):
        self._handles = {}
        self._stack = contextlib.ExitStack()

    def __getitem__(self, filename):
        if filename not in self._handles:
            try:
                f = open(filename, "rb")
            except OSError as err:
                raise AMReXFileOpenError(filename) from err
            self._handles[filename] = self._stack.enter_context(f)
        return self._handles[filename]

    def __contains__(self, filename):
        return filename in self._handles

    def __len__(self):
        return len(self._handles)

    def close(self):
        self._handles.clear()
        self._stack.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
        return False
