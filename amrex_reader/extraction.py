import operator

import numpy as np

from amrex_reader.definitions import NCOMP
from amrex_reader.geometry.box import Box
from amrex_reader.io import FABRecord, FileHandleCache
from amrex_reader.status import Severity
from amrex_reader.utilities.exceptions import AMReXBufferError
from amrex_reader.utilities.logger import arLogger as mylog


def output_view(out, shape):
    """
    View *out* as ``[component, i, j, k]`` for a query of *shape* cells.

    The buffer holds float64 values with the component varying fastest,
    then axis 0, axis 1 and axis 2 slowest.  It is never copied or resized.
    """
    if not isinstance(out, np.ndarray):
        raise AMReXBufferError(f"expected a numpy array, got {type(out).__name__}")
    if out.dtype != np.float64:
        raise AMReXBufferError(f"expected float64 values, got {out.dtype}")
    if not out.flags.writeable:
        raise AMReXBufferError("buffer is read-only")
    if not (out.flags.c_contiguous or out.flags.f_contiguous):
        raise AMReXBufferError("buffer is not contiguous")
    expected = NCOMP * int(np.prod(shape, dtype="int64"))
    if out.size != expected:
        raise AMReXBufferError(
            f"holds {out.size} values, the query needs {expected} "
            f"({NCOMP} x {shape[0]} x {shape[1]} x {shape[2]})"
        )
    flat = out.reshape(-1, order="A")
    return flat.reshape((NCOMP,) + tuple(shape), order="F")


class SubdomainExtractor:
    """
    Copies the cells of a loaded plotfile that fall inside a query box into a
    caller-owned buffer.

    Query corners are relative to the lower corner of the union of all grids.
    Cells covered by no grid are left untouched.  A FAB record failing
    validation aborts the extraction by raising; whatever was copied before
    stays in the buffer.
    """

    def __init__(self, plotfile, max_header_bytes=4096):
        self.plotfile = plotfile
        self.catalog = plotfile.catalog
        self.index = plotfile.index
        self.max_header_bytes = max_header_bytes

    def _containment_message(self, query_lo, query_hi):
        avail = ",".join(f"0:{h - l}" for l, h in zip(self.catalog.blo, self.catalog.bhi))
        asked = ",".join(f"{l}:{h}" for l, h in zip(query_lo, query_hi))
        return f"Available data domain: ({avail}), ask for data on domain: ({asked})"

    def extract(self, query_lo, query_hi, out):
        """
        Fill *out* with the cells of the local query box ``[query_lo, query_hi]``.

        Returns ``(severity, message)``; severity is SEVERE when the query is
        not fully contained in the data and NOERROR otherwise.
        """
        query_lo = tuple(operator.index(v) for v in query_lo)
        query_hi = tuple(operator.index(v) for v in query_hi)
        if len(query_lo) != 3 or len(query_hi) != 3:
            raise ValueError("query corners need 3 components each")
        shape = tuple(h - l + 1 for l, h in zip(query_lo, query_hi))
        if any(n <= 0 for n in shape):
            mylog.debug("Empty query %s-%s, nothing to read", query_lo, query_hi)
            return Severity.NOERROR, ""

        view = output_view(out, shape)
        query = Box(query_lo, query_hi).shift(self.catalog.blo)

        severity, message = Severity.NOERROR, ""
        if not self.catalog.bounding_box.contains(query):
            severity = Severity.SEVERE
            message = self._containment_message(query_lo, query_hi)
            mylog.warning("Subdomain is not fully contained. %s", message)

        nread = 0
        with FileHandleCache() as handles:
            for i in self.index.candidates(query):
                entry = self.catalog[i]
                overlap = entry.box.intersection(query)
                if overlap is None:
                    continue
                fab = FABRecord.read(
                    handles[entry.filename], entry, self.max_header_bytes
                )
                src = fab.data[overlap.slices(entry.box.lo)]
                view[(slice(None),) + overlap.slices(query.lo)] = np.moveaxis(
                    src, -1, 0
                )
                nread += 1
            mylog.debug(
                "Filled %s from %s grids in %s files", query, nread, len(handles)
            )
        return severity, message
