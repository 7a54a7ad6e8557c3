import itertools
from collections import defaultdict

from amrex_reader.geometry.box import coarsen
from amrex_reader.utilities.logger import arLogger as mylog


class SpatialHashIndex:
    """
    Buckets the grids of a catalog by their lower corner coarsened by the
    largest grid extent, so that an overlap query only has to look at the
    buckets covering the query plus one bucket of border below it.
    """

    def __init__(self, catalog):
        self.catalog = catalog
        self.max_extent = catalog.max_extent
        self.buckets = defaultdict(list)
        self._build()

    def _build(self):
        for i, entry in enumerate(self.catalog):
            self.buckets[self.bucket_key(entry.box.lo)].append(i)
        # lookups must not grow the table
        self.buckets = dict(self.buckets)
        mylog.debug(
            "Hashed %s grids into %s buckets (max extent %s)",
            len(self.catalog),
            len(self.buckets),
            self.max_extent,
        )

    def bucket_key(self, lo):
        return tuple(coarsen(int(v), r) for v, r in zip(lo, self.max_extent))

    def bucket_ranges(self, query):
        """
        Per-axis inclusive bucket ranges to scan for *query*, an absolute Box.

        The query corners are clamped to the catalog bounds before coarsening.
        A grid overlapping the query may have its lower corner one bucket below
        the query's lowest bucket, hence the extra bucket on the low side.
        """
        ranges = []
        for d in range(3):
            ratio = self.max_extent[d]
            lo = max(query.lo[d], self.catalog.blo[d])
            hi = min(query.hi[d], self.catalog.bhi[d])
            ranges.append((coarsen(lo, ratio) - 1, coarsen(hi, ratio)))
        return ranges

    def candidates(self, query):
        """Catalog indices of every grid that may overlap *query*, in scan order."""
        (ilo, ihi), (jlo, jhi), (klo, khi) = self.bucket_ranges(query)
        found = []
        # axis 0 varies fastest
        for kk, jj, ii in itertools.product(
            range(klo, khi + 1), range(jlo, jhi + 1), range(ilo, ihi + 1)
        ):
            found.extend(self.buckets.get((ii, jj, kk), ()))
        return found

    def __len__(self):
        return len(self.buckets)

    def __contains__(self, key):
        return tuple(key) in self.buckets

    def __getitem__(self, key):
        return self.buckets[tuple(key)]
