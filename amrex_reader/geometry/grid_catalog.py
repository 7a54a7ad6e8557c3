from typing import NamedTuple

import numpy as np

from amrex_reader.geometry.box import Box


class GridCatalogEntry(NamedTuple):
    box: Box
    filename: str
    offset: int


class GridCatalog:
    """
    The list of grids on the level, each paired with the data file and byte
    offset of its FAB record, plus the bounds derived from them.
    """

    def __init__(self, entries):
        self.entries = tuple(entries)
        if len(self.entries) == 0:
            raise ValueError("A grid catalog needs at least one grid")
        self.grid_lo = np.array([e.box.lo for e in self.entries], dtype="int64")
        self.grid_hi = np.array([e.box.hi for e in self.entries], dtype="int64")
        self._compute_bounds()

    def _compute_bounds(self):
        self.blo = tuple(int(v) for v in self.grid_lo.min(axis=0))
        self.bhi = tuple(int(v) for v in self.grid_hi.max(axis=0))
        extents = self.grid_hi - self.grid_lo + 1
        self.max_extent = tuple(int(v) for v in np.maximum(extents.max(axis=0), 1))

    @property
    def bounding_box(self):
        return Box(self.blo, self.bhi)

    @property
    def domain_dimensions(self):
        return tuple(h - l + 1 for l, h in zip(self.blo, self.bhi))

    @property
    def filenames(self):
        return sorted({e.filename for e in self.entries})

    def __len__(self):
        return len(self.entries)

    def __getitem__(self, index):
        return self.entries[index]

    def __iter__(self):
        return iter(self.entries)

    def __repr__(self):
        return (
            f"GridCatalog({len(self)} grids, bounds {self.blo}-{self.bhi}, "
            f"max extent {self.max_extent})"
        )
