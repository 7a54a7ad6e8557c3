"""
Integer index-space boxes as written by AMReX, e.g. ``((0,0,0) (63,63,63) (0,0,0))``.

"""
import re

import numpy as np

_3dregx = r"-?\d+,-?\d+,-?\d+"
# The trailing index type (cell/node centering) is optional on input
_box_finder = re.compile(
    rf"\(\s*\(\s*({_3dregx})\s*\)\s*\(\s*({_3dregx})\s*\)(?:\s*\(\s*{_3dregx}\s*\))?\s*\)"
)


def coarsen(i, ratio):
    """
    Floor-divide index *i* (an int or an integer array) by a positive *ratio*.

    Negative indices round toward negative infinity, so ``coarsen(-1, 4)``
    is -1 rather than 0.
    """
    if np.any(np.asarray(ratio) <= 0):
        raise ValueError(f"Coarsening ratio must be positive, got {ratio}")
    if isinstance(i, (int, np.integer)) and isinstance(ratio, (int, np.integer)):
        return int(i) // int(ratio)
    return np.floor_divide(np.asarray(i, dtype="int64"), ratio)


class Box:
    """An axis-aligned region of 3D index space with inclusive corners."""

    __slots__ = ("lo", "hi")

    def __init__(self, lo, hi):
        lo = tuple(int(v) for v in lo)
        hi = tuple(int(v) for v in hi)
        if len(lo) != 3 or len(hi) != 3:
            raise ValueError(f"Box corners must have 3 components, got {lo} {hi}")
        if any(l > h for l, h in zip(lo, hi)):
            raise ValueError(f"Box lower corner {lo} exceeds upper corner {hi}")
        self.lo = lo
        self.hi = hi

    @classmethod
    def from_string(cls, s):
        match = _box_finder.search(s)
        if match is None:
            raise ValueError(f"Could not parse a 3D box from {s!r}")
        lo, hi = (g.split(",") for g in match.groups())
        return cls(lo, hi)

    def to_string(self, with_type=True):
        lo = ",".join(str(v) for v in self.lo)
        hi = ",".join(str(v) for v in self.hi)
        if with_type:
            return f"(({lo}) ({hi}) (0,0,0))"
        return f"(({lo}) ({hi}))"

    @property
    def shape(self):
        return tuple(h - l + 1 for l, h in zip(self.lo, self.hi))

    @property
    def num_cells(self):
        return int(np.prod(self.shape, dtype="int64"))

    def intersection(self, other):
        """Return the overlap with *other*, or None when they are disjoint."""
        lo = tuple(max(a, b) for a, b in zip(self.lo, other.lo))
        hi = tuple(min(a, b) for a, b in zip(self.hi, other.hi))
        if any(l > h for l, h in zip(lo, hi)):
            return None
        return Box(lo, hi)

    def contains(self, other):
        return all(
            sl <= ol and oh <= sh
            for sl, sh, ol, oh in zip(self.lo, self.hi, other.lo, other.hi)
        )

    def shift(self, offset):
        return Box(
            [v + o for v, o in zip(self.lo, offset)],
            [v + o for v, o in zip(self.hi, offset)],
        )

    def slices(self, origin):
        """Index slices selecting this box inside an array whose (0,0,0) is *origin*."""
        return tuple(
            slice(l - o, h - o + 1) for l, h, o in zip(self.lo, self.hi, origin)
        )

    def __eq__(self, other):
        if not isinstance(other, Box):
            return NotImplemented
        return self.lo == other.lo and self.hi == other.hi

    def __hash__(self):
        return hash((self.lo, self.hi))

    def __repr__(self):
        return f"Box({self.lo}, {self.hi})"

    def __str__(self):
        return self.to_string(with_type=False)
