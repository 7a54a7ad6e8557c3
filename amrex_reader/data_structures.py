import os
import re

import numpy as np

from amrex_reader.definitions import (
    DIMENSIONALITY,
    FINEST_LEVEL,
    HEADER_FILENAME,
    LEVEL_DIRECTORY,
    LEVEL_HEADER_FILENAME,
    NCOMP,
    NGHOST,
    coordinate_systems,
)
from amrex_reader.geometry.box import Box
from amrex_reader.geometry.grid_catalog import GridCatalog, GridCatalogEntry
from amrex_reader.geometry.spatial_hash import SpatialHashIndex
from amrex_reader.utilities.exceptions import AMReXHeaderError
from amrex_reader.utilities.logger import arLogger as mylog

# This is what we use to find scientific notation that might include d's
# instead of e's.
_scinot_finder = re.compile(r"[-+]?[0-9]*\.?[0-9]+([eEdD][-+]?[0-9]+)?")
_box_count_finder = re.compile(r"^\s*\(\s*(\d+)\s+(-?\d+)\s*$")
_fab_on_disk_finder = re.compile(r"^\s*FabOnDisk:\s+(\S+)\s+(\d+)\s*$")


def _to_float(v):
    if not _scinot_finder.match(v):
        raise ValueError(f"Expected a real number, got {v!r}")
    return float(v.replace("D", "e").replace("d", "e"))


def _read_lines(filename):
    try:
        with open(filename, "rb") as f:
            raw = f.read()
    except OSError as err:
        raise AMReXHeaderError(f"Failed to read {filename}", filename) from err
    # Headers are ASCII; stray bytes only matter where a value is parsed
    return raw.decode("ascii", "replace").splitlines()


class PlotfileHeader:
    """
    The plotfile-level ``Header``: field names, time, physical domain and the
    cell size of the single level.
    """

    def __init__(self, output_dir):
        self.filename = os.path.join(output_dir, HEADER_FILENAME)
        lines = iter(_read_lines(self.filename))
        try:
            self._parse(lines)
        except (ValueError, IndexError, StopIteration) as err:
            raise AMReXHeaderError(
                f"Malformed {self.filename}: {str(err) or 'unexpected end of file'}",
                self.filename,
            ) from err

    def _parse(self, lines):
        self.version_string = next(lines).strip()
        n_fields = int(next(lines))
        if n_fields != NCOMP:
            raise AMReXHeaderError(
                f"Number of components is {n_fields}, not {NCOMP}", self.filename
            )
        self.field_list = [next(lines).strip() for _ in range(n_fields)]

        self.dimensionality = int(next(lines))
        self.current_time = _to_float(next(lines).strip())
        self.finest_level = int(next(lines))
        if self.dimensionality != DIMENSIONALITY or self.finest_level != FINEST_LEVEL:
            raise AMReXHeaderError(
                f"Incorrect spacedim {self.dimensionality} "
                f"or finest_level {self.finest_level}",
                self.filename,
            )

        self.domain_left_edge = np.array(
            [_to_float(v) for v in next(lines).split()], dtype="float64"
        )
        self.domain_right_edge = np.array(
            [_to_float(v) for v in next(lines).split()], dtype="float64"
        )
        if self.domain_left_edge.size != 3 or self.domain_right_edge.size != 3:
            raise ValueError("problem domain edges need 3 values each")

        # Empty when there is only one level
        self.ref_factors = [int(v) for v in next(lines).split()]

        # This will be of the form ((0,0,0) (255,255,255) (0,0,0)), one box
        # per level; the first is the root level.
        self.domain_box = Box.from_string(next(lines))
        self.level_steps = int(next(lines).split()[0])

        self.level_dds = np.array(
            [_to_float(v) for v in next(lines).split()], dtype="float64"
        )
        if self.level_dds.size != 3:
            raise ValueError("cell size needs 3 values")

        next_line = next(lines, "").split()
        coordinate_type = int(next_line[0]) if len(next_line) == 1 else 0
        try:
            self.geometry = coordinate_systems[coordinate_type]
        except KeyError as err:
            raise ValueError(f"Unknown coord_type `{coordinate_type}`") from err
        if self.geometry != "cartesian":
            mylog.warning(
                "%s declares %s coordinates; cell indices are used as-is",
                self.filename,
                self.geometry,
            )


class LevelHeader:
    """
    A level's ``Cell_H``: the box array and, for each box, the data file and
    byte offset of its FAB record.
    """

    def __init__(self, output_dir):
        self.level_dir = os.path.join(output_dir, LEVEL_DIRECTORY)
        self.filename = os.path.join(self.level_dir, LEVEL_HEADER_FILENAME)
        lines = iter(_read_lines(self.filename))
        try:
            self._parse(lines)
        except (ValueError, IndexError, StopIteration) as err:
            raise AMReXHeaderError(
                f"Malformed {self.filename}: {str(err) or 'unexpected end of file'}",
                self.filename,
            ) from err
        self._validate()

    def _parse(self, lines):
        # BoxLib header file version and 'how' the data was written
        self.version = int(next(lines))
        self.how = int(next(lines))
        self.ncomp = int(next(lines))
        self.nghost = int(next(lines).split()[0])

        # To decipher this next line, we expect something like:
        # (8 0
        # where the first is the number of boxes on this level.
        match = _box_count_finder.match(next(lines))
        if match is None:
            raise ValueError("could not find the box array")
        nboxes = int(match.group(1))
        self.boxes = [Box.from_string(next(lines)) for _ in range(nboxes)]
        # closing parenthesis of the box array
        if next(lines).strip() != ")":
            raise ValueError("box array is not closed")

        nfabs = int(next(lines))
        self.fabs = []
        for _ in range(nfabs):
            match = _fab_on_disk_finder.match(next(lines))
            if match is None:
                raise ValueError("could not parse a FabOnDisk entry")
            fn, offset = match.groups()
            self.fabs.append((os.path.join(self.level_dir, fn), int(offset)))
        # Anything after this (per-FAB min/max) is not needed

    def _validate(self):
        if len(self.fabs) != len(self.boxes):
            raise AMReXHeaderError(
                f"Unexpected data format: {len(self.boxes)} boxes "
                f"but {len(self.fabs)} FABs",
                self.filename,
            )
        if self.ncomp != NCOMP:
            raise AMReXHeaderError(
                f"Unexpected data format: {self.ncomp} components, not {NCOMP}",
                self.filename,
            )
        if self.nghost != NGHOST:
            raise AMReXHeaderError(
                f"Unexpected data format: {self.nghost} ghost cells, not {NGHOST}",
                self.filename,
            )
        if len(self.boxes) == 0:
            raise AMReXHeaderError("Unexpected data format: no boxes", self.filename)


class AMReXPlotfile:
    """
    A fully loaded single-level plotfile: its headers, the grid catalog and
    the spatial hash built over it.  Instances are complete or not created.
    """

    def __init__(self, output_dir):
        self.output_dir = os.path.abspath(os.path.expanduser(output_dir))
        self.header = PlotfileHeader(self.output_dir)
        self.level_header = LevelHeader(self.output_dir)

        self.catalog = GridCatalog(
            GridCatalogEntry(box, fn, offset)
            for box, (fn, offset) in zip(
                self.level_header.boxes, self.level_header.fabs
            )
        )
        self.index = SpatialHashIndex(self.catalog)
        mylog.info(
            "Loaded %s: %s grids in %s files, domain %s, time %s",
            self.output_dir,
            len(self.catalog),
            len(self.catalog.filenames),
            self.domain_dimensions,
            self.current_time,
        )

    @property
    def domain_dimensions(self):
        return self.catalog.domain_dimensions

    @property
    def spacing(self):
        return tuple(float(v) for v in self.header.level_dds)

    @property
    def origin(self):
        """Physical position of the lower corner of the union of all grids."""
        offset = np.array(self.catalog.blo) - np.array(self.header.domain_box.lo)
        return tuple(
            float(v)
            for v in self.header.domain_left_edge + offset * self.header.level_dds
        )

    @property
    def current_time(self):
        return self.header.current_time

    def __repr__(self):
        return f"AMReXPlotfile({os.path.basename(self.output_dir)!r})"
