"""
amrex_reader pulls rectangular sub-regions of a 3-component vector field out
of single-level AMReX plotfiles without reading the whole dataset.

"""
from ._version import __version__, version_info  # isort: skip
from amrex_reader.api import (
    configure_status_codes,
    extract_subdomain,
    get_default_context,
    load_dataset,
    reset_default_context,
)
from amrex_reader.config import _setup_postinit_configuration, arcfg
from amrex_reader.context import DatasetContext
from amrex_reader.data_structures import AMReXPlotfile
from amrex_reader.geometry import (
    Box,
    GridCatalog,
    GridCatalogEntry,
    SpatialHashIndex,
    coarsen,
)
from amrex_reader.status import (
    STATUS_UNSET,
    ExtractionResult,
    LoadResult,
    Severity,
    StatusCodes,
)
from amrex_reader.utilities.logger import set_log_level

# run configuration callbacks
_setup_postinit_configuration()
del _setup_postinit_configuration
