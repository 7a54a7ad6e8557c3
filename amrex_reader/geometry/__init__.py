from .box import Box, coarsen
from .grid_catalog import GridCatalog, GridCatalogEntry
from .spatial_hash import SpatialHashIndex
