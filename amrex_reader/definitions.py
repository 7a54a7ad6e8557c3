# The only layout this reader understands: one level of 3D cells holding a
# 3-component vector field stored as float64.
NCOMP = 3
DIMENSIONALITY = 3
FINEST_LEVEL = 0
NGHOST = 0

HEADER_FILENAME = "Header"
LEVEL_DIRECTORY = "Level_0"
LEVEL_HEADER_FILENAME = "Cell_H"

FAB_MAGIC = "FAB"
# The real descriptor in a FAB header closes five parentheses
FAB_DESCRIPTOR_CLOSERS = 5
BYTES_PER_REAL = 8

coordinate_systems = {0: "cartesian", 1: "cylindrical", 2: "spherical"}
