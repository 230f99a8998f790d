"""Fixed numerical and geometric constants of the time-domain core."""

DT = 1e-3              # simulation timestep (s)
G_MIN = 1e-9           # self-conductance on every non-ground node (S)
PIVOT_TOL = 1e-12      # smallest acceptable pivot magnitude
MAX_HISTORY = 10_000   # samples retained per element

GRID_SIZE = 20         # editor units per pin-offset unit
COINCIDENCE_TOL = 1.0  # points closer than this on both axes are one point
