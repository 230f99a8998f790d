"""schemsim time-domain simulation module.

Schematic -> topology resolution -> MNA assembly -> dense solve ->
backward-Euler companion update, one fixed 1 ms step at a time.

Elements:
    - R, C, L: Passive elements
    - VSource: Ideal DC voltage source
    - Ground: Marks node 0

Simulation:
    - compile_schematic / Schematic.compile: pure step functions (SimFns)
    - Simulation: mutable owner object for editor-driven use
"""

from .schematic import Schematic, ElementSpec, ElementRef, Kind, Point, Wire
from .components import R, C, L, VSource, Ground, PALETTE
from .topology import Topology, resolve, pin_coords, has_ground
from .mna import Stamps, build_stamps, assemble, solve
from .history import HistoryBuffer
from .simulator import SimState, SimFns, compile_schematic, transfer_state
from .controller import Simulation
from .errors import SchemsimError, SingularMatrixError, MissingGroundError, SimulationNotRunning
from .constants import DT, G_MIN, PIVOT_TOL, MAX_HISTORY, GRID_SIZE

__all__ = [
    # Schematic building
    "Schematic",
    "ElementSpec",
    "ElementRef",
    "Kind",
    "Point",
    "Wire",
    # Elements
    "R",
    "C",
    "L",
    "VSource",
    "Ground",
    "PALETTE",
    # Topology
    "Topology",
    "resolve",
    "pin_coords",
    "has_ground",
    # Equations
    "Stamps",
    "build_stamps",
    "assemble",
    "solve",
    # Simulation
    "HistoryBuffer",
    "SimState",
    "SimFns",
    "compile_schematic",
    "transfer_state",
    "Simulation",
    # Errors
    "SchemsimError",
    "SingularMatrixError",
    "MissingGroundError",
    "SimulationNotRunning",
    # Constants
    "DT",
    "G_MIN",
    "PIVOT_TOL",
    "MAX_HISTORY",
    "GRID_SIZE",
]
