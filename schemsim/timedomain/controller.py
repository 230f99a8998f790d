"""
Simulation - the owner object for one schematic being simulated.

An editor drives it from a single thread: edit() after every change to the
schematic, start()/stop() around a periodic timer that calls tick(), reset()
to return to t = 0. Companion state and history survive edits, matched by
element name.
"""

from __future__ import annotations
import logging

from jax import Array

from .constants import MAX_HISTORY
from .errors import MissingGroundError, SimulationNotRunning, SingularMatrixError
from .schematic import Schematic
from .simulator import SimFns, SimState, compile_schematic, transfer_state
from .topology import Topology, has_ground

logger = logging.getLogger(__name__)


class Simulation:
    """
    Mutable holder of schematic, compiled step functions and state.

    Example:
        sim = Simulation(sch)
        sim.start()
        sim.tick(50)
        v, i, t = sim.history("C1")
    """

    def __init__(self, schematic: Schematic | None = None, capacity: int = MAX_HISTORY):
        self.capacity = capacity
        self.running = False
        self._fns: SimFns = compile_schematic(
            Schematic() if schematic is None else schematic, capacity=capacity
        )
        self._state: SimState = self._fns.init()

    @property
    def schematic(self) -> Schematic:
        return self._fns.schematic

    @property
    def topology(self) -> Topology:
        return self._fns.topology

    @property
    def state(self) -> SimState:
        return self._state

    @property
    def fns(self) -> SimFns:
        return self._fns

    @property
    def time(self) -> float:
        return float(self._state.time)

    def edit(self, schematic: Schematic) -> None:
        """Replace the schematic and resolve it again, keeping element state."""
        new_fns = compile_schematic(schematic, capacity=self.capacity)
        self._state = transfer_state(self._fns, self._state, new_fns)
        self._fns = new_fns

    def start(self) -> None:
        """
        Start ticking.

        Raises:
            MissingGroundError: if the schematic has no ground element
        """
        if not has_ground(self.schematic):
            raise MissingGroundError("Circuit needs a ground (GND) element")
        self.running = True
        logger.info("Simulation started at t=%.3fs", self.time)

    def stop(self) -> None:
        if self.running:
            logger.info("Simulation stopped at t=%.3fs", self.time)
        self.running = False

    def tick(self, n: int = 1) -> SimState:
        """
        Advance n timesteps.

        A singular system halts the simulation; the state stays at the last
        good step and the error is re-raised.
        """
        if not self.running:
            raise SimulationNotRunning("Call start() before tick()")
        for _ in range(n):
            try:
                self._state = self._fns.step(None, self._state)
            except SingularMatrixError:
                self.running = False
                logger.error("Simulation halted at t=%.3fs", self.time, exc_info=True)
                raise
        return self._state

    def reset(self) -> None:
        """Stop, zero companion state and clock, clear every history."""
        self.stop()
        self._state = self._fns.init()
        logger.info("Simulation reset")

    def clear(self) -> None:
        """Drop the whole schematic."""
        self.stop()
        self._fns = compile_schematic(Schematic(), capacity=self.capacity)
        self._state = self._fns.init()

    # -- read access for display ------------------------------------------

    def connected(self, name: str) -> tuple[bool, ...]:
        return self.topology.is_connected(name)

    def node_ids(self, name: str) -> tuple[int, ...]:
        return self.topology.node_ids[self.topology.index(name)]

    def voltage(self, name: str) -> float:
        return float(self._fns.vdiff(self._state, name))

    def current(self, name: str) -> float:
        return float(self._fns.i(self._state, name))

    def history(self, name: str) -> tuple[Array, Array, Array]:
        return self._fns.history(self._state, name)
