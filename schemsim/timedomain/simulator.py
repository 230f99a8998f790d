"""
JIT-compiled time-domain integrator (MNA + backward Euler).

compile_schematic() resolves the schematic topology once and captures the
resulting stamp patterns in a jax.jit step function. Each step:

1. assembles G x = b from element values and companion state
2. solves it (partial-pivoting Gaussian elimination)
3. derives per-element terminal voltage and branch current
4. updates companion state and appends to each element's history
5. advances the clock by dt

The step is pure: it returns a new SimState. A singular system raises
SingularMatrixError from the Python wrapper and no new state is produced,
so the caller's state is untouched.
"""

from __future__ import annotations
import logging
from typing import NamedTuple, Callable

import jax
import jax.numpy as jnp
from jax import Array

from . import history as hist
from .constants import DT, MAX_HISTORY, PIVOT_TOL
from .errors import SingularMatrixError
from .history import HistoryBuffer
from .mna import Stamps, build_stamps, assemble, gauss_solve
from .schematic import Schematic, ElementRef, Kind
from .topology import Topology, resolve

logger = logging.getLogger(__name__)


class SimState(NamedTuple):
    """
    Immutable simulation state (JAX pytree).

    Per-element arrays are indexed in schematic element order.
    """
    time: Array                          # scalar, time of the next sample
    prev_v: Array                        # (n_elements,) companion voltage
    prev_i: Array                        # (n_elements,) companion current
    node_voltages: Array                 # (n_nodes + 1,) indexed by node id
    v_diff: Array                        # (n_elements,) last terminal voltage
    currents: Array                      # (n_elements,) last branch current
    history: tuple[HistoryBuffer, ...]   # one ring buffer per element


class CompiledSchematic(NamedTuple):
    """Everything fixed at compile time."""
    stamps: Stamps
    topology: Topology
    names: tuple[str, ...]
    kinds: tuple[Kind, ...]
    defaults: tuple[float, ...]  # element values from the schematic
    dt: float
    capacity: int
    schematic: Schematic


class SimFns(NamedTuple):
    """Collection of pure simulation functions."""
    init: Callable[[], SimState]
    step: Callable[[dict | None, SimState], SimState]
    step_arrays: Callable[[Array, SimState], tuple[SimState, Array]]  # JIT-friendly version
    v: Callable[[SimState, int], Array]
    i: Callable[[SimState, "ElementRef | str"], Array]
    vdiff: Callable[[SimState, "ElementRef | str"], Array]
    history: Callable[[SimState, "ElementRef | str"], tuple[Array, Array, Array]]
    dt: float
    schematic: Schematic
    topology: Topology
    compiled: CompiledSchematic


def compile_schematic(sch: Schematic, capacity: int | None = None, dt: float = DT) -> SimFns:
    """
    Resolve a schematic and build its simulation functions.

    Args:
        sch: Schematic to simulate
        capacity: History samples kept per element (default MAX_HISTORY)
        dt: Timestep in seconds

    Returns:
        SimFns with init, step and probe functions
    """
    capacity = MAX_HISTORY if capacity is None else capacity
    topo = resolve(sch)
    kinds = tuple(el.kind for el in sch.elements)
    stamps = build_stamps(kinds, topo.node_ids)

    compiled = CompiledSchematic(
        stamps=stamps,
        topology=topo,
        names=topo.names,
        kinds=kinds,
        defaults=tuple(el.value for el in sch.elements),
        dt=dt,
        capacity=capacity,
        schematic=sch,
    )
    logger.debug(
        "Compiled %d elements: %d nodes, %d unknowns",
        len(kinds), stamps.n_nodes, stamps.n_total,
    )

    n_elements = len(kinds)
    index = {name: k for k, name in enumerate(compiled.names)}

    def init() -> SimState:
        """Create the zero state (t = 0, no companion energy, empty history)."""
        return SimState(
            time=jnp.array(0.0),
            prev_v=jnp.zeros(n_elements),
            prev_i=jnp.zeros(n_elements),
            node_voltages=jnp.zeros(stamps.n_nodes + 1),
            v_diff=jnp.zeros(n_elements),
            currents=jnp.zeros(n_elements),
            history=tuple(hist.empty(capacity) for _ in range(n_elements)),
        )

    st = stamps  # alias, captured by the jitted step as a compile-time constant

    @jax.jit
    def step_arrays_impl(values: Array, state: SimState) -> tuple[SimState, Array]:
        """
        JIT-compiled step using an array of element values.

        Returns (new_state, smallest_pivot).
        """
        G, b = assemble(st, values, state.prev_v, state.prev_i, dt)

        if st.n_total > 0:
            x, min_pivot = gauss_solve(G, b)
        else:
            x, min_pivot = jnp.zeros(0), jnp.array(jnp.inf)

        node_v = jnp.concatenate([jnp.zeros(1), x[:st.n_nodes]])

        v_diff = jnp.zeros(n_elements)
        currents = jnp.zeros(n_elements)
        prev_v = state.prev_v
        prev_i = state.prev_i

        for k, n1, n2 in st.resistors:
            v = node_v[n1] - node_v[n2]
            v_diff = v_diff.at[k].set(v)
            currents = currents.at[k].set(v / values[k])

        for k, n1, n2 in st.capacitors:
            v = node_v[n1] - node_v[n2]
            v_diff = v_diff.at[k].set(v)
            currents = currents.at[k].set(values[k] * (v - state.prev_v[k]) / dt)
            prev_v = prev_v.at[k].set(v)

        for k, n1, n2 in st.inductors:
            v = node_v[n1] - node_v[n2]
            i = state.prev_i[k] + (dt / values[k]) * v
            v_diff = v_diff.at[k].set(v)
            currents = currents.at[k].set(i)
            prev_i = prev_i.at[k].set(i)
            prev_v = prev_v.at[k].set(v)

        for k, n1, n2, row in st.sources:
            v_diff = v_diff.at[k].set(node_v[n1] - node_v[n2])
            currents = currents.at[k].set(x[row])
            prev_v = prev_v.at[k].set(values[k])

        history = tuple(
            hist.append(buf, v_diff[k], currents[k], state.time)
            for k, buf in enumerate(state.history)
        )

        new_state = SimState(
            time=state.time + dt,
            prev_v=prev_v,
            prev_i=prev_i,
            node_voltages=node_v,
            v_diff=v_diff,
            currents=currents,
            history=history,
        )
        return new_state, min_pivot

    def step_arrays(values: Array, state: SimState) -> tuple[SimState, Array]:
        """Step function with array inputs (JIT-friendly, no singularity check)."""
        return step_arrays_impl(values, state)

    def step(params: dict | None, state: SimState) -> SimState:
        """
        Advance one timestep.

        Args:
            params: Optional {element name: value} overrides for this step;
                missing names use the schematic values
            state: Current state (not modified)

        Returns:
            The next state

        Raises:
            SingularMatrixError: if the MNA system could not be solved
        """
        params = params or {}
        values = jnp.asarray(
            [params.get(name, default) for name, default in zip(compiled.names, compiled.defaults)],
            dtype=float,
        )
        new_state, min_pivot = step_arrays_impl(values, state)
        min_pivot = float(min_pivot)
        if not min_pivot >= PIVOT_TOL:
            raise SingularMatrixError(min_pivot, stamps.n_total)
        return new_state

    def _index(element: ElementRef | str) -> int:
        name = element if isinstance(element, str) else element.name
        try:
            return index[name]
        except KeyError:
            raise KeyError(f"Unknown element: {name}") from None

    def v(state: SimState, node: int) -> Array:
        """Get voltage at a node id (0 V for ground and unknown ids)."""
        if 0 < node < state.node_voltages.shape[0]:
            return state.node_voltages[node]
        return jnp.array(0.0)

    def i(state: SimState, element: ElementRef | str) -> Array:
        """
        Get the branch current of an element from the last step.

        Current is positive flowing from pin 0 to pin 1 through the element.
        For sources that is from + to - inside the source, so a source
        delivering power reports a negative current.
        """
        return state.currents[_index(element)]

    def vdiff(state: SimState, element: ElementRef | str) -> Array:
        """Get V(pin 0) - V(pin 1) of an element from the last step."""
        return state.v_diff[_index(element)]

    def history(state: SimState, element: ElementRef | str) -> tuple[Array, Array, Array]:
        """Get (voltages, currents, times) recorded for an element, oldest first."""
        return hist.samples(state.history[_index(element)])

    return SimFns(
        init=init,
        step=step,
        step_arrays=step_arrays,
        v=v,
        i=i,
        vdiff=vdiff,
        history=history,
        dt=dt,
        schematic=sch,
        topology=topo,
        compiled=compiled,
    )


def transfer_state(old: SimFns, state: SimState, new: SimFns) -> SimState:
    """
    Carry companion state and history across a schematic edit.

    Elements are matched by name and kind. Elements only in `new`, or whose
    kind changed under the same name, start from zero; elements only in
    `old` are dropped. Node voltages, terminal voltages and currents are
    reset because node ids are reassigned by every resolution; they are
    filled in again by the next step.
    """
    fresh = new.init()
    old_index = {
        (name, kind): k
        for k, (name, kind) in enumerate(zip(old.compiled.names, old.compiled.kinds))
    }
    carried = [
        old_index.get(key) for key in zip(new.compiled.names, new.compiled.kinds)
    ]

    def pick(old_arr: Array, new_arr: Array) -> Array:
        for k, j in enumerate(carried):
            if j is not None:
                new_arr = new_arr.at[k].set(old_arr[j])
        return new_arr

    return SimState(
        time=state.time,
        prev_v=pick(state.prev_v, fresh.prev_v),
        prev_i=pick(state.prev_i, fresh.prev_i),
        node_voltages=fresh.node_voltages,
        v_diff=fresh.v_diff,
        currents=fresh.currents,
        history=tuple(
            state.history[j] if j is not None else buf
            for j, buf in zip(carried, fresh.history)
        ),
    )
