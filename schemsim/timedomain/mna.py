"""
MNA equation assembly and dense linear solve.

Unknown vector layout for a system of size n_total = n_nodes + n_sources:

    x[0 : n_nodes]          node voltages, x[k] is node k+1 (node 0 is ground)
    x[n_nodes : n_total]    branch currents of connected voltage sources,
                            in element order

Stamp patterns (which rows/columns an element touches) are fixed by the
topology and computed once in build_stamps(). Element values and companion
state stay dynamic so assemble() can run inside jax.jit.
"""

from __future__ import annotations
from typing import NamedTuple, Sequence

import jax
import jax.numpy as jnp
from jax import Array

from .constants import DT, G_MIN, PIVOT_TOL
from .errors import SingularMatrixError
from .schematic import Kind


class Stamps(NamedTuple):
    """
    Pre-computed stamp patterns for one resolved topology.

    Each entry is (element_index, n1, n2) with node ids as resolved
    (0 = ground). Sources carry their auxiliary row as a fourth field.
    Elements with an unconnected terminal appear in no list.
    """
    n_nodes: int
    n_total: int
    resistors: tuple[tuple[int, int, int], ...]
    capacitors: tuple[tuple[int, int, int], ...]
    inductors: tuple[tuple[int, int, int], ...]
    sources: tuple[tuple[int, int, int, int], ...]


def is_active(kind: Kind, nodes: Sequence[int]) -> bool:
    """True if the element takes part in the system this tick."""
    if kind == Kind.GROUND or len(nodes) < 2:
        return False
    return -1 not in nodes[:2]


def build_stamps(kinds: Sequence[Kind], node_ids: Sequence[Sequence[int]]) -> Stamps:
    """
    Derive system size and per-kind stamp lists from node assignments.

    Args:
        kinds: Element kinds, in schematic order
        node_ids: Resolved node ids per element pin (-1 = unconnected)
    """
    n_nodes = max((n for ids in node_ids for n in ids), default=0)
    n_nodes = max(n_nodes, 0)

    resistors, capacitors, inductors, sources = [], [], [], []
    aux = n_nodes
    for k, (kind, nodes) in enumerate(zip(kinds, node_ids)):
        if not is_active(kind, nodes):
            continue
        entry = (k, nodes[0], nodes[1])
        if kind == Kind.RESISTOR:
            resistors.append(entry)
        elif kind == Kind.CAPACITOR:
            capacitors.append(entry)
        elif kind == Kind.INDUCTOR:
            inductors.append(entry)
        elif kind == Kind.SOURCE:
            sources.append(entry + (aux,))
            aux += 1

    return Stamps(
        n_nodes=n_nodes,
        n_total=aux,
        resistors=tuple(resistors),
        capacitors=tuple(capacitors),
        inductors=tuple(inductors),
        sources=tuple(sources),
    )


def _stamp_conductance(G: Array, n1: int, n2: int, g) -> Array:
    """
    Conductance g between nodes n1, n2 (0 = ground):

    G[n1-1, n1-1] += g    G[n1-1, n2-1] -= g
    G[n2-1, n2-1] += g    G[n2-1, n1-1] -= g
    """
    i1, i2 = n1 - 1, n2 - 1
    if n1 > 0:
        G = G.at[i1, i1].add(g)
    if n2 > 0:
        G = G.at[i2, i2].add(g)
    if n1 > 0 and n2 > 0:
        G = G.at[i1, i2].add(-g)
        G = G.at[i2, i1].add(-g)
    return G


def _stamp_current(b: Array, n_from: int, n_to: int, current) -> Array:
    """Current source pushing `current` out of n_from and into n_to."""
    if n_from > 0:
        b = b.at[n_from - 1].add(-current)
    if n_to > 0:
        b = b.at[n_to - 1].add(current)
    return b


def assemble(
    st: Stamps,
    values: Array,
    prev_v: Array,
    prev_i: Array,
    dt: float = DT,
) -> tuple[Array, Array]:
    """
    Build the MNA system G x = b for one backward-Euler step.

    Args:
        st: Stamp patterns from build_stamps()
        values: Element values (Ohm, F, H, V) indexed by element
        prev_v: Previous terminal voltage per element
        prev_i: Previous branch current per element
        dt: Timestep in seconds

    Returns:
        (G, b) of shape (n_total, n_total) and (n_total,)
    """
    G = jnp.zeros((st.n_total, st.n_total))
    b = jnp.zeros(st.n_total)

    # Floating-node regularization
    if st.n_nodes > 0:
        diag = jnp.arange(st.n_nodes)
        G = G.at[diag, diag].add(G_MIN)

    for k, n1, n2 in st.resistors:
        G = _stamp_conductance(G, n1, n2, 1.0 / values[k])

    # Capacitor: g = C/dt in parallel with a source g*v_prev into n1
    for k, n1, n2 in st.capacitors:
        g = values[k] / dt
        G = _stamp_conductance(G, n1, n2, g)
        b = _stamp_current(b, n2, n1, g * prev_v[k])

    # Inductor: g = dt/L in parallel with a source i_prev out of n1
    for k, n1, n2 in st.inductors:
        g = dt / values[k]
        G = _stamp_conductance(G, n1, n2, g)
        b = _stamp_current(b, n1, n2, prev_i[k])

    # Voltage source: v(n1) - v(n2) = V, branch current as extra unknown
    for k, n1, n2, row in st.sources:
        if n1 > 0:
            G = G.at[n1 - 1, row].add(1.0)
            G = G.at[row, n1 - 1].add(1.0)
        if n2 > 0:
            G = G.at[n2 - 1, row].add(-1.0)
            G = G.at[row, n2 - 1].add(-1.0)
        b = b.at[row].set(values[k])

    return G, b


@jax.jit
def gauss_solve(A: Array, b: Array) -> tuple[Array, Array]:
    """
    Gaussian elimination with partial pivoting.

    Returns (x, smallest_pivot). The caller decides whether the smallest
    pivot magnitude makes the result meaningless; x contains inf/nan then.
    A must be non-empty.
    """
    n = A.shape[0]
    rows = jnp.arange(n)

    def eliminate(i, carry):
        A, b, min_pivot = carry
        col = jnp.where(rows >= i, jnp.abs(A[:, i]), -1.0)
        p = jnp.argmax(col)
        min_pivot = jnp.minimum(min_pivot, col[p])

        row_i, row_p = A[i], A[p]
        A = A.at[p].set(row_i).at[i].set(row_p)
        b_i, b_p = b[i], b[p]
        b = b.at[p].set(b_i).at[i].set(b_p)

        factors = jnp.where(rows > i, A[:, i] / A[i, i], 0.0)
        A = A - factors[:, None] * A[i][None, :]
        b = b - factors * b[i]
        return A, b, min_pivot

    init = (A, b, jnp.asarray(jnp.inf, dtype=A.dtype))
    A, b, min_pivot = jax.lax.fori_loop(0, n, eliminate, init)

    def back_substitute(k, x):
        i = n - 1 - k
        return x.at[i].set((b[i] - A[i] @ x) / A[i, i])

    x = jax.lax.fori_loop(0, n, back_substitute, jnp.zeros_like(b))
    return x, min_pivot


def solve(A: Array, b: Array) -> Array:
    """
    Solve A x = b.

    An empty system (N = 0) has the empty solution.

    Raises:
        SingularMatrixError: if a pivot magnitude falls below PIVOT_TOL
    """
    A = jnp.asarray(A, dtype=float)
    b = jnp.asarray(b, dtype=float)
    n = b.shape[0]
    if n == 0:
        return jnp.zeros(0)
    x, min_pivot = gauss_solve(A, b)
    if not float(min_pivot) >= PIVOT_TOL:
        raise SingularMatrixError(float(min_pivot), n)
    return x
