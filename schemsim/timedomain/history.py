"""Fixed-capacity (voltage, current, time) ring buffer, one per element.

The buffer is a JAX pytree so it can travel inside SimState through the
jit-compiled step. `head` is the next slot to write; once `count` reaches
capacity every append overwrites the oldest sample.
"""

from __future__ import annotations
from typing import NamedTuple

import jax
import jax.numpy as jnp
from jax import Array

from .constants import MAX_HISTORY


class HistoryBuffer(NamedTuple):
    voltages: Array  # (capacity,)
    currents: Array  # (capacity,)
    times: Array     # (capacity,)
    head: Array      # scalar int
    count: Array     # scalar int

    @property
    def capacity(self) -> int:
        return self.times.shape[0]


def empty(capacity: int = MAX_HISTORY) -> HistoryBuffer:
    if capacity < 1:
        raise ValueError(f"History capacity must be positive, got {capacity}")
    return HistoryBuffer(
        voltages=jnp.zeros(capacity),
        currents=jnp.zeros(capacity),
        times=jnp.zeros(capacity),
        head=jnp.array(0, dtype=jnp.int32),
        count=jnp.array(0, dtype=jnp.int32),
    )


@jax.jit
def append(buf: HistoryBuffer, voltage, current, time) -> HistoryBuffer:
    """Record one sample, evicting the oldest when full."""
    cap = buf.times.shape[0]
    return HistoryBuffer(
        voltages=buf.voltages.at[buf.head].set(voltage),
        currents=buf.currents.at[buf.head].set(current),
        times=buf.times.at[buf.head].set(time),
        head=(buf.head + 1) % cap,
        count=jnp.minimum(buf.count + 1, cap),
    )


def size(buf: HistoryBuffer) -> int:
    return int(buf.count)


def samples(buf: HistoryBuffer) -> tuple[Array, Array, Array]:
    """
    Retained samples, oldest first.

    Returns:
        (voltages, currents, times), each of length buf.count
    """
    n = int(buf.count)
    order = (int(buf.head) - n + jnp.arange(n)) % buf.capacity
    return buf.voltages[order], buf.currents[order], buf.times[order]


def latest(buf: HistoryBuffer) -> tuple[float, float, float]:
    """Most recent (voltage, current, time); zeros when empty."""
    if int(buf.count) == 0:
        return 0.0, 0.0, 0.0
    k = (int(buf.head) - 1) % buf.capacity
    return float(buf.voltages[k]), float(buf.currents[k]), float(buf.times[k])
