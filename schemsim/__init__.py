"""schemsim - transient simulation of drawn circuit schematics.

Resolves a schematic of wires and lumped elements (R, C, L, DC source,
ground) into electrical nodes and steps it in time with Modified Nodal
Analysis and backward-Euler companion models, on JAX.

Usage:
    from schemsim.timedomain import Schematic, R, C, VSource, Ground, Simulation
"""

import jax

# Solver tolerances are below float32 resolution
jax.config.update("jax_enable_x64", True)

__version__ = "0.1.0"
__all__ = ["timedomain", "__version__"]
