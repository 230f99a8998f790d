"""
Example: RL Current Buildup

A 5V source drives a 1H inductor through 100 ohm. Inductor current rises
towards V/R with time constant L/R = 10ms:

    I(t) = (V / R) * (1 - exp(-t * R / L))

The gradient of the final current with respect to R is taken through the
whole transient with jax.grad.

Components used: R, L, VSource, Ground
"""
import math

import jax
import jax.numpy as jnp

from schemsim.timedomain import Schematic, R, L, VSource, Ground


def build_rl(r=100.0, l=1.0, v0=5.0):
    """Build a series RL circuit.

    Circuit:
        V1(+) ---[R1]---[L1]--- GND
        V1(-) ----------------- GND
    """
    sch = Schematic()
    sch, _ = VSource(sch, name="V1", at=(0, 0), value=v0)
    sch, _ = R(sch, name="R1", at=(100, 0), value=r)
    sch, _ = L(sch, name="L1", at=(200, 0), value=l)
    sch, _ = Ground(sch, name="GND", at=(300, 200))

    sch = sch.connect(("V1", 0), ("R1", 0))
    sch = sch.connect(("R1", 1), ("L1", 0))
    sch = sch.connect(("L1", 1), ("GND", 0))
    sch = sch.connect(("V1", 1), ("GND", 0))
    return sch


def simulate(sim, values, n_steps):
    state = sim.init()
    for _ in range(n_steps):
        state, _ = sim.step_arrays(values, state)
    return state


def main():
    print("=" * 60)
    print("RL Current Buildup Example")
    print("=" * 60)

    r, l, v0 = 100.0, 1.0, 5.0
    tau = l / r
    sim = build_rl(r, l, v0).compile()
    values = jnp.asarray(sim.compiled.defaults)

    print("\n1. Current Buildup")
    print("-" * 40)
    state = sim.init()
    steps_per_tau = int(round(tau / sim.dt))
    for n_tau in range(1, 6):
        for _ in range(steps_per_tau):
            state = sim.step(None, state)
        expected = (v0 / r) * (1 - math.exp(-n_tau))
        print(f"   t={n_tau}*tau: I_L = {float(sim.i(state, 'L1')) * 1e3:.3f} mA "
              f"(expected: {expected * 1e3:.3f} mA)")

    print("\n2. JAX Differentiability")
    print("-" * 40)
    k = sim.topology.index("R1")

    def final_current(r_val):
        final = simulate(sim, values.at[k].set(r_val), steps_per_tau)
        return sim.i(final, "L1")

    di_dr = jax.grad(final_current)(r)
    print(f"   dI_L/dR at t=tau: {float(di_dr):.3e} A/ohm")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()
