"""
Example: RC Charging

A 5V source charges a 10uF capacitor through 1k ohm. Backward Euler with
a 1ms step lags the exact curve slightly:

    V(t)   = V0 * (1 - exp(-t / RC))              exact
    V_n    = V0 * (1 - (RC / (RC + dt))^n)        backward Euler

Halfway through, the source and resistor are deleted from the schematic.
The capacitor keeps its charge across the edit.

Components used: R, C, VSource, Ground
"""
import math

from schemsim.timedomain import Schematic, Simulation, R, C, VSource, Ground


def build_rc(r=1000.0, c=10e-6, v0=5.0):
    """Build a series RC charging circuit.

    Circuit:
        V1(+) ---[R1]---+
                        |
                       [C1]
                        |
        V1(-) -------- GND
    """
    sch = Schematic()
    sch, _ = VSource(sch, name="V1", at=(0, 0), value=v0)
    sch, _ = R(sch, name="R1", at=(100, 0), value=r)
    sch, _ = C(sch, name="C1", at=(200, 100), value=c, rotation=1)
    sch, _ = Ground(sch, name="GND", at=(200, 300))

    sch = sch.connect(("V1", 0), ("R1", 0))
    sch = sch.connect(("R1", 1), ("C1", 0))
    sch = sch.connect(("C1", 1), ("GND", 0))
    sch = sch.connect(("V1", 1), ("GND", 0))
    return sch


def main():
    print("=" * 60)
    print("RC Charging Example")
    print("=" * 60)

    r, c, v0 = 1000.0, 10e-6, 5.0
    tau = r * c
    sim = Simulation(build_rc(r, c, v0))
    dt = sim.fns.dt
    ratio = tau / (tau + dt)

    print("\n1. Charging")
    print("-" * 40)
    print(f"   {'t/tau':>6s}  {'V_C':>8s}  {'exact':>8s}  {'BE':>8s}")
    sim.start()
    steps_per_tau = int(round(tau / dt))
    for n_tau in range(1, 6):
        sim.tick(steps_per_tau)
        n = n_tau * steps_per_tau
        exact = v0 * (1 - math.exp(-n_tau))
        be = v0 * (1 - ratio ** n)
        print(f"   {n_tau:>6d}  {sim.voltage('C1'):>8.4f}  {exact:>8.4f}  {be:>8.4f}")

    print("\n2. Source removed")
    print("-" * 40)
    v_before = sim.voltage("C1")
    sim.edit(sim.schematic.remove("V1").remove("R1"))
    sim.tick(100)
    print(f"   V_C before edit: {v_before:.6f} V")
    print(f"   V_C 100ms later: {sim.voltage('C1'):.6f} V")
    print(f"   I_C:             {sim.current('C1'):.3e} A")

    v, i, t = sim.history("C1")
    print(f"\n   {t.shape[0]} samples recorded, t = {float(t[0]):.3f}..{float(t[-1]):.3f} s")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()
