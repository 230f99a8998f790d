"""
Example: Voltage Divider

Two resistors in series across a 10V source, laid out on the grid the
way an editor would place them. The topology resolver turns the wires
into two nodes; the output node sits at

    V_out = V_in * R2 / (R1 + R2)

Components used: R, VSource, Ground
"""
import logging

from schemsim.timedomain import Schematic, R, VSource, Ground, resolve


def build_divider(r1=10_000.0, r2=4_700.0, v_in=10.0):
    """Build a resistive divider.

    Circuit:
        V1(+) ---[R1]---+---[R2]--- GND
                        |
                      V_out
        V1(-) --------------------- GND
    """
    sch = Schematic()
    sch, _ = VSource(sch, name="V1", at=(0, 0), value=v_in)
    sch, _ = R(sch, name="R1", at=(100, 0), value=r1)
    sch, _ = R(sch, name="R2", at=(200, 100), value=r2, rotation=1)
    sch, _ = Ground(sch, name="GND", at=(200, 300))

    sch = sch.connect(("V1", 0), ("R1", 0))
    sch = sch.connect(("R1", 1), ("R2", 0))
    sch = sch.connect(("R2", 1), ("GND", 0))
    sch = sch.connect(("V1", 1), ("GND", 0))
    return sch


def main():
    logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    print("=" * 60)
    print("Voltage Divider Example")
    print("=" * 60)

    r1, r2, v_in = 10_000.0, 4_700.0, 10.0
    sch = build_divider(r1, r2, v_in)

    print("\n1. Topology")
    print("-" * 40)
    topo = resolve(sch)
    for name, ids in zip(topo.names, topo.node_ids):
        print(f"   {name:>4s}: nodes {ids}")
    print(f"   {topo.num_nodes} non-ground nodes")

    print("\n2. DC Solution")
    print("-" * 40)
    sim = sch.compile()
    state = sim.step(None, sim.init())
    v_out = float(sim.v(state, topo.node_of("R2", 0)))
    expected = v_in * r2 / (r1 + r2)
    print(f"   V_out = {v_out:.6f} V (expected: {expected:.6f} V)")
    print(f"   I(R1) = {float(sim.i(state, 'R1')) * 1e3:.6f} mA")
    print(f"   I(V1) = {float(sim.i(state, 'V1')) * 1e3:.6f} mA (source delivering)")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()
