"""
Test: RC circuit step response.

A 5V source charges a 10µF capacitor through a 1kΩ resistor.
V(t) = V0 * (1 - exp(-t / RC)),  RC = 10ms = 10 steps of 1ms

This validates:
- Schematic construction and pin-to-pin wiring
- Resistor and capacitor companion models
- Partial-pivoting MNA solve
- Time stepping and the simulation clock
"""
import math
import pytest


def build_rc(sch=None):
    """V1(+) -- R1 -- C1 -- GND, V1(-) -- GND."""
    from schemsim.timedomain import Schematic, R, C, VSource, Ground

    sch = Schematic() if sch is None else sch
    sch, vs = VSource(sch, name="V1", at=(0, 0), value=5.0)
    sch, r1 = R(sch, name="R1", at=(100, 0), value=1000.0)
    sch, c1 = C(sch, name="C1", at=(200, 0), value=10e-6)
    sch, gnd = Ground(sch, name="GND", at=(300, 200))

    sch = sch.connect(("V1", 0), ("R1", 0))
    sch = sch.connect(("R1", 1), ("C1", 0))
    sch = sch.connect(("C1", 1), ("GND", 0))
    sch = sch.connect(("V1", 1), ("GND", 0))
    return sch


def test_rc_step_response():
    sch = build_rc()
    sim = sch.compile()
    state = sim.init()

    RC = 1000.0 * 10e-6
    n_steps = int(round(5 * RC / sim.dt))
    assert n_steps == 50

    for _ in range(n_steps):
        state = sim.step(None, state)

    t = float(state.time)
    assert t == pytest.approx(5 * RC)

    v_c = float(sim.vdiff(state, "C1"))
    expected = 5.0 * (1 - math.exp(-t / RC))  # ~4.966V

    # Backward Euler lags the exponential slightly; 1% is plenty at 5 RC
    assert abs(v_c - expected) / expected < 0.01, \
        f"V_C at 5RC: got {v_c:.4f}V, expected {expected:.4f}V"


def test_rc_matches_backward_euler_recurrence():
    """Each step solves V_n = (V_{n-1} + (h/RC) * Vs) / (1 + h/RC) exactly."""
    sim = build_rc().compile()
    state = sim.init()

    ratio = sim.dt / (1000.0 * 10e-6)
    v_expected = 0.0
    for _ in range(20):
        state = sim.step(None, state)
        v_expected = (v_expected + ratio * 5.0) / (1 + ratio)
        assert float(sim.vdiff(state, "C1")) == pytest.approx(v_expected, rel=1e-5)


def test_rc_capacitor_current_decays():
    """Charging current starts near Vs/R and decays with the voltage across R."""
    sim = build_rc().compile()
    state = sim.init()

    currents = []
    for _ in range(50):
        state = sim.step(None, state)
        currents.append(float(sim.i(state, "C1")))

    assert currents[0] == pytest.approx(5.0 / 1000.0 / 1.1, rel=1e-5)
    assert all(a > b for a, b in zip(currents, currents[1:]))

    # Series loop: capacitor current equals resistor current
    assert float(sim.i(state, "R1")) == pytest.approx(currents[-1], abs=1e-8)


def test_value_override_per_step():
    """params overrides element values without recompiling."""
    sim = build_rc().compile()
    state = sim.init()

    state = sim.step({"V1": 10.0, "R1": 500.0}, state)
    ratio = sim.dt / (500.0 * 10e-6)
    assert float(sim.vdiff(state, "C1")) == pytest.approx(10.0 * ratio / (1 + ratio), rel=1e-5)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
