"""
Test: MNA stamps and the partial-pivoting solver.

Stamps are checked against hand-written matrices; the solver against
systems with known solutions, including ones that need row swaps.
"""
import pytest
import jax.numpy as jnp


class TestStamps:
    """build_stamps() + assemble() on hand-made node assignments."""

    def test_source_and_resistor(self):
        from schemsim.timedomain import Kind, build_stamps, assemble, G_MIN

        kinds = [Kind.SOURCE, Kind.RESISTOR, Kind.GROUND]
        st = build_stamps(kinds, [(1, 0), (1, 0), (0,)])
        assert st.n_nodes == 1
        assert st.n_total == 2
        assert st.sources == ((0, 1, 0, 1),)

        values = jnp.array([5.0, 1000.0, 0.0])
        zeros = jnp.zeros(3)
        G, b = assemble(st, values, zeros, zeros)

        expected_G = jnp.array([[1e-3 + G_MIN, 1.0], [1.0, 0.0]])
        assert jnp.allclose(G, expected_G, rtol=0, atol=1e-15)
        assert jnp.allclose(b, jnp.array([0.0, 5.0]))

    def test_capacitor_companion(self):
        from schemsim.timedomain import Kind, build_stamps, assemble, G_MIN

        st = build_stamps([Kind.CAPACITOR], [(1, 2)])
        G, b = assemble(st, jnp.array([1e-5]), jnp.array([2.0]), jnp.zeros(1), dt=1e-3)

        g = 1e-5 / 1e-3
        assert jnp.allclose(G, jnp.array([[g + G_MIN, -g], [-g, g + G_MIN]]), rtol=0, atol=1e-15)
        # g * v_prev injected into n1, withdrawn from n2
        assert jnp.allclose(b, jnp.array([g * 2.0, -g * 2.0]))

    def test_inductor_companion(self):
        from schemsim.timedomain import Kind, build_stamps, assemble, G_MIN

        st = build_stamps([Kind.INDUCTOR], [(1, 2)])
        G, b = assemble(st, jnp.array([0.5]), jnp.zeros(1), jnp.array([0.1]), dt=1e-3)

        g = 1e-3 / 0.5
        assert jnp.allclose(G, jnp.array([[g + G_MIN, -g], [-g, g + G_MIN]]), rtol=0, atol=1e-15)
        # i_prev withdrawn from n1, injected into n2
        assert jnp.allclose(b, jnp.array([-0.1, 0.1]))

    def test_ground_terminal_drops_out(self):
        from schemsim.timedomain import Kind, build_stamps, assemble, G_MIN

        st = build_stamps([Kind.RESISTOR], [(0, 1)])
        G, b = assemble(st, jnp.array([100.0]), jnp.zeros(1), jnp.zeros(1))
        assert G.shape == (1, 1)
        assert float(G[0, 0]) == pytest.approx(0.01 + G_MIN)

    def test_unconnected_elements_are_skipped(self):
        from schemsim.timedomain import Kind, build_stamps

        kinds = [Kind.SOURCE, Kind.RESISTOR, Kind.CAPACITOR, Kind.INDUCTOR]
        st = build_stamps(kinds, [(1, -1), (-1, 1), (2, -1), (-1, -1)])
        assert st.n_nodes == 2
        assert st.n_total == 2  # no auxiliary row for the dangling source
        assert st.sources == ()
        assert st.resistors == ()
        assert st.capacitors == ()
        assert st.inductors == ()

    def test_sources_get_rows_in_element_order(self):
        from schemsim.timedomain import Kind, build_stamps

        kinds = [Kind.SOURCE, Kind.RESISTOR, Kind.SOURCE]
        st = build_stamps(kinds, [(2, 0), (1, 2), (1, 0)])
        assert st.n_total == 4
        assert [row for *_, row in st.sources] == [2, 3]

    def test_empty_system(self):
        from schemsim.timedomain import build_stamps, assemble

        st = build_stamps([], [])
        G, b = assemble(st, jnp.zeros(0), jnp.zeros(0), jnp.zeros(0))
        assert G.shape == (0, 0)
        assert b.shape == (0,)


class TestSolver:
    """solve(): Gaussian elimination with partial pivoting."""

    def test_known_solution(self):
        from schemsim.timedomain import solve

        A = jnp.array([[2.0, 1.0, -1.0], [-3.0, -1.0, 2.0], [-2.0, 1.0, 2.0]])
        b = jnp.array([8.0, -11.0, -3.0])
        x = solve(A, b)
        assert jnp.allclose(x, jnp.array([2.0, 3.0, -1.0]), rtol=1e-12)

    def test_zero_leading_pivot_needs_row_swap(self):
        from schemsim.timedomain import solve

        x = solve(jnp.array([[0.0, 1.0], [1.0, 1.0]]), jnp.array([1.0, 3.0]))
        assert jnp.allclose(x, jnp.array([2.0, 1.0]), rtol=1e-12)

    def test_badly_scaled_rows(self):
        from schemsim.timedomain import solve

        # eps*x + y = 1, x + y = 2
        eps = 1e-10
        x = solve(jnp.array([[eps, 1.0], [1.0, 1.0]]), jnp.array([1.0, 2.0]))
        x_exact = 1.0 / (1.0 - eps)
        y_exact = (1.0 - 2.0 * eps) / (1.0 - eps)
        assert float(x[0]) == pytest.approx(x_exact, rel=1e-9)
        assert float(x[1]) == pytest.approx(y_exact, rel=1e-9)

    def test_inputs_not_modified(self):
        from schemsim.timedomain import solve

        A = jnp.array([[0.0, 1.0], [1.0, 1.0]])
        b = jnp.array([1.0, 3.0])
        solve(A, b)
        assert jnp.array_equal(A, jnp.array([[0.0, 1.0], [1.0, 1.0]]))
        assert jnp.array_equal(b, jnp.array([1.0, 3.0]))

    def test_singular_raises(self):
        from schemsim.timedomain import solve, SingularMatrixError

        with pytest.raises(SingularMatrixError) as exc:
            solve(jnp.array([[1.0, 2.0], [2.0, 4.0]]), jnp.array([1.0, 2.0]))
        assert exc.value.size == 2
        assert exc.value.pivot < 1e-12

    def test_singular_is_arithmetic_error(self):
        from schemsim.timedomain import solve

        with pytest.raises(ArithmeticError):
            solve(jnp.zeros((3, 3)), jnp.ones(3))

    def test_empty_system(self):
        from schemsim.timedomain import solve

        x = solve(jnp.zeros((0, 0)), jnp.zeros(0))
        assert x.shape == (0,)

    def test_gmin_keeps_floating_node_solvable(self):
        """A node with only G_MIN on its diagonal is still a valid pivot."""
        from schemsim.timedomain import Kind, build_stamps, assemble, solve

        st = build_stamps([Kind.RESISTOR, Kind.RESISTOR], [(1, 2), (3, 3)])
        G, b = assemble(st, jnp.array([1e3, 1e3]), jnp.zeros(2), jnp.zeros(2))
        x = solve(G, b)
        assert jnp.allclose(x, jnp.zeros(3))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
