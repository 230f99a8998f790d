"""Exceptions raised by the time-domain core."""


class SchemsimError(Exception):
    """Base class for all schemsim errors."""


class SingularMatrixError(SchemsimError, ArithmeticError):
    """The MNA system had a pivot below PIVOT_TOL."""

    def __init__(self, pivot: float, size: int):
        self.pivot = pivot
        self.size = size
        super().__init__(
            f"Singular MNA system of size {size} (smallest pivot {pivot:.3e})"
        )


class MissingGroundError(SchemsimError, ValueError):
    """A simulation was started on a schematic without a ground element."""


class SimulationNotRunning(SchemsimError, RuntimeError):
    """tick() was called on a stopped simulation."""
