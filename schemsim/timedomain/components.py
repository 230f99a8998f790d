"""Element factory functions (functional style).

Each factory places one element of the editor palette on a schematic and
returns (new_schematic, element_ref). Values and labels default to the
palette defaults below.
"""

from __future__ import annotations

from .schematic import Schematic, ElementSpec, ElementRef, Kind, Point, UNITS


# kind -> (default value, default label, pin offsets in grid units)
PALETTE: dict[Kind, tuple[float, str, tuple[tuple[int, int], ...]]] = {
    Kind.RESISTOR: (1000.0, "1kΩ", ((-2, 0), (2, 0))),
    Kind.CAPACITOR: (1e-5, "10µF", ((-1, 0), (1, 0))),
    Kind.INDUCTOR: (0.1, "100mH", ((-2, 0), (2, 0))),
    Kind.SOURCE: (5.0, "5V", ((0, 1), (0, -1))),
    Kind.GROUND: (0.0, "GND", ((0, 0),)),
}


def _place(
    sch: Schematic,
    kind: Kind,
    name: str,
    at,
    rotation: int,
    value: float | None,
    label: str | None,
) -> tuple[Schematic, ElementRef]:
    default_value, default_label, pins = PALETTE[kind]
    if label is None:
        label = default_label if value is None else f"{value:g}{UNITS[kind]}"
    spec = ElementSpec(
        name=name,
        kind=kind,
        value=float(default_value if value is None else value),
        pins=tuple(Point(float(px), float(py)) for px, py in pins),
        position=Point(*at),
        rotation=rotation,
        label=label,
    )
    return sch.add_element(spec)


def R(
    sch: Schematic,
    *,
    name: str,
    at=(0.0, 0.0),
    rotation: int = 0,
    value: float | None = None,
    label: str | None = None,
) -> tuple[Schematic, ElementRef]:
    """
    Place a resistor.

    Args:
        sch: Schematic to add to
        name: Element name (unique, used as key in params and probes)
        at: Absolute position in editor units
        rotation: Quarter turns (0-3)
        value: Resistance in Ohms (default 1 kΩ)
        label: Display label (default derived from the value)

    Returns:
        (new_schematic, element_ref)

    Example:
        sch, r1 = R(sch, name="R1", at=(100, 100), value=1000.0)
    """
    return _place(sch, Kind.RESISTOR, name, at, rotation, value, label)


def C(
    sch: Schematic,
    *,
    name: str,
    at=(0.0, 0.0),
    rotation: int = 0,
    value: float | None = None,
    label: str | None = None,
) -> tuple[Schematic, ElementRef]:
    """
    Place a capacitor (pins one grid unit either side of `at`).

    Args:
        value: Capacitance in Farads (default 10 µF)

    Returns:
        (new_schematic, element_ref)
    """
    return _place(sch, Kind.CAPACITOR, name, at, rotation, value, label)


def L(
    sch: Schematic,
    *,
    name: str,
    at=(0.0, 0.0),
    rotation: int = 0,
    value: float | None = None,
    label: str | None = None,
) -> tuple[Schematic, ElementRef]:
    """
    Place an inductor.

    Args:
        value: Inductance in Henrys (default 100 mH)

    Returns:
        (new_schematic, element_ref)
    """
    return _place(sch, Kind.INDUCTOR, name, at, rotation, value, label)


def VSource(
    sch: Schematic,
    *,
    name: str,
    at=(0.0, 0.0),
    rotation: int = 0,
    value: float | None = None,
    label: str | None = None,
) -> tuple[Schematic, ElementRef]:
    """
    Place an ideal DC voltage source.

    Unrotated, the positive terminal (pin 0) sits one grid unit below `at`
    (editor y grows downwards) and the negative terminal one unit above.

    Args:
        value: Voltage in Volts (default 5 V)

    Returns:
        (new_schematic, element_ref)
    """
    return _place(sch, Kind.SOURCE, name, at, rotation, value, label)


def Ground(sch: Schematic, *, name: str, at=(0.0, 0.0)) -> tuple[Schematic, ElementRef]:
    """Place a ground symbol; whatever touches its pin is node 0."""
    return _place(sch, Kind.GROUND, name, at, 0, None, None)
