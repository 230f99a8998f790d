"""Schematic, element and wire values (immutable/functional style)."""

from __future__ import annotations
from enum import Enum
from typing import NamedTuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .simulator import SimFns


class Kind(str, Enum):
    """Element kinds known to the simulator."""
    RESISTOR = "resistor"
    CAPACITOR = "capacitor"
    INDUCTOR = "inductor"
    SOURCE = "source"
    GROUND = "ground"


UNITS = {
    Kind.RESISTOR: "Ω",
    Kind.CAPACITOR: "F",
    Kind.INDUCTOR: "H",
    Kind.SOURCE: "V",
    Kind.GROUND: "",
}


class Point(NamedTuple):
    """A point in editor coordinates."""
    x: float
    y: float


class Wire(NamedTuple):
    """A straight zero-resistance connection between two points."""
    a: Point
    b: Point


class ElementRef(NamedTuple):
    """Reference to an element for later probing."""
    name: str
    kind: Kind


class ElementSpec(NamedTuple):
    """
    One placed circuit element.

    `pins` are offsets in grid units relative to `position`, before rotation.
    For sources pin 0 is the positive terminal.
    """
    name: str
    kind: Kind
    value: float
    pins: tuple[Point, ...]
    position: Point = Point(0.0, 0.0)
    rotation: int = 0  # quarter turns, 0-3
    label: str = ""

    @property
    def ref(self) -> ElementRef:
        return ElementRef(self.name, self.kind)


class Schematic(NamedTuple):
    """
    Immutable schematic: elements plus wires.

    Build using functional style:
        sch = Schematic()
        sch, r1 = R(sch, name="R1", at=(100, 100))
        sch = sch.wire((60, 100), (60, 160))
    """
    elements: tuple[ElementSpec, ...] = ()
    wires: tuple[Wire, ...] = ()

    def index_of(self, name: str) -> int:
        for k, el in enumerate(self.elements):
            if el.name == name:
                return k
        raise KeyError(f"Unknown element: {name}")

    def element(self, name: str) -> ElementSpec:
        return self.elements[self.index_of(name)]

    def add_element(self, spec: ElementSpec) -> tuple[Schematic, ElementRef]:
        """
        Add an element.

        Returns (new_schematic, element_ref).
        """
        if any(el.name == spec.name for el in self.elements):
            raise ValueError(f"Element '{spec.name}' already exists.")
        spec = spec._replace(rotation=spec.rotation % 4)
        new_sch = self._replace(elements=self.elements + (spec,))
        return new_sch, spec.ref

    def wire(self, a, b) -> Schematic:
        """Add a wire between two points. Returns the new schematic."""
        w = Wire(Point(*a), Point(*b))
        return self._replace(wires=self.wires + (w,))

    def connect(self, a: tuple[str, int], b: tuple[str, int]) -> Schematic:
        """
        Draw a wire from one element pin to another.

        Example:
            sch = sch.connect(("V1", 0), ("R1", 0))
        """
        from .topology import pin_coords
        pa = pin_coords(self.element(a[0]))[a[1]]
        pb = pin_coords(self.element(b[0]))[b[1]]
        return self.wire(pa, pb)

    def remove(self, name: str) -> Schematic:
        k = self.index_of(name)
        return self._replace(elements=self.elements[:k] + self.elements[k + 1:])

    def remove_wire(self, index: int) -> Schematic:
        if not 0 <= index < len(self.wires):
            raise IndexError(f"No wire at index {index}")
        return self._replace(wires=self.wires[:index] + self.wires[index + 1:])

    def update(self, name: str, **changes) -> Schematic:
        """Replace fields of one element (value, position, rotation, label)."""
        k = self.index_of(name)
        if "position" in changes:
            changes["position"] = Point(*changes["position"])
        if "rotation" in changes:
            changes["rotation"] = changes["rotation"] % 4
        el = self.elements[k]._replace(**changes)
        return self._replace(elements=self.elements[:k] + (el,) + self.elements[k + 1:])

    def move(self, name: str, x: float, y: float) -> Schematic:
        return self.update(name, position=(x, y))

    def rotate(self, name: str) -> Schematic:
        """Rotate an element a quarter turn."""
        return self.update(name, rotation=self.element(name).rotation + 1)

    def set_value(self, name: str, value: float) -> Schematic:
        """Change an element value; the label follows the new value."""
        unit = UNITS[self.element(name).kind]
        return self.update(name, value=float(value), label=f"{value:g}{unit}")

    def compile(self, capacity: int | None = None) -> SimFns:
        """
        Resolve topology and create simulation functions for this schematic.

        Args:
            capacity: History samples kept per element (default MAX_HISTORY)

        Returns:
            SimFns with init, step and probe functions
        """
        from .simulator import compile_schematic
        return compile_schematic(self, capacity=capacity)
