"""Geometric topology resolution: drawn points -> electrical node ids.

Every wire endpoint and every element pin is a terminal point. Points that
coincide (both coordinate deltas below COINCIDENCE_TOL) are one electrical
point, and a wire joins its two endpoints. The resulting equivalence classes
are the circuit nodes:

    - a class touching a ground pin is node 0
    - every other class with more than one point gets 1..N in the order it is
      first seen while walking the point list (wires first, then pins)
    - a pin alone in its class touches nothing and resolves to -1

Coincidence is tested pairwise, which is fine at editor scale.
"""

from __future__ import annotations
import logging
from typing import NamedTuple

from .constants import GRID_SIZE, COINCIDENCE_TOL
from .schematic import Schematic, ElementSpec, Kind, Point

logger = logging.getLogger(__name__)


class Topology(NamedTuple):
    """Resolved connectivity, parallel to Schematic.elements."""
    names: tuple[str, ...]
    node_ids: tuple[tuple[int, ...], ...]   # per element, per pin (-1 = unconnected)
    connected: tuple[tuple[bool, ...], ...]  # per element, per pin
    num_nodes: int                           # non-ground node ids assigned

    def index(self, name: str) -> int:
        if name not in self.names:
            raise KeyError(f"Unknown element: {name}")
        return self.names.index(name)

    def node_of(self, name: str, pin: int) -> int:
        return self.node_ids[self.index(name)][pin]

    def is_connected(self, name: str) -> tuple[bool, ...]:
        return self.connected[self.index(name)]

    def classes(self) -> set[frozenset[tuple[str, int]]]:
        """Connectivity classes as sets of (element name, pin) terminals."""
        groups: dict[int, set[tuple[str, int]]] = {}
        for name, ids in zip(self.names, self.node_ids):
            for pin, node in enumerate(ids):
                if node >= 0:
                    groups.setdefault(node, set()).add((name, pin))
        return {frozenset(g) for g in groups.values()}


def rotate(offset: Point, rotation: int) -> Point:
    """Rotate a grid offset by quarter turns (editor y axis points down)."""
    x, y = offset
    r = rotation % 4
    if r == 1:
        return Point(-y, x)
    if r == 2:
        return Point(-x, -y)
    if r == 3:
        return Point(y, -x)
    return Point(x, y)


def pin_coords(element: ElementSpec) -> tuple[Point, ...]:
    """Absolute editor coordinates of every pin of an element."""
    px, py = element.position
    coords = []
    for pin in element.pins:
        rx, ry = rotate(pin, element.rotation)
        coords.append(Point(px + rx * GRID_SIZE, py + ry * GRID_SIZE))
    return tuple(coords)


def has_ground(sch: Schematic) -> bool:
    return any(el.kind == Kind.GROUND for el in sch.elements)


def _coincident(p: Point, q: Point) -> bool:
    return abs(p.x - q.x) < COINCIDENCE_TOL and abs(p.y - q.y) < COINCIDENCE_TOL


class _DisjointSet:
    """Index-based union-find with path compression."""

    def __init__(self, n: int):
        self.parent = list(range(n))

    def find(self, i: int) -> int:
        root = i
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[i] != root:
            self.parent[i], i = root, self.parent[i]
        return root

    def union(self, i: int, j: int) -> None:
        ri, rj = self.find(i), self.find(j)
        if ri != rj:
            self.parent[ri] = rj


def resolve(sch: Schematic) -> Topology:
    """
    Merge coincident points into electrical nodes.

    Args:
        sch: Schematic to resolve

    Returns:
        Topology with one node id and one connectivity flag per element pin
    """
    points: list[Point] = []
    for w in sch.wires:
        points.append(Point(*w.a))
        points.append(Point(*w.b))

    pin_index: list[tuple[int, ...]] = []
    for el in sch.elements:
        first = len(points)
        points.extend(pin_coords(el))
        pin_index.append(tuple(range(first, len(points))))

    ds = _DisjointSet(len(points))
    for i in range(len(points)):
        for j in range(i + 1, len(points)):
            if _coincident(points[i], points[j]):
                ds.union(i, j)
    for k in range(len(sch.wires)):
        ds.union(2 * k, 2 * k + 1)

    roots = [ds.find(i) for i in range(len(points))]
    sizes: dict[int, int] = {}
    for r in roots:
        sizes[r] = sizes.get(r, 0) + 1

    grounded = set()
    for el, idx in zip(sch.elements, pin_index):
        if el.kind == Kind.GROUND:
            grounded.update(roots[i] for i in idx)

    ids: dict[int, int] = {r: 0 for r in grounded}
    next_id = 1
    for r in roots:
        if r in ids or sizes[r] < 2:
            continue
        ids[r] = next_id
        next_id += 1

    node_ids = []
    connected = []
    for idx in pin_index:
        node_ids.append(tuple(ids.get(roots[i], -1) for i in idx))
        connected.append(tuple(sizes[roots[i]] > 1 for i in idx))

    topo = Topology(
        names=tuple(el.name for el in sch.elements),
        node_ids=tuple(node_ids),
        connected=tuple(connected),
        num_nodes=next_id - 1,
    )
    logger.debug(
        "Resolved %d points (%d wires, %d elements) into %d nodes%s",
        len(points), len(sch.wires), len(sch.elements), topo.num_nodes,
        " + ground" if grounded else "",
    )
    return topo
