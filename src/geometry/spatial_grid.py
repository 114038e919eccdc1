"""Uniform 3-D grid for fixed-radius neighbour queries.

Atoms are bucketed by ``floor(coord / cell_size)`` per axis into a sparse
dict keyed by the integer cell triple. A radius query visits every cell that
intersects the query's bounding cube and checks squared distances only for
atoms stored there, so a search costs a handful of cells instead of a scan
over the whole structure.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from analysis.base import Atom

CellKey = Tuple[int, int, int]

# Squared-distance floor; an atom sitting on the query point is not its own neighbour
SELF_EPSILON = 1e-4

DEFAULT_CELL_SIZE = 5.0


@dataclass(frozen=True)
class GridBounds:
    min_x: float
    max_x: float
    min_y: float
    max_y: float
    min_z: float
    max_z: float


class SpatialGrid:
    """Sparse cubic-cell index over a list of atoms."""

    def __init__(self, atoms: Sequence[Atom], cell_size: float = DEFAULT_CELL_SIZE):
        if not cell_size > 0:
            raise ValueError(f"cell_size must be positive, got {cell_size!r}")
        self.cell_size = float(cell_size)
        self.cells: Dict[CellKey, List[Atom]] = {}
        self._count = 0
        min_x = min_y = min_z = math.inf
        max_x = max_y = max_z = -math.inf
        for atom in atoms:
            self.cells.setdefault(self._cell_key(atom.x, atom.y, atom.z), []).append(atom)
            self._count += 1
            min_x, max_x = min(min_x, atom.x), max(max_x, atom.x)
            min_y, max_y = min(min_y, atom.y), max(max_y, atom.y)
            min_z, max_z = min(min_z, atom.z), max(max_z, atom.z)
        self.bounds = GridBounds(min_x, max_x, min_y, max_y, min_z, max_z)

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[Atom]:
        for bucket in self.cells.values():
            yield from bucket

    @property
    def cell_count(self) -> int:
        return len(self.cells)

    def _cell_key(self, x: float, y: float, z: float) -> CellKey:
        size = self.cell_size
        return (math.floor(x / size), math.floor(y / size), math.floor(z / size))

    def _cells_in_cube(self, x: float, y: float, z: float, radius: float) -> Iterator[List[Atom]]:
        lo = self._cell_key(x - radius, y - radius, z - radius)
        hi = self._cell_key(x + radius, y + radius, z + radius)
        for ix in range(lo[0], hi[0] + 1):
            for iy in range(lo[1], hi[1] + 1):
                for iz in range(lo[2], hi[2] + 1):
                    bucket = self.cells.get((ix, iy, iz))
                    if bucket:
                        yield bucket

    def within_radius(self, x: float, y: float, z: float, radius: float) -> List[Atom]:
        """Atoms whose squared distance to (x, y, z) is in (SELF_EPSILON, radius²]."""
        if radius < 0:
            raise ValueError(f"radius must be non-negative, got {radius!r}")
        r2 = radius * radius
        found: List[Atom] = []
        for bucket in self._cells_in_cube(x, y, z, radius):
            for atom in bucket:
                dx = atom.x - x
                dy = atom.y - y
                dz = atom.z - z
                d2 = dx * dx + dy * dy + dz * dz
                if SELF_EPSILON < d2 <= r2:
                    found.append(atom)
        return found

    def neighbors(self, atom: Atom, radius: float, exclude_serial: Optional[int] = None) -> List[Atom]:
        """Atoms within radius of another atom.

        The query atom usually lives in a different list than the indexed
        atoms, so exclusion goes by serial number rather than identity.
        """
        found = self.within_radius(atom.x, atom.y, atom.z, radius)
        if exclude_serial is not None:
            found = [a for a in found if a.serial != exclude_serial]
        return found

    def closest(self, x: float, y: float, z: float, radius: float,
                exclude_serial: Optional[int] = None) -> Optional[Tuple[Atom, float]]:
        """Nearest atom within radius as (atom, distance), or None."""
        best: Optional[Tuple[Atom, float]] = None
        for atom in self.within_radius(x, y, z, radius):
            if exclude_serial is not None and atom.serial == exclude_serial:
                continue
            d = math.sqrt((atom.x - x) ** 2 + (atom.y - y) ** 2 + (atom.z - z) ** 2)
            if best is None or d < best[1]:
                best = (atom, d)
        return best
