"""Geometry primitives shared by the spatial index and the detectors.

Scalar helpers work on ``Atom`` values directly; the NumPy helpers provide a
vectorised brute-force reference used to cross-check the grid.
"""
from __future__ import annotations

import math
from typing import List, Sequence

import numpy as _np

from analysis.base import Atom


def distance_squared(a: Atom, b: Atom) -> float:
    dx = a.x - b.x
    dy = a.y - b.y
    dz = a.z - b.z
    return dx * dx + dy * dy + dz * dz


def distance(a: Atom, b: Atom) -> float:
    return math.sqrt(distance_squared(a, b))


def round_distance(value: float, digits: int = 3) -> float:
    return round(float(value), digits)


def coords_array(atoms: Sequence[Atom]) -> _np.ndarray:
    """(N,3) float64 array of atom coordinates (empty (0,3) for no atoms)."""
    if not atoms:
        return _np.zeros((0, 3), dtype=_np.float64)
    return _np.array([(a.x, a.y, a.z) for a in atoms], dtype=_np.float64)


def brute_force_within(atoms: Sequence[Atom], point, radius: float, epsilon: float = 1e-4) -> List[Atom]:
    """All atoms with ``epsilon < d² <= radius²`` from point, by full scan.

    Same acceptance rule as SpatialGrid.within_radius; O(N) per query.
    """
    coords = coords_array(atoms)
    if coords.shape[0] == 0:
        return []
    diff = coords - _np.asarray(point, dtype=_np.float64)
    dist2 = _np.sum(diff * diff, axis=-1)
    mask = (dist2 <= radius * radius) & (dist2 > epsilon)
    return [atoms[i] for i in _np.nonzero(mask)[0].tolist()]


__all__ = [
    'distance',
    'distance_squared',
    'round_distance',
    'coords_array',
    'brute_force_within',
]
