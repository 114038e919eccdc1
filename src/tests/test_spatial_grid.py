"""SpatialGrid radius queries must agree with a brute-force scan."""
import numpy as np
import pytest

from analysis.base import Atom
from geometry.core import brute_force_within
from geometry.spatial_grid import SELF_EPSILON, SpatialGrid


def _atom(serial, x, y, z):
    return Atom(serial=serial, name="C", residue_name="ALA", chain="A", residue_seq=serial,
                x=float(x), y=float(y), z=float(z), element="C")


def _random_atoms(n=400, seed=7, spread=30.0):
    rng = np.random.RandomState(seed)
    coords = rng.uniform(-spread, spread, size=(n, 3))
    return [_atom(i + 1, *xyz) for i, xyz in enumerate(coords)]


@pytest.mark.parametrize("cell_size", [1.5, 5.0, 12.0])
@pytest.mark.parametrize("radius", [0.0, 2.5, 4.0, 7.5, 15.0])
def test_within_radius_matches_brute_force(cell_size, radius):
    atoms = _random_atoms()
    grid = SpatialGrid(atoms, cell_size)
    rng = np.random.RandomState(11)
    queries = [a.coord for a in atoms[:20]] + list(rng.uniform(-35.0, 35.0, size=(20, 3)))
    for point in queries:
        got = {a.serial for a in grid.within_radius(*point, radius)}
        expected = {a.serial for a in brute_force_within(atoms, point, radius)}
        assert got == expected


def test_boundary_distance_is_inclusive():
    atoms = [_atom(1, 0.0, 0.0, 0.0), _atom(2, 4.0, 0.0, 0.0), _atom(3, 4.01, 0.0, 0.0)]
    grid = SpatialGrid(atoms)
    assert {a.serial for a in grid.within_radius(0.0, 0.0, 0.0, 4.0)} == {2}


def test_coincident_atom_excluded():
    atoms = [_atom(1, 1.0, 1.0, 1.0), _atom(2, 1.0, 1.0, 1.0 + SELF_EPSILON / 10)]
    grid = SpatialGrid(atoms)
    assert grid.within_radius(1.0, 1.0, 1.0, 3.0) == []


def test_neighbors_excludes_by_serial():
    atoms = [_atom(1, 0.0, 0.0, 0.0), _atom(2, 1.0, 0.0, 0.0), _atom(3, 2.0, 0.0, 0.0)]
    grid = SpatialGrid(atoms)
    query = _atom(2, 1.0, 0.0, 0.5)
    assert {a.serial for a in grid.neighbors(query, 2.0)} == {1, 2, 3}
    assert {a.serial for a in grid.neighbors(query, 2.0, exclude_serial=2)} == {1, 3}


def test_negative_coordinates_cross_cell_boundaries():
    atoms = [_atom(1, -0.1, -0.1, -0.1), _atom(2, 0.1, 0.1, 0.1)]
    grid = SpatialGrid(atoms, cell_size=5.0)
    assert grid.cell_count == 2
    assert {a.serial for a in grid.within_radius(0.1, 0.1, 0.1, 1.0)} == {1}


def test_closest_returns_nearest():
    atoms = [_atom(1, 3.0, 0.0, 0.0), _atom(2, 1.0, 0.0, 0.0), _atom(3, 0.0, 2.0, 0.0)]
    grid = SpatialGrid(atoms)
    atom, dist = grid.closest(0.0, 0.0, 0.0, 5.0)
    assert atom.serial == 2
    assert dist == pytest.approx(1.0)
    assert grid.closest(50.0, 50.0, 50.0, 1.0) is None


def test_empty_grid_and_invalid_arguments():
    grid = SpatialGrid([])
    assert len(grid) == 0
    assert grid.within_radius(0.0, 0.0, 0.0, 10.0) == []
    with pytest.raises(ValueError):
        SpatialGrid([], cell_size=0)
    with pytest.raises(ValueError):
        grid.within_radius(0.0, 0.0, 0.0, -1.0)


def test_len_and_iteration_cover_all_atoms():
    atoms = _random_atoms(n=50)
    grid = SpatialGrid(atoms, cell_size=4.0)
    assert len(grid) == 50
    assert sorted(a.serial for a in grid) == list(range(1, 51))
