import pytest

from analysis.base import Atom, BindingSite, Ligand
from analysis.hydrogen_bonds import (
    NO_ROLE,
    find_hbond_interactions,
    ligand_atom_role,
    protein_atom_role,
)
from geometry.spatial_grid import SpatialGrid
from utils.pdb_handler import parse_pdb_text


def _atom(name, resn, element, serial=1):
    return Atom(serial=serial, name=name, residue_name=resn, chain="A", residue_seq=1,
                x=0.0, y=0.0, z=0.0, element=element)


def test_backbone_roles():
    n_role = protein_atom_role(_atom("N", "GLY", "N"))
    assert n_role.donor and not n_role.acceptor and not n_role.side_chain
    o_role = protein_atom_role(_atom("OXT", "GLY", "O"))
    assert o_role.acceptor and not o_role.donor


def test_side_chain_table_roles():
    assert protein_atom_role(_atom("OG", "SER", "O")).donor
    asp = protein_atom_role(_atom("OD1", "ASP", "O"))
    assert asp.acceptor and not asp.donor and asp.side_chain
    lys = protein_atom_role(_atom("NZ", "LYS", "N"))
    assert lys.donor and not lys.acceptor


def test_element_fallback_and_carbon():
    fallback = protein_atom_role(_atom("OX9", "UNK", "O"))
    assert fallback.donor and fallback.acceptor and fallback.side_chain
    assert protein_atom_role(_atom("CB", "ALA", "C")) == NO_ROLE


def test_water_oxygen_donates_and_accepts():
    role = protein_atom_role(_atom("O", "HOH", "O"))
    assert role.donor and role.acceptor and not role.side_chain


def test_ligand_roles():
    assert ligand_atom_role(_atom("N1", "LIG", "N")).donor
    sulfur = ligand_atom_role(_atom("S1", "LIG", "S"))
    assert sulfur.acceptor and not sulfur.donor
    assert not ligand_atom_role(_atom("C1", "LIG", "C")).capable


def test_reference_complex_has_one_serine_bond(first_site):
    site, grid = first_site
    bonds = find_hbond_interactions(site, grid, 3.5)
    assert len(bonds) == 1
    bond = bonds[0]
    assert bond.index == 1
    assert bond.aa == "SER"
    assert bond.distance_da == pytest.approx(3.2)
    assert bond.protein_donor is True
    assert bond.side_chain is True
    assert bond.donor_atom_name == "OG"
    assert bond.acceptor_atom_name == "O1"
    assert bond.distance_ha is None and bond.donor_angle is None


def test_cutoff_excludes_longer_bond(first_site):
    site, grid = first_site
    assert find_hbond_interactions(site, grid, 3.1) == []


def test_ligand_donor_to_protein_acceptor(atom_line):
    parsed = parse_pdb_text("\n".join([
        atom_line("ATOM", 1, "OD1", "ASP", "A", 7, 2.9, 0.0, 0.0, "O"),
        atom_line("ATOM", 2, "O", "GLY", "A", 8, 0.0, 3.1, 0.0, "O"),
        atom_line("HETATM", 10, "N1", "LIG", "A", 900, 0.0, 0.0, 0.0, "N"),
    ]))
    ligand = Ligand(1, "A", 900, "LIG", parsed.ligand_atoms)
    bonds = find_hbond_interactions(BindingSite(1, ligand, [], []), SpatialGrid(parsed.protein_atoms), 3.5)
    assert [(b.aa, b.protein_donor, b.donor_atom_serial, b.acceptor_atom_serial) for b in bonds] == [
        ("ASP", False, 10, 1),
        ("GLY", False, 10, 2),
    ]
    assert [b.side_chain for b in bonds] == [True, False]
    assert [b.index for b in bonds] == [1, 2]
