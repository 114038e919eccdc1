"""
Hydrogen bond detection between a ligand and its pocket.

Donor/acceptor roles come from fixed chemical rules rather than explicit
hydrogen positions: backbone amide N donates, backbone/terminal O accepts,
named side-chain atoms follow a per-residue table and anything else falls
back to an element rule. Only the donor–acceptor heavy-atom distance is
checked; H···A distance and D–H···A angle are left unset.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple

from loguru import logger

from geometry.core import distance, round_distance
from geometry.spatial_grid import SpatialGrid
from utils.config import AnalysisParams
from utils.pdb_handler import WATER_RESIDUES
from .base import Atom, BindingSite, HydrogenBondInteraction
from .base_detector import GridSet, register_detector, renumber


@dataclass(frozen=True)
class AtomRole:
    """Hydrogen-bonding capability of one atom."""
    donor: bool
    acceptor: bool
    side_chain: bool = False

    @property
    def capable(self) -> bool:
        return self.donor or self.acceptor


NO_ROLE = AtomRole(False, False, False)

BACKBONE_DONORS = frozenset({'N'})
BACKBONE_ACCEPTORS = frozenset({'O', 'OT1', 'OT2', 'OXT'})

# (residue, atom) -> role for side-chain and solvent atoms
PROTEIN_ROLES: Dict[Tuple[str, str], AtomRole] = {
    ('SER', 'OG'): AtomRole(True, True, True),
    ('THR', 'OG1'): AtomRole(True, True, True),
    ('TYR', 'OH'): AtomRole(True, True, True),
    ('CYS', 'SG'): AtomRole(True, True, True),
    ('ASN', 'ND2'): AtomRole(True, False, True),
    ('ASN', 'OD1'): AtomRole(False, True, True),
    ('GLN', 'NE2'): AtomRole(True, False, True),
    ('GLN', 'OE1'): AtomRole(False, True, True),
    ('HIS', 'ND1'): AtomRole(True, True, True),
    ('HIS', 'NE2'): AtomRole(True, True, True),
    ('TRP', 'NE1'): AtomRole(True, True, True),
    ('ARG', 'NE'): AtomRole(True, False, True),
    ('ARG', 'NH1'): AtomRole(True, False, True),
    ('ARG', 'NH2'): AtomRole(True, False, True),
    ('LYS', 'NZ'): AtomRole(True, False, True),
    ('ASP', 'OD1'): AtomRole(False, True, True),
    ('ASP', 'OD2'): AtomRole(False, True, True),
    ('GLU', 'OE1'): AtomRole(False, True, True),
    ('GLU', 'OE2'): AtomRole(False, True, True),
    # Water oxygens both donate and accept
    ('HOH', 'O'): AtomRole(True, True, False),
    ('WAT', 'O'): AtomRole(True, True, False),
    ('DOD', 'O'): AtomRole(True, True, False),
}


def protein_atom_role(atom: Atom) -> AtomRole:
    """Donor/acceptor role of a protein-side atom."""
    name = atom.name.strip().upper()
    resn = atom.residue_name.upper()
    if resn not in WATER_RESIDUES:
        if name in BACKBONE_DONORS:
            return AtomRole(True, False, False)
        if name in BACKBONE_ACCEPTORS:
            return AtomRole(False, True, False)
    role = PROTEIN_ROLES.get((resn, name))
    if role is not None:
        return role
    if atom.element.upper() in ('N', 'O', 'S'):
        return AtomRole(True, True, True)
    return NO_ROLE


def ligand_atom_role(atom: Atom) -> AtomRole:
    """Coarse element rule: N/O donate and accept, S only accepts."""
    element = atom.element.upper()
    if element in ('N', 'O'):
        return AtomRole(True, True)
    if element == 'S':
        return AtomRole(False, True)
    return NO_ROLE


def find_hbond_interactions(site: BindingSite, protein_grid: SpatialGrid,
                            max_dist: float) -> List[HydrogenBondInteraction]:
    """Ligand–protein donor/acceptor pairs within max_dist.

    A pair counts when protein→ligand or ligand→protein donation is
    chemically allowed. If both are, the protein is recorded as the donor.
    Sorted by donor–acceptor distance, indexed 1..N after sorting.
    """
    bonds: List[HydrogenBondInteraction] = []
    for ligand_atom in site.ligand.atoms:
        ligand_role = ligand_atom_role(ligand_atom)
        if not ligand_role.capable:
            continue
        for protein_atom in protein_grid.neighbors(ligand_atom, max_dist):
            protein_role = protein_atom_role(protein_atom)
            if not protein_role.capable:
                continue
            dist = distance(ligand_atom, protein_atom)
            if dist > max_dist:
                continue
            protein_donates = protein_role.donor and ligand_role.acceptor
            ligand_donates = ligand_role.donor and protein_role.acceptor
            if not (protein_donates or ligand_donates):
                continue
            donor, acceptor = (protein_atom, ligand_atom) if protein_donates else (ligand_atom, protein_atom)
            bonds.append(HydrogenBondInteraction(
                index=0,
                residue=protein_atom.residue_ref.label,
                aa=protein_atom.residue_name,
                distance_da=round_distance(dist),
                protein_donor=protein_donates,
                side_chain=protein_role.side_chain,
                donor_atom_serial=donor.serial,
                acceptor_atom_serial=acceptor.serial,
                donor_atom_name=donor.name,
                acceptor_atom_name=acceptor.name,
            ))

    bonds.sort(key=lambda b: (b.distance_da, b.donor_atom_serial, b.acceptor_atom_serial))
    return renumber(bonds)


@register_detector("hbond", method="detect")
class HydrogenBondDetector:
    """Detects ligand–protein hydrogen bonds for one binding site at a time."""

    def __init__(self, params: AnalysisParams):
        """
        Initialize hydrogen bond detector.

        Args:
            params: AnalysisParams holding hbond_max_dist
        """
        self.params = params
        self.distance_cutoff = params.hbond_max_dist

    def detect(self, site: BindingSite, grids: GridSet) -> List[HydrogenBondInteraction]:
        bonds = find_hbond_interactions(site, grids.protein, self.distance_cutoff)
        logger.debug(f"Site {site.site_id}: {len(bonds)} hydrogen bonds (cutoff={self.distance_cutoff} Å)")
        return bonds
