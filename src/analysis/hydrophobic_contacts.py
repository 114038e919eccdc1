"""
Hydrophobic contact detection between a ligand and its pocket.
Reports ligand atoms packed against side chains of non-polar residues.
"""

from typing import Dict, List, Tuple

from loguru import logger

from geometry.core import distance, round_distance
from geometry.spatial_grid import SpatialGrid
from utils.config import AnalysisParams
from utils.pdb_handler import HYDROPHOBIC_RESIDUES
from .base import Atom, BindingSite, HydrophobicInteraction, ResidueRef
from .base_detector import GridSet, register_detector, renumber


def is_hydrophobic_residue(residue_name: str) -> bool:
    return residue_name.upper() in HYDROPHOBIC_RESIDUES


def find_hydrophobic_interactions(site: BindingSite, protein_grid: SpatialGrid,
                                  max_dist: float) -> List[HydrophobicInteraction]:
    """One contact per (hydrophobic residue, ligand atom) pair within max_dist.

    When several atoms of the same residue qualify for one ligand atom the
    closest one is kept. Output is sorted by distance and indexed 1..N in
    that order.
    """
    best: Dict[Tuple[ResidueRef, int], Tuple[float, Atom, Atom]] = {}
    for ligand_atom in site.ligand.atoms:
        for protein_atom in protein_grid.neighbors(ligand_atom, max_dist):
            if not is_hydrophobic_residue(protein_atom.residue_name):
                continue
            dist = distance(ligand_atom, protein_atom)
            if dist > max_dist:
                continue
            key = (protein_atom.residue_ref, ligand_atom.serial)
            current = best.get(key)
            if current is None or (dist, protein_atom.serial) < (current[0], current[2].serial):
                best[key] = (dist, ligand_atom, protein_atom)

    contacts = [
        HydrophobicInteraction(
            index=0,
            residue=protein_atom.residue_ref.label,
            aa=protein_atom.residue_name,
            distance=round_distance(dist),
            ligand_atom_serial=ligand_atom.serial,
            protein_atom_serial=protein_atom.serial,
            ligand_atom_name=ligand_atom.name,
            protein_atom_name=protein_atom.name,
        )
        for dist, ligand_atom, protein_atom in best.values()
    ]
    contacts.sort(key=lambda c: (c.distance, c.ligand_atom_serial, c.protein_atom_serial))
    return renumber(contacts)


@register_detector("hydrophobic", method="detect")
class HydrophobicContactDetector:
    """Detects hydrophobic contacts for one binding site at a time."""

    def __init__(self, params: AnalysisParams):
        self.params = params
        self.distance_cutoff = params.hydrophobic_max_dist

    def detect(self, site: BindingSite, grids: GridSet) -> List[HydrophobicInteraction]:
        contacts = find_hydrophobic_interactions(site, grids.protein, self.distance_cutoff)
        logger.debug(f"Site {site.site_id}: {len(contacts)} hydrophobic contacts (cutoff={self.distance_cutoff} Å)")
        return contacts
