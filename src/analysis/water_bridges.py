"""
Water-mediated bridge detection.

A bridge is a (protein atom, water oxygen, ligand atom) triangle where both
legs are within the cutoff and the protein/ligand pair has complementary
donor/acceptor roles. Angles at the donor and at the water are reserved and
left unset, as for direct hydrogen bonds.
"""

from typing import Iterable, List

from loguru import logger

from geometry.core import distance, round_distance
from geometry.spatial_grid import SpatialGrid
from utils.config import AnalysisParams
from utils.pdb_handler import WATER_RESIDUES
from .base import Atom, BindingSite, WaterBridgeInteraction
from .base_detector import GridSet, register_detector, renumber
from .hydrogen_bonds import ligand_atom_role, protein_atom_role


def is_water_oxygen(atom: Atom) -> bool:
    return atom.residue_name.upper() in WATER_RESIDUES and atom.element.upper() == 'O'


def water_oxygens(atoms: Iterable[Atom]) -> List[Atom]:
    return [a for a in atoms if is_water_oxygen(a)]


def find_water_bridge_interactions(site: BindingSite, protein_grid: SpatialGrid,
                                   water_grid: SpatialGrid, max_dist: float) -> List[WaterBridgeInteraction]:
    """All ligand–water–protein bridges for one site.

    Other waters never act as the protein end of a bridge. Sorted by the
    sum of both legs, indexed 1..N after sorting.
    """
    bridges: List[WaterBridgeInteraction] = []
    for ligand_atom in site.ligand.atoms:
        ligand_role = ligand_atom_role(ligand_atom)
        if not ligand_role.capable:
            continue
        for water in water_grid.neighbors(ligand_atom, max_dist):
            if not is_water_oxygen(water):
                continue
            ligand_leg = distance(ligand_atom, water)
            if ligand_leg > max_dist:
                continue
            for protein_atom in protein_grid.neighbors(water, max_dist, exclude_serial=water.serial):
                if protein_atom.residue_name.upper() in WATER_RESIDUES:
                    continue
                protein_role = protein_atom_role(protein_atom)
                if not protein_role.capable:
                    continue
                protein_leg = distance(protein_atom, water)
                if protein_leg > max_dist:
                    continue
                protein_donates = protein_role.donor and ligand_role.acceptor
                ligand_donates = protein_role.acceptor and ligand_role.donor
                if not (protein_donates or ligand_donates):
                    continue
                donor, acceptor = (protein_atom, ligand_atom) if protein_donates else (ligand_atom, protein_atom)
                bridges.append(WaterBridgeInteraction(
                    index=0,
                    residue=protein_atom.residue_ref.label,
                    aa=protein_atom.residue_name,
                    distance_aw=round_distance(ligand_leg),
                    distance_dw=round_distance(protein_leg),
                    protein_donor=protein_donates,
                    donor_atom_serial=donor.serial,
                    acceptor_atom_serial=acceptor.serial,
                    water_atom_serial=water.serial,
                    donor_atom_name=donor.name,
                    acceptor_atom_name=acceptor.name,
                    water_atom_name=water.name,
                ))

    bridges.sort(key=lambda b: (b.total_distance, b.water_atom_serial,
                                b.donor_atom_serial, b.acceptor_atom_serial))
    return renumber(bridges)


@register_detector("water_bridge", method="detect")
class WaterBridgeDetector:
    """Detects water-mediated ligand–protein bridges."""

    def __init__(self, params: AnalysisParams):
        self.params = params
        self.distance_cutoff = params.water_bridge_max_dist

    def detect(self, site: BindingSite, grids: GridSet) -> List[WaterBridgeInteraction]:
        if grids.water is None or len(grids.water) == 0:
            return []
        bridges = find_water_bridge_interactions(site, grids.protein, grids.water, self.distance_cutoff)
        logger.debug(f"Site {site.site_id}: {len(bridges)} water bridges (cutoff={self.distance_cutoff} Å)")
        return bridges
