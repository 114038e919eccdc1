"""
Binding site detection.
Groups ligand atoms into ligand instances and collects the protein pocket
around each one through the protein spatial grid.
"""

from typing import Dict, Iterable, List, Sequence

from loguru import logger

from geometry.spatial_grid import SpatialGrid
from utils.pdb_handler import group_ligands, ligand_type
from .base import Atom, BindingSite, Ligand, LigandType, ResidueRef


def build_ligands(ligand_atoms: Iterable[Atom]) -> List[Ligand]:
    """All ligand instances in encounter order, numbered 1..N."""
    ligands: List[Ligand] = []
    for number, ((chain, resi, resn), atoms) in enumerate(group_ligands(ligand_atoms).items(), start=1):
        ligands.append(Ligand(
            site_id=number,
            chain=chain,
            residue_seq=resi,
            residue_name=resn,
            atoms=atoms,
            type=ligand_type(resn),
        ))
    return ligands


def find_pocket_atoms(ligand: Ligand, protein_grid: SpatialGrid, binding_site_distance: float) -> List[Atom]:
    """Union of protein atoms within the cutoff of any ligand atom, deduplicated by serial."""
    pocket: Dict[int, Atom] = {}
    for ligand_atom in ligand.atoms:
        for neighbor in protein_grid.neighbors(ligand_atom, binding_site_distance):
            pocket.setdefault(neighbor.serial, neighbor)
    return list(pocket.values())


def extract_residues(atoms: Iterable[Atom]) -> List[ResidueRef]:
    """Unique residues of the atoms, sorted by chain then residue number."""
    residues = {atom.residue_ref for atom in atoms}
    return sorted(residues, key=ResidueRef.sort_key)


def detect_binding_sites(ligand_atoms: Sequence[Atom], protein_grid: SpatialGrid,
                         binding_site_distance: float) -> List[BindingSite]:
    """Detect one binding site per non-water ligand that has a pocket.

    Site ids are assigned sequentially to the sites that survive, in ligand
    encounter order.
    """
    sites: List[BindingSite] = []
    site_id = 1
    for ligand in build_ligands(ligand_atoms):
        if ligand.type == LigandType.WATER:
            continue
        pocket_atoms = find_pocket_atoms(ligand, protein_grid, binding_site_distance)
        pocket_residues = extract_residues(pocket_atoms)
        if not pocket_residues:
            logger.debug(f"Ligand {ligand.label} has no protein atoms within {binding_site_distance} Å; skipped")
            continue
        ligand.site_id = site_id
        sites.append(BindingSite(
            site_id=site_id,
            ligand=ligand,
            pocket_residues=pocket_residues,
            pocket_atoms=pocket_atoms,
        ))
        logger.debug(f"Site {site_id}: {ligand.label} with {len(pocket_residues)} pocket residues")
        site_id += 1
    return sites
