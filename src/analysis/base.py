"""Common data structures shared by the parser, index, detectors and pipeline.

Every value here is created fresh for one analysis and discarded afterwards.
Interaction records carry an explicit ``COLUMNS`` tuple so reporting code can
render them without inspecting whatever attributes happen to exist.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple

import numpy as np

from utils.config import AnalysisParams


@dataclass(slots=True)
class Atom:
    serial: int
    name: str
    residue_name: str
    chain: str
    residue_seq: int
    x: float
    y: float
    z: float
    element: str
    hetero: bool = False
    alt_loc: str = ""

    @property
    def coord(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @property
    def residue_ref(self) -> "ResidueRef":
        return ResidueRef(self.chain, self.residue_seq, self.residue_name)

    @property
    def identity_key(self) -> Tuple[str, int, str, str]:
        """(chain, residue_seq, residue_name, atom name); one atom per key survives parsing."""
        return (self.chain, self.residue_seq, self.residue_name, self.name)


@dataclass(frozen=True, slots=True)
class ResidueRef:
    chain: str
    residue_seq: int
    residue_name: str

    @property
    def label(self) -> str:
        return f"{self.residue_seq} {self.chain}"

    def sort_key(self) -> Tuple[str, int, str]:
        """Chain, then residue number; the name only breaks ties."""
        return (self.chain, self.residue_seq, self.residue_name)


class LigandType(str, Enum):
    SMALLMOLECULE = "SMALLMOLECULE"
    ION = "ION"
    WATER = "WATER"


@dataclass
class Ligand:
    site_id: int
    chain: str
    residue_seq: int
    residue_name: str
    atoms: List[Atom]
    type: LigandType = LigandType.SMALLMOLECULE

    @property
    def residue_ref(self) -> ResidueRef:
        return ResidueRef(self.chain, self.residue_seq, self.residue_name)

    @property
    def label(self) -> str:
        return f"{self.residue_name} {self.residue_seq} {self.chain}"


@dataclass
class BindingSite:
    site_id: int
    ligand: Ligand
    pocket_residues: List[ResidueRef]
    pocket_atoms: List[Atom]


# ---------------------------------------------------------------------------
# Interaction records
# ---------------------------------------------------------------------------

@dataclass
class HydrophobicInteraction:
    index: int
    residue: str
    aa: str
    distance: float
    ligand_atom_serial: int
    protein_atom_serial: int
    ligand_atom_name: str
    protein_atom_name: str

    COLUMNS: ClassVar[Tuple[str, ...]] = (
        "index", "residue", "aa", "distance",
        "ligand_atom_serial", "protein_atom_serial", "ligand_atom_name", "protein_atom_name",
    )


@dataclass
class HydrogenBondInteraction:
    index: int
    residue: str
    aa: str
    distance_da: float
    protein_donor: bool
    side_chain: bool
    donor_atom_serial: int
    acceptor_atom_serial: int
    donor_atom_name: str
    acceptor_atom_name: str
    # Not computed: no hydrogen placement, no angle check
    distance_ha: Optional[float] = None
    donor_angle: Optional[float] = None

    COLUMNS: ClassVar[Tuple[str, ...]] = (
        "index", "residue", "aa", "distance_ha", "distance_da", "donor_angle",
        "protein_donor", "side_chain", "donor_atom_serial", "acceptor_atom_serial",
        "donor_atom_name", "acceptor_atom_name",
    )


@dataclass
class WaterBridgeInteraction:
    index: int
    residue: str
    aa: str
    distance_aw: float
    distance_dw: float
    protein_donor: bool
    donor_atom_serial: int
    acceptor_atom_serial: int
    water_atom_serial: int
    donor_atom_name: str
    acceptor_atom_name: str
    water_atom_name: str
    donor_angle: Optional[float] = None
    water_angle: Optional[float] = None

    COLUMNS: ClassVar[Tuple[str, ...]] = (
        "index", "residue", "aa", "distance_aw", "distance_dw", "donor_angle", "water_angle",
        "protein_donor", "donor_atom_serial", "acceptor_atom_serial", "water_atom_serial",
        "donor_atom_name", "acceptor_atom_name", "water_atom_name",
    )

    @property
    def total_distance(self) -> float:
        return self.distance_aw + self.distance_dw


@dataclass
class SaltBridgeInteraction:
    index: int
    residue: str
    aa: str
    distance: float
    ligand_atom_serial: int
    protein_atom_serial: int

    COLUMNS: ClassVar[Tuple[str, ...]] = (
        "index", "residue", "aa", "distance", "ligand_atom_serial", "protein_atom_serial",
    )


@dataclass
class PiStackingInteraction:
    index: int
    residue: str
    aa: str
    distance: float
    stacking_type: str  # 'parallel' | 'perpendicular'
    ligand_ring_serial: int
    protein_ring_serial: int

    COLUMNS: ClassVar[Tuple[str, ...]] = (
        "index", "residue", "aa", "distance", "stacking_type",
        "ligand_ring_serial", "protein_ring_serial",
    )


@dataclass
class PiCationInteraction:
    index: int
    residue: str
    aa: str
    distance: float
    ligand_atom_serial: int
    protein_atom_serial: int

    COLUMNS: ClassVar[Tuple[str, ...]] = (
        "index", "residue", "aa", "distance", "ligand_atom_serial", "protein_atom_serial",
    )


@dataclass
class HalogenBondInteraction:
    index: int
    residue: str
    aa: str
    distance: float
    ligand_atom_serial: int
    protein_atom_serial: int
    donor_angle: Optional[float] = None

    COLUMNS: ClassVar[Tuple[str, ...]] = (
        "index", "residue", "aa", "distance", "donor_angle",
        "ligand_atom_serial", "protein_atom_serial",
    )


# family key -> record class; order is the reporting order
FAMILY_RECORDS: Dict[str, type] = {
    "hydrophobic": HydrophobicInteraction,
    "hbond": HydrogenBondInteraction,
    "water_bridge": WaterBridgeInteraction,
    "salt_bridge": SaltBridgeInteraction,
    "pi_stacking": PiStackingInteraction,
    "pi_cation": PiCationInteraction,
    "halogen_bond": HalogenBondInteraction,
}

RESERVED_FAMILIES = ("salt_bridge", "pi_stacking", "pi_cation", "halogen_bond")


@dataclass
class SiteInteractions:
    """Per-site report. A family that was not computed is ``None``, never ``[]``."""
    site_id: int
    ligand: Ligand
    hydrophobic: Optional[List[HydrophobicInteraction]] = None
    hbond: Optional[List[HydrogenBondInteraction]] = None
    water_bridge: Optional[List[WaterBridgeInteraction]] = None
    salt_bridge: Optional[List[SaltBridgeInteraction]] = None
    pi_stacking: Optional[List[PiStackingInteraction]] = None
    pi_cation: Optional[List[PiCationInteraction]] = None
    halogen_bond: Optional[List[HalogenBondInteraction]] = None

    def family(self, key: str) -> Optional[List[Any]]:
        if key not in FAMILY_RECORDS:
            raise KeyError(f"Unknown interaction family {key!r}")
        return getattr(self, key)


# ---------------------------------------------------------------------------
# Progress / result
# ---------------------------------------------------------------------------

class AnalysisStatus(str, Enum):
    IDLE = "idle"
    PARSING = "parsing"
    BUILDING_GRID = "building-grid"
    FINDING_SITES = "finding-sites"
    ANALYZING_HYDROPHOBIC = "analyzing-hydrophobic"
    ANALYZING_HBOND = "analyzing-hbond"
    ANALYZING_WATERBRIDGE = "analyzing-waterbridge"
    COMPLETE = "complete"
    ERROR = "error"


# Forward order of the non-error states
STATUS_ORDER: Tuple[AnalysisStatus, ...] = (
    AnalysisStatus.IDLE,
    AnalysisStatus.PARSING,
    AnalysisStatus.BUILDING_GRID,
    AnalysisStatus.FINDING_SITES,
    AnalysisStatus.ANALYZING_HYDROPHOBIC,
    AnalysisStatus.ANALYZING_HBOND,
    AnalysisStatus.ANALYZING_WATERBRIDGE,
    AnalysisStatus.COMPLETE,
)


@dataclass(frozen=True)
class ProgressUpdate:
    status: AnalysisStatus
    progress: float
    message: str
    current_site: Optional[int] = None
    total_sites: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "progress": round(self.progress, 1),
            "message": self.message,
            "current_site": self.current_site,
            "total_sites": self.total_sites,
        }


@dataclass
class AnalysisStats:
    total_atoms: int = 0
    protein_atoms: int = 0
    ligand_atoms: int = 0
    water_atoms: int = 0
    total_ligands: int = 0
    total_sites: int = 0
    total_hydrophobic: int = 0
    total_hbond: int = 0
    total_water_bridge: Optional[int] = None
    analysis_time_ms: float = 0.0
    stage_timings_ms: Dict[str, float] = field(default_factory=dict)


@dataclass
class AnalysisResult:
    success: bool
    params: AnalysisParams
    timestamp: float
    error: Optional[str] = None
    trace: Optional[str] = None
    filename: Optional[str] = None
    ligands: List[Ligand] = field(default_factory=list)
    binding_sites: List[BindingSite] = field(default_factory=list)
    interactions: List[SiteInteractions] = field(default_factory=list)
    stats: Optional[AnalysisStats] = None
