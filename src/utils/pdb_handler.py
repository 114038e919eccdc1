"""
Structure parsing for the pocketlens interaction engine.

Turns fixed-column ATOM/HETATM records into typed ``Atom`` values, resolves
alternate locations, drops hydrogens and splits the result into protein
context atoms and ligand-candidate atoms. Bio.PDB structures (e.g. parsed
from mmCIF) are converted through the same dedup/classification path.
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from Bio.PDB.MMCIFParser import MMCIFParser
from Bio.PDB.PDBParser import PDBParser
from loguru import logger

from analysis.base import Atom, LigandType
from analysis.errors import AtomRecordError


WATER_RESIDUES = frozenset({'HOH', 'WAT', 'DOD'})

ION_RESIDUES = frozenset({
    'NA', 'SOD', 'CL', 'CLA', 'MG', 'CA', 'K', 'POT', 'ZN', 'FE', 'MN',
    'CU', 'CO', 'NI', 'CD', 'BA', 'SR', 'BE', 'LI', 'CS', 'AG', 'AU',
})

# Crystallographic solvent and ions: never analysed as ligands, kept as spatial context
EXCLUDED_RESIDUES = WATER_RESIDUES | ION_RESIDUES | frozenset({
    'FE2', 'FE3', 'HG', 'AL', 'GA', 'IN', 'TL', 'PB', 'BI', 'YB', 'EU',
    'SM', 'GD', 'TB', 'DY', 'Y', 'W', 'MO', 'V', 'CR', 'PT', 'RU', 'RH',
    'PD', 'OS', 'IR', 'XE', 'KR', 'F', 'BR', 'I', 'S',
})

HYDROPHOBIC_RESIDUES = frozenset({
    'ALA', 'VAL', 'LEU', 'ILE', 'MET', 'PHE', 'TRP', 'PRO', 'TYR',
})

PREFERRED_ALT_LOCS = ('', 'A')

# Coordinates end at column 54; anything shorter cannot hold an atom
MIN_RECORD_LENGTH = 54

ATOM_RECORDS = ('ATOM', 'HETATM')


@dataclass
class ParsedStructure:
    """Disjoint protein/ligand atom lists plus their concatenation."""
    protein_atoms: List[Atom] = field(default_factory=list)
    ligand_atoms: List[Atom] = field(default_factory=list)
    all_atoms: List[Atom] = field(default_factory=list)
    skipped_lines: int = 0

    @property
    def water_atoms(self) -> List[Atom]:
        return [a for a in self.all_atoms if a.residue_name.upper() in WATER_RESIDUES]


def _normalize_element(symbol: str) -> str:
    return symbol[0].upper() + symbol[1:2].lower()


def infer_element(atom_name: str) -> str:
    """Guess an element symbol from an atom name.

    Scans from the right, skipping digits, and keeps at most two letters.
    Falls back to carbon when the name holds no letters at all.
    """
    element = ''
    trimmed = atom_name.strip()
    for i in range(len(trimmed) - 1, -1, -1):
        char = trimmed[i]
        if char.isdigit():
            continue
        element = char + element
        if len(element) == 2:
            break
    if not element:
        return 'C'
    return _normalize_element(element)


def decode_hybrid36(field: str, width: int) -> int:
    """Decode a PDB integer field that may use hybrid-36 overflow notation.

    Plain decimal text is read as-is. Past 99,999 serials (9,999 residue
    numbers) writers switch to base 36 with a leading letter: ``A0000`` is
    100000, and the upper-case range comes before the lower-case one.
    """
    text = field.strip()
    if not text or text.lstrip('-').isdigit():
        return int(text)
    if len(text) != width or not text.isalnum() or not text[0].isalpha():
        raise ValueError(f"invalid integer field {field!r}")
    offset = 10 ** width - 10 * 36 ** (width - 1)
    if text.islower():
        offset += 26 * 36 ** (width - 1)
    elif not text.isupper():
        raise ValueError(f"invalid integer field {field!r}")
    return int(text, 36) + offset


def parse_atom_line(line: str, line_number: int = 0) -> Optional[Atom]:
    """Parse one ATOM/HETATM record.

    Returns None for lines that are not atom records (or are hydrogens);
    raises AtomRecordError when a numeric field is malformed or a
    coordinate is not finite. Serial and residue numbers accept hybrid-36.
    """
    line = line.rstrip('\r\n')
    if len(line) < MIN_RECORD_LENGTH:
        return None
    record = line[0:6].strip()
    if record not in ATOM_RECORDS:
        return None

    try:
        serial = decode_hybrid36(line[6:11], 5)
        resi = decode_hybrid36(line[22:26], 4)
        x = float(line[30:38])
        y = float(line[38:46])
        z = float(line[46:54])
    except ValueError as exc:
        raise AtomRecordError(line_number, line, str(exc)) from exc
    if not all(math.isfinite(c) for c in (x, y, z)):
        raise AtomRecordError(line_number, line, f"non-finite coordinate ({x}, {y}, {z})")

    atom_name = line[12:16].strip()
    element = line[76:78].strip() if len(line) > 76 else ''
    element = _normalize_element(element) if element else infer_element(atom_name)

    # Hydrogen and deuterium positions are never materialised
    if element in ('H', 'D'):
        return None

    return Atom(
        serial=serial,
        name=atom_name,
        residue_name=line[17:20].strip(),
        chain=line[21:22].strip(),
        residue_seq=resi,
        x=x,
        y=y,
        z=z,
        element=element,
        hetero=record == 'HETATM',
        alt_loc=line[16:17].strip(),
    )


def _dedupe_atoms(atoms: Iterable[Atom]) -> List[Atom]:
    """Keep one atom per identity key, preferring blank/'A' alternate locations."""
    positions: Dict[Tuple[str, int, str, str], Atom] = {}
    for atom in atoms:
        key = atom.identity_key
        existing = positions.get(key)
        if existing is None:
            positions[key] = atom
        elif existing.alt_loc in PREFERRED_ALT_LOCS:
            continue
        elif atom.alt_loc in PREFERRED_ALT_LOCS:
            positions[key] = atom
    return list(positions.values())


def _classify(atoms: List[Atom], skipped: int = 0) -> ParsedStructure:
    parsed = ParsedStructure(skipped_lines=skipped)
    for atom in atoms:
        parsed.all_atoms.append(atom)
        if atom.hetero and atom.residue_name.upper() not in EXCLUDED_RESIDUES:
            parsed.ligand_atoms.append(atom)
        else:
            # Solvent and ions stay in the protein set as spatial context
            parsed.protein_atoms.append(atom)
    return parsed


def parse_pdb_text(content: str) -> ParsedStructure:
    """Parse complete PDB-format text into protein and ligand atoms."""
    atoms: List[Atom] = []
    skipped = 0
    for line_number, line in enumerate(content.splitlines(), start=1):
        try:
            atom = parse_atom_line(line, line_number)
        except AtomRecordError as exc:
            skipped += 1
            logger.warning(f"Skipping malformed atom record ({exc}): {line.strip()!r}")
            continue
        if atom is not None:
            atoms.append(atom)
    parsed = _classify(_dedupe_atoms(atoms), skipped)
    logger.debug(
        f"Parsed {len(parsed.all_atoms)} atoms "
        f"(protein={len(parsed.protein_atoms)} ligand={len(parsed.ligand_atoms)} skipped={skipped})"
    )
    return parsed


def atoms_from_structure(structure) -> ParsedStructure:
    """Convert the first model of a Bio.PDB structure into a ParsedStructure."""
    model = next(iter(structure))
    atoms: List[Atom] = []
    for index, bio_atom in enumerate(model.get_atoms(), start=1):
        residue = bio_atom.get_parent()
        chain = residue.get_parent()
        hetfield, resseq, _icode = residue.get_id()
        name = bio_atom.get_name().strip()
        element = (bio_atom.element or '').strip()
        element = _normalize_element(element) if element and element != 'X' else infer_element(name)
        if element in ('H', 'D'):
            continue
        x, y, z = (float(c) for c in bio_atom.get_coord())
        serial = bio_atom.get_serial_number()
        atoms.append(Atom(
            serial=int(serial) if serial is not None else index,
            name=name,
            residue_name=residue.get_resname().strip(),
            chain=str(chain.get_id()).strip(),
            residue_seq=int(resseq),
            x=x,
            y=y,
            z=z,
            element=element,
            hetero=hetfield.strip() != '',
            alt_loc=(bio_atom.get_altloc() or '').strip(),
        ))
    return _classify(_dedupe_atoms(atoms))


def load_structure_file(path: Union[str, Path]) -> Union[str, ParsedStructure]:
    """Load a structure file for analysis.

    PDB-format files are returned as raw text so the fixed-column parser
    (and its per-line recovery) handles them; mmCIF files go through
    Bio.PDB and come back already parsed.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix in ('.cif', '.mmcif'):
        structure = MMCIFParser(QUIET=True).get_structure(path.stem, str(path))
        logger.info(f"Loaded mmCIF structure {path.name}")
        return atoms_from_structure(structure)
    return path.read_text(encoding='utf-8', errors='replace')


def load_biopython_pdb(path: Union[str, Path]) -> ParsedStructure:
    """Parse a PDB file with Bio.PDB instead of the fixed-column reader.

    Bio.PDB resolves alternate locations by occupancy, so results can differ
    from parse_pdb_text on disordered atoms.
    """
    path = Path(path)
    structure = PDBParser(QUIET=True).get_structure(path.stem, str(path))
    return atoms_from_structure(structure)


def group_ligands(ligand_atoms: Iterable[Atom]) -> Dict[Tuple[str, int, str], List[Atom]]:
    """Group ligand atoms by (chain, residue_seq, residue_name) in encounter order."""
    groups: Dict[Tuple[str, int, str], List[Atom]] = {}
    for atom in ligand_atoms:
        groups.setdefault((atom.chain, atom.residue_seq, atom.residue_name), []).append(atom)
    return groups


def ligand_type(residue_name: str) -> LigandType:
    name = residue_name.upper()
    if name in WATER_RESIDUES:
        return LigandType.WATER
    if name in ION_RESIDUES:
        return LigandType.ION
    return LigandType.SMALLMOLECULE
