"""Test configuration ensuring src package discoverability, settings reset helpers
and synthetic structure fixtures."""
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]  # points to src/
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def reset_settings_cache():  # convenience for tests toggling env flags
    from utils.settings import get_settings
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings_cache()
    yield
    reset_settings_cache()


def format_atom_line(record, serial, name, resn, chain, resi, x, y, z, element, alt_loc=" "):
    """Fixed-column ATOM/HETATM record (element in columns 77-78)."""
    name_field = f" {name:<3}" if len(name) < 4 else name
    return (
        f"{record:<6}{serial:>5} {name_field:<4}{alt_loc:1}{resn:>3} {chain:1}{resi:>4}    "
        f"{x:>8.3f}{y:>8.3f}{z:>8.3f}{1.0:>6.2f}{0.0:>6.2f}          {element:>2}"
    )


# One chain: ALA 1 on -x, SER 2 on +x, ASP 3 on +y. Ligand C1 sits 3.0 Å from
# ALA CB, ligand O1 sits 3.2 Å from SER OG; nothing else is in contact range.
PROTEIN_RECORDS = [
    ("ATOM", 1, "N", "ALA", "A", 1, -5.9, 1.2, 0.0, "N"),
    ("ATOM", 2, "CA", "ALA", "A", 1, -5.2, 0.0, 0.0, "C"),
    ("ATOM", 3, "C", "ALA", "A", 1, -5.9, -1.3, 0.0, "C"),
    ("ATOM", 4, "O", "ALA", "A", 1, -5.5, -2.4, 0.0, "O"),
    ("ATOM", 5, "CB", "ALA", "A", 1, -3.7, 0.0, 0.0, "C"),
    ("ATOM", 6, "N", "SER", "A", 2, 5.5, 2.6, 0.0, "N"),
    ("ATOM", 7, "CA", "SER", "A", 2, 6.0, 1.3, 0.0, "C"),
    ("ATOM", 8, "C", "SER", "A", 2, 7.5, 1.3, 0.0, "C"),
    ("ATOM", 9, "O", "SER", "A", 2, 8.2, 0.3, 0.0, "O"),
    ("ATOM", 10, "CB", "SER", "A", 2, 5.3, 0.0, 0.0, "C"),
    ("ATOM", 11, "OG", "SER", "A", 2, 3.9, 0.0, 0.0, "O"),
    ("ATOM", 12, "N", "ASP", "A", 3, -1.0, 7.0, 0.0, "N"),
    ("ATOM", 13, "CA", "ASP", "A", 3, 0.0, 7.5, 0.0, "C"),
    ("ATOM", 14, "C", "ASP", "A", 3, 1.3, 7.5, 0.0, "C"),
    ("ATOM", 15, "O", "ASP", "A", 3, 1.8, 8.6, 0.0, "O"),
    ("ATOM", 16, "CB", "ASP", "A", 3, 0.0, 6.5, 1.0, "C"),
    ("ATOM", 17, "CG", "ASP", "A", 3, 0.0, 6.0, 2.2, "C"),
    ("ATOM", 18, "OD1", "ASP", "A", 3, 1.0, 5.6, 2.8, "O"),
    ("ATOM", 19, "OD2", "ASP", "A", 3, -1.0, 5.6, 2.8, "O"),
]

LIGAND_RECORDS = [
    ("HETATM", 100, "C1", "LIG", "A", 401, -0.7, 0.0, 0.0, "C"),
    ("HETATM", 101, "O1", "LIG", "A", 401, 0.7, 0.0, 0.0, "O"),
]

# Water oxygen midway between ligand O1 and ASP OD1
WATER_RECORDS = [
    ("HETATM", 200, "O", "HOH", "A", 501, 0.85, 2.8, 1.4, "O"),
]


def build_pdb(records, shift=(0.0, 0.0, 0.0), shift_serials=()):
    lines = []
    for rec in records:
        record, serial, name, resn, chain, resi, x, y, z, element = rec
        if serial in shift_serials:
            x, y, z = x + shift[0], y + shift[1], z + shift[2]
        lines.append(format_atom_line(record, serial, name, resn, chain, resi, x, y, z, element))
    lines.append("END")
    return "\n".join(lines) + "\n"


@pytest.fixture
def atom_line():
    return format_atom_line


@pytest.fixture
def complex_pdb_text():
    return build_pdb(PROTEIN_RECORDS + LIGAND_RECORDS)


@pytest.fixture
def complex_with_water_text():
    return build_pdb(PROTEIN_RECORDS + LIGAND_RECORDS + WATER_RECORDS)


@pytest.fixture
def distant_ligand_text():
    serials = [rec[1] for rec in LIGAND_RECORDS]
    return build_pdb(PROTEIN_RECORDS + LIGAND_RECORDS, shift=(0.0, 0.0, 20.0), shift_serials=serials)


@pytest.fixture
def protein_only_text():
    return build_pdb(PROTEIN_RECORDS + WATER_RECORDS)


@pytest.fixture
def parsed_complex(complex_pdb_text):
    from utils.pdb_handler import parse_pdb_text
    return parse_pdb_text(complex_pdb_text)


@pytest.fixture
def parsed_complex_with_water(complex_with_water_text):
    from utils.pdb_handler import parse_pdb_text
    return parse_pdb_text(complex_with_water_text)


@pytest.fixture
def first_site(parsed_complex):
    from analysis.binding_sites import detect_binding_sites
    from geometry.spatial_grid import SpatialGrid
    grid = SpatialGrid(parsed_complex.protein_atoms)
    sites = detect_binding_sites(parsed_complex.ligand_atoms, grid, 7.5)
    return sites[0], grid
