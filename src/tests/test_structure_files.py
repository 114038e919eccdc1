"""Bio.PDB-backed inputs (PDB via PDBParser, mmCIF via MMCIFParser)."""
from Bio.PDB import MMCIFIO, PDBParser

from analysis.pipeline import analyze_structure
from utils.pdb_handler import load_biopython_pdb, load_structure_file


def test_pdb_text_passthrough(tmp_path, complex_pdb_text):
    path = tmp_path / "c.pdb"
    path.write_text(complex_pdb_text)
    assert load_structure_file(path) == complex_pdb_text


def test_biopython_pdb_matches_fixed_column_reader(tmp_path, complex_with_water_text):
    path = tmp_path / "c.pdb"
    path.write_text(complex_with_water_text)
    parsed = load_biopython_pdb(path)
    assert len(parsed.ligand_atoms) == 2
    assert len(parsed.protein_atoms) == 20
    assert len(parsed.water_atoms) == 1
    result = analyze_structure(parsed)
    assert result.success
    assert result.stats.total_hbond == 2
    assert result.stats.total_water_bridge == 2


def test_mmcif_input(tmp_path, complex_pdb_text):
    pdb_path = tmp_path / "c.pdb"
    pdb_path.write_text(complex_pdb_text)
    structure = PDBParser(QUIET=True).get_structure("c", str(pdb_path))
    cif_path = tmp_path / "c.cif"
    io = MMCIFIO()
    io.set_structure(structure)
    io.save(str(cif_path))

    parsed = load_structure_file(cif_path)
    assert [a.residue_name for a in parsed.ligand_atoms] == ["LIG", "LIG"]
    result = analyze_structure(parsed, filename=cif_path.name)
    assert result.success
    assert [b.aa for b in result.interactions[0].hbond] == ["SER"]
