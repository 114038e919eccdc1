"""Serialization helpers for analysis results.

Every interaction record declares its own ``COLUMNS``; output shape is
driven by those declarations only. A family that was not computed is
emitted as ``null`` (JSON) and contributes no rows (CSV), so it stays
distinguishable from a computed family with zero hits.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional
import csv
import io
import json

from analysis.base import (
    FAMILY_RECORDS,
    AnalysisResult,
    AnalysisStats,
    Atom,
    BindingSite,
    Ligand,
    ResidueRef,
    SiteInteractions,
)
from utils.settings import get_settings


def _float_compact(v: Any, precision: int):
    if isinstance(v, float):
        return round(v, precision)
    return v


def interaction_to_dict(record: Any, precision: Optional[int] = None) -> Dict[str, Any]:
    precision = get_settings().default_float_precision if precision is None else precision
    return {col: _float_compact(getattr(record, col), precision) for col in record.COLUMNS}


def atom_to_dict(atom: Atom) -> Dict[str, Any]:
    return {
        "serial": atom.serial,
        "name": atom.name,
        "residue_name": atom.residue_name,
        "chain": atom.chain,
        "residue_seq": atom.residue_seq,
        "x": atom.x,
        "y": atom.y,
        "z": atom.z,
        "element": atom.element,
        "hetero": atom.hetero,
        "alt_loc": atom.alt_loc,
    }


def residue_to_dict(residue: ResidueRef) -> Dict[str, Any]:
    return {"chain": residue.chain, "residue_seq": residue.residue_seq, "residue_name": residue.residue_name}


def ligand_to_dict(ligand: Ligand, include_atoms: bool = True) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "site_id": ligand.site_id,
        "chain": ligand.chain,
        "residue_seq": ligand.residue_seq,
        "residue_name": ligand.residue_name,
        "type": ligand.type.value,
        "atom_count": len(ligand.atoms),
    }
    if include_atoms:
        data["atoms"] = [atom_to_dict(a) for a in ligand.atoms]
    return data


def binding_site_to_dict(site: BindingSite) -> Dict[str, Any]:
    return {
        "site_id": site.site_id,
        "ligand": ligand_to_dict(site.ligand, include_atoms=False),
        "pocket_residues": [residue_to_dict(r) for r in site.pocket_residues],
        "pocket_atom_serials": [a.serial for a in site.pocket_atoms],
    }


def site_interactions_to_dict(report: SiteInteractions, precision: Optional[int] = None) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "site_id": report.site_id,
        "ligand": ligand_to_dict(report.ligand, include_atoms=False),
    }
    for family in FAMILY_RECORDS:
        records = report.family(family)
        data[family] = None if records is None else [interaction_to_dict(r, precision) for r in records]
    return data


def stats_to_dict(stats: AnalysisStats) -> Dict[str, Any]:
    return {
        "total_atoms": stats.total_atoms,
        "protein_atoms": stats.protein_atoms,
        "ligand_atoms": stats.ligand_atoms,
        "water_atoms": stats.water_atoms,
        "total_ligands": stats.total_ligands,
        "total_sites": stats.total_sites,
        "total_hydrophobic": stats.total_hydrophobic,
        "total_hbond": stats.total_hbond,
        "total_water_bridge": stats.total_water_bridge,
        "analysis_time_ms": stats.analysis_time_ms,
        "stage_timings_ms": dict(stats.stage_timings_ms),
    }


def result_to_dict(result: AnalysisResult, precision: Optional[int] = None) -> Dict[str, Any]:
    return {
        "success": result.success,
        "error": result.error,
        "trace": result.trace,
        "filename": result.filename,
        "timestamp": result.timestamp,
        "params": result.params.to_dict(),
        "ligands": [ligand_to_dict(l) for l in result.ligands],
        "binding_sites": [binding_site_to_dict(s) for s in result.binding_sites],
        "interactions": [site_interactions_to_dict(r, precision) for r in result.interactions],
        "stats": stats_to_dict(result.stats) if result.stats is not None else None,
    }


def export_json(result: AnalysisResult, indent: Optional[int] = None) -> str:
    separators = None if indent else (",", ":")
    return json.dumps(result_to_dict(result), indent=indent, separators=separators, ensure_ascii=False)


def export_csv(result: AnalysisResult, family: str) -> str:
    """One CSV table of a family across all sites, prefixed with site/ligand columns."""
    if family not in FAMILY_RECORDS:
        raise KeyError(f"Unknown interaction family {family!r}")
    columns: List[str] = ["site_id", "ligand", *FAMILY_RECORDS[family].COLUMNS]
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=columns, lineterminator="\n")
    writer.writeheader()
    for report in result.interactions:
        records = report.family(family)
        if records is None:
            continue
        for record in records:
            row = {"site_id": report.site_id, "ligand": report.ligand.label}
            row.update(interaction_to_dict(record))
            writer.writerow(row)
    return buf.getvalue()


__all__ = [
    "interaction_to_dict",
    "result_to_dict",
    "site_interactions_to_dict",
    "export_json",
    "export_csv",
]
