"""Command-line interface for pocketlens.

Example:
    pocketlens complex.pdb --preset conservative --set hbond_max_dist=3.3
    pocketlens a.pdb b.cif --workers 2 --json
    pocketlens complex.pdb --csv hbond
"""
from __future__ import annotations
import argparse
import json
from pathlib import Path
from typing import Dict, List, Optional

import sys
# Ensure src/ is on sys.path when executed directly
_THIS_DIR = Path(__file__).resolve().parent
if str(_THIS_DIR) not in sys.path:
    sys.path.insert(0, str(_THIS_DIR))
from loguru import logger

from analysis.base import FAMILY_RECORDS, ProgressUpdate
from analysis.pipeline import analyze_structure
from performance.parallel_processor import analyze_files
from reporting.serializer import export_csv, export_json, result_to_dict
from utils.config import AnalysisParams, get_preset, load_params
from utils.logging_config import configure_from_settings
from utils.pdb_handler import load_structure_file
from utils.settings import get_settings


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser("pocketlens", description="Ligand binding-site interaction analysis")
    parser.add_argument("structures", nargs="+", help="PDB (.pdb/.ent) or mmCIF (.cif) file(s)")
    parser.add_argument("--preset", default=None, help="Parameter preset (default: env / literature_default)")
    parser.add_argument("--params", type=Path, default=None, help="YAML file with parameter overrides")
    parser.add_argument("--set", dest="overrides", action="append", default=[], metavar="NAME=VALUE",
                        help="Override a single cutoff (repeatable)")
    parser.add_argument("--no-water-bridges", action="store_true", help="Skip the water-bridge stage")
    parser.add_argument("--json", action="store_true", help="Emit compact JSON instead of indented")
    parser.add_argument("--csv", choices=sorted(FAMILY_RECORDS), default=None,
                        help="Emit one interaction family as CSV (single structure only)")
    parser.add_argument("--workers", type=int, default=None, help="Process pool size for multiple structures")
    parser.add_argument("--log-level", default=None, help="Log level (default: POCKETLENS_LOG_LEVEL or INFO)")
    return parser.parse_args(argv)


def _parse_overrides(items: List[str]) -> Dict[str, float]:
    overrides: Dict[str, float] = {}
    for item in items:
        name, sep, value = item.partition("=")
        if not sep:
            raise ValueError(f"Expected NAME=VALUE, got {item!r}")
        overrides[name.strip()] = float(value)
    return overrides


def build_params(args: argparse.Namespace) -> AnalysisParams:
    settings = get_settings()
    params = get_preset(args.preset or settings.default_preset)
    if args.params is not None:
        params = load_params(args.params, base=params)
    if args.overrides:
        params = params.with_overrides(**_parse_overrides(args.overrides))
    return params.validate()


def _log_progress(update: ProgressUpdate) -> None:
    site = f" [{update.current_site}/{update.total_sites}]" if update.total_sites else ""
    logger.info(f"{update.progress:5.1f}% {update.status.value}{site}: {update.message}")


def main(argv: Optional[List[str]] = None) -> int:  # pragma: no cover - thin wrapper
    args = _parse_args(argv)
    configure_from_settings(level=args.log_level, force=True)

    try:
        params = build_params(args)
    except (KeyError, ValueError, OSError) as exc:
        logger.error(f"Invalid parameters: {exc}")
        return 2
    water = False if args.no_water_bridges else None

    if len(args.structures) == 1:
        path = args.structures[0]
        try:
            source = load_structure_file(path)
        except OSError as exc:
            logger.error(f"Could not read {path}: {exc}")
            return 2
        result = analyze_structure(source, params, filename=Path(path).name,
                                   progress_callback=_log_progress, enable_water_bridges=water)
        if args.csv:
            if not result.success:
                logger.error(result.error)
                return 1
            sys.stdout.write(export_csv(result, args.csv))
            return 0
        print(export_json(result) if args.json else export_json(result, indent=2))
        return 0 if result.success else 1

    if args.csv:
        logger.error("--csv supports a single structure only")
        return 2
    results = analyze_files(args.structures, params, max_workers=args.workers, enable_water_bridges=water)
    payload = [result_to_dict(r) for _, r in results]
    print(json.dumps(payload) if args.json else json.dumps(payload, indent=2))
    return 0 if all(r.success for _, r in results) else 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
