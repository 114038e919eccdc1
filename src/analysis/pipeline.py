"""Analysis orchestrator.

Sequences the engine stages for one structure:

    parsing → building-grid → finding-sites → analyzing-hydrophobic
            → analyzing-hbond → analyzing-waterbridge → complete

with ``error`` reachable from any stage. All state for a run lives in an
``AnalysisContext`` created per call, so independent analyses can run side
by side (threads or processes) without coordination. The whole run is
synchronous; callers wanting a responsive host should execute it off their
main thread and consume the progress callback.
"""
from __future__ import annotations

import time
import traceback
from typing import Callable, Dict, List, Optional, Tuple, Union

from loguru import logger

from geometry.spatial_grid import SpatialGrid
from performance.timing import StageTimings, elapsed_ms, time_block
from utils.config import AnalysisParams
from utils.pdb_handler import ParsedStructure, group_ligands, parse_pdb_text
from utils.settings import get_settings
from .base import (
    STATUS_ORDER,
    AnalysisResult,
    AnalysisStats,
    AnalysisStatus,
    BindingSite,
    ProgressUpdate,
    SiteInteractions,
)
from .base_detector import GridSet
from .binding_sites import detect_binding_sites
from .errors import AnalysisError, InvalidTransitionError, NoBindingSitesError, NoLigandsError
from .registry import get_classifier
from .water_bridges import water_oxygens

ProgressCallback = Callable[[ProgressUpdate], None]

# Progress band (start %, end %) reserved for each stage
STAGE_BANDS: Dict[AnalysisStatus, Tuple[float, float]] = {
    AnalysisStatus.PARSING: (5.0, 10.0),
    AnalysisStatus.BUILDING_GRID: (20.0, 20.0),
    AnalysisStatus.FINDING_SITES: (30.0, 30.0),
    AnalysisStatus.ANALYZING_HYDROPHOBIC: (40.0, 60.0),
    AnalysisStatus.ANALYZING_HBOND: (60.0, 80.0),
    AnalysisStatus.ANALYZING_WATERBRIDGE: (80.0, 95.0),
    AnalysisStatus.COMPLETE: (100.0, 100.0),
}

# (family key, stage status, label used in progress messages)
CLASSIFIER_STAGES: Tuple[Tuple[str, AnalysisStatus, str], ...] = (
    ("hydrophobic", AnalysisStatus.ANALYZING_HYDROPHOBIC, "hydrophobic contacts"),
    ("hbond", AnalysisStatus.ANALYZING_HBOND, "hydrogen bonds"),
    ("water_bridge", AnalysisStatus.ANALYZING_WATERBRIDGE, "water bridges"),
)

TERMINAL_STATES = (AnalysisStatus.COMPLETE, AnalysisStatus.ERROR)


class AnalysisContext:
    """Per-invocation state: parameters, flags, progress sink and timings."""

    def __init__(self, params: AnalysisParams, progress_callback: Optional[ProgressCallback] = None,
                 enable_water_bridges: bool = True, grid_cell_size: float = 5.0):
        self.params = params
        self.progress_callback = progress_callback
        self.enable_water_bridges = enable_water_bridges
        self.grid_cell_size = grid_cell_size
        self.status = AnalysisStatus.IDLE
        self.timings = StageTimings()
        self.started = time.perf_counter()

    def _check_transition(self, new: AnalysisStatus) -> None:
        if self.status in TERMINAL_STATES:
            raise InvalidTransitionError(f"Analysis already finished ({self.status.value}); cannot move to {new.value}")
        if new == AnalysisStatus.ERROR:
            return
        if STATUS_ORDER.index(new) < STATUS_ORDER.index(self.status):
            raise InvalidTransitionError(f"Cannot move from {self.status.value} back to {new.value}")

    def emit(self, status: AnalysisStatus, progress: float, message: str,
             current_site: Optional[int] = None, total_sites: Optional[int] = None) -> ProgressUpdate:
        self._check_transition(status)
        self.status = status
        update = ProgressUpdate(status, float(progress), message, current_site, total_sites)
        logger.debug(f"[{status.value}] {progress:.1f}% {message}")
        if self.progress_callback is not None:
            self.progress_callback(update)
        return update

    def emit_site(self, status: AnalysisStatus, position: int, total: int, message: str) -> ProgressUpdate:
        """Progress for the site at 0-based position, interpolated inside the stage band."""
        start, end = STAGE_BANDS[status]
        fraction = position / total if total else 0.0
        return self.emit(status, start + (end - start) * fraction, message, position + 1, total)

    def fail(self, message: str) -> None:
        """Move to the error state unless the run already terminated."""
        if self.status in TERMINAL_STATES:
            return
        progress = STAGE_BANDS.get(self.status, (0.0, 0.0))[0]
        self.emit(AnalysisStatus.ERROR, progress, message)

    @property
    def elapsed_ms(self) -> float:
        return elapsed_ms(self.started)


def _parse_source(ctx: AnalysisContext, source: Union[str, ParsedStructure]) -> ParsedStructure:
    ctx.emit(AnalysisStatus.PARSING, STAGE_BANDS[AnalysisStatus.PARSING][0], "Parsing structure...")
    ctx.params.validate()
    with time_block(ctx.timings, "parsing"):
        parsed = source if isinstance(source, ParsedStructure) else parse_pdb_text(source)
    ctx.emit(AnalysisStatus.PARSING, STAGE_BANDS[AnalysisStatus.PARSING][1],
             f"Parsed {len(parsed.all_atoms)} atoms ({len(parsed.ligand_atoms)} ligand atoms)")
    return parsed


def _build_grids(ctx: AnalysisContext, parsed: ParsedStructure) -> GridSet:
    ctx.emit(AnalysisStatus.BUILDING_GRID, STAGE_BANDS[AnalysisStatus.BUILDING_GRID][0], "Building spatial index...")
    with time_block(ctx.timings, "building-grid", items=len(parsed.protein_atoms)):
        protein_grid = SpatialGrid(parsed.protein_atoms, ctx.grid_cell_size)
        water_grid = None
        if ctx.enable_water_bridges:
            water_grid = SpatialGrid(water_oxygens(parsed.all_atoms), ctx.grid_cell_size)
    logger.debug(f"Protein grid: {len(protein_grid)} atoms in {protein_grid.cell_count} cells")
    return GridSet(protein=protein_grid, water=water_grid)


def _find_sites(ctx: AnalysisContext, parsed: ParsedStructure, grids: GridSet) -> List[BindingSite]:
    ctx.emit(AnalysisStatus.FINDING_SITES, STAGE_BANDS[AnalysisStatus.FINDING_SITES][0], "Detecting binding sites...")
    distance_cutoff = ctx.params.binding_site_distance
    with time_block(ctx.timings, "finding-sites"):
        sites = detect_binding_sites(parsed.ligand_atoms, grids.protein, distance_cutoff)
    if not sites:
        n_ligands = len(group_ligands(parsed.ligand_atoms))
        raise NoBindingSitesError(
            f"No binding sites found: none of {n_ligands} ligand(s) has protein atoms within {distance_cutoff} Å"
        )
    return sites


def _classify_sites(ctx: AnalysisContext, sites: List[BindingSite], grids: GridSet) -> List[SiteInteractions]:
    reports = [SiteInteractions(site_id=site.site_id, ligand=site.ligand) for site in sites]
    total = len(sites)
    for key, status, label in CLASSIFIER_STAGES:
        if key == "water_bridge" and not ctx.enable_water_bridges:
            ctx.emit(status, STAGE_BANDS[status][1], "Water-bridge detection disabled; skipped")
            continue
        classifier, method_name = get_classifier(key, ctx.params)
        detect = getattr(classifier, method_name)
        with time_block(ctx.timings, status.value, items=total):
            for position, site in enumerate(sites):
                ctx.emit_site(status, position, total, f"Analyzing {label} for site {position + 1}/{total}...")
                setattr(reports[position], key, detect(site, grids))
    return reports


def _summarize(ctx: AnalysisContext, parsed: ParsedStructure, sites: List[BindingSite],
               reports: List[SiteInteractions]) -> AnalysisStats:
    water_total = None
    if ctx.enable_water_bridges:
        water_total = sum(len(r.water_bridge or []) for r in reports)
    return AnalysisStats(
        total_atoms=len(parsed.all_atoms),
        protein_atoms=len(parsed.protein_atoms),
        ligand_atoms=len(parsed.ligand_atoms),
        water_atoms=len(parsed.water_atoms),
        total_ligands=len(group_ligands(parsed.ligand_atoms)),
        total_sites=len(sites),
        total_hydrophobic=sum(len(r.hydrophobic or []) for r in reports),
        total_hbond=sum(len(r.hbond or []) for r in reports),
        total_water_bridge=water_total,
        analysis_time_ms=ctx.elapsed_ms,
        stage_timings_ms=ctx.timings.milliseconds(),
    )


def _run(ctx: AnalysisContext, source: Union[str, ParsedStructure], filename: Optional[str]) -> AnalysisResult:
    parsed = _parse_source(ctx, source)
    if not parsed.ligand_atoms:
        raise NoLigandsError("No ligands found in structure")
    grids = _build_grids(ctx, parsed)
    sites = _find_sites(ctx, parsed, grids)
    reports = _classify_sites(ctx, sites, grids)
    stats = _summarize(ctx, parsed, sites, reports)
    logger.debug(f"Stage timings: {ctx.timings.snapshot()}")
    ctx.emit(AnalysisStatus.COMPLETE, STAGE_BANDS[AnalysisStatus.COMPLETE][0], "Analysis complete")
    logger.info(
        f"Analysis complete{f' for {filename}' if filename else ''}: {stats.total_sites} site(s), "
        f"{stats.total_hydrophobic} hydrophobic, {stats.total_hbond} H-bond, "
        f"{stats.total_water_bridge if stats.total_water_bridge is not None else 'n/a'} water bridge "
        f"in {stats.analysis_time_ms:.1f} ms"
    )
    return AnalysisResult(
        success=True,
        params=ctx.params,
        timestamp=time.time(),
        filename=filename,
        ligands=[site.ligand for site in sites],
        binding_sites=sites,
        interactions=reports,
        stats=stats,
    )


def analyze_structure(source: Union[str, ParsedStructure], params: Optional[AnalysisParams] = None, *,
                      filename: Optional[str] = None,
                      progress_callback: Optional[ProgressCallback] = None,
                      enable_water_bridges: Optional[bool] = None,
                      grid_cell_size: Optional[float] = None) -> AnalysisResult:
    """Run the full pipeline on structure text (or an already parsed structure).

    Never raises for analysis failures: any exception is logged, reported
    through one ``error`` progress update and returned as an unsuccessful
    result without partial data.
    """
    settings = get_settings()
    params = params if params is not None else AnalysisParams()
    ctx = AnalysisContext(
        params,
        progress_callback=progress_callback,
        enable_water_bridges=settings.enable_water_bridges if enable_water_bridges is None else enable_water_bridges,
        grid_cell_size=grid_cell_size if grid_cell_size is not None else settings.grid_cell_size,
    )
    try:
        return _run(ctx, source, filename)
    except Exception as exc:
        message = str(exc) or exc.__class__.__name__
        trace = None
        if isinstance(exc, AnalysisError):
            logger.error(f"Analysis failed{f' for {filename}' if filename else ''}: {message}")
        else:
            trace = traceback.format_exc()
            logger.exception(f"Unexpected error during {ctx.status.value}: {message}")
        try:
            ctx.fail(message)
        except Exception as callback_exc:
            logger.error(f"Progress callback failed while reporting error: {callback_exc}")
        return AnalysisResult(
            success=False,
            params=params,
            timestamp=time.time(),
            error=message,
            trace=trace,
            filename=filename,
        )
