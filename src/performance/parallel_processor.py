"""
Batch execution of independent analyses.

Each structure is analysed by its own pipeline invocation (own context,
own spatial index), so runs can be spread over a process pool with no
coordination. The engine itself stays single-threaded.
"""

import os
import time
from concurrent.futures import ProcessPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from loguru import logger

from analysis.base import AnalysisResult
from analysis.pipeline import analyze_structure
from utils.config import AnalysisParams
from utils.pdb_handler import load_structure_file

PathLike = Union[str, Path]


def _analyze_path(path: str, params_data: Dict[str, float],
                  enable_water_bridges: Optional[bool]) -> AnalysisResult:
    """Isolated task runner (top-level so it pickles for the process pool)."""
    params = AnalysisParams(**params_data)
    try:
        source = load_structure_file(path)
    except (OSError, ValueError) as exc:
        logger.error(f"Could not read {path}: {exc}")
        return AnalysisResult(success=False, params=params, timestamp=time.time(),
                              error=f"Could not read {path}: {exc}", filename=os.path.basename(path))
    return analyze_structure(source, params, filename=os.path.basename(path),
                             enable_water_bridges=enable_water_bridges)


def default_worker_count() -> int:
    return max(1, min(4, (os.cpu_count() or 1) - 1))


def analyze_files(paths: Sequence[PathLike], params: Optional[AnalysisParams] = None,
                  max_workers: Optional[int] = None,
                  enable_water_bridges: Optional[bool] = None) -> List[Tuple[str, AnalysisResult]]:
    """Analyse several structure files, returning (path, result) in input order.

    ``max_workers=1`` (or a single path) runs inline in this process.
    """
    params = params or AnalysisParams()
    params_data = params.to_dict()
    str_paths = [str(p) for p in paths]
    workers = max_workers or default_worker_count()
    start = time.perf_counter()

    if workers <= 1 or len(str_paths) <= 1:
        results = [_analyze_path(p, params_data, enable_water_bridges) for p in str_paths]
    else:
        with ProcessPoolExecutor(max_workers=min(workers, len(str_paths))) as pool:
            futures = [pool.submit(_analyze_path, p, params_data, enable_water_bridges) for p in str_paths]
            results = [f.result() for f in futures]

    ok = sum(1 for r in results if r.success)
    logger.info(f"Batch finished: {ok}/{len(results)} succeeded in {(time.perf_counter() - start) * 1000.0:.1f} ms "
                f"(workers={workers})")
    return list(zip(str_paths, results))
