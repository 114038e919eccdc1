"""Common classifier interfaces and registration decorator.

Each interaction family is implemented as a plain function
(``find_*_interactions``) plus a thin classifier class that binds the
family's cutoff from ``AnalysisParams``. Classes register themselves with a
single annotation so the pipeline and CLI can look them up by family key.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from geometry.spatial_grid import SpatialGrid

# family key -> (classifier class, method name)
CLASSIFIER_REGISTRY: Dict[str, Tuple[type, str]] = {}


@dataclass
class GridSet:
    """Spatial indexes a classifier may query for one analysis."""
    protein: SpatialGrid
    water: Optional[SpatialGrid] = None


def register_detector(key: str, method: str | None = None) -> Callable[[type], type]:
    """Decorator to register a classifier class.

    Args:
        key: interaction family key (matches the SiteInteractions field)
        method: optional explicit method name; if omitted 'detect' assumed.
    """

    def _decorator(cls: type) -> type:
        CLASSIFIER_REGISTRY[key] = (cls, method or 'detect')
        cls.family_key = key
        return cls

    return _decorator


def renumber(records: List[Any]) -> List[Any]:
    """Assign 1-based display indices in current list order."""
    for position, record in enumerate(records, start=1):
        record.index = position
    return records
