"""Classifier registry mapping interaction family keys to classifier classes & method names.

Importing this module imports every classifier so their
``@register_detector`` annotations have run.
"""
from __future__ import annotations
from typing import Any, List, Optional, Tuple

from utils.config import AnalysisParams
from .base_detector import CLASSIFIER_REGISTRY
from .hydrophobic_contacts import HydrophobicContactDetector  # noqa: F401
from .hydrogen_bonds import HydrogenBondDetector  # noqa: F401
from .water_bridges import WaterBridgeDetector  # noqa: F401


def list_family_keys() -> List[str]:
    return list(CLASSIFIER_REGISTRY.keys())


def get_classifier(key: str, params: Optional[AnalysisParams] = None) -> Tuple[Any, Optional[str]]:
    """Instantiate classifier for key; returns (instance, method_name) or (None, None)."""
    entry = CLASSIFIER_REGISTRY.get(key)
    if not entry:
        return None, None
    cls, method_name = entry
    return cls(params or AnalysisParams()), method_name
