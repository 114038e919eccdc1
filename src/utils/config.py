"""
Configuration management for the pocketlens interaction engine.
"""

from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, Optional
import hashlib
import json
import math

import yaml
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


# Allowed range per parameter (inclusive). Mirrors the limits offered by the
# analysis controls; anything outside is almost certainly a typo.
PARAM_RANGES: Dict[str, tuple] = {
    "binding_site_distance": (1.0, 20.0),
    "hydrophobic_max_dist": (1.0, 10.0),
    "hbond_max_dist": (1.0, 10.0),
    "salt_bridge_max_dist": (1.0, 10.0),
    "water_bridge_max_dist": (1.0, 10.0),
    "pi_stacking_max_dist": (1.0, 10.0),
    "pi_cation_max_dist": (1.0, 10.0),
    "halogen_bond_max_dist": (1.0, 10.0),
}


@dataclass
class AnalysisParams:
    """Distance cutoffs (Å) for binding-site and interaction detection."""

    # Pocket definition
    binding_site_distance: float = 7.5

    # Computed families
    hydrophobic_max_dist: float = 4.0
    hbond_max_dist: float = 3.5

    # Reserved for future families (not computed yet)
    salt_bridge_max_dist: float = 5.5

    # Water-mediated bridges
    water_bridge_max_dist: float = 4.1

    pi_stacking_max_dist: float = 6.0
    pi_cation_max_dist: float = 6.0
    halogen_bond_max_dist: float = 4.0

    # Internal cache field (auto-managed)
    _param_hash: str = field(default="", init=False, repr=False, compare=False)

    def validate(self) -> "AnalysisParams":
        """Check every cutoff is a finite number inside its allowed range.

        Returns self so calls can be chained; raises ValueError otherwise.
        """
        for name, (low, high) in PARAM_RANGES.items():
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value!r}")
            if not low <= value <= high:
                raise ValueError(f"{name}={value} outside allowed range [{low}, {high}] Å")
        return self

    def to_dict(self) -> Dict[str, float]:
        return {k: v for k, v in asdict(self).items() if not k.startswith("_")}

    def with_overrides(self, **overrides: Any) -> "AnalysisParams":
        """Return a copy with the given cutoffs replaced.

        Unknown names raise KeyError so misspelt overrides never pass silently.
        """
        unknown = set(overrides) - set(PARAM_RANGES)
        if unknown:
            raise KeyError(f"Unknown analysis parameter(s): {', '.join(sorted(unknown))}")
        data = self.to_dict()
        data.update({k: float(v) for k, v in overrides.items()})
        return AnalysisParams(**data)

    def compute_hash(self) -> str:
        """Compute a stable hash of all public parameters.

        Produces a short 10-char hex digest for compact cache keys.
        """
        payload = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
        digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()[:10]
        self._param_hash = digest
        return digest

    @property
    def param_hash(self) -> str:
        if not self._param_hash:
            return self.compute_hash()
        return self._param_hash


PRESETS: Dict[str, Dict[str, float]] = {
    "literature_default": {
        "binding_site_distance": 7.5,
        "hydrophobic_max_dist": 4.0,
        "hbond_max_dist": 3.5,
        "salt_bridge_max_dist": 5.5,
        "water_bridge_max_dist": 4.1,
        "pi_stacking_max_dist": 6.0,
        "pi_cation_max_dist": 6.0,
        "halogen_bond_max_dist": 4.0,
    },
    "conservative": {
        "binding_site_distance": 6.0,
        "hydrophobic_max_dist": 3.8,
        "hbond_max_dist": 3.2,
        "salt_bridge_max_dist": 5.0,
        "water_bridge_max_dist": 3.8,
        "pi_stacking_max_dist": 5.5,
        "pi_cation_max_dist": 5.5,
        "halogen_bond_max_dist": 3.5,
    },
    "exploratory": {
        "binding_site_distance": 9.0,
        "hydrophobic_max_dist": 4.5,
        "hbond_max_dist": 3.9,
        "salt_bridge_max_dist": 6.0,
        "water_bridge_max_dist": 4.5,
        "pi_stacking_max_dist": 6.5,
        "pi_cation_max_dist": 6.5,
        "halogen_bond_max_dist": 4.4,
    },
}


def get_preset(name: str) -> AnalysisParams:
    """Build params from a named preset (case/space-insensitive)."""
    key = name.strip().lower().replace(" ", "_")
    if key not in PRESETS:
        raise KeyError(f"Unknown preset {name!r}; choose one of {', '.join(PRESETS)}")
    return AnalysisParams(**PRESETS[key])


def load_params(path: Path, base: Optional[AnalysisParams] = None) -> AnalysisParams:
    """Load parameter overrides from a YAML file.

    The file may contain a ``preset`` key naming the starting preset plus any
    subset of the cutoff names; everything else is rejected.
    """
    with Path(path).open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping of parameter names to values")
    preset = data.pop("preset", None)
    params = get_preset(preset) if preset else (base or AnalysisParams())
    return params.with_overrides(**data).validate()
