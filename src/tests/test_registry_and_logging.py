import sys

from loguru import logger

from analysis.base_detector import CLASSIFIER_REGISTRY
from analysis.hydrogen_bonds import HydrogenBondDetector
from analysis.registry import get_classifier, list_family_keys
from utils.config import AnalysisParams
from utils import logging_config


def test_registry_contains_computed_families():
    assert sorted(list_family_keys()) == ["hbond", "hydrophobic", "water_bridge"]
    assert set(CLASSIFIER_REGISTRY) == {"hydrophobic", "hbond", "water_bridge"}


def test_get_classifier_returns_instance_and_method():
    inst, method = get_classifier("hbond", AnalysisParams(hbond_max_dist=3.0))
    assert isinstance(inst, HydrogenBondDetector)
    assert method == "detect"
    assert inst.distance_cutoff == 3.0
    assert get_classifier("salt_bridge") == (None, None)


def test_registered_classes_carry_family_key():
    for key, (cls, method) in CLASSIFIER_REGISTRY.items():
        assert cls.family_key == key
        assert method == "detect"


def test_configure_logging_writes_file(tmp_path, monkeypatch):
    log_file = tmp_path / "logs" / "run.log"
    monkeypatch.setattr(logging_config, "_CONFIGURED", False)
    try:
        logging_config.configure_logging(level="debug", log_file=str(log_file))
        logger.info("pocket check")
        # second call without force keeps existing sinks
        logging_config.configure_logging(level="error")
        logger.info("still here")
    finally:
        logger.remove()
        logger.add(sys.stderr)
    text = log_file.read_text()
    assert "pocket check" in text
    assert "still here" in text


def test_configure_from_settings_honours_env_and_level_override(tmp_path, monkeypatch):
    from utils.settings import get_settings
    log_file = tmp_path / "env.log"
    monkeypatch.setenv("POCKETLENS_LOG_FILE", str(log_file))
    monkeypatch.setenv("POCKETLENS_LOG_LEVEL", "ERROR")
    get_settings.cache_clear()
    try:
        logging_config.configure_from_settings(level="DEBUG", force=True)
        logger.debug("debug reaches the file")
    finally:
        logger.remove()
        logger.add(sys.stderr)
        monkeypatch.setattr(logging_config, "_CONFIGURED", False)
    assert "debug reaches the file" in log_file.read_text()
