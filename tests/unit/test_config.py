"""
Unit tests for configuration loading.
"""
import json

import pytest

from listing_quality.config import AnalysisConfig, ResourceLimits, QualityConfig, load_config
from listing_quality.errors import ConfigurationError


@pytest.mark.unit
class TestAnalysisConfig:
    """Tests for AnalysisConfig defaults and validation."""

    def test_reference_values(self):
        config = AnalysisConfig()
        assert config.blur_threshold == 12.0
        assert config.window_min_brightness == 180.0
        assert config.window_min_contrast == 30.0
        assert config.hdr_soft_clip_factor == 0.1
        assert config.hough_vote_threshold == 150
        assert config.hough_suppression_radius == 8
        assert (config.thirds_weight, config.architecture_weight,
                config.depth_weight, config.balance_weight) == (0.30, 0.25, 0.25, 0.20)
        assert config.min_dimensions is None

    def test_invalid_chunks(self):
        with pytest.raises(ConfigurationError):
            AnalysisConfig(histogram_chunks=0)

    def test_dimensions_become_tuples(self):
        config = AnalysisConfig(min_dimensions=[1920, 1080])
        assert config.min_dimensions == (1920, 1080)


@pytest.mark.unit
class TestResourceLimits:
    """Tests for ResourceLimits and its environment loader."""

    def test_defaults(self):
        limits = ResourceLimits()
        assert limits.max_concurrent_processing == 4
        assert limits.acquire_timeout is None

    def test_rejects_non_positive(self):
        with pytest.raises(ConfigurationError):
            ResourceLimits(max_concurrent_uploads=0)
        with pytest.raises(ConfigurationError):
            ResourceLimits(acquire_timeout=0)

    def test_from_env(self):
        limits = ResourceLimits.from_env({
            "LISTING_QUALITY_MAX_CONCURRENT_PROCESSING": "3",
            "LISTING_QUALITY_MAX_BATCH_SIZE": "20",
            "LISTING_QUALITY_ACQUIRE_TIMEOUT": "1.5",
            "UNRELATED": "x",
        })
        assert limits.max_concurrent_processing == 3
        assert limits.max_batch_size == 20
        assert limits.acquire_timeout == 1.5
        assert limits.max_concurrent_uploads == 4

    def test_from_env_malformed(self):
        with pytest.raises(ConfigurationError):
            ResourceLimits.from_env({"LISTING_QUALITY_MAX_CONCURRENT_SEARCHES": "many"})

    def test_from_env_zero(self):
        with pytest.raises(ConfigurationError):
            ResourceLimits.from_env({"LISTING_QUALITY_MAX_CONCURRENT_EMBEDDINGS": "0"})

    def test_from_process_env(self, monkeypatch):
        monkeypatch.setenv("LISTING_QUALITY_MAX_CONCURRENT_UPLOADS", "7")
        assert ResourceLimits.from_env().max_concurrent_uploads == 7


@pytest.mark.unit
class TestLoadConfig:
    """Tests for JSON config files."""

    def test_no_path_gives_defaults(self, monkeypatch):
        monkeypatch.delenv("LISTING_QUALITY_CONFIG", raising=False)
        config = load_config()
        assert isinstance(config, QualityConfig)
        assert config.analysis == AnalysisConfig()

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(str(tmp_path / "nope.json"))
        assert config.resources == ResourceLimits()

    def test_loads_sections(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "analysis": {"blur_threshold": 20.0, "min_dimensions": [64, 48]},
            "resources": {"max_concurrent_processing": 2},
        }))
        config = load_config(str(path))
        assert config.analysis.blur_threshold == 20.0
        assert config.analysis.min_dimensions == (64, 48)
        assert config.resources.max_concurrent_processing == 2

    def test_env_path(self, tmp_path, monkeypatch):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"resources": {"max_batch_size": 5}}))
        monkeypatch.setenv("LISTING_QUALITY_CONFIG", str(path))
        assert load_config().resources.max_batch_size == 5

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"analysis": {"blur": 1}}))
        with pytest.raises(ConfigurationError):
            load_config(str(path))

    def test_unknown_section(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"render": {}}))
        with pytest.raises(ConfigurationError):
            load_config(str(path))

    def test_bad_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError):
            load_config(str(path))

    def test_round_trip_dict(self):
        data = QualityConfig().to_dict()
        assert data["analysis"]["blur_threshold"] == 12.0
        assert data["resources"]["max_batch_size"] == 100
