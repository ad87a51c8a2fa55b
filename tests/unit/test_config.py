# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Tests for settings and per-scan configuration."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from wpbreach.core.config import DEFAULT_EXTENSIONS, ConfidenceBoosts, ScanConfig, Settings
from wpbreach.core.exceptions import ConfigurationError


class TestSettings:

    def test_defaults(self, settings):
        assert settings.active_categories == ["sql_injection", "xss", "general"]
        assert settings.worker_count == 4
        assert settings.max_file_size == 1_048_576
        assert settings.per_file_timeout == 10.0
        assert settings.max_scan_time is None
        assert settings.file_extensions == DEFAULT_EXTENSIONS
        assert settings.fix_safety_threshold == 0.7
        assert settings.fix_min_confidence == 0.8

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("WPBREACH_WORKER_COUNT", "8")
        monkeypatch.setenv("WPBREACH_ACTIVE_CATEGORIES", "xss, general")
        monkeypatch.setenv("WPBREACH_EXCLUDE_DIRS", "vendor,build")
        monkeypatch.setenv("WPBREACH_MAX_SCAN_TIME", "30")

        settings = Settings(_env_file=None)
        assert settings.worker_count == 8
        assert settings.active_categories == ["xss", "general"]
        assert settings.exclude_dirs == ["vendor", "build"]
        assert settings.max_scan_time == 30.0

    def test_log_level_from_environment(self):
        assert Settings(_env_file=None).log_level == "WARNING"

    def test_confidence_boosts(self, monkeypatch):
        monkeypatch.setenv("WPBREACH_CONFIDENCE_BOOST_KEYWORD", "0.2")
        boosts = Settings(_env_file=None).confidence_boosts()
        assert boosts == ConfidenceBoosts(user_input=0.1, keyword=0.2)


class TestScanConfig:

    def test_minimal_options(self):
        config = ScanConfig.from_options({"active_categories": ["xss"], "target_paths": ["wp-content"]})
        assert config.worker_count == 4
        assert config.max_findings is None

    def test_settings_fill_gaps(self, settings):
        config = ScanConfig.from_options(
            {"active_categories": "sql_injection,xss", "target_paths": ["a.php"], "worker_count": 2},
            settings,
        )
        assert config.active_categories == ["sql_injection", "xss"]
        assert config.worker_count == 2
        assert config.max_findings == settings.max_findings

    def test_none_values_fall_back(self, settings):
        config = ScanConfig.from_options(
            {"active_categories": ["xss"], "target_paths": ["a.php"], "per_file_timeout": None},
            settings,
        )
        assert config.per_file_timeout == settings.per_file_timeout

    def test_unknown_keys_ignored(self):
        config = ScanConfig.from_options(
            {"active_categories": ["xss"], "target_paths": ["a.php"], "scan_depth": "deep"}
        )
        assert not hasattr(config, "scan_depth")

    def test_duplicate_categories_collapsed(self):
        config = ScanConfig.from_options(
            {"active_categories": ["xss", "general", "xss"], "target_paths": ["a.php"]}
        )
        assert config.active_categories == ["xss", "general"]

    def test_existing_config_passes_through(self):
        config = ScanConfig(active_categories=["xss"], target_paths=["a.php"])
        assert ScanConfig.from_options(config) is config

    @pytest.mark.parametrize(
        "options, message",
        [
            ({"target_paths": ["a.php"]}, "missing required option: active_categories"),
            ({"active_categories": ["xss"]}, "missing required option: target_paths"),
            ({"active_categories": [], "target_paths": ["a.php"]}, "missing required option"),
            ({"active_categories": ["csrf"], "target_paths": ["a.php"]}, "unknown detector categories: csrf"),
            ({"active_categories": ["xss"], "target_paths": ["  "]}, "at least one target path"),
            ({"active_categories": ["xss"], "target_paths": ["a.php"], "worker_count": 0}, "worker_count"),
            ({"active_categories": ["xss"], "target_paths": ["a.php"], "max_file_size": -1}, "max_file_size"),
            ({"active_categories": ["xss"], "target_paths": ["a.php"], "per_file_timeout": 0}, "per_file_timeout"),
        ],
    )
    def test_invalid_options(self, options, message):
        with pytest.raises(ConfigurationError, match=message):
            ScanConfig.from_options(options)

    def test_non_mapping_rejected(self):
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            ScanConfig.from_options(["xss"])  # type: ignore[arg-type]

    def test_frozen(self):
        config = ScanConfig(active_categories=["xss"], target_paths=["a.php"])
        with pytest.raises(ValidationError):
            config.worker_count = 2  # type: ignore[misc]
