#!/usr/bin/env python3
"""
Tests for src/geocomp/config.py

Tests cover:
- Default constants
- validate_config error collection
- load_settings YAML overlay
- setup_logging
"""
from __future__ import annotations

import logging

import pytest

from geocomp import config
from geocomp.config import load_settings, setup_logging, validate_config


# ============================================================
# DEFAULTS
# ============================================================

class TestDefaults:
    """Tests for module constants."""

    def test_identity_defaults(self):
        """Identifier defaults."""
        assert config.DEFAULT_ID_COLUMN == 'feature_id'
        assert config.PART_ID_SEPARATOR == '#'

    def test_subset_defaults(self):
        """Subsetting defaults."""
        assert config.DEFAULT_PREDICATE == 'intersects'
        assert config.DEFAULT_SUBSET_MODE in config.SUBSET_MODES

    def test_defaults_validate(self):
        """Module defaults are valid."""
        assert validate_config() is True


# ============================================================
# VALIDATION
# ============================================================

class TestValidateConfig:
    """Tests for validate_config."""

    def test_collects_all_errors(self):
        """Every problem is reported at once."""
        settings = load_settings()
        settings.update(subset_mode='parts', buffer_resolution=0, parallel_max_workers=-1)

        with pytest.raises(ValueError) as excinfo:
            validate_config(settings)

        message = str(excinfo.value)
        assert 'subset_mode' in message
        assert 'buffer_resolution' in message
        assert 'parallel_max_workers' in message

    def test_unknown_predicate(self):
        """Predicate must be a known topological predicate."""
        settings = load_settings()
        settings['predicate'] = 'near'

        with pytest.raises(ValueError, match='predicate'):
            validate_config(settings)

    def test_bad_log_level(self):
        """Log level must be a logging level name."""
        settings = load_settings()
        settings['log_level'] = 'LOUD'

        with pytest.raises(ValueError, match='log_level'):
            validate_config(settings)


# ============================================================
# YAML OVERLAY
# ============================================================

class TestLoadSettings:
    """Tests for load_settings."""

    def test_defaults(self):
        """No path gives the defaults."""
        settings = load_settings()

        assert settings['id_column'] == config.DEFAULT_ID_COLUMN
        assert settings['subset_mode'] == config.DEFAULT_SUBSET_MODE

    def test_overlay(self, tmp_path):
        """YAML values override defaults."""
        path = tmp_path / 'workflow.yml'
        path.write_text("id_column: iso_a3\npredicate: within\n")

        settings = load_settings(path)

        assert settings['id_column'] == 'iso_a3'
        assert settings['predicate'] == 'within'
        assert settings['subset_mode'] == config.DEFAULT_SUBSET_MODE

    def test_empty_file(self, tmp_path):
        """An empty file means no overrides."""
        path = tmp_path / 'empty.yml'
        path.write_text("")

        assert load_settings(path) == load_settings()

    def test_unknown_key(self, tmp_path):
        """Unknown keys are rejected."""
        path = tmp_path / 'workflow.yml'
        path.write_text("colour: blue\n")

        with pytest.raises(ValueError, match='Unknown configuration keys'):
            load_settings(path)

    def test_not_a_mapping(self, tmp_path):
        """Top-level YAML must be a mapping."""
        path = tmp_path / 'workflow.yml'
        path.write_text("- a\n- b\n")

        with pytest.raises(ValueError, match='mapping'):
            load_settings(path)

    def test_invalid_value(self, tmp_path):
        """Overrides are validated."""
        path = tmp_path / 'workflow.yml'
        path.write_text("subset_mode: parts\n")

        with pytest.raises(ValueError, match='subset_mode'):
            load_settings(path)

    def test_invalid_predicate(self, tmp_path):
        """An unknown predicate fails at load time."""
        path = tmp_path / 'workflow.yml'
        path.write_text("predicate: near\n")

        with pytest.raises(ValueError, match='predicate'):
            load_settings(path)

    def test_missing_file(self, tmp_path):
        """Missing files raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / 'missing.yml')


# ============================================================
# LOGGING
# ============================================================

class TestSetupLogging:
    """Tests for setup_logging."""

    def test_sets_level_and_single_handler(self):
        """Handler is attached once; level follows the argument."""
        logger = logging.getLogger('geocomp')
        original_handlers = list(logger.handlers)
        original_level = logger.level
        try:
            setup_logging('info')
            setup_logging('debug')

            assert logger.level == logging.DEBUG
            assert len(logger.handlers) == max(1, len(original_handlers))
        finally:
            logger.handlers = original_handlers
            logger.setLevel(original_level)
