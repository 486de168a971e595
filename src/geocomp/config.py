#!/usr/bin/env python3
"""
Configuration constants for geocomp.

This module centralizes the defaults used by the subset-and-join workflow.
Functions take these as keyword defaults; scripts that want different values
can load a YAML overlay with ``load_settings``.

Usage
-----
    from geocomp.config import DEFAULT_CRS, DEFAULT_ID_COLUMN

    # Or load an overlay for a project
    from geocomp.config import load_settings
    settings = load_settings('workflow.yml')
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Union

import yaml


# =============================================================================
# COORDINATE REFERENCE SYSTEMS
# =============================================================================

# Default geographic CRS for reading and output
DEFAULT_CRS = "EPSG:4326"  # WGS84

# Working CRS used for metric buffering when none is given.
# 'utm' selects the local UTM zone from the feature centroid.
DEFAULT_WORKING_CRS = "utm"

# Segments per quarter circle when buffering
BUFFER_RESOLUTION = 16


# =============================================================================
# FEATURE IDENTITY
# =============================================================================

# Column carrying the stable feature identifier
DEFAULT_ID_COLUMN = "feature_id"

# Separator between a parent identifier and a part index ('GBR#0')
PART_ID_SEPARATOR = "#"


# =============================================================================
# SPATIAL SUBSETTING
# =============================================================================

DEFAULT_PREDICATE = "intersects"

# Options: 'whole_feature', 'split_multipart_before_filter'
DEFAULT_SUBSET_MODE = "whole_feature"

SUBSET_MODES = ("whole_feature", "split_multipart_before_filter")

SUBSET_PREDICATES = (
    "intersects",
    "within",
    "contains",
    "covers",
    "covered_by",
    "touches",
    "crosses",
    "overlaps",
    "disjoint",
)


# =============================================================================
# PARALLEL EXECUTION SETTINGS
# =============================================================================

# Evaluate predicates on a thread pool for large collections
PARALLEL_ENABLED = False

# Maximum number of parallel workers (None = use CPU count)
PARALLEL_MAX_WORKERS = None

# Below this many features predicates are always evaluated in one call
PARALLEL_MIN_FEATURES = 10_000


# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL = "WARNING"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


# =============================================================================
# VALIDATION
# =============================================================================

def _defaults() -> dict[str, Any]:
    return {
        'default_crs': DEFAULT_CRS,
        'working_crs': DEFAULT_WORKING_CRS,
        'buffer_resolution': BUFFER_RESOLUTION,
        'id_column': DEFAULT_ID_COLUMN,
        'part_id_separator': PART_ID_SEPARATOR,
        'predicate': DEFAULT_PREDICATE,
        'subset_mode': DEFAULT_SUBSET_MODE,
        'parallel_enabled': PARALLEL_ENABLED,
        'parallel_max_workers': PARALLEL_MAX_WORKERS,
        'parallel_min_features': PARALLEL_MIN_FEATURES,
        'log_level': LOG_LEVEL,
    }


def validate_config(settings: Optional[dict[str, Any]] = None) -> bool:
    """
    Validate configuration settings.

    Parameters
    ----------
    settings : dict, optional
        Settings to check. Defaults to the module constants.

    Returns
    -------
    bool
        True if all validations pass

    Raises
    ------
    ValueError
        If any configuration is invalid
    """
    settings = settings if settings is not None else _defaults()
    errors = []

    if settings['predicate'] not in SUBSET_PREDICATES:
        errors.append(
            f"predicate must be one of {', '.join(SUBSET_PREDICATES)}: {settings['predicate']}"
        )

    if settings['subset_mode'] not in SUBSET_MODES:
        errors.append(
            f"subset_mode must be one of {', '.join(SUBSET_MODES)}: {settings['subset_mode']}"
        )

    if not isinstance(settings['buffer_resolution'], int) or settings['buffer_resolution'] < 1:
        errors.append(f"buffer_resolution must be a positive integer: {settings['buffer_resolution']}")

    if not settings['id_column']:
        errors.append("id_column must be a non-empty string")

    if not settings['part_id_separator']:
        errors.append("part_id_separator must be a non-empty string")

    workers = settings['parallel_max_workers']
    if workers is not None and (not isinstance(workers, int) or workers < 1):
        errors.append(f"parallel_max_workers must be None or a positive integer: {workers}")

    if settings['parallel_min_features'] < 1:
        errors.append(f"parallel_min_features must be positive: {settings['parallel_min_features']}")

    if logging.getLevelName(str(settings['log_level']).upper()) not in (
        logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL
    ):
        errors.append(f"log_level is not a logging level: {settings['log_level']}")

    if errors:
        raise ValueError("Configuration errors:\n" + "\n".join(f"  - {e}" for e in errors))

    return True


def load_settings(path: Optional[Union[str, Path]] = None) -> dict[str, Any]:
    """
    Load workflow settings, overlaying a YAML file on the defaults.

    Parameters
    ----------
    path : str or Path, optional
        YAML file with a flat mapping of setting names to values.

    Returns
    -------
    dict
        Validated settings

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist
    ValueError
        If the file has unknown keys or invalid values
    """
    settings = _defaults()

    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config not found: {path}")
        with open(path) as f:
            overrides = yaml.safe_load(f) or {}
        if not isinstance(overrides, dict):
            raise ValueError(f"Config file must contain a mapping: {path}")

        unknown = sorted(set(overrides) - set(settings))
        if unknown:
            raise ValueError(f"Unknown configuration keys in {path}: {', '.join(unknown)}")
        settings.update(overrides)

    validate_config(settings)
    return settings


def setup_logging(level: Optional[str] = None) -> None:
    """Attach a stream handler to the ``geocomp`` logger (for scripts only)."""
    logger = logging.getLogger('geocomp')
    logger.setLevel((level or LOG_LEVEL).upper())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
