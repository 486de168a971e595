#!/usr/bin/env python3
"""
Shared pytest fixtures for the test suite.

This module provides common fixtures used across test modules including:
- Small feature collections in a projected CRS (planar coordinates)
- A multi-part feature with one part inside and one part outside the region
- Attribute tables for join tests
- Geographic point features for buffering
"""
from __future__ import annotations

import sys
from pathlib import Path

# Add src directory to Python path for test imports
_project_root = Path(__file__).parent.parent
_src_path = _project_root / 'src'
if str(_src_path) not in sys.path:
    sys.path.insert(0, str(_src_path))

import pytest
import pandas as pd
import geopandas as gpd
from shapely.geometry import MultiPolygon, Point, box


# ============================================================
# CRS FIXTURES
# ============================================================

PLANAR_CRS = "EPSG:3857"


# ============================================================
# COLLECTION FIXTURES
# ============================================================

@pytest.fixture
def countries() -> gpd.GeoDataFrame:
    """
    Four countries in a planar CRS.

    GBR is multi-part: part 0 overlaps the query region, part 1 is far away.
    """
    gbr = MultiPolygon([box(0, 0, 10, 10), box(100, 100, 110, 110)])
    return gpd.GeoDataFrame(
        {
            'feature_id': ['GBR', 'FRA', 'ESP', 'IRL'],
            'name': ['United Kingdom', 'France', 'Spain', 'Ireland'],
            'iso_a2': ['GB', 'FR', 'ES', 'IE'],
            'area_rank': [3, 1, 2, 4],
        },
        geometry=[gbr, box(20, 0, 30, 10), box(200, 200, 210, 210), box(-30, 0, -20, 10)],
        crs=PLANAR_CRS,
        index=[10, 20, 30, 40],
    )


@pytest.fixture
def region() -> gpd.GeoSeries:
    """Query region touching GBR part 0 and FRA only."""
    return gpd.GeoSeries([box(5, 5, 25, 8)], crs=PLANAR_CRS)


@pytest.fixture
def small_collection() -> gpd.GeoDataFrame:
    """Three single-part point features."""
    return gpd.GeoDataFrame(
        {
            'feature_id': ['a', 'b', 'c'],
            'value': [1.5, 2.5, 3.5],
            'label': ['x', 'y', 'z'],
        },
        geometry=[Point(0, 0), Point(1, 1), Point(2, 2)],
        crs=PLANAR_CRS,
    )


# ============================================================
# TABLE FIXTURES
# ============================================================

@pytest.fixture
def population_table() -> pd.DataFrame:
    """Indicator table keyed by iso_a2; no row for IE, one row for DE."""
    return pd.DataFrame({
        'iso_a2': ['FR', 'GB', 'ES', 'DE'],
        'pop': [68.0, 67.0, 48.0, 84.0],
        'coffee_kg': [5.4, 2.8, 4.5, 6.5],
    })


# ============================================================
# GEOGRAPHIC FIXTURES
# ============================================================

@pytest.fixture
def london() -> gpd.GeoDataFrame:
    """London as a single point feature in WGS84."""
    return gpd.GeoDataFrame(
        {'feature_id': ['LON'], 'name': ['London']},
        geometry=[Point(-0.1276, 51.5072)],
        crs="EPSG:4326",
    )
