"""Tests for feature collection helpers."""

import pytest
import pandas as pd
import geopandas as gpd
from shapely.geometry import Point

from geocomp.core.collection import (
    collection_schema,
    has_geometry,
    validate_collection,
    with_identifier,
)
from geocomp.core.exceptions import IdentifierError


@pytest.fixture
def cities():
    """Three cities without an identifier column."""
    return gpd.GeoDataFrame(
        {"name": ["London", "Paris", "Madrid"], "iso_a2": ["GB", "FR", "ES"], "pop": [9.0, 2.1, 3.3]},
        geometry=[Point(-0.13, 51.51), Point(2.35, 48.86), Point(-3.70, 40.42)],
        crs="EPSG:4326",
        index=[5, 6, 7],
    )


class TestValidateCollection:
    """Tests for validate_collection."""

    def test_valid(self, countries):
        """A well-formed collection passes."""
        validate_collection(countries, require_unique=True)

    def test_not_geodataframe(self):
        """Plain DataFrames are rejected."""
        with pytest.raises(TypeError, match="GeoDataFrame"):
            validate_collection(pd.DataFrame({"feature_id": [1]}))

    def test_missing_column(self, cities):
        """Missing identifier column."""
        with pytest.raises(IdentifierError, match="not found") as excinfo:
            validate_collection(cities)

        assert excinfo.value.code == "IDENTIFIER_MISSING"

    def test_null_identifier(self, countries):
        """Null identifiers are rejected."""
        countries = countries.copy()
        countries.loc[10, "feature_id"] = None

        with pytest.raises(IdentifierError) as excinfo:
            validate_collection(countries)

        assert excinfo.value.details["n_null"] == 1

    def test_duplicates_allowed_by_default(self, countries):
        """Duplicates only fail with require_unique."""
        countries = countries.copy()
        countries["feature_id"] = ["A", "A", "B", "C"]

        validate_collection(countries)
        with pytest.raises(IdentifierError, match="duplicates"):
            validate_collection(countries, require_unique=True)


class TestWithIdentifier:
    """Tests for with_identifier."""

    def test_from_index(self, cities):
        """Identifiers default to the index."""
        result = with_identifier(cities)

        assert result["feature_id"].tolist() == [5, 6, 7]
        assert list(result.columns)[0] == "feature_id"

    def test_from_column(self, cities):
        """Identifiers can be copied from a column."""
        result = with_identifier(cities, from_column="iso_a2")

        assert result["feature_id"].tolist() == ["GB", "FR", "ES"]
        assert "iso_a2" in result.columns

    def test_survives_filtering(self, cities):
        """Identifiers stay attached to their rows after filtering."""
        result = with_identifier(cities, from_column="iso_a2")
        filtered = result[result["pop"] > 3].reset_index(drop=True)

        assert filtered["feature_id"].tolist() == ["GB", "ES"]

    def test_does_not_modify_input(self, cities):
        """Input frame keeps its columns."""
        with_identifier(cities)

        assert "feature_id" not in cities.columns

    def test_existing_same_values(self, cities):
        """Re-applying with identical values is allowed."""
        once = with_identifier(cities, from_column="iso_a2")
        twice = with_identifier(once, from_column="iso_a2")

        assert twice["feature_id"].tolist() == ["GB", "FR", "ES"]

    def test_existing_conflicting_values(self, cities):
        """An existing identifier column with other values is not overwritten."""
        once = with_identifier(cities, from_column="iso_a2")

        with pytest.raises(IdentifierError, match="already exists"):
            with_identifier(once, from_column="name")

    def test_duplicate_source(self, cities):
        """Non-unique identifier sources are rejected."""
        cities = cities.copy()
        cities["iso_a2"] = ["GB", "GB", "ES"]

        with pytest.raises(IdentifierError, match="duplicates"):
            with_identifier(cities, from_column="iso_a2")

    def test_unknown_source_column(self, cities):
        """Unknown source column."""
        with pytest.raises(IdentifierError, match="not found"):
            with_identifier(cities, from_column="iso_a3")


class TestCollectionSchema:
    """Tests for collection_schema."""

    def test_excludes_geometry(self, countries):
        """Geometry column is not part of the attribute schema."""
        schema = collection_schema(countries)

        assert list(schema) == ["feature_id", "name", "iso_a2", "area_rank"]
        assert schema["area_rank"] == "int64"


class TestHasGeometry:
    """Tests for has_geometry."""

    def test_geodataframe_with_geometry(self, cities):
        """GeoDataFrame with geometry."""
        assert has_geometry(cities) is True

    def test_regular_dataframe(self):
        """Plain attribute table."""
        assert has_geometry(pd.DataFrame({"iso_a2": ["GB"], "pop": [67]})) is False

    def test_dataframe_with_geometry_column(self):
        """DataFrame with a 'geometry' column still counts as spatial."""
        assert has_geometry(pd.DataFrame({"geometry": ["POINT (0 0)"]})) is True
