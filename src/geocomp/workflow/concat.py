"""
Row-wise concatenation of feature collections.

Attribute tables and geometry sequences are bound separately and then
recombined. Binding whole geometry-bearing records at once is only safe
when every input has the same per-row geometry structure; splitting the
two keeps each concatenation type-homogeneous, so mixed single-part and
multi-part inputs bind cleanly.
"""

from __future__ import annotations

import logging
from typing import Sequence, Union

import geopandas as gpd
import pandas as pd
from shapely.geometry import (
    LineString,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon,
)

from geocomp.config import DEFAULT_ID_COLUMN
from geocomp.core.collection import collection_schema
from geocomp.core.crs import require_same_crs
from geocomp.core.exceptions import SchemaMismatchError

logger = logging.getLogger(__name__)

_MULTI_OF = {
    Point: MultiPoint,
    LineString: MultiLineString,
    Polygon: MultiPolygon,
}


def _flatten(collections: tuple) -> list[gpd.GeoDataFrame]:
    if len(collections) == 1 and isinstance(collections[0], (list, tuple)):
        return list(collections[0])
    return list(collections)


def _dtype_label(dtype) -> str:
    # Categoricals differ by their categories, which str() hides
    if isinstance(dtype, pd.CategoricalDtype):
        return f"category{list(dtype.categories)}"
    return str(dtype)


def _check_schemas(frames: Sequence[gpd.GeoDataFrame]) -> None:
    first = frames[0]
    first_schema = collection_schema(first)
    first_geometry = first.geometry.name

    for position, frame in enumerate(frames[1:], start=1):
        if frame.geometry.name != first_geometry:
            raise SchemaMismatchError(
                f"Input {position} has geometry column '{frame.geometry.name}', "
                f"expected '{first_geometry}'",
                details={"input_index": position, "geometry_column": frame.geometry.name},
            )

        schema = collection_schema(frame)
        missing = [c for c in first_schema if c not in schema]
        extra = [c for c in schema if c not in first_schema]
        if missing or extra:
            raise SchemaMismatchError(
                f"Input {position} column set differs from input 0: "
                f"missing {missing}, extra {extra}",
                details={"input_index": position, "missing": missing, "extra": extra},
            )

        mismatched = {
            column: (_dtype_label(first[column].dtype), _dtype_label(frame[column].dtype))
            for column in first_schema
            if frame[column].dtype != first[column].dtype
        }
        if mismatched:
            raise SchemaMismatchError(
                f"Input {position} column types differ from input 0: "
                + ", ".join(f"{c} {a} vs {b}" for c, (a, b) in mismatched.items()),
                details={"input_index": position, "dtypes": mismatched},
            )


def concatenate(
    *collections: Union[gpd.GeoDataFrame, Sequence[gpd.GeoDataFrame]],
    id_column: str = DEFAULT_ID_COLUMN,
) -> gpd.GeoDataFrame:
    """
    Concatenate feature collections row-wise.

    Parameters
    ----------
    *collections : gpd.GeoDataFrame
        Two or more collections with the same columns, dtypes and CRS
        (a single list of collections is also accepted).
    id_column : str, optional
        Identifier column; duplicates across inputs are logged.

    Returns
    -------
    gpd.GeoDataFrame
        Rows of every input in argument order, index labels and values
        unchanged. Column order follows the first input.

    Raises
    ------
    SchemaMismatchError
        If column sets, dtypes or geometry column names differ.
    ProjectionError
        If the inputs do not share a CRS.
    ValueError
        If fewer than two collections are given.

    Examples
    --------
    >>> europe_asia = concatenate(europe, asia)
    """
    frames = _flatten(collections)
    if len(frames) < 2:
        raise ValueError(f"concatenate needs at least two collections, got {len(frames)}")
    for position, frame in enumerate(frames):
        if not isinstance(frame, gpd.GeoDataFrame):
            raise TypeError(f"Input {position} is not a GeoDataFrame: {type(frame).__name__}")

    _check_schemas(frames)
    for position, frame in enumerate(frames[1:], start=1):
        require_same_crs(
            frames[0], frame, operation="concatenate", names=("input 0", f"input {position}")
        )

    geometry_name = frames[0].geometry.name
    columns = list(frames[0].columns)
    attribute_columns = [c for c in columns if c != geometry_name]

    attributes = pd.concat(
        [pd.DataFrame(frame[attribute_columns]) for frame in frames]
    )
    geometries = pd.concat(
        [frame.geometry.reset_index(drop=True) for frame in frames],
        ignore_index=True,
    )

    combined = attributes.copy()
    combined[geometry_name] = geometries.to_numpy()
    result = gpd.GeoDataFrame(
        combined[columns],
        geometry=geometry_name,
        crs=frames[0].crs,
    )

    if id_column in result.columns and result[id_column].duplicated().any():
        logger.warning(
            "concatenate: identifier column '%s' has duplicates across inputs",
            id_column,
        )

    logger.info(
        "concatenate: %d collections, %d rows",
        len(frames),
        len(result),
    )
    return result


def to_multipart(collection: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    """
    Promote single-part geometries to their multi-part type.

    Points become MultiPoints, LineStrings MultiLineStrings and Polygons
    MultiPolygons; multi-part and missing geometries are left unchanged.
    Useful before concatenating inputs whose geometry cardinality varies.
    """
    def _promote(geom):
        if geom is None:
            return geom
        multi = _MULTI_OF.get(type(geom))
        if multi is None or geom.is_empty:
            return geom
        return multi([geom])

    result = collection.copy()
    geometry_name = result.geometry.name
    result[geometry_name] = gpd.GeoSeries(
        [_promote(geom) for geom in result.geometry],
        index=result.index,
        crs=result.crs,
    )
    return result
