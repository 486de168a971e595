"""
Feature collection helpers.

A feature collection is a GeoDataFrame with an explicit identifier column.
Identity is carried by that column, never by row position, so filtered or
reordered collections can still be joined back to their source.
"""

from __future__ import annotations

from typing import Optional, Union

import geopandas as gpd
import pandas as pd

from geocomp.config import DEFAULT_ID_COLUMN
from geocomp.core.exceptions import IdentifierError


def validate_collection(
    collection: gpd.GeoDataFrame,
    id_column: str = DEFAULT_ID_COLUMN,
    require_unique: bool = False,
    operation: str = "validate_collection",
) -> None:
    """
    Check that ``collection`` is a GeoDataFrame with a usable identifier column.

    Parameters
    ----------
    collection : gpd.GeoDataFrame
        Collection to check.
    id_column : str, optional
        Name of the identifier column.
    require_unique : bool, optional
        Also reject duplicated identifiers. Default is False.
    operation : str, optional
        Operation name reported in errors.

    Raises
    ------
    TypeError
        If ``collection`` is not a GeoDataFrame.
    IdentifierError
        If the identifier column is missing, has nulls, or (with
        ``require_unique``) has duplicates.
    """
    if not isinstance(collection, gpd.GeoDataFrame):
        raise TypeError(
            f"{operation} expects a GeoDataFrame, got {type(collection).__name__}"
        )

    if id_column not in collection.columns:
        raise IdentifierError(
            f"Identifier column '{id_column}' not found. "
            "Use with_identifier() to add one before filtering or joining.",
            operation=operation,
            code="IDENTIFIER_MISSING",
            details={"id_column": id_column},
        )

    ids = collection[id_column]
    n_null = int(ids.isna().sum())
    if n_null:
        raise IdentifierError(
            f"Identifier column '{id_column}' has {n_null} null value(s)",
            operation=operation,
            code="IDENTIFIER_NULL",
            details={"id_column": id_column, "n_null": n_null},
        )

    if require_unique:
        duplicated = ids[ids.duplicated()].unique().tolist()
        if duplicated:
            raise IdentifierError(
                f"Identifier column '{id_column}' has duplicates: {duplicated[:10]}",
                operation=operation,
                code="IDENTIFIER_DUPLICATE",
                details={"id_column": id_column, "duplicates": duplicated},
            )


def with_identifier(
    frame: gpd.GeoDataFrame,
    id_column: str = DEFAULT_ID_COLUMN,
    from_column: Optional[str] = None,
) -> gpd.GeoDataFrame:
    """
    Return a copy of ``frame`` with an explicit identifier column.

    The identifier is copied from ``from_column`` when given, otherwise from
    the current index. Do this before any filtering so that identity does
    not depend on row position.

    Parameters
    ----------
    frame : gpd.GeoDataFrame
        Source collection.
    id_column : str, optional
        Name of the identifier column to create.
    from_column : str, optional
        Existing column to copy identifiers from (e.g. ``'iso_a3'``).

    Returns
    -------
    gpd.GeoDataFrame
        Copy with the identifier column in first position.

    Raises
    ------
    IdentifierError
        If ``id_column`` already exists with different values, or the
        resulting identifiers are null or duplicated.

    Examples
    --------
    >>> world = with_identifier(world, from_column='iso_a3')
    >>> world['feature_id'].head(2).tolist()
    ['FJI', 'TZA']
    """
    result = frame.copy()

    if from_column is not None:
        if from_column not in result.columns:
            raise IdentifierError(
                f"Column '{from_column}' not found",
                operation="with_identifier",
                code="IDENTIFIER_MISSING",
                details={"from_column": from_column},
            )
        values = result[from_column]
    else:
        values = pd.Series(result.index, index=result.index)

    if id_column in result.columns:
        if id_column == from_column:
            values = result[id_column]
        elif not result[id_column].equals(values):
            raise IdentifierError(
                f"Column '{id_column}' already exists with different values",
                operation="with_identifier",
                code="IDENTIFIER_CONFLICT",
                details={"id_column": id_column},
            )
        result = result.drop(columns=id_column)

    result.insert(0, id_column, values.to_numpy())
    validate_collection(result, id_column, require_unique=True, operation="with_identifier")
    return result


def collection_schema(collection: gpd.GeoDataFrame) -> dict[str, str]:
    """
    Return the attribute schema of a collection.

    Parameters
    ----------
    collection : gpd.GeoDataFrame
        Collection to inspect.

    Returns
    -------
    dict[str, str]
        Ordered mapping of attribute column name to dtype name, excluding
        the active geometry column.
    """
    geometry_name = collection.geometry.name
    return {
        str(column): str(dtype)
        for column, dtype in collection.dtypes.items()
        if column != geometry_name
    }


def has_geometry(df: Union[pd.DataFrame, gpd.GeoDataFrame]) -> bool:
    """
    Check if a DataFrame has non-null geometry.

    Used to reject attribute tables that still carry a geometry column.
    """
    if isinstance(df, gpd.GeoDataFrame):
        try:
            geometry = df.geometry
        except AttributeError:
            return False
        return not geometry.isna().all()

    return "geometry" in df.columns
