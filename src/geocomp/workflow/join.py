"""
Attribute joins.

Left-joins a non-spatial attribute table onto a feature collection. Every
feature is kept exactly once and in order; column name collisions are an
error rather than something to rename or overwrite, because a silently
suffixed or replaced column breaks later spatial operations far from the
join that caused it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import geopandas as gpd
import pandas as pd
from pandas.api.types import is_numeric_dtype

from geocomp.config import DEFAULT_ID_COLUMN
from geocomp.core.collection import has_geometry, validate_collection
from geocomp.core.exceptions import JoinKeyError, SchemaConflictError

logger = logging.getLogger(__name__)


# ============================================================
# JOIN RESULT TRACKING
# ============================================================

@dataclass
class JoinSummary:
    """Match counts for an attribute join."""
    join_key: str
    n_features: int
    n_table_rows: int
    n_matched: int
    added_columns: list

    @property
    def n_unmatched(self) -> int:
        return self.n_features - self.n_matched

    @property
    def match_rate(self) -> float:
        """Share of features that found a table row."""
        return self.n_matched / self.n_features if self.n_features > 0 else 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'join_key': self.join_key,
            'n_features': self.n_features,
            'n_table_rows': self.n_table_rows,
            'n_matched': self.n_matched,
            'n_unmatched': self.n_unmatched,
            'match_rate': self.match_rate,
            'added_columns': ','.join(self.added_columns),
        }


# ============================================================
# VALIDATION
# ============================================================

def _check_join_inputs(
    collection: gpd.GeoDataFrame,
    table: pd.DataFrame,
    join_key: str,
    id_column: str,
) -> pd.DataFrame:
    """Validate both sides and return the table rows that can match."""
    validate_collection(collection, id_column, operation="attribute_join")

    if has_geometry(table):
        raise TypeError(
            "Attribute table must be non-spatial; drop its geometry column before joining"
        )

    for side, frame in (("collection", collection), ("table", table)):
        if join_key not in frame.columns:
            raise JoinKeyError(
                f"Join key '{join_key}' not found in {side}",
                code="JOIN_KEY_MISSING",
                details={"join_key": join_key, "input": side},
            )

    conflicts = [
        column for column in table.columns
        if column != join_key and column in collection.columns
    ]
    if conflicts:
        raise SchemaConflictError(
            f"Table columns already present in collection: {conflicts}. "
            "Rename or drop them before joining.",
            details={"columns": conflicts, "join_key": join_key},
        )

    left_key = collection[join_key]
    right_key = table[join_key]
    if is_numeric_dtype(left_key) != is_numeric_dtype(right_key):
        raise JoinKeyError(
            f"Join key '{join_key}' has incompatible types: "
            f"{left_key.dtype} (collection) vs {right_key.dtype} (table)",
            code="JOIN_KEY_TYPE",
            details={
                "join_key": join_key,
                "collection_dtype": str(left_key.dtype),
                "table_dtype": str(right_key.dtype),
            },
        )

    # Null keys never match; pandas would otherwise pair NaN with NaN
    usable = table[right_key.notna()]

    duplicated = usable.loc[usable[join_key].duplicated(), join_key].unique().tolist()
    if duplicated:
        raise JoinKeyError(
            f"Join key '{join_key}' is not unique in table: {duplicated[:10]}",
            code="JOIN_KEY_DUPLICATE",
            details={"join_key": join_key, "duplicates": duplicated},
        )

    return usable


# ============================================================
# JOIN
# ============================================================

def attribute_join(
    collection: gpd.GeoDataFrame,
    table: pd.DataFrame,
    join_key: str,
    id_column: str = DEFAULT_ID_COLUMN,
) -> gpd.GeoDataFrame:
    """
    Left-join an attribute table onto a feature collection.

    Parameters
    ----------
    collection : gpd.GeoDataFrame
        Features with an identifier column and ``join_key``.
    table : pd.DataFrame
        Non-spatial table with ``join_key``, at most one row per key.
    join_key : str
        Column present in both inputs (e.g. ``'iso_a2'``).
    id_column : str, optional
        Identifier column name.

    Returns
    -------
    gpd.GeoDataFrame
        One row per feature in input order, index and CRS unchanged, with
        the table's non-key columns appended (null where unmatched).

    Raises
    ------
    SchemaConflictError
        If a non-key table column already exists in ``collection``.
    JoinKeyError
        If ``join_key`` is missing, duplicated in ``table``, or has
        incompatible types on the two sides.
    IdentifierError
        If the identifier column is missing or has nulls.
    TypeError
        If ``table`` carries geometry.

    Examples
    --------
    >>> world_coffee = attribute_join(world, coffee_data, 'name_long')
    """
    joined, _ = _join(collection, table, join_key, id_column)
    return joined


def join_summary(
    collection: gpd.GeoDataFrame,
    table: pd.DataFrame,
    join_key: str,
    id_column: str = DEFAULT_ID_COLUMN,
) -> JoinSummary:
    """Report how many features ``attribute_join`` would match."""
    _, summary = _join(collection, table, join_key, id_column)
    return summary


def _join(
    collection: gpd.GeoDataFrame,
    table: pd.DataFrame,
    join_key: str,
    id_column: str,
) -> tuple[gpd.GeoDataFrame, JoinSummary]:
    usable = _check_join_inputs(collection, table, join_key, id_column)

    added = [column for column in table.columns if column != join_key]
    indicator = "__geocomp_merge__"
    merged = pd.DataFrame(collection).merge(
        pd.DataFrame(usable),
        on=join_key,
        how="left",
        validate="many_to_one",
        indicator=indicator,
    )
    n_matched = int((merged[indicator] == "both").sum())
    merged = merged.drop(columns=indicator)
    merged.index = collection.index

    result = gpd.GeoDataFrame(
        merged[list(collection.columns) + added],
        geometry=collection.geometry.name,
        crs=collection.crs,
    )

    summary = JoinSummary(
        join_key=join_key,
        n_features=len(collection),
        n_table_rows=len(table),
        n_matched=n_matched,
        added_columns=added,
    )
    logger.info(
        "attribute_join on '%s': %d of %d features matched, %d column(s) added",
        join_key,
        summary.n_matched,
        summary.n_features,
        len(added),
    )
    return result, summary
