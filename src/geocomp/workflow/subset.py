"""
Spatial subsetting.

Filters a feature collection by a topological predicate against a query
region. Rows are selected with a boolean mask, so the survivors keep
their identifier column and index exactly as in the input.

Multi-part features
-------------------
A feature such as a country with overseas territories may only partly
satisfy the predicate. Two modes are offered:

- ``whole_feature``: keep the whole feature if any part matches.
- ``split_multipart_before_filter``: split multi-part geometries into
  single parts first (identifiers ``'<id>#<part>'``) and keep only the
  matching parts.

Example Usage
-------------
>>> region = build_query_region(london, 500_000, working_crs='EPSG:27700')
>>> near = spatial_subset(countries, region)
>>> parts = spatial_subset(countries, region, mode='split_multipart_before_filter')
"""

from __future__ import annotations

import logging
import multiprocessing
from concurrent.futures import ThreadPoolExecutor
from typing import Literal, Optional, Union

import geopandas as gpd
import numpy as np
import shapely

from geocomp.config import (
    DEFAULT_ID_COLUMN,
    DEFAULT_PREDICATE,
    DEFAULT_SUBSET_MODE,
    PARALLEL_MAX_WORKERS,
    PARALLEL_MIN_FEATURES,
    PART_ID_SEPARATOR,
    SUBSET_MODES,
    SUBSET_PREDICATES,
)
from geocomp.core.collection import validate_collection
from geocomp.core.crs import require_same_crs
from geocomp.core.exceptions import ProjectionError

logger = logging.getLogger(__name__)

# Predicate name -> GeoSeries method
PREDICATES = {name: name for name in SUBSET_PREDICATES}

SubsetMode = Literal["whole_feature", "split_multipart_before_filter"]

_MULTIPART_TYPES = ("MultiPoint", "MultiLineString", "MultiPolygon", "GeometryCollection")


def _region_geometry(region: Union[gpd.GeoSeries, gpd.GeoDataFrame]):
    """Dissolve the region into one shapely geometry."""
    if not isinstance(region, (gpd.GeoSeries, gpd.GeoDataFrame)):
        raise ProjectionError(
            f"Region must be a GeoSeries or GeoDataFrame carrying a CRS, "
            f"got {type(region).__name__}",
            operation="spatial_subset",
            code="CRS_UNDEFINED",
        )
    geometry = region.geometry.union_all()
    if geometry.is_empty:
        logger.warning("Query region is empty")
    return geometry


def _single_parts(geom) -> list:
    """Flatten ``geom`` into single-part geometries, descending into nested collections."""
    if geom is None or geom.geom_type not in _MULTIPART_TYPES or geom.is_empty:
        return [geom]
    parts = []
    for part in shapely.get_parts(geom):
        parts.extend(_single_parts(part))
    return parts


def split_multipart(
    collection: gpd.GeoDataFrame,
    id_column: str = DEFAULT_ID_COLUMN,
    separator: str = PART_ID_SEPARATOR,
) -> gpd.GeoDataFrame:
    """
    Split multi-part features into single-part features.

    Each part of a multi-part geometry becomes its own row with identifier
    ``f"{id}{separator}{part_index}"``. Nested collections are flattened
    completely and their parts numbered in order. Single-part features and
    empty multi-part features keep their identifier and geometry, so
    splitting an already split collection changes nothing.

    Parameters
    ----------
    collection : gpd.GeoDataFrame
        Collection with an identifier column.
    id_column : str, optional
        Identifier column name.
    separator : str, optional
        Separator between parent identifier and part index.

    Returns
    -------
    gpd.GeoDataFrame
        New collection. Parts keep their parent's index label and
        attributes, and appear in parent order.

    Examples
    --------
    >>> parts = split_multipart(countries)
    >>> parts.loc[parts['name'] == 'United Kingdom', 'feature_id'].tolist()
    ['GBR#0', 'GBR#1']
    """
    validate_collection(collection, id_column, operation="split_multipart")

    geometry_name = collection.geometry.name
    geoms = collection.geometry.to_numpy()
    is_multi = np.array(
        [g is not None and g.geom_type in _MULTIPART_TYPES and not g.is_empty for g in geoms],
        dtype=bool,
    )
    if not is_multi.any():
        return collection.copy()

    parts_per_row = [_single_parts(g) for g in geoms]
    counts = np.array([len(parts) for parts in parts_per_row], dtype=int)
    rows = np.repeat(np.arange(len(collection)), counts)

    result = collection.iloc[rows].copy()
    flat = [part for parts in parts_per_row for part in parts]
    result[geometry_name] = gpd.GeoSeries(flat, crs=collection.crs).array

    part_index = np.concatenate([np.arange(n) for n in counts])
    from_multi = is_multi[rows]
    ids = result[id_column].astype(object).to_numpy(copy=True)
    ids[from_multi] = [
        f"{parent}{separator}{part}"
        for parent, part in zip(ids[from_multi], part_index[from_multi])
    ]
    result[id_column] = ids

    logger.debug(
        "Split %d multi-part features into %d rows",
        int(is_multi.sum()),
        len(result),
    )
    return result


def _evaluate(geoms: gpd.GeoSeries, method: str, geometry) -> np.ndarray:
    return np.asarray(getattr(geoms, method)(geometry), dtype=bool)


def predicate_mask(
    geoms: gpd.GeoSeries,
    geometry,
    predicate: str = DEFAULT_PREDICATE,
    n_workers: Optional[int] = None,
    min_features: int = PARALLEL_MIN_FEATURES,
) -> np.ndarray:
    """
    Evaluate ``predicate`` for every geometry against ``geometry``.

    Parameters
    ----------
    geoms : gpd.GeoSeries
        Geometries to test.
    geometry : shapely geometry
        Region operand.
    predicate : str, optional
        One of ``PREDICATES``.
    n_workers : int, optional
        Thread count for chunked evaluation. Ignored (single call) when
        None, 1, or fewer than ``min_features`` geometries.
    min_features : int, optional
        Minimum collection size for chunked evaluation.

    Returns
    -------
    np.ndarray
        Boolean mask aligned with ``geoms`` positions. Missing geometries
        never match.
    """
    if predicate not in PREDICATES:
        available = ", ".join(PREDICATES)
        raise ValueError(f"Unknown predicate '{predicate}'. Available: {available}")
    method = PREDICATES[predicate]

    n = len(geoms)
    if not n_workers or n_workers <= 1 or n < min_features:
        mask = _evaluate(geoms, method, geometry)
    else:
        # Chunks are contiguous and reassembled in submission order
        bounds = np.linspace(0, n, n_workers + 1, dtype=int)
        chunks = [geoms.iloc[lo:hi] for lo, hi in zip(bounds[:-1], bounds[1:]) if hi > lo]
        logger.debug("Evaluating '%s' on %d features in %d chunks", predicate, n, len(chunks))
        with ThreadPoolExecutor(max_workers=n_workers) as executor:
            futures = [executor.submit(_evaluate, chunk, method, geometry) for chunk in chunks]
            mask = np.concatenate([future.result() for future in futures])

    return mask & geoms.notna().to_numpy()


def spatial_subset(
    collection: gpd.GeoDataFrame,
    region: Union[gpd.GeoSeries, gpd.GeoDataFrame],
    predicate: str = DEFAULT_PREDICATE,
    mode: SubsetMode = DEFAULT_SUBSET_MODE,
    id_column: str = DEFAULT_ID_COLUMN,
    n_workers: Optional[int] = None,
    parallel: bool = False,
    min_features: int = PARALLEL_MIN_FEATURES,
    separator: str = PART_ID_SEPARATOR,
) -> gpd.GeoDataFrame:
    """
    Keep the features of ``collection`` that satisfy ``predicate`` against ``region``.

    ``collection`` and ``region`` must share a CRS: nothing is reprojected
    here, reproject beforehand with ``geocomp.core.crs.reproject``.

    Parameters
    ----------
    collection : gpd.GeoDataFrame
        Features with an identifier column.
    region : gpd.GeoSeries or gpd.GeoDataFrame
        Query region; multiple geometries are dissolved into one.
    predicate : str, optional
        Topological predicate, default ``'intersects'``.
    mode : str, optional
        ``'whole_feature'`` (default) or ``'split_multipart_before_filter'``.
    id_column : str, optional
        Identifier column name.
    n_workers : int, optional
        Number of threads for predicate evaluation.
    parallel : bool, optional
        Use ``PARALLEL_MAX_WORKERS`` (or the CPU count) threads when
        ``n_workers`` is not given.
    min_features : int, optional
        Minimum collection size for threaded evaluation.
    separator : str, optional
        Part identifier separator in split mode.

    Returns
    -------
    gpd.GeoDataFrame
        Matching features in input order, identifiers and index unchanged
        (or derived part identifiers in split mode).

    Raises
    ------
    ProjectionError
        If either input lacks a CRS or the CRSs differ.
    IdentifierError
        If the identifier column is missing or has nulls.
    ValueError
        If ``predicate`` or ``mode`` is unknown.
    """
    if mode not in SUBSET_MODES:
        raise ValueError(f"Unknown subset mode '{mode}'. Available: {', '.join(SUBSET_MODES)}")

    validate_collection(collection, id_column, operation="spatial_subset")
    geometry = _region_geometry(region)
    require_same_crs(collection, region, operation="spatial_subset")

    if mode == "split_multipart_before_filter":
        candidates = split_multipart(collection, id_column=id_column, separator=separator)
    else:
        candidates = collection

    if n_workers is None and parallel:
        n_workers = PARALLEL_MAX_WORKERS or multiprocessing.cpu_count()

    mask = predicate_mask(
        candidates.geometry,
        geometry,
        predicate,
        n_workers=n_workers,
        min_features=min_features,
    )
    result = candidates[mask].copy()

    logger.info(
        "spatial_subset(%s, %s): %d of %d features retained",
        predicate,
        mode,
        len(result),
        len(candidates),
    )
    return result
