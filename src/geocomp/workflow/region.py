"""
Query region construction.

Buffers a reference feature by a distance measured in a projected CRS and
returns the buffer in the CRS the caller will subset in. Buffering in a
geographic CRS would treat degrees as distances, so the working CRS must
be projected.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Optional, Union

import geopandas as gpd

from geocomp.config import BUFFER_RESOLUTION, DEFAULT_WORKING_CRS
from geocomp.core.crs import local_utm_crs, reproject, resolve_crs
from geocomp.core.exceptions import ProjectionError

logger = logging.getLogger(__name__)

_OPERATION = "build_query_region"


def build_query_region(
    feature: Union[gpd.GeoDataFrame, gpd.GeoSeries],
    distance: float,
    working_crs: Any = DEFAULT_WORKING_CRS,
    output_crs: Optional[Any] = None,
    resolution: int = BUFFER_RESOLUTION,
) -> gpd.GeoSeries:
    """
    Buffer a single feature into a query region.

    Parameters
    ----------
    feature : gpd.GeoDataFrame or gpd.GeoSeries
        Exactly one reference feature with a defined CRS.
    distance : float
        Non-negative buffer distance in the linear unit of ``working_crs``
        (metres for UTM and most national grids).
    working_crs : str or pyproj.CRS, optional
        Projected CRS in which to buffer. ``'utm'`` picks the UTM zone
        containing the feature's centroid.
    output_crs : str or pyproj.CRS, optional
        CRS of the returned region. Defaults to the feature's CRS.
    resolution : int, optional
        Segments per quarter circle used to approximate round joins.

    Returns
    -------
    gpd.GeoSeries
        One-element series holding the region, in ``output_crs``.

    Raises
    ------
    ProjectionError
        If the feature has no CRS, a CRS cannot be resolved, or the
        working CRS is geographic.
    ValueError
        If ``distance`` is not a finite non-negative number or
        ``feature`` is not a single, non-empty geometry.

    Examples
    --------
    >>> london = cities[cities['name'] == 'London']
    >>> region = build_query_region(london, 500_000, working_crs='EPSG:27700')
    >>> region.crs.to_epsg()
    4326
    """
    if not distance >= 0 or math.isinf(distance):
        raise ValueError(f"Buffer distance must be a finite non-negative number: {distance}")

    geoms = feature.geometry if isinstance(feature, gpd.GeoDataFrame) else feature
    if len(geoms) != 1:
        raise ValueError(f"Expected exactly one reference feature, got {len(geoms)}")
    if geoms.isna().iloc[0] or geoms.iloc[0].is_empty:
        raise ValueError("Reference feature has no geometry")

    if geoms.crs is None:
        raise ProjectionError(
            "Reference feature has no CRS; set it before building a region",
            operation=_OPERATION,
            code="CRS_UNDEFINED",
        )

    target = resolve_crs(output_crs if output_crs is not None else geoms.crs, operation=_OPERATION)

    if isinstance(working_crs, str) and working_crs.lower() == "utm":
        working_crs = local_utm_crs(geoms)
    working = resolve_crs(working_crs, operation=_OPERATION)

    if not working.is_projected:
        raise ProjectionError(
            f"Working CRS {working.to_string()} is not projected; "
            "buffering needs a distance-preserving CRS",
            operation=_OPERATION,
            code="CRS_NOT_PROJECTED",
            details={"working_crs": working.to_string()},
        )

    projected = reproject(geoms, working, operation=_OPERATION)
    buffered = projected.buffer(distance, quad_segs=resolution)
    region = reproject(buffered, target, operation=_OPERATION).reset_index(drop=True)

    logger.info(
        "Built query region: distance=%s in %s, output %s",
        distance,
        working.to_string(),
        target.to_string(),
    )
    return region
