"""
Subset-then-join pipeline.

Chains the workflow steps the way they are used in practice: find the
features near a reference region, then enrich them with an indicator
table. Settings come from ``geocomp.config.load_settings``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

import geopandas as gpd
import pandas as pd

from geocomp.config import load_settings
from geocomp.workflow.join import attribute_join
from geocomp.workflow.subset import spatial_subset

logger = logging.getLogger(__name__)


def subset_join(
    collection: gpd.GeoDataFrame,
    region: Union[gpd.GeoSeries, gpd.GeoDataFrame],
    table: pd.DataFrame,
    join_key: str,
    predicate: Optional[str] = None,
    mode: Optional[str] = None,
    settings: Optional[dict[str, Any]] = None,
) -> gpd.GeoDataFrame:
    """
    Subset ``collection`` by ``region`` and left-join ``table`` onto the result.

    Parameters
    ----------
    collection : gpd.GeoDataFrame
        Features with an identifier column, in the region's CRS.
    region : gpd.GeoSeries or gpd.GeoDataFrame
        Query region, e.g. from ``build_query_region``.
    table : pd.DataFrame
        Attribute table keyed by ``join_key``.
    join_key : str
        Column present in both ``collection`` and ``table``.
    predicate, mode : str, optional
        Override the configured predicate and subset mode.
    settings : dict, optional
        Settings from ``load_settings``; defaults are used when omitted.

    Returns
    -------
    gpd.GeoDataFrame
        Matching features with the table's columns appended.

    Examples
    --------
    >>> region = build_query_region(london, 500_000, working_crs='EPSG:27700')
    >>> near_london = subset_join(world, region, coffee_data, 'name_long')
    """
    settings = settings if settings is not None else load_settings()
    id_column = settings['id_column']

    n_workers = None
    if settings['parallel_enabled']:
        n_workers = settings['parallel_max_workers']

    subset = spatial_subset(
        collection,
        region,
        predicate=predicate or settings['predicate'],
        mode=mode or settings['subset_mode'],
        id_column=id_column,
        n_workers=n_workers,
        parallel=settings['parallel_enabled'],
        min_features=settings['parallel_min_features'],
        separator=settings['part_id_separator'],
    )
    logger.debug("subset_join: %d features before join", len(subset))
    return attribute_join(subset, table, join_key, id_column=id_column)
