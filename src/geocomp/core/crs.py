"""
Coordinate Reference System (CRS) utilities.

Resolves CRS definitions, reprojects collections and regions, and checks
that two layers share a CRS before they are compared spatially. Nothing
in the workflow reprojects implicitly: callers reproject with these
functions and every failure surfaces as a ``ProjectionError``.
"""

from __future__ import annotations

import logging
from typing import Any, Union
import warnings

import geopandas as gpd
from pyproj import CRS
from pyproj.exceptions import CRSError

from geocomp.config import DEFAULT_CRS
from geocomp.core.exceptions import ProjectionError

logger = logging.getLogger(__name__)

# Common CRS codes
WGS84 = DEFAULT_CRS
WEB_MERCATOR = "EPSG:3857"

GeoObject = Union[gpd.GeoDataFrame, gpd.GeoSeries]


def resolve_crs(value: Any, operation: str = "resolve_crs") -> CRS:
    """
    Resolve any user CRS input into a ``pyproj.CRS``.

    Parameters
    ----------
    value : str, int, dict or pyproj.CRS
        Anything ``pyproj.CRS.from_user_input`` accepts.
    operation : str, optional
        Operation name reported in the error.

    Returns
    -------
    pyproj.CRS

    Raises
    ------
    ProjectionError
        If ``value`` is None or cannot be resolved.

    Examples
    --------
    >>> resolve_crs("EPSG:27700").is_projected
    True
    """
    if value is None:
        raise ProjectionError(
            "CRS is undefined",
            operation=operation,
            code="CRS_UNDEFINED",
        )
    try:
        return CRS.from_user_input(value)
    except CRSError as exc:
        raise ProjectionError(
            f"Cannot resolve CRS {value!r}: {exc}",
            operation=operation,
            code="CRS_UNRESOLVABLE",
            details={"crs": str(value)},
        ) from exc


def reproject(
    obj: GeoObject,
    target_crs: Any,
    operation: str = "reproject",
) -> GeoObject:
    """
    Reproject a GeoDataFrame or GeoSeries to ``target_crs``.

    Always returns a new object; the input is never modified.

    Raises
    ------
    ProjectionError
        If the input has no CRS or ``target_crs`` cannot be resolved.

    Examples
    --------
    >>> countries_bng = reproject(countries, "EPSG:27700")
    """
    target = resolve_crs(target_crs, operation=operation)

    if obj.crs is None:
        raise ProjectionError(
            f"Cannot reproject to {target.to_string()}: input has no CRS",
            operation=operation,
            code="CRS_UNDEFINED",
            details={"target_crs": target.to_string()},
        )

    if obj.crs.equals(target):
        return obj.copy()

    logger.debug("Reprojecting %d geometries %s -> %s", len(obj), obj.crs.to_string(), target.to_string())
    return obj.to_crs(target)


def ensure_crs(
    gdf: gpd.GeoDataFrame,
    target_crs: Any = WGS84,
    allow_override: bool = False,
) -> gpd.GeoDataFrame:
    """
    Ensure a GeoDataFrame has the specified CRS.

    If the GeoDataFrame has a different CRS, it will be reprojected.
    If the GeoDataFrame has no CRS, either the target CRS will be assigned
    (if allow_override=True) or a ProjectionError will be raised.

    Parameters
    ----------
    gdf : gpd.GeoDataFrame
        The GeoDataFrame to check/transform.
    target_crs : str, optional
        Target CRS. Default is WGS84 (EPSG:4326).
    allow_override : bool, optional
        If True and the GeoDataFrame has no CRS, assign the target CRS
        without reprojection. Default is False.

    Returns
    -------
    gpd.GeoDataFrame
        A copy in the target CRS.

    Warnings
    --------
    ``allow_override=True`` assumes the coordinates are already in the
    target CRS. Only use it when you are certain of the source system.
    """
    target = resolve_crs(target_crs, operation="ensure_crs")

    if gdf.crs is None:
        if not allow_override:
            raise ProjectionError(
                "GeoDataFrame has no CRS. Set allow_override=True to assign "
                f"{target.to_string()} without reprojection, or set CRS explicitly.",
                operation="ensure_crs",
                code="CRS_UNDEFINED",
            )
        warnings.warn(
            f"GeoDataFrame had no CRS. Assigned {target.to_string()} without reprojection.",
            UserWarning,
        )
        return gdf.set_crs(target)

    return reproject(gdf, target, operation="ensure_crs")


def crs_matches(a: GeoObject, b: GeoObject) -> bool:
    """
    Check if two layers have the same CRS.

    Returns False if either has no CRS.
    """
    if a.crs is None or b.crs is None:
        return False
    return a.crs.equals(b.crs)


def require_same_crs(
    a: GeoObject,
    b: GeoObject,
    operation: str,
    names: tuple[str, str] = ("collection", "region"),
) -> None:
    """Raise ProjectionError unless ``a`` and ``b`` share a defined CRS."""
    for obj, name in zip((a, b), names):
        if obj.crs is None:
            raise ProjectionError(
                f"{name} has no CRS",
                operation=operation,
                code="CRS_UNDEFINED",
                details={"input": name},
            )

    if not a.crs.equals(b.crs):
        raise ProjectionError(
            f"{names[0]} CRS ({a.crs.to_string()}) differs from {names[1]} CRS "
            f"({b.crs.to_string()}); reproject one of them first",
            operation=operation,
            code="CRS_MISMATCH",
            details={names[0]: a.crs.to_string(), names[1]: b.crs.to_string()},
        )


def estimate_utm_zone(lon: float) -> int:
    """
    Estimate the UTM zone for a longitude in degrees.

    Examples
    --------
    >>> estimate_utm_zone(-0.1)  # London
    30
    """
    # UTM zones are 6 degrees wide, starting at -180
    zone = int((lon + 180) / 6) + 1
    return min(max(zone, 1), 60)


def get_utm_crs(lon: float, lat: float) -> str:
    """
    Get the WGS84 UTM CRS code for a location.

    Examples
    --------
    >>> get_utm_crs(-0.1, 51.5)
    'EPSG:32630'
    >>> get_utm_crs(151.2, -33.9)
    'EPSG:32756'
    """
    zone = estimate_utm_zone(lon)
    if lat >= 0:
        return f"EPSG:326{zone:02d}"
    return f"EPSG:327{zone:02d}"


def local_utm_crs(obj: GeoObject) -> str:
    """
    Choose the UTM CRS covering the centroid of ``obj``.

    The centroid is taken in WGS84, so ``obj`` must have a CRS.
    """
    geographic = reproject(obj, WGS84, operation="local_utm_crs")
    centroid = geographic.geometry.union_all().centroid
    return get_utm_crs(centroid.x, centroid.y)
