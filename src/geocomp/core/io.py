"""
Spatial data I/O utilities.

Reads and writes feature collections in GeoPackage, Shapefile, GeoJSON and
FlatGeobuf, keeping a registry of supported extensions. Driver failures
are reported as ``MalformedFileError``; unknown extensions as
``UnsupportedFormatError``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import fiona
import geopandas as gpd
from fiona.errors import FionaError
from pyogrio.errors import DataLayerError, DataSourceError

from geocomp.core.collection import with_identifier
from geocomp.core.exceptions import MalformedFileError, UnsupportedFormatError

logger = logging.getLogger(__name__)

# Supported file extensions and their drivers
SPATIAL_FORMATS = {
    ".gpkg": "GPKG",
    ".shp": "ESRI Shapefile",
    ".geojson": "GeoJSON",
    ".json": "GeoJSON",
    ".fgb": "FlatGeobuf",
}

_READ_ERRORS = (DataSourceError, DataLayerError, FionaError)


def supported_formats() -> dict[str, str]:
    """Return a copy of the extension → driver registry."""
    return dict(SPATIAL_FORMATS)


def register_format(extension: str, driver: str) -> None:
    """
    Register an additional file extension.

    Parameters
    ----------
    extension : str
        File extension, with or without the leading dot (e.g. ``'.gml'``).
    driver : str
        OGR driver name (e.g. ``'GML'``).
    """
    ext = extension.lower()
    if not ext.startswith("."):
        ext = f".{ext}"
    SPATIAL_FORMATS[ext] = driver


def _driver_for(path: Path, operation: str) -> str:
    ext = path.suffix.lower()
    if ext not in SPATIAL_FORMATS:
        supported = ", ".join(SPATIAL_FORMATS.keys())
        raise UnsupportedFormatError(
            f"Unsupported spatial format: {ext or '(none)'}. "
            f"Supported formats: {supported}",
            operation=operation,
            details={"path": str(path), "extension": ext},
        )
    return SPATIAL_FORMATS[ext]


def load_spatial(
    path: Union[str, Path],
    layer: Optional[str] = None,
    id_column: Optional[str] = None,
    id_from: Optional[str] = None,
    **kwargs,
) -> gpd.GeoDataFrame:
    """
    Load spatial data from file.

    Detects the format from the file extension.

    Parameters
    ----------
    path : str or Path
        Path to the spatial data file.
    layer : str, optional
        Layer name for multi-layer formats (e.g., GeoPackage).
        If not specified, reads the first layer.
    id_column : str, optional
        If given, add an explicit identifier column of this name
        (see ``with_identifier``).
    id_from : str, optional
        Column to copy identifiers from. Defaults to the row index.
    **kwargs
        Additional arguments passed to geopandas.read_file().

    Returns
    -------
    gpd.GeoDataFrame
        The loaded spatial data.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    UnsupportedFormatError
        If the file format is not supported.
    MalformedFileError
        If the driver cannot read the file or layer.

    Examples
    --------
    >>> world = load_spatial('data/world.gpkg', id_column='feature_id', id_from='iso_a3')
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Spatial file not found: {path}")

    _driver_for(path, "load_spatial")

    read_kwargs = kwargs.copy()
    if layer is not None:
        read_kwargs["layer"] = layer

    try:
        gdf = gpd.read_file(path, **read_kwargs)
    except _READ_ERRORS as exc:
        raise MalformedFileError(
            f"Could not read {path}: {exc}",
            details={"path": str(path), "layer": layer},
        ) from exc

    logger.info("Loaded %d features from %s (crs=%s)", len(gdf), path, gdf.crs)

    if id_column is not None:
        gdf = with_identifier(gdf, id_column=id_column, from_column=id_from)

    return gdf


def save_spatial(
    gdf: gpd.GeoDataFrame,
    path: Union[str, Path],
    layer: Optional[str] = None,
    driver: Optional[str] = None,
    **kwargs,
) -> Path:
    """
    Save spatial data to file.

    Selects the driver from the file extension unless given explicitly.

    Parameters
    ----------
    gdf : gpd.GeoDataFrame
        The spatial data to save.
    path : str or Path
        Output file path. Parent directories are created.
    layer : str, optional
        Layer name for multi-layer formats (e.g., GeoPackage).
    driver : str, optional
        Output driver. Auto-detected from extension if not specified.
    **kwargs
        Additional arguments passed to GeoDataFrame.to_file().

    Returns
    -------
    Path
        The path to the saved file.

    Raises
    ------
    UnsupportedFormatError
        If no driver is given and the extension is not registered.
    """
    path = Path(path)

    if driver is None:
        driver = _driver_for(path, "save_spatial")

    path.parent.mkdir(parents=True, exist_ok=True)

    write_kwargs = kwargs.copy()
    write_kwargs["driver"] = driver
    if layer is not None:
        write_kwargs["layer"] = layer

    gdf.to_file(path, **write_kwargs)
    logger.info("Wrote %d features to %s (%s)", len(gdf), path, driver)

    return path


def list_layers(path: Union[str, Path]) -> list[str]:
    """
    List available layers in a spatial data file.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    MalformedFileError
        If the file cannot be opened by any driver.

    Examples
    --------
    >>> list_layers('data/world.gpkg')
    ['world', 'cities']
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Spatial file not found: {path}")

    try:
        return list(fiona.listlayers(path))
    except FionaError as exc:
        raise MalformedFileError(
            f"Could not list layers of {path}: {exc}",
            operation="list_layers",
            details={"path": str(path)},
        ) from exc
