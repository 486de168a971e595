"""
Core utilities: errors, CRS handling, feature collections and I/O.
"""

from geocomp.core.exceptions import GeocompError, ProjectionError
from geocomp.core.crs import reproject, ensure_crs, resolve_crs
from geocomp.core.collection import validate_collection, with_identifier
from geocomp.core.io import load_spatial, save_spatial

__all__ = [
    "GeocompError",
    "ProjectionError",
    "reproject",
    "ensure_crs",
    "resolve_crs",
    "validate_collection",
    "with_identifier",
    "load_spatial",
    "save_spatial",
]
