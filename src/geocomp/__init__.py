"""
Spatial subset-and-join workflow.

Filters feature collections by a spatial predicate against a query region,
enriches them with attribute tables, and binds collections together, while
keeping feature identity in an explicit identifier column.

Example usage:
    from geocomp import load_spatial, build_query_region, spatial_subset, attribute_join

    world = load_spatial('data/world.gpkg', id_column='feature_id', id_from='iso_a3')
    london = world_cities[world_cities['name'] == 'London']

    region = build_query_region(london, 500_000, working_crs='EPSG:27700')
    near = spatial_subset(world, region)
    near = attribute_join(near, coffee_data, 'name_long')
"""

from geocomp.core.io import (
    load_spatial,
    save_spatial,
    list_layers,
    supported_formats,
    register_format,
)
from geocomp.core.crs import reproject, ensure_crs, resolve_crs, crs_matches
from geocomp.core.collection import validate_collection, with_identifier, collection_schema
from geocomp.core.exceptions import (
    GeocompError,
    ProjectionError,
    SchemaConflictError,
    SchemaMismatchError,
    IdentifierError,
    JoinKeyError,
    UnsupportedFormatError,
    MalformedFileError,
)
from geocomp.workflow import (
    build_query_region,
    spatial_subset,
    split_multipart,
    attribute_join,
    join_summary,
    JoinSummary,
    concatenate,
    to_multipart,
    subset_join,
)

__version__ = "0.1.0"

__all__ = [
    # I/O
    "load_spatial",
    "save_spatial",
    "list_layers",
    "supported_formats",
    "register_format",
    # CRS
    "reproject",
    "ensure_crs",
    "resolve_crs",
    "crs_matches",
    # Collections
    "validate_collection",
    "with_identifier",
    "collection_schema",
    # Workflow
    "build_query_region",
    "spatial_subset",
    "split_multipart",
    "attribute_join",
    "join_summary",
    "JoinSummary",
    "concatenate",
    "to_multipart",
    "subset_join",
    # Errors
    "GeocompError",
    "ProjectionError",
    "SchemaConflictError",
    "SchemaMismatchError",
    "IdentifierError",
    "JoinKeyError",
    "UnsupportedFormatError",
    "MalformedFileError",
]
