"""
Workflow steps: query regions, spatial subsetting, attribute joins and
concatenation.
"""

from geocomp.workflow.region import build_query_region
from geocomp.workflow.subset import spatial_subset, split_multipart, PREDICATES
from geocomp.workflow.join import attribute_join, join_summary, JoinSummary
from geocomp.workflow.concat import concatenate, to_multipart
from geocomp.workflow.pipeline import subset_join

__all__ = [
    "build_query_region",
    "spatial_subset",
    "split_multipart",
    "PREDICATES",
    "attribute_join",
    "join_summary",
    "JoinSummary",
    "concatenate",
    "to_multipart",
    "subset_join",
]
