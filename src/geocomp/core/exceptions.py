"""
Error taxonomy for the subset-and-join workflow.

Every error raised by geocomp inherits from ``GeocompError`` and carries
the operation that failed, a machine-readable code and a ``details``
mapping naming the offending input, so callers can fix the input
(rename a column, reproject a layer) instead of chasing a downstream
failure.

Categories
----------
- ``ProjectionError``        CRS missing, unresolvable or incompatible.
- ``SchemaConflictError``    join would produce duplicate column names.
- ``SchemaMismatchError``    concatenation of incompatible schemas.
- ``IdentifierError``        missing, null or duplicate feature identifiers.
- ``JoinKeyError``           unusable join key.
- ``UnsupportedFormatError`` file extension without a registered driver.
- ``MalformedFileError``     driver could not read the file or layer.

None of these are retryable: every operation is a deterministic function
of its inputs.
"""

from __future__ import annotations

from typing import Any, Optional


class GeocompError(Exception):
    """
    Base exception for all workflow errors.

    Attributes
    ----------
    message : str
        Human-readable error description.
    operation : str
        Operation where the error occurred (e.g. ``"attribute_join"``).
    code : str
        Machine-readable error code (e.g. ``"SCHEMA_CONFLICT"``).
    details : dict
        Structured context: offending columns, input positions, CRS strings.
    """

    default_operation: str = ""
    default_code: str = "GEOCOMP_ERROR"

    def __init__(
        self,
        message: str = "",
        *,
        operation: str = "",
        code: str = "",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.operation = operation or self.default_operation
        self.code = code or self.default_code
        self.details = dict(details or {})
        super().__init__(message)

    def to_error_dict(self) -> dict[str, Any]:
        """Return a structured error payload with stable keys."""
        return {
            "error": type(self).__name__,
            "code": self.code,
            "operation": self.operation,
            "message": self.message,
            "details": dict(self.details),
        }


class ProjectionError(GeocompError, ValueError):
    """A CRS is missing, cannot be resolved, or is unsuitable for the operation."""

    default_code = "PROJECTION_ERROR"


class SchemaConflictError(GeocompError, ValueError):
    """A join would introduce a column name already present in the collection."""

    default_operation = "attribute_join"
    default_code = "SCHEMA_CONFLICT"

    @property
    def columns(self) -> list[str]:
        return list(self.details.get("columns", []))


class SchemaMismatchError(GeocompError, ValueError):
    """Collections to be concatenated do not share a schema."""

    default_operation = "concatenate"
    default_code = "SCHEMA_MISMATCH"


class IdentifierError(GeocompError, ValueError):
    """The identifier column is missing, has nulls, or is not unique."""

    default_code = "IDENTIFIER_ERROR"


class JoinKeyError(GeocompError, ValueError):
    """The join key is missing, duplicated in the table, or has incompatible types."""

    default_operation = "attribute_join"
    default_code = "JOIN_KEY_ERROR"


class UnsupportedFormatError(GeocompError, ValueError):
    """No driver is registered for the requested file format."""

    default_code = "UNSUPPORTED_FORMAT"


class MalformedFileError(GeocompError):
    """The file exists but the driver could not read it."""

    default_operation = "load_spatial"
    default_code = "MALFORMED_FILE"
