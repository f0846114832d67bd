"""
Error taxonomy shared by the catalog, vendor and matching layers.

Every error carries a human-readable message (shown as-is by the
presentation layer) plus a short ``kind`` tag.
"""


class PmsFinderError(Exception):
    """Base exception for all pmsfinder errors."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SchemaViolation(PmsFinderError, ValueError):
    """A record (or a whole file) failed structural validation."""

    kind = "schema_violation"


class UpstreamUnavailable(PmsFinderError):
    """Vendor timeout, connection failure, HTTP error or non-JSON body."""

    kind = "upstream_unavailable"

    def __init__(self, message: str, vendor: str = ""):
        super().__init__(message)
        self.vendor = vendor


class UpstreamTimeout(UpstreamUnavailable):
    """Vendor did not answer within the request timeout. Safe to retry."""

    kind = "upstream_timeout"


class MalformedUpstreamShape(PmsFinderError):
    """Vendor response parsed as JSON but failed the minimal shape check."""

    kind = "malformed_upstream_shape"


class PartitionNotFound(PmsFinderError):
    """No local file for the requested partition and no vendor to fall back to."""

    kind = "partition_not_found"


class CatalogFileError(PmsFinderError):
    """A local catalog file exists but cannot be read as a JSON array."""

    kind = "catalog_file_error"


class InvalidHexError(PmsFinderError, ValueError):
    """Target colour is not a 6-digit hex value."""

    kind = "invalid_hex"
