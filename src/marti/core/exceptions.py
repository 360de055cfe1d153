"""
Marti exception hierarchy.

All marti exceptions inherit from MartiError, making it easy for consumers
to catch library-level errors while still distinguishing specific failure modes.
"""


class MartiError(Exception):
    """Base exception class for all marti errors."""


class ConfigurationError(MartiError):
    """Raised for configuration errors (missing keys, invalid values)."""


class ValidationError(MartiError):
    """Raised when a required field is missing or malformed."""


class EncodingError(MartiError):
    """Raised when an entry cannot be mapped to or from its document form."""


class StoreError(MartiError):
    """Raised for connection, write or query failures in the document store."""


class PartialIndexError(MartiError):
    """Raised when a write succeeded but secondary indexing or enrichment failed."""
