"""Geotagged sample entries.

Provides the Entry model, its document codec, proximity/time-window query
construction, and an EntryRepository over a pluggable document store.
"""

from .codec import format_timestamp, from_document, parse_timestamp, to_document
from .models import Entry, OperationStatus, Ownership, PermissionsGroup, User
from .query import build_equality_filter, build_search_filter
from .repository import EntryRepository
from .schema import DEFAULT_SCHEMA, DocumentSchema, StoreSettings
from .store import Indexer, Job, NullIndexer, ServiceJob, StoreClient

__all__ = [
    "DEFAULT_SCHEMA",
    "DocumentSchema",
    "Entry",
    "EntryRepository",
    "Indexer",
    "Job",
    "NullIndexer",
    "OperationStatus",
    "Ownership",
    "PermissionsGroup",
    "ServiceJob",
    "StoreClient",
    "StoreSettings",
    "User",
    "build_equality_filter",
    "build_search_filter",
    "format_timestamp",
    "from_document",
    "parse_timestamp",
    "to_document",
]
