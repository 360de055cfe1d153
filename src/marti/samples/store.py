"""Collaborator protocols for entry persistence.

The repository talks to three things it doesn't own: a document store, a job
that records each operation's outcome, and a search indexer. Any object with
the right methods can stand in for them; ``MongoStoreClient``, ``ServiceJob``
and ``NullIndexer`` are the stock implementations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from loguru import logger

from .models import OperationStatus


@runtime_checkable
class StoreClient(Protocol):
    """Minimal document-store contract.

    Implementations raise ``StoreError`` on connection, write or query failure.
    """

    def upsert(
        self,
        collection: str,
        selector: dict[str, Any],
        document: dict[str, Any],
        timestamp_key: str | None = None,
        unset: tuple[str, ...] = (),
    ) -> None:
        """Insert or replace the document matching ``selector``.

        Args:
            collection: Collection name.
            selector: Filter identifying the document to update.
            document: Fields to write.
            timestamp_key: If set, the store stamps this field with its own
                current time on every write.
            unset: Fields to remove from an existing document.
        """
        ...

    def query(
        self,
        collection: str,
        filter: dict[str, Any],
        options: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Return every document matching ``filter``."""
        ...

    def ensure_index(self, collection: str, key: str, kind: Any) -> None:
        """Create an index on ``key`` if it doesn't already exist."""
        ...


@runtime_checkable
class Job(Protocol):
    """Records the outcome of one operation."""

    def set_status(self, status: OperationStatus) -> None: ...

    def add_field_error(self, field_name: str, message: str) -> None: ...


@runtime_checkable
class Indexer(Protocol):
    """Hands saved documents to a secondary search index.

    Implementations raise ``PartialIndexError`` when indexing fails.
    """

    def index(self, job: Job, document: dict[str, Any]) -> None: ...


@dataclass
class ServiceJob:
    """In-process job record."""

    name: str = "Marti"
    status: OperationStatus = OperationStatus.IDLE
    field_errors: dict[str, list[str]] = field(default_factory=dict)

    def set_status(self, status: OperationStatus) -> None:
        logger.debug(f"Job {self.name}: {self.status} -> {status}")
        self.status = status

    def add_field_error(self, field_name: str, message: str) -> None:
        self.field_errors.setdefault(field_name, []).append(message)

    @property
    def has_errors(self) -> bool:
        return bool(self.field_errors)


class NullIndexer:
    """Indexer for deployments without a search index. Accepts everything."""

    def index(self, job: Job, document: dict[str, Any]) -> None:
        logger.debug(f"No search index configured, skipping {document.get('_id')!r}")
