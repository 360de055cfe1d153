"""EntryRepository: save, look up and search entries in a document store.

Every operation is one synchronous round trip to the store. Nothing is
cached between calls and nothing is retried; the store client owns any
connection pooling and timeouts.
"""

from __future__ import annotations

from datetime import date
from typing import Any
from urllib.parse import urlsplit

import pymongo
from bson import ObjectId
from loguru import logger

from marti.core.exceptions import PartialIndexError, StoreError, ValidationError

from .codec import from_document, to_document
from .models import Entry, OperationStatus
from .query import build_equality_filter, build_search_filter
from .schema import DEFAULT_SCHEMA, DocumentSchema, StoreSettings
from .store import Indexer, Job, NullIndexer, StoreClient


class EntryRepository:
    """Entry persistence over a StoreClient.

    Example::

        repo = EntryRepository(MongoStoreClient("grassroots"), StoreSettings("grassroots", "marti"))
        job = ServiceJob()
        repo.save(entry, job)
        nearby = repo.search_near(52.62, 1.22, job, max_distance=5000)
    """

    def __init__(
        self,
        store: StoreClient,
        settings: StoreSettings,
        schema: DocumentSchema = DEFAULT_SCHEMA,
        indexer: Indexer | None = None,
    ) -> None:
        self.store = store
        self.settings = settings
        self.schema = schema
        self.indexer = indexer or NullIndexer()

    @property
    def collection(self) -> str:
        return self.settings.collection

    # -- Writes --------------------------------------------------------------

    def save(self, entry: Entry, job: Job) -> OperationStatus:
        """Upsert an entry and pass it on to the search index.

        A new entry gets its store id once the write has succeeded. The
        returned status is also set on ``job``:

        - FAILED: the entry couldn't be encoded or the write failed.
        - PARTIALLY_SUCCEEDED: written, but the external reference or the
          indexing step failed.
        - SUCCEEDED: written and indexed.
        """
        status = OperationStatus.FAILED

        try:
            store_id = entry.id if entry.id is not None else ObjectId()
            document = to_document(entry, self.schema)

            if document is None:
                logger.error(f"Failed to get entry \"{entry.name}\" as a document, nothing saved")
                return status

            document[self.schema.id_key] = store_id
            selector = {self.schema.id_key: store_id}

            unset = tuple(key for key in self.schema.optional_keys() if key not in document)

            try:
                self.store.upsert(self.collection, selector, document, self.schema.timestamp_key, unset=unset)
            except StoreError as e:
                logger.error(f"Failed to save entry \"{entry.name}\": {e}")
                return status

            entry.id = store_id
            complete = True

            if self.settings.api_url:
                try:
                    document[self.schema.url_key] = self._external_reference(entry)
                except PartialIndexError as e:
                    logger.warning(f"Saved entry \"{entry.name}\" without an external reference: {e}")
                    complete = False

            try:
                self.indexer.index(job, document)
            except PartialIndexError as e:
                logger.warning(f"Saved entry \"{entry.name}\" but indexing failed: {e}")
                complete = False

            status = OperationStatus.SUCCEEDED if complete else OperationStatus.PARTIALLY_SUCCEEDED
            logger.info(f"Saved entry \"{entry.name}\" as {store_id} ({status})")
            return status
        finally:
            job.set_status(status)

    def _external_reference(self, entry: Entry) -> str:
        url = f"{self.settings.api_url}{entry.external_id}"
        try:
            parts = urlsplit(url)
        except ValueError as e:
            raise PartialIndexError(f"\"{url}\" is not a valid URL") from e
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise PartialIndexError(f"\"{url}\" is not an http(s) URL")
        return url

    def ensure_indexes(self) -> None:
        """Create the 2dsphere index proximity searches depend on.

        Raises:
            StoreError: If the index can't be created.
        """
        self.store.ensure_index(self.collection, self.schema.location_key, pymongo.GEOSPHERE)

    # -- Lookups -------------------------------------------------------------

    def find_by_id(self, store_id: ObjectId | str) -> Entry | None:
        """Load the entry with the given store id (an ObjectId or its hex string)."""
        if isinstance(store_id, str):
            if not ObjectId.is_valid(store_id):
                logger.error(f"\"{store_id}\" is not a valid store id")
                return None
            store_id = ObjectId(store_id)

        return self._find_one(build_equality_filter(self.schema.id_key, store_id))

    def find_by_external_id(self, external_id: str) -> Entry | None:
        """Load the entry with the given MARTi ID. Duplicates count as not found."""
        return self._find_one(build_equality_filter(self.schema.external_id_key, external_id))

    def _find_one(self, query: dict[str, Any]) -> Entry | None:
        try:
            hits = self.store.query(self.collection, query)
        except StoreError as e:
            logger.error(f"Lookup {query} failed: {e}")
            return None

        if len(hits) != 1:
            logger.error(f"Lookup {query} matched {len(hits)} entries, expected exactly 1")
            return None

        return from_document(hits[0], self.schema)

    def list_entries(self) -> list[Entry]:
        """All entries sorted by name. Documents that don't decode are skipped."""
        hits = self.store.query(self.collection, {}, {"sort": [(self.schema.name_key, pymongo.ASCENDING)]})
        entries = [entry for entry in (from_document(hit, self.schema) for hit in hits) if entry is not None]

        if len(entries) != len(hits):
            logger.warning(f"Skipped {len(hits) - len(entries)} of {len(hits)} undecodable entries")

        return entries

    # -- Search --------------------------------------------------------------

    def search(self, query: dict[str, Any], job: Job) -> list[Entry]:
        """Run a filter and decode every hit.

        Hits that don't decode are skipped. The job ends up SUCCEEDED if every
        hit decoded, PARTIALLY_SUCCEEDED if some did and FAILED if none did or
        the query itself failed.
        """
        status = OperationStatus.FAILED
        entries: list[Entry] = []

        try:
            hits = self.store.query(self.collection, query)
        except StoreError as e:
            logger.error(f"Search failed: {e}")
            job.set_status(status)
            return entries

        for hit in hits:
            entry = from_document(hit, self.schema)
            if entry is not None:
                entries.append(entry)

        if len(entries) == len(hits):
            status = OperationStatus.SUCCEEDED
        elif entries:
            status = OperationStatus.PARTIALLY_SUCCEEDED
            logger.warning(f"Decoded {len(entries)} of {len(hits)} search hits")

        job.set_status(status)
        return entries

    def search_near(
        self,
        latitude: float,
        longitude: float,
        job: Job,
        start_date: date | str | None = None,
        end_date: date | str | None = None,
        min_distance: float = 0,
        max_distance: float = 0,
    ) -> list[Entry]:
        """Search for entries around a point. Invalid arguments fail the job."""
        try:
            query = build_search_filter(
                latitude,
                longitude,
                start_date=start_date,
                end_date=end_date,
                min_distance=min_distance,
                max_distance=max_distance,
                schema=self.schema,
            )
        except ValidationError as e:
            logger.error(f"Invalid search: {e}")
            job.set_status(OperationStatus.FAILED)
            return []

        return self.search(query, job)
