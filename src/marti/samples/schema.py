"""Document field names and per-deployment codec settings.

These are pure data containers. Field names are part of the wire contract
with existing collections, so change them only to match a store that
already uses different keys.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from marti.core.config import Config
from marti.core.exceptions import ConfigurationError

# Type tags the search index uses to recognise sample documents
INDEXING_TYPE_KEY = "@type"
INDEXING_TYPE_DESCRIPTION_KEY = "type_description"


@dataclass(frozen=True)
class DocumentSchema:
    """Field names and optional-field switches for entry documents.

    Attributes:
        with_end_date: Emit and read ``end_date`` (the dual-date deployment).
        with_site_details: Emit and read ``site_name``, ``description`` and ``taxa``.
        single_taxon_as_scalar: Write a lone taxon id as a bare string rather
            than a one-element list. Readers accept both forms either way.
        extra_tags: Constant key/value pairs added to every document for the
            downstream search index.
    """

    id_key: str = "_id"
    name_key: str = "name"
    external_id_key: str = "marti_id"
    site_name_key: str = "site_name"
    description_key: str = "description"
    location_key: str = "location"
    coordinates_key: str = "coordinates"
    start_date_key: str = "date"
    end_date_key: str = "end_date"
    taxa_key: str = "taxa"
    url_key: str = "url"
    timestamp_key: str = "timestamp"
    with_end_date: bool = True
    with_site_details: bool = True
    single_taxon_as_scalar: bool = True
    extra_tags: tuple[tuple[str, str], ...] = (
        (INDEXING_TYPE_KEY, "Grassroots:MARTiSample"),
        (INDEXING_TYPE_DESCRIPTION_KEY, "MARTi Sample"),
    )

    @classmethod
    def from_config(cls, config: Config) -> DocumentSchema:
        return cls(
            with_end_date=config.get_bool("schema.end_date", True),
            with_site_details=config.get_bool("schema.site_details", True),
            single_taxon_as_scalar=config.get_bool("schema.single_taxon_as_scalar", True),
        )

    def optional_keys(self) -> tuple[str, ...]:
        """Keys an entry may leave out, and which a re-save must therefore clear."""
        keys = [self.url_key]
        if self.with_end_date:
            keys.append(self.end_date_key)
        if self.with_site_details:
            keys.extend((self.site_name_key, self.description_key, self.taxa_key))
        return tuple(keys)


DEFAULT_SCHEMA = DocumentSchema()


@dataclass(frozen=True)
class StoreSettings:
    """Where entries live and how saved entries are referenced externally.

    Attributes:
        database: Database name.
        collection: Collection holding entry documents.
        api_url: Base URL of the MARTi API. An entry's external reference is
            this URL with the MARTi ID appended. None disables the reference.
    """

    database: str
    collection: str
    api_url: str | None = None

    @classmethod
    def from_config(cls, config: Config) -> StoreSettings:
        database = config.get("mongo.database")
        if not database:
            raise ConfigurationError("No database specified (mongo.database)")

        collection = config.get("mongo.collection")
        if not collection:
            raise ConfigurationError("No collection specified (mongo.collection)")

        api_url = config.get("marti.api_url") or None
        if api_url is None:
            logger.warning("No MARTi API URL specified, saved entries will have no external reference")

        return cls(database=database, collection=collection, api_url=api_url)
