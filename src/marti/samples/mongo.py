"""MongoDB implementation of the StoreClient protocol."""

from __future__ import annotations

from typing import Any

import pymongo
from loguru import logger
from pymongo.errors import PyMongoError

from marti.core.config import Config
from marti.core.exceptions import StoreError


class MongoStoreClient:
    """StoreClient backed by one pymongo database.

    The client is opened on construction and closed by ``close()`` (or on
    leaving a ``with`` block). pymongo pools connections internally, so one
    client can be shared by sequential operations.
    """

    def __init__(
        self,
        database: str,
        uri: str | None = None,
        timeout_ms: int = 5000,
        client: Any = None,
    ):
        self.database_name = database
        self._client = client if client is not None else pymongo.MongoClient(uri, serverSelectionTimeoutMS=timeout_ms)
        self._database = self._client[database]

    @classmethod
    def from_config(cls, config: Config) -> MongoStoreClient:
        return cls(
            database=config.get("mongo.database"),
            uri=config.get("mongo.uri"),
            timeout_ms=int(config.get("mongo.timeout_ms", 5000)),
        )

    def upsert(
        self,
        collection: str,
        selector: dict[str, Any],
        document: dict[str, Any],
        timestamp_key: str | None = None,
        unset: tuple[str, ...] = (),
    ) -> None:
        # _id is immutable, an insert takes it from the selector
        fields = {key: value for key, value in document.items() if key != "_id"}
        update: dict[str, Any] = {"$set": fields}
        if timestamp_key:
            update["$currentDate"] = {timestamp_key: True}
        # A key can't be both set and unset in one update
        cleared = {key: "" for key in unset if key not in fields}
        if cleared:
            update["$unset"] = cleared

        try:
            result = self._database[collection].update_one(selector, update, upsert=True)
        except PyMongoError as e:
            raise StoreError(f"Failed to save to {self.database_name}.{collection}: {e}") from e

        if not result.acknowledged:
            raise StoreError(f"Save to {self.database_name}.{collection} was not acknowledged")

        logger.debug(f"Upserted {selector} in {collection} (matched={result.matched_count})")

    def query(
        self,
        collection: str,
        filter: dict[str, Any],
        options: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        try:
            return list(self._database[collection].find(filter, **(options or {})))
        except PyMongoError as e:
            raise StoreError(f"Query on {self.database_name}.{collection} failed: {e}") from e

    def ensure_index(self, collection: str, key: str, kind: Any) -> None:
        try:
            name = self._database[collection].create_index([(key, kind)])
        except PyMongoError as e:
            raise StoreError(f"Failed to add {kind} index on {collection}.{key}: {e}") from e
        logger.info(f"Index {name} ready on {self.database_name}.{collection}")

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> MongoStoreClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
