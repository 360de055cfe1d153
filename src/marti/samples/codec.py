"""Conversion between Entry objects and store documents.

Documents look like::

    {
        "_id": ObjectId(...),
        "name": "Norwich airborne 3",
        "marti_id": "MARTi-0042",
        "site_name": "Norwich Research Park",
        "description": "...",
        "location": {"type": "Point", "coordinates": [1.2, 52.1]},
        "date": "2024-03-01",
        "end_date": "2024-03-08T12:00:00",
        "taxa": ["2", "1224"],
    }

Location is a GeoJSON Point so the collection can carry a 2dsphere index.
GeoJSON puts longitude first.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from bson import ObjectId
from loguru import logger

from marti.core.exceptions import EncodingError, ValidationError

from .models import Entry, Ownership
from .schema import DEFAULT_SCHEMA, DocumentSchema

GEOJSON_POINT = "Point"
_DATE_ONLY_LENGTH = len("YYYY-MM-DD")


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def format_timestamp(value: date) -> str:
    """Render a date as ``YYYY-MM-DD`` and a datetime as ``YYYY-MM-DDTHH:MM:SS[.ffffff]``."""
    if isinstance(value, date):
        return value.isoformat()
    raise EncodingError(f"Cannot format {value!r} as a timestamp")


def parse_timestamp(value: str) -> date:
    """Inverse of ``format_timestamp``. Raises ValidationError on malformed input."""
    if not isinstance(value, str):
        raise ValidationError(f"Timestamp must be a string, got {type(value).__name__}")
    text = value.strip()
    try:
        if len(text) == _DATE_ONLY_LENGTH:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise ValidationError(f"Malformed timestamp {value!r}") from e


# ---------------------------------------------------------------------------
# Entry -> document
# ---------------------------------------------------------------------------


def to_document(entry: Entry, schema: DocumentSchema = DEFAULT_SCHEMA) -> dict[str, Any] | None:
    """Encode an entry. Returns None (and logs) if the entry can't be encoded."""
    try:
        return _encode(entry, schema)
    except (EncodingError, ValidationError) as e:
        logger.error(f"Failed to get entry \"{entry.name}\" as a document: {e}")
        return None


def _encode(entry: Entry, schema: DocumentSchema) -> dict[str, Any]:
    if entry.released:
        raise EncodingError("entry has been released")
    if not entry.name:
        raise EncodingError("entry has no name")
    if not entry.external_id:
        raise EncodingError("entry has no external id")
    if entry.start_time is None:
        raise EncodingError("entry has no start time")

    doc: dict[str, Any] = {}
    if entry.id is not None:
        doc[schema.id_key] = entry.id

    doc[schema.name_key] = entry.name
    doc[schema.external_id_key] = entry.external_id

    if schema.with_site_details:
        _set_non_trivial(doc, schema.site_name_key, entry.site_name)
        _set_non_trivial(doc, schema.description_key, entry.comments)

    doc[schema.location_key] = {
        "type": GEOJSON_POINT,
        schema.coordinates_key: [float(entry.longitude), float(entry.latitude)],
    }

    doc[schema.start_date_key] = format_timestamp(entry.start_time)
    if schema.with_end_date and entry.end_time is not None:
        doc[schema.end_date_key] = format_timestamp(entry.end_time)

    if schema.with_site_details and entry.taxon_ids:
        if len(entry.taxon_ids) == 1 and schema.single_taxon_as_scalar:
            doc[schema.taxa_key] = entry.taxon_ids[0]
        else:
            doc[schema.taxa_key] = list(entry.taxon_ids)

    for key, value in schema.extra_tags:
        doc[key] = value

    return doc


def _set_non_trivial(doc: dict[str, Any], key: str, value: str | None) -> None:
    if value:
        doc[key] = value


# ---------------------------------------------------------------------------
# Document -> entry
# ---------------------------------------------------------------------------


def from_document(document: Mapping[str, Any], schema: DocumentSchema = DEFAULT_SCHEMA) -> Entry | None:
    """Decode a stored document. Returns None (and logs) if it isn't a valid entry.

    Permissions are not persisted, so a decoded entry gets a fresh empty
    group. It holds no user reference.
    """
    try:
        values = _decode(document, schema)
    except (EncodingError, ValidationError) as e:
        logger.warning(f"Failed to get entry from document {document.get(schema.id_key)!r}: {e}")
        return None

    return Entry.create(**values, user=None, user_ownership=Ownership.OWNED)


def _decode(document: Mapping[str, Any], schema: DocumentSchema) -> dict[str, Any]:
    store_id = document.get(schema.id_key)
    if not isinstance(store_id, ObjectId):
        if isinstance(store_id, str) and ObjectId.is_valid(store_id):
            store_id = ObjectId(store_id)
        else:
            raise EncodingError(f"missing or invalid \"{schema.id_key}\"")

    name = _required_string(document, schema.name_key)
    external_id = _required_string(document, schema.external_id_key)
    longitude, latitude = _coordinates(document, schema)

    values: dict[str, Any] = {
        "id": store_id,
        "name": name,
        "external_id": external_id,
        "latitude": latitude,
        "longitude": longitude,
        "start_time": _optional_timestamp(document, schema.start_date_key),
    }

    if schema.with_end_date:
        values["end_time"] = _optional_timestamp(document, schema.end_date_key)

    if schema.with_site_details:
        values["site_name"] = _optional_string(document, schema.site_name_key)
        values["comments"] = _optional_string(document, schema.description_key)
        values["taxon_ids"] = _taxa(document.get(schema.taxa_key))

    return values


def _required_string(document: Mapping[str, Any], key: str) -> str:
    value = document.get(key)
    if not isinstance(value, str):
        raise EncodingError(f"missing \"{key}\"")
    return value


def _optional_string(document: Mapping[str, Any], key: str) -> str | None:
    value = document.get(key)
    if value is not None and not isinstance(value, str):
        raise EncodingError(f"\"{key}\" must be a string")
    return value


def _coordinates(document: Mapping[str, Any], schema: DocumentSchema) -> tuple[float, float]:
    location = document.get(schema.location_key)
    if not isinstance(location, Mapping):
        raise EncodingError(f"missing \"{schema.location_key}\"")

    coords = location.get(schema.coordinates_key)
    if not isinstance(coords, list | tuple) or len(coords) != 2:
        raise ValidationError(f"\"{schema.coordinates_key}\" must be a [longitude, latitude] pair")

    for value in coords:
        if isinstance(value, bool) or not isinstance(value, int | float):
            raise ValidationError(f"non-numeric coordinate {value!r}")

    return float(coords[0]), float(coords[1])


def _optional_timestamp(document: Mapping[str, Any], key: str) -> date | None:
    value = document.get(key)
    if value is None:
        return None
    return parse_timestamp(value)


def _taxa(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list | tuple) and all(isinstance(t, str) for t in value):
        return tuple(value)
    raise EncodingError(f"taxa must be a string or a list of strings, got {value!r}")
