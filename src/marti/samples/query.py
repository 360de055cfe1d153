"""Query construction for entry lookups and proximity searches.

A proximity search against a 2dsphere-indexed ``location`` looks like::

    {
        "location": {
            "$nearSphere": {
                "$geometry": {"type": "Point", "coordinates": [lon, lat]},
                "$minDistance": 100,
                "$maxDistance": 5000,
            }
        },
        "end_date": {"$lte": "<start date>"},
        "date": {"$gte": "<end date>"},
    }

Distance bounds are in metres. A bound of 0 is left out rather than sent as
a literal zero. Either date clause is left out when its date isn't given, so
a search without dates matches on distance alone.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Any

from marti.core.exceptions import ValidationError

from .codec import GEOJSON_POINT, format_timestamp, parse_timestamp
from .schema import DEFAULT_SCHEMA, DocumentSchema


def build_search_filter(
    latitude: float,
    longitude: float,
    start_date: date | str | None = None,
    end_date: date | str | None = None,
    min_distance: float = 0,
    max_distance: float = 0,
    schema: DocumentSchema = DEFAULT_SCHEMA,
) -> dict[str, Any]:
    """Build a ``$nearSphere`` filter around a point with optional date bounds.

    Args:
        latitude: Latitude of the search centre.
        longitude: Longitude of the search centre.
        start_date: Start of the time window. Dates, datetimes and canonical
            timestamp strings are accepted.
        end_date: End of the time window.
        min_distance: Minimum distance in metres, 0 for no lower bound.
        max_distance: Maximum distance in metres, 0 for no upper bound.
        schema: Field names to query against.

    Returns:
        A new filter dict, sharing nothing with the arguments.

    Raises:
        ValidationError: On a non-numeric coordinate, a negative distance,
            or a malformed date.
    """
    near: dict[str, Any] = {
        "$geometry": {
            "type": GEOJSON_POINT,
            "coordinates": [_number(longitude, "longitude"), _number(latitude, "latitude")],
        }
    }

    if _distance(min_distance, "min_distance"):
        near["$minDistance"] = min_distance
    if _distance(max_distance, "max_distance"):
        near["$maxDistance"] = max_distance

    query: dict[str, Any] = {schema.location_key: {"$nearSphere": near}}

    if start_date is not None:
        query[schema.end_date_key] = {"$lte": _timestamp(start_date)}
    if end_date is not None:
        query[schema.start_date_key] = {"$gte": _timestamp(end_date)}

    return query


def build_equality_filter(key: str, value: Any) -> dict[str, Any]:
    """Match documents whose ``key`` equals ``value``."""
    return {key: value}


def _number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ValidationError(f"{name} must be finite, got {value}")
    return float(value)


def _distance(value: Any, name: str) -> bool:
    """True if the bound should be sent."""
    if _number(value, name) < 0:
        raise ValidationError(f"{name} can't be negative, got {value}")
    return value != 0


def _timestamp(value: date | str) -> str:
    if isinstance(value, str):
        value = parse_timestamp(value)
    if not isinstance(value, date):
        raise ValidationError(f"Expected a date, got {value!r}")
    return format_timestamp(value)
