"""Build and save entries from named submission parameters.

Submission forms send values keyed by display name ("Name", "MARTi Id",
"Latitude", ...). Missing or malformed required values are reported on the
job against the parameter that caused them, and nothing is saved.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any

from bson import ObjectId
from loguru import logger

from marti.core.exceptions import ValidationError

from .codec import parse_timestamp
from .models import Entry, OperationStatus, PermissionsGroup, User
from .repository import EntryRepository
from .store import Job

ID_PARAM = "Id"
NAME_PARAM = "Name"
MARTI_ID_PARAM = "MARTi Id"
LATITUDE_PARAM = "Latitude"
LONGITUDE_PARAM = "Longitude"
START_DATE_PARAM = "Start Date"
END_DATE_PARAM = "End Date"
SITE_NAME_PARAM = "Site Name"
DESCRIPTION_PARAM = "Description"
TAXA_PARAM = "Taxa"

# Picker value meaning "new sample" rather than an existing one
EMPTY_OPTION = "<empty>"

VALUE_REQUIRED = "Value required"


def entry_from_parameters(
    params: Mapping[str, Any],
    job: Job,
    user: User | None = None,
    permissions: PermissionsGroup | None = None,
) -> Entry | None:
    """Build an entry from submission parameters.

    Returns None after recording field errors on ``job`` if any required
    value is missing or malformed. The user is borrowed, not owned.
    """
    store_id = _store_id(params.get(ID_PARAM), job)
    if store_id is False:
        return None

    name = _text(params.get(NAME_PARAM))
    if name is None:
        job.add_field_error(NAME_PARAM, "Name is a required field")
        return None

    marti_id = _text(params.get(MARTI_ID_PARAM))
    if marti_id is None:
        job.add_field_error(MARTI_ID_PARAM, "MARTi Id is a required field")
        return None

    latitude = _real(params, LATITUDE_PARAM, job)
    longitude = _real(params, LONGITUDE_PARAM, job)
    start_time = _time(params, START_DATE_PARAM, job, required=True)
    end_time = _time(params, END_DATE_PARAM, job, required=False)
    if latitude is None or longitude is None or start_time in (None, False) or end_time is False:
        logger.error(f"Missing or invalid location or date for \"{name}\"")
        return None

    return Entry.create(
        id=store_id,
        name=name,
        external_id=marti_id,
        latitude=latitude,
        longitude=longitude,
        start_time=start_time,
        end_time=end_time,
        site_name=_text(params.get(SITE_NAME_PARAM)),
        comments=_text(params.get(DESCRIPTION_PARAM)),
        taxon_ids=_taxa(params.get(TAXA_PARAM)),
        user=user,
        permissions=permissions,
    )


def submit(
    params: Mapping[str, Any],
    job: Job,
    repository: EntryRepository,
    user: User | None = None,
) -> OperationStatus:
    """Build an entry from ``params`` and save it. The job status is always set."""
    entry = entry_from_parameters(params, job, user=user)
    if entry is None:
        job.set_status(OperationStatus.FAILED_TO_START)
        return OperationStatus.FAILED_TO_START

    with entry:
        return repository.save(entry, job)


def _store_id(value: Any, job: Job) -> ObjectId | None | bool:
    """ObjectId for an existing entry, None for a new one, False if unusable."""
    if value is None or value == "" or value == EMPTY_OPTION:
        return None
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)

    logger.error(f"Failed to load entry \"{value}\" for editing")
    job.add_field_error(ID_PARAM, f"Unknown entry id \"{value}\"")
    return False


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def _real(params: Mapping[str, Any], key: str, job: Job) -> float | None:
    value = params.get(key)
    if value is None or value == "":
        job.add_field_error(key, VALUE_REQUIRED)
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        job.add_field_error(key, f"\"{value}\" is not a number")
        return None


def _time(params: Mapping[str, Any], key: str, job: Job, required: bool) -> date | None | bool:
    """Parsed date, None if absent, False if present but malformed (or absent and required)."""
    value = params.get(key)
    if value is None or value == "":
        if required:
            job.add_field_error(key, VALUE_REQUIRED)
        return None
    if isinstance(value, date):
        return value
    try:
        return parse_timestamp(value)
    except ValidationError as e:
        job.add_field_error(key, str(e))
        return False


def _taxa(value: Any) -> list[str]:
    if value is None or value == "":
        return []
    if isinstance(value, str):
        return [value]
    return [str(taxon) for taxon in value if taxon]
