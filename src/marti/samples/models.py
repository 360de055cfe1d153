"""Entry entity model.

An Entry is a geotagged, time-stamped biological sample. Entries are built
either from caller-supplied values through ``Entry.create`` or decoded from
a stored document (see ``marti.samples.codec``).
"""

from __future__ import annotations

import math
from contextlib import ExitStack
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import StrEnum
from typing import Any

from bson import ObjectId
from loguru import logger

from marti.core.exceptions import ValidationError


class OperationStatus(StrEnum):
    """Outcome of an operation, as recorded on a job."""

    IDLE = "idle"
    FAILED_TO_START = "failed_to_start"
    FAILED = "failed"
    PARTIALLY_SUCCEEDED = "partially_succeeded"
    SUCCEEDED = "succeeded"


class Ownership(StrEnum):
    """Whether an entry is responsible for releasing a reference it holds."""

    BORROWED = "borrowed"
    OWNED = "owned"


@dataclass
class User:
    """A reference to the user a sample belongs to."""

    username: str
    email: str = ""
    released: bool = False

    def release(self) -> None:
        self.released = True


@dataclass
class PermissionsGroup:
    """Opaque access-control handle. Carried by an entry, never evaluated here."""

    permissions: dict[str, list[str]] = field(default_factory=dict)
    released: bool = False

    def release(self) -> None:
        self.permissions.clear()
        self.released = True


@dataclass
class Entry:
    """A geotagged sample record.

    ``start_time`` and ``end_time`` hold either a ``date`` or a ``datetime``;
    which one is kept through encoding so a date-only sample stays date-only.

    Attributes:
        external_id: Caller-supplied business key (the MARTi ID).
        name: Display name of the sample.
        latitude: WGS-84 latitude.
        longitude: WGS-84 longitude.
        start_time: When the sample was taken.
        end_time: End of the active window. None for a point-in-time sample.
        site_name: Where the sample was taken.
        comments: Free text.
        taxon_ids: Taxonomic classifiers in insertion order.
        id: Store identifier, None until first saved.
    """

    external_id: str
    name: str | None
    latitude: float
    longitude: float
    start_time: date
    end_time: date | None = None
    site_name: str | None = None
    comments: str | None = None
    taxon_ids: tuple[str, ...] = ()
    id: ObjectId | None = None
    user: User | None = field(default=None, compare=False, repr=False)
    user_ownership: Ownership = field(default=Ownership.BORROWED, compare=False, repr=False)
    permissions: PermissionsGroup = field(default_factory=PermissionsGroup, compare=False, repr=False)
    _released: bool = field(default=False, init=False, compare=False, repr=False)

    @classmethod
    def create(
        cls,
        *,
        external_id: str | None,
        start_time: date | None,
        latitude: float,
        longitude: float,
        name: str | None = None,
        end_time: date | None = None,
        site_name: str | None = None,
        comments: str | None = None,
        taxon_ids: list[str] | tuple[str, ...] | None = None,
        id: ObjectId | None = None,
        user: User | None = None,
        user_ownership: Ownership = Ownership.BORROWED,
        permissions: PermissionsGroup | None = None,
    ) -> Entry | None:
        """Build an entry, or return None if the values don't make a valid one.

        Lists are copied so the entry never shares mutable state with the
        caller. When no permissions group is given a fresh empty one is
        allocated; it is released again if construction fails.
        """
        with ExitStack() as stack:
            try:
                if permissions is None:
                    permissions = PermissionsGroup()
                    stack.callback(permissions.release)

                entry = cls(
                    external_id=_required_text(external_id, "external_id"),
                    name=_optional_text(name, "name"),
                    latitude=_coordinate(latitude, "latitude"),
                    longitude=_coordinate(longitude, "longitude"),
                    start_time=_required_time(start_time, "start_time"),
                    end_time=_optional_time(end_time, "end_time"),
                    site_name=_optional_text(site_name, "site_name"),
                    comments=_optional_text(comments, "comments"),
                    taxon_ids=_taxa(taxon_ids),
                    id=id,
                    user=user,
                    user_ownership=Ownership(user_ownership),
                    permissions=permissions,
                )
            except (ValidationError, ValueError) as e:
                logger.error(f"Failed to create entry \"{external_id}\": {e}")
                return None

            stack.pop_all()

        if entry.end_time is not None and as_datetime(entry.end_time) < as_datetime(entry.start_time):
            logger.warning(f"Entry \"{entry.external_id}\" ends before it starts ({entry.end_time} < {entry.start_time})")

        return entry

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Release the permissions group and, if owned, the user reference."""
        if self._released:
            raise RuntimeError(f"Entry \"{self.external_id}\" has already been released")

        self.permissions.release()
        if self.user is not None and self.user_ownership == Ownership.OWNED:
            self.user.release()
        self.user = None
        self._released = True

    def __enter__(self) -> Entry:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.release()


def as_datetime(value: date) -> datetime:
    """Widen a date to midnight so dates and datetimes can be compared."""
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    return datetime.combine(value, time.min)


# ---------------------------------------------------------------------------
# Field checks
# ---------------------------------------------------------------------------


def _required_text(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return str(value)


def _optional_text(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string, got {type(value).__name__}")
    # Empty strings are never stored
    return str(value) or None


def _coordinate(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ValidationError(f"{field_name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ValidationError(f"{field_name} must be finite, got {value}")
    return float(value)


def _required_time(value: Any, field_name: str) -> date:
    if value is None:
        raise ValidationError(f"{field_name} is required")
    return _optional_time(value, field_name)


def _optional_time(value: Any, field_name: str) -> date | None:
    if value is not None and not isinstance(value, date):
        raise ValidationError(f"{field_name} must be a date or datetime, got {type(value).__name__}")
    return value


def _taxa(values: Any) -> tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        raise ValidationError("taxon_ids must be a sequence of strings, not a single string")
    taxa = tuple(values)
    for taxon in taxa:
        if not isinstance(taxon, str) or not taxon:
            raise ValidationError(f"Invalid taxon id {taxon!r}")
    return taxa
