"""Tests for marti.core.exceptions."""

import pytest

from marti.core.exceptions import (
    ConfigurationError,
    EncodingError,
    MartiError,
    PartialIndexError,
    StoreError,
    ValidationError,
)


def test_hierarchy():
    """All exceptions should inherit from MartiError."""
    for exc_cls in [ConfigurationError, ValidationError, EncodingError, StoreError, PartialIndexError]:
        assert issubclass(exc_cls, MartiError)


def test_exception_message():
    err = ConfigurationError("No database specified")
    assert "No database" in str(err)


def test_catch_base():
    with pytest.raises(MartiError):
        raise StoreError("connection refused")
