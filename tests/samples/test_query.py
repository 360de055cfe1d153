"""Tests for marti.samples.query."""

from datetime import date, datetime

import pytest

from marti.core.exceptions import ValidationError
from marti.samples.query import build_equality_filter, build_search_filter
from marti.samples.schema import DocumentSchema


class TestBuildSearchFilter:
    def test_no_bounds(self):
        query = build_search_filter(52.1, 1.2, None, None, 0, 0)
        assert query == {
            "location": {
                "$nearSphere": {
                    "$geometry": {"type": "Point", "coordinates": [1.2, 52.1]},
                }
            }
        }

    def test_window_and_max_distance(self):
        query = build_search_filter(52.1, 1.2, "2024-01-01", "2024-06-01", 0, 5000)
        assert query == {
            "location": {
                "$nearSphere": {
                    "$geometry": {"type": "Point", "coordinates": [1.2, 52.1]},
                    "$maxDistance": 5000,
                }
            },
            "end_date": {"$lte": "2024-01-01"},
            "date": {"$gte": "2024-06-01"},
        }

    def test_coordinates_longitude_first(self):
        query = build_search_filter(10.0, 20.0)
        assert query["location"]["$nearSphere"]["$geometry"]["coordinates"] == [20.0, 10.0]

    def test_min_distance_only(self):
        near = build_search_filter(52.1, 1.2, min_distance=250)["location"]["$nearSphere"]
        assert near["$minDistance"] == 250
        assert "$maxDistance" not in near

    def test_both_distances(self):
        near = build_search_filter(52.1, 1.2, min_distance=100, max_distance=2000)["location"]["$nearSphere"]
        assert near["$minDistance"] == 100
        assert near["$maxDistance"] == 2000

    def test_start_date_only(self):
        query = build_search_filter(52.1, 1.2, start_date=date(2024, 1, 1))
        assert query["end_date"] == {"$lte": "2024-01-01"}
        assert "date" not in query

    def test_end_date_only(self):
        query = build_search_filter(52.1, 1.2, end_date=datetime(2024, 6, 1, 18, 30))
        assert query["date"] == {"$gte": "2024-06-01T18:30:00"}
        assert "end_date" not in query

    def test_custom_field_names(self):
        schema = DocumentSchema(location_key="where", start_date_key="from", end_date_key="until")
        query = build_search_filter(52.1, 1.2, "2024-01-01", "2024-06-01", schema=schema)
        assert set(query) == {"where", "until", "from"}

    def test_each_call_independent(self):
        first = build_search_filter(52.1, 1.2, max_distance=10)
        first["location"]["$nearSphere"]["$maxDistance"] = 99
        second = build_search_filter(52.1, 1.2, max_distance=10)
        assert second["location"]["$nearSphere"]["$maxDistance"] == 10

    def test_inputs_not_mutated(self):
        start = "2024-01-01"
        build_search_filter(52.1, 1.2, start_date=start)
        assert start == "2024-01-01"

    def test_negative_distance_rejected(self):
        with pytest.raises(ValidationError, match="negative"):
            build_search_filter(52.1, 1.2, max_distance=-1)

    @pytest.mark.parametrize("bound", ["min_distance", "max_distance"])
    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_distance_rejected(self, bound, value):
        with pytest.raises(ValidationError, match="finite"):
            build_search_filter(52.1, 1.2, **{bound: value})

    def test_nan_coordinate_rejected(self):
        with pytest.raises(ValidationError, match="longitude"):
            build_search_filter(52.1, float("nan"))

    def test_non_numeric_latitude_rejected(self):
        with pytest.raises(ValidationError, match="latitude"):
            build_search_filter("52.1", 1.2)

    def test_malformed_date_rejected(self):
        with pytest.raises(ValidationError):
            build_search_filter(52.1, 1.2, start_date="last week")


class TestBuildEqualityFilter:
    def test_equality(self):
        assert build_equality_filter("marti_id", "MARTi-1") == {"marti_id": "MARTi-1"}
