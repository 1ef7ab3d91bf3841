"""
Unit Tests for ResultSet (eager decoding)
=========================================

Coverage:
- ✅ Envelope validation (invalid JSON, top-level errors)
- ✅ Series access by statement id, position and "all statements"
- ✅ Point flattening with name and tag filters
- ✅ Per-statement errors
- ✅ Lookup by time
"""

import json

import pytest

from influxwire.core.exceptions import FormatError, QueryError, ValidationError
from influxwire.infrastructure.influxdb.result_set import ResultSet


# =============================================================================
# ENVELOPE
# =============================================================================

@pytest.mark.unit
class TestEnvelope:

    def test_invalid_json_raises(self):
        with pytest.raises(FormatError, match="Invalid JSON response"):
            ResultSet("foo")

    def test_non_object_document_raises(self):
        with pytest.raises(FormatError):
            ResultSet("[1, 2]")

    def test_top_level_error_raises(self):
        body = '{"series": [], "error": "Big error, many problems."}'

        with pytest.raises(QueryError, match="Big error, many problems."):
            ResultSet(body)

    def test_missing_results_is_empty(self):
        result = ResultSet("{}")

        assert result.get_series(None) == {}
        assert result.get_raw() == "{}"

    def test_bytes_body(self, result_json):
        result = ResultSet(result_json.encode("utf-8"))

        assert len(result.get_points()) == 3

    def test_get_raw_returns_original_text(self, result_json):
        assert ResultSet(result_json).get_raw() == result_json

    def test_unsupported_input_raises(self):
        with pytest.raises(ValidationError):
            ResultSet(42)


# =============================================================================
# SERIES
# =============================================================================

@pytest.mark.unit
class TestSeries:

    def test_columns(self, result_json):
        assert ResultSet(result_json).get_columns() == ["time", "value"]

    def test_columns_from_multi_query(self, multi_query_json):
        result = ResultSet(multi_query_json)

        assert result.get_columns(0) == ["time", "value"]
        assert result.get_columns(None) == ["time", "value"]
        assert result.get_columns(1) == ["time", "count"]

    def test_default_statement(self, multi_query_json):
        series = ResultSet(multi_query_json).get_series()

        assert len(series) == 1
        assert series[0]["name"] == "cpu_load_short"

    def test_nth_statement(self, multi_query_json):
        series = ResultSet(multi_query_json).get_series(1)

        assert len(series) == 1
        assert series[0]["name"] == "cpu_load_long"

    def test_all_statements(self, multi_query_json):
        series = ResultSet(multi_query_json).get_series(None)

        assert sorted(series) == [0, 1]
        assert series[0][0]["name"] == "cpu_load_short"
        assert series[1][0]["name"] == "cpu_load_long"

    def test_invalid_statement_index_raises(self, multi_query_json):
        with pytest.raises(ValidationError, match="Invalid statement index provided"):
            ResultSet(multi_query_json).get_series(2)

    def test_statements_without_id_are_matched_by_position(self, multi_query_json):
        """Test responses from servers older than 1.2 (no statement_id)."""
        raw = json.loads(multi_query_json)
        for statement in raw["results"]:
            del statement["statement_id"]

        result = ResultSet(json.dumps(raw))

        assert result.get_series(1)[0]["name"] == "cpu_load_long"

    def test_statement_error_raises_only_for_that_statement(self, multi_query_json):
        """
        Test a failed statement does not poison the others.

        Verifies:
        - The failed statement raises QueryError with its message and id
        - Other statements stay readable
        - Reading every statement raises
        """
        raw = json.loads(multi_query_json)
        del raw["results"][1]["series"]
        raw["results"][1]["error"] = "should trigger error"
        result = ResultSet(json.dumps(raw))

        with pytest.raises(QueryError, match="should trigger error") as exc_info:
            result.get_series(1)
        assert exc_info.value.statement_id == 1

        assert result.get_series(0)[0]["name"] == "cpu_load_short"

        with pytest.raises(QueryError):
            result.get_series(None)

    def test_error_fixture(self, error_json):
        with pytest.raises(QueryError, match="measurement not found"):
            ResultSet(error_json).get_points()

    def test_statement_without_series(self):
        result = ResultSet('{"results": [{"statement_id": 0}]}')

        assert result.get_series() == []
        assert result.get_columns() == []
        assert result.get_points() == []

    def test_raise_for_errors(self, multi_query_json):
        """
        Test errors of statements that return no series can be checked.

        Verifies:
        - A clean response is returned unchanged for chaining
        - An error in any statement is raised with its statement_id
        """
        clean = ResultSet('{"results": [{"statement_id": 0}]}')
        assert clean.raise_for_errors() is clean

        raw = json.loads(multi_query_json)
        raw["results"][1] = {"statement_id": 1, "error": "retention policy already exists"}

        with pytest.raises(QueryError, match="retention policy already exists") as exc_info:
            ResultSet(json.dumps(raw)).raise_for_errors()
        assert exc_info.value.statement_id == 1


# =============================================================================
# POINTS
# =============================================================================

@pytest.mark.unit
class TestPoints:

    def test_all_points(self, result_json):
        points = ResultSet(result_json).get_points()

        assert len(points) == 3
        assert points[0] == {
            "time": "2015-01-29T21:51:28.968422294Z",
            "value": 0.64,
            "host": "server01",
            "region": "us-west",
        }

    def test_points_by_measurement_name(self, result_json):
        points = ResultSet(result_json).get_points("cpu_load_short")

        assert len(points) == 2
        assert points[0]["value"] == 0.64

    def test_points_by_name_without_tags(self, no_tags_json):
        points = ResultSet(no_tags_json).get_points("cpu_load_short")

        assert len(points) == 2
        assert set(points[0]) == {"time", "value"}

    def test_points_by_tags(self, result_json):
        points = ResultSet(result_json).get_points("", {"host": "server01"})

        assert [point["value"] for point in points] == [0.64, 0.66]

    def test_tag_filter_is_key_aware(self, result_json):
        """Test a value held under another tag key does not match."""
        assert ResultSet(result_json).get_points("", {"region": "server01"}) == []

    def test_name_and_tag_filters_are_alternatives(self, result_json):
        points = ResultSet(result_json).get_points("other_serie", {"host": "server02"})

        assert [point["value"] for point in points] == [0.65, 0.66]

    def test_columns_win_over_tags(self):
        body = json.dumps({"results": [{"series": [{
            "name": "m",
            "tags": {"host": "from-tag"},
            "columns": ["time", "host"],
            "values": [["2020-01-01T00:00:00Z", "from-column"]],
        }]}]})

        assert ResultSet(body).get_points()[0]["host"] == "from-column"

    def test_row_length_mismatch_raises(self):
        body = json.dumps({"results": [{"series": [{
            "name": "m",
            "columns": ["time", "value"],
            "values": [["2020-01-01T00:00:00Z"]],
        }]}]})

        with pytest.raises(FormatError, match="1 values for 2 columns"):
            ResultSet(body).get_points()


# =============================================================================
# TIME LOOKUP
# =============================================================================

@pytest.mark.unit
class TestGetByTime:

    def test_found(self, multi_query_json):
        point = ResultSet(multi_query_json).get_by_time("2015-01-29T21:52:28.968422294Z")

        assert point["value"] == 0.67

    def test_missing(self, multi_query_json):
        assert ResultSet(multi_query_json).get_by_time("2000-01-01T00:00:00Z") is None

    def test_other_statement(self, multi_query_json):
        point = ResultSet(multi_query_json).get_by_time("1970-01-01T00:00:00Z", statement_index=1)

        assert point == {"time": "1970-01-01T00:00:00Z", "count": 42}

    def test_non_rfc3339_key_raises(self, multi_query_json):
        with pytest.raises(ValidationError, match="not a valid RFC3339 time"):
            ResultSet(multi_query_json).get_by_time("yesterday")

    def test_iterate_matches_get_points(self, result_json):
        result = ResultSet(result_json)

        assert list(result.iterate()) == result.get_points()
