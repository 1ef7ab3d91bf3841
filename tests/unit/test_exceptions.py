"""
Unit Tests for the Exception Hierarchy
======================================
"""

import pytest

from influxwire.core.exceptions import (
    ClientError,
    DatabaseError,
    FormatError,
    InfluxWireException,
    QueryError,
    ValidationError,
)


@pytest.mark.unit
class TestExceptions:

    @pytest.mark.parametrize("error", [
        ValidationError("bad"),
        FormatError("unexpected token"),
        QueryError("boom"),
        ClientError(500, "oops"),
        DatabaseError("telemetry", "denied"),
    ])
    def test_hierarchy(self, error):
        assert isinstance(error, InfluxWireException)

    def test_validation_error_details(self):
        error = ValidationError("Invalid operator: ==", field="operator", value="==")

        assert error.to_dict() == {
            "error": "VALIDATION_FAILED",
            "message": "Invalid operator: ==",
            "details": {"field": "operator", "value": "=="},
        }

    def test_query_error_keeps_server_message(self):
        error = QueryError("measurement not found", statement_id=2)

        assert str(error) == "measurement not found"
        assert error.statement_id == 2
        assert error.details == {"statement_id": 2}

    def test_format_error_truncates_excerpt(self):
        error = FormatError("bad", excerpt="x" * 500)

        assert str(error) == "Invalid JSON response: bad"
        assert len(error.details["excerpt"]) == 100

    def test_client_error(self):
        error = ClientError(502, "Bad Gateway")

        assert error.status_code == 502
        assert str(error) == "InfluxDB request failed [502]: Bad Gateway"

    def test_database_error(self):
        error = DatabaseError("telemetry", "access denied")

        assert "telemetry" in str(error)
        assert error.error_code == "INFLUXDB_DATABASE_ERROR"
