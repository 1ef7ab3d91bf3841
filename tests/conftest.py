"""
Pytest Configuration and Shared Fixtures
=========================================

JSON response fixtures, mocked clients and an httpx mock server.
"""
import io
import json
import os
from pathlib import Path
from unittest.mock import Mock

import httpx
import pytest

# Set test environment variables BEFORE any imports
os.environ["ENVIRONMENT"] = "testing"
os.environ["LOG_LEVEL"] = "ERROR"

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> str:
    """Raw text of a JSON fixture."""
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


# =============================================================================
# RESPONSE BODIES
# =============================================================================

@pytest.fixture
def result_json():
    """Single statement, three series (two cpu_load_short, one other_serie)."""
    return load_fixture("result.json")


@pytest.fixture
def multi_query_json():
    """Two statements: cpu_load_short (time, value) and cpu_load_long (time, count)."""
    return load_fixture("result-multi-query.json")


@pytest.fixture
def no_tags_json():
    return load_fixture("result-no-tags.json")


@pytest.fixture
def error_json():
    return load_fixture("result-error.json")


@pytest.fixture
def stream_of():
    """Factory turning a JSON string into a seekable binary stream."""
    def _make(text: str) -> io.BytesIO:
        return io.BytesIO(text.encode("utf-8"))
    return _make


@pytest.fixture
def large_result_json():
    """Statement 0 with 2,000 rows in one series, statement 1 with a count."""
    rows = [
        [f"2024-01-01T00:{minute // 60:02d}:{minute % 60:02d}Z", minute * 0.5, f"sensor-{minute % 7}"]
        for minute in range(2000)
    ]
    document = {
        "results": [
            {
                "statement_id": 0,
                "series": [
                    {
                        "name": "temperature",
                        "tags": {"site": "madrid"},
                        "columns": ["time", "value", "sensor"],
                        "values": rows,
                    }
                ],
            },
            {
                "statement_id": 1,
                "series": [
                    {"name": "temperature", "columns": ["time", "count"], "values": [["1970-01-01T00:00:00Z", 2000]]}
                ],
            },
        ]
    }
    return json.dumps(document)


# =============================================================================
# CLIENT DOUBLES
# =============================================================================

@pytest.fixture
def mock_client():
    """Client double whose query() returns an empty ResultSet."""
    from influxwire.infrastructure.influxdb.result_set import ResultSet

    client = Mock()
    client.query = Mock(return_value=ResultSet("{}"))
    client.write = Mock(return_value=True)
    return client


@pytest.fixture
def recorded_requests():
    """Requests seen by the mock HTTP server, in order."""
    return []


@pytest.fixture
def http_server(recorded_requests):
    """
    Factory for an httpx.MockTransport answering with a fixed response.

    Usage:
        transport = http_server(200, result_json)
    """
    def _make(status: int = 200, body: str = "{}", content_type: str = "application/json"):
        def handler(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(request)
            return httpx.Response(status, content=body.encode("utf-8"), headers={"Content-Type": content_type})
        return httpx.MockTransport(handler)
    return _make
