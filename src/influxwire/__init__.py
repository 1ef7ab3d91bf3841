"""
influxwire
==========

InfluxDB 1.x wire client: line protocol encoding, an InfluxQL query
builder and a JSON response decoder that streams large results.

Usage:
    from influxwire import Client, Point

    database = Client("localhost", 8086).select_db("telemetry")
    database.write_points([Point("cpu", 0.64, tags={"host": "server01"})])

    result = database.get_query_builder().from_("cpu").select(["value"]).get_result_set()
    for point in result.iterate():
        print(point)
"""

from .core.exceptions import (
    ClientError,
    DatabaseError,
    FormatError,
    InfluxWireException,
    QueryError,
    ValidationError,
)
from .domain import FieldKind, FieldValue, Point, encode_point, encode_points
from .infrastructure.influxdb import (
    Admin,
    Client,
    Database,
    HttpTransport,
    QueryBuilder,
    ResultSet,
    RetentionPolicy,
    SocketTransport,
)

__version__ = "1.0.0"

__all__ = [
    "Admin",
    "Client",
    "ClientError",
    "Database",
    "DatabaseError",
    "FieldKind",
    "FieldValue",
    "FormatError",
    "HttpTransport",
    "InfluxWireException",
    "Point",
    "QueryBuilder",
    "QueryError",
    "ResultSet",
    "RetentionPolicy",
    "SocketTransport",
    "ValidationError",
    "encode_point",
    "encode_points",
]
