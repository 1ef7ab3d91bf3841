"""
InfluxDB Infrastructure Module
==============================

Client, database handle, query builder, result decoding and transports.
"""

from .admin import Admin
from .client import Client
from .database import Database, RetentionPolicy
from .queries import QueryBuilder
from .result_set import ResultSet
from .transport import HttpTransport, SocketTransport, Transport, TransportResponse

__all__ = [
    "Admin",
    "Client",
    "Database",
    "HttpTransport",
    "QueryBuilder",
    "ResultSet",
    "RetentionPolicy",
    "SocketTransport",
    "Transport",
    "TransportResponse",
]
