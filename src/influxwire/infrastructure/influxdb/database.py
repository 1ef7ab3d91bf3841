"""
InfluxDB Database Handle
========================

One database on a Client: writes, statements and retention policies.

Usage:
    database = client.select_db("telemetry")
    database.write_points([Point("cpu", 0.64, tags={"host": "server01"})])
    result = database.query("SELECT * FROM cpu LIMIT 5")
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union

from ...core.config import settings
from ...core.exceptions import ClientError, DatabaseError, QueryError, ValidationError
from ...core.logging_config import PerformanceLogger
from ...domain.line_protocol import encode_points
from ...domain.point import Point
from .queries import QueryBuilder
from .result_set import ResultSet

logger = logging.getLogger(__name__)

ENDPOINT_QUERY = "/query"
ENDPOINT_WRITE = "/write"

PRECISION_NANOSECONDS = "ns"
PRECISION_MICROSECONDS_U = "µ"
PRECISION_MICROSECONDS = "u"
PRECISION_MILLISECONDS = "ms"
PRECISION_SECONDS = "s"
PRECISION_MINUTES = "m"
PRECISION_HOURS = "h"
PRECISION_RFC3339 = "rfc3339"

VALID_PRECISIONS = (
    PRECISION_HOURS,
    PRECISION_MINUTES,
    PRECISION_SECONDS,
    PRECISION_MILLISECONDS,
    PRECISION_MICROSECONDS,
    PRECISION_MICROSECONDS_U,
    PRECISION_NANOSECONDS,
    PRECISION_RFC3339,
)


@dataclass
class RetentionPolicy:
    """Retention policy definition (duration like "1d" or "INF")."""

    name: str
    duration: str
    replication: int = 1
    default: bool = False


class Database:
    """Handle on a named database; cheap to create, holds no connection."""

    def __init__(self, name: str, client):
        if not name:
            raise ValidationError("No database name provided", field="name", value=name)
        self.name = name
        self.client = client

    def __repr__(self):
        return f"Database(name={self.name!r}, client={self.client!r})"

    def query(self, query: str, params: Optional[Dict[str, Any]] = None) -> ResultSet:
        return self.client.query(self.name, query, params)

    def _execute(self, statement: str) -> ResultSet:
        """Run a statement that returns no series and raise its error, if any."""
        result = self.query(statement)
        try:
            return result.raise_for_errors()
        except QueryError:
            result.close()
            raise

    # =================================================================
    # LIFECYCLE
    # =================================================================

    def create(self, retention_policy: Optional[RetentionPolicy] = None) -> None:
        """
        Create the database, then its retention policy when given.

        Raises:
            DatabaseError: Any query or transport failure
        """
        try:
            self._execute(f'CREATE DATABASE "{self.name}"').close()
            if retention_policy is not None:
                self.create_retention_policy(retention_policy).close()
        except (QueryError, ClientError) as e:
            logger.error(f"❌ Failed to create database {self.name}: {e}")
            raise DatabaseError(self.name, str(e)) from e
        logger.info(f"✅ Database created: {self.name}")

    def drop(self) -> None:
        """
        Drop the database and all of its data.

        Raises:
            DatabaseError: Any query or transport failure
        """
        try:
            self._execute(f'DROP DATABASE "{self.name}"').close()
        except (QueryError, ClientError) as e:
            logger.error(f"❌ Failed to drop database {self.name}: {e}")
            raise DatabaseError(self.name, str(e)) from e
        logger.info(f"🗑️  Database dropped: {self.name}")

    def exists(self) -> bool:
        return self.name in self.client.list_databases()

    # =================================================================
    # RETENTION POLICIES
    # =================================================================

    def create_retention_policy(self, retention_policy: RetentionPolicy) -> ResultSet:
        return self._execute(self._retention_policy_query("CREATE", retention_policy))

    def alter_retention_policy(self, retention_policy: RetentionPolicy) -> ResultSet:
        return self._execute(self._retention_policy_query("ALTER", retention_policy))

    def list_retention_policies(self) -> List[Dict[str, Any]]:
        with self.query(f'SHOW RETENTION POLICIES ON "{self.name}"') as result:
            return result.get_points()

    def _retention_policy_query(self, method: str, retention_policy: RetentionPolicy) -> str:
        query = (
            f'{method} RETENTION POLICY "{retention_policy.name}" ON "{self.name}" '
            f"DURATION {retention_policy.duration} REPLICATION {retention_policy.replication}"
        )
        if retention_policy.default:
            query += " DEFAULT"
        return query

    # =================================================================
    # WRITES
    # =================================================================

    def write_points(
        self,
        points: Iterable[Point],
        precision: Optional[str] = None,
        retention_policy: Optional[str] = None
    ) -> bool:
        """
        Encode points to line protocol and write them in one request.

        Args:
            points: Points to write
            precision: Timestamp precision (defaults to settings.WRITE_PRECISION)
            retention_policy: Target retention policy, default one when None

        Returns:
            True when InfluxDB accepted the batch
        """
        points = list(points)
        with PerformanceLogger(f"write {len(points)} points to {self.name}", __name__):
            return self.write_payload(encode_points(points), precision, retention_policy)

    def write_payload(
        self,
        payload: Union[str, List[str]],
        precision: Optional[str] = None,
        retention_policy: Optional[str] = None
    ) -> bool:
        """Write already encoded line protocol text (or a list of lines)."""
        precision = precision or settings.WRITE_PRECISION
        if not self.validate_precision(precision):
            raise ValidationError(f"Invalid precision: {precision}", field="precision", value=precision)

        params = {
            "db": self.name,
            "precision": self.to_valid_query_precision(precision, ENDPOINT_WRITE),
        }
        if retention_policy:
            params["rp"] = retention_policy

        return self.client.write(params, payload)

    # =================================================================
    # SCHEMA
    # =================================================================

    def get_query_builder(self) -> QueryBuilder:
        return QueryBuilder(self)

    def list_field_keys(self, measurement: str) -> List[str]:
        with self.query(f'SHOW FIELD KEYS FROM "{measurement}"') as result:
            points = result.get_points()
        return [point["fieldKey"] for point in points]

    def list_tag_keys(self, measurement: str) -> List[str]:
        with self.query(f'SHOW TAG KEYS FROM "{measurement}"') as result:
            points = result.get_points()
        return [point["tagKey"] for point in points]

    # =================================================================
    # PRECISION HELPERS
    # =================================================================

    @staticmethod
    def validate_precision(precision: str) -> bool:
        return precision in VALID_PRECISIONS

    @staticmethod
    def to_valid_query_precision(precision: str, endpoint: str = ENDPOINT_QUERY) -> Optional[str]:
        """
        Map a precision to what an endpoint accepts.

        /query: rfc3339 is the server default (None), "µ" becomes "u".
        /write: rfc3339 falls back to "ns", "µ" becomes "u".
        """
        if precision == PRECISION_MICROSECONDS_U:
            return PRECISION_MICROSECONDS
        if precision == PRECISION_RFC3339:
            return None if endpoint == ENDPOINT_QUERY else PRECISION_NANOSECONDS
        return precision
