"""
InfluxQL Query Builder
======================

Fluent interface for building InfluxQL SELECT statements.

Usage:
    from influxwire.infrastructure.influxdb.queries import QueryBuilder

    query = QueryBuilder(database) \
        .from_("cpu_load_short") \
        .select(["value"], ["mean", "max"]) \
        .where("time", ">", "2025-10-01T00:00:00Z") \
        .where("host", "=", "server01") \
        .group_by_time("1h") \
        .get_query()

    # SELECT MEAN(value) AS mean_value, MAX(value) AS max_value
    #   FROM cpu_load_short
    #   WHERE time > '2025-10-01T00:00:00Z' AND host = 'server01'
    #   GROUP BY time(1h)
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from ...core.exceptions import ValidationError
from ...domain.time_literals import (
    create_date,
    create_date_from_timestamp,
    is_duration,
    is_integer_literal,
    is_rfc3339,
)

logger = logging.getLogger(__name__)

VALID_OPERATORS = ("=", "<>", "!=", ">", ">=", "<", "<=")
VALID_FUNCTIONS = ("COUNT", "MEAN", "SUM", "MEDIAN", "FIRST", "LAST", "MIN", "MAX", "SPREAD")

# Builder state and the value each property takes after a reset
_PROPERTY_DEFAULTS = {
    "select": dict,
    "where": list,
    "measurement": lambda: "",
    "limit": lambda: None,
    "offset": lambda: None,
    "group_by": list,
    "group_by_time": lambda: "",
    "order_by": list,
    "retention_policy": lambda: "",
    "timezone": lambda: None,
}

_NUMERIC_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


def _is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return isinstance(value, str) and _NUMERIC_RE.match(value) is not None


def _quote(value: Any) -> str:
    return "'{}'".format(str(value).replace("'", "\\'"))


class QueryBuilder:
    """
    Accumulates clause state and renders one InfluxQL SELECT statement.

    State machine: unconfigured -> from_() -> clause setters -> get_query().
    The state survives repeated renders until the next from_() or reset().

    Example:
        >>> builder = QueryBuilder(db).from_("cpu").select(["*"], ["count"])
        >>> builder.limit(10).get_query()
        'SELECT COUNT(*) AS count FROM cpu LIMIT 10'
    """

    def __init__(self, db=None):
        """
        Args:
            db: Database collaborator providing query(),
                list_field_keys() and list_tag_keys(). Only needed for
                get_result_set() and the key listings.
        """
        self.db = db
        self._field_keys: Optional[List[str]] = None
        self._tag_keys: Optional[List[str]] = None
        for prop, default in _PROPERTY_DEFAULTS.items():
            setattr(self, f"_{prop}", default())

    # =================================================================
    # STATE TRANSITIONS
    # =================================================================

    def reset(self, properties: Optional[Iterable[str]] = None, preserve_retention: bool = True) -> "QueryBuilder":
        """
        Restore builder properties to their defaults.

        Args:
            properties: Names of the properties to reset. None resets all
                        of them (subject to preserve_retention)
            preserve_retention: Keep the retention policy on a full reset

        Returns:
            Self for chaining

        Raises:
            ValidationError: If an unknown property name is given
        """
        if properties:
            properties = list(properties)
            invalid = [prop for prop in properties if prop not in _PROPERTY_DEFAULTS]
            if invalid:
                raise ValidationError(
                    f"{', '.join(invalid)} are not valid properties", field="properties", value=invalid
                )
        else:
            properties = [
                prop for prop in _PROPERTY_DEFAULTS
                if not (preserve_retention and prop == "retention_policy")
            ]

        for prop in properties:
            setattr(self, f"_{prop}", _PROPERTY_DEFAULTS[prop]())

        if "measurement" in properties:
            self._field_keys = None
            self._tag_keys = None

        return self

    def from_(self, measurement: str, preserve_retention: bool = True) -> "QueryBuilder":
        """
        Start a new statement on a measurement.

        All previous state is discarded, except the retention policy when
        preserve_retention is True.
        """
        self.reset(preserve_retention=preserve_retention)
        self._measurement = measurement
        return self

    # =================================================================
    # CLAUSES
    # =================================================================

    def select(self, fields: Iterable[str], functions: Optional[Iterable[str]] = None) -> "QueryBuilder":
        """
        Add fields to the selection.

        Args:
            fields: Field names, "*" for all fields
            functions: Optional aggregate functions applied to every field
                       (count, mean, sum, median, first, last, min, max,
                       spread; case-insensitive)

        Returns:
            Self for chaining

        Example:
            >>> builder.select(["value"], ["min", "max"])
            # MIN(value) AS min_value, MAX(value) AS max_value
        """
        functions = list(functions or [])
        for field in fields:
            if not functions:
                self._select[field] = field
                continue
            for function in functions:
                self._add_function_field(field, function)
        return self

    def _add_function_field(self, field: str, function: str) -> None:
        name = str(function).upper()
        if name not in VALID_FUNCTIONS:
            raise ValidationError(f"Invalid method: {name}", field="function", value=function)
        alias = name.lower() if field == "*" else f"{name.lower()}_{field}"
        self._select[alias] = f"{name}({field})"

    def percentile(self, percentile: int = 95, field: str = "value") -> "QueryBuilder":
        """Select the Nth percentile of a field (e.g. 95 for billing)."""
        self._select[f"percentile_{field}"] = f"PERCENTILE({field}, {int(percentile)})"
        return self

    def where(self, field: str, operator: str, value: Any) -> "QueryBuilder":
        """
        Add a predicate; predicates are joined with AND.

        Args:
            field: Column name. "time" accepts an RFC3339 date, a duration
                   token (e.g. "1h") or a bare integer (seconds).
                   "timeOffset" compares time against now() minus a
                   duration ("", 0 or "0" compares against now()).
            operator: One of =, <>, !=, >, >=, <, <=
            value: Value to compare against

        Raises:
            ValidationError: Invalid operator or time value
        """
        if operator not in VALID_OPERATORS:
            raise ValidationError(f"Invalid operator: {operator}", field="operator", value=operator)

        if field == "time":
            if is_rfc3339(value):
                self._where.append(f"time {operator} '{value}'")
            elif is_duration(value):
                self._where.append(f"time {operator} {value}")
            elif is_integer_literal(value):
                self._where.append(f"time {operator} {value}s")
            else:
                raise ValidationError(f"'{value}' is not a valid time", field="time", value=value)
        elif field == "timeOffset":
            if value in ("", 0, "0") and not isinstance(value, bool):
                self._where.append(f"time {operator} now()")
            elif is_duration(value):
                self._where.append(f"time {operator} now() - {value}")
            else:
                raise ValidationError(f"'{value}' is not a valid literal time", field="timeOffset", value=value)
        elif _is_numeric(value):
            self._where.append(f"{field} {operator} {value}")
        else:
            self._where.append(f"{field} {operator} {_quote(value)}")

        return self

    def group_by(self, field: str) -> "QueryBuilder":
        """Add a GROUP BY tag (or "*")."""
        self._group_by.append(field)
        return self

    def group_by_time(self, interval: str) -> "QueryBuilder":
        """Group by time buckets, e.g. "1h"."""
        if not is_duration(interval):
            raise ValidationError(f"'{interval}' is not a valid literal time", field="group_by_time", value=interval)
        self._group_by_time = interval
        return self

    def order_by(self, field: str, order: str = "ASC") -> "QueryBuilder":
        self._order_by.append(f"{field} {order}")
        return self

    def limit(self, count: int) -> "QueryBuilder":
        """Limit the result to n records."""
        self._limit = int(count)
        return self

    def offset(self, count: int) -> "QueryBuilder":
        """Skip the first n records."""
        self._offset = int(count)
        return self

    def retention_policy(self, rp: str) -> "QueryBuilder":
        self._retention_policy = rp
        return self

    def tz(self, timezone: str) -> "QueryBuilder":
        """Render result timestamps in the given IANA timezone."""
        self._timezone = timezone
        return self

    # =================================================================
    # RENDERING
    # =================================================================

    def validate(self) -> "QueryBuilder":
        """
        Check that the statement can be rendered.

        Raises:
            ValidationError: If the measurement or the selection is empty
        """
        errors = []
        if not self._measurement:
            errors.append("Measurement is required")
        if not self._select:
            errors.append("At least one select field is required")
        if errors:
            raise ValidationError(", ".join(errors))
        return self

    def is_valid_query(self) -> bool:
        try:
            self.validate()
        except ValidationError:
            return False
        return True

    def get_query(self) -> str:
        """
        Render the statement.

        Clauses appear only when populated, always in the order
        SELECT, FROM, WHERE, GROUP BY, ORDER BY, LIMIT, OFFSET, tz().

        Raises:
            ValidationError: If the measurement or the selection is empty
        """
        self.validate()

        selection = [
            expression if alias == expression else f"{expression} AS {alias}"
            for alias, expression in self._select.items()
        ]
        parts = ["SELECT", ", ".join(selection)]

        if self._retention_policy:
            parts.append(f"FROM {self._retention_policy}.{self._measurement}")
        else:
            parts.append(f"FROM {self._measurement}")

        if self._where:
            parts.append("WHERE " + " AND ".join(self._where))

        group_by = list(self._group_by)
        if self._group_by_time:
            group_by.append(f"time({self._group_by_time})")
        if group_by:
            parts.append("GROUP BY " + ",".join(group_by))

        if self._order_by:
            parts.append("ORDER BY " + ",".join(self._order_by))

        if self._limit is not None:
            parts.append(f"LIMIT {self._limit}")

        if self._offset is not None:
            parts.append(f"OFFSET {self._offset}")

        if self._timezone:
            parts.append(f"tz('{self._timezone}')")

        return " ".join(parts)

    def __str__(self) -> str:
        return self.get_query()

    # =================================================================
    # DATABASE COLLABORATION
    # =================================================================

    def get_result_set(self):
        """Validate, render and run the statement on the database."""
        query = self.get_query()
        logger.debug(f"🔍 Running built query: {query}")
        return self._require_db().query(query)

    def list_field_keys(self) -> List[str]:
        """Field keys of the current measurement (cached until from_())."""
        self._require_measurement()
        if self._field_keys is None:
            self._field_keys = self._require_db().list_field_keys(self._measurement)
        return self._field_keys

    def list_tag_keys(self) -> List[str]:
        """Tag keys of the current measurement (cached until from_())."""
        self._require_measurement()
        if self._tag_keys is None:
            self._tag_keys = self._require_db().list_tag_keys(self._measurement)
        return self._tag_keys

    def get_database(self):
        return self.db

    def _require_measurement(self) -> None:
        if not self._measurement:
            raise ValidationError("Measurement must be set")

    def _require_db(self):
        if self.db is None:
            raise ValidationError("No database attached to this query builder")
        return self.db

    # =================================================================
    # DATE HELPERS
    # =================================================================

    @staticmethod
    def create_date(year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0) -> str:
        """RFC3339 date suitable for where("time", ...)."""
        return create_date(year, month, day, hour, minute, second)

    @staticmethod
    def create_date_from_timestamp(timestamp: int) -> str:
        """RFC3339 date for a unix timestamp in seconds."""
        return create_date_from_timestamp(timestamp)

    # =================================================================
    # STATE INSPECTION
    # =================================================================

    @property
    def measurement(self) -> str:
        return self._measurement

    @property
    def selection(self) -> Dict[str, str]:
        """Alias -> expression mapping, in insertion order."""
        return dict(self._select)

    @property
    def retention(self) -> str:
        return self._retention_policy
