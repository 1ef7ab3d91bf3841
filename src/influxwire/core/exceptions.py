"""
Custom Exceptions Module
=========================

Domain-specific exceptions for the influxwire package.

Exception Hierarchy:
    InfluxWireException (base)
    ├── ValidationError   (bad input, raised before any I/O)
    ├── FormatError       (malformed JSON response body)
    ├── QueryError        (error string reported by the server)
    ├── ClientError       (transport / HTTP failure)
    └── DatabaseError     (database administration failure)

Usage:
    from influxwire.core.exceptions import QueryError

    try:
        points = result_set.get_points("cpu_load_short")
    except QueryError as e:
        logger.error(f"InfluxDB rejected the statement: {e.message}")
"""

from typing import Any, Dict, Optional


# =================================================================
# BASE EXCEPTION
# =================================================================

class InfluxWireException(Exception):
    """
    Base exception for all influxwire errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        self.message = message
        self.details = details or {}
        self.error_code = error_code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a serializable dictionary."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details
        }


# =================================================================
# INPUT VALIDATION
# =================================================================

class ValidationError(InfluxWireException):
    """Invalid input: operator, aggregate, timestamp, missing clause..."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        details = {}
        if field is not None:
            details["field"] = field
            details["value"] = str(value)
        super().__init__(
            message=message,
            details=details,
            error_code="VALIDATION_FAILED"
        )


# =================================================================
# RESPONSE DECODING
# =================================================================

class FormatError(InfluxWireException):
    """Response body is not a valid InfluxDB JSON envelope."""

    def __init__(self, reason: str, excerpt: str = ""):
        super().__init__(
            message=f"Invalid JSON response: {reason}",
            details={"reason": reason, "excerpt": excerpt[:100]},
            error_code="INVALID_RESPONSE_FORMAT"
        )


class QueryError(InfluxWireException):
    """Error string reported by InfluxDB for a request or a statement."""

    def __init__(self, message: str, statement_id: Optional[int] = None):
        details = {} if statement_id is None else {"statement_id": statement_id}
        super().__init__(
            message=message,
            details=details,
            error_code="INFLUXDB_QUERY_FAILED"
        )
        self.statement_id = statement_id


# =================================================================
# TRANSPORT & ADMINISTRATION
# =================================================================

class ClientError(InfluxWireException):
    """Transport level failure (connection refused, unexpected HTTP status)."""

    def __init__(self, status_code: int, reason: str):
        super().__init__(
            message=f"InfluxDB request failed [{status_code}]: {reason}",
            details={"status_code": status_code, "reason": reason[:200]},
            error_code="INFLUXDB_CLIENT_ERROR"
        )
        self.status_code = status_code


class DatabaseError(InfluxWireException):
    """Database administration error (create, drop, retention policies)."""

    def __init__(self, database: str, reason: str):
        super().__init__(
            message=f"Database operation failed for '{database}': {reason}",
            details={"database": database, "reason": reason},
            error_code="INFLUXDB_DATABASE_ERROR"
        )
