"""
Data Point Model
================

Immutable representation of one InfluxDB data point.

Example:
    >>> point = Point(
    ...     "cpu_load_short",
    ...     value=0.64,
    ...     tags={"host": "server01", "region": "us-west"},
    ...     timestamp=1434055562000000000,
    ... )
    >>> str(point)
    'cpu_load_short,host=server01,region=us-west value=0.64 1434055562000000000'
"""

from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from ..core.exceptions import ValidationError
from .line_protocol import FieldValue, encode_point, normalize_tag_value, normalize_timestamp


class Point:
    """
    One measurement sample: tags, typed fields and an optional timestamp.

    Tags and fields keep the insertion order they were given in. When no
    timestamp is set the server assigns its local time on write.
    """

    __slots__ = ("_measurement", "_tags", "_fields", "_timestamp")

    def __init__(
        self,
        measurement: str,
        value: Any = None,
        tags: Optional[Mapping[str, Any]] = None,
        fields: Optional[Mapping[str, Any]] = None,
        timestamp: Any = None
    ):
        """
        Args:
            measurement: Measurement name (required, non-empty)
            value: Shortcut for a field named "value"
            tags: Tag key-value pairs
            fields: Field key-value pairs (int, float, str, bool or None)
            timestamp: Integer epoch timestamp in the write precision

        Raises:
            ValidationError: empty measurement, no fields, invalid field
                             value or invalid timestamp
        """
        if not measurement:
            raise ValidationError("Invalid measurement name provided", field="measurement", value=measurement)

        field_values: Dict[str, FieldValue] = {
            str(key): FieldValue.of(raw) for key, raw in (fields or {}).items()
        }
        if value is not None:
            field_values["value"] = FieldValue.of(value)

        if not field_values:
            raise ValidationError(
                f"Point '{measurement}' needs at least one field", field="fields", value=fields
            )

        self._measurement = str(measurement)
        self._tags = MappingProxyType(
            {str(key): normalize_tag_value(raw) for key, raw in (tags or {}).items()}
        )
        self._fields = MappingProxyType(field_values)
        self._timestamp = None if timestamp is None else normalize_timestamp(timestamp)

    @property
    def measurement(self) -> str:
        return self._measurement

    @property
    def tags(self) -> Mapping[str, str]:
        """Normalized tag values, in insertion order."""
        return self._tags

    @property
    def fields(self) -> Mapping[str, FieldValue]:
        """Tagged field values, in insertion order."""
        return self._fields

    @property
    def timestamp(self) -> Optional[int]:
        return self._timestamp

    def to_line(self) -> str:
        """Line protocol record for this point."""
        return encode_point(self)

    def __str__(self) -> str:
        return self.to_line()

    def __repr__(self) -> str:
        return f"Point({self.to_line()!r})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Point):
            return NotImplemented
        return self.to_line() == other.to_line()

    def __hash__(self) -> int:
        return hash(self.to_line())
