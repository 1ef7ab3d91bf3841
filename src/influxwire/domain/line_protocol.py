"""
Line Protocol Encoding
======================

Serializes data points into InfluxDB line protocol:

    measurement[,tag=value...] field=value[,field=value...][ timestamp]

Field values are carried as a tagged ``FieldValue`` so that rendering is a
table lookup on ``FieldKind`` instead of type inspection at encode time.

Usage:
    from influxwire.domain.line_protocol import encode_points

    body = encode_points([point_a, point_b])
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable

from ..core.exceptions import ValidationError

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_KEY_ESCAPES = str.maketrans({" ": "\\ ", ",": "\\,", "=": "\\="})
_MEASUREMENT_ESCAPES = str.maketrans({" ": "\\ ", ",": "\\,"})


class FieldKind(Enum):
    """Line protocol field types."""
    INT = "int"
    FLOAT = "float"
    STR = "str"
    BOOL = "bool"
    NULL = "null"


@dataclass(frozen=True)
class FieldValue:
    """A field value tagged with its line protocol type."""
    kind: FieldKind
    value: Any = None

    @classmethod
    def of(cls, raw: Any) -> "FieldValue":
        """
        Classify a plain Python value.

        Args:
            raw: int, float, str, bool, None or an existing FieldValue

        Returns:
            FieldValue tagged with the matching kind

        Raises:
            ValidationError: unsupported type, out of range integer or a
                             non-finite float
        """
        if isinstance(raw, FieldValue):
            return raw
        # bool first: bool is a subclass of int
        if isinstance(raw, bool):
            return cls(FieldKind.BOOL, raw)
        if isinstance(raw, int):
            if not INT64_MIN <= raw <= INT64_MAX:
                raise ValidationError(
                    f"{raw} does not fit a signed 64-bit integer field", field="value", value=raw
                )
            return cls(FieldKind.INT, raw)
        if isinstance(raw, float):
            if not math.isfinite(raw):
                raise ValidationError(
                    f"{raw} is not a finite float field value", field="value", value=raw
                )
            return cls(FieldKind.FLOAT, raw)
        if isinstance(raw, str):
            return cls(FieldKind.STR, raw)
        if raw is None:
            return cls(FieldKind.NULL)
        raise ValidationError(
            f"Unsupported field value type: {type(raw).__name__}", field="value", value=raw
        )


# =================================================================
# ESCAPING
# =================================================================

def escape_key(key: str) -> str:
    """Backslash-escape space, comma and equals sign in a tag/field key."""
    return str(key).translate(_KEY_ESCAPES)


def escape_tag_value(value: str) -> str:
    """Backslash-escape space, comma and equals sign in a tag value."""
    return str(value).translate(_KEY_ESCAPES)


def escape_measurement(measurement: str) -> str:
    """Backslash-escape space and comma in a measurement name."""
    return measurement.translate(_MEASUREMENT_ESCAPES)


def quote_string(value: str) -> str:
    """Double-quote a string field value, escaping inner double quotes."""
    return '"{}"'.format(value.replace('"', '\\"'))


def normalize_tag_value(value: Any) -> str:
    """
    Normalize a raw tag value to its textual form.

    Empty string becomes the literal ``""``, booleans become ``true``/``false``
    and None becomes ``null``.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if value == "":
        return '""'
    return str(value)


# =================================================================
# FIELD RENDERING
# =================================================================

_FIELD_FORMATTERS: Dict[FieldKind, Callable[[Any], str]] = {
    FieldKind.INT: lambda v: f"{v}i",
    # repr() is locale independent and always uses "."
    FieldKind.FLOAT: repr,
    FieldKind.STR: quote_string,
    FieldKind.BOOL: lambda v: "true" if v else "false",
    FieldKind.NULL: lambda v: quote_string("null"),
}


def format_field_value(field: FieldValue) -> str:
    """Render a tagged field value."""
    return _FIELD_FORMATTERS[field.kind](field.value)


# =================================================================
# TIMESTAMPS
# =================================================================

def normalize_timestamp(timestamp: Any) -> int:
    """
    Validate a timestamp and return it as an int.

    Accepts ints, integral floats and strings of decimal digits (with an
    optional leading minus sign).

    Raises:
        ValidationError: non numeric, non integral or outside int64
    """
    error = ValidationError(
        f"{timestamp} is not a valid timestamp", field="timestamp", value=timestamp
    )

    if isinstance(timestamp, bool):
        raise error

    if isinstance(timestamp, int):
        value = timestamp
    elif isinstance(timestamp, float):
        if not math.isfinite(timestamp) or not timestamp.is_integer():
            raise error
        value = int(timestamp)
    elif isinstance(timestamp, str):
        text = timestamp.strip()
        digits = text[1:] if text.startswith("-") else text
        if not digits.isdigit() or not digits.isascii():
            raise error
        value = int(text)
    else:
        raise error

    if not INT64_MIN <= value <= INT64_MAX:
        raise error

    return value


# =================================================================
# ENCODER
# =================================================================

def encode_point(point) -> str:
    """
    Render one point as a line protocol record (no trailing newline).

    Args:
        point: object exposing measurement, tags, fields and timestamp
               (see influxwire.domain.point.Point)
    """
    line = escape_measurement(point.measurement)

    if point.tags:
        line += "," + ",".join(
            f"{escape_key(key)}={escape_tag_value(value)}"
            for key, value in point.tags.items()
        )

    line += " " + ",".join(
        f"{escape_key(key)}={format_field_value(value)}"
        for key, value in point.fields.items()
    )

    if point.timestamp is not None:
        line += f" {point.timestamp}"

    return line


def encode_points(points: Iterable) -> str:
    """Render several points, one record per line, no trailing newline."""
    return "\n".join(encode_point(point) for point in points)
