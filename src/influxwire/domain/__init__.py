"""
Domain Module
=============

Data points and their line protocol encoding.
"""

from .line_protocol import (
    FieldKind,
    FieldValue,
    encode_point,
    encode_points,
    escape_key,
    escape_tag_value,
)
from .point import Point

__all__ = [
    "FieldKind",
    "FieldValue",
    "Point",
    "encode_point",
    "encode_points",
    "escape_key",
    "escape_tag_value",
]
