"""
InfluxDB Query Result Decoding
==============================

Decodes the JSON envelope returned by the ``/query`` endpoint:

    {"results": [{"statement_id": 0,
                  "series": [{"name": "cpu", "tags": {...},
                              "columns": ["time", "value"],
                              "values": [["2015-01-29T21:55:43Z", 0.64]]}]}]}

Small responses are decoded in one go and memoized. Large responses backed
by a seekable stream can be walked point by point with ``iterate()`` and
``get_by_time()``: the stream is parsed incrementally with ijson, only the
requested statement is looked at, and the stream position is restored
afterwards.

Usage:
    result = ResultSet(response_body)
    for point in result.get_points("cpu_load_short"):
        print(point["time"], point["value"])
"""

import io
import json
import logging
from typing import Any, BinaryIO, Dict, Iterator, List, Mapping, Optional, Union

import ijson
from ijson.common import ObjectBuilder

from ...core.config import settings
from ...core.exceptions import FormatError, QueryError, ValidationError
from ...domain.line_protocol import normalize_tag_value
from ...domain.time_literals import is_rfc3339

logger = logging.getLogger(__name__)

INVALID_STATEMENT_INDEX = "Invalid statement index provided"

_SERIES_PREFIX = "results.item.series.item"
_ROW_PREFIX = f"{_SERIES_PREFIX}.values.item"


def _make_point(columns: List[str], row: List[Any], tags: Mapping[str, Any]) -> Dict[str, Any]:
    """Zip one row with its columns; series tags never override columns."""
    if len(row) != len(columns):
        raise FormatError(f"row has {len(row)} values for {len(columns)} columns", excerpt=str(row))
    point = dict(zip(columns, row))
    for key, value in tags.items():
        point.setdefault(key, value)
    return point


def _series_points(series: Mapping[str, Any]) -> Iterator[Dict[str, Any]]:
    columns = series.get("columns") or []
    tags = series.get("tags") or {}
    for row in series.get("values") or []:
        yield _make_point(columns, row, tags)


def _series_matches(series: Mapping[str, Any], name: str, tags: Mapping[str, Any]) -> bool:
    """Exact name match, or at least one tag key whose value matches."""
    if not name and not tags:
        return True
    if name and series.get("name") == name:
        return True
    series_tags = series.get("tags") or {}
    return any(
        key in series_tags and series_tags[key] == normalize_tag_value(value)
        for key, value in tags.items()
    )


class ResultSet:
    """
    Parsed (or lazily parsed) response of one /query request.

    Not safe for concurrent use: the parse cache and the stream position
    are shared by every method.

    A stream body stays open until the caller closes it, directly or
    through close() / a with block. Client.query() hands over the spooled
    response body this way.
    """

    def __init__(
        self,
        raw: Union[bytes, bytearray, str, BinaryIO],
        stream_threshold: Optional[int] = None
    ):
        """
        Args:
            raw: Response body as bytes/str (decoded immediately) or a
                 seekable binary stream (decoded on first access)
            stream_threshold: Stream size in bytes above which iterate()
                              and get_by_time() parse incrementally.
                              Defaults to settings.RESULT_STREAM_THRESHOLD_BYTES

        Raises:
            FormatError: Raw body is not valid JSON
            QueryError: Body carries a top-level error
        """
        self.stream_threshold = (
            settings.RESULT_STREAM_THRESHOLD_BYTES if stream_threshold is None else stream_threshold
        )
        self._parsed: Optional[List[Dict[str, Any]]] = None
        self._time_index: Dict[int, Dict[str, int]] = {}
        self._time_points: Dict[int, List[Dict[str, Any]]] = {}

        if isinstance(raw, (bytes, bytearray)):
            self._raw: Optional[str] = bytes(raw).decode("utf-8")
            self._stream = None
            self._parsed = self._decode(self._raw)
        elif isinstance(raw, str):
            self._raw = raw
            self._stream = None
            self._parsed = self._decode(self._raw)
        elif hasattr(raw, "read") and hasattr(raw, "seek"):
            self._raw = None
            self._stream = raw
            self._origin = raw.tell()
        else:
            raise ValidationError(
                "ResultSet expects bytes, str or a seekable binary stream",
                field="raw", value=type(raw).__name__
            )

    # =================================================================
    # EAGER DECODING
    # =================================================================

    @staticmethod
    def _decode(text: str) -> List[Dict[str, Any]]:
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise FormatError(str(e), excerpt=text) from e

        if not isinstance(document, dict):
            raise FormatError("top-level value is not an object", excerpt=text)

        # Error raised by InfluxDB before running any statement
        if "error" in document:
            raise QueryError(document["error"])

        results = document.get("results", [])
        if not isinstance(results, list):
            raise FormatError("'results' is not a list", excerpt=text)

        return results

    def _results(self) -> List[Dict[str, Any]]:
        if self._parsed is None:
            self._parsed = self._decode(self._read_stream())
        return self._parsed

    def _read_stream(self) -> str:
        position = self._stream.tell()
        try:
            self._stream.seek(self._origin)
            data = self._stream.read()
        finally:
            self._stream.seek(position)
        return data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data

    def get_raw(self) -> str:
        """Raw response text."""
        if self._raw is not None:
            return self._raw
        return self._read_stream()

    def raise_for_errors(self) -> "ResultSet":
        """
        Raise the first statement error of the response.

        Reading a statement is what surfaces its error; statements that
        return no series (CREATE, DROP, GRANT...) are checked with this.

        Raises:
            QueryError: A statement failed on the server
        """
        self.get_series(None)
        return self

    def close(self) -> None:
        """Close the backing stream (reads never close it on their own)."""
        if self._stream is not None and not self._stream.closed:
            self._stream.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # =================================================================
    # SERIES ACCESS
    # =================================================================

    @staticmethod
    def _extract(statement: Mapping[str, Any], statement_id: int) -> List[Dict[str, Any]]:
        if "error" in statement:
            raise QueryError(statement["error"], statement_id)
        return statement.get("series") or []

    def get_series(self, statement_index: Optional[int] = 0):
        """
        Series of one statement.

        Statements are matched on their statement_id; responses from
        servers older than 1.2 carry no id and are matched by position.

        Args:
            statement_index: Statement to return, None for every statement

        Returns:
            List of series, or {statement_id: series} when index is None

        Raises:
            ValidationError: No statement with that index
            QueryError: The requested statement failed on the server
        """
        results = self._results()
        all_series = {}

        for position, statement in enumerate(results):
            statement_id = statement.get("statement_id", position)
            if statement_index is None:
                all_series[statement_id] = self._extract(statement, statement_id)
            elif statement_id == statement_index:
                return self._extract(statement, statement_id)

        if statement_index is not None:
            raise ValidationError(INVALID_STATEMENT_INDEX, field="statement_index", value=statement_index)

        return all_series

    def get_columns(self, statement_index: Optional[int] = 0) -> List[str]:
        """Column names of the first series of a statement."""
        series = self.get_series(0 if statement_index is None else statement_index)
        if not series:
            return []
        return series[0].get("columns") or []

    def get_points(
        self,
        name: str = "",
        tags: Optional[Mapping[str, Any]] = None,
        statement_index: int = 0
    ) -> List[Dict[str, Any]]:
        """
        Flatten series rows into column -> value dicts merged with tags.

        Args:
            name: Keep series with exactly this name
            tags: Keep series sharing at least one tag key/value pair
            statement_index: Statement to read

        Returns:
            Points of every matching series; no filters keeps them all
        """
        tags = tags or {}
        points = []
        for series in self.get_series(statement_index):
            if _series_matches(series, name, tags):
                points.extend(_series_points(series))
        return points

    # =================================================================
    # STREAMING ACCESS
    # =================================================================

    def _stream_size(self) -> int:
        position = self._stream.tell()
        try:
            self._stream.seek(0, io.SEEK_END)
            return self._stream.tell() - self._origin
        finally:
            self._stream.seek(position)

    def _use_streaming(self) -> bool:
        if self._stream is None or self._parsed is not None:
            return False
        return self._stream_size() > self.stream_threshold

    def iterate(self, statement_index: int = 0) -> Iterator[Dict[str, Any]]:
        """
        Yield the points of one statement one at a time.

        Streams bigger than stream_threshold are never loaded whole; smaller
        ones fall back to the memoized eager decode. Both paths yield the
        same points in the same order.
        """
        if self._use_streaming():
            yield from self._stream_points(statement_index)
        else:
            for series in self.get_series(statement_index):
                yield from _series_points(series)

    def get_by_time(self, time: str, statement_index: int = 0) -> Optional[Dict[str, Any]]:
        """
        First point of a statement whose "time" column equals time.

        Args:
            time: RFC3339 timestamp as returned by the server
            statement_index: Statement to search

        Returns:
            The point, or None when no row carries that time

        Raises:
            ValidationError: time is not an RFC3339 timestamp
        """
        if not is_rfc3339(time):
            raise ValidationError(f"'{time}' is not a valid RFC3339 time", field="time", value=time)

        if not self._use_streaming():
            index = self._build_time_index(statement_index)
            position = index.get(time)
            return None if position is None else self._time_points[statement_index][position]

        points = self._stream_points(statement_index)
        try:
            for point in points:
                if point.get("time") == time:
                    return point
        finally:
            points.close()
        return None

    def _build_time_index(self, statement_index: int) -> Dict[str, int]:
        if statement_index not in self._time_index:
            points = list(self.iterate(statement_index))
            index: Dict[str, int] = {}
            for position, point in enumerate(points):
                index.setdefault(point.get("time"), position)
            self._time_points[statement_index] = points
            self._time_index[statement_index] = index
        return self._time_index[statement_index]

    def _stream_points(self, statement_index: int) -> Iterator[Dict[str, Any]]:
        position = self._stream.tell()
        self._stream.seek(self._origin)
        logger.debug(f"📡 Streaming statement {statement_index} from {self._stream_size()} byte response")
        try:
            yield from _StatementScanner(statement_index).scan(self._stream)
        except ijson.JSONError as e:
            raise FormatError(str(e)) from e
        finally:
            self._stream.seek(position)


class _StatementScanner:
    """
    Incremental walk over ``results[*]`` that yields the points of one
    statement.

    Contract: every completed row is emitted as one point built from the
    enclosing series' columns and tags. InfluxDB writes name, tags and
    columns before values; rows seen before their columns are buffered
    until the series ends.
    """

    def __init__(self, statement_index: int):
        self.statement_index = statement_index
        self.position = -1
        self.statement_id: Optional[int] = None
        self._builder: Optional[ObjectBuilder] = None
        self._capture_prefix = ""
        self._depth = 0
        self._reset_series()

    def _reset_series(self) -> None:
        self.columns: Optional[List[str]] = None
        self.tags: Dict[str, Any] = {}
        self.pending: List[List[Any]] = []

    def _selected(self) -> bool:
        return self.statement_id == self.statement_index

    def _start_capture(self, prefix: str, event: str, value: Any) -> None:
        self._builder = ObjectBuilder()
        self._capture_prefix = prefix
        self._depth = 1
        self._builder.event(event, value)

    def _feed_capture(self, event: str, value: Any) -> Optional[Any]:
        """Feed one event; returns the finished value, else None."""
        self._builder.event(event, value)
        if event in ("start_map", "start_array"):
            self._depth += 1
        elif event in ("end_map", "end_array"):
            self._depth -= 1
            if self._depth == 0:
                finished = self._builder.value
                self._builder = None
                return finished
        return None

    def _complete(self, prefix: str, value: Any) -> Iterator[Dict[str, Any]]:
        if prefix == f"{_SERIES_PREFIX}.tags":
            self.tags = value or {}
        elif prefix == f"{_SERIES_PREFIX}.columns":
            self.columns = value
            pending, self.pending = self.pending, []
            for row in pending:
                yield _make_point(self.columns, row, self.tags)
        elif prefix == _ROW_PREFIX:
            if self.columns is None:
                self.pending.append(value)
            else:
                yield _make_point(self.columns, value, self.tags)

    def scan(self, stream: BinaryIO) -> Iterator[Dict[str, Any]]:
        for prefix, event, value in ijson.parse(stream, use_float=True):
            if self._builder is not None:
                finished = self._feed_capture(event, value)
                if finished is not None or self._builder is None:
                    yield from self._complete(self._capture_prefix, finished)
                continue

            if prefix == "error" and event == "string":
                raise QueryError(value)

            if prefix == "results.item":
                if event == "start_map":
                    self.position += 1
                    self.statement_id = self.position
                elif event == "end_map" and self._selected():
                    return
                continue

            if prefix == "results.item.statement_id" and event == "number":
                self.statement_id = int(value)
                continue

            if not self._selected():
                continue

            if prefix == "results.item.error" and event == "string":
                raise QueryError(value, self.statement_id)

            if prefix == _SERIES_PREFIX:
                if event == "start_map":
                    self._reset_series()
                elif event == "end_map" and self.pending:
                    raise FormatError("series rows without columns")
                continue

            if event in ("start_map", "start_array") and prefix in (
                f"{_SERIES_PREFIX}.tags",
                f"{_SERIES_PREFIX}.columns",
                _ROW_PREFIX,
            ):
                self._start_capture(prefix, event, value)

        raise ValidationError(INVALID_STATEMENT_INDEX, field="statement_index", value=self.statement_index)
