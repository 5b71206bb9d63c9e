"""Row readers over a fully buffered file body."""

from __future__ import annotations

import io
import json
import re
from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any, TypeVar

from pydantic import TypeAdapter

from obspec_fs.exceptions import NoMoreRowsError, ScanTargetError

T = TypeVar("T")

_WHITESPACE = re.compile(r"[ \t\n\r]*")
_DECODER = json.JSONDecoder()


def _convert(value: Any, into: type[T] | None) -> T | Any:
    """Validate a decoded JSON value into ``into`` when a target type is given."""
    if into is None:
        return value
    return TypeAdapter(into).validate_python(value)


class RowReader(ABC):
    """
    A forward-only, non-restartable sequence of rows.

    Rows are consumed with a `next()` / `scan()` pair, or by iterating the
    reader directly:

    ```python
    reader = file.read_all()
    while reader.next():
        row = reader.scan()

    # equivalent
    for row in file.read_all():
        ...
    ```

    The whole body is buffered in memory when the reader is built, so readers
    are meant for objects that comfortably fit in memory.
    """

    @abstractmethod
    def next(self) -> bool:
        """Advance to the next row; False once the rows are exhausted."""
        ...

    @abstractmethod
    def scan(self, into: type[T] | None = None) -> T | Any:
        """Return the current row, decoded into ``into`` if given."""
        ...

    def __iter__(self) -> Iterator[Any]:
        while self.next():
            yield self.scan()


class TextRowReader(RowReader):
    """
    Rows are the lines of the body, without their ``\\n`` or ``\\r\\n``
    terminator. Lines are decoded as UTF-8 and can only be scanned into `str`;
    invalid bytes are kept as surrogate escapes, so
    ``row.encode("utf-8", "surrogateescape")`` gives back the stored bytes.
    """

    def __init__(self, data: bytes) -> None:
        self._lines = iter(io.BytesIO(data))
        self._current: str | None = None

    def next(self) -> bool:
        line = next(self._lines, None)
        if line is None:
            self._current = None
            return False
        if line.endswith(b"\n"):
            line = line[:-1]
        if line.endswith(b"\r"):
            line = line[:-1]
        self._current = line.decode("utf-8", errors="surrogateescape")
        return True

    def scan(self, into: type[T] | None = str) -> str:
        if into is not str:
            raise ScanTargetError(f"text rows can only be scanned into str, not {into!r}")
        if self._current is None:
            raise NoMoreRowsError("no current line; call next() first")
        return self._current


class JSONArrayRowReader(RowReader):
    """
    Rows are the elements of a top-level JSON array, decoded one at a time.

    Elements are decoded lazily, so malformed input (including a missing or
    trailing ``,``) raises [json.JSONDecodeError][] from the `scan()` that
    reaches it.
    """

    def __init__(self, text: str, pos: int) -> None:
        """
        Parameters
        ----------
        text
            The decoded body.
        pos
            Position just past the opening ``[``.
        """
        self._text = text
        self._pos = pos
        self._done = False
        self._after_element = False

    def _skip_whitespace(self) -> None:
        self._pos = _WHITESPACE.match(self._text, self._pos).end()

    def _at_end(self) -> bool:
        self._skip_whitespace()
        return self._pos >= len(self._text) or self._text[self._pos] == "]"

    def next(self) -> bool:
        if self._done:
            return False
        if self._at_end():
            self._done = True
            return False
        return True

    def scan(self, into: type[T] | None = None) -> T | Any:
        if self._done or self._at_end():
            self._done = True
            raise NoMoreRowsError("no more elements in JSON array")

        if self._after_element:
            if self._text[self._pos] != ",":
                raise json.JSONDecodeError(
                    "Expecting ',' delimiter", self._text, self._pos
                )
            self._pos += 1
            if self._at_end():
                raise json.JSONDecodeError("Expecting value", self._text, self._pos)

        value, self._pos = _DECODER.raw_decode(self._text, self._pos)
        self._after_element = True
        return _convert(value, into)


class JSONObjectRowReader(RowReader):
    """A single decoded JSON value, exposed as a sequence of exactly one row."""

    def __init__(self, value: Any) -> None:
        self._value = value
        self._consumed = False

    def next(self) -> bool:
        return not self._consumed

    def scan(self, into: type[T] | None = None) -> T | Any:
        if self._consumed:
            raise NoMoreRowsError("JSON object already decoded")
        self._consumed = True
        return _convert(self._value, into)


def json_row_reader(data: bytes) -> JSONArrayRowReader | JSONObjectRowReader:
    """
    Build a JSON row reader, choosing the variant from the first token.

    A body starting with ``[`` yields its elements; anything else must be a
    single valid JSON value.

    Raises
    ------
    json.JSONDecodeError
        If the body is not a JSON array and not a valid JSON value.
    """
    text = data.decode("utf-8")
    pos = _WHITESPACE.match(text).end()
    if text.startswith("[", pos):
        return JSONArrayRowReader(text, pos + 1)
    return JSONObjectRowReader(json.loads(text))


def text_row_reader(data: bytes) -> TextRowReader:
    """Build a line-oriented row reader."""
    return TextRowReader(data)


__all__ = [
    "JSONArrayRowReader",
    "JSONObjectRowReader",
    "RowReader",
    "TextRowReader",
    "json_row_reader",
    "text_row_reader",
]
