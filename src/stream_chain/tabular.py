"""
Tabular streams.

CsvReader yields rows parsed from the underlying stream; CsvWriter yields a
RowWriter whose rows are rendered onto it. Neither is part of the default
registry, since they turn a byte stream into rows. Register them to let
`.csv` file names resolve to row streams:

    >>> register_extension("csv", reader=CsvReader, writer=CsvWriter)
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterable, Sequence
import csv
import io as io_module

from .base import BaseReader, BaseWriter
from .exceptions import InvalidHeaderError, TypeMismatchError


def _tabular_schema() -> Dict[str, Any]:
    return {
        "delimiter": {
            "type": "str",
            "description": "Field separator",
            "default": ",",
            "example": "|",
        },
        "quotechar": {
            "type": "str",
            "description": "Character used to quote fields",
            "default": '"',
            "example": "'",
        },
        "encoding": {
            "type": "str",
            "description": "Character set used when the underlying stream is binary",
            "default": "utf-8",
            "example": "utf-8",
        },
    }


@contextmanager
def _as_text(io, encoding: str):
    """Yield `io` unchanged if it is already text, else a text view that is detached on exit."""
    if isinstance(io, io_module.TextIOBase):
        yield io
        return

    text = io_module.TextIOWrapper(io, encoding=encoding, newline="")
    try:
        yield text
    finally:
        text.detach()


class RowWriter:
    """
    Renders rows through a csv writer, rejecting anything that is not a list or tuple.

    A bare string would otherwise be written one character per column.
    """

    def __init__(self, writer, stream_type: str = "csv"):
        self._writer = writer
        self._stream_type = stream_type

    def writeheader(self, header: Sequence[Any]):
        if not isinstance(header, (list, tuple)):
            raise InvalidHeaderError(header, stream_type=self._stream_type)
        return self._writer.writerow(header)

    def writerow(self, row: Sequence[Any]):
        if not isinstance(row, (list, tuple)):
            raise TypeMismatchError(row, stream_type=self._stream_type)
        return self._writer.writerow(row)

    def writerows(self, rows: Iterable[Sequence[Any]]):
        for row in rows:
            self.writerow(row)


class CsvReader(BaseReader):
    """Parse CSV rows from the underlying stream."""

    def get_config_schema(self) -> Dict[str, Any]:
        return {"required": {}, "optional": _tabular_schema()}

    @contextmanager
    def open(self, io, delimiter: str = ",", quotechar: str = '"', encoding: str = "utf-8"):
        with _as_text(io, encoding) as text:
            yield csv.reader(text, delimiter=delimiter, quotechar=quotechar)


class CsvWriter(BaseWriter):
    """Render rows as CSV onto the underlying stream."""

    def get_config_schema(self) -> Dict[str, Any]:
        return {"required": {}, "optional": _tabular_schema()}

    @contextmanager
    def open(self, io, delimiter: str = ",", quotechar: str = '"', encoding: str = "utf-8"):
        with _as_text(io, encoding) as text:
            writer = csv.writer(text, delimiter=delimiter, quotechar=quotechar, lineterminator="\n")
            yield RowWriter(writer, stream_type=self.name)
