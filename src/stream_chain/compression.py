"""
Compression streams.

Each reader decompresses the underlying stream as it is read and each writer
compresses whatever is written to it. Closing a compressor flushes its
trailer but never closes the underlying stream.
"""

from contextlib import contextmanager
from typing import Any, Dict, Optional
import bz2
import gzip
import lzma

from .base import BaseReader, BaseWriter


class GzipReader(BaseReader):
    """Decompress a gzip stream as it is read."""

    @contextmanager
    def open(self, io):
        with gzip.GzipFile(fileobj=io, mode="rb") as stream:
            yield stream


class GzipWriter(BaseWriter):
    """Compress data written to the stream using gzip."""

    def get_config_schema(self) -> Dict[str, Any]:
        return {
            "required": {},
            "optional": {
                "compresslevel": {
                    "type": "int",
                    "description": "Compression level, 0 (none) to 9 (best)",
                    "default": 9,
                    "example": 6,
                },
            },
        }

    @contextmanager
    def open(self, io, compresslevel: int = 9):
        with gzip.GzipFile(fileobj=io, mode="wb", compresslevel=compresslevel) as stream:
            yield stream


class Bz2Reader(BaseReader):
    """Decompress a bzip2 stream as it is read."""

    @contextmanager
    def open(self, io):
        with bz2.BZ2File(io, mode="rb") as stream:
            yield stream


class Bz2Writer(BaseWriter):
    """Compress data written to the stream using bzip2."""

    def get_config_schema(self) -> Dict[str, Any]:
        return {
            "required": {},
            "optional": {
                "compresslevel": {
                    "type": "int",
                    "description": "Compression level, 1 to 9",
                    "default": 9,
                    "example": 9,
                },
            },
        }

    @contextmanager
    def open(self, io, compresslevel: int = 9):
        with bz2.BZ2File(io, mode="wb", compresslevel=compresslevel) as stream:
            yield stream


class XzReader(BaseReader):
    """Decompress an xz (lzma) stream as it is read."""

    @contextmanager
    def open(self, io):
        with lzma.LZMAFile(io, mode="rb") as stream:
            yield stream


class XzWriter(BaseWriter):
    """Compress data written to the stream using xz (lzma)."""

    def get_config_schema(self) -> Dict[str, Any]:
        return {
            "required": {},
            "optional": {
                "preset": {
                    "type": "int",
                    "description": "Compression preset, 0 to 9",
                    "default": None,
                    "example": 6,
                },
            },
        }

    @contextmanager
    def open(self, io, preset: Optional[int] = None):
        with lzma.LZMAFile(io, mode="wb", format=lzma.FORMAT_XZ, preset=preset) as stream:
            yield stream
