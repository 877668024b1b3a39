"""
Zip container streams.

The reader exposes a single entry of a zip archive as a readable stream;
the writer stores everything written to it as a single entry.
"""

from contextlib import contextmanager
from typing import Any, Dict, Optional
import logging
import shutil
import tempfile
import zipfile

from .base import BaseReader, BaseWriter

logger = logging.getLogger("stream_chain")

COMPRESSION_METHODS = {
    "stored": zipfile.ZIP_STORED,
    "deflated": zipfile.ZIP_DEFLATED,
    "bzip2": zipfile.ZIP_BZIP2,
    "lzma": zipfile.ZIP_LZMA,
}


def _is_seekable(io) -> bool:
    seekable = getattr(io, "seekable", None)
    return bool(seekable and seekable())


class _ForwardOnlyWriter:
    """
    Write-only view of a stream that hides its seek method.

    Write-mode compressors report themselves as seekable but cannot seek
    backwards, so zipfile is made to write data descriptors instead of
    rewriting local headers.
    """

    def __init__(self, io):
        self._io = io

    def write(self, data):
        return self._io.write(data)

    def tell(self):
        return self._io.tell()

    def flush(self):
        self._io.flush()

    def seekable(self):
        return False


class ZipReader(BaseReader):
    """
    Read a single entry from a zip archive, decompressing it as it is read.

    The zip central directory lives at the end of the archive, so an input
    that cannot seek is first copied to a temporary file which is removed
    once the entry has been consumed.

    Options:
        entry_file_name: Name of the entry to read. Default: the first file
            in the archive.
        buffer_size: Chunk size used when copying a non-seekable input.

    Example:
        >>> StreamBuilder("archive.zip").reader(raw, lambda entry: entry.read(256))
    """

    def get_config_schema(self) -> Dict[str, Any]:
        return {
            "required": {},
            "optional": {
                "entry_file_name": {
                    "type": "str",
                    "description": "Name of the file within the zip archive to read",
                    "default": None,
                    "example": "report.csv",
                },
                "buffer_size": {
                    "type": "int",
                    "description": "Bytes copied at a time when the input is not seekable",
                    "default": 65536,
                    "example": 65536,
                },
            },
        }

    @contextmanager
    def open(self, io, entry_file_name: Optional[str] = None, buffer_size: int = 65536):
        if _is_seekable(io):
            with self._open_entry(io, entry_file_name) as entry:
                yield entry
            return

        logger.debug("Zip input is not seekable, copying to a temporary file")
        with tempfile.TemporaryFile(prefix="stream_chain") as temp_file:
            shutil.copyfileobj(io, temp_file, buffer_size)
            temp_file.seek(0)
            with self._open_entry(temp_file, entry_file_name) as entry:
                yield entry

    @contextmanager
    def _open_entry(self, io, entry_file_name: Optional[str]):
        with zipfile.ZipFile(io, mode="r") as archive:
            if entry_file_name is None:
                names = [info.filename for info in archive.infolist() if not info.is_dir()]
                if not names:
                    raise zipfile.BadZipFile("Zip archive does not contain any files")
                entry_file_name = names[0]
            # Raises KeyError when the entry is missing
            with archive.open(entry_file_name, mode="r") as entry:
                yield entry


class ZipWriter(BaseWriter):
    """
    Write a single entry into a new zip archive.

    The archive's central directory is written to the underlying stream
    when the block completes.
    """

    def get_config_schema(self) -> Dict[str, Any]:
        return {
            "required": {},
            "optional": {
                "entry_file_name": {
                    "type": "str",
                    "description": "Name of the file stored within the zip archive",
                    "default": "file",
                    "example": "report.csv",
                },
                "compression": {
                    "type": "str",
                    "description": "One of: " + ", ".join(COMPRESSION_METHODS),
                    "default": "deflated",
                    "example": "deflated",
                },
            },
        }

    @contextmanager
    def open(self, io, entry_file_name: str = "file", compression: str = "deflated"):
        if compression not in COMPRESSION_METHODS:
            raise ValueError(
                f"Unknown zip compression: {compression!r}. "
                f"Expected one of: {', '.join(COMPRESSION_METHODS)}"
            )
        writer = _ForwardOnlyWriter(io)
        with zipfile.ZipFile(writer, mode="w", compression=COMPRESSION_METHODS[compression]) as archive:
            with archive.open(entry_file_name, mode="w") as entry:
                yield entry
