"""
Character encoding streams.

Converts between the bytes of the layer below and text for the layer above.
Always the innermost layer of a chain: character-set conversion applies to
bytes that have already been decompressed or extracted.
"""

from contextlib import contextmanager
from typing import Any, Dict, Optional
import codecs
import io as io_module

from .base import BaseReader, BaseWriter
from .exceptions import ConfigurationError

ERROR_POLICIES = ("strict", "replace", "ignore")


def _encoding_schema() -> Dict[str, Any]:
    return {
        "encoding": {
            "type": "str",
            "description": "Character set of the underlying bytes",
            "default": "utf-8",
            "example": "iso-8859-1",
        },
        "errors": {
            "type": "str",
            "description": "How to handle invalid characters: " + ", ".join(ERROR_POLICIES),
            "default": "strict",
            "example": "replace",
        },
        "newline": {
            "type": "str",
            "description": "Newline translation, as for io.TextIOWrapper",
            "default": None,
            "example": "",
        },
    }


class _EncodeMixin:
    def _check(self, encoding: str, errors: str) -> None:
        try:
            codecs.lookup(encoding)
        except LookupError as e:
            raise ConfigurationError(
                f"Unknown encoding: {encoding!r}", stream_type=self.name
            ) from e
        if errors not in ERROR_POLICIES:
            raise ConfigurationError(
                f"Unknown errors policy: {errors!r}. Expected one of: {', '.join(ERROR_POLICIES)}",
                stream_type=self.name,
            )

    @contextmanager
    def _text(self, io, encoding: str, errors: str, newline: Optional[str]):
        self._check(encoding, errors)
        text = io_module.TextIOWrapper(io, encoding=encoding, errors=errors, newline=newline)
        try:
            yield text
        finally:
            # Flushes pending text and leaves the underlying stream open
            text.detach()


class EncodeReader(_EncodeMixin, BaseReader):
    """Decode bytes from the underlying stream into text."""

    def get_config_schema(self) -> Dict[str, Any]:
        return {"required": {}, "optional": _encoding_schema()}

    @contextmanager
    def open(self, io, encoding: str = "utf-8", errors: str = "strict", newline: Optional[str] = None):
        with self._text(io, encoding, errors, newline) as text:
            yield text


class EncodeWriter(_EncodeMixin, BaseWriter):
    """Encode text written to the stream into bytes on the underlying stream."""

    def get_config_schema(self) -> Dict[str, Any]:
        return {"required": {}, "optional": _encoding_schema()}

    @contextmanager
    def open(self, io, encoding: str = "utf-8", errors: str = "strict", newline: Optional[str] = None):
        with self._text(io, encoding, errors, newline) as text:
            yield text
