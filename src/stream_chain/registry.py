"""
Extension Registry for looking up stream implementations.

Maps a lower-cased extension symbol (e.g. 'gz', 'zip', 'encode') to the
reader and writer classes implementing it, with introspection methods for
discovering what is available.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type
import logging

from .base import BaseStream, Direction
from .compression import (
    Bz2Reader,
    Bz2Writer,
    GzipReader,
    GzipWriter,
    XzReader,
    XzWriter,
)
from .encode import EncodeReader, EncodeWriter
from .exceptions import UnknownTransformTypeError, UnsupportedTransformError
from .zip import ZipReader, ZipWriter

logger = logging.getLogger("stream_chain")


@dataclass(frozen=True)
class ExtensionDescriptor:
    """
    Reader and writer classes registered for an extension.

    Either may be None: a format can be read-only or write-only.
    """

    reader_class: Optional[Type[BaseStream]] = None
    writer_class: Optional[Type[BaseStream]] = None

    def class_for(self, direction: Direction) -> Optional[Type[BaseStream]]:
        if direction is Direction.READ:
            return self.reader_class
        return self.writer_class


class ExtensionRegistry:
    """
    Registry for all stream implementations.

    Streams are registered by extension and instantiated on lookup, so
    concurrent chains never share a stream instance.

    Example:
        >>> from stream_chain import get_registry, Direction
        >>> registry = get_registry()
        >>>
        >>> # List all extensions
        >>> registry.list_extensions()
        >>>
        >>> # Get details for a specific extension
        >>> registry.describe_extension("zip")
        >>>
        >>> # Look up the reader for an extension
        >>> stream = registry.lookup("gz", Direction.READ)
    """

    def __init__(self, register_defaults: bool = True):
        self._extensions: Dict[str, ExtensionDescriptor] = {}
        if register_defaults:
            self._register_default_extensions()

    def _register_default_extensions(self):
        """Register all built-in streams."""

        # Compression
        self.register("gz", reader=GzipReader, writer=GzipWriter)
        self.register("gzip", reader=GzipReader, writer=GzipWriter)  # Alias
        self.register("bz2", reader=Bz2Reader, writer=Bz2Writer)
        self.register("xz", reader=XzReader, writer=XzWriter)

        # Containers
        self.register("zip", reader=ZipReader, writer=ZipWriter)

        # Character encoding
        self.register("encode", reader=EncodeReader, writer=EncodeWriter)

    def register(
        self,
        extension: str,
        reader: Optional[Type[BaseStream]] = None,
        writer: Optional[Type[BaseStream]] = None,
    ):
        """
        Register the reader and/or writer for an extension.

        Args:
            extension: Extension symbol, matched case-insensitively
            reader: Stream class used when reading (not instance)
            writer: Stream class used when writing (not instance)

        Raises:
            ValueError: If neither a reader nor a writer is supplied
        """
        if reader is None and writer is None:
            raise ValueError(f"Extension {extension!r} needs a reader or a writer")

        extension = extension.lower()
        if extension in self._extensions:
            logger.warning("Replacing registered extension: %s", extension)
        self._extensions[extension] = ExtensionDescriptor(reader_class=reader, writer_class=writer)
        logger.debug(
            "Registered extension: %s -> reader=%s, writer=%s",
            extension,
            reader.__name__ if reader else None,
            writer.__name__ if writer else None,
        )

    def unregister(self, extension: str):
        """Remove an extension. Unknown extensions are ignored."""
        self._extensions.pop(extension.lower(), None)

    def has_extension(self, extension: str) -> bool:
        """Check if an extension is registered."""
        return str(extension).lower() in self._extensions

    @property
    def extensions(self) -> List[str]:
        """Registered extension symbols."""
        return list(self._extensions.keys())

    def get_descriptor(self, extension: str) -> ExtensionDescriptor:
        """
        Get the descriptor registered for an extension.

        Raises:
            UnknownTransformTypeError: If the extension is not registered
        """
        descriptor = self._extensions.get(str(extension).lower())
        if descriptor is None:
            raise UnknownTransformTypeError(extension, self.extensions)
        return descriptor

    def lookup(self, extension: str, direction: Direction) -> Optional[BaseStream]:
        """
        Get a stream instance for an extension and direction.

        Args:
            extension: Extension symbol
            direction: Direction.READ or Direction.WRITE

        Returns:
            Stream instance, or None if the extension has no implementation
            for that direction

        Raises:
            UnknownTransformTypeError: If the extension is not registered
        """
        extension = str(extension).lower()
        stream_class = self.get_descriptor(extension).class_for(direction)
        if stream_class is None:
            return None
        return stream_class(name=extension)

    def get_stream(self, extension: str, direction: Direction) -> BaseStream:
        """
        Get a stream instance, failing if there is none for the direction.

        Raises:
            UnknownTransformTypeError: If the extension is not registered
            UnsupportedTransformError: If there is no implementation for the direction
        """
        stream = self.lookup(extension, direction)
        if stream is None:
            raise UnsupportedTransformError(extension, direction.value)
        return stream

    def describe_extension(self, extension: str) -> Dict[str, Any]:
        """
        Get full documentation for an extension.

        Returns:
            Dict with name and, per direction, description and config_schema
            (None for a direction without an implementation)

        Example:
            >>> registry.describe_extension("gz")
            {
                "name": "gz",
                "reader": {"class": "GzipReader", "description": "...", "config_schema": {...}},
                "writer": {"class": "GzipWriter", "description": "...", "config_schema": {...}}
            }
        """
        extension = str(extension).lower()
        self.get_descriptor(extension)

        result: Dict[str, Any] = {"name": extension}
        for direction in Direction:
            stream = self.lookup(extension, direction)
            if stream is None:
                result[direction.value] = None
                continue
            result[direction.value] = {
                "class": stream.__class__.__name__,
                "description": stream.get_description(),
                "config_schema": stream.get_config_schema(),
            }
        return result

    def list_extensions(self, direction: Optional[Direction] = None) -> List[Dict[str, Any]]:
        """
        List all extensions with the directions they support.

        Args:
            direction: Optional filter, only extensions supporting it are listed

        Returns:
            List of dicts with name, reader and writer flags, sorted by name
        """
        result = []
        for name, descriptor in self._extensions.items():
            if direction is not None and descriptor.class_for(direction) is None:
                continue
            result.append(
                {
                    "name": name,
                    "reader": descriptor.reader_class is not None,
                    "writer": descriptor.writer_class is not None,
                }
            )
        return sorted(result, key=lambda x: x["name"])


# Global registry instance
_global_registry = ExtensionRegistry()


def get_registry() -> ExtensionRegistry:
    """Get the global extension registry."""
    return _global_registry


def register_extension(
    extension: str,
    reader: Optional[Type[BaseStream]] = None,
    writer: Optional[Type[BaseStream]] = None,
):
    """
    Register a custom stream with the global registry.

    Example:
        >>> from stream_chain import register_extension
        >>> from stream_chain.tabular import CsvReader, CsvWriter
        >>>
        >>> register_extension("csv", reader=CsvReader, writer=CsvWriter)
    """
    _global_registry.register(extension, reader=reader, writer=writer)
