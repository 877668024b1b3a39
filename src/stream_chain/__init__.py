"""
Stream Chain - Transparent format transforms for byte streams.

This library opens a stream for reading or writing through a chain of
transforms (compression, zip containers, character encoding, tabular rows)
inferred from a file name's trailing extensions, or declared explicitly.
Every layer releases its resources, in reverse order, whether the caller's
block returns or raises.

Basic Usage:
    >>> from stream_chain import StreamBuilder
    >>>
    >>> # Streams inferred from the file name: zip outermost, then gz
    >>> with open("export.csv.gz.zip", "rb") as raw:
    ...     data = StreamBuilder("export.csv.gz.zip").reader(raw, lambda io: io.read())
    >>>
    >>> # Decode text as well, whatever the file name
    >>> builder = StreamBuilder("export.csv.gz")
    >>> builder.declare_deferred("encode", encoding="iso-8859-1")
    >>> with open("export.csv.gz", "rb") as raw:
    ...     lines = builder.reader(raw, lambda text: text.readlines())

Key Concepts:
    - **Stream**: One transform layer, looked up by extension (gz, zip, encode, ...)
    - **Pipeline**: The ordered, immutable list of streams for one read or write
    - **Builder**: Resolves a pipeline from a file name or explicit declarations
    - **Executor**: Nests the streams around the raw stream and calls the block

Discovering streams:
    >>> from stream_chain import get_registry
    >>> registry = get_registry()
    >>> registry.list_extensions()
    >>> registry.describe_extension("zip")
"""

from .base import (
    BaseReader,
    BaseStream,
    BaseWriter,
    Direction,
)
from .descriptor import Pipeline, StreamSpec
from .builder import BuilderMode, StreamBuilder
from .executor import ChainExecutor
from .parser import PipelineParser
from .registry import (
    ExtensionDescriptor,
    ExtensionRegistry,
    get_registry,
    register_extension,
)
from .exceptions import (
    StreamChainError,
    InvalidConfigurationError,
    UnknownTransformTypeError,
    UnsupportedTransformError,
    MissingCallbackError,
    ConfigurationError,
    TypeMismatchError,
    InvalidHeaderError,
)

__version__ = "0.1.0"

__all__ = [
    # Core types
    "BaseStream",
    "BaseReader",
    "BaseWriter",
    "Direction",
    "StreamSpec",
    "Pipeline",
    # Building and execution
    "StreamBuilder",
    "BuilderMode",
    "ChainExecutor",
    "PipelineParser",
    # Registry
    "ExtensionDescriptor",
    "ExtensionRegistry",
    "get_registry",
    "register_extension",
    # Exceptions
    "StreamChainError",
    "InvalidConfigurationError",
    "UnknownTransformTypeError",
    "UnsupportedTransformError",
    "MissingCallbackError",
    "ConfigurationError",
    "TypeMismatchError",
    "InvalidHeaderError",
]
